from __future__ import annotations
import logging
from sstparse.patterns import LineKind, iter_matches

logger = logging.getLogger(__name__)

_VERB_STATUS = {
    "created": "created",
    "updated": "updated",
    "deleted": "deleted",
    "removed": "deleted",
    "unchanged": "unchanged",
    "skipped": "unchanged",
    "failed": "failed",
}

_URL_TYPES = {
    "router": "api",
    "api": "api",
    "web": "web",
    "website": "web",
    "site": "web",
    "function": "function",
}


def parse_deploy(output: str, stage: str, exit_code: int) -> dict:
    """Parse ``sst deploy`` output into a raw result dict for the normalizer."""
    app = None
    parsed_stage = None
    permalink = None
    error = None
    saw_complete = saw_partial = saw_failed = False
    # (type, name) -> [status, reason]; dict keeps first-seen order
    tracked: dict[tuple[str, str], list[str]] = {}
    urls: list[dict] = []
    seen_urls: set[tuple[str, str]] = set()

    for match in iter_matches(output):
        kind = match.kind
        if kind == LineKind.APP and app is None:
            app = match.get("app")
        elif kind == LineKind.STAGE and parsed_stage is None:
            parsed_stage = match.get("stage")
        elif kind == LineKind.PERMALINK and permalink is None:
            permalink = match.get("url")
        elif kind == LineKind.COMPLETE:
            saw_complete = True
        elif kind == LineKind.PARTIAL:
            saw_partial = True
        elif kind == LineKind.FAILED:
            saw_failed = True
        elif kind == LineKind.ERROR and error is None:
            error = match.get("message", "Deployment failed")
        elif kind == LineKind.RESOURCE:
            key = (match.get("type"), match.get("name"))
            tracked[key] = [_VERB_STATUS[match.get("verb").lower()], match.get("details")]
        elif kind == LineKind.URL:
            name, url = match.get("name"), match.get("url")
            if (name, url) in seen_urls:
                continue
            seen_urls.add((name, url))
            urls.append({
                "name": name,
                "url": url,
                "type": _URL_TYPES.get(name.lower(), "other"),
            })

    resources = []
    failed = []
    for (rtype, name), (status, reason) in tracked.items():
        if status == "failed":
            failed.append({"type": rtype, "name": name, "reason": reason})
        else:
            resources.append({"type": rtype, "name": name, "status": status})
    changed = [r for r in resources if r["status"] != "unchanged"]

    success = exit_code == 0 and not saw_failed and error is None
    if not success:
        status = "failed"
    elif failed and not changed and not saw_complete:
        # every tracked resource failed
        success = False
        status = "failed"
    elif failed or saw_partial:
        status = "partial"
    else:
        status = "complete"

    if not success and error is None and saw_failed:
        error = "Deployment failed"

    logger.debug(
        "deploy: %d changed, %d failed, %d urls, status=%s",
        len(changed), len(failed), len(urls), status,
    )
    return {
        "success": success,
        "stage": stage or parsed_stage,
        "app": app,
        "permalink": permalink,
        "exit_code": exit_code,
        "error": error,
        "completion_status": status,
        "resource_changes": len(changed),
        "resources": changed,
        "failed_resources": failed,
        "urls": urls,
    }
