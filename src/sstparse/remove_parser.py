from __future__ import annotations
import logging
from sstparse.patterns import LineKind, iter_matches, parse_money

logger = logging.getLogger(__name__)

_VERB_STATUS = {
    "deleted": "removed",
    "removed": "removed",
    "failed": "failed",
    "skipped": "skipped",
    "unchanged": "skipped",
}
_SIGN_STATUS = {"-": "removed", "×": "failed", "~": "skipped"}


def completion_status(exit_code: int, statuses: list[str], explicit_partial: bool = False) -> str:
    """Classify a teardown from the per-resource outcomes.

    Zero tracked resources with a clean exit is a complete no-op removal.
    Resources attempted but none removed is a failure even on exit code 0.
    """
    if exit_code != 0:
        return "failed"
    removed = statuses.count("removed")
    if statuses and removed == 0:
        return "failed"
    if removed != len(statuses) or explicit_partial:
        return "partial"
    return "complete"


def parse_remove(output: str, stage: str, exit_code: int) -> dict:
    """Parse ``sst remove`` output into a raw result dict for the normalizer."""
    app = None
    parsed_stage = None
    permalink = None
    error = None
    savings = None
    saw_failed = saw_partial = False
    tracked: dict[tuple[str, str], str] = {}

    for match in iter_matches(output):
        kind = match.kind
        if kind == LineKind.APP and app is None:
            app = match.get("app")
        elif kind == LineKind.STAGE and parsed_stage is None:
            parsed_stage = match.get("stage")
        elif kind == LineKind.PERMALINK and permalink is None:
            permalink = match.get("url")
        elif kind == LineKind.FAILED:
            saw_failed = True
        elif kind == LineKind.PARTIAL:
            saw_partial = True
        elif kind == LineKind.ERROR and error is None:
            error = match.get("message", "Remove failed")
        elif kind == LineKind.SAVINGS and savings is None:
            savings = parse_money(match.get("amount"))
        elif kind == LineKind.RESOURCE:
            status = _VERB_STATUS.get(match.get("verb").lower())
            if status is not None:
                tracked[(match.get("type"), match.get("name"))] = status
        elif kind == LineKind.CHANGE:
            status = _SIGN_STATUS.get(match.get("sign"))
            if status is not None:
                tracked[(match.get("type"), match.get("name"))] = status
        elif kind == LineKind.RESOURCE_FAILURE:
            tracked[(match.get("type"), match.get("name"))] = "failed"

    removed_resources = [
        {"type": rtype, "name": name, "status": status}
        for (rtype, name), status in tracked.items()
    ]
    statuses = [r["status"] for r in removed_resources]

    if saw_failed or error is not None:
        status = "failed"
    else:
        status = completion_status(exit_code, statuses, explicit_partial=saw_partial)
    success = status != "failed"

    logger.debug(
        "remove: %d tracked, %d removed, status=%s",
        len(statuses), statuses.count("removed"), status,
    )
    return {
        "success": success,
        "stage": stage or parsed_stage,
        "app": app,
        "permalink": permalink,
        "exit_code": exit_code,
        "error": error,
        "completion_status": status,
        "resources_removed": statuses.count("removed"),
        "removed_resources": removed_resources,
        "cost_savings": savings,
    }
