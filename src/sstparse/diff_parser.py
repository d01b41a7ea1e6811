from __future__ import annotations
import logging
from sstparse.patterns import LineKind, classify

logger = logging.getLogger(__name__)

_SIGN_ACTION = {"+": "create", "~": "update", "-": "delete"}

NO_CHANGES_SUMMARY = "No changes detected"


def split_diff_block(output: str) -> tuple[list[str], list[str], bool]:
    """Split output at the ``✓ Generated`` marker.

    Returns (metadata lines, change block lines, marker found). Without a
    marker the whole output serves as both.
    """
    lines = output.splitlines()
    for i, line in enumerate(lines):
        match = classify(line)
        if match is not None and match.kind == LineKind.GENERATED:
            return lines[:i], lines[i + 1:], True
    return lines, lines, False


def summarize(changes: list[dict]) -> str:
    if not changes:
        return NO_CHANGES_SUMMARY
    counts = {action: 0 for action in _SIGN_ACTION.values()}
    for change in changes:
        counts[change["action"]] += 1
    return (
        f"Found {len(changes)} planned changes: "
        f"{counts['create']} creation(s), {counts['update']} update(s), "
        f"{counts['delete']} deletion(s)"
    )


def parse_diff(output: str, stage: str, exit_code: int) -> dict:
    """Parse ``sst diff`` output into a raw result dict for the normalizer."""
    metadata, block, has_marker = split_diff_block(output)

    app = None
    parsed_stage = None
    for line in metadata:
        match = classify(line)
        if match is None:
            continue
        if match.kind == LineKind.APP and app is None:
            app = match.get("app")
        elif match.kind == LineKind.STAGE and parsed_stage is None:
            parsed_stage = match.get("stage")

    permalink = None
    error = None
    saw_failed = False
    source_summary = None
    cost = None
    changes: list[dict] = []
    for line in (metadata + block) if has_marker else block:
        match = classify(line)
        if match is None:
            continue
        kind = match.kind
        if kind == LineKind.PERMALINK and permalink is None:
            permalink = match.get("url")
        elif kind == LineKind.FAILED:
            saw_failed = True
        elif kind == LineKind.ERROR and error is None:
            error = match.get("message", "Diff failed")
        elif kind == LineKind.DIFF_FAILURE and error is None:
            error = match.get("message")
        elif kind in (LineKind.NO_CHANGES, LineKind.CHANGE_COUNT) and source_summary is None:
            source_summary = match.get("text")
        elif kind == LineKind.COST and cost is None:
            cost = match.get("cost")

    # Only the change block carries planned changes
    for line in block:
        match = classify(line)
        if match is None or match.kind != LineKind.CHANGE:
            continue
        action = _SIGN_ACTION.get(match.get("sign"))
        if action is None:
            continue
        change = {
            "type": match.get("type"),
            "name": match.get("name"),
            "action": action,
        }
        if match.get("details"):
            change["details"] = match.get("details")
        changes.append(change)

    summary = source_summary or summarize(changes)
    if cost:
        summary = f"{summary} (cost: {cost})"

    success = exit_code == 0 and not saw_failed and error is None
    logger.debug("diff: %d planned changes, marker=%s", len(changes), has_marker)
    return {
        "success": success,
        "stage": stage or parsed_stage,
        "app": app,
        "permalink": permalink,
        "exit_code": exit_code,
        "error": error,
        "completion_status": "complete" if success else "failed",
        "changes": changes,
        "planned_changes": len(changes),
        "change_summary": summary,
        "diff_block": "\n".join(block).strip(),
    }
