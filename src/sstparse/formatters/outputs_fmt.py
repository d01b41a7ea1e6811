"""Named string outputs for the host workflow platform.

Every key is always present so downstream steps can reference any of them
regardless of the operation; fields that don't apply are empty strings.
"""
import json
import uuid
from sstparse.models import (
    DeployResult,
    DiffResult,
    OperationResult,
    RemoveResult,
    StageResult,
    to_plain,
)

OUTPUT_KEYS = (
    "success",
    "operation",
    "stage",
    "completion_status",
    "app",
    "permalink",
    "truncated",
    "resource_changes",
    "error",
    "outputs",
    "resources",
    "diff_summary",
    "planned_changes",
    "resources_removed",
    "removed_resources",
    "computed_stage",
    "ref",
    "event_name",
    "is_pull_request",
)


def _bool(value: bool) -> str:
    return "true" if value else "false"


def _json(records) -> str:
    return json.dumps(to_plain(tuple(records)), ensure_ascii=False)


def format_outputs(result: OperationResult) -> dict[str, str]:
    out = dict.fromkeys(OUTPUT_KEYS, "")
    out.update({
        "success": _bool(result.success),
        "operation": result.operation.value,
        "stage": result.stage,
        "completion_status": result.completion_status.value,
        "error": result.error or "",
    })
    if isinstance(result, StageResult):
        out.update({
            "computed_stage": result.computed_stage,
            "ref": result.ref,
            "event_name": result.event_name,
            "is_pull_request": _bool(result.is_pull_request),
        })
        return out

    out.update({
        "app": result.app,
        "permalink": result.permalink or "",
        "truncated": _bool(result.truncated),
    })
    if isinstance(result, DeployResult):
        out.update({
            "resource_changes": str(result.resource_changes),
            "outputs": _json(result.urls),
            "resources": _json(result.resources),
        })
    elif isinstance(result, DiffResult):
        out.update({
            "resource_changes": str(result.planned_changes),
            "planned_changes": str(result.planned_changes),
            "diff_summary": result.change_summary,
        })
    elif isinstance(result, RemoveResult):
        out.update({
            "resource_changes": str(result.resources_removed),
            "resources_removed": str(result.resources_removed),
            "removed_resources": _json(result.removed_resources),
        })
    return out


def render_outputs(outputs: dict[str, str]) -> str:
    """Render outputs in the ``name=value`` format of a $GITHUB_OUTPUT file.

    Multi-line values use the heredoc form with a random delimiter, so no
    value can end early by containing the delimiter line.
    """
    lines = []
    for key, value in outputs.items():
        if "\n" in value:
            delimiter = f"ghadelimiter_{uuid.uuid4()}"
            lines.extend([f"{key}<<{delimiter}", value, delimiter])
        else:
            lines.append(f"{key}={value}")
    return "\n".join(lines)
