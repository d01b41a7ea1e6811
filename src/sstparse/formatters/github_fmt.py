from sstparse.models import (
    DeployResult,
    DiffAction,
    DiffResult,
    OperationResult,
    RemoveResult,
    RemoveStatus,
    ResourceStatus,
    StageResult,
    STATUS_EMOJI,
)

_ACTION_SYMBOL = {
    DiffAction.CREATE: "+",
    DiffAction.UPDATE: "~",
    DiffAction.DELETE: "-",
}
_STATUS_SYMBOL = {
    ResourceStatus.CREATED: "+",
    ResourceStatus.UPDATED: "~",
    ResourceStatus.DELETED: "-",
}
_REMOVE_EMOJI = {
    RemoveStatus.REMOVED: "🗑️",
    RemoveStatus.FAILED: "❌",
    RemoveStatus.SKIPPED: "⏭️",
}
_TITLES = {
    "deploy": "SST Deploy",
    "diff": "SST Diff",
    "remove": "SST Remove",
    "stage": "SST Stage",
}
_HIDDEN_MARKER = "<!-- sstparse-{operation}-comment -->"


def hidden_marker(result: OperationResult) -> str:
    return _HIDDEN_MARKER.format(operation=result.operation.value)


def _details(summary: str, body: list[str]) -> list[str]:
    return ["<details>", f"<summary>{summary}</summary>", "", *body, "", "</details>", ""]


def _deploy_body(result: DeployResult) -> list[str]:
    lines = []
    if result.urls:
        lines.append("| Name | URL | Type |")
        lines.append("|------|-----|------|")
        for u in result.urls:
            lines.append(f"| {u.name} | {u.url} | `{u.type.value}` |")
        lines.append("")
    body = ["_No resource changes_"]
    if result.resources:
        body = ["| Type | Name | Change |", "|------|------|--------|"]
        body += [
            f"| `{r.type}` | `{r.name}` | `{_STATUS_SYMBOL[r.status]}` {r.status.value} |"
            for r in result.resources
        ]
    lines += _details(f"<strong>Resources</strong> ({result.resource_changes} changes)", body)
    if result.failed_resources:
        failed = ["| Type | Name | Reason |", "|------|------|--------|"]
        failed += [
            f"| `{r.type}` | `{r.name}` | {r.reason or '-'} |"
            for r in result.failed_resources
        ]
        lines += _details(f"❌ <strong>Failed</strong> ({len(result.failed_resources)})", failed)
    return lines


def _diff_body(result: DiffResult) -> list[str]:
    lines = [f"**{result.change_summary}**", ""]
    if result.changes:
        body = ["| Type | Name | Action | Details |", "|------|------|--------|---------|"]
        body += [
            f"| `{c.type}` | `{c.name}` | `{_ACTION_SYMBOL[c.action]}` | {c.details or ''} |"
            for c in result.changes
        ]
        counts = " · ".join(
            f"`{_ACTION_SYMBOL[action]}` {count}"
            for action, count in result.action_counts.items() if count
        )
        lines += _details(
            f"<strong>Planned changes</strong> ({result.planned_changes}: {counts})", body
        )
    if result.diff_block:
        lines += _details("Raw diff", ["```diff", result.diff_block, "```"])
    return lines


def _remove_body(result: RemoveResult) -> list[str]:
    lines = []
    if result.cost_savings is not None:
        lines += [f"💸 **Monthly cost savings: ${result.cost_savings:,.2f}**", ""]
    if result.removed_resources:
        body = ["| Type | Name | Status |", "|------|------|--------|"]
        body += [
            f"| `{r.type}` | `{r.name}` | {_REMOVE_EMOJI[r.status]} {r.status.value} |"
            for r in result.removed_resources
        ]
        lines += _details(
            f"<strong>Resources</strong> ({result.resources_removed} removed)", body
        )
    else:
        lines += ["_No resources removed_", ""]
    return lines


def _stage_body(result: StageResult) -> list[str]:
    return [
        "| Computed Stage | Ref | Event | Pull Request |",
        "|----------------|-----|-------|--------------|",
        f"| `{result.computed_stage or '-'}` | `{result.ref or '-'}` | "
        f"{result.event_name or '-'} | {'yes' if result.is_pull_request else 'no'} |",
        "",
    ]


def format_github(result: OperationResult) -> str:
    """Render a result as a markdown PR comment."""
    badge = STATUS_EMOJI[result.completion_status]
    title = _TITLES[result.operation.value]
    lines = [
        hidden_marker(result),
        f"## {title} {badge}",
        "",
        "| Stage | App | Status |",
        "|-------|-----|--------|",
        f"| `{result.stage}` | {result.app} | {badge} {result.completion_status.value.upper()} |",
        "",
    ]
    if result.error:
        lines += [f"> **Error:** {result.error}", ""]

    if isinstance(result, DeployResult):
        lines += _deploy_body(result)
    elif isinstance(result, DiffResult):
        lines += _diff_body(result)
    elif isinstance(result, RemoveResult):
        lines += _remove_body(result)
    elif isinstance(result, StageResult):
        lines += _stage_body(result)

    if result.permalink:
        lines += [f"[View in SST Console]({result.permalink})", ""]
    if result.truncated:
        lines += ["_Output was truncated._", ""]
    return "\n".join(lines)
