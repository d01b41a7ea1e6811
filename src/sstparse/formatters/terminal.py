from rich.console import Console
from rich.table import Table
from rich import box
from rich.markup import escape
from sstparse.models import (
    CompletionStatus,
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

_STATUS_COLOR = {
    CompletionStatus.COMPLETE: "green",
    CompletionStatus.PARTIAL: "yellow",
    CompletionStatus.FAILED: "red",
}
_RESOURCE_LABEL = {
    ResourceStatus.CREATED: "[green]+ created[/green]",
    ResourceStatus.UPDATED: "[yellow]~ updated[/yellow]",
    ResourceStatus.DELETED: "[red]- deleted[/red]",
}
_ACTION_LABEL = {
    DiffAction.CREATE: "[green]+[/green]",
    DiffAction.UPDATE: "[yellow]~[/yellow]",
    DiffAction.DELETE: "[red]-[/red]",
}
_REMOVE_LABEL = {
    RemoveStatus.REMOVED: "[green]removed[/green]",
    RemoveStatus.FAILED: "[red]failed[/red]",
    RemoveStatus.SKIPPED: "[dim]skipped[/dim]",
}


def _table(title: str, *columns: str) -> Table:
    table = Table(title=title, box=box.ROUNDED, show_header=True, header_style="bold")
    for i, column in enumerate(columns):
        table.add_column(column, style="cyan" if i == 0 else None)
    return table


def _deploy_tables(result: DeployResult) -> list[Table]:
    resources = _table("Resources", "Type", "Name", "Change")
    if not result.resources:
        resources.add_row("[dim]No changes[/dim]", "", "")
    for r in result.resources:
        resources.add_row(escape(r.type), escape(r.name), _RESOURCE_LABEL[r.status])
    for r in result.failed_resources:
        resources.add_row(
            escape(r.type), escape(r.name), f"[red]✗ failed[/red] {escape(r.reason)}".rstrip()
        )
    tables = [resources]
    if result.urls:
        urls = _table("URLs", "Name", "URL", "Type")
        for u in result.urls:
            urls.add_row(escape(u.name), escape(u.url), u.type.value)
        tables.append(urls)
    return tables


def _diff_tables(result: DiffResult) -> list[Table]:
    table = _table(escape(result.change_summary), "Type", "Name", "Action", "Details")
    if not result.changes:
        table.add_row("[dim]No changes[/dim]", "", "", "")
    for c in result.changes:
        table.add_row(
            escape(c.type), escape(c.name), _ACTION_LABEL[c.action], escape(c.details or "")
        )
    return [table]


def _remove_tables(result: RemoveResult) -> list[Table]:
    title = "Removed resources"
    if result.cost_savings is not None:
        title += f" (saves ${result.cost_savings:,.2f}/month)"
    table = _table(title, "Type", "Name", "Status")
    if not result.removed_resources:
        table.add_row("[dim]Nothing removed[/dim]", "", "")
    for r in result.removed_resources:
        table.add_row(escape(r.type), escape(r.name), _REMOVE_LABEL[r.status])
    return [table]


def _stage_tables(result: StageResult) -> list[Table]:
    table = _table("Stage", "Computed Stage", "Ref", "Event", "Pull Request")
    table.add_row(
        escape(result.computed_stage) or "[dim]-[/dim]",
        escape(result.ref),
        escape(result.event_name),
        "yes" if result.is_pull_request else "no",
    )
    return [table]


def print_result(result: OperationResult, console: Console | None = None) -> None:
    if console is None:
        console = Console()

    status = result.completion_status
    color = _STATUS_COLOR[status]
    console.print()
    console.print(
        f"  SST {result.operation.value.capitalize()}  |  Stage: [bold]{escape(result.stage)}[/bold]  "
        f"|  App: [bold]{escape(result.app)}[/bold]  "
        f"|  Status: {STATUS_EMOJI[status]} [{color}]{status.value.upper()}[/{color}]"
    )
    if result.error:
        console.print(f"  [red]Error:[/red] {escape(result.error)}")
    console.print()

    if isinstance(result, DeployResult):
        tables = _deploy_tables(result)
    elif isinstance(result, DiffResult):
        tables = _diff_tables(result)
    elif isinstance(result, RemoveResult):
        tables = _remove_tables(result)
    else:
        tables = _stage_tables(result)

    for table in tables:
        console.print(table)
        console.print()
    if result.permalink:
        console.print(f"  Console: {escape(result.permalink)}")
