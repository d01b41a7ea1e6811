from __future__ import annotations
from dataclasses import dataclass, fields
from enum import Enum


class Operation(Enum):
    DEPLOY = "deploy"
    DIFF = "diff"
    REMOVE = "remove"
    STAGE = "stage"


class CompletionStatus(Enum):
    COMPLETE = "complete"
    PARTIAL = "partial"
    FAILED = "failed"


class ResourceStatus(Enum):
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


class DiffAction(Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class RemoveStatus(Enum):
    REMOVED = "removed"
    FAILED = "failed"
    SKIPPED = "skipped"


class UrlType(Enum):
    API = "api"
    WEB = "web"
    FUNCTION = "function"
    OTHER = "other"


STATUS_EMOJI: dict[CompletionStatus, str] = {
    CompletionStatus.COMPLETE: "✅",
    CompletionStatus.PARTIAL: "⚠️",
    CompletionStatus.FAILED: "❌",
}


@dataclass(frozen=True)
class DeployedUrl:
    name: str
    url: str
    type: UrlType = UrlType.OTHER


@dataclass(frozen=True)
class DeployedResource:
    type: str
    name: str
    status: ResourceStatus


@dataclass(frozen=True)
class FailedResource:
    type: str
    name: str
    reason: str = ""


@dataclass(frozen=True)
class PlannedChange:
    type: str
    name: str
    action: DiffAction
    details: str | None = None


@dataclass(frozen=True)
class RemovedResource:
    type: str
    name: str
    status: RemoveStatus


def to_plain(value):
    """Convert records to JSON-safe values: enums to their value, tuples to lists."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, tuple):
        return [to_plain(v) for v in value]
    if hasattr(value, "__dataclass_fields__"):
        return {f.name: to_plain(getattr(value, f.name)) for f in fields(value)}
    return value


@dataclass(frozen=True, kw_only=True)
class OperationResult:
    """Fields shared by every operation result.

    Results are built once by the normalizer and never mutated afterwards.
    """

    success: bool
    operation: Operation
    stage: str
    exit_code: int
    completion_status: CompletionStatus
    app: str = "unknown"
    raw_output: str = ""
    truncated: bool = False
    error: str | None = None
    permalink: str | None = None

    def to_dict(self) -> dict:
        """Return a JSON-safe dict of every field."""
        return to_plain(self)


@dataclass(frozen=True, kw_only=True)
class DeployResult(OperationResult):
    operation: Operation = Operation.DEPLOY
    resource_changes: int = 0
    urls: tuple[DeployedUrl, ...] = ()
    resources: tuple[DeployedResource, ...] = ()
    failed_resources: tuple[FailedResource, ...] = ()


@dataclass(frozen=True, kw_only=True)
class DiffResult(OperationResult):
    operation: Operation = Operation.DIFF
    planned_changes: int = 0
    change_summary: str = "No changes detected"
    changes: tuple[PlannedChange, ...] = ()
    diff_block: str = ""

    @property
    def action_counts(self) -> dict[DiffAction, int]:
        counts = {action: 0 for action in DiffAction}
        for change in self.changes:
            counts[change.action] += 1
        return counts


@dataclass(frozen=True, kw_only=True)
class RemoveResult(OperationResult):
    operation: Operation = Operation.REMOVE
    resources_removed: int = 0
    removed_resources: tuple[RemovedResource, ...] = ()
    cost_savings: float | None = None


@dataclass(frozen=True, kw_only=True)
class StageResult(OperationResult):
    operation: Operation = Operation.STAGE
    computed_stage: str = ""
    ref: str = ""
    event_name: str = ""
    is_pull_request: bool = False
