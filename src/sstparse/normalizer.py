"""Dispatch parsing by operation and normalize the raw parser output.

Parsers return loose dicts. Older revisions of the action used different
field names for the same data (``resourceType`` vs ``type``,
``changesDetected`` vs ``planned_changes``, a nested ``metadata`` block), so
:func:`normalize` accepts all of them and produces the canonical frozen
records from :mod:`sstparse.models`. Nothing in this module raises to its
caller: any exception during parsing becomes a failed result.
"""
from __future__ import annotations
import logging
from collections.abc import Mapping
from typing import Callable
from sstparse.deploy_parser import parse_deploy
from sstparse.diff_parser import NO_CHANGES_SUMMARY, parse_diff
from sstparse.models import (
    CompletionStatus,
    DeployedResource,
    DeployedUrl,
    DeployResult,
    DiffAction,
    DiffResult,
    FailedResource,
    Operation,
    OperationResult,
    PlannedChange,
    RemovedResource,
    RemoveResult,
    RemoveStatus,
    ResourceStatus,
    StageResult,
    UrlType,
)
from sstparse.remove_parser import parse_remove
from sstparse.stage import StageContext, StageOptions, compute_stage
from sstparse.truncation import truncate_output

logger = logging.getLogger(__name__)

PARSERS: dict[Operation, Callable[[str, str, int], dict]] = {
    Operation.DEPLOY: parse_deploy,
    Operation.DIFF: parse_diff,
    Operation.REMOVE: parse_remove,
}

_MISSING = object()


def _pick(raw: Mapping, *keys, default=None):
    """Return the first present, non-None value among ``keys``.

    Dotted keys (``metadata.app``) look into nested mappings.
    """
    for key in keys:
        value = raw
        for part in key.split("."):
            if not isinstance(value, Mapping):
                value = _MISSING
                break
            value = value.get(part, _MISSING)
        if value is not _MISSING and value is not None:
            return value
    return default


def _coerce(enum_cls, value, default):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        logger.debug("Unknown %s %r, using %s", enum_cls.__name__, value, default.value)
        return default


def _as_int(value, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _entry_type(entry: Mapping) -> str:
    return str(_pick(entry, "type", "resource_type", "resourceType", default="unknown"))


def _entry_name(entry: Mapping) -> str:
    return str(_pick(entry, "name", "resource_name", "resourceName", "logical_id", default="unknown"))


def _base_fields(operation: Operation, raw: Mapping) -> dict:
    success = bool(_pick(raw, "success", default=False))
    exit_code = _as_int(
        _pick(raw, "exit_code", "exitCode", "metadata.cliExitCode", "metadata.exit_code"),
        default=0 if success else 1,
    )
    status = _coerce(
        CompletionStatus,
        _pick(raw, "completion_status", "completionStatus",
              default="complete" if success else "failed"),
        CompletionStatus.FAILED,
    )
    if not success:
        status = CompletionStatus.FAILED
    elif status == CompletionStatus.FAILED:
        success = False
    error = _pick(raw, "error")
    return {
        "success": success,
        "stage": str(_pick(raw, "stage", default="") or "unknown"),
        "app": str(_pick(raw, "app", "metadata.app", default="") or "unknown"),
        "raw_output": str(_pick(raw, "raw_output", "rawOutput", "metadata.rawOutput", default="")),
        "exit_code": exit_code,
        "truncated": bool(_pick(raw, "truncated", "metadata.truncated", default=False)),
        "completion_status": status,
        "error": str(error) if error else None,
        "permalink": _pick(raw, "permalink") or None,
    }


def _normalize_deploy(raw: Mapping) -> DeployResult:
    resources = []
    for entry in _pick(raw, "resources", default=()):
        status = str(_pick(entry, "status", default="")).lower()
        if status == "unchanged":
            continue
        resources.append(DeployedResource(
            type=_entry_type(entry),
            name=_entry_name(entry),
            status=_coerce(ResourceStatus, status, ResourceStatus.CREATED),
        ))
    urls = tuple(
        DeployedUrl(
            name=str(_pick(entry, "name", "key", default="")),
            url=str(_pick(entry, "url", "value", default="")),
            type=_coerce(UrlType, _pick(entry, "type", default="other"), UrlType.OTHER),
        )
        for entry in _pick(raw, "urls", "outputs", default=())
    )
    failed = tuple(
        FailedResource(
            type=_entry_type(entry),
            name=_entry_name(entry),
            reason=str(_pick(entry, "reason", "details", default="")),
        )
        for entry in _pick(raw, "failed_resources", "failedResources", default=())
    )
    return DeployResult(
        **_base_fields(Operation.DEPLOY, raw),
        resource_changes=len(resources),
        urls=urls,
        resources=tuple(resources),
        failed_resources=failed,
    )


def _normalize_diff(raw: Mapping) -> DiffResult:
    changes = []
    for entry in _pick(raw, "changes", default=()):
        details = _pick(entry, "details")
        changes.append(PlannedChange(
            type=_entry_type(entry),
            name=_entry_name(entry),
            action=_coerce(DiffAction, _pick(entry, "action", default=""), DiffAction.UPDATE),
            details=str(details) if details else None,
        ))
    base = _base_fields(Operation.DIFF, raw)
    # Diff has no partial outcome
    if base["completion_status"] == CompletionStatus.PARTIAL:
        base["completion_status"] = CompletionStatus.COMPLETE
    return DiffResult(
        **base,
        planned_changes=len(changes),
        change_summary=str(_pick(raw, "change_summary", "changeSummary", "summary", default="")
                           or NO_CHANGES_SUMMARY),
        changes=tuple(changes),
        diff_block=str(_pick(raw, "diff_block", "diffBlock", default="")),
    )


def _normalize_remove(raw: Mapping) -> RemoveResult:
    removed = tuple(
        RemovedResource(
            type=_entry_type(entry),
            name=_entry_name(entry),
            status=_coerce(RemoveStatus, _pick(entry, "status", default=""), RemoveStatus.FAILED),
        )
        for entry in _pick(raw, "removed_resources", "removedResources", default=())
    )
    savings = _pick(raw, "cost_savings", "costSavings.monthly", "costSavings")
    return RemoveResult(
        **_base_fields(Operation.REMOVE, raw),
        resources_removed=sum(1 for r in removed if r.status == RemoveStatus.REMOVED),
        removed_resources=removed,
        cost_savings=float(savings) if isinstance(savings, (int, float)) else None,
    )


def _normalize_stage(raw: Mapping) -> StageResult:
    base = _base_fields(Operation.STAGE, raw)
    computed = str(_pick(raw, "computed_stage", "computedStage", default=""))
    if base["success"] and computed:
        base["stage"] = computed
    return StageResult(
        **base,
        computed_stage=computed,
        ref=str(_pick(raw, "ref", default="")),
        event_name=str(_pick(raw, "event_name", "eventName", default="")),
        is_pull_request=bool(_pick(raw, "is_pull_request", "isPullRequest", default=False)),
    )


_NORMALIZERS = {
    Operation.DEPLOY: _normalize_deploy,
    Operation.DIFF: _normalize_diff,
    Operation.REMOVE: _normalize_remove,
    Operation.STAGE: _normalize_stage,
}


def normalize(operation: Operation | str, raw: Mapping | OperationResult) -> OperationResult:
    """Map a raw parser result onto the canonical record for ``operation``."""
    operation = Operation(operation)
    if isinstance(raw, OperationResult):
        raw = raw.to_dict()
    return _NORMALIZERS[operation](raw)


def failure_result(operation: Operation | str, stage: str, error: str,
                   raw_output: str = "", truncated: bool = False) -> OperationResult:
    """Build a failed result with every count at zero."""
    try:
        operation = Operation(operation)
    except ValueError:
        # Unknown operation names still need a well-formed result
        operation = Operation.DEPLOY
    return normalize(operation, {
        "success": False,
        "stage": stage,
        "exit_code": 1,
        "error": error,
        "raw_output": raw_output,
        "truncated": truncated,
        "completion_status": "failed",
    })


def parse_operation(
    operation: Operation | str,
    raw_text: str | None,
    stage: str,
    exit_code: int,
    max_output_size: int | None = None,
    stage_context: StageContext | None = None,
    stage_options: StageOptions | None = None,
) -> OperationResult:
    """Parse CLI output for ``operation`` into its canonical result.

    ``raw_text`` is clipped to ``max_output_size`` before parsing. For the
    ``stage`` operation the text is ignored and ``stage_context`` is used
    instead; ``stage`` then serves as the fallback name. Never raises.
    """
    text, truncated = "", False
    try:
        text, truncated = truncate_output(raw_text, max_output_size)
        op = Operation(operation)
        if op == Operation.STAGE:
            options = stage_options or StageOptions(fallback_stage=stage or "")
            return normalize(op, compute_stage(
                stage_context or StageContext(), options, max_output_size,
            ))
        raw = dict(PARSERS[op](text, stage, int(exit_code)))
        raw["raw_output"] = text
        raw["truncated"] = truncated
        return normalize(op, raw)
    except Exception as e:
        logger.warning("Parsing %s output failed: %s", operation, e, exc_info=True)
        return failure_result(
            operation, stage, str(e) or type(e).__name__, raw_output=text, truncated=truncated,
        )
