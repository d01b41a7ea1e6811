"""Stage name computation from version-control context.

Unlike the other operations this one never looks at SST output. It turns the
branch or pull request that triggered the workflow into a name SST (and the
Route53 records it creates) can live with.
"""
from __future__ import annotations
import logging
import os
import re
from dataclasses import dataclass
from sstparse.models import CompletionStatus, StageResult
from sstparse.truncation import truncate_output

logger = logging.getLogger(__name__)

DEFAULT_TRUNCATION_LENGTH = 26
DEFAULT_PREFIX = "pr-"
STAGE_APP = "stage-calculator"

_PULL_REQUEST_EVENTS = {"pull_request", "pull_request_target"}

_NAMESPACE_RE = re.compile(r".*/")
_INVALID_CHARS_RE = re.compile(r"[^a-z0-9-]+")
_HYPHEN_RUN_RE = re.compile(r"-{2,}")
_VALID_STAGE_RE = re.compile(r"^[a-z0-9][a-z0-9-]*[a-z0-9]$|^[a-z0-9]$")


class StageError(ValueError):
    """Raised when no valid stage name can be derived."""


@dataclass(frozen=True)
class StageContext:
    event_name: str = ""
    ref: str = ""
    head_ref: str = ""
    is_pull_request: bool | None = None

    @property
    def pull_request(self) -> bool:
        if self.is_pull_request is not None:
            return self.is_pull_request
        return self.event_name in _PULL_REQUEST_EVENTS

    @property
    def source_ref(self) -> str:
        """The ref the stage name is derived from: the PR head branch, else the pushed ref."""
        if self.pull_request:
            return self.head_ref
        return self.head_ref or self.ref

    @classmethod
    def from_env(cls, environ=None) -> StageContext:
        env = os.environ if environ is None else environ
        return cls(
            event_name=env.get("GITHUB_EVENT_NAME", ""),
            ref=env.get("GITHUB_REF", ""),
            head_ref=env.get("GITHUB_HEAD_REF", ""),
        )


@dataclass(frozen=True)
class StageOptions:
    fallback_stage: str = ""
    truncation_length: int = DEFAULT_TRUNCATION_LENGTH
    prefix: str = DEFAULT_PREFIX
    # When False a missing ref is an error even if fallback_stage is set
    allow_fallback: bool = True


def sanitize_stage(ref: str, truncation_length: int = DEFAULT_TRUNCATION_LENGTH,
                   prefix: str = DEFAULT_PREFIX) -> str:
    """Turn a git ref into a slug suitable as a stage name.

    ``refs/heads/Feature/My_Branch`` becomes ``my-branch``. Names starting
    with a digit get ``prefix`` so they stay valid hostnames. The prefix counts
    towards ``truncation_length``. Returns an empty string when nothing usable
    is left.
    """
    stage = _NAMESPACE_RE.sub("", ref or "").lower()
    stage = _INVALID_CHARS_RE.sub("-", stage)
    stage = _HYPHEN_RUN_RE.sub("-", stage).strip("-")
    if stage[:1].isdigit():
        stage = prefix + stage
    if len(stage) > truncation_length:
        stage = stage[:truncation_length].rstrip("-")
    return stage


def resolve_stage(context: StageContext, options: StageOptions) -> str:
    if options.truncation_length < 1:
        raise StageError(
            f"Truncation length must be at least 1, got {options.truncation_length}"
        )
    stage = sanitize_stage(context.source_ref, options.truncation_length, options.prefix)
    if not stage:
        if not options.allow_fallback:
            raise StageError(
                "Failed to generate a valid stage name from Git context "
                "and fallback is disabled"
            )
        stage = options.fallback_stage.strip()
        if not stage:
            raise StageError(
                "Failed to generate a valid stage name from Git context "
                "and no fallback stage was provided"
            )
        logger.debug("No usable ref, falling back to stage %r", stage)
    if not _VALID_STAGE_RE.match(stage):
        raise StageError(f"Computed stage {stage!r} is not a valid stage name")
    return stage


def compute_stage(context: StageContext, options: StageOptions | None = None,
                  max_output_size: int | None = None) -> StageResult:
    """Compute the stage for ``context``. Failures come back as a failed StageResult."""
    options = options or StageOptions()
    ref = context.source_ref
    logger.debug("Computing stage: event=%s ref=%s", context.event_name, ref)

    try:
        stage = resolve_stage(context, options)
    except StageError as e:
        raw, truncated = truncate_output(f"Stage computation failed: {e}", max_output_size)
        return StageResult(
            success=False,
            stage=options.fallback_stage or "unknown",
            app=STAGE_APP,
            raw_output=raw,
            exit_code=1,
            truncated=truncated,
            completion_status=CompletionStatus.FAILED,
            error=str(e),
            computed_stage="",
            ref=ref,
            event_name=context.event_name,
            is_pull_request=context.pull_request,
        )

    logger.debug("Generated stage: %s", stage)
    raw, truncated = truncate_output(
        "Stage computation successful\n"
        f"Event: {context.event_name or 'undefined'}\n"
        f"Ref: {ref or 'undefined'}\n"
        f"Computed Stage: {stage}",
        max_output_size,
    )
    return StageResult(
        success=True,
        stage=stage,
        app=STAGE_APP,
        raw_output=raw,
        exit_code=0,
        truncated=truncated,
        completion_status=CompletionStatus.COMPLETE,
        computed_stage=stage,
        ref=ref,
        event_name=context.event_name,
        is_pull_request=context.pull_request,
    )
