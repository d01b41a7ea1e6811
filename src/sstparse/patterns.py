"""Line classification for SST CLI output.

Every parser walks its input one line at a time and hands each line to
:func:`classify`. The rule table below is the only place SST output regexes
live, so deploy, diff and remove agree on what a line means. Rules are tried
in order and the first match wins; a line no rule recognizes yields ``None``.
"""
from __future__ import annotations
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable


class LineKind(Enum):
    APP = "app"
    STAGE = "stage"
    PERMALINK = "permalink"
    URL = "url"
    RESOURCE = "resource"
    CHANGE = "change"
    RESOURCE_FAILURE = "resource_failure"
    COMPLETE = "complete"
    PARTIAL = "partial"
    FAILED = "failed"
    GENERATED = "generated"
    NO_CHANGES = "no_changes"
    CHANGE_COUNT = "change_count"
    COST = "cost"
    SAVINGS = "savings"
    ERROR = "error"
    DIFF_FAILURE = "diff_failure"


@dataclass(frozen=True)
class LineMatch:
    kind: LineKind
    fields: dict[str, str] = field(default_factory=dict)

    def get(self, key: str, default: str = "") -> str:
        return self.fields.get(key) or default


@dataclass(frozen=True)
class Rule:
    kind: LineKind
    regex: re.Pattern
    extract: Callable[[re.Match], dict[str, str]]


def _groups(m: re.Match) -> dict[str, str]:
    return {k: v.strip() for k, v in m.groupdict().items() if v is not None}


def _none(m: re.Match) -> dict[str, str]:
    return {}


def _line(m: re.Match) -> dict[str, str]:
    return {"text": m.group(0).strip()}


# Trailing "(reason)" on resource and change lines
_DETAILS = r"(?:\s+\((?P<details>[^)]*)\)?)?"

_APP_RE = re.compile(r"^\s*(?:➜\s*)?App:\s+(?P<app>\S.*?)\s*$")
_STAGE_RE = re.compile(r"^\s*(?:➜\s*)?Stage:\s+(?P<stage>\S.*?)\s*$")
_PERMALINK_RE = re.compile(
    r"^\s*(?:↗\s*)?Permalink:?\s+(?P<url>https?://\S+)\s*$", re.IGNORECASE
)
_URL_RE = re.compile(
    r"^\s*(?P<name>[A-Za-z][\w.-]*):\s+(?P<url>https?://\S+)\s*$"
)
# | Created  Function  my-app-staging-handler (12.3s)
_RESOURCE_RE = re.compile(
    r"^\s*\|\s+(?P<verb>Created|Updated|Deleted|Removed|Unchanged|Failed|Skipped)"
    r"\s+(?P<type>[\w:.-]+)\s+(?P<name>[^\s(]+)" + _DETAILS + r"\s*$",
    re.IGNORECASE,
)
# + Function  my-app-staging-new-handler (details)
_CHANGE_RE = re.compile(
    r"^\s*(?P<sign>[+~×-])\s+(?P<type>\w[\w:.-]*)\s+(?P<name>[^\s(]+)"
    + _DETAILS + r"\s*$"
)
# ! Api  my-app-staging-api could not be removed: dependency exists
_RESOURCE_FAILURE_RE = re.compile(
    r"^\s*!\s+(?P<type>\w[\w:.-]*)\s+(?P<name>\S+)\s+"
    r"(?P<details>(?:could not be removed|removal timed out|failed)\b.*?)\s*$",
    re.IGNORECASE,
)
_COMPLETE_RE = re.compile(
    r"^\s*✓\s+(?:Complete|All resources removed)\b.*$", re.IGNORECASE
)
_PARTIAL_RE = re.compile(r"^\s*⚠\s*Partial\b.*$", re.IGNORECASE)
_FAILED_RE = re.compile(r"^\s*[✗×]\s+(?:\w+\s+)?Failed\s*$", re.IGNORECASE)
_GENERATED_RE = re.compile(r"^\s*✓\s+Generated\s*$", re.IGNORECASE)
_NO_CHANGES_RE = re.compile(
    r"^\s*No (?:changes(?: detected)?|resources to remove)\.?\s*$", re.IGNORECASE
)
_CHANGE_COUNT_RE = re.compile(
    r"^\s*(?P<count>\d+)\s+(?:changes?\s+planned|resources?\s+removed\b.*)\s*$",
    re.IGNORECASE,
)
# Monthly: $45.50 → $67.80 (+$22.30)
_COST_RE = re.compile(
    r"^\s*Monthly:\s+(?P<cost>\$[\d,.]+\s*(?:→|->)\s*\$[\d,.]+.*?)\s*$"
)
_SAVINGS_RES = (
    re.compile(r"^\s*Monthly (?:cost )?savings:\s*\$(?P<amount>[\d,]+(?:\.\d+)?)", re.IGNORECASE),
    re.compile(r"^\s*Savings:\s*\$(?P<amount>[\d,]+(?:\.\d+)?)\s*(?:/\s*)?(?:monthly|month)", re.IGNORECASE),
    re.compile(r"^\s*Cost savings:\s*\$(?P<amount>[\d,]+(?:\.\d+)?)", re.IGNORECASE),
    # Monthly: -$120.50
    re.compile(r"^\s*Monthly:\s*-\$(?P<amount>[\d,]+(?:\.\d+)?)", re.IGNORECASE),
)
_ERROR_RE = re.compile(r"^\s*(?:✗\s*)?Error:\s*(?P<message>.*?)\s*$")
_DIFF_FAILURE_RE = re.compile(
    r"^\s*(?P<message>(?:Unable to generate diff|Permission denied|Error parsing)\b.*?)\s*$",
    re.IGNORECASE,
)

RULES: tuple[Rule, ...] = (
    Rule(LineKind.GENERATED, _GENERATED_RE, _none),
    Rule(LineKind.COMPLETE, _COMPLETE_RE, _line),
    Rule(LineKind.PARTIAL, _PARTIAL_RE, _line),
    Rule(LineKind.FAILED, _FAILED_RE, _line),
    Rule(LineKind.ERROR, _ERROR_RE, _groups),
    Rule(LineKind.DIFF_FAILURE, _DIFF_FAILURE_RE, _groups),
    Rule(LineKind.APP, _APP_RE, _groups),
    Rule(LineKind.STAGE, _STAGE_RE, _groups),
    Rule(LineKind.PERMALINK, _PERMALINK_RE, _groups),
    Rule(LineKind.RESOURCE, _RESOURCE_RE, _groups),
    Rule(LineKind.RESOURCE_FAILURE, _RESOURCE_FAILURE_RE, _groups),
    Rule(LineKind.CHANGE, _CHANGE_RE, _groups),
    Rule(LineKind.NO_CHANGES, _NO_CHANGES_RE, _line),
    Rule(LineKind.CHANGE_COUNT, _CHANGE_COUNT_RE, lambda m: {**_groups(m), **_line(m)}),
    Rule(LineKind.COST, _COST_RE, _groups),
    *(Rule(LineKind.SAVINGS, regex, _groups) for regex in _SAVINGS_RES),
    Rule(LineKind.URL, _URL_RE, _groups),
)


def classify(line: str) -> LineMatch | None:
    """Return the first rule that matches ``line``, or None."""
    for rule in RULES:
        m = rule.regex.match(line)
        if m:
            return LineMatch(kind=rule.kind, fields=rule.extract(m))
    return None


def iter_matches(text: str):
    """Yield a LineMatch for every recognized line of ``text``, in order."""
    for line in text.splitlines():
        match = classify(line)
        if match is not None:
            yield match


def parse_money(amount: str) -> float | None:
    """Turn ``"1,250.75"`` into ``1250.75``. Returns None for anything unparseable."""
    try:
        return float(amount.replace(",", ""))
    except (AttributeError, ValueError):
        return None
