from pathlib import Path
from sstparse.diff_parser import NO_CHANGES_SUMMARY, parse_diff, split_diff_block

FIXTURES = Path(__file__).parent / "fixtures"


def _fixture(name: str) -> str:
    return (FIXTURES / name).read_text(encoding="utf-8")


def test_split_at_generated_marker():
    metadata, block, found = split_diff_block("header\n✓  Generated\n+ Function a\n")
    assert found is True
    assert metadata == ["header"]
    assert block == ["+ Function a"]


def test_split_without_marker_uses_everything():
    metadata, block, found = split_diff_block("a\nb")
    assert found is False
    assert metadata == block == ["a", "b"]


def test_parse_generated_block():
    raw = parse_diff(_fixture("diff_generated.txt"), "staging", 0)
    assert raw["success"] is True
    assert raw["app"] == "my-sst-app"
    assert raw["planned_changes"] == 3
    assert [c["action"] for c in raw["changes"]] == ["create", "update", "delete"]
    assert raw["changes"][1]["details"] == "environment updated"
    assert "details" not in raw["changes"][0]
    assert raw["change_summary"] == (
        "Found 3 planned changes: 1 creation(s), 1 update(s), 1 deletion(s)"
    )
    assert raw["diff_block"].startswith("+ Function")
    assert raw["permalink"] == "https://console.sst.dev/my-sst-app/staging/diffs/abc123"


def test_metadata_lines_not_parsed_as_changes():
    raw = parse_diff("+ Function before\n✓ Generated\n- Api after\n", "dev", 0)
    assert [c["name"] for c in raw["changes"]] == ["after"]


def test_source_summary_and_cost_line():
    raw = parse_diff(_fixture("diff_complex.txt"), "production", 0)
    assert raw["planned_changes"] == 6
    assert raw["change_summary"] == "6 changes planned (cost: $45.50 → $67.80 (+$22.30))"
    db = next(c for c in raw["changes"] if c["type"] == "Database")
    assert db["action"] == "create"
    assert db["details"] == "RDS MySQL 8.0"


def test_explicit_no_changes():
    raw = parse_diff(_fixture("diff_no_changes.txt"), "staging", 0)
    assert raw["planned_changes"] == 0
    assert raw["change_summary"] == "No changes"


def test_no_changes_detected_when_nothing_found():
    raw = parse_diff("Building...\nDone\n", "staging", 0)
    assert raw["planned_changes"] == 0
    assert raw["change_summary"] == NO_CHANGES_SUMMARY == "No changes detected"


def test_error_banner_fails_diff():
    raw = parse_diff("App: a\nError: Unable to generate diff\n", "staging", 0)
    assert raw["success"] is False
    assert raw["completion_status"] == "failed"
    assert raw["error"] == "Unable to generate diff"


def test_bare_failure_line_fails_diff():
    raw = parse_diff("App: a\n✓ Generated\nError parsing changes\n", "staging", 0)
    assert raw["success"] is False
    assert raw["completion_status"] == "failed"
    assert raw["error"] == "Error parsing changes"
