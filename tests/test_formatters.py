import json
from pathlib import Path
from rich.console import Console
from sstparse.formatters.github_fmt import format_github, hidden_marker
from sstparse.formatters.json_fmt import format_json
from sstparse.formatters.outputs_fmt import OUTPUT_KEYS, format_outputs, render_outputs
from sstparse.formatters.terminal import print_result
from sstparse.normalizer import parse_operation
from sstparse.stage import StageContext

FIXTURES = Path(__file__).parent / "fixtures"


def _fixture(name: str) -> str:
    return (FIXTURES / name).read_text(encoding="utf-8")


def _deploy():
    return parse_operation("deploy", _fixture("deploy_partial.txt"), "staging", 0)


def _diff():
    return parse_operation("diff", _fixture("diff_complex.txt"), "production", 0)


def _remove():
    return parse_operation("remove", _fixture("remove_complete.txt"), "production", 0)


def _stage():
    return parse_operation(
        "stage", "", "", 0,
        stage_context=StageContext(event_name="pull_request", head_ref="42-fix"),
    )


def test_format_json_structure():
    data = json.loads(format_json(_deploy()))
    assert data["operation"] == "deploy"
    assert data["completion_status"] == "partial"
    assert data["resource_changes"] == 2
    assert data["failed_resources"][0]["reason"] == "timeout"
    assert "raw_output" in data


def test_format_json_without_raw_output():
    data = json.loads(format_json(_diff(), include_raw_output=False))
    assert "raw_output" not in data
    assert data["planned_changes"] == 6


def test_format_github_deploy():
    md = format_github(_deploy())
    assert hidden_marker(_deploy()) in md
    assert "## SST Deploy" in md
    assert "<details>" in md
    assert "my-sst-app-staging-web" in md
    assert "timeout" in md
    assert "[View in SST Console]" in md


def test_format_github_diff_includes_raw_block():
    md = format_github(_diff())
    assert "6 changes planned" in md
    assert "```diff" in md
    assert "| `Database` |" in md
    assert "(6: `+` 2 · `~` 2 · `-` 2)" in md


def test_format_github_remove_savings():
    md = format_github(_remove())
    assert "$1,250.75" in md
    assert "4 removed" in md


def test_format_github_stage():
    md = format_github(_stage())
    assert "pr-42-fix" in md
    assert "yes" in md


def test_format_outputs_deploy():
    out = format_outputs(_deploy())
    assert set(out) == set(OUTPUT_KEYS)
    assert all(isinstance(v, str) for v in out.values())
    assert out["success"] == "true"
    assert out["resource_changes"] == "2"
    assert json.loads(out["outputs"])[0]["type"] == "api"
    assert out["diff_summary"] == ""
    assert out["computed_stage"] == ""


def test_format_outputs_remove_and_stage():
    remove = format_outputs(_remove())
    assert remove["resources_removed"] == "4"
    assert len(json.loads(remove["removed_resources"])) == 4

    stage = format_outputs(_stage())
    assert stage["computed_stage"] == "pr-42-fix"
    assert stage["is_pull_request"] == "true"
    assert stage["app"] == ""


def test_render_outputs_heredoc():
    text = render_outputs({"a": "1", "b": "x\ny"})
    lines = text.splitlines()
    assert lines[0] == "a=1"
    assert lines[1].startswith("b<<ghadelimiter_")
    delimiter = lines[1][len("b<<"):]
    assert lines[2:] == ["x", "y", delimiter]


def test_render_outputs_value_cannot_close_heredoc():
    value = "first\nSSTPARSE_EOF\nghadelimiter_\nlast"
    lines = render_outputs({"v": value}).splitlines()
    delimiter = lines[0][len("v<<"):]
    assert lines.count(delimiter) == 1
    assert lines[-1] == delimiter
    assert "\n".join(lines[1:-1]) == value


def test_print_result_renders_all_kinds():
    for result in (_deploy(), _diff(), _remove(), _stage()):
        console = Console(record=True, width=160)
        print_result(result, console=console)
        text = console.export_text()
        assert result.completion_status.value.upper() in text


def test_print_result_escapes_bracketed_text():
    result = parse_operation(
        "deploy", "Error: log group [/aws/lambda/fn] not found\n", "dev", 1,
    )
    console = Console(record=True, width=160)
    print_result(result, console=console)
    assert "log group [/aws/lambda/fn] not found" in console.export_text()


def test_print_result_escapes_resource_cells():
    text = "| Failed  Function  fn-[bold] (bad [/red] tag)\n✗ Failed\n"
    result = parse_operation("deploy", text, "dev", 1)
    console = Console(record=True, width=160)
    print_result(result, console=console)
    out = console.export_text()
    assert "fn-[bold]" in out
    assert "[/red]" in out
