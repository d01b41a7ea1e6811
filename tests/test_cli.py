import json
from pathlib import Path
from click.testing import CliRunner
from sstparse.cli import main

FIXTURES = Path(__file__).parent / "fixtures"


def _fixture(name: str) -> str:
    return (FIXTURES / name).read_text(encoding="utf-8")


def test_help():
    runner = CliRunner()
    result = runner.invoke(main, ["--help"])
    assert result.exit_code == 0
    assert "Usage" in result.output


def test_deploy_json_from_stdin():
    runner = CliRunner()
    result = runner.invoke(main, ["deploy", "--stage", "staging", "--output", "json"],
                           input=_fixture("deploy_success.txt"))
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["resource_changes"] == 3
    assert data["app"] == "my-sst-app"


def test_diff_from_file(tmp_path):
    path = tmp_path / "diff.txt"
    path.write_text(_fixture("diff_complex.txt"), encoding="utf-8")
    runner = CliRunner()
    result = runner.invoke(main, ["diff", str(path), "--stage", "production",
                                  "--output", "pr-comment"])
    assert result.exit_code == 0
    assert "SST Diff" in result.output
    assert "<details>" in result.output


def test_stage_from_env():
    runner = CliRunner()
    result = runner.invoke(main, ["stage", "--output", "outputs"], env={
        "GITHUB_EVENT_NAME": "push",
        "GITHUB_REF": "refs/heads/123-hotfix",
        "GITHUB_HEAD_REF": "",
    })
    assert result.exit_code == 0
    assert "computed_stage=pr-123-hotfix" in result.output.splitlines()


def test_fail_on_error_exits_1():
    runner = CliRunner()
    result = runner.invoke(
        main,
        ["remove", "--stage", "staging", "--output", "json", "--fail-on-error"],
        input=_fixture("remove_failed.txt"),
    )
    assert result.exit_code == 1
    assert json.loads(result.output)["completion_status"] == "failed"


def test_fail_on_error_exits_0_on_success():
    runner = CliRunner()
    result = runner.invoke(
        main,
        ["remove", "--stage", "staging", "--output", "json", "--fail-on-error"],
        input=_fixture("remove_complete.txt"),
    )
    assert result.exit_code == 0


def test_missing_stage_is_usage_error():
    runner = CliRunner()
    result = runner.invoke(main, ["deploy"], input="", env={"SST_STAGE": ""})
    assert result.exit_code == 1
    assert "--stage" in result.output


def test_max_output_size_option():
    runner = CliRunner()
    result = runner.invoke(
        main,
        ["deploy", "--stage", "staging", "--output", "json", "--max-output-size", "20"],
        input=_fixture("deploy_success.txt"),
    )
    data = json.loads(result.output)
    assert data["truncated"] is True
    assert len(data["raw_output"]) == 20


def test_json_without_raw_output():
    runner = CliRunner()
    result = runner.invoke(main, ["deploy", "--stage", "staging", "--output", "json",
                                  "--no-raw-output"], input=_fixture("deploy_success.txt"))
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert "raw_output" not in data
    assert data["resource_changes"] == 3
