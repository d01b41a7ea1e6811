from __future__ import annotations
import logging
import sys
import click
from rich.console import Console
from rich.logging import RichHandler
from sstparse.normalizer import parse_operation
from sstparse.stage import (
    DEFAULT_PREFIX,
    DEFAULT_TRUNCATION_LENGTH,
    StageContext,
    StageOptions,
)
from sstparse.formatters.json_fmt import format_json
from sstparse.formatters.github_fmt import format_github
from sstparse.formatters.outputs_fmt import format_outputs, render_outputs
from sstparse.formatters.terminal import print_result
from sstparse.models import Operation


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("operation", type=click.Choice([op.value for op in Operation]))
@click.argument("input_file", type=click.File("r", encoding="utf-8", errors="replace"),
                default="-", required=False)
@click.option("--stage", envvar="SST_STAGE", default="",
              help="Declared stage; for the stage operation, the fallback name.")
@click.option("--exit-code", type=int, default=0, show_default=True,
              help="Exit code of the SST CLI run that produced the output.")
@click.option("--max-output-size", type=click.IntRange(min=1), envvar="SSTPARSE_MAX_OUTPUT_SIZE",
              default=None, help="Clip captured output to this many characters.")
@click.option("--output", "-o",
              type=click.Choice(["terminal", "json", "pr-comment", "outputs"]),
              default="terminal",
              show_default=True,
              help="Output format.")
@click.option("--ref", envvar="GITHUB_REF", default="", help="Git ref (stage operation).")
@click.option("--head-ref", envvar="GITHUB_HEAD_REF", default="",
              help="Pull request source branch (stage operation).")
@click.option("--event-name", envvar="GITHUB_EVENT_NAME", default="",
              help="Triggering event kind (stage operation).")
@click.option("--truncation-length", type=int, default=DEFAULT_TRUNCATION_LENGTH,
              show_default=True, help="Maximum computed stage name length.")
@click.option("--prefix", default=DEFAULT_PREFIX, show_default=True,
              help="Prefix for stage names that start with a digit.")
@click.option("--no-fallback", is_flag=True, default=False,
              help="Fail instead of falling back to --stage when no ref is usable.")
@click.option("--no-raw-output", is_flag=True, default=False,
              help="Omit the captured output from --output json.")
@click.option("--fail-on-error", is_flag=True, default=False,
              help="Exit 1 if the parsed operation did not succeed.")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Debug logging to stderr.")
def main(operation: str, input_file, stage: str, exit_code: int, max_output_size: int | None,
         output: str, ref: str, head_ref: str, event_name: str, truncation_length: int,
         prefix: str, no_fallback: bool, no_raw_output: bool, fail_on_error: bool,
         verbose: bool) -> None:
    """Parse SST CLI output into a structured result.

    OPERATION is one of deploy, diff, remove or stage. INPUT_FILE holds the
    captured output (stdin by default); it is not read for stage.
    """
    _configure_logging(verbose)

    if operation == Operation.STAGE.value:
        raw_text = ""
        context = StageContext(event_name=event_name, ref=ref, head_ref=head_ref)
        options = StageOptions(
            fallback_stage=stage,
            truncation_length=truncation_length,
            prefix=prefix,
            allow_fallback=not no_fallback,
        )
    else:
        if not stage:
            raise click.ClickException("--stage (or SST_STAGE) is required for " + operation)
        raw_text = input_file.read()
        context = options = None

    result = parse_operation(
        operation,
        raw_text,
        stage,
        exit_code,
        max_output_size=max_output_size,
        stage_context=context,
        stage_options=options,
    )

    if output == "json":
        click.echo(format_json(result, include_raw_output=not no_raw_output))
    elif output == "pr-comment":
        click.echo(format_github(result))
    elif output == "outputs":
        click.echo(render_outputs(format_outputs(result)))
    else:
        print_result(result, console=Console())

    if fail_on_error and not result.success:
        sys.exit(1)
