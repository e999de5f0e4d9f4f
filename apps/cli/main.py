"""Typer CLI entrypoint for cdm-validator."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated, BinaryIO, Literal, cast

import typer

from apps.cli.format_human import render_report
from apps.cli.format_machine import render_csv, render_json
from apps.cli.io import write_report_atomic
from apps.cli.progress import ProgressPrinter
from cdm.orchestrator.pipeline import validate_file
from cdm.rules.loader import load_rules
from cdm.utils.errors import RulesError
from cdm.validation.models import ValidationResult

app = typer.Typer(help="CDM claim file validator", rich_markup_mode=None)
OutputFormat = Literal["console", "json", "csv"]

EXIT_VALID = 0
EXIT_INVALID = 1
EXIT_RUNTIME_ERROR = 2

STDIN_SOURCE = "-"


@app.callback()
def cli_callback() -> None:
    """CLI root callback to keep `cdm-validate validate` as explicit command form."""


@app.command("validate")
def validate_command(
    file: Annotated[str, typer.Argument(help="CDM file to validate, or '-' for stdin.")],
    output_format: Annotated[
        str,
        typer.Option("--format", "-f", help="Report format: console, json or csv."),
    ] = "console",
    json_output: Annotated[
        bool, typer.Option("--json", help="Shortcut for --format json.")
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="List warnings and enable INFO logging."),
    ] = False,
    rules_path: Annotated[
        Path | None,
        typer.Option("--rules", dir_okay=False, help="Custom validation rules YAML."),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", dir_okay=False, help="Also write the JSON/CSV report here."),
    ] = None,
    no_progress: Annotated[
        bool, typer.Option("--no-progress", help="Do not draw the progress line.")
    ] = False,
) -> None:
    """Validate one CDM claim file and print the report."""

    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s %(name)s %(message)s",
    )

    normalized_format = "json" if json_output else output_format.lower().strip()
    if normalized_format not in {"console", "json", "csv"}:
        typer.echo("ERROR: --format must be one of: console, json, csv.", err=True)
        raise typer.Exit(code=EXIT_RUNTIME_ERROR)
    format_typed = cast(OutputFormat, normalized_format)

    try:
        rules = load_rules(rules_path)
    except RulesError as exc:
        typer.echo(f"ERROR: {exc}", err=True)
        raise typer.Exit(code=EXIT_RUNTIME_ERROR) from exc

    printer = None if no_progress else ProgressPrinter()
    source: str | BinaryIO = file
    if file == STDIN_SOURCE:
        source = cast(BinaryIO, typer.get_binary_stream("stdin"))

    try:
        result = validate_file(source, rules=rules, progress=printer)
    except Exception as exc:  # noqa: BLE001
        if printer is not None:
            printer.complete()
        typer.echo(f"ERROR: validation aborted: {type(exc).__name__}: {exc}", err=True)
        raise typer.Exit(code=EXIT_RUNTIME_ERROR) from exc
    if printer is not None:
        printer.complete()

    source_name = "<stdin>" if file == STDIN_SOURCE else file
    typer.echo(_render(result, format_typed, source_name=source_name, verbose=verbose))

    if output is not None:
        report_format = _report_format_for_output(format_typed, output)
        try:
            write_report_atomic(
                output, _render(result, report_format, source_name=source_name, verbose=verbose)
            )
        except OSError as exc:
            typer.echo(f"ERROR: cannot write report to {output}: {exc}", err=True)
            raise typer.Exit(code=EXIT_RUNTIME_ERROR) from exc

    raise typer.Exit(code=EXIT_VALID if result.is_valid else EXIT_INVALID)


def _render(
    result: ValidationResult,
    output_format: OutputFormat,
    *,
    source_name: str,
    verbose: bool,
) -> str:
    if output_format == "json":
        return render_json(result)
    if output_format == "csv":
        return render_csv(result)
    return render_report(result, source_name=source_name, verbose=verbose)


def _report_format_for_output(output_format: OutputFormat, output: Path) -> OutputFormat:
    if output_format != "console":
        return output_format
    return "csv" if output.suffix.lower() == ".csv" else "json"


def main() -> None:
    """Poetry script entrypoint."""

    app()


if __name__ == "__main__":
    main()
