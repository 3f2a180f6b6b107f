"""Command-line interface for the SAM to CloudFormation translator."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any

import typer
from pydantic import ValidationError as PydanticValidationError
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn

from sam_translate import __version__
from sam_translate.cli.error_formatter import ErrorFormatter, ErrorTable, ErrorTree
from sam_translate.cli.exception_handler import handle_exceptions
from sam_translate.logging_config import configure_logging
from sam_translate.models import (
    TransformOptions,
    dump_template,
    load_template,
    output_format_for,
)
from sam_translate.transform import SamTranslator
from sam_translate.validation.validator import TemplateValidator

# Create Typer app
app = typer.Typer(
    name="sam-translate",
    help="Translate AWS SAM templates into plain CloudFormation templates.",
    add_completion=True,
    no_args_is_help=True,
)

# Rich consoles for output; status goes to stderr so stdout can carry a template
console = Console()
status_console = Console(stderr=True)
error_console = Console(stderr=True, style="bold red")

TemplateFileOption = Annotated[
    Path,
    typer.Option(
        "--template-file",
        "-t",
        help="SAM template to read (YAML or JSON).",
        dir_okay=False,
    ),
]
RegionOption = Annotated[
    str | None,
    typer.Option("--region", help="Deployment region. Defaults to AWS_REGION or us-east-1."),
]
AccountIdOption = Annotated[
    str | None,
    typer.Option("--account-id", help="Twelve-digit account ID used in generated ARNs."),
]
StackNameOption = Annotated[
    str | None,
    typer.Option("--stack-name", help="Stack name used in generated names."),
]
VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", "-V", help="Show debug logging and detailed errors."),
]
LogJsonOption = Annotated[
    bool,
    typer.Option("--log-json", help="Emit log records as JSON lines."),
]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"sam-translate version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """Translate AWS SAM templates into CloudFormation.

    Every AWS::Serverless::* resource is expanded into the CloudFormation
    resources it stands for; everything else is passed through unchanged.
    """


def _build_options(
    region: str | None, account_id: str | None, stack_name: str | None
) -> TransformOptions:
    try:
        return TransformOptions.from_env(
            region=region, account_id=account_id, stack_name=stack_name
        )
    except PydanticValidationError as e:
        first = e.errors()[0]
        raise typer.BadParameter(first["msg"]) from None


@app.command()
@handle_exceptions()
def transform(
    template_file: TemplateFileOption,
    output_template: Annotated[
        Path | None,
        typer.Option(
            "--output-template",
            "-o",
            help="Write the CloudFormation template here (.yaml/.yml for YAML, else JSON).",
            dir_okay=False,
        ),
    ] = None,
    stdout: Annotated[
        bool,
        typer.Option("--stdout", help="Write the CloudFormation template to stdout as JSON."),
    ] = False,
    region: RegionOption = None,
    account_id: AccountIdOption = None,
    stack_name: StackNameOption = None,
    verbose: VerboseOption = False,
    log_json: LogJsonOption = False,
) -> None:
    """Translate a SAM template into a CloudFormation template.

    At least one of --output-template and --stdout must be given; with both,
    the template is written to the file and to stdout.

    Examples
    --------
        sam-translate transform -t template.yaml -o packaged.json
        sam-translate transform -t template.yaml -o packaged.yaml --region eu-west-1
        sam-translate transform -t template.yaml --stdout
        sam-translate transform -t template.yaml -o packaged.json --stdout

    """
    if output_template is None and not stdout:
        raise typer.BadParameter(
            "one of --output-template or --stdout is required",
            param_hint="'--output-template' / '--stdout'",
        )
    configure_logging("DEBUG" if verbose else "WARNING", json_format=log_json)
    options = _build_options(region, account_id, stack_name)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=status_console,
        transient=not verbose,
    ) as progress:
        # Step 1: Load
        task = progress.add_task("Loading template...", total=None)
        template = load_template(template_file)
        progress.update(task, description="[green]✓ Loaded[/green]")

        # Step 2: Translate
        task = progress.add_task("Translating...", total=None)
        output = SamTranslator(options).transform(template)
        progress.update(task, description="[green]✓ Translated[/green]")

    if verbose:
        status_console.print(
            f"  [dim]Resources: {len(template['Resources'])} in, "
            f"{len(output['Resources'])} out[/dim]"
        )

    _write_output(output, output_template, stdout)


def _write_output(output: dict[str, Any], output_template: Path | None, stdout: bool) -> None:
    if stdout:
        typer.echo(dump_template(output, "json"), nl=False)
    if output_template is None:
        return
    output_template.write_text(
        dump_template(output, output_format_for(output_template)), encoding="utf-8"
    )
    status_console.print(f"[bold green]✓ Wrote {output_template}[/bold green]")


@app.command()
@handle_exceptions()
def validate(
    template_file: TemplateFileOption,
    strict: Annotated[
        bool,
        typer.Option("--strict", help="Treat warnings as errors."),
    ] = False,
    output_format: Annotated[
        str,
        typer.Option(
            "--format",
            "-f",
            help="Output format for validation results: text, table, tree.",
        ),
    ] = "text",
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Only output errors, no success messages."),
    ] = False,
    region: RegionOption = None,
    account_id: AccountIdOption = None,
    stack_name: StackNameOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Validate a SAM template without writing any output.

    Runs the structural checks, the logical ID checks and a dry-run
    translation, and reports every issue found.

    Examples
    --------
        sam-translate validate -t template.yaml
        sam-translate validate -t template.yaml --format table
        sam-translate validate -t template.yaml --strict

    """
    if output_format not in ("text", "table", "tree"):
        raise typer.BadParameter(
            f"unknown format '{output_format}'; use text, table or tree",
            param_hint="'--format'",
        )
    configure_logging("DEBUG" if verbose else "WARNING")
    options = _build_options(region, account_id, stack_name)

    template = load_template(template_file)
    result = TemplateValidator(strict=strict, options=options).validate(template)

    if not result.is_valid or result.warnings:
        if output_format == "table":
            ErrorTable(error_console).print_result(result)
        elif output_format == "tree":
            ErrorTree(error_console).print_result(result, template)
        else:
            ErrorFormatter(error_console).format_validation_result(
                result, template_file, template
            )

        if not result.is_valid or (strict and result.warnings):
            raise typer.Exit(code=1)

    if not quiet:
        if result.warnings:
            console.print(
                f"\n[bold yellow]⚠ {template_file.name} is valid with warnings[/bold yellow]\n"
            )
        else:
            console.print(f"\n[bold green]✓ {template_file.name} is valid[/bold green]\n")


if __name__ == "__main__":
    app()
