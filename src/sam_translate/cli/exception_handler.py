"""CLI exception handling."""

from __future__ import annotations

import traceback
from collections.abc import Callable
from functools import wraps
from typing import TypeVar

import typer
from pydantic import ValidationError as PydanticValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from sam_translate.cli.error_formatter import ErrorFormatter, ErrorTable
from sam_translate.models.loader import LoaderError
from sam_translate.validation.exceptions import SamTranslateError, TransformError
from sam_translate.validation.pydantic_errors import (
    format_pydantic_location,
    get_suggestion_for_error,
    translate_pydantic_error,
)
from sam_translate.validation.validator import TemplateValidationError

T = TypeVar("T")

console = Console(stderr=True)

# Exit code for load, validation and translation failures
FAILURE_EXIT_CODE = 1


def handle_exceptions(
    verbose: bool = False,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Handle exceptions in CLI commands with formatted output.

    A ``verbose`` keyword argument passed to the wrapped command overrides
    the decorator default.

    Args:
    ----
        verbose: Whether to show full tracebacks.

    Returns:
    -------
        Decorator function.

    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args: object, **kwargs: object) -> T:
            show_details = bool(kwargs.get("verbose", verbose))
            try:
                return func(*args, **kwargs)
            except (typer.Exit, typer.Abort, typer.BadParameter):
                raise
            except LoaderError as e:
                _handle_loader_error(e)
            except TemplateValidationError as e:
                ErrorFormatter(console).format_validation_result(e.result)
            except SamTranslateError as e:
                _handle_translate_error(e, show_details)
            except PydanticValidationError as e:
                _handle_pydantic_error(e, show_details)
            except PermissionError as e:
                _handle_permission_error(e)
            except Exception as e:
                _handle_generic_error(e, show_details)
            raise typer.Exit(FAILURE_EXIT_CODE)

        return wrapper

    return decorator


def _handle_loader_error(error: LoaderError) -> None:
    console.print(
        Panel(
            f"[red]{escape(str(error))}[/red]\n\n"
            "Check that the path points to a YAML or JSON template.",
            title="Load Error",
            border_style="red",
        )
    )


def _handle_translate_error(error: SamTranslateError, verbose: bool) -> None:
    """Print the error text as is, then the issue table when verbose."""
    console.print("[red bold]✗ Translation failed[/red bold]")
    console.print(escape(str(error)), soft_wrap=True, highlight=False, style="red")
    if verbose and isinstance(error, TransformError):
        console.print()
        ErrorTable(console).print_result(error.to_result())


def _handle_pydantic_error(error: PydanticValidationError, verbose: bool) -> None:
    console.print("[red bold]Template Shape Validation Failed[/red bold]")
    console.print()

    for err in error.errors():
        location = format_pydantic_location(err["loc"])
        suggestion = get_suggestion_for_error(err)

        console.print(f"[red]✗[/red] {escape(location)}")
        console.print(f"  {escape(translate_pydantic_error(err))}")
        console.print(f"  [dim]({err['type']})[/dim]")
        if suggestion:
            console.print(f"  [green]💡 {escape(suggestion)}[/green]")
        console.print()

    if verbose:
        console.print("[dim]Full error:[/dim]")
        console.print(escape(str(error)))


def _handle_permission_error(error: PermissionError) -> None:
    filename = error.filename or "unknown"
    console.print(
        Panel(
            f"[red]Permission denied: {escape(str(filename))}[/red]\n\n"
            "Check file permissions and try again.",
            title="Error",
            border_style="red",
        )
    )


def _handle_generic_error(error: Exception, verbose: bool) -> None:
    console.print(
        Panel(
            f"[red]An unexpected error occurred:[/red]\n{escape(str(error))}",
            title="Error",
            border_style="red",
        )
    )
    if verbose:
        console.print("\n[dim]Traceback:[/dim]")
        console.print(escape(traceback.format_exc()))
    else:
        console.print("\n[dim]Use --verbose for full traceback[/dim]")
