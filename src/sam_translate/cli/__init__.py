"""CLI support for sam-translate.

The typer application itself lives in ``sam_translate.cli_main``.
"""

from sam_translate.cli.error_formatter import ErrorFormatter, ErrorTable, ErrorTree
from sam_translate.cli.exception_handler import handle_exceptions

__all__ = [
    "ErrorFormatter",
    "ErrorTable",
    "ErrorTree",
    "handle_exceptions",
]
