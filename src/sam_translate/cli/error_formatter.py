"""Issue formatting with Rich.

Issues are printed against the template they came from: when the parsed
template is passed in, the offending resource is shown as a YAML snippet
and tree nodes carry the resource type.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text
from rich.tree import Tree

if TYPE_CHECKING:
    from sam_translate.validation.errors import ValidationIssue, ValidationResult


def _resource_of(template: dict[str, Any] | None, logical_id: str | None) -> Any:
    if not template or not logical_id:
        return None
    resources = template.get("Resources")
    if not isinstance(resources, dict):
        return None
    return resources.get(logical_id)


def _counts(result: ValidationResult) -> str:
    parts = []
    if result.errors:
        parts.append(f"{len(result.errors)} error(s)")
    if result.warnings:
        parts.append(f"{len(result.warnings)} warning(s)")
    return ", ".join(parts)


class ErrorFormatter:
    """Prints a validation result issue by issue, errors first."""

    def __init__(
        self,
        console: Console | None = None,
        show_location: bool = True,
        max_context_lines: int = 6,
    ) -> None:
        """Initialize formatter.

        Args:
        ----
            console: Rich Console for output.
            show_location: Whether to print the template location of each issue.
            max_context_lines: Lines of the offending resource to show.

        """
        self.console = console or Console(stderr=True)
        self.show_location = show_location
        self.max_context_lines = max_context_lines

    def format_validation_result(
        self,
        result: ValidationResult,
        source_path: Path | None = None,
        template: dict[str, Any] | None = None,
    ) -> None:
        """Format and print a validation result.

        Args:
        ----
            result: The validation result to format.
            source_path: Path to the template (for display).
            template: Parsed template, used for resource snippets.

        """
        if result.is_valid and not result.warnings:
            self.console.print("[green]✓ Validation passed[/green]")
            return

        self.console.print(self._build_summary(result, source_path))
        self.console.print()

        shown: set[str] = set()
        for issue in result.errors:
            self._print_issue(issue, "red", template, shown)
        for issue in result.warnings:
            self._print_issue(issue, "yellow", template, shown)

        color = "red" if result.errors else "yellow"
        self.console.print(f"[{color} bold]✗ {_counts(result)}[/{color} bold]")

    def _build_summary(self, result: ValidationResult, source_path: Path | None) -> Panel:
        failed = not result.is_valid
        content = Text()
        if source_path:
            content.append(f"File: {source_path}\n", style="dim")
        if result.errors:
            content.append(f"Errors: {len(result.errors)}", style="red bold")
        if result.warnings:
            if result.errors:
                content.append("  ")
            content.append(f"Warnings: {len(result.warnings)}", style="yellow")
        failing = result.logical_ids()
        if failing:
            content.append(f"\nResources: {', '.join(failing)}", style="dim")

        return Panel(
            content,
            title="Validation Failed" if failed else "Validation Warnings",
            border_style="red" if failed else "yellow",
        )

    def _print_issue(
        self,
        issue: ValidationIssue,
        color: str,
        template: dict[str, Any] | None,
        shown: set[str],
    ) -> None:
        severity = issue.severity.value.upper()
        self.console.print(
            f"[{color} bold]{severity}[/{color} bold] "
            f"[{color}]{issue.code}[/{color}] "
            f"{escape(issue.message)}",
            soft_wrap=True,
        )
        location = issue.location
        if self.show_location and location:
            self.console.print(f"  [dim]at {escape(str(location))}[/dim]", soft_wrap=True)
        if issue.suggestion:
            self.console.print(f"  [green]💡 {escape(issue.suggestion)}[/green]")

        # One snippet per resource
        logical_id = location.logical_id if location else None
        resource = _resource_of(template, logical_id)
        if resource is not None and logical_id not in shown:
            shown.add(str(logical_id))
            self._print_snippet(str(logical_id), resource)
        self.console.print()

    def _print_snippet(self, logical_id: str, resource: Any) -> None:
        text = yaml.safe_dump({logical_id: resource}, sort_keys=False, default_flow_style=False)
        lines = text.splitlines()
        if len(lines) > self.max_context_lines:
            lines = [*lines[: self.max_context_lines], "  ..."]
        self.console.print(Syntax("\n".join(lines), "yaml", theme="ansi_dark", padding=(0, 2)))


class ErrorTree:
    """Display issues as a tree grouped by template section and resource."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console(stderr=True)

    def print_result(
        self, result: ValidationResult, template: dict[str, Any] | None = None
    ) -> None:
        """Print validation result as tree, labelling resources with their type."""
        tree = Tree("[bold]Template Issues[/bold]")

        by_section: dict[str, list[ValidationIssue]] = {}
        types: dict[str, str] = {}
        for issue in result.issues:
            location = issue.location
            if location is None:
                section = "general"
            elif location.logical_id:
                section = f"{location.section}.{location.logical_id}"
                resource = _resource_of(template, location.logical_id)
                if isinstance(resource, dict) and isinstance(resource.get("Type"), str):
                    types[section] = resource["Type"]
            else:
                section = location.section
            by_section.setdefault(section, []).append(issue)

        for section, issues in sorted(by_section.items()):
            label = f"[cyan]{escape(section)}[/cyan] ({len(issues)} issues)"
            if section in types:
                label += f" [dim]{escape(types[section])}[/dim]"
            section_node = tree.add(label)
            for issue in issues:
                color = "red" if issue.severity.value == "error" else "yellow"
                node = section_node.add(
                    f"[{color}]{issue.code}[/{color}] {escape(issue.message)}"
                )
                if issue.location and issue.location.property_path:
                    node.add(f"[dim]{escape(issue.location.property_path)}[/dim]")

        self.console.print(tree)


class ErrorTable:
    """Display issues as a table, one row per issue."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console(stderr=True)

    def print_result(self, result: ValidationResult) -> None:
        """Print validation result as table."""
        table = Table(title="Template Issues", caption=_counts(result) or None)

        table.add_column("Code", style="cyan", width=6)
        table.add_column("Severity", width=8)
        table.add_column("Location", style="dim")
        table.add_column("Message")
        table.add_column("Fix", style="green")

        for issue in result.issues:
            severity_style = "red" if issue.severity.value == "error" else "yellow"
            severity = f"[{severity_style}]{issue.severity.value.upper()}[/{severity_style}]"
            location = str(issue.location) if issue.location else "-"
            table.add_row(
                issue.code,
                severity,
                escape(location),
                escape(issue.message),
                escape(issue.suggestion or ""),
            )

        self.console.print(table)
