"""
Colored terminal output for error code records.

Severity coloring only knows the standard levels; anything else is printed
without styling.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional, Sequence

import click

from .dtc_database import ErrorCode

SEPARATOR = "=" * 32


class Severity(Enum):
    """Known severity levels"""
    CRITICAL = "Critical"  # Safety issue, stop driving
    HIGH = "High"          # Should be fixed soon
    MEDIUM = "Medium"      # Performance/comfort issue
    LOW = "Low"            # Minor issue


SEVERITY_STYLES: Dict[Severity, Dict[str, Any]] = {
    Severity.LOW: {'fg': 'bright_green'},
    Severity.MEDIUM: {'fg': 'bright_yellow'},
    Severity.HIGH: {'fg': 'bright_red'},
    Severity.CRITICAL: {'fg': 'bright_white', 'bg': 'red'},
}


def style_severity(severity: str) -> str:
    """Style a severity string; unknown levels come back unchanged."""
    try:
        level = Severity(severity)
    except ValueError:
        return severity
    return click.style(severity, **SEVERITY_STYLES[level])


def display_error(error: ErrorCode, color: Optional[bool] = None) -> None:
    """
    Print one error code with colors.

    Args:
        error: Record to print
        color: False strips ANSI codes, None lets click decide (tty only)
    """
    def label(text: str) -> str:
        return click.style(text, fg='bright_yellow')

    click.echo(click.style(SEPARATOR, fg='bright_blue'), color=color)
    click.echo(f"{label('Error Code:')} {click.style(error.code, fg='bright_white')}", color=color)
    click.echo(f"{label('Description:')} {error.description}", color=color)
    click.echo(f"{label('Severity:')} {style_severity(error.severity)}", color=color)
    click.echo(f"{label('System:')} {click.style(error.system, fg='bright_cyan')}", color=color)

    click.echo("\n" + click.style("Possible Causes:", fg='bright_magenta'), color=color)
    for cause in error.causes:
        click.echo(f"  - {cause}", color=color)

    click.echo("\n" + click.style("Recommended Actions:", fg='bright_green'), color=color)
    for action in error.actions:
        click.echo(f"  - {action}", color=color)
    click.echo(click.style(SEPARATOR + "\n", fg='bright_blue'), color=color)


def display_results(errors: Sequence[ErrorCode], criterion: str, value: str,
                    color: Optional[bool] = None) -> None:
    """
    Print a query summary followed by every matching record.

    Args:
        errors: Query results
        criterion: Phrase describing the query, e.g. 'for system' or 'with severity'
        value: The value that was queried
    """
    if not errors:
        click.echo(f"No errors found {criterion}: {click.style(value, fg='bright_red')}", color=color)
        return

    count = click.style(str(len(errors)), fg='bright_green')
    click.echo(f"Found {count} errors {criterion}: {click.style(value, fg='bright_cyan')}", color=color)
    for error in errors:
        display_error(error, color=color)
