"""
Interactive mode - line-based command loop over a loaded DiagnosticsIndex.

Commands:
    lookup <code>, system <name>, severity <level>, search <keyword>,
    help, exit / quit
"""

import logging
from typing import Callable, Dict, List, Optional, Tuple

import click

from .display import display_error, display_results
from .dtc_database import DiagnosticsIndex, ErrorCode

logger = logging.getLogger(__name__)

# command -> (argument placeholder, help text)
COMMANDS: Dict[str, Tuple[str, str]] = {
    'lookup': ('<code>', 'Look up details for an error code'),
    'system': ('<system_name>', 'List all errors for a specific system'),
    'severity': ('<level>', 'List all errors with a specific severity'),
    'search': ('<keyword>', 'Search for errors containing a keyword'),
}


def print_help(color: Optional[bool] = None) -> None:
    click.echo(click.style("Available commands:", fg='bright_blue'), color=color)
    for name, (placeholder, text) in COMMANDS.items():
        click.echo(
            f"  {click.style(name, fg='bright_green')} {click.style(placeholder, fg='bright_yellow')} - {text}",
            color=color,
        )
    click.echo(f"  {click.style('help', fg='bright_green')} - Display this help message", color=color)
    click.echo(f"  {click.style('exit', fg='bright_red')} - Exit the interactive mode", color=color)


def parse_command(line: str) -> Tuple[str, str]:
    """Split an input line into (lowercased command, argument). The argument is the rest of the line."""
    parts = line.strip().split(None, 1)
    if not parts:
        return '', ''
    command = parts[0].lower()
    argument = parts[1].strip() if len(parts) > 1 else ''
    return command, argument


def run_interactive_mode(index: DiagnosticsIndex, color: Optional[bool] = None) -> None:
    """
    Run the interactive command loop until 'exit', 'quit' or end of input.

    Args:
        index: Loaded error code index
        color: False strips ANSI codes, None lets click decide
    """
    queries: Dict[str, Tuple[Callable[[str], List[ErrorCode]], str]] = {
        'system': (index.list_by_system, 'for system'),
        'severity': (index.list_by_severity, 'with severity'),
        'search': (index.search, 'containing keyword'),
    }

    click.echo(click.style("=== Car Diagnostic Tool Interactive Mode ===", fg='bright_blue'), color=color)
    click.echo(
        f"Type '{click.style('help', fg='bright_green')}' for available commands "
        f"or '{click.style('exit', fg='bright_red')}' to quit",
        color=color,
    )

    while True:
        try:
            line = click.prompt(click.style('>', fg='bright_cyan'), default='',
                                show_default=False, prompt_suffix=' ')
        except click.Abort:
            # End of input
            click.echo()
            break

        command, argument = parse_command(line)
        if not command:
            continue

        if command in ('exit', 'quit'):
            break

        if command == 'help':
            print_help(color=color)
            continue

        if command not in COMMANDS:
            click.echo(
                f"{click.style('Unknown command.', fg='bright_red')} "
                f"Type '{click.style('help', fg='bright_green')}' for available commands.",
                color=color,
            )
            continue

        if not argument:
            placeholder = COMMANDS[command][0]
            click.echo(
                f"Usage: {click.style(command, fg='bright_green')} {click.style(placeholder, fg='bright_yellow')}",
                color=color,
            )
            continue

        logger.debug(f"Interactive command: {command} {argument!r}")
        if command == 'lookup':
            # Codes are a single token; anything after it is ignored
            argument = argument.split()[0]
            error = index.lookup(argument)
            if error is None:
                click.echo(
                    f"Error code '{click.style(argument, fg='bright_red')}' not found in database",
                    color=color,
                )
            else:
                display_error(error, color=color)
        else:
            query, criterion = queries[command]
            display_results(query(argument), criterion, argument, color=color)

    click.echo("Exiting interactive mode")
