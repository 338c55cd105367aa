#!/usr/bin/env python3
"""
Car Diagnostic Tool - Command Line Interface
============================================

License: GNU General Public License v3.0 (GPL-3.0)

Description:
    Main entry point for the car error code lookup tool. Loads the error code
    database and runs one query command, or starts interactive mode.

Commands:
    lookup            -c CODE [-e FILE]
    list-by-system    -s SYSTEM
    list-by-severity  -s LEVEL
    search            -k KEYWORD
    interactive
    settings          show | set SECTION KEY VALUE | reset

Variables (Module-level):
    logger: logging.Logger - Application logger instance
    BUNDLED_DATABASE: Path - Dataset shipped with the package
"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional

import click

from . import __version__
from . import settings_manager
from .display import display_error, display_results
from .dtc_database import DiagnosticsIndex, LoadError
from .interactive import run_interactive_mode
from .report_exporter import ReportExportError, export_report

logger = logging.getLogger(__name__)

BUNDLED_DATABASE = Path(__file__).parent / 'data' / 'error_codes.csv'
DATABASE_ENV_VAR = 'CAR_DIAG_DATABASE'


class AppContext:
    """State shared between the command group and its subcommands."""

    def __init__(self, settings: settings_manager.SettingsManager, database: Optional[Path]):
        self.settings = settings
        self.database_option = database
        self.index: Optional[DiagnosticsIndex] = None

    @property
    def color(self) -> Optional[bool]:
        # None lets click strip colors when stdout is not a terminal
        return None if self.settings.get_bool_setting('UI', 'enable_colors', True) else False

    def resolve_database(self) -> Path:
        """--database > $CAR_DIAG_DATABASE > PATHS.database_file > bundled dataset"""
        if self.database_option is not None:
            return self.database_option
        env_path = os.environ.get(DATABASE_ENV_VAR)
        if env_path:
            return Path(env_path)
        configured = self.settings.get_setting('PATHS', 'database_file', '')
        if configured:
            return Path(configured)
        return BUNDLED_DATABASE

    def load_index(self) -> DiagnosticsIndex:
        """Load the database once; exit with status 1 if that fails."""
        if self.index is not None:
            return self.index

        csv_file = self.resolve_database()
        if not csv_file.exists():
            click.echo(
                f"{click.style('Error', fg='bright_red')}: Could not find error codes database at {csv_file}",
                color=self.color,
            )
            click.echo("Please make sure the file exists in the correct location.")
            sys.exit(1)

        index = DiagnosticsIndex()
        try:
            count = index.load(csv_file)
        except LoadError as e:
            click.echo(f"{click.style('Error', fg='bright_red')}: {e}", err=True, color=self.color)
            sys.exit(1)

        click.echo(f"Loaded {count} error codes from database")
        self.index = index
        return index


def configure_logging(level_name: str, verbose: bool) -> None:
    level = logging.getLevelName(level_name.upper())
    if not isinstance(level, int):
        level = logging.WARNING
    if verbose:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
    )


pass_app = click.make_pass_decorator(AppContext)


@click.group()
@click.option('--database', '-d', type=click.Path(dir_okay=False, path_type=Path), default=None,
              help='Error codes CSV file (default: settings, then bundled dataset).')
@click.option('--config', 'config_file', type=click.Path(dir_okay=False, path_type=Path), default=None,
              help='Settings INI file.')
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging.')
@click.version_option(__version__, prog_name='Car Diagnostic Tool')
@click.pass_context
def main(ctx: click.Context, database: Optional[Path], config_file: Optional[Path], verbose: bool) -> None:
    """Car Diagnostic Tool - look up and search automotive error codes."""
    try:
        settings = settings_manager.get_settings_manager(config_file)
    except settings_manager.SettingsError as e:
        raise click.ClickException(str(e))

    configure_logging(settings.get_setting('LOGGING', 'log_level', 'WARNING'), verbose)
    ctx.obj = AppContext(settings, database)


@main.command()
@click.option('--code', '-c', required=True, help='Error code to look up.')
@click.option('--export', '-e', 'export_path', default=None,
              help='Export the report to a file (.html for HTML, text otherwise).')
@pass_app
def lookup(app: AppContext, code: str, export_path: Optional[str]) -> None:
    """Look up an error code."""
    index = app.load_index()
    error = index.lookup(code)
    if error is None:
        click.echo(f"Error code '{code}' not found in database")
        return

    display_error(error, color=app.color)

    if export_path:
        escape_html = app.settings.get_bool_setting('EXPORT', 'escape_html', True)
        try:
            written = export_report(error, export_path, escape_html=escape_html)
        except ReportExportError as e:
            click.echo(f"{click.style('Error', fg='bright_red')}: {e}", err=True, color=app.color)
            return
        click.echo(f"Report exported to {written}")


@main.command('list-by-system')
@click.option('--system', '-s', required=True, help='System name (case-insensitive).')
@pass_app
def list_by_system(app: AppContext, system: str) -> None:
    """List errors by system."""
    index = app.load_index()
    display_results(index.list_by_system(system), 'for system', system, color=app.color)


@main.command('list-by-severity')
@click.option('--severity', '-s', required=True, help='Severity level (case-insensitive).')
@pass_app
def list_by_severity(app: AppContext, severity: str) -> None:
    """List errors by severity."""
    index = app.load_index()
    display_results(index.list_by_severity(severity), 'with severity', severity, color=app.color)


@main.command()
@click.option('--keyword', '-k', required=True, help='Keyword to search for.')
@pass_app
def search(app: AppContext, keyword: str) -> None:
    """Search errors by keyword."""
    index = app.load_index()
    display_results(index.search(keyword), 'containing keyword', keyword, color=app.color)


@main.command()
@pass_app
def interactive(app: AppContext) -> None:
    """Start interactive mode."""
    index = app.load_index()
    run_interactive_mode(index, color=app.color)


@main.group()
def settings() -> None:
    """View or change settings."""


@settings.command('show')
@pass_app
def settings_show(app: AppContext) -> None:
    """Show current settings."""
    click.echo(f"Settings file: {app.settings.config_file}")
    for section, values in app.settings.get_current_settings().items():
        click.echo(f"\n[{section}]")
        for key, value in values.items():
            click.echo(f"  {key} = {value}")


@settings.command('set')
@click.argument('section')
@click.argument('key')
@click.argument('value')
@pass_app
def settings_set(app: AppContext, section: str, key: str, value: str) -> None:
    """Set SECTION KEY to VALUE and save."""
    try:
        app.settings.set_setting(section.upper(), key, value)
    except settings_manager.SettingsError as e:
        raise click.ClickException(str(e))
    click.echo(f"{section.upper()}.{key} = {value}")


@settings.command('reset')
@pass_app
def settings_reset(app: AppContext) -> None:
    """Reset all settings to defaults."""
    try:
        app.settings.reset_to_defaults()
    except settings_manager.SettingsError as e:
        raise click.ClickException(str(e))
    click.echo("Settings reset to defaults")


if __name__ == '__main__':
    main()
