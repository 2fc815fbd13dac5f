#!/usr/bin/env python3
"""
DivQuant CLI - Correlation & Diversification Command Line Interface

Usage:
    divq [OPTIONS] COMMAND [ARGS]...

Commands:
    analyze     Run pairwise correlation analysis for a session
    results     Show stored analysis results
    pairs       Show highly correlated pairs
    guide       Show diversification guide
    heatmap     Show heatmap matrices and statistics
    optimize    Select a low-correlation subset of tickers
    clear       Delete stored analysis results
"""

import logging
import sys
import os

# Ensure project root is in path
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import click  # noqa: E402

from cli import __version__  # noqa: E402


class AliasedGroup(click.Group):
    """Custom Click group that supports command aliases."""

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        """Get command with alias support."""
        # Direct match
        rv = click.Group.get_command(self, ctx, cmd_name)
        if rv is not None:
            return rv

        # Alias mapping
        aliases = {
            'run': 'analyze',
            'show': 'results',
            'opt': 'optimize',
            'rm': 'clear',
        }

        if cmd_name in aliases:
            return click.Group.get_command(self, ctx, aliases[cmd_name])

        return None


def _configure_logging(debug: bool) -> None:
    """--debug: console DEBUG logs, JSON_LOGGING=true: JSON file logs under LOG_DIR."""
    from divquant.config import settings
    from divquant.utils.log_utils import setup_json_logging, setup_logging

    if debug:
        setup_logging(level=logging.DEBUG)
    elif settings.JSON_LOGGING:
        settings.LOG_DIR.mkdir(parents=True, exist_ok=True)
        setup_json_logging(
            str(settings.LOG_DIR / 'divquant.json.log'),
            level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
            add_console=False,
        )


@click.group(cls=AliasedGroup, invoke_without_command=True)
@click.option('--version', '-v', is_flag=True, help='Show version and exit.')
@click.option('--debug', is_flag=True, help='Enable debug mode.')
@click.option('--db-url', envvar='DATABASE_URL', default=None,
              help='SQLAlchemy database URL (default: local SQLite).')
@click.pass_context
def cli(ctx: click.Context, version: bool, debug: bool, db_url: str) -> None:
    """DivQuant - Correlation & Diversification Analysis CLI

    Analyze pairwise correlations between stocks and pick a
    diversified subset with low mutual correlation.

    \b
    Quick Start:
        divq analyze 005930 000660 035420 --prices-csv closes.csv
        divq results                 Show stored results
        divq optimize 005930 000660 035420 --target 2
    """
    ctx.ensure_object(dict)
    ctx.obj['debug'] = debug
    ctx.obj['db_url'] = db_url

    _configure_logging(debug)

    if version:
        click.echo(f"divquant version {__version__}")
        ctx.exit(0)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# Import and register commands
from cli.commands.analyze import analyze  # noqa: E402
from cli.commands.results import results, pairs, guide  # noqa: E402
from cli.commands.heatmap import heatmap  # noqa: E402
from cli.commands.optimize import optimize  # noqa: E402
from cli.commands.clear import clear  # noqa: E402

cli.add_command(analyze)
cli.add_command(results)
cli.add_command(pairs)
cli.add_command(guide)
cli.add_command(heatmap)
cli.add_command(optimize)
cli.add_command(clear)


def main() -> None:
    """Main entry point for the CLI."""
    try:
        cli(obj={})
    except KeyboardInterrupt:
        click.echo("\nOperation cancelled.")
        sys.exit(130)
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
