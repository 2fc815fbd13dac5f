"""
Shared helpers for CLI commands.

Builds the engine/services from the group options and maps
DivQuant errors to exit codes (client errors: 2, others: 1).
"""

import json
import sys
from typing import Any, Optional

import click

EXIT_CLIENT_ERROR = 2
EXIT_SERVER_ERROR = 1

session_option = click.option(
    '--session', '-s', 'session_id', default='default', show_default=True,
    help='Analysis session ID.',
)
json_option = click.option('--json', 'as_json', is_flag=True, help='Output as JSON.')


def get_database(ctx: click.Context):
    """Open (and cache) the database for this invocation."""
    from divquant.database import DatabaseSession

    if 'db' not in ctx.obj:
        ctx.obj['db'] = DatabaseSession(ctx.obj.get('db_url'))
    return ctx.obj['db']


def build_provider(ctx: click.Context, prices_csv: Optional[str] = None):
    """CSV close prices when given, otherwise the prices table."""
    from divquant.correlation import DatabaseCorrelationProvider, PriceFrameCorrelationProvider

    if prices_csv:
        return PriceFrameCorrelationProvider.from_csv(prices_csv)
    return DatabaseCorrelationProvider(get_database(ctx))


def build_store(ctx: click.Context):
    from divquant.database import SqlCorrelationRepository

    return SqlCorrelationRepository(get_database(ctx))


def build_engine(ctx: click.Context, prices_csv: Optional[str] = None):
    from divquant.correlation import CorrelationAnalysisEngine

    return CorrelationAnalysisEngine(build_provider(ctx, prices_csv), build_store(ctx))


def build_optimizer(ctx: click.Context):
    from divquant.correlation import DiversificationService

    return DiversificationService(build_store(ctx), build_provider(ctx))


def echo_json(data: Any) -> None:
    click.echo(json.dumps(data, ensure_ascii=False, indent=2, default=str))


def fmt_corr(value: Optional[float]) -> str:
    return 'N/A' if value is None else f"{value:+.4f}"


def fail(ctx: click.Context, error: Exception) -> None:
    """Print the error and exit with the matching code."""
    from divquant.exceptions import is_client_error, to_error_response

    response = to_error_response(error)
    if is_client_error(error):
        click.echo(f"Error [{response['error_code']}]: {response['message']}", err=True)
        sys.exit(EXIT_CLIENT_ERROR)

    click.echo(f"Error [{response['error_code']}]: {response['message']} ({error})", err=True)
    if ctx.obj.get('debug'):
        import traceback
        traceback.print_exc()
    sys.exit(EXIT_SERVER_ERROR)
