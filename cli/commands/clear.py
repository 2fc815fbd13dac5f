"""
Clear command - Delete stored analysis results.

Usage:
    divq clear [OPTIONS]
"""

import click

from cli.context import build_engine, fail, session_option


@click.command()
@session_option
@click.option('--yes', '-y', is_flag=True, help='Skip confirmation.')
@click.pass_context
def clear(ctx: click.Context, session_id: str, yes: bool) -> None:
    """Delete stored analysis results of a session."""
    if not yes and not click.confirm(f"Delete analysis results of session '{session_id}'?"):
        click.echo("Cancelled.")
        return

    try:
        build_engine(ctx).clear_results(session_id)
    except Exception as e:
        fail(ctx, e)
        return

    click.echo(f"Analysis results of session '{session_id}' deleted.")
