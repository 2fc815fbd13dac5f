"""
Heatmap command - Heatmap matrices per window.

Usage:
    divq heatmap [TICKERS...] [OPTIONS]
"""

import click

from cli.context import build_engine, echo_json, fail, json_option, session_option


@click.command()
@click.argument('tickers', nargs=-1)
@session_option
@json_option
@click.pass_context
def heatmap(ctx: click.Context, tickers: tuple, session_id: str, as_json: bool) -> None:
    """Show heatmap data (3M, 6M, 1Y).

    Without TICKERS every analyzed ticker is used as an axis label.
    """
    try:
        data = build_engine(ctx).generate_heatmap(session_id, list(tickers) or None)
    except Exception as e:
        fail(ctx, e)
        return

    if as_json:
        echo_json(data.to_dict())
        return

    click.echo()
    for period in data.period_data:
        click.echo(
            f"[{period.window_name}] min {period.min_value:+.4f}  "
            f"max {period.max_value:+.4f}  avg {period.avg_value:+.4f}"
        )
        click.echo(" " * 10 + "".join(f"{label:>10}" for label in data.labels))
        for label, row in zip(data.labels, period.matrix):
            click.echo(f"{label:<10}" + "".join(f"{value:>10.4f}" for value in row))
        click.echo()
