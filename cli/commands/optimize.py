"""
Optimize command - Greedy low-correlation selection.

Usage:
    divq optimize TICKERS... [OPTIONS]
"""

import click

from cli.context import build_optimizer, echo_json, fail, json_option, session_option


@click.command()
@click.argument('tickers', nargs=-1, required=True)
@click.option('--target', '-n', type=int, default=5, show_default=True,
              help='Number of tickers to select.')
@click.option('--threshold', '-t', type=float, default=0.7, show_default=True,
              help='High correlation threshold (0~1).')
@click.option('--window', '-w', type=click.Choice(['3M', '6M', '1Y'], case_sensitive=False),
              default='1Y', show_default=True, help='Correlation window used for scoring.')
@session_option
@json_option
@click.pass_context
def optimize(ctx: click.Context, tickers: tuple, target: int, threshold: float,
             window: str, session_id: str, as_json: bool) -> None:
    """Select a diversified subset of analyzed tickers.

    \b
    Examples:
        divq optimize 005930 000660 035420 --target 2
        divq optimize 005930 000660 035420 -w 6M -t 0.6
    """
    try:
        result = build_optimizer(ctx).optimize(
            session_id=session_id,
            tickers=list(tickers),
            high_correlation_threshold=threshold,
            target_stock_count=target,
            analysis_window=window.upper(),
        )
    except Exception as e:
        fail(ctx, e)
        return

    if as_json:
        echo_json(result.to_dict())
        return

    click.echo()
    click.echo(f"=== Diversification ({result.analysis_window.value}) ===")
    click.echo(f"{'Rank':<6} {'Ticker':<10} {'Score':>8} {'Avg Corr':>9}")
    click.echo("-" * 36)
    for score in result.selected_stocks:
        click.echo(
            f"{score.selection_rank:<6} {score.ticker:<10} "
            f"{score.diversification_score:>8.4f} {score.avg_correlation:>+9.4f}"
        )

    excluded = [score for score in result.excluded_stocks if score.exclusion_reason]
    if excluded:
        click.echo()
        click.echo("Excluded:")
        for score in excluded:
            click.echo(f"  {score.ticker:<10} {score.exclusion_reason}")

    summary = result.summary
    click.echo()
    click.echo(f"Selected {summary.output_stock_count}/{summary.target_stock_count} "
               f"(portfolio avg |corr| {result.portfolio_avg_correlation:.4f}, "
               f"score {result.portfolio_diversification_score:.2f})")
    if summary.shortfall:
        click.echo(f"Target not reached: {summary.shortfall} short.")
    click.echo()
