"""
Analyze command - Pairwise correlation analysis.

Usage:
    divq analyze TICKERS... [OPTIONS]
"""

import click

from cli.context import build_engine, echo_json, fail, fmt_corr, json_option, session_option


@click.command()
@click.argument('tickers', nargs=-1, required=True)
@click.option('--window', '-w', type=click.Choice(['3M', '6M', '1Y', 'ALL'], case_sensitive=False),
              default='ALL', show_default=True, help='Analysis window.')
@click.option('--threshold', '-t', type=float, default=0.7, show_default=True,
              help='High correlation threshold (0~1).')
@click.option('--prices-csv', type=click.Path(exists=True, dir_okay=False),
              help='Close price CSV (first column: date, other columns: tickers).')
@session_option
@json_option
@click.pass_context
def analyze(ctx: click.Context, tickers: tuple, window: str, threshold: float,
            prices_csv: str, session_id: str, as_json: bool) -> None:
    """Run correlation analysis for 2~10 tickers.

    Previous results of the session are replaced.

    \b
    Examples:
        divq analyze 005930 000660 --prices-csv closes.csv
        divq analyze 005930 000660 035420 -w 1Y -t 0.8 -s my-session
    """
    try:
        engine = build_engine(ctx, prices_csv)
        result = engine.analyze(session_id, list(tickers), window.upper(), threshold)
    except Exception as e:
        fail(ctx, e)
        return

    if as_json:
        echo_json(result.to_dict())
        return

    _print_summary(result)


def _print_summary(result) -> None:
    """Display analysis summary."""
    click.echo()
    click.echo(f"=== Correlation Analysis ({result.session_id}) ===")
    click.echo(f"Tickers: {', '.join(result.tickers)}")
    if result.analysis_start_date:
        click.echo(f"Period:  {result.analysis_start_date} ~ {result.analysis_end_date}")

    click.echo()
    if not result.high_correlation_pairs:
        click.echo("No highly correlated pairs.")
    else:
        click.echo(f"{'Pair':<20} {'Average':>9} {'Risk':<8}")
        click.echo("-" * 40)
        for pair in result.high_correlation_pairs:
            click.echo(
                f"{pair.ticker1 + '-' + pair.ticker2:<20} "
                f"{fmt_corr(pair.average_correlation):>9} "
                f"{pair.risk_level.value:<8}"
            )

    guide = result.diversification_guide
    if guide:
        click.echo()
        click.echo(f"Diversification score: {guide.overall_diversification_score:.2f} "
                   f"({guide.risk_assessment.value})")
    click.echo()
