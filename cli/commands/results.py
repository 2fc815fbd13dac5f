"""
Result commands - Stored results, correlated pairs and diversification guide.

Usage:
    divq results [OPTIONS]
    divq pairs [OPTIONS]
    divq guide [OPTIONS]
"""

import click

from cli.context import build_engine, echo_json, fail, fmt_corr, json_option, session_option

threshold_option = click.option('--threshold', '-t', type=float, default=0.7, show_default=True,
                                help='High correlation threshold (0~1).')


@click.command()
@threshold_option
@session_option
@json_option
@click.pass_context
def results(ctx: click.Context, threshold: float, session_id: str, as_json: bool) -> None:
    """Show stored analysis results.

    \b
    Examples:
        divq results
        divq results -s my-session --json
    """
    try:
        result = build_engine(ctx).get_results(session_id, threshold)
    except Exception as e:
        fail(ctx, e)
        return

    if as_json:
        echo_json(result.to_dict())
        return

    click.echo()
    if result.is_empty:
        click.echo(f"No analysis results for session '{session_id}'.")
        return

    click.echo(f"=== Analysis Results ({session_id}) ===")
    click.echo(f"Tickers: {', '.join(result.tickers)}")
    for window, matrix in result.correlation_matrix.items():
        click.echo()
        click.echo(f"[{window.display_name}]")
        click.echo(matrix.to_frame().round(4).to_string())
    click.echo()


@click.command()
@threshold_option
@session_option
@json_option
@click.pass_context
def pairs(ctx: click.Context, threshold: float, session_id: str, as_json: bool) -> None:
    """Show pairs with |average correlation| >= threshold."""
    try:
        high_pairs = build_engine(ctx).get_high_correlation_pairs(session_id, threshold)
    except Exception as e:
        fail(ctx, e)
        return

    if as_json:
        echo_json([pair.to_dict() for pair in high_pairs])
        return

    click.echo()
    if not high_pairs:
        click.echo("No highly correlated pairs.")
        return

    click.echo(f"=== High Correlation Pairs (threshold {threshold}) ===")
    click.echo(f"{'Pair':<20} {'3M':>9} {'6M':>9} {'1Y':>9} {'Average':>9} {'Risk':<8}")
    click.echo("-" * 70)
    for pair in high_pairs:
        click.echo(
            f"{pair.ticker1 + '-' + pair.ticker2:<20} "
            f"{fmt_corr(pair.correlation_3m):>9} "
            f"{fmt_corr(pair.correlation_6m):>9} "
            f"{fmt_corr(pair.correlation_1y):>9} "
            f"{fmt_corr(pair.average_correlation):>9} "
            f"{pair.risk_level.value:<8}"
        )
    click.echo()


@click.command()
@threshold_option
@session_option
@json_option
@click.pass_context
def guide(ctx: click.Context, threshold: float, session_id: str, as_json: bool) -> None:
    """Show the diversification guide."""
    try:
        result = build_engine(ctx).generate_diversification_guide(session_id, threshold)
    except Exception as e:
        fail(ctx, e)
        return

    if as_json:
        echo_json(result.to_dict())
        return

    click.echo()
    click.echo("=== Diversification Guide ===")
    click.echo(f"Score:       {result.overall_diversification_score:.2f}")
    click.echo(f"Assessment:  {result.risk_assessment.value}")
    click.echo(f"High pairs:  {result.highly_correlated_pair_count}")
    click.echo(f"Avg |corr|:  {result.average_correlation:.3f}")

    for line in result.recommendations:
        click.echo(f"  - {line}")
    for line in result.warnings:
        click.echo(f"  ! {line}")
    click.echo()
