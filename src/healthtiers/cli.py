"""CLI for the healthtiers metrics engine."""

from __future__ import annotations

import logging

import click

from healthtiers.analytics.recovery import RecoveryFormula
from healthtiers.loader import LoaderError, read_metrics, read_raw_days, write_jsonl


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def main(verbose: bool) -> None:
    """healthtiers: tiered daily health metrics and scores."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _load_metrics(path: str):
    try:
        return read_metrics(path)
    except LoaderError as exc:
        raise click.UsageError(str(exc)) from exc


def _fmt(value: float | None, spec: str = ".0f") -> str:
    return "-" if value is None else format(value, spec)


@main.command()
@click.argument("raw_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--output", "-o", default=None, help="Write metrics as JSONL.")
@click.option("--history", "history_file", default=None, type=click.Path(exists=True, dir_okay=False),
              help="Previously computed metrics JSONL used as history.")
@click.option("--age", default=30, type=int, help="Age, for max HR and sleep need.")
@click.option("--max-hr", default=None, type=float, help="Max HR override.")
@click.option("--formula", type=click.Choice([f.value for f in RecoveryFormula]), default="auto",
              help="Recovery formula.")
@click.option("--hours-needed", default=None, type=float, help="Sleep need override, hours.")
@click.option("--workers", default=4, type=click.IntRange(min=1), help="Threads for Tier-1 aggregation.")
def process(
    raw_file: str,
    output: str | None,
    history_file: str | None,
    age: int,
    max_hr: float | None,
    formula: str,
    hours_needed: float | None,
    workers: int,
) -> None:
    """Score raw daily samples from a JSONL file."""
    from healthtiers.analytics.pipeline import EngineConfig, process_history

    try:
        raw_days = read_raw_days(raw_file)
    except LoaderError as exc:
        raise click.UsageError(str(exc)) from exc
    history = _load_metrics(history_file) if history_file else []

    config = EngineConfig(
        age=age,
        max_heart_rate=max_hr,
        recovery_formula=RecoveryFormula(formula),
        hours_needed=hours_needed,
        max_workers=workers,
    )
    metrics = process_history(raw_days, history, config)

    processed = {r.day for r in raw_days}
    click.echo(f"{'day':<12}{'recovery':>10}{'strain':>8}{'sleep':>8}{'perf':>6}  confidence")
    for m in metrics:
        if m.day not in processed:
            continue
        recovery = m.recovery.score if m.recovery else None
        strain = m.strain.score if m.strain else None
        sleep = m.sleep.total_sleep_hours if m.sleep else None
        perf = m.sleep_performance.score if m.sleep_performance else None
        confidence = m.recovery.confidence.value if m.recovery else "-"
        click.echo(
            f"{m.day.isoformat():<12}{_fmt(recovery):>10}{_fmt(strain):>8}"
            f"{_fmt(sleep, '.1f'):>8}{_fmt(perf):>6}  {confidence}"
        )

    if output:
        count = write_jsonl(output, metrics)
        click.echo(f"Wrote {count} day(s) to {output}")


@main.command()
@click.argument("metrics_file", type=click.Path(exists=True, dir_okay=False))
def patterns(metrics_file: str) -> None:
    """Detect behavioral patterns in computed metrics."""
    from healthtiers.analytics.patterns import detect_patterns

    found = detect_patterns(_load_metrics(metrics_file))
    if not found:
        click.echo("No patterns detected.")
        return

    for p in found:
        click.echo(f"{p.pattern_type.display_name} (r={p.correlation:+.2f}, n={p.sample_size}, "
                   f"{p.confidence.value} confidence)")
        click.echo(f"  {p.description}")
        click.echo(f"  -> {p.recommendation}")


@main.command()
@click.argument("metrics_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--start", default=None, type=click.DateTime(formats=["%Y-%m-%d"]),
              help="Any day in the week to show (default: latest).")
def week(metrics_file: str, start) -> None:
    """Summarize a calendar week and compare it with the week before."""
    from healthtiers.analytics.week import (
        aggregate_week,
        compare_weeks,
        format_week_range,
        previous_week_start,
        week_start,
    )

    metrics = _load_metrics(metrics_file)
    if not metrics:
        click.echo("No metrics.")
        return

    anchor = start.date() if start else max(m.day for m in metrics)
    current = aggregate_week(metrics, week_start(anchor))
    previous = aggregate_week(metrics, previous_week_start(current.start))
    comparison = compare_weeks(current, previous)

    click.echo(f"Week of {format_week_range(current.start)} ({current.days_with_data} days)")
    click.echo(f"  Recovery: {_fmt(current.avg_recovery)} ({comparison.recovery_trend})")
    click.echo(f"  Strain:   {_fmt(current.avg_strain)} ({comparison.strain_trend})")
    click.echo(f"  Sleep:    {current.total_sleep_hours:.1f}h ({comparison.sleep_trend})")
    if current.consistency is not None and not current.consistency.insufficient_data:
        click.echo(f"  Consistency: {current.consistency.category.value} ({comparison.consistency_trend})")
    click.echo(comparison.overall_insight)


@main.command()
@click.argument("metrics_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--day", default=None, type=click.DateTime(formats=["%Y-%m-%d"]),
              help="Day to check (default: latest).")
def check(metrics_file: str, day) -> None:
    """Five-metric health check and insights for one day."""
    from healthtiers.analytics.baseline import build_baseline
    from healthtiers.analytics.insights import generate_insights
    from healthtiers.analytics.monitor import evaluate_health, evaluate_with_defaults

    metrics = _load_metrics(metrics_file)
    if not metrics:
        click.echo("No metrics.")
        return

    target = day.date() if day else max(m.day for m in metrics)
    current = next((m for m in metrics if m.day == target), None)
    if current is None:
        raise click.UsageError(f"No metrics for {target.isoformat()}")

    baseline = build_baseline(metrics, target)
    if baseline.avg_hrv is None and baseline.avg_resting_hr is None:
        baseline = None
        result = evaluate_with_defaults(current)
    else:
        result = evaluate_health(current, baseline)

    click.echo(f"{target.isoformat()}: {result.metrics_in_range}/{result.total_metrics} metrics in range")
    if current.headline:
        click.echo(f"  {current.headline}")
    if result.flagged:
        click.echo(f"  Flagged: {', '.join(result.flagged)}")
    for insight in generate_insights(current, baseline):
        click.echo(f"  * {insight}")


@main.command()
@click.argument("metrics_file", type=click.Path(exists=True, dir_okay=False))
def quality(metrics_file: str) -> None:
    """Report data coverage, gaps and baseline adequacy."""
    from healthtiers.analytics.baseline import assess_baseline_quality
    from healthtiers.analytics.gaps import gap_summary
    from healthtiers.analytics.pipeline import build_report

    report = build_report(_load_metrics(metrics_file))
    dq = report.data_quality

    click.echo(f"Data quality: {dq.score:.0f}/100 ({dq.grade.value})")
    click.echo(f"  HRV {dq.hrv_coverage:.0%}  sleep {dq.sleep_coverage:.0%}  "
               f"HR {dq.heart_rate_coverage:.0%}  activity {dq.activity_coverage:.0%}")
    click.echo(f"  7-day baseline: {assess_baseline_quality(report.baseline_7).value}")
    click.echo(f"  28-day baseline: {assess_baseline_quality(report.baseline_28).value}")
    click.echo(gap_summary(report.gaps))
    for rec in dq.recommendations:
        click.echo(f"  - {rec}")


if __name__ == "__main__":
    main()
