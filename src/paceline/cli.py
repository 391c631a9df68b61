"""CLI for the paceline activity analytics engine."""

import logging
from datetime import date

import click


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log engine decisions (DEBUG).")
def main(verbose: bool) -> None:
    """paceline: splits, pace, heart-rate zones and period stats for tracked activities."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _resolve_max_hr(max_hr: float | None, age: int | None) -> float:
    from paceline.analytics.pipeline import DEFAULT_MAX_HR
    from paceline.models import estimated_max_heart_rate

    if max_hr is not None:
        return max_hr
    if age is not None:
        return float(estimated_max_heart_rate(age))
    return float(DEFAULT_MAX_HR)


@main.command("analyze")
@click.argument("file", type=click.Path(exists=True))
@click.option("--external", "-e", type=click.Path(exists=True), default=None,
              help="Activities from the external health sync, reconciled with FILE.")
@click.option("--max-hr", type=float, default=None, help="Reference max heart rate.")
@click.option("--age", type=int, default=None, help="Estimate max heart rate from age.")
@click.option("--stride", type=click.FloatRange(min=0, min_open=True), default=100.0,
              help="Pace series stride in meters.")
@click.option("--output", "-o", default=None, help="Write analytics JSON to file.")
def analyze_cmd(
    file: str,
    external: str | None,
    max_hr: float | None,
    age: int | None,
    stride: float,
    output: str | None,
) -> None:
    """Per-activity splits, pace and heart-rate zones."""
    import json

    from paceline.analytics.pipeline import AnalyticsConfig, analyze_many
    from paceline.analytics.summary import dominant_zone
    from paceline.analytics.zones import HeartRateZone
    from paceline.loader import load_activities
    from paceline.models import ActivitySource
    from paceline.reconcile import reconcile

    app = load_activities(file, ActivitySource.APP)
    ext = load_activities(external, ActivitySource.EXTERNAL_HEALTH_SYNC) if external else []
    activities = [r.activity for r in reconcile(app, ext)]

    config = AnalyticsConfig(max_heart_rate=_resolve_max_hr(max_hr, age), pace_stride_m=stride)
    results = analyze_many(activities, config)

    for act, res in zip(activities, results):
        click.echo(f"\n{'=' * 60}")
        click.echo(f"  {act.name or act.id}  ({act.activity_type.value}, {act.source.value})")
        click.echo(f"  {act.start_time:%Y-%m-%d %H:%M}  {res.distance_km:.2f} km  "
                   f"avg {res.formatted_avg_pace}/km")
        click.echo(f"{'=' * 60}")
        if not res.splits:
            click.echo("  No route; summary-only activity.")
        for s in res.splits:
            hr = f"{s.avg_heart_rate} bpm" if s.avg_heart_rate is not None else "-"
            tag = " (partial)" if s.is_partial else ""
            click.echo(f"  km {s.index:>2}  {s.distance_m:7.0f} m  {s.formatted_pace:>6}/km  "
                       f"+{s.elevation_gain_m:.0f}/-{s.elevation_loss_m:.0f} m  {hr}{tag}")
        if res.zone_distribution.total_s > 0:
            click.echo("  Zones:")
            for zone in HeartRateZone:
                click.echo(f"    {zone.label:<9} {res.zone_distribution.percentage(zone):5.1f}%")
            top = dominant_zone(res)
            if top is not None:
                click.echo(f"  Mostly {top.label}; HR avg {res.avg_heart_rate} "
                           f"max {res.max_heart_rate} min {res.min_heart_rate}")

    if output:
        with open(output, "w") as f:
            json.dump([r.to_dict() for r in results], f, indent=2)
        click.echo(f"\nAnalytics written to {output}")


@main.command("reconcile")
@click.argument("app_file", type=click.Path(exists=True))
@click.argument("external_file", type=click.Path(exists=True))
@click.option("--overlap", default=0.8, help="Minimum window overlap for id-less matches.")
def reconcile_cmd(app_file: str, external_file: str, overlap: float) -> None:
    """Deduplicate in-app and externally synced activities."""
    from paceline.loader import load_activities
    from paceline.models import ActivitySource
    from paceline.reconcile import reconcile

    app = load_activities(app_file, ActivitySource.APP)
    ext = load_activities(external_file, ActivitySource.EXTERNAL_HEALTH_SYNC)
    results = reconcile(app, ext, overlap_threshold=overlap)

    click.echo(f"{len(app)} app + {len(ext)} external -> {len(results)} activities")
    for r in results:
        srcs = "+".join(sorted(s.value for s in r.sources))
        merged = f"  merged: {', '.join(r.merged_ids)}" if r.is_merged else ""
        click.echo(f"  {r.activity.id:<24} {r.activity.start_time:%Y-%m-%d %H:%M}  {srcs}{merged}")


@main.command("stats")
@click.argument("file", type=click.Path(exists=True))
@click.option("--external", "-e", type=click.Path(exists=True), default=None,
              help="Activities from the external health sync.")
@click.option("--days", default=7, help="Period length in days.")
@click.option("--today", "today_str", default=None, help="Reference day (YYYY-MM-DD).")
@click.option("--output", "-o", default=None, help="Write statistics JSON to file.")
def stats_cmd(
    file: str,
    external: str | None,
    days: int,
    today_str: str | None,
    output: str | None,
) -> None:
    """Period totals compared with the preceding period."""
    from paceline.analytics.pipeline import AnalyticsConfig, run_pipeline
    from paceline.loader import load_activities
    from paceline.models import ActivitySource

    today = date.fromisoformat(today_str) if today_str else date.today()
    app = load_activities(file, ActivitySource.APP)
    ext = load_activities(external, ActivitySource.EXTERNAL_HEALTH_SYNC) if external else []

    result = run_pipeline(app, ext, AnalyticsConfig(period_days=days), today=today)
    stats = result.statistics

    click.echo(f"\n{'=' * 60}")
    click.echo(f"  Last {days} days to {today.isoformat()}")
    click.echo(f"{'=' * 60}")
    click.echo(f"  Distance:   {stats.period.total_distance_km:.2f} km "
               f"({stats.period.average_distance_per_day:.2f} km/day)")
    click.echo(f"  Steps:      {stats.period.total_steps} "
               f"({stats.period.average_steps_per_day}/day)")
    click.echo(f"  Calories:   {stats.period.total_calories}")
    click.echo(f"  Points:     {stats.period.total_points}")
    click.echo(f"  Yesterday:  {stats.yesterday_distance_km:.2f} km")
    click.echo(f"  {stats.formatted_percentage_change}")
    click.echo(f"{'=' * 60}")

    if output:
        with open(output, "w") as f:
            f.write(stats.to_json())
        click.echo(f"\nStatistics written to {output}")


@main.command("goal")
@click.option("--steps-goal", default=0.0, help="Daily steps goal (<= 0 uses the default).")
@click.option("--distance-goal", default=0.0, help="Daily distance goal in km.")
@click.option("--calories-goal", default=0.0, help="Daily calories goal.")
@click.option("--steps", default=0, help="Steps so far today.")
@click.option("--distance", default=0.0, help="Distance so far today (km).")
@click.option("--calories", default=0, help="Calories so far today.")
def goal_cmd(
    steps_goal: float,
    distance_goal: float,
    calories_goal: float,
    steps: int,
    distance: float,
    calories: int,
) -> None:
    """Progress against a daily goal."""
    from paceline.analytics.goals import ActivityGoal, evaluate_goal

    progress = evaluate_goal(ActivityGoal(
        daily_steps_goal=steps_goal,
        daily_distance_goal_km=distance_goal,
        daily_calories_goal=calories_goal,
        current_steps=steps,
        current_distance_km=distance,
        current_calories=calories,
    ))
    g = progress.goal
    click.echo(f"  Steps:    {steps}/{g.daily_steps_goal:.0f}  {progress.steps_progress:.0%}")
    click.echo(f"  Distance: {distance:.2f}/{g.daily_distance_goal_km:.2f} km  "
               f"{progress.distance_progress:.0%}")
    click.echo(f"  Calories: {calories}/{g.daily_calories_goal:.0f}  {progress.calories_progress:.0%}")


if __name__ == "__main__":
    main()
