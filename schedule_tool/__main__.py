"""CLI entry point.

Usage:
    python -m schedule_tool schedule --start 2024-01-01 --days 5
    python -m schedule_tool duration --quote quote.json
    python -m schedule_tool profit --jobs jobs.json --start 2024-01-01 --end 2024-01-31 \
        --report-out Profit.json --excel-out Profit.xlsx
    python -m schedule_tool calendar --jobs jobs.json --month 2024-01-01
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import typer

from schedule_tool.config import Settings, load_settings
from schedule_tool.models import Job, JobRecordError

app = typer.Typer(help="Job scheduling and profit proration tools.", no_args_is_help=True)

_state: dict[str, Settings] = {}


def _settings() -> Settings:
    return _state.get("settings") or load_settings()


def _parse_date(value: str, option: str):
    from schedule_tool.engine.dates import from_ymd

    parsed = from_ymd(value)
    if parsed is None:
        typer.echo(f"ERROR: {option} must be a YYYY-MM-DD date, got: {value}", err=True)
        raise typer.Exit(1)
    return parsed


def _load_jobs(path: str) -> list[Job]:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    rows = data.get("jobs", []) if isinstance(data, dict) else data
    return [Job.from_record(row) for row in rows]


@app.callback()
def main(
    config: Optional[str] = typer.Option(None, "--config", help="Path to YAML settings file"),
) -> None:
    settings = load_settings(config)
    _state["settings"] = settings
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command()
def schedule(
    start: str = typer.Option(..., "--start", help="Start date (YYYY-MM-DD)"),
    days: int = typer.Option(1, "--days", help="Duration in days (1 = same-day job)"),
    weekends: bool = typer.Option(False, "--weekends/--no-weekends", help="Count Saturday/Sunday as working days"),
) -> None:
    """Compute the end date for a job."""
    from schedule_tool.engine.scheduler import compute_schedule

    result = compute_schedule(_parse_date(start, "--start"), days, weekends)
    typer.echo(f"Start:    {result.start_date.isoformat()}")
    typer.echo(f"Days:     {result.duration_days}")
    typer.echo(f"End:      {result.end_date.isoformat()}")
    typer.echo(f"Weekends: {'yes' if result.include_weekends else 'no'}")


@app.command()
def duration(
    quote: str = typer.Option(..., "--quote", help="Path to a quote JSON record"),
    hours_per_day: Optional[float] = typer.Option(None, "--hours-per-day", help="Working hours per day"),
    fallback: Optional[int] = typer.Option(
        None, "--fallback", help="Days to use when the quote has no duration hints (default from settings)",
    ),
) -> None:
    """Derive a job duration (and expense lines) from a quote's metadata."""
    from schedule_tool.parsers.quote_meta import (
        derive_duration_days_from_quote,
        extract_expenses_from_quote,
    )

    record = json.loads(Path(quote).read_text(encoding="utf-8"))
    defaults = _settings().scheduling
    hpd = hours_per_day or defaults.hours_per_day
    if fallback is None:
        fallback = defaults.default_duration_days

    days = derive_duration_days_from_quote(record, fallback, hpd)
    typer.echo(f"Duration: {days} day(s)")

    lines = extract_expenses_from_quote(record)
    typer.echo(f"Expenses detected: {len(lines)}")
    for line in lines:
        typer.echo(f"  - {line.name}: {line.quantity:g} x {line.unit_cost:.2f} = {line.total:.2f}")


@app.command()
def profit(
    jobs: str = typer.Option(..., "--jobs", help="Path to a JSON list of job records"),
    start: str = typer.Option(..., "--start", help="Period start (YYYY-MM-DD)"),
    end: str = typer.Option(..., "--end", help="Period end (YYYY-MM-DD)"),
    policy: Optional[str] = typer.Option(None, "--policy", help="Proration policy: linear or on_completion"),
    report_out: Optional[str] = typer.Option(None, "--report-out", help="Write JSON report to this path"),
    excel_out: Optional[str] = typer.Option(None, "--excel-out", help="Write Excel report to this path"),
) -> None:
    """Prorate job profit into a reporting period."""
    from schedule_tool.engine.proration import ProrationPolicy, profit_for_period
    from schedule_tool.excel import generate_excel_report
    from schedule_tool.report import generate_report

    period_start = _parse_date(start, "--start")
    period_end = _parse_date(end, "--end")

    try:
        chosen = ProrationPolicy(policy) if policy else _settings().proration.policy
    except ValueError:
        typer.echo(f"ERROR: unknown policy: {policy}", err=True)
        raise typer.Exit(1)

    try:
        job_list = _load_jobs(jobs)
    except (OSError, json.JSONDecodeError, JobRecordError) as e:
        typer.echo(f"ERROR: cannot load jobs: {e}", err=True)
        raise typer.Exit(1)

    result = profit_for_period(job_list, period_start, period_end, chosen)

    typer.echo(f"Period: {period_start.isoformat()} to {period_end.isoformat()} ({chosen.value})")
    for c in result.contributions:
        label = c.job.title or c.job.id or "Job"
        typer.echo(f"  {label}: {c.overlap_days}/{c.effective_days} days -> {c.amount:.2f}")
    typer.echo(f"\n  PROFIT: {result.amount}")
    if result.estimated:
        typer.echo("  (estimated: some jobs have no recorded costs)")

    if report_out:
        generate_report(result, period_start, period_end, report_out, chosen)
        typer.echo(f"  Report saved to: {report_out}")
    if excel_out:
        generate_excel_report(result, period_start, period_end, excel_out)
        typer.echo(f"  Excel report saved to: {excel_out}")


@app.command()
def calendar(
    jobs: str = typer.Option(..., "--jobs", help="Path to a JSON list of job records"),
    month: str = typer.Option(..., "--month", help="Any date in the month (YYYY-MM-DD)"),
) -> None:
    """Print a month grid with the number of active jobs per day."""
    from schedule_tool.engine.calendar import jobs_by_day, month_matrix, month_summary

    anchor = _parse_date(month, "--month")
    try:
        job_list = _load_jobs(jobs)
    except (OSError, json.JSONDecodeError, JobRecordError) as e:
        typer.echo(f"ERROR: cannot load jobs: {e}", err=True)
        raise typer.Exit(1)

    by_day = jobs_by_day(job_list)
    typer.echo(" ".join(f"{d:>5}" for d in ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")))
    for week in month_matrix(anchor):
        cells = []
        for day in week:
            count = len(by_day.get(day.isoformat(), []))
            marker = f"{day.day}" + ("*" * min(count, 3))
            cells.append(f"{marker:>5}" if day.month == anchor.month else f"{'.':>5}")
        typer.echo(" ".join(cells))

    summary = month_summary(job_list, anchor)
    typer.echo(f"\nJobs starting this month: {summary.job_count}")
    typer.echo(f"Unprorated profit: {summary.profit:.2f}")


if __name__ == "__main__":
    app()
