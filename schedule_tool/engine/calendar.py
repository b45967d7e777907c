"""Calendar grid building for the jobs calendar.

Weeks are Monday-first; column 0 is Monday, column 6 is Sunday.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Sequence

from schedule_tool.engine.dates import (
    DateLike,
    add_working_days,
    is_weekend,
    ranges_overlap,
    to_local_midnight,
)
from schedule_tool.models import Job, JobStatus, normalize_status

MAX_LANES = 3
WEEKS_PER_MONTH_GRID = 6


@dataclass(frozen=True)
class WeekSegment:
    start_col: int
    end_col: int
    lane: int
    status: str
    job_id: str | None = None


@dataclass
class WeekLayout:
    segments: list[WeekSegment] = field(default_factory=list)
    lane_count: int = 1


@dataclass(frozen=True)
class MonthSummary:
    job_count: int
    profit: Decimal


def month_matrix(any_date: DateLike) -> list[list[date]]:
    """6x7 grid of days covering the month of `any_date`."""
    first = to_local_midnight(any_date).replace(day=1)
    start = first - timedelta(days=first.weekday())
    return [
        [start + timedelta(days=week * 7 + col) for col in range(7)]
        for week in range(WEEKS_PER_MONTH_GRID)
    ]


def _active_days(job: Job):
    cur = job.start_date
    while cur <= job.end_date:
        if job.include_weekends or not is_weekend(cur):
            yield cur
        cur += timedelta(days=1)


def jobs_by_day(jobs: Iterable[Job]) -> dict[str, list[Job]]:
    """Map 'YYYY-MM-DD' to the jobs active that day."""
    by_day: dict[str, list[Job]] = defaultdict(list)
    for job in jobs:
        for day in _active_days(job):
            by_day[day.isoformat()].append(job)
    return dict(by_day)


def _runs(active: Sequence[bool]) -> list[tuple[int, int]]:
    """Compress a column mask into inclusive (start_col, end_col) runs."""
    runs = []
    start = None
    for col, on in enumerate(active):
        if on and start is None:
            start = col
        elif not on and start is not None:
            runs.append((start, col - 1))
            start = None
    if start is not None:
        runs.append((start, len(active) - 1))
    return runs


def _week_mask(week_days: Sequence[DateLike], start: date, end: date, include_weekends: bool) -> list[bool]:
    mask = []
    for day in week_days:
        d = to_local_midnight(day)
        mask.append(start <= d <= end and (include_weekends or not is_weekend(d)))
    return mask


def week_segments(week_days: Sequence[DateLike], jobs: Iterable[Job]) -> WeekLayout:
    """Lay out job bars for one week, split at weekends for weekday-only jobs.

    Bars are packed into the first lane whose last bar ends before the new
    one starts.
    """
    layout = WeekLayout()
    lane_ends: list[int] = []

    for job in jobs:
        mask = _week_mask(week_days, job.start_date, job.end_date, job.include_weekends)
        status = normalize_status(job.status)
        if status not in {s.value for s in JobStatus}:
            status = JobStatus.SCHEDULED.value

        for start_col, end_col in _runs(mask):
            lane = 0
            while lane < len(lane_ends) and lane_ends[lane] >= start_col:
                lane += 1
            if lane == len(lane_ends):
                lane_ends.append(end_col)
            else:
                lane_ends[lane] = end_col
            layout.segments.append(
                WeekSegment(start_col=start_col, end_col=end_col, lane=lane, status=status, job_id=job.id)
            )

    layout.lane_count = min(MAX_LANES, max(1, len(lane_ends)))
    return layout


def span_segments(
    week_days: Sequence[DateLike],
    start: DateLike,
    days: int,
    include_weekends: bool = False,
) -> list[tuple[int, int]]:
    """Preview runs for a prospective job of `days` starting on `start`."""
    s = to_local_midnight(start)
    e = add_working_days(s, days, include_weekends)
    return _runs(_week_mask(week_days, s, e, include_weekends))


def badge_status(jobs: Iterable[Job]) -> str:
    statuses = {normalize_status(j.status) for j in jobs}
    if JobStatus.IN_PROGRESS.value in statuses:
        return JobStatus.IN_PROGRESS.value
    if JobStatus.COMPLETE.value in statuses:
        return JobStatus.COMPLETE.value
    return JobStatus.SCHEDULED.value


def jobs_in_window(jobs: Iterable[Job], start: DateLike, end: DateLike) -> list[Job]:
    return [j for j in jobs if ranges_overlap(j.start_date, j.end_date, start, end)]


def month_summary(jobs: Iterable[Job], month: DateLike) -> MonthSummary:
    """Jobs starting in `month` and their unprorated profit."""
    m = to_local_midnight(month)
    in_month = [j for j in jobs if (j.start_date.year, j.start_date.month) == (m.year, m.month)]
    profit = sum((j.profit for j in in_month), Decimal("0"))
    return MonthSummary(job_count=len(in_month), profit=profit)


def search_jobs(jobs: Iterable[Job], text: str) -> list[Job]:
    needle = (text or "").strip().lower()
    jobs = list(jobs)
    if not needle:
        return jobs
    return [
        j for j in jobs
        if needle in " ".join(filter(None, [j.title, j.client_name, j.site_address])).lower()
    ]
