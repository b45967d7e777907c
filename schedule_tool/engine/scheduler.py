"""Job scheduling: turns (start, duration, weekend rule) into consistent job dates.

Job creation and rescheduling both go through `compute_schedule`, so the same
inputs always produce the same end date.
"""

from __future__ import annotations

import math
from typing import Any, Optional

from schedule_tool.engine.dates import DateLike, add_working_days, to_local_midnight
from schedule_tool.models import Job, Schedule
from schedule_tool.parsers.money import to_number
from schedule_tool.parsers.quote_meta import QuoteLike, derive_duration_days_from_quote


def _floor_days(duration_days: Any) -> int:
    number = to_number(duration_days)
    return max(1, math.floor(number or 1))


def compute_schedule(
    start_date: DateLike,
    duration_days: Any,
    include_weekends: bool = False,
) -> Schedule:
    """Derive the end date from start + duration under the weekend rule."""
    start = to_local_midnight(start_date)
    days = _floor_days(duration_days)
    end = add_working_days(start, days, include_weekends)
    return Schedule(
        start_date=start,
        duration_days=days,
        end_date=end,
        include_weekends=bool(include_weekends),
    )


def duration_for_quote(
    quote: QuoteLike,
    override_days: Optional[Any] = None,
    profile_hours_per_day: float = 10,
    fallback_days: Any = 1,
) -> int:
    """Days to book for a job created from `quote`; an explicit override wins."""
    override = to_number(override_days)
    if override is not None:
        return max(1, math.ceil(override))
    return derive_duration_days_from_quote(quote, fallback_days, profile_hours_per_day)


def schedule_from_quote(
    quote: QuoteLike,
    start_date: DateLike,
    include_weekends: bool = False,
    override_days: Optional[Any] = None,
    profile_hours_per_day: float = 10,
    fallback_days: Any = 1,
) -> Schedule:
    days = duration_for_quote(quote, override_days, profile_hours_per_day, fallback_days)
    return compute_schedule(start_date, days, include_weekends)


def reschedule(
    job: Job,
    start_date: DateLike,
    duration_days: Any,
    include_weekends: bool,
) -> Job:
    """Return a copy of `job` moved to a new start/duration/weekend rule."""
    return job.with_schedule(compute_schedule(start_date, duration_days, include_weekends))
