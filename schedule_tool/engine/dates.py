"""Calendar date utilities.

All arithmetic runs on `datetime.date` values, i.e. local-midnight days with
no time-of-day component, so DST and timezone shifts never affect day counts.

Working days are Monday to Friday.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Optional, Union

DateLike = Union[date, datetime, str]

_YMD_RE = re.compile(r"^([0-9]{4})-([0-9]{2})-([0-9]{2})$")


@dataclass(frozen=True)
class DateWindow:
    start: date
    end: date


def to_local_midnight(value: DateLike) -> date:
    """Normalize a date-like value to its local calendar day.

    Raises ValueError for strings that are neither YYYY-MM-DD nor ISO-8601.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone()
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        parsed = from_ymd(value)
        if parsed is not None:
            return parsed
        return to_local_midnight(datetime.fromisoformat(value.strip()))
    raise ValueError(f"Cannot interpret {value!r} as a date")


def to_ymd(value: DateLike) -> str:
    return to_local_midnight(value).isoformat()


def from_ymd(text: Any) -> Optional[date]:
    """Parse a strict 'YYYY-MM-DD' string. Returns None instead of raising.

    Impossible calendar days such as 2024-02-31 are rejected.
    """
    if not text or not isinstance(text, str):
        return None
    m = _YMD_RE.match(text.strip())
    if not m:
        return None
    y, mo, d = int(m.group(1)), int(m.group(2)), int(m.group(3))
    if mo < 1 or mo > 12 or d < 1 or d > 31:
        return None
    try:
        return date(y, mo, d)
    except ValueError:
        return None


def add_days(value: DateLike, days: int) -> date:
    return to_local_midnight(value) + timedelta(days=days)


def is_weekend(value: DateLike) -> bool:
    return to_local_midnight(value).weekday() >= 5


def days_inclusive(a: DateLike, b: DateLike) -> int:
    """Calendar days from a to b inclusive; 0 when b is before a."""
    diff = (to_local_midnight(b) - to_local_midnight(a)).days
    return diff + 1 if diff >= 0 else 0


def count_weekdays_inclusive(a: DateLike, b: DateLike) -> int:
    """Count Mon-Fri days in [a, b] without walking every day."""
    start = to_local_midnight(a)
    end = to_local_midnight(b)
    if end < start:
        return 0

    total = days_inclusive(start, end)
    full_weeks, remainder = divmod(total, 7)
    workdays = full_weeks * 5

    start_dow = start.weekday()  # Monday=0, Sunday=6
    for i in range(remainder):
        if (start_dow + i) % 7 < 5:
            workdays += 1
    return workdays


def _whole_days(duration_days: Any) -> int:
    try:
        value = float(duration_days or 0)
    except (TypeError, ValueError):
        value = 0.0
    if not math.isfinite(value):
        value = 0.0
    return max(1, math.floor(value))


def add_working_days(
    start: DateLike,
    duration_days: Any,
    include_weekends: bool = False,
) -> date:
    """Return the end date of a job lasting `duration_days` from `start`.

    A duration of 1 is a same-day job. Without weekends, the start day counts
    only if it is a weekday.
    """
    start_day = to_local_midnight(start)
    days = _whole_days(duration_days)

    if include_weekends:
        return start_day + timedelta(days=days - 1)

    count = 0
    cur = start_day
    while True:
        if cur.weekday() < 5:
            count += 1
        if count == days:
            return cur
        cur += timedelta(days=1)


def ranges_overlap(
    a_start: DateLike, a_end: DateLike, b_start: DateLike, b_end: DateLike,
) -> bool:
    """Inclusive interval overlap."""
    a1, a2 = to_local_midnight(a_start), to_local_midnight(a_end)
    b1, b2 = to_local_midnight(b_start), to_local_midnight(b_end)
    return a1 <= b2 and b1 <= a2


def clamp_overlap(
    a_start: DateLike, a_end: DateLike, b_start: DateLike, b_end: DateLike,
) -> Optional[DateWindow]:
    """Intersection of two inclusive ranges, or None."""
    if not ranges_overlap(a_start, a_end, b_start, b_end):
        return None
    a1, a2 = to_local_midnight(a_start), to_local_midnight(a_end)
    b1, b2 = to_local_midnight(b_start), to_local_midnight(b_end)
    return DateWindow(start=max(a1, b1), end=min(a2, b2))


def overlap_working_days(
    job_start: DateLike,
    job_end: DateLike,
    period_start: DateLike,
    period_end: DateLike,
    include_weekends: bool = False,
) -> int:
    window = clamp_overlap(job_start, job_end, period_start, period_end)
    if window is None:
        return 0
    if include_weekends:
        return days_inclusive(window.start, window.end)
    return count_weekdays_inclusive(window.start, window.end)
