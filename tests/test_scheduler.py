"""Tests for job scheduling."""

import json
import pytest
from datetime import date
from decimal import Decimal

from schedule_tool.engine.dates import count_weekdays_inclusive
from schedule_tool.engine.scheduler import (
    compute_schedule,
    duration_for_quote,
    reschedule,
    schedule_from_quote,
)
from schedule_tool.models import Job


class TestComputeSchedule:
    def test_weekdays_only(self):
        s = compute_schedule("2024-01-01", 5, False)
        assert s.start_date == date(2024, 1, 1)
        assert s.end_date == date(2024, 1, 5)
        assert s.duration_days == 5
        assert s.include_weekends is False

    def test_with_weekends(self):
        s = compute_schedule(date(2024, 1, 5), 3, True)
        assert s.end_date == date(2024, 1, 7)

    def test_duration_floored_and_clamped(self):
        assert compute_schedule("2024-01-01", 2.7).duration_days == 2
        assert compute_schedule("2024-01-01", 0).duration_days == 1
        assert compute_schedule("2024-01-01", None).duration_days == 1

    def test_end_consistent_with_duration(self):
        s = compute_schedule("2024-02-28", 7, False)
        assert count_weekdays_inclusive(s.start_date, s.end_date) == s.duration_days

    def test_to_record(self):
        assert compute_schedule("2024-01-01", 6).to_record() == {
            "start_date": "2024-01-01",
            "duration_days": 6,
            "end_date": "2024-01-08",
            "include_weekends": False,
        }


class TestQuoteDuration:
    def test_override_wins_and_is_ceiled(self):
        quote = {"job_details": json.dumps({"ai_meta": {"days": 9}})}
        assert duration_for_quote(quote, override_days=2.5) == 3

    def test_derived_when_no_override(self):
        quote = {"job_details": json.dumps({"ai_meta": {"estimated_hours": 25, "hours_per_day": 10}})}
        assert duration_for_quote(quote) == 3

    def test_fallback_when_no_metadata(self):
        assert duration_for_quote({"job_details": None}, fallback_days=3) == 3
        assert duration_for_quote({"job_details": "{}"}, fallback_days=2.2) == 3

    def test_metadata_beats_fallback(self):
        quote = {"job_details": {"ai_meta": {"days": 2}}}
        assert duration_for_quote(quote, fallback_days=5) == 2

    def test_schedule_from_quote(self):
        quote = {"job_details": {"ai_meta": {"days": 6}}}
        s = schedule_from_quote(quote, "2024-01-01")
        assert s.end_date == date(2024, 1, 8)


class TestReschedule:
    def _job(self) -> Job:
        return Job(
            start_date=date(2024, 1, 1),
            end_date=date(2024, 1, 5),
            duration_days=5,
            total=Decimal("500"),
            id="job-1",
        )

    def test_matches_creation_time_computation(self):
        moved = reschedule(self._job(), "2024-01-10", 4, False)
        created = compute_schedule("2024-01-10", 4, False)
        assert (moved.start_date, moved.end_date, moved.duration_days) == (
            created.start_date, created.end_date, created.duration_days,
        )

    def test_preserves_other_fields(self):
        moved = reschedule(self._job(), "2024-01-10", 4, True)
        assert moved.id == "job-1"
        assert moved.total == Decimal("500")
        assert moved.include_weekends is True
        assert moved.end_date == date(2024, 1, 13)

    def test_original_untouched(self):
        job = self._job()
        reschedule(job, "2024-02-01", 2, False)
        assert job.start_date == date(2024, 1, 1)

    @pytest.mark.parametrize("weekends", [True, False])
    def test_deterministic(self, weekends):
        a = reschedule(self._job(), "2024-03-29", 8, weekends)
        b = reschedule(self._job(), "2024-03-29", 8, weekends)
        assert a.end_date == b.end_date
