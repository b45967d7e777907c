"""Tests for job orchestration over the in-memory store."""

import json
import pytest
from datetime import date
from decimal import Decimal

from schedule_tool.config import SchedulingConfig, Settings
from schedule_tool.models import JobServiceError, Quote
from schedule_tool.service import JobService, make_pdf_name
from schedule_tool.store import InMemoryJobStore, StoreError


def _quote(**kw) -> dict:
    quote = {
        "id": "q1",
        "status": "sent",
        "user_id": "u1",
        "client_name": "Ada Lovelace",
        "job_summary": "Garden wall",
        "job_details": json.dumps({
            "ai_meta": {"estimated_hours": 25, "hours_per_day": 10},
            "materials": [{"name": "Bricks", "quantity": 200, "unit_cost": 0.5}],
        }),
        "pdf_url": "https://files.example/q1.pdf",
    }
    quote.update(kw)
    return quote


class FailingLinkStore(InMemoryJobStore):
    def update_quote(self, quote_id, patch):
        raise StoreError("permission denied")


class FailingRollbackStore(FailingLinkStore):
    def delete_job(self, job_id):
        raise StoreError("connection reset")


class FailingExpenseStore(InMemoryJobStore):
    def insert_expenses(self, rows):
        raise StoreError("expenses table unavailable")


class TestCreateFromQuote:
    def test_creates_scheduled_job(self):
        store = InMemoryJobStore([_quote()])
        result = JobService(store).create_from_quote("q1", "2024-01-01")

        job = result.job
        assert result.created is True
        assert job.title == "Garden wall"
        assert job.status == "scheduled"
        assert job.duration_days == 3
        assert job.start_date == date(2024, 1, 1)
        assert job.end_date == date(2024, 1, 3)
        assert job.source_quote_id == "q1"
        assert store.quotes["q1"]["status"] == "accepted"
        assert store.quotes["q1"]["job_id"] == job.id
        assert result.quote.job_id == job.id

    def test_stored_dates_are_consistent(self):
        store = InMemoryJobStore([_quote()])
        job = JobService(store).create_from_quote("q1", "2024-01-04", override_days=4).job
        row = store.jobs[job.id]
        assert row["start_date"] == "2024-01-04"
        assert row["duration_days"] == 4
        assert row["end_date"] == "2024-01-09"
        assert row["include_weekends"] is False

    def test_include_weekends_default_from_settings(self):
        settings = Settings(scheduling=SchedulingConfig(include_weekends=True))
        store = InMemoryJobStore([_quote()])
        job = JobService(store, settings).create_from_quote("q1", "2024-01-05").job
        assert job.include_weekends is True
        assert job.end_date == date(2024, 1, 7)

    def test_profile_hours_per_day(self):
        store = InMemoryJobStore([_quote(job_details={"ai_meta": {"estimated_hours": 24}})])
        job = JobService(store).create_from_quote("q1", "2024-01-01", profile_hours_per_day=8).job
        assert job.duration_days == 3

    def test_missing_quote(self):
        with pytest.raises(JobServiceError) as exc:
            JobService(InMemoryJobStore()).create_from_quote("nope", "2024-01-01")
        assert exc.value.code == "QUOTE_NOT_FOUND"

    def test_draft_rejected(self):
        store = InMemoryJobStore([_quote(status="Draft")])
        with pytest.raises(JobServiceError) as exc:
            JobService(store).create_from_quote("q1", "2024-01-01")
        assert exc.value.code == "DRAFT_QUOTE"
        assert store.jobs == {}

    def test_already_linked_returns_existing(self):
        store = InMemoryJobStore([_quote()])
        service = JobService(store)
        first = service.create_from_quote("q1", "2024-01-01")
        second = service.create_from_quote("q1", "2024-02-01")
        assert second.created is False
        assert second.job.id == first.job.id
        assert len(store.jobs) == 1

    def test_link_failure_rolls_back(self):
        store = FailingLinkStore([_quote()])
        with pytest.raises(JobServiceError) as exc:
            JobService(store).create_from_quote("q1", "2024-01-01")
        assert exc.value.code == "LINK_QUOTE"
        assert store.jobs == {}

    def test_link_failure_survives_failed_rollback(self, caplog):
        store = FailingRollbackStore([_quote()])
        with pytest.raises(JobServiceError) as exc:
            JobService(store).create_from_quote("q1", "2024-01-01")
        assert exc.value.code == "LINK_QUOTE"
        assert "permission denied" in str(exc.value)
        assert "connection reset" in caplog.text

    def test_default_duration_from_settings(self):
        settings = Settings(scheduling=SchedulingConfig(default_duration_days=3))
        store = InMemoryJobStore([_quote(job_details=None)])
        job = JobService(store, settings).create_from_quote("q1", "2024-01-01").job
        assert job.duration_days == 3
        assert job.end_date == date(2024, 1, 3)

    def test_pdf_fallback_document(self):
        store = InMemoryJobStore([_quote()])
        result = JobService(store).create_from_quote("q1", "2024-01-01")
        assert result.attach_error is not None
        assert len(store.documents) == 1
        doc = store.documents[0]
        assert doc["url"] == "https://files.example/q1.pdf"
        assert doc["name"] == "Garden wall.pdf"
        assert doc["mime"] == "application/pdf"

    def test_pdf_copied(self):
        store = InMemoryJobStore([_quote(pdf_path="quotes/q1.pdf")])
        result = JobService(store).create_from_quote("q1", "2024-01-01")
        assert result.attach_error is None
        assert store.documents[0]["url"] == "quotes/q1.pdf"

    def test_expenses_extracted(self):
        store = InMemoryJobStore([_quote()])
        service = JobService(store)
        result = service.create_from_quote("q1", "2024-01-01")
        assert result.expenses_inserted == 1
        assert service.sum_for_job(result.job.id) == Decimal("100.00")

    def test_expense_failure_is_not_fatal(self, caplog):
        store = FailingExpenseStore([_quote()])
        result = JobService(store).create_from_quote("q1", "2024-01-01")
        assert result.job is not None
        assert result.expenses_inserted == 0
        assert "expenses table unavailable" in caplog.text


class TestReschedule:
    def test_reschedule_matches_creation(self):
        store = InMemoryJobStore([_quote()])
        service = JobService(store)
        job = service.create_from_quote("q1", "2024-01-01", override_days=6).job

        moved = service.reschedule(job.id, "2024-01-01", 6, False)
        assert moved.end_date == job.end_date

        moved = service.reschedule(job.id, "2024-01-10", 2.9, True)
        assert moved.duration_days == 2
        assert moved.end_date == date(2024, 1, 11)
        assert store.jobs[job.id]["end_date"] == "2024-01-11"

    def test_missing_job(self):
        with pytest.raises(JobServiceError) as exc:
            JobService(InMemoryJobStore()).reschedule("job-404", "2024-01-01", 1, False)
        assert exc.value.code == "RESCHEDULE"


class TestDeleteAndExpenses:
    def test_delete_unlinks_quote(self):
        store = InMemoryJobStore([_quote()])
        service = JobService(store)
        job = service.create_from_quote("q1", "2024-01-01").job
        service.delete_job(job.id)
        assert job.id not in store.jobs
        assert store.quotes["q1"]["job_id"] is None
        assert store.expenses == []

    def test_add_expense(self):
        store = InMemoryJobStore()
        service = JobService(store)
        row = service.add_expense("job-1", "12.345", date(2024, 1, 2), vendor="")
        assert row["amount"] == 12.35
        assert row["date"] == "2024-01-02"
        assert row["vendor"] is None
        service.add_expense("job-1", 7.65)
        assert service.sum_for_job("job-1") == Decimal("20.00")

    @pytest.mark.parametrize("amount", [-1, "abc", None, float("inf")])
    def test_add_expense_invalid(self, amount):
        with pytest.raises(JobServiceError) as exc:
            JobService(InMemoryJobStore()).add_expense("job-1", amount)
        assert exc.value.code == "INVALID_AMOUNT"

    def test_add_expense_invalid_date(self):
        store = InMemoryJobStore()
        with pytest.raises(JobServiceError) as exc:
            JobService(store).add_expense("job-1", 10, "next tuesday")
        assert exc.value.code == "INVALID_DATE"
        assert store.expenses == []

    def test_load_job_with_expenses(self):
        store = InMemoryJobStore([_quote()])
        service = JobService(store)
        job = service.create_from_quote("q1", "2024-01-01").job
        loaded = service.load_job(job.id)
        assert loaded.has_expenses
        assert loaded.effective_cost == Decimal("100")


class TestMakePdfName:
    def test_strips_unsafe_characters(self):
        assert make_pdf_name(Quote(id="1", job_summary='Fence: back/side  "north"')) == "Fence back side north.pdf"

    def test_number_then_id(self):
        assert make_pdf_name(Quote(id="9", quote_number="Q-100")) == "Quote Q-100.pdf"
        assert make_pdf_name(Quote(id="9")) == "Quote 9.pdf"
