"""Job orchestration over a JobStore.

Creating a job from an accepted quote:
  1. load the quote (drafts are rejected, already-linked quotes short-circuit)
  2. compute the schedule from quote metadata or an override
  3. insert the job and link the quote to it (rolled back if linking fails)
  4. copy the quote PDF onto the job, falling back to a direct document row
  5. extract expense lines from the quote blob and insert them

Steps 4 and 5 are best-effort: failures are logged, never raised.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Optional

from schedule_tool.config import Settings
from schedule_tool.engine.dates import DateLike, to_ymd
from schedule_tool.engine.scheduler import compute_schedule, duration_for_quote
from schedule_tool.models import Job, JobServiceError, JobStatus, Quote
from schedule_tool.parsers.money import to_money, to_number
from schedule_tool.parsers.quote_meta import extract_expenses_from_quote
from schedule_tool.store import JobStore, StoreError

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_RE = re.compile(r'[\\/:*?"<>|]+')


@dataclass
class JobCreation:
    job: Job
    quote: Quote
    created: bool = True
    attach_error: Optional[str] = None
    expenses_inserted: int = 0


def make_pdf_name(quote: Quote) -> str:
    """Filesystem-safe file name for a quote's PDF."""
    if quote.pdf_name or quote.job_summary:
        base = quote.pdf_name or quote.job_summary
    elif quote.quote_number:
        base = f"Quote {quote.quote_number}"
    elif quote.id:
        base = f"Quote {quote.id}"
    else:
        base = "Quote"
    cleaned = " ".join(_UNSAFE_FILENAME_RE.sub(" ", str(base)).split())
    return f"{cleaned}.pdf"


def _job_title(quote: Quote) -> str:
    if quote.job_summary:
        return str(quote.job_summary)
    if quote.client_name:
        return f"{quote.client_name} - Job"
    return "Job"


class JobService:
    def __init__(self, store: JobStore, settings: Optional[Settings] = None):
        self.store = store
        self.settings = settings or Settings()

    def _load_quote(self, quote_id: str) -> Quote:
        row = self.store.get_quote(quote_id)
        if row is None:
            raise JobServiceError("QUOTE_NOT_FOUND", f"Quote {quote_id} not found")
        return Quote.from_record(row)

    def _load_job(self, job_id: str) -> Job:
        row = self.store.get_job(job_id)
        if row is None:
            raise JobServiceError("JOB_NOT_FOUND", f"Job {job_id} not found")
        return Job.from_record(row)

    def create_from_quote(
        self,
        quote_id: str,
        start_date: DateLike,
        include_weekends: Optional[bool] = None,
        override_days: Optional[Any] = None,
        profile_hours_per_day: Optional[float] = None,
    ) -> JobCreation:
        """Create and schedule a job from a non-draft quote."""
        quote = self._load_quote(quote_id)

        if quote.status.strip().lower() == "draft":
            raise JobServiceError("DRAFT_QUOTE", "Draft quotes cannot create jobs. Generate the quote first.")

        if quote.job_id:
            logger.info("Quote %s already linked to job %s", quote.id, quote.job_id)
            return JobCreation(job=self._load_job(quote.job_id), quote=quote, created=False)

        defaults = self.settings.scheduling
        if include_weekends is None:
            include_weekends = defaults.include_weekends
        hours_per_day = profile_hours_per_day or defaults.hours_per_day

        days = duration_for_quote(quote, override_days, hours_per_day, defaults.default_duration_days)
        schedule = compute_schedule(start_date, days, include_weekends)

        row = {
            "title": _job_title(quote),
            "user_id": quote.user_id,
            "client_name": quote.client_name,
            "client_address": quote.client_address,
            "site_address": quote.site_address,
            "status": JobStatus.SCHEDULED.value,
            "source_quote_id": quote.id,
            **schedule.to_record(),
        }
        try:
            inserted = self.store.insert_job(row)
        except StoreError as e:
            logger.error("Inserting job for quote %s failed: %s", quote.id, e)
            raise JobServiceError("INSERT_JOB", str(e)) from e

        job_id = str(inserted["id"])
        try:
            self.store.update_quote(quote.id, {"status": "accepted", "job_id": job_id})
        except StoreError as e:
            logger.error("Linking quote %s to job %s failed, rolling back: %s", quote.id, job_id, e)
            try:
                self.store.delete_job(job_id)
            except StoreError as rollback_error:
                logger.warning("Rolling back job %s failed: %s", job_id, rollback_error)
            raise JobServiceError("LINK_QUOTE", str(e)) from e

        quote.status = "accepted"
        quote.job_id = job_id
        attach_error = self._attach_quote_pdf(job_id, quote)
        inserted_count = self._insert_quote_expenses(job_id, quote)

        job = Job.from_record(inserted)
        logger.info(
            "Created job %s from quote %s: %s -> %s (%d days, weekends=%s)",
            job_id, quote.id, schedule.start_date, schedule.end_date,
            schedule.duration_days, schedule.include_weekends,
        )
        return JobCreation(
            job=job,
            quote=quote,
            attach_error=attach_error,
            expenses_inserted=inserted_count,
        )

    def _attach_quote_pdf(self, job_id: str, quote: Quote) -> Optional[str]:
        try:
            self.store.copy_quote_pdf(job_id, quote.id)
            return None
        except StoreError as e:
            logger.warning("Copying quote PDF for job %s failed: %s", job_id, e)

        if not quote.pdf_url:
            logger.warning("Quote %s has no pdf_url to fall back on", quote.id)
        else:
            try:
                self.store.insert_document({
                    "user_id": quote.user_id,
                    "job_id": job_id,
                    "quote_id": quote.id,
                    "kind": "quote",
                    "name": make_pdf_name(quote),
                    "url": quote.pdf_url,
                    "mime": quote.pdf_mime or "application/pdf",
                    "size": None,
                })
            except StoreError as e:
                logger.warning("Fallback document insert for job %s failed: %s", job_id, e)
        return "Job created, but attaching the quote PDF failed."

    def _insert_quote_expenses(self, job_id: str, quote: Quote) -> int:
        lines = extract_expenses_from_quote(quote)
        if not lines:
            logger.debug("No expenses detected on quote %s", quote.id)
            return 0

        rows = [
            {
                "user_id": quote.user_id,
                "job_id": job_id,
                "quote_id": quote.id,
                "amount": float(to_money(line.total)),
                "notes": None,
                **line.to_record(),
            }
            for line in lines
        ]
        try:
            count = self.store.insert_expenses(rows)
        except StoreError as e:
            logger.warning("Inserting expenses for job %s failed: %s", job_id, e)
            return 0
        logger.debug("Inserted %d expenses for job %s", count, job_id)
        return count

    def reschedule(
        self,
        job_id: str,
        start_date: DateLike,
        duration_days: Any,
        include_weekends: bool,
    ) -> Job:
        """Move a job; end_date is recomputed with the same rule as at creation."""
        schedule = compute_schedule(start_date, duration_days, include_weekends)
        logger.debug("Rescheduling job %s to %s", job_id, schedule)
        try:
            row = self.store.update_job(job_id, schedule.to_record())
        except StoreError as e:
            logger.error("Rescheduling job %s failed: %s", job_id, e)
            raise JobServiceError("RESCHEDULE", str(e)) from e
        return Job.from_record(row)

    def delete_job(self, job_id: str) -> None:
        self.store.unlink_quotes_for_job(job_id)
        try:
            self.store.delete_job(job_id)
        except StoreError as e:
            logger.error("Deleting job %s failed: %s", job_id, e)
            raise JobServiceError("DELETE_JOB", str(e)) from e

    def add_expense(
        self,
        job_id: str,
        amount: Any,
        expense_date: Optional[DateLike] = None,
        category: str = "misc",
        vendor: Optional[str] = None,
        note: Optional[str] = None,
    ) -> dict[str, Any]:
        value = to_number(amount)
        if value is None or value < 0:
            raise JobServiceError("INVALID_AMOUNT", f"Invalid amount: {amount!r}")

        try:
            expense_day = to_ymd(expense_date or date.today())
        except ValueError as e:
            raise JobServiceError("INVALID_DATE", f"Invalid expense date: {expense_date!r}") from e

        row = {
            "job_id": job_id,
            "amount": float(to_money(value)),
            "date": expense_day,
            "category": category,
            "vendor": vendor or None,
            "note": note or None,
        }
        self.store.insert_expenses([row])
        return row

    def sum_for_job(self, job_id: str) -> Decimal:
        return sum(
            (to_money(e.get("amount") or 0) for e in self.store.list_expenses(job_id)),
            Decimal("0"),
        )

    def load_job(self, job_id: str) -> Job:
        """Load a job with its expenses attached."""
        job = self._load_job(job_id)
        rows = self.store.list_expenses(job_id)
        return Job.from_record({**job.to_record(), "expenses": rows})
