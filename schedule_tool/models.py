"""Canonical data model for jobs, quotes, schedules and profit results."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Mapping, Optional, Union


class JobStatus(Enum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"


def normalize_status(value: Any) -> str:
    """Normalize a free-form status ('In progress', 'open', ...) to a snake_case key."""
    text = re.sub(r"[\s-]+", "_", str(value or "").strip().lower())
    if text == "open":
        return JobStatus.SCHEDULED.value
    return text


def _decimal_or_none(value: Any) -> Optional[Decimal]:
    """Coerce a loosely-typed numeric field; None when not a finite number."""
    if value is None or isinstance(value, bool):
        return None
    try:
        result = Decimal(str(value).strip()) if isinstance(value, str) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    if not result.is_finite():
        return None
    return result


def _record_date(record: Mapping[str, Any], key: str) -> date:
    from schedule_tool.engine.dates import to_local_midnight

    raw = record.get(key)
    if raw is None or raw == "":
        raise JobRecordError(f"Job record is missing '{key}'")
    try:
        return to_local_midnight(raw)
    except ValueError as e:
        raise JobRecordError(f"Job record has invalid '{key}': {raw!r}") from e


@dataclass(frozen=True)
class Expense:
    """A cost booked against exactly one job."""
    amount: Decimal
    name: str = "Expense"
    category: Optional[str] = None
    date: Optional[date] = None
    vendor: Optional[str] = None
    note: Optional[str] = None
    job_id: Optional[str] = None
    id: Optional[str] = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Expense":
        from schedule_tool.engine.dates import from_ymd

        raw_date = record.get("date")
        return cls(
            amount=_decimal_or_none(record.get("amount")) or Decimal("0"),
            name=str(record.get("name") or "Expense"),
            category=record.get("category"),
            date=from_ymd(raw_date) if isinstance(raw_date, str) else raw_date,
            vendor=record.get("vendor"),
            note=record.get("note"),
            job_id=record.get("job_id"),
            id=record.get("id"),
        )


@dataclass
class Job:
    """A scheduled unit of work.

    `expenses`, when non-empty, takes precedence over the manual `cost`.
    """
    start_date: date
    end_date: date
    total: Decimal = Decimal("0")
    cost: Optional[Decimal] = None
    duration_days: int = 1
    include_weekends: bool = False
    expenses: list[Expense] = field(default_factory=list)
    id: Optional[str] = None
    title: Optional[str] = None
    status: str = JobStatus.SCHEDULED.value
    client_name: Optional[str] = None
    site_address: Optional[str] = None
    source_quote_id: Optional[str] = None

    @property
    def has_expenses(self) -> bool:
        return len(self.expenses) > 0

    @property
    def expenses_total(self) -> Decimal:
        return sum((e.amount for e in self.expenses), Decimal("0"))

    @property
    def effective_cost(self) -> Decimal:
        if self.has_expenses:
            return self.expenses_total
        if self.cost is not None and self.cost.is_finite():
            return self.cost
        return Decimal("0")

    @property
    def cost_is_estimated(self) -> bool:
        """True when the cost had to be assumed zero (no expenses, no positive manual cost)."""
        if self.has_expenses:
            return False
        return not (self.cost is not None and self.cost.is_finite() and self.cost > 0)

    @property
    def profit(self) -> Decimal:
        return self.total - self.effective_cost

    def with_schedule(self, schedule: "Schedule") -> "Job":
        return replace(
            self,
            start_date=schedule.start_date,
            end_date=schedule.end_date,
            duration_days=schedule.duration_days,
            include_weekends=schedule.include_weekends,
        )

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Job":
        """Build a Job from a loosely-typed database/JSON row."""
        start = _record_date(record, "start_date")
        end = _record_date(record, "end_date") if record.get("end_date") else start

        raw_expenses = record.get("expenses")
        expenses = []
        if isinstance(raw_expenses, list):
            expenses = [
                Expense.from_record(e) if isinstance(e, Mapping) else Expense(amount=Decimal("0"))
                for e in raw_expenses
            ]

        try:
            duration = max(1, int(float(record.get("duration_days") or 1)))
        except (TypeError, ValueError):
            duration = 1

        return cls(
            start_date=start,
            end_date=end,
            total=_decimal_or_none(record.get("total")) or Decimal("0"),
            cost=_decimal_or_none(record.get("cost")),
            duration_days=duration,
            include_weekends=bool(record.get("include_weekends")),
            expenses=expenses,
            id=None if record.get("id") is None else str(record.get("id")),
            title=record.get("title"),
            status=normalize_status(record.get("status")) or JobStatus.SCHEDULED.value,
            client_name=record.get("client_name"),
            site_address=record.get("site_address"),
            source_quote_id=record.get("source_quote_id"),
        )

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "status": self.status,
            "client_name": self.client_name,
            "site_address": self.site_address,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "duration_days": self.duration_days,
            "include_weekends": self.include_weekends,
            "total": float(self.total),
            "cost": None if self.cost is None else float(self.cost),
            "expenses": [{"amount": float(e.amount), "name": e.name} for e in self.expenses],
            "source_quote_id": self.source_quote_id,
        }


@dataclass
class Quote:
    """Quote row as far as job creation is concerned."""
    id: str
    status: str = ""
    job_details: Union[str, Mapping[str, Any], None] = None
    user_id: Optional[str] = None
    client_name: Optional[str] = None
    client_address: Optional[str] = None
    site_address: Optional[str] = None
    job_summary: Optional[str] = None
    quote_number: Optional[str] = None
    job_id: Optional[str] = None
    pdf_url: Optional[str] = None
    pdf_name: Optional[str] = None
    pdf_mime: Optional[str] = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Quote":
        known = {f for f in cls.__dataclass_fields__}
        values = {k: v for k, v in record.items() if k in known}
        values["id"] = str(record.get("id"))
        values["status"] = str(record.get("status") or "")
        return cls(**values)


# --- Duration metadata shapes, matched in priority order ---

@dataclass(frozen=True)
class ExplicitDays:
    days: float


@dataclass(frozen=True)
class HoursPerDay:
    estimated_hours: float
    hours_per_day: float


@dataclass(frozen=True)
class DayRateCalc:
    days: float
    remainder_hours: float = 0.0


@dataclass(frozen=True)
class UnknownMeta:
    pass


DurationMeta = Union[ExplicitDays, HoursPerDay, DayRateCalc, UnknownMeta]


@dataclass(frozen=True)
class ExpenseLine:
    """Expense candidate extracted from a quote blob."""
    name: str
    quantity: float
    unit_cost: float
    total: float
    category: Optional[str] = None
    tax_rate: Optional[float] = None

    def to_record(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "quantity": self.quantity,
            "unit_cost": self.unit_cost,
            "total": self.total,
            "category": self.category,
            "tax_rate": self.tax_rate,
        }


@dataclass(frozen=True)
class Schedule:
    """Internally consistent start/duration/end quad for a job."""
    start_date: date
    duration_days: int
    end_date: date
    include_weekends: bool

    def to_record(self) -> dict[str, Any]:
        return {
            "start_date": self.start_date.isoformat(),
            "duration_days": self.duration_days,
            "end_date": self.end_date.isoformat(),
            "include_weekends": self.include_weekends,
        }


@dataclass(frozen=True)
class JobContribution:
    """Breakdown of one job's share of a period's profit."""
    job: Job
    effective_days: int
    overlap_days: int
    daily_rate: Decimal
    amount: Decimal


@dataclass
class ProfitResult:
    """Prorated profit for a reporting period."""
    amount: Decimal
    estimated: bool
    contributions: list[JobContribution] = field(default_factory=list)


class ScheduleToolError(Exception):
    """Base class for errors raised by this package."""


class JobRecordError(ScheduleToolError, ValueError):
    """Raised when a job record cannot be turned into a Job."""


class JobServiceError(ScheduleToolError):
    """Raised when a job orchestration step fails."""
    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(f"{code}: {message}")
