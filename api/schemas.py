"""Pydantic request/response models for the scheduling API."""

from __future__ import annotations

from datetime import date
from typing import Any

from pydantic import BaseModel, Field


class ExpenseIn(BaseModel):
    amount: float = 0


class JobIn(BaseModel):
    id: str | None = None
    title: str | None = None
    status: str | None = None
    start_date: date
    end_date: date
    include_weekends: bool = False
    total: float = 0
    cost: float | None = None
    expenses: list[ExpenseIn] | None = None

    def to_record(self) -> dict[str, Any]:
        record = self.model_dump()
        record["expenses"] = [e.model_dump() for e in self.expenses] if self.expenses else []
        return record


class ScheduleRequest(BaseModel):
    start_date: date
    duration_days: int = Field(default=1, ge=1)
    include_weekends: bool | None = None


class ScheduleResponse(BaseModel):
    start_date: date
    duration_days: int
    end_date: date
    include_weekends: bool


class DurationRequest(BaseModel):
    job_details: str | dict[str, Any] | None = None
    fallback: int | None = Field(default=None, ge=1)
    hours_per_day: float | None = Field(default=None, gt=0)


class ExpenseLineOut(BaseModel):
    name: str
    quantity: float
    unit_cost: float
    total: float
    category: str | None = None
    tax_rate: float | None = None


class DurationResponse(BaseModel):
    duration_days: int
    expenses: list[ExpenseLineOut]


class ProfitRequest(BaseModel):
    jobs: list[JobIn]
    period_start: date
    period_end: date
    policy: str | None = None


class JobContributionOut(BaseModel):
    id: str | None = None
    title: str | None = None
    effective_days: int
    overlap_days: int
    daily_rate: float
    contribution: float
    cost_estimated: bool


class ProfitResponse(BaseModel):
    success: bool
    amount: float | None = None
    estimated: bool | None = None
    jobs: list[JobContributionOut] | None = None
    report: dict | None = None
    error_type: str | None = None
    errors: list[str] | None = None


class CalendarRequest(BaseModel):
    jobs: list[JobIn]
    month: date


class WeekSegmentOut(BaseModel):
    start_col: int
    end_col: int
    lane: int
    status: str
    job_id: str | None = None


class CalendarWeek(BaseModel):
    days: list[date]
    segments: list[WeekSegmentOut]
    lane_count: int


class CalendarResponse(BaseModel):
    weeks: list[CalendarWeek]
    job_count: int
    profit: float
