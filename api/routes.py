"""API routes for the scheduling and profit tools."""

from __future__ import annotations

import logging
from decimal import Decimal, ROUND_HALF_UP
from functools import lru_cache

from fastapi import APIRouter, Depends

from schedule_tool.config import Settings, load_settings
from schedule_tool.engine.calendar import month_matrix, month_summary, week_segments
from schedule_tool.engine.proration import ProrationPolicy, profit_for_period
from schedule_tool.engine.scheduler import compute_schedule
from schedule_tool.models import Job, JobRecordError
from schedule_tool.parsers.quote_meta import (
    derive_duration_days_from_quote,
    extract_expenses_from_quote,
)
from schedule_tool.report import generate_report_dict

from api.schemas import (
    CalendarRequest,
    CalendarResponse,
    CalendarWeek,
    DurationRequest,
    DurationResponse,
    ExpenseLineOut,
    JobContributionOut,
    ProfitRequest,
    ProfitResponse,
    ScheduleRequest,
    ScheduleResponse,
    WeekSegmentOut,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1")

CENT = Decimal("0.01")


@lru_cache
def get_settings() -> Settings:
    """Settings shared by the app and every request, loaded once."""
    return load_settings()


@router.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "ok"}


@router.post("/schedule", response_model=ScheduleResponse)
async def schedule(body: ScheduleRequest, settings: Settings = Depends(get_settings)):
    """Compute a job's end date from start, duration and weekend rule."""
    include_weekends = body.include_weekends
    if include_weekends is None:
        include_weekends = settings.scheduling.include_weekends
    result = compute_schedule(body.start_date, body.duration_days, include_weekends)
    return ScheduleResponse(**result.__dict__)


@router.post("/duration", response_model=DurationResponse)
async def duration(body: DurationRequest, settings: Settings = Depends(get_settings)):
    """Derive a duration and expense lines from a quote's job_details blob."""
    hours_per_day = body.hours_per_day or settings.scheduling.hours_per_day
    fallback = body.fallback or settings.scheduling.default_duration_days
    quote = {"job_details": body.job_details}
    days = derive_duration_days_from_quote(quote, fallback, hours_per_day)
    lines = extract_expenses_from_quote(quote)
    return DurationResponse(
        duration_days=days,
        expenses=[ExpenseLineOut(**line.to_record()) for line in lines],
    )


@router.post("/profit", response_model=ProfitResponse)
async def profit(body: ProfitRequest, settings: Settings = Depends(get_settings)):
    """Prorate the submitted jobs' profit into the requested period."""
    try:
        policy = ProrationPolicy(body.policy) if body.policy else settings.proration.policy
    except ValueError:
        return ProfitResponse(
            success=False,
            error_type="config_error",
            errors=[f"Unknown proration policy: {body.policy}"],
        )

    try:
        jobs = [Job.from_record(j.to_record()) for j in body.jobs]
    except JobRecordError as e:
        return ProfitResponse(success=False, error_type="validation_error", errors=[str(e)])

    result = profit_for_period(jobs, body.period_start, body.period_end, policy)
    logger.debug("Profit for %s..%s: %s", body.period_start, body.period_end, result.amount)

    return ProfitResponse(
        success=True,
        amount=float(result.amount),
        estimated=result.estimated,
        jobs=[
            JobContributionOut(
                id=c.job.id,
                title=c.job.title,
                effective_days=c.effective_days,
                overlap_days=c.overlap_days,
                daily_rate=float(c.daily_rate.quantize(CENT, ROUND_HALF_UP)),
                contribution=float(c.amount.quantize(CENT, ROUND_HALF_UP)),
                cost_estimated=c.job.cost_is_estimated,
            )
            for c in result.contributions
        ],
        report=generate_report_dict(result, body.period_start, body.period_end, policy),
    )


@router.post("/calendar/month", response_model=CalendarResponse)
async def calendar_month(body: CalendarRequest):
    """Month grid with lane-packed job bars per week."""
    jobs = [Job.from_record(j.to_record()) for j in body.jobs]
    weeks = []
    for week in month_matrix(body.month):
        layout = week_segments(week, jobs)
        weeks.append(CalendarWeek(
            days=week,
            segments=[WeekSegmentOut(**s.__dict__) for s in layout.segments],
            lane_count=layout.lane_count,
        ))
    summary = month_summary(jobs, body.month)
    return CalendarResponse(weeks=weeks, job_count=summary.job_count, profit=float(summary.profit))
