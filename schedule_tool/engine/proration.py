"""Profit Proration Engine.

Apportions each job's profit (total - cost) to a reporting period.

LINEAR assumes profit accrues evenly over the job's working days, so the
result is an estimate of the period's share, not a booked figure.
ON_COMPLETION recognizes the whole profit in the period holding the end date.
"""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Iterable, Optional

from schedule_tool.engine.dates import (
    DateLike,
    count_weekdays_inclusive,
    days_inclusive,
    overlap_working_days,
    to_local_midnight,
)
from schedule_tool.models import Job, JobContribution, ProfitResult

CENT = Decimal("0.01")


class ProrationPolicy(Enum):
    LINEAR = "linear"
    ON_COMPLETION = "on_completion"


def effective_days(job: Job) -> int:
    """Job length under its own weekend rule, never below 1."""
    if job.include_weekends:
        span = days_inclusive(job.start_date, job.end_date)
    else:
        span = count_weekdays_inclusive(job.start_date, job.end_date)
    return max(1, span)


def explain_contribution(
    job: Job,
    period_start: DateLike,
    period_end: DateLike,
    policy: ProrationPolicy = ProrationPolicy.LINEAR,
) -> JobContribution:
    """Compute one job's contribution along with the terms that produced it."""
    eff_days = effective_days(job)
    daily = job.profit / Decimal(eff_days)
    overlap = overlap_working_days(
        job.start_date, job.end_date, period_start, period_end, job.include_weekends,
    )

    if policy is ProrationPolicy.ON_COMPLETION:
        end = to_local_midnight(job.end_date)
        completed_in_period = to_local_midnight(period_start) <= end <= to_local_midnight(period_end)
        amount = job.profit if completed_in_period else Decimal("0")
    else:
        amount = daily * overlap

    return JobContribution(
        job=job,
        effective_days=eff_days,
        overlap_days=overlap,
        daily_rate=daily,
        amount=amount,
    )


def job_contribution_for_period(
    job: Job,
    period_start: DateLike,
    period_end: DateLike,
    policy: ProrationPolicy = ProrationPolicy.LINEAR,
) -> Decimal:
    """Unrounded share of `job`'s profit attributable to [period_start, period_end]."""
    return explain_contribution(job, period_start, period_end, policy).amount


def profit_for_period(
    jobs: Optional[Iterable[Job]],
    period_start: DateLike,
    period_end: DateLike,
    policy: ProrationPolicy = ProrationPolicy.LINEAR,
) -> ProfitResult:
    """Sum prorated profit over all jobs touching the period.

    `estimated` is set when any contributing job had no expenses and no
    positive manual cost, i.e. its cost was taken as zero. Under ON_COMPLETION
    only jobs ending inside the period contribute.
    """
    start = to_local_midnight(period_start)
    end = to_local_midnight(period_end)

    total = Decimal("0")
    estimated = False
    contributions: list[JobContribution] = []

    for job in jobs or []:
        if job.end_date < start or job.start_date > end:
            continue
        if policy is ProrationPolicy.ON_COMPLETION and job.end_date > end:
            continue

        if job.cost_is_estimated:
            estimated = True

        contribution = explain_contribution(job, start, end, policy)
        contributions.append(contribution)
        total += contribution.amount

    return ProfitResult(
        amount=total.quantize(CENT, ROUND_HALF_UP),
        estimated=estimated,
        contributions=contributions,
    )
