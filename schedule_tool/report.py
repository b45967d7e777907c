"""Profit report output.

Builds a traceable JSON breakdown of a prorated profit result. Money values
are rounded to cents and emitted as floats.
"""

from __future__ import annotations

import json
from decimal import Decimal, ROUND_HALF_UP
from pathlib import Path

from schedule_tool.engine.dates import DateLike, to_ymd
from schedule_tool.engine.proration import ProrationPolicy
from schedule_tool.models import ProfitResult

CENT = Decimal("0.01")


def generate_report_dict(
    result: ProfitResult,
    period_start: DateLike,
    period_end: DateLike,
    policy: ProrationPolicy = ProrationPolicy.LINEAR,
) -> dict:
    """Build the report dictionary (no file I/O)."""
    jobs = []
    for c in result.contributions:
        job = c.job
        jobs.append({
            "id": job.id,
            "title": job.title,
            "start_date": job.start_date.isoformat(),
            "end_date": job.end_date.isoformat(),
            "include_weekends": job.include_weekends,
            "total": float(job.total),
            "cost": float(job.effective_cost),
            "cost_source": "expenses" if job.has_expenses else ("manual" if job.cost is not None else "none"),
            "cost_estimated": job.cost_is_estimated,
            "profit": float(job.profit),
            "effective_days": c.effective_days,
            "overlap_days": c.overlap_days,
            "daily_rate": float(c.daily_rate.quantize(CENT, ROUND_HALF_UP)),
            "contribution": float(c.amount.quantize(CENT, ROUND_HALF_UP)),
        })

    return {
        "period": {
            "start": to_ymd(period_start),
            "end": to_ymd(period_end),
        },
        "policy": policy.value,
        "summary": {
            "amount": float(result.amount),
            "estimated": result.estimated,
            "contributing_jobs": len(result.contributions),
            "estimated_jobs": sum(1 for c in result.contributions if c.job.cost_is_estimated),
        },
        "jobs": jobs,
    }


def generate_report(
    result: ProfitResult,
    period_start: DateLike,
    period_end: DateLike,
    output_path: str | Path,
    policy: ProrationPolicy = ProrationPolicy.LINEAR,
) -> Path:
    """Write the report JSON file."""
    output_path = Path(output_path)
    report = generate_report_dict(result, period_start, period_end, policy)
    output_path.write_text(json.dumps(report, indent=2), encoding="utf-8")
    return output_path
