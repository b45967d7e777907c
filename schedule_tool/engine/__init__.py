"""Date arithmetic, scheduling, proration and calendar engines."""
from schedule_tool.engine.dates import add_working_days, count_weekdays_inclusive, days_inclusive
from schedule_tool.engine.scheduler import compute_schedule, reschedule
from schedule_tool.engine.proration import ProrationPolicy, job_contribution_for_period, profit_for_period

__all__ = [
    "add_working_days",
    "count_weekdays_inclusive",
    "days_inclusive",
    "compute_schedule",
    "reschedule",
    "ProrationPolicy",
    "job_contribution_for_period",
    "profit_for_period",
]
