"""Quote metadata parser.

A quote's `job_details` blob is produced upstream by an estimation step and
has gone through several historical shapes. Duration hints live under
`ai_meta` (or the older `meta`) as one of:

  {"days": 3}
  {"estimated_hours": 25, "hours_per_day": 10}
  {"day_rate_calc": {"days": 2, "remainder_hours": 4}}

Expense-like line items may sit at the top level or under the meta object.
Nothing here raises on malformed input; callers get a fallback instead.
"""

from __future__ import annotations

import json
import logging
import math
import re
from typing import Any, Mapping, Optional, Union

from schedule_tool.models import (
    DayRateCalc,
    DurationMeta,
    ExpenseLine,
    ExplicitDays,
    HoursPerDay,
    Quote,
    UnknownMeta,
)
from schedule_tool.parsers.money import to_number

logger = logging.getLogger(__name__)

QuoteLike = Union[Quote, Mapping[str, Any]]

EXPENSE_KEYS = ("expenses", "materials", "purchases", "items")
EXPENSE_TYPE_RE = re.compile(r"expense|material|purchase|subcontract", re.IGNORECASE)


def _first_present(raw: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        value = raw.get(key)
        if value is not None:
            return value
    return default


def _first_truthy(raw: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        value = raw.get(key)
        if value:
            return value
    return default


def _num(value: Any, default: Any) -> Any:
    number = to_number(value)
    return default if number is None else number


def load_job_details(quote: Optional[QuoteLike]) -> dict[str, Any]:
    """Return the quote's job_details blob as a dict ({} when absent or malformed)."""
    if quote is None:
        return {}
    raw = quote.job_details if isinstance(quote, Quote) else quote.get("job_details")

    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning("Quote job_details is not valid JSON: %s", e)
            return {}

    if isinstance(raw, Mapping):
        return dict(raw)
    return {}


def _meta_of(blob: Mapping[str, Any]) -> Mapping[str, Any]:
    meta = blob.get("ai_meta") or blob.get("meta") or {}
    return meta if isinstance(meta, Mapping) else {}


def parse_duration_meta(
    blob: Mapping[str, Any],
    profile_hours_per_day: float = 10,
) -> DurationMeta:
    """Classify the duration hints in a job_details blob, highest priority first."""
    meta = _meta_of(blob)

    days = to_number(meta.get("days"))
    if days is not None and days >= 1:
        return ExplicitDays(days=days)

    hours = to_number(meta.get("estimated_hours"))
    hours_per_day = to_number(meta.get("hours_per_day") or profile_hours_per_day)
    if hours is not None and hours > 0 and hours_per_day is not None and hours_per_day > 0:
        return HoursPerDay(estimated_hours=hours, hours_per_day=hours_per_day)

    drc = meta.get("day_rate_calc")
    if isinstance(drc, Mapping):
        drc_days = drc.get("days")
        # only a real number counts here, not a numeric string
        if isinstance(drc_days, (int, float)) and not isinstance(drc_days, bool) and math.isfinite(drc_days):
            remainder = _num(drc.get("remainder_hours") or 0, 0.0)
            return DayRateCalc(days=float(drc_days), remainder_hours=remainder)

    return UnknownMeta()


def duration_days_for_meta(meta: DurationMeta, fallback: Any = 1) -> int:
    if isinstance(meta, ExplicitDays):
        return math.ceil(meta.days)
    if isinstance(meta, HoursPerDay):
        return max(1, math.ceil(meta.estimated_hours / meta.hours_per_day))
    if isinstance(meta, DayRateCalc):
        extra = 1 if meta.remainder_hours > 0 else 0
        return max(1, math.ceil(meta.days + extra))
    return max(1, math.ceil(_num(fallback, 0) or 1))


def derive_duration_days_from_quote(
    quote: Optional[QuoteLike],
    fallback: Any = 1,
    profile_hours_per_day: float = 10,
) -> int:
    """Best-effort job length in days from quote metadata, else ceil(fallback)."""
    blob = load_job_details(quote)
    meta = parse_duration_meta(blob, profile_hours_per_day)
    if isinstance(meta, UnknownMeta):
        logger.debug("No duration hints on quote; using fallback %s", fallback)
    return duration_days_for_meta(meta, fallback)


def _tax_rate(raw: Mapping[str, Any]) -> Optional[float]:
    """Accept 0.2, 20 or '20%' and return a percentage."""
    t = _first_present(raw, "tax_rate", "vat", "tax")
    if t is None or t == "":
        return None
    text = str(t).strip()
    if text.endswith("%"):
        return to_number(text[:-1])
    num = to_number(text)
    if num is None:
        return None
    # <= 1 is a ratio, anything larger is already a percentage
    return round(num * 100, 2) if num <= 1 else round(num, 2)


def normalize_expense_item(raw: Mapping[str, Any]) -> ExpenseLine:
    """Map one of the many historical line-item shapes onto an ExpenseLine."""
    name = _first_truthy(raw, "name", "title", "description", "item", "product", default="Expense")
    qty = _num(_first_present(raw, "quantity", "qty", "hours", default=1), 1.0)
    unit = _num(_first_present(raw, "unit_cost", "unitCost", "cost", "rate", "price", default=0), 0.0)
    total = _num(_first_present(raw, "total", "line_total", "subtotal", default=qty * unit), qty * unit)

    category = _first_truthy(raw, "category", "type", "kind")
    if not category and raw.get("is_material"):
        category = "materials"

    return ExpenseLine(
        name=str(name),
        quantity=float(qty),
        unit_cost=float(unit),
        total=float(total),
        category=category or None,
        tax_rate=_tax_rate(raw),
    )


def _is_expense_like(item: Mapping[str, Any]) -> bool:
    cost = _num(
        _first_present(item, "total", "line_total", "subtotal", "cost", "unit_cost", "rate", default=0),
        0,
    )
    kind = str(_first_truthy(item, "type", "kind", "category", default=""))
    return cost > 0 or bool(EXPENSE_TYPE_RE.search(kind))


def extract_expenses_from_quote(quote: Optional[QuoteLike]) -> list[ExpenseLine]:
    """Pull expense-like line items out of a quote's job_details blob."""
    blob = load_job_details(quote)
    meta = _meta_of(blob)

    candidates = [blob.get(k) for k in EXPENSE_KEYS]
    candidates += [meta.get(k) for k in EXPENSE_KEYS]
    candidates += [blob.get("lines"), meta.get("lines")]

    out: list[ExpenseLine] = []
    for arr in candidates:
        if not isinstance(arr, list):
            continue
        for item in arr:
            if isinstance(item, Mapping) and _is_expense_like(item):
                out.append(normalize_expense_item(item))

    if not out:
        drc = meta.get("day_rate_calc")
        materials = drc.get("materials") if isinstance(drc, Mapping) else None
        if isinstance(materials, list):
            out = [normalize_expense_item(m) for m in materials if isinstance(m, Mapping)]

    return out
