"""Numeric coercion helpers for loosely-typed payloads."""

from __future__ import annotations

import math
import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional

CENT = Decimal("0.01")

_MONEY_NOISE_RE = re.compile(r"[£$€,\s]")


def to_number(value: Any) -> Optional[float]:
    """Coerce ints, floats, Decimals and numeric strings to float.

    Returns None for missing, blank, boolean or non-finite input.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        result = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            result = float(text)
        except ValueError:
            return None
    else:
        return None
    return result if math.isfinite(result) else None


def to_money(value: Any) -> Decimal:
    """Round to 2dp (half-up). Anything non-numeric becomes 0.00."""
    if isinstance(value, Decimal):
        amount = value if value.is_finite() else Decimal("0")
    else:
        number = to_number(value)
        amount = Decimal(str(number)) if number is not None else Decimal("0")
    return amount.quantize(CENT, ROUND_HALF_UP)


def parse_money(text: Any) -> Decimal:
    """Parse money text like '£1,234.56' or '1,234.56'."""
    if isinstance(text, (int, float, Decimal)) and not isinstance(text, bool):
        return to_money(text)
    if not text:
        return to_money(0)
    clean = _MONEY_NOISE_RE.sub("", str(text))
    try:
        return to_money(Decimal(clean))
    except InvalidOperation:
        return to_money(0)
