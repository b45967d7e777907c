"""Parsing of loosely-shaped quote payloads."""
from schedule_tool.parsers.quote_meta import derive_duration_days_from_quote, extract_expenses_from_quote

__all__ = ["derive_duration_days_from_quote", "extract_expenses_from_quote"]
