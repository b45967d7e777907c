"""Job scheduling, calendar and profit proration toolkit."""

__version__ = "1.0.0"
