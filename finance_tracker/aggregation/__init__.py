"""Balance and monthly aggregation engine."""

from finance_tracker.aggregation.engine import (
    AggregationEngine,
    income_and_expenses,
    net_amount,
    parse_month,
)

__all__ = ["AggregationEngine", "income_and_expenses", "net_amount", "parse_month"]
