"""Analytics package: period filter, aggregator, health metrics."""

from financia.analytics.aggregator import (
    balance,
    category_breakdown,
    daily_series,
    investment_allocation,
    label_breakdown,
    monthly_series,
    tax_totals,
    total_by_type,
    total_expense,
    total_income,
)
from financia.analytics.engine import (
    AnalyticsEngine,
    build_investment_summary,
    build_summary,
    build_tax_summary,
)
from financia.analytics.health import (
    choose_insight,
    classify_health,
    compute_health_metrics,
)
from financia.analytics.period import DateRange, filter_by_period, filter_by_range

__all__ = [
    # Aggregator
    "balance",
    "category_breakdown",
    "daily_series",
    "investment_allocation",
    "label_breakdown",
    "monthly_series",
    "tax_totals",
    "total_by_type",
    "total_expense",
    "total_income",
    # Engine
    "AnalyticsEngine",
    "build_investment_summary",
    "build_summary",
    "build_tax_summary",
    # Health
    "choose_insight",
    "classify_health",
    "compute_health_metrics",
    # Period
    "DateRange",
    "filter_by_period",
    "filter_by_range",
]
