"""
Analytics Result Models

Shapes returned by the analytics engine. Every number here is exactly
what the computation produced; rounding for display is the caller's job.
"""

import datetime
from enum import Enum
from typing import Iterable, Optional

from pydantic import BaseModel, Field, model_validator

from financia.models.categories import Category
from financia.models.records import Tax, Transaction


# =============================================================================
# DATE RANGE
# =============================================================================

class DateRange(BaseModel):
    """
    Inclusive calendar-date range used to filter transactions.

    An inverted range is allowed; it simply matches nothing.
    """

    start: datetime.date
    end: datetime.date

    @property
    def days_between(self) -> int:
        """Whole days from start to end (negative when inverted)."""
        return (self.end - self.start).days

    def contains(self, day: datetime.date) -> bool:
        return self.start <= day <= self.end

    @classmethod
    def default(cls, today: datetime.date, months: int = 6) -> "DateRange":
        """
        First day of the month `months - 1` months back, through today.

        With the default of six this covers the current month and the
        five before it.
        """
        month_index = today.year * 12 + (today.month - 1) - (months - 1)
        start = datetime.date(month_index // 12, month_index % 12 + 1, 1)
        return cls(start=start, end=today)

    @classmethod
    def this_month(cls, today: datetime.date) -> "DateRange":
        """First through last day of the month containing `today`."""
        start = today.replace(day=1)
        if today.month == 12:
            next_month = datetime.date(today.year + 1, 1, 1)
        else:
            next_month = datetime.date(today.year, today.month + 1, 1)
        return cls(start=start, end=next_month - datetime.timedelta(days=1))

    @classmethod
    def all_time(
        cls,
        transactions: Iterable[Transaction],
        today: datetime.date,
        months: int = 6,
    ) -> "DateRange":
        """
        Earliest transaction date through today.

        With no transactions there is nothing to span, so the
        default range is returned.
        """
        dates = [t.date for t in transactions]
        if not dates:
            return cls.default(today, months)
        return cls(start=min(dates), end=today)


# =============================================================================
# SERIES AND ALLOCATION
# =============================================================================

class SeriesBucket(BaseModel):
    """Income and expense sums for one day or one month."""

    income: float = 0.0
    expense: float = 0.0

    @property
    def net(self) -> float:
        return self.income - self.expense


class AllocationSlice(BaseModel):
    """One labeled slice of a category breakdown."""

    category: Category
    value: float


# =============================================================================
# HEALTH METRICS
# =============================================================================

class HealthScore(str, Enum):
    """Overall classification driven by the savings rate."""
    EXCELLENT = "Excellent"
    STABLE = "Stable"
    CRITICAL = "Critical"


class Insight(str, Enum):
    """Which advice applies; the first matching rule wins."""
    OVERSPENDING = "overspending"
    CREDIT_DEPENDENCY = "credit_dependency"
    STRONG_SAVINGS = "strong_savings"
    KEEP_LOGGING = "keep_logging"


INSIGHT_TEXTS: dict[Insight, str] = {
    Insight.OVERSPENDING: "Your spending exceeded your income. Review your expenses.",
    Insight.CREDIT_DEPENDENCY: "Watch out for your dependency on credit.",
    Insight.STRONG_SAVINGS: "Excellent savings rate!",
    Insight.KEEP_LOGGING: "Keep logging consistently for deeper analysis.",
}


class HealthMetrics(BaseModel):
    """
    Financial-health indicators for one period.

    Percentages are on a 0-100 scale. Several values may be negative
    (savings rate, survival days) when the balance is negative; that
    is a signal, not an error.
    """

    days_diff: int = Field(..., ge=1, description="Period length in days, at least 1")
    savings_rate: float = Field(..., description="Balance as % of income")
    daily_burn: float = Field(..., description="Average expense per day")
    avg_ticket: float = Field(..., description="Average expense transaction")
    credit_total: float = Field(..., description="Expense paid on credit")
    credit_dependency: float = Field(..., description="Credit share of expense, %")
    survival_days: float = Field(..., description="Days of runway at current burn")
    efficiency_ratio: float = Field(..., description="Income per unit of expense")
    concentration: float = Field(..., description="Largest expense category share, %")
    transaction_count: int = Field(..., ge=0)
    health_score: HealthScore
    insight: Insight

    @property
    def insight_text(self) -> str:
        return INSIGHT_TEXTS[self.insight]


# =============================================================================
# SUMMARIES (derived views)
# =============================================================================

class DashboardSummary(BaseModel):
    """Everything the dashboard shows for one date range."""

    date_range: DateRange
    total_income: float
    total_expense: float
    balance: float
    category_breakdown: dict[str, float] = Field(
        default_factory=dict,
        description="Expense totals per category id"
    )
    income_breakdown: dict[str, float] = Field(
        default_factory=dict,
        description="Income totals per category id"
    )
    daily_series: dict[str, SeriesBucket] = Field(default_factory=dict)
    monthly_series: dict[str, SeriesBucket] = Field(default_factory=dict)
    health: HealthMetrics


class InvestmentSummary(BaseModel):
    """Portfolio allocation over every stored investment."""

    total_invested: float
    allocation: dict[str, float] = Field(default_factory=dict)
    slices: list[AllocationSlice] = Field(
        default_factory=list,
        description="Labeled allocation, largest first"
    )


class TaxSummary(BaseModel):
    """Paid/pending totals and deadlines over every stored tax."""

    total_paid: float
    total_pending: float
    totals_by_status: dict[str, float] = Field(default_factory=dict)
    next_due: Optional[Tax] = None
    overdue: list[Tax] = Field(default_factory=list)

    @model_validator(mode='after')
    def validate_totals(self) -> 'TaxSummary':
        """Status totals must agree with the paid/pending fields."""
        if self.totals_by_status.get("paid", 0.0) != self.total_paid:
            raise ValueError("Paid total does not match status breakdown")
        if self.totals_by_status.get("pending", 0.0) != self.total_pending:
            raise ValueError("Pending total does not match status breakdown")
        return self
