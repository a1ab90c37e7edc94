"""
Analytics Engine

DESIGN DECISION: Analytics are DETERMINISTIC and read-only.
The engine reads the current collections from the record store and
runs the pipeline:

    period filter -> aggregator -> health metrics

It never writes to the store and never caches: every call reflects the
latest completed write.

Investments and taxes are NOT subject to the dashboard date range;
their summaries always cover the whole collection.
"""

import datetime
from typing import Optional, Sequence

from financia.analytics import aggregator
from financia.analytics.health import compute_health_metrics
from financia.analytics.period import filter_by_range
from financia.models.analytics import (
    DashboardSummary,
    DateRange,
    InvestmentSummary,
    TaxSummary,
)
from financia.models.categories import CategoryKind
from financia.models.records import (
    Investment,
    Tax,
    TaxStatus,
    Transaction,
    TransactionType,
)
from financia.records import RecordStore


def build_summary(
    transactions: Sequence[Transaction],
    date_range: DateRange,
) -> DashboardSummary:
    """Dashboard summary for the transactions inside `date_range`."""
    filtered = filter_by_range(transactions, date_range)

    income = aggregator.total_income(filtered)
    expense = aggregator.total_expense(filtered)
    net = aggregator.balance(income, expense)

    return DashboardSummary(
        date_range=date_range,
        total_income=income,
        total_expense=expense,
        balance=net,
        category_breakdown=aggregator.category_breakdown(
            filtered, TransactionType.EXPENSE
        ),
        income_breakdown=aggregator.category_breakdown(
            filtered, TransactionType.INCOME
        ),
        daily_series=aggregator.daily_series(filtered),
        monthly_series=aggregator.monthly_series(filtered),
        health=compute_health_metrics(
            filtered,
            total_income=income,
            total_expense=expense,
            balance=net,
            start=date_range.start,
            end=date_range.end,
        ),
    )


def build_investment_summary(investments: Sequence[Investment]) -> InvestmentSummary:
    allocation = aggregator.investment_allocation(investments)
    return InvestmentSummary(
        total_invested=sum((inv.amount for inv in investments), 0.0),
        allocation=allocation,
        slices=aggregator.label_breakdown(allocation, CategoryKind.INVESTMENT),
    )


def build_tax_summary(taxes: Sequence[Tax], today: datetime.date) -> TaxSummary:
    """
    Paid/pending totals plus the deadlines that matter.

    `next_due` is the pending tax with the earliest due date (ties keep
    store order); `overdue` lists pending taxes due before `today`.
    """
    totals = aggregator.tax_totals(taxes)
    pending = sorted(
        (tax for tax in taxes if tax.status is TaxStatus.PENDING),
        key=lambda tax: tax.due_date,
    )
    return TaxSummary(
        total_paid=totals.get(TaxStatus.PAID.value, 0.0),
        total_pending=totals.get(TaxStatus.PENDING.value, 0.0),
        totals_by_status=totals,
        next_due=pending[0] if pending else None,
        overdue=[tax for tax in pending if tax.is_overdue(today)],
    )


class AnalyticsEngine:
    """
    Derived-view surface over one user's record store.

    GUARANTEES:
    - Only reads records; never mutates the store
    - Every number comes from stored data, unrounded
    """

    def __init__(self, store: RecordStore, default_range_months: int = 6):
        self._store = store
        self._default_range_months = default_range_months

    def default_range(self, today: Optional[datetime.date] = None) -> DateRange:
        return DateRange.default(
            today or datetime.date.today(), self._default_range_months
        )

    def all_time_range(self, today: Optional[datetime.date] = None) -> DateRange:
        return DateRange.all_time(
            self._store.transactions,
            today or datetime.date.today(),
            self._default_range_months,
        )

    def get_summary(self, date_range: Optional[DateRange] = None) -> DashboardSummary:
        """Totals, breakdowns, series and health metrics for a date range."""
        return build_summary(
            self._store.transactions,
            date_range or self.default_range(),
        )

    def get_investment_allocation(self) -> InvestmentSummary:
        return build_investment_summary(self._store.investments)

    def get_tax_summary(self, today: Optional[datetime.date] = None) -> TaxSummary:
        return build_tax_summary(self._store.taxes, today or datetime.date.today())
