"""
Health Metrics Engine

Derives the financial-health indicators for one period from the
filtered transactions and the aggregator's totals.

Every ratio has an explicit guard, so zero income, zero expense or a
zero-width range produce a defined value instead of a division error.

Thresholds:
- savings rate above 20%  -> Excellent; above 0% -> Stable; else Critical
- credit above 60% of expense triggers the credit-dependency insight
- savings rate above 25% earns the positive insight
"""

import datetime
from typing import Sequence

from financia.analytics.aggregator import category_breakdown
from financia.models.analytics import HealthMetrics, HealthScore, Insight
from financia.models.records import PaymentMethod, Transaction, TransactionType


EXCELLENT_SAVINGS_RATE = 20.0
STRONG_SAVINGS_RATE = 25.0
CREDIT_DEPENDENCY_LIMIT = 60.0

# Efficiency reported when there is income but nothing spent
FULL_EFFICIENCY = 100.0


def classify_health(savings_rate: float) -> HealthScore:
    if savings_rate > EXCELLENT_SAVINGS_RATE:
        return HealthScore.EXCELLENT
    if savings_rate > 0:
        return HealthScore.STABLE
    return HealthScore.CRITICAL


def choose_insight(savings_rate: float, credit_dependency: float) -> Insight:
    """First matching rule wins."""
    if savings_rate < 0:
        return Insight.OVERSPENDING
    if credit_dependency > CREDIT_DEPENDENCY_LIMIT:
        return Insight.CREDIT_DEPENDENCY
    if savings_rate > STRONG_SAVINGS_RATE:
        return Insight.STRONG_SAVINGS
    return Insight.KEEP_LOGGING


def compute_health_metrics(
    transactions: Sequence[Transaction],
    total_income: float,
    total_expense: float,
    balance: float,
    start: datetime.date,
    end: datetime.date,
) -> HealthMetrics:
    """
    Compute the health metric suite for a period.

    Args:
        transactions: Transactions already filtered to [start, end]
        total_income: Sum of income amounts in `transactions`
        total_expense: Sum of expense amounts in `transactions`
        balance: total_income - total_expense
        start: First day of the period
        end: Last day of the period

    Returns:
        HealthMetrics with unrounded values
    """
    days_diff = max(1, (end - start).days)

    expenses = [t for t in transactions if t.type is TransactionType.EXPENSE]

    savings_rate = (balance / total_income) * 100 if total_income > 0 else 0.0
    daily_burn = total_expense / days_diff
    avg_ticket = total_expense / len(expenses) if expenses else 0.0

    credit_total = sum(
        (t.amount for t in expenses if t.payment_method is PaymentMethod.CREDIT),
        0.0,
    )
    credit_dependency = (
        (credit_total / total_expense) * 100 if total_expense > 0 else 0.0
    )

    survival_days = balance / daily_burn if daily_burn > 0 else 0.0

    if total_expense > 0:
        efficiency_ratio = total_income / total_expense
    elif total_income > 0:
        efficiency_ratio = FULL_EFFICIENCY
    else:
        efficiency_ratio = 0.0

    category_totals = category_breakdown(expenses, TransactionType.EXPENSE)
    largest_category = max([0.0, *category_totals.values()])
    concentration = (
        (largest_category / total_expense) * 100 if total_expense > 0 else 0.0
    )

    return HealthMetrics(
        days_diff=days_diff,
        savings_rate=savings_rate,
        daily_burn=daily_burn,
        avg_ticket=avg_ticket,
        credit_total=credit_total,
        credit_dependency=credit_dependency,
        survival_days=survival_days,
        efficiency_ratio=efficiency_ratio,
        concentration=concentration,
        transaction_count=len(transactions),
        health_score=classify_health(savings_rate),
        insight=choose_insight(savings_rate, credit_dependency),
    )
