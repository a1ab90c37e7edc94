"""
Aggregator

Sums, category breakdowns and time-bucketed series over a transaction
list (normally one already narrowed by the period filter), plus the
same "sum grouped by key, omit empty groups" rollups over investments
and taxes.

DESIGN DECISION: Every rollup here is a plain function of its input.
Nothing is cached and nothing is rounded; groups with no members are
never synthesized as zero entries.
"""

from typing import Callable, Iterable, TypeVar

from financia.models.analytics import AllocationSlice, SeriesBucket
from financia.models.categories import CategoryKind, resolve_category
from financia.models.records import Investment, Tax, Transaction, TransactionType


T = TypeVar("T")


def _sum_by(
    items: Iterable[T],
    key: Callable[[T], str],
    amount: Callable[[T], float],
) -> dict[str, float]:
    """Sum `amount` per `key`, in first-seen key order."""
    totals: dict[str, float] = {}
    for item in items:
        k = key(item)
        totals[k] = totals.get(k, 0.0) + amount(item)
    return totals


# =============================================================================
# TOTALS
# =============================================================================

def total_by_type(
    transactions: Iterable[Transaction],
    transaction_type: TransactionType,
) -> float:
    return sum(
        (t.amount for t in transactions if t.type is transaction_type),
        0.0,
    )


def total_income(transactions: Iterable[Transaction]) -> float:
    return total_by_type(transactions, TransactionType.INCOME)


def total_expense(transactions: Iterable[Transaction]) -> float:
    return total_by_type(transactions, TransactionType.EXPENSE)


def balance(income: float, expense: float) -> float:
    """Signed difference; negative when spending exceeds income."""
    return income - expense


# =============================================================================
# BREAKDOWNS
# =============================================================================

def category_breakdown(
    transactions: Iterable[Transaction],
    transaction_type: TransactionType,
) -> dict[str, float]:
    """
    Summed amount per category id for one transaction type.

    `type` is authoritative: a transaction filed under an income
    category but typed as expense counts as expense.
    """
    return _sum_by(
        (t for t in transactions if t.type is transaction_type),
        key=lambda t: t.category,
        amount=lambda t: t.amount,
    )


def investment_allocation(investments: Iterable[Investment]) -> dict[str, float]:
    """Summed amount per investment category id."""
    return _sum_by(
        investments,
        key=lambda inv: inv.category,
        amount=lambda inv: inv.amount,
    )


def tax_totals(taxes: Iterable[Tax]) -> dict[str, float]:
    """Summed amount per tax status ("paid" / "pending")."""
    return _sum_by(
        taxes,
        key=lambda tax: tax.status.value,
        amount=lambda tax: tax.amount,
    )


def label_breakdown(
    breakdown: dict[str, float],
    kind: CategoryKind,
) -> list[AllocationSlice]:
    """
    Attach display metadata to a breakdown, largest value first.

    Unknown category ids get the taxonomy's fallback entry.
    """
    slices = [
        AllocationSlice(category=resolve_category(category_id, kind), value=value)
        for category_id, value in breakdown.items()
    ]
    slices.sort(key=lambda s: s.value, reverse=True)
    return slices


# =============================================================================
# TIME SERIES
# =============================================================================

def _bucket_series(
    transactions: Iterable[Transaction],
    key: Callable[[Transaction], str],
) -> dict[str, SeriesBucket]:
    buckets: dict[str, SeriesBucket] = {}
    for t in transactions:
        bucket = buckets.setdefault(key(t), SeriesBucket())
        if t.type is TransactionType.INCOME:
            bucket.income += t.amount
        else:
            bucket.expense += t.amount
    return {k: buckets[k] for k in sorted(buckets)}


def daily_series(transactions: Iterable[Transaction]) -> dict[str, SeriesBucket]:
    """
    Income/expense per ISO date, ascending.

    Only dates that have transactions appear; gaps are not filled.
    """
    return _bucket_series(transactions, key=lambda t: t.date.isoformat())


def monthly_series(transactions: Iterable[Transaction]) -> dict[str, SeriesBucket]:
    """Income/expense per YYYY-MM month key, ascending."""
    return _bucket_series(transactions, key=lambda t: t.date.strftime("%Y-%m"))
