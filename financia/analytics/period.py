"""
Period Filter

Narrows a transaction collection to an inclusive calendar-date range.

Dates compare as plain calendar dates, which orders exactly like their
fixed-width ISO strings. No timezone is involved anywhere.
"""

import datetime
from typing import Iterable

from financia.models.analytics import DateRange
from financia.models.records import Transaction


def filter_by_period(
    transactions: Iterable[Transaction],
    start: datetime.date,
    end: datetime.date,
) -> list[Transaction]:
    """
    Transactions dated within [start, end], in their original order.

    An empty result is valid. Filtering an already-filtered list with
    the same bounds returns the same list.
    """
    return [t for t in transactions if start <= t.date <= end]


def filter_by_range(
    transactions: Iterable[Transaction],
    date_range: DateRange,
) -> list[Transaction]:
    return filter_by_period(transactions, date_range.start, date_range.end)


__all__ = ["DateRange", "filter_by_period", "filter_by_range"]
