"""
Core Record Models for Financ.ia

These models define the schemas for everything the user logs:
1. Transactions (income and expense)
2. Investments
3. Taxes

DESIGN DECISION: Python attributes are snake_case, but records serialize
with camelCase keys (paymentMethod, dueDate). Persisted collections keep
the same shape the client-side store has always used.

Amounts are NOT constrained to be non-negative here. The entry forms
never produce negatives, but stored data can still carry them; the
analytics treat them as ordinary numbers and the store logs the anomaly.
"""

import datetime
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """Direction of a transaction. Authoritative for aggregation."""
    INCOME = "income"
    EXPENSE = "expense"


class PaymentMethod(str, Enum):
    """How an expense (or income) was settled."""
    PIX = "pix"
    CREDIT = "credit"
    DEBIT = "debit"
    CASH = "cash"


class TaxStatus(str, Enum):
    """Payment status of a tax obligation."""
    PAID = "paid"
    PENDING = "pending"

    def flipped(self) -> "TaxStatus":
        return TaxStatus.PENDING if self is TaxStatus.PAID else TaxStatus.PAID


def new_record_id() -> str:
    """Fresh unique id for a record."""
    return str(uuid4())


class RecordModel(BaseModel):
    """Shared configuration for persisted records and their drafts."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        use_enum_values=False,
    )

    def to_storage(self) -> dict:
        """Serialize to the JSON shape used by persistence."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# =============================================================================
# DRAFTS - records before the store assigns an id
# =============================================================================

class TransactionDraft(RecordModel):
    """
    A transaction as entered, before it is stored.

    `type` may be omitted; the store then infers it from the category
    exactly once, at creation time.
    """

    description: str = Field(
        ...,
        max_length=200,
        description="What was bought or received"
    )
    amount: float = Field(
        ...,
        description="Transaction amount"
    )
    date: datetime.date = Field(
        ...,
        description="Calendar date of the transaction"
    )
    category: str = Field(
        ...,
        min_length=1,
        description="Category id from the income/expense taxonomy"
    )
    type: Optional[TransactionType] = Field(
        default=None,
        description="income or expense; inferred from category when missing"
    )
    payment_method: PaymentMethod = Field(
        default=PaymentMethod.PIX,
        description="How it was paid"
    )


class InvestmentDraft(RecordModel):
    """An investment contribution before it is stored."""

    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Asset or institution name"
    )
    ticker: Optional[str] = Field(
        default=None,
        max_length=20,
        description="Ticker symbol, if any (PETR4, BTC)"
    )
    amount: float
    date: datetime.date
    category: str = Field(
        ...,
        min_length=1,
        description="Category id from the investment taxonomy"
    )


class TaxDraft(RecordModel):
    """A tax obligation before it is stored."""

    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
    )
    amount: float
    due_date: datetime.date
    category: str = Field(
        ...,
        min_length=1,
        description="Category id from the tax taxonomy"
    )
    status: TaxStatus = TaxStatus.PENDING


# =============================================================================
# STORED RECORDS
# =============================================================================

class Transaction(TransactionDraft):
    """
    A stored transaction.

    `id` never changes after creation; `type` is always set.
    """

    id: str = Field(
        default_factory=new_record_id,
        min_length=1,
        description="Unique id within the transaction collection"
    )
    type: TransactionType

    @property
    def is_income(self) -> bool:
        return self.type is TransactionType.INCOME

    @property
    def is_expense(self) -> bool:
        return self.type is TransactionType.EXPENSE


class Investment(InvestmentDraft):
    """A stored investment contribution."""

    id: str = Field(
        default_factory=new_record_id,
        min_length=1,
    )


class Tax(TaxDraft):
    """A stored tax obligation."""

    id: str = Field(
        default_factory=new_record_id,
        min_length=1,
    )

    def is_overdue(self, today: datetime.date) -> bool:
        """Pending and past its due date."""
        return self.status is TaxStatus.PENDING and self.due_date < today
