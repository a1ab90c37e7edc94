"""
Assistant Action Models

The assistant answers either with text or with structured requests to
record something. Those requests arrive as loosely typed function calls;
these models are the closed set of shapes we accept from them.

CRITICAL: An action is only ever applied through the store's `add_*`
operations. The assistant can create records; it can never edit or
delete them.
"""

import datetime
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, Field

from financia.models.records import (
    InvestmentDraft,
    PaymentMethod,
    RecordModel,
    TaxDraft,
    TaxStatus,
    TransactionDraft,
    TransactionType,
)


class RawActionCall(BaseModel):
    """A function call exactly as the assistant emitted it."""

    name: str
    args: dict[str, Any] = Field(default_factory=dict)


class RecordTransactionAction(RecordModel):
    """Request to record an income or expense."""

    kind: Literal["record_transaction"] = "record_transaction"
    description: str = Field(..., min_length=1, max_length=200)
    amount: float = Field(..., ge=0)
    category: str = Field(..., min_length=1)
    type: Optional[TransactionType] = None
    payment_method: PaymentMethod
    date: Optional[datetime.date] = None

    def to_draft(self, today: datetime.date) -> TransactionDraft:
        return TransactionDraft(
            description=self.description,
            amount=self.amount,
            category=self.category,
            type=self.type,
            payment_method=self.payment_method,
            date=self.date or today,
        )


class RecordInvestmentAction(RecordModel):
    """Request to record an investment contribution."""

    kind: Literal["record_investment"] = "record_investment"
    name: str = Field(..., min_length=1, max_length=200)
    ticker: Optional[str] = Field(default=None, max_length=20)
    amount: float = Field(..., ge=0)
    category: str = Field(..., min_length=1)
    date: Optional[datetime.date] = None

    def to_draft(self, today: datetime.date) -> InvestmentDraft:
        return InvestmentDraft(
            name=self.name,
            ticker=self.ticker or None,
            amount=self.amount,
            category=self.category,
            date=self.date or today,
        )


class RecordTaxAction(RecordModel):
    """Request to record a tax obligation."""

    kind: Literal["record_tax"] = "record_tax"
    name: str = Field(..., min_length=1, max_length=200)
    amount: float = Field(..., ge=0)
    due_date: datetime.date
    category: str = Field(..., min_length=1)
    status: TaxStatus

    def to_draft(self, today: datetime.date) -> TaxDraft:
        return TaxDraft(
            name=self.name,
            amount=self.amount,
            due_date=self.due_date,
            category=self.category,
            status=self.status,
        )


AssistantAction = Annotated[
    Union[RecordTransactionAction, RecordInvestmentAction, RecordTaxAction],
    Field(discriminator="kind"),
]


# Function names declared to the model, and the action kind each maps to
ACTION_KINDS_BY_FUNCTION: dict[str, str] = {
    "save_transaction": "record_transaction",
    "save_investment": "record_investment",
    "save_tax": "record_tax",
}


# =============================================================================
# VALIDATION RESULTS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single problem found in an assistant call."""

    field: str = Field(
        ...,
        description="Argument with the issue ('function' for the call itself)"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'unknown_function', 'missing', 'unknown_category')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ActionValidationResult(BaseModel):
    """
    Outcome of validating one assistant call.

    `action` is set whenever the call parsed, even if warnings were found.
    Only error-severity issues make a call invalid.
    """

    call: RawActionCall
    action: Optional[AssistantAction] = None
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def is_valid(self) -> bool:
        return self.action is not None and not self.has_errors

    @property
    def warnings(self) -> list[str]:
        return [i.message for i in self.issues if i.severity == "warning"]
