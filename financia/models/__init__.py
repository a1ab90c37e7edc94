"""
Data Models Package

This package contains all Pydantic models used in Financ.ia.
All data flowing through the system must conform to these schemas.
"""

from financia.models.records import (
    Investment,
    InvestmentDraft,
    PaymentMethod,
    Tax,
    TaxDraft,
    TaxStatus,
    Transaction,
    TransactionDraft,
    TransactionType,
    new_record_id,
)
from financia.models.categories import (
    EXPENSE_CATEGORIES,
    INCOME_CATEGORIES,
    INVESTMENT_CATEGORIES,
    PAYMENT_METHODS,
    TAX_CATEGORIES,
    Category,
    CategoryKind,
    PaymentMethodInfo,
    find_category,
    infer_transaction_type,
    is_known_category,
    kind_for_type,
    resolve_category,
    resolve_payment_method,
)
from financia.models.chat import ChatMessage, ChatRole
from financia.models.actions import (
    ACTION_KINDS_BY_FUNCTION,
    ActionValidationResult,
    AssistantAction,
    RawActionCall,
    RecordInvestmentAction,
    RecordTaxAction,
    RecordTransactionAction,
    ValidationIssue,
)
from financia.models.analytics import (
    AllocationSlice,
    DashboardSummary,
    DateRange,
    HealthMetrics,
    HealthScore,
    Insight,
    InvestmentSummary,
    SeriesBucket,
    TaxSummary,
)
from financia.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Record models
    "Investment",
    "InvestmentDraft",
    "PaymentMethod",
    "Tax",
    "TaxDraft",
    "TaxStatus",
    "Transaction",
    "TransactionDraft",
    "TransactionType",
    "new_record_id",
    # Categories
    "EXPENSE_CATEGORIES",
    "INCOME_CATEGORIES",
    "INVESTMENT_CATEGORIES",
    "PAYMENT_METHODS",
    "TAX_CATEGORIES",
    "Category",
    "CategoryKind",
    "PaymentMethodInfo",
    "find_category",
    "infer_transaction_type",
    "is_known_category",
    "kind_for_type",
    "resolve_category",
    "resolve_payment_method",
    # Chat
    "ChatMessage",
    "ChatRole",
    # Assistant actions
    "ACTION_KINDS_BY_FUNCTION",
    "ActionValidationResult",
    "AssistantAction",
    "RawActionCall",
    "RecordInvestmentAction",
    "RecordTaxAction",
    "RecordTransactionAction",
    "ValidationIssue",
    # Analytics results
    "AllocationSlice",
    "DashboardSummary",
    "DateRange",
    "HealthMetrics",
    "HealthScore",
    "Insight",
    "InvestmentSummary",
    "SeriesBucket",
    "TaxSummary",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
