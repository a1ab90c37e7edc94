"""
Category Taxonomy

Static reference data: four closed sets of categories (income, expense,
investment, tax) with their display metadata, plus payment methods.

Categories on stored records are plain strings, not enums. Records may
carry ids that no longer exist (or were typed freely), so every lookup
falls back to a defined "Other" entry instead of failing.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict

from financia.models.records import PaymentMethod, TransactionType


class CategoryKind(str, Enum):
    """Which taxonomy a category id belongs to."""
    INCOME = "income"
    EXPENSE = "expense"
    INVESTMENT = "investment"
    TAX = "tax"


class Category(BaseModel):
    """Display metadata for one category."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    color: str
    icon: str


class PaymentMethodInfo(BaseModel):
    """Display metadata for a payment method."""

    model_config = ConfigDict(frozen=True)

    id: PaymentMethod
    name: str
    icon: str


FALLBACK_COLOR = "#888888"


# =============================================================================
# TAXONOMIES
# =============================================================================

INCOME_CATEGORIES: tuple[Category, ...] = (
    Category(id="salary", name="Salário", color="#34C759", icon="💰"),
    Category(id="freelance", name="Freelance", color="#5856D6", icon="💻"),
    Category(id="investments", name="Investimentos", color="#007AFF", icon="📈"),
    Category(id="other_income", name="Outros", color="#8E8E93", icon="✨"),
)

EXPENSE_CATEGORIES: tuple[Category, ...] = (
    Category(id="food", name="Alimentação", color="#FF9500", icon="🍔"),
    Category(id="rent", name="Moradia", color="#FF3B30", icon="🏠"),
    Category(id="transport", name="Transporte", color="#5AC8FA", icon="🚗"),
    Category(id="entertainment", name="Lazer", color="#AF52DE", icon="🍿"),
    Category(id="health", name="Saúde", color="#FF2D55", icon="🏥"),
    Category(id="other_expense", name="Outros", color="#8E8E93", icon="📦"),
)

INVESTMENT_CATEGORIES: tuple[Category, ...] = (
    Category(id="stocks", name="Ações", color="#007AFF", icon="📊"),
    Category(id="fixed_income", name="Renda Fixa", color="#34C759", icon="🛡️"),
    Category(id="fiis", name="FIIs", color="#FF9500", icon="🏢"),
    Category(id="crypto", name="Cripto", color="#5856D6", icon="₿"),
    Category(id="treasury", name="Tesouro", color="#FF3B30", icon="🇧🇷"),
    Category(id="other_invest", name="Outros", color="#8E8E93", icon="🪙"),
)

TAX_CATEGORIES: tuple[Category, ...] = (
    Category(id="irpf", name="IRPF", color="#34C759", icon="🦁"),
    Category(id="iptu", name="IPTU", color="#5856D6", icon="🏠"),
    Category(id="ipva", name="IPVA", color="#007AFF", icon="🚗"),
    Category(id="iss", name="ISS/MEI", color="#FF9500", icon="💼"),
    Category(id="tax_other", name="Taxas/Outros", color="#8E8E93", icon="📜"),
)

PAYMENT_METHODS: tuple[PaymentMethodInfo, ...] = (
    PaymentMethodInfo(id=PaymentMethod.PIX, name="Pix", icon="📱"),
    PaymentMethodInfo(id=PaymentMethod.CREDIT, name="Crédito", icon="💳"),
    PaymentMethodInfo(id=PaymentMethod.DEBIT, name="Débito", icon="🏧"),
    PaymentMethodInfo(id=PaymentMethod.CASH, name="Dinheiro", icon="💵"),
)

TAXONOMIES: dict[CategoryKind, tuple[Category, ...]] = {
    CategoryKind.INCOME: INCOME_CATEGORIES,
    CategoryKind.EXPENSE: EXPENSE_CATEGORIES,
    CategoryKind.INVESTMENT: INVESTMENT_CATEGORIES,
    CategoryKind.TAX: TAX_CATEGORIES,
}

# Returned for ids outside the taxonomy; the id is filled in per lookup.
_FALLBACK_ICONS: dict[CategoryKind, str] = {
    CategoryKind.INCOME: "✨",
    CategoryKind.EXPENSE: "📦",
    CategoryKind.INVESTMENT: "🪙",
    CategoryKind.TAX: "📜",
}

_INCOME_IDS = frozenset(c.id for c in INCOME_CATEGORIES)
_PAYMENT_METHOD_INDEX = {info.id: info for info in PAYMENT_METHODS}


# =============================================================================
# LOOKUPS
# =============================================================================

def find_category(category_id: str, kind: CategoryKind) -> Optional[Category]:
    """Exact lookup; None when the id is not in the taxonomy."""
    for category in TAXONOMIES[kind]:
        if category.id == category_id:
            return category
    return None


def is_known_category(category_id: str, kind: CategoryKind) -> bool:
    return find_category(category_id, kind) is not None


def resolve_category(category_id: str, kind: CategoryKind) -> Category:
    """
    Resolve a category id to its display metadata.

    Unknown ids resolve to the kind's "Other" entry (keeping the
    original id so the caller can still tell them apart).
    Never raises.
    """
    category = find_category(category_id, kind)
    if category is not None:
        return category
    return Category(
        id=category_id,
        name="Outros",
        color=FALLBACK_COLOR,
        icon=_FALLBACK_ICONS[kind],
    )


def kind_for_type(transaction_type: TransactionType) -> CategoryKind:
    """Taxonomy that labels transactions of the given type."""
    if transaction_type is TransactionType.INCOME:
        return CategoryKind.INCOME
    return CategoryKind.EXPENSE


def infer_transaction_type(category_id: str) -> TransactionType:
    """
    Transaction type implied by a category id.

    Ids from the income taxonomy are income; everything else,
    including free text outside the taxonomy, is an expense.
    """
    if category_id in _INCOME_IDS:
        return TransactionType.INCOME
    return TransactionType.EXPENSE


def resolve_payment_method(method: PaymentMethod) -> PaymentMethodInfo:
    return _PAYMENT_METHOD_INDEX[PaymentMethod(method)]
