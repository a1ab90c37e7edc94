"""Tests for the category taxonomies and resolver."""

import pytest

from financia.models.categories import (
    EXPENSE_CATEGORIES,
    FALLBACK_COLOR,
    INCOME_CATEGORIES,
    PAYMENT_METHODS,
    CategoryKind,
    find_category,
    infer_transaction_type,
    is_known_category,
    kind_for_type,
    resolve_category,
    resolve_payment_method,
)
from financia.models.records import PaymentMethod, TransactionType


class TestTaxonomies:
    """Tests for the fixed category lists."""

    def test_ids_are_unique_per_taxonomy(self):
        """Test that no taxonomy repeats an id."""
        for kind in CategoryKind:
            ids = [c.id for c in _taxonomy(kind)]
            assert len(ids) == len(set(ids))

    def test_expected_ids_exist(self):
        """Test the category ids the assistant is told about."""
        assert {c.id for c in INCOME_CATEGORIES} == {
            "salary", "freelance", "investments", "other_income",
        }
        assert {c.id for c in EXPENSE_CATEGORIES} == {
            "food", "rent", "transport", "entertainment", "health", "other_expense",
        }
        assert is_known_category("treasury", CategoryKind.INVESTMENT)
        assert is_known_category("iss", CategoryKind.TAX)

    def test_every_payment_method_has_metadata(self):
        """Test that each payment method has display info."""
        assert {info.id for info in PAYMENT_METHODS} == set(PaymentMethod)
        assert resolve_payment_method("credit").name == "Crédito"


class TestResolver:
    """Tests for category resolution and type inference."""

    def test_resolve_known_category(self):
        """Test that a known id resolves to its entry."""
        category = resolve_category("food", CategoryKind.EXPENSE)
        assert category.name == "Alimentação"

    def test_resolve_unknown_category_falls_back(self):
        """Test that unknown ids get the fallback entry instead of failing."""
        category = resolve_category("pets", CategoryKind.EXPENSE)
        assert category.id == "pets"
        assert category.name == "Outros"
        assert category.color == FALLBACK_COLOR

    def test_lookup_is_per_taxonomy(self):
        """Test that an id from another taxonomy is not found."""
        assert find_category("salary", CategoryKind.EXPENSE) is None
        assert resolve_category("salary", CategoryKind.EXPENSE).color == FALLBACK_COLOR

    @pytest.mark.parametrize("category_id", ["salary", "freelance", "investments", "other_income"])
    def test_income_categories_infer_income(self, category_id):
        """Test that income-taxonomy ids infer income."""
        assert infer_transaction_type(category_id) is TransactionType.INCOME

    @pytest.mark.parametrize("category_id", ["food", "rent", "other_expense", "salário extra", ""])
    def test_other_categories_infer_expense(self, category_id):
        """Test that everything else, including free text, infers expense."""
        assert infer_transaction_type(category_id) is TransactionType.EXPENSE

    def test_kind_for_type(self):
        """Test the taxonomy used to label each transaction type."""
        assert kind_for_type(TransactionType.INCOME) is CategoryKind.INCOME
        assert kind_for_type(TransactionType.EXPENSE) is CategoryKind.EXPENSE


def _taxonomy(kind):
    from financia.models.categories import TAXONOMIES
    return TAXONOMIES[kind]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
