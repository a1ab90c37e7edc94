"""
Tests for the analytics engine

Covers the period filter, the aggregator, the health metrics and the
derived-view surface over a record store.
"""

import pytest
from datetime import date

from financia.analytics import (
    AnalyticsEngine,
    DateRange,
    balance,
    build_summary,
    build_tax_summary,
    category_breakdown,
    choose_insight,
    classify_health,
    compute_health_metrics,
    daily_series,
    filter_by_period,
    investment_allocation,
    label_breakdown,
    monthly_series,
    tax_totals,
    total_expense,
    total_income,
)
from financia.models.analytics import HealthScore, Insight
from financia.models.categories import CategoryKind
from financia.models.records import (
    Investment,
    InvestmentDraft,
    PaymentMethod,
    Tax,
    TaxDraft,
    TaxStatus,
    TransactionType,
)

from conftest import make_transaction


JANUARY = DateRange(start=date(2024, 1, 1), end=date(2024, 1, 31))


def _metrics(transactions, start=JANUARY.start, end=JANUARY.end):
    income = total_income(transactions)
    expense = total_expense(transactions)
    return compute_health_metrics(
        transactions,
        total_income=income,
        total_expense=expense,
        balance=balance(income, expense),
        start=start,
        end=end,
    )


class TestPeriodFilter:
    """Tests for the inclusive date filter."""

    def test_bounds_are_inclusive(self, january_transactions):
        """Test that both range ends are included."""
        filtered = filter_by_period(january_transactions, date(2024, 1, 5), date(2024, 1, 10))
        assert [t.date.day for t in filtered] == [5, 6, 10, 10]

    def test_order_is_preserved(self, january_transactions):
        """Test that filtering keeps the input order."""
        filtered = filter_by_period(january_transactions, JANUARY.start, JANUARY.end)
        assert filtered == january_transactions[:-1]

    def test_filter_is_idempotent(self, january_transactions):
        """Test that filtering twice with the same range changes nothing."""
        once = filter_by_period(january_transactions, date(2024, 1, 6), date(2024, 1, 20))
        twice = filter_by_period(once, date(2024, 1, 6), date(2024, 1, 20))
        assert once == twice

    def test_empty_result_is_valid(self, january_transactions):
        """Test that a range with no records yields an empty list."""
        assert filter_by_period(january_transactions, date(2023, 1, 1), date(2023, 12, 31)) == []

    def test_inverted_range_matches_nothing(self, january_transactions):
        """Test that start after end matches nothing."""
        assert filter_by_period(january_transactions, date(2024, 1, 31), date(2024, 1, 1)) == []


class TestAggregator:
    """Tests for totals, breakdowns and series."""

    def test_totals(self, january_transactions):
        """Test income and expense totals by type."""
        assert total_income(january_transactions) == 5800
        assert total_expense(january_transactions) == 2210

    def test_balance_identity(self, january_transactions):
        """Test that income minus expense equals the balance exactly."""
        income = total_income(january_transactions)
        expense = total_expense(january_transactions)
        assert income - expense == balance(income, expense)

    def test_balance_may_be_negative(self):
        """Test that the balance is signed."""
        assert balance(100, 250) == -150

    def test_expense_breakdown_sums_to_total(self, january_transactions):
        """Test that expense category totals add up to the expense total."""
        breakdown = category_breakdown(january_transactions, TransactionType.EXPENSE)
        assert sum(breakdown.values()) == total_expense(january_transactions)
        assert breakdown["food"] == 500

    def test_breakdown_omits_absent_categories(self, january_transactions):
        """Test that categories without transactions are not zero-filled."""
        breakdown = category_breakdown(january_transactions, TransactionType.EXPENSE)
        assert "health" not in breakdown
        assert "salary" not in breakdown

    def test_type_is_authoritative(self):
        """Test that an expense filed under an income category counts as expense."""
        tx = make_transaction(50, date(2024, 1, 3), TransactionType.EXPENSE, "salary")
        assert category_breakdown([tx], TransactionType.EXPENSE) == {"salary": 50}
        assert total_income([tx]) == 0

    def test_daily_series(self, january_transactions):
        """Test one ascending bucket per distinct date."""
        series = daily_series(reversed(january_transactions))
        assert list(series) == sorted(series)
        assert series["2024-01-10"].expense == 500
        assert series["2024-01-05"].income == 5000
        assert "2024-01-07" not in series

    def test_monthly_series_groups_month(self):
        """Test that the first and last day of a month share a bucket."""
        series = monthly_series([
            make_transaction(10, date(2024, 3, 1)),
            make_transaction(20, date(2024, 3, 31), TransactionType.INCOME, "salary"),
        ])
        assert list(series) == ["2024-03"]
        assert series["2024-03"].expense == 10
        assert series["2024-03"].income == 20
        assert series["2024-03"].net == 10

    def test_monthly_series_ascending(self, january_transactions):
        """Test month keys are ascending."""
        assert list(monthly_series(reversed(january_transactions))) == ["2024-01", "2024-02"]

    def test_investment_allocation(self):
        """Test investment sums per category."""
        investments = [
            Investment(name="PETR4", amount=100, date=date(2024, 1, 1), category="stocks"),
            Investment(name="VALE3", amount=50, date=date(2023, 1, 1), category="stocks"),
            Investment(name="BTC", amount=30, date=date(2024, 1, 1), category="crypto"),
        ]
        assert investment_allocation(investments) == {"stocks": 150, "crypto": 30}

    def test_tax_totals_omit_empty_groups(self):
        """Test tax sums per status without zero entries."""
        taxes = [
            Tax(name="IPTU", amount=300, due_date=date(2024, 2, 1), category="iptu"),
            Tax(name="IPVA", amount=700, due_date=date(2024, 3, 1), category="ipva"),
        ]
        assert tax_totals(taxes) == {"pending": 1000}

    def test_label_breakdown_sorted(self):
        """Test labeled slices come largest first with fallback labels."""
        slices = label_breakdown({"crypto": 10, "stocks": 90, "gold": 40}, CategoryKind.INVESTMENT)
        assert [s.category.id for s in slices] == ["stocks", "gold", "crypto"]
        assert slices[1].category.name == "Outros"


class TestHealthMetrics:
    """Tests for the health metric suite."""

    def test_reference_scenario(self):
        """Test one income and one expense across January."""
        transactions = [
            make_transaction(1000, date(2024, 1, 1), TransactionType.INCOME, "salary"),
            make_transaction(400, date(2024, 1, 10)),
        ]
        metrics = _metrics(transactions)

        assert total_income(transactions) == 1000
        assert total_expense(transactions) == 400
        assert metrics.savings_rate == 60
        assert metrics.health_score is HealthScore.EXCELLENT
        assert metrics.days_diff == 30
        assert metrics.daily_burn == pytest.approx(400 / 30)
        assert metrics.avg_ticket == 400
        assert metrics.efficiency_ratio == 2.5
        assert metrics.concentration == 100
        assert metrics.insight is Insight.STRONG_SAVINGS

    def test_no_transactions(self):
        """Test that an empty period yields zeros and a Critical score."""
        metrics = _metrics([])
        assert metrics.savings_rate == 0
        assert metrics.daily_burn == 0
        assert metrics.avg_ticket == 0
        assert metrics.credit_dependency == 0
        assert metrics.survival_days == 0
        assert metrics.efficiency_ratio == 0
        assert metrics.concentration == 0
        assert metrics.transaction_count == 0
        assert metrics.health_score is HealthScore.CRITICAL
        assert metrics.insight is Insight.KEEP_LOGGING

    def test_savings_rate_zero_without_income(self):
        """Test that zero income gives a zero savings rate whatever the expense."""
        metrics = _metrics([make_transaction(999, date(2024, 1, 3))])
        assert metrics.savings_rate == 0
        assert metrics.health_score is HealthScore.CRITICAL

    def test_avg_ticket_zero_without_expenses(self):
        """Test that only-income periods have no average ticket."""
        metrics = _metrics([make_transaction(500, date(2024, 1, 3), TransactionType.INCOME, "salary")])
        assert metrics.avg_ticket == 0
        assert metrics.efficiency_ratio == 100

    @pytest.mark.parametrize("income,expense", [(1000, 400), (300, 900)])
    def test_survival_days_sign_matches_balance(self, income, expense):
        """Test runway is negative exactly when the balance is."""
        metrics = _metrics([
            make_transaction(income, date(2024, 1, 1), TransactionType.INCOME, "salary"),
            make_transaction(expense, date(2024, 1, 2)),
        ])
        assert metrics.daily_burn > 0
        assert (metrics.survival_days > 0) == (income - expense > 0)

    def test_single_day_range(self):
        """Test that a zero-width range counts as one day."""
        day = date(2024, 1, 15)
        metrics = _metrics([make_transaction(70, day)], start=day, end=day)
        assert metrics.days_diff == 1
        assert metrics.daily_burn == 70

    def test_inverted_range_counts_as_one_day(self):
        """Test an end before the start still divides by one day."""
        metrics = _metrics(
            [make_transaction(90, date(2024, 1, 15))],
            start=date(2024, 1, 20),
            end=date(2024, 1, 10),
        )
        assert metrics.days_diff == 1
        assert metrics.daily_burn == 90

    def test_concentration_uses_largest_category(self, january_transactions):
        """Test concentration is the biggest expense category's share."""
        metrics = _metrics(filter_by_period(january_transactions, JANUARY.start, JANUARY.end))
        # rent 1500, food 500, transport 120
        assert metrics.concentration == pytest.approx(1500 / 2120 * 100)

    def test_concentration_ignores_income_categories(self):
        """Test income never counts towards concentration."""
        metrics = _metrics([
            make_transaction(9000, date(2024, 1, 1), TransactionType.INCOME, "salary"),
            make_transaction(300, date(2024, 1, 2), category="food"),
            make_transaction(100, date(2024, 1, 3), category="transport"),
        ])
        assert metrics.concentration == 75

    def test_credit_dependency(self, january_transactions):
        """Test credit share of expenses."""
        metrics = _metrics(filter_by_period(january_transactions, JANUARY.start, JANUARY.end))
        assert metrics.credit_total == 420
        assert metrics.credit_dependency == pytest.approx(420 / 2120 * 100)

    def test_overspending_wins_over_credit(self):
        """Test the first matching insight rule wins."""
        metrics = _metrics([
            make_transaction(100, date(2024, 1, 1), TransactionType.INCOME, "salary"),
            make_transaction(500, date(2024, 1, 2), payment_method=PaymentMethod.CREDIT),
        ])
        assert metrics.credit_dependency == 100
        assert metrics.insight is Insight.OVERSPENDING
        assert "exceeded" in metrics.insight_text

    def test_classify_health_thresholds(self):
        """Test the score boundaries are strict."""
        assert classify_health(20) is HealthScore.STABLE
        assert classify_health(20.01) is HealthScore.EXCELLENT
        assert classify_health(0) is HealthScore.CRITICAL
        assert classify_health(-5) is HealthScore.CRITICAL

    def test_choose_insight_order(self):
        """Test insight precedence."""
        assert choose_insight(-1, 90) is Insight.OVERSPENDING
        assert choose_insight(30, 61) is Insight.CREDIT_DEPENDENCY
        assert choose_insight(30, 60) is Insight.STRONG_SAVINGS
        assert choose_insight(25, 0) is Insight.KEEP_LOGGING


class TestSummaries:
    """Tests for the derived views."""

    def test_build_summary(self, january_transactions):
        """Test the dashboard summary only covers the range."""
        summary = build_summary(january_transactions, JANUARY)
        assert summary.total_income == 5800
        assert summary.total_expense == 2120
        assert summary.balance == 3680
        assert "entertainment" not in summary.category_breakdown
        assert summary.income_breakdown == {"salary": 5000, "freelance": 800}
        assert list(summary.monthly_series) == ["2024-01"]
        assert summary.health.transaction_count == 6

    def test_tax_summary(self):
        """Test next due and overdue pending taxes."""
        taxes = [
            Tax(name="IPVA", amount=700, due_date=date(2024, 3, 1), category="ipva"),
            Tax(name="IPTU", amount=300, due_date=date(2024, 2, 1), category="iptu"),
            Tax(name="IRPF", amount=900, due_date=date(2024, 1, 1), category="irpf",
                status=TaxStatus.PAID),
        ]
        summary = build_tax_summary(taxes, today=date(2024, 2, 15))
        assert summary.total_paid == 900
        assert summary.total_pending == 1000
        assert summary.next_due.name == "IPTU"
        assert [t.name for t in summary.overdue] == ["IPTU"]

    def test_tax_summary_empty(self):
        """Test an empty tax list."""
        summary = build_tax_summary([], today=date(2024, 2, 15))
        assert summary.total_paid == 0
        assert summary.next_due is None
        assert summary.overdue == []


class TestAnalyticsEngine:
    """Tests for the engine reading a live record store."""

    def test_reads_latest_writes(self, store):
        """Test the engine reflects records added after it was created."""
        engine = AnalyticsEngine(store)
        rng = DateRange(start=date(2024, 1, 1), end=date(2024, 1, 31))
        assert engine.get_summary(rng).total_expense == 0

        from financia.models.records import TransactionDraft
        store.add_transaction(TransactionDraft(
            description="Aluguel", amount=1200, date=date(2024, 1, 5), category="rent",
        ))
        assert engine.get_summary(rng).total_expense == 1200

    def test_investments_ignore_date_range(self, store):
        """Test the allocation covers every investment."""
        store.add_investment(InvestmentDraft(
            name="Tesouro", amount=500, date=date(2019, 1, 1), category="treasury",
        ))
        store.add_investment(InvestmentDraft(
            name="PETR4", amount=800, date=date(2024, 1, 1), category="stocks",
        ))
        summary = AnalyticsEngine(store).get_investment_allocation()
        assert summary.total_invested == 1300
        assert [s.category.id for s in summary.slices] == ["stocks", "treasury"]

    def test_tax_summary_from_store(self, store):
        """Test the tax summary uses the store's taxes."""
        store.add_tax(TaxDraft(
            name="IPTU", amount=300, due_date=date(2024, 2, 1), category="iptu",
        ))
        summary = AnalyticsEngine(store).get_tax_summary(today=date(2024, 3, 1))
        assert summary.total_pending == 300
        assert len(summary.overdue) == 1

    def test_ranges(self, store):
        """Test the default and all-time presets."""
        engine = AnalyticsEngine(store, default_range_months=3)
        today = date(2024, 5, 20)
        assert engine.default_range(today).start == date(2024, 3, 1)
        assert engine.all_time_range(today) == engine.default_range(today)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
