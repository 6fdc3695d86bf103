"""Tests for installment attribution (due month and budget month)."""

from datetime import date

import pytest

from financehub.engine.installments import (
    card_due_day,
    has_deferred_override,
    installment_budget_month,
    installment_due_month,
    installment_value,
    iter_installments,
)
from financehub.models import PaymentMethod
from financehub.utils.dates import MonthKey

from conftest import make_card, make_expense


class TestDueMonth:
    """The card rule and the override rule."""

    def test_purchase_after_due_day_rolls_to_next_month(self):
        card = make_card(due_day=15)
        expense = make_expense(purchase_date=date(2024, 3, 20))
        assert installment_due_month(expense, card, 0) == MonthKey(2024, 4)

    def test_purchase_before_due_day_stays_in_month(self):
        card = make_card(due_day=15)
        expense = make_expense(purchase_date=date(2024, 3, 10))
        assert installment_due_month(expense, card, 0) == MonthKey(2024, 3)

    def test_purchase_on_due_day_stays_in_month(self):
        card = make_card(due_day=15)
        expense = make_expense(purchase_date=date(2024, 3, 15))
        assert installment_due_month(expense, card, 0) == MonthKey(2024, 3)

    def test_three_installments_from_january(self):
        card = make_card(due_day=10)
        expense = make_expense(amount=1200.0, installments=3, purchase_date=date(2024, 1, 15))

        months = [installment_due_month(expense, card, i) for i in range(3)]

        assert [str(m) for m in months] == ["2024-02", "2024-03", "2024-04"]
        assert installment_value(expense) == pytest.approx(400.0)

    def test_rollover_crosses_year(self):
        card = make_card(due_day=5)
        expense = make_expense(purchase_date=date(2024, 12, 20), installments=2)
        assert installment_due_month(expense, card, 0) == MonthKey(2025, 1)
        assert installment_due_month(expense, card, 1) == MonthKey(2025, 2)

    def test_missing_card_defaults_to_day_one(self):
        expense = make_expense(purchase_date=date(2024, 3, 2))
        assert card_due_day(None) == 1
        assert installment_due_month(expense, None, 0) == MonthKey(2024, 4)

    def test_card_without_due_day_defaults_to_day_one(self):
        card = make_card(due_day=None)
        expense = make_expense(purchase_date=date(2024, 3, 1))
        assert installment_due_month(expense, card, 0) == MonthKey(2024, 3)

    def test_non_card_uses_purchase_month(self):
        expense = make_expense(
            purchase_date=date(2024, 3, 28),
            payment_method=PaymentMethod.PIX,
            card_id=None,
        )
        assert installment_due_month(expense, None, 0) == MonthKey(2024, 3)

    def test_override_wins_over_card_rule(self):
        card = make_card(due_day=10)
        expense = make_expense(
            purchase_date=date(2024, 3, 20),
            installments=2,
            first_installment_month="2024-06",
        )
        assert installment_due_month(expense, card, 0) == MonthKey(2024, 6)
        assert installment_due_month(expense, card, 1) == MonthKey(2024, 7)


class TestBudgetMonth:
    """Budget month shifts back only for a deferred override."""

    def test_equals_due_month_without_override(self):
        card = make_card(due_day=10)
        expense = make_expense(purchase_date=date(2024, 1, 15), installments=3)
        for i in range(3):
            assert installment_budget_month(expense, card, i) == installment_due_month(expense, card, i)

    def test_deferred_override_shifts_back_one_month(self):
        expense = make_expense(
            purchase_date=date(2024, 3, 5),
            installments=2,
            first_installment_month="2024-05",
        )
        assert has_deferred_override(expense)
        assert installment_budget_month(expense, None, 0) == MonthKey(2024, 4)
        assert installment_budget_month(expense, None, 1) == MonthKey(2024, 5)

    def test_override_in_purchase_month_does_not_shift(self):
        expense = make_expense(
            purchase_date=date(2024, 3, 25),
            first_installment_month="2024-03",
        )
        assert not has_deferred_override(expense)
        assert installment_budget_month(expense, None, 0) == MonthKey(2024, 3)

    def test_override_before_purchase_does_not_shift(self):
        expense = make_expense(
            purchase_date=date(2024, 3, 25),
            first_installment_month="2024-02",
        )
        assert installment_budget_month(expense, None, 0) == MonthKey(2024, 2)


class TestInstallmentInvariants:
    """Shares add up and due months never go backwards."""

    @pytest.mark.parametrize("amount,count", [
        (100.0, 3),
        (1234.56, 7),
        (0.01, 2),
        (999.99, 12),
    ])
    def test_shares_sum_to_amount(self, amount, count):
        expense = make_expense(amount=amount, installments=count)
        installments = list(iter_installments(expense, make_card()))
        assert len(installments) == count
        assert sum(i.value for i in installments) == pytest.approx(amount)

    def test_due_months_strictly_increase(self):
        card = make_card(due_day=28)
        expense = make_expense(purchase_date=date(2024, 1, 31), installments=12)
        months = [i.due_month for i in iter_installments(expense, card)]
        assert all(a < b for a, b in zip(months, months[1:]))

    def test_count_below_one_is_one(self):
        expense = make_expense(installments=1).model_copy(update={"installments": 0})
        installments = list(iter_installments(expense, None))
        assert len(installments) == 1
        assert installments[0].value == expense.amount

    def test_installment_labels(self):
        expense = make_expense(installments=3)
        labels = [i.label for i in iter_installments(expense, make_card())]
        assert labels == ["1/3", "2/3", "3/3"]
