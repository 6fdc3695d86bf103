"""Tests for installment settlement status."""

from datetime import date, timedelta

from financehub.engine.status import (
    get_advance_payment,
    invoice_due_date,
    is_installment_advance_paid,
    is_installment_settled,
    is_invoice_overdue,
    resolve_installment_status,
)
from financehub.models import AdvancePayment, InstallmentStatus
from financehub.utils.dates import MonthKey

from conftest import make_card, make_expense


def advance(expense_id="exp-1", index=0, paid=90.0) -> AdvancePayment:
    return AdvancePayment(
        expense_id=expense_id,
        installment_index=index,
        original_value=100.0,
        amount_paid=paid,
        discount=100.0 - paid,
        payment_date=date(2024, 1, 20),
    )


class TestInvoiceOverdue:
    """The invoice cutoff is the due date, exclusive."""

    def test_due_date_uses_card_day(self):
        assert invoice_due_date(make_card(due_day=10), MonthKey(2024, 2)) == date(2024, 2, 10)

    def test_due_date_clamped(self):
        assert invoice_due_date(make_card(due_day=31), MonthKey(2024, 2)) == date(2024, 2, 29)

    def test_due_date_defaults_to_first(self):
        assert invoice_due_date(None, MonthKey(2024, 2)) == date(2024, 2, 1)

    def test_open_on_due_date(self):
        card = make_card(due_day=10)
        assert not is_invoice_overdue(card, MonthKey(2024, 2), today=date(2024, 2, 10))

    def test_overdue_day_after(self):
        card = make_card(due_day=10)
        assert is_invoice_overdue(card, MonthKey(2024, 2), today=date(2024, 2, 11))


class TestAdvancePayments:
    """Lookup by (expense, installment index)."""

    def test_lookup(self):
        payments = [advance(index=0), advance(index=2)]
        assert get_advance_payment(payments, "exp-1", 2) is payments[1]
        assert get_advance_payment(payments, "exp-1", 1) is None
        assert get_advance_payment(payments, "other", 0) is None

    def test_presence(self):
        assert is_installment_advance_paid([advance()], "exp-1", 0)
        assert not is_installment_advance_paid([], "exp-1", 0)

    def test_expense_without_id_never_matches(self):
        assert get_advance_payment([advance()], None, 0) is None


class TestResolveStatus:
    """Pending, settled automatically or settled in advance."""

    def setup_method(self):
        self.card = make_card(due_day=10)
        # Installments due 2024-02, 2024-03, 2024-04
        self.expense = make_expense(amount=300.0, installments=3, purchase_date=date(2024, 1, 15))

    def test_pending_before_cutoff(self):
        status = resolve_installment_status(self.expense, self.card, 0, today=date(2024, 2, 10))
        assert status == InstallmentStatus.PENDING

    def test_auto_settled_after_cutoff(self):
        status = resolve_installment_status(self.expense, self.card, 0, today=date(2024, 2, 11))
        assert status == InstallmentStatus.SETTLED_AUTO

    def test_advance_settles_before_cutoff(self):
        status = resolve_installment_status(
            self.expense, self.card, 1, [advance(index=1)], today=date(2024, 1, 20)
        )
        assert status == InstallmentStatus.SETTLED_ADVANCE

    def test_advance_reported_after_cutoff_too(self):
        status = resolve_installment_status(
            self.expense, self.card, 0, [advance(index=0)], today=date(2024, 6, 1)
        )
        assert status == InstallmentStatus.SETTLED_ADVANCE
        assert status.is_settled

    def test_settlement_is_terminal(self):
        settled_from = None
        day = date(2024, 1, 15)
        for _ in range(120):
            settled = is_installment_settled(self.expense, self.card, 2, today=day)
            if settled and settled_from is None:
                settled_from = day
            if settled_from is not None:
                assert settled
            day += timedelta(days=1)
        assert settled_from == date(2024, 4, 11)

    def test_resolver_is_idempotent(self):
        payments = [advance(index=1)]
        first = [
            resolve_installment_status(self.expense, self.card, i, payments, today=date(2024, 3, 1))
            for i in range(3)
        ]
        second = [
            resolve_installment_status(self.expense, self.card, i, payments, today=date(2024, 3, 1))
            for i in range(3)
        ]
        assert first == second == [
            InstallmentStatus.SETTLED_AUTO,
            InstallmentStatus.SETTLED_ADVANCE,
            InstallmentStatus.PENDING,
        ]
