"""Installment payment status.

An installment is settled when either
1. the due date of the invoice it belongs to has passed (automatic), or
2. the user recorded an early payment for it (advance).

The resolver only reads. It never marks anything paid; status changes
only because time passes or because an AdvancePayment record exists.
"""

from datetime import date
from typing import Iterable, Optional

from financehub.engine.installments import DEFAULT_DUE_DAY, card_due_day, installment_due_month
from financehub.models.records import AdvancePayment, Card, Expense, InstallmentStatus
from financehub.utils.dates import MonthKey, due_date_in_month


def invoice_due_date(
    card: Optional[Card],
    due_month: MonthKey,
    default_due_day: int = DEFAULT_DUE_DAY,
) -> date:
    """The card's due date inside ``due_month`` (day clamped to the month)."""
    return due_date_in_month(card_due_day(card, default_due_day), due_month)


def is_invoice_overdue(
    card: Optional[Card],
    due_month: MonthKey,
    today: Optional[date] = None,
    default_due_day: int = DEFAULT_DUE_DAY,
) -> bool:
    """
    True when the invoice due date for ``due_month`` is strictly before today.

    On the due date itself the invoice is still open.
    """
    today = today or date.today()
    return invoice_due_date(card, due_month, default_due_day) < today


def get_advance_payment(
    payments: Iterable[AdvancePayment],
    expense_id: Optional[str],
    installment_index: int,
) -> Optional[AdvancePayment]:
    """First early-payment record for the installment, if any."""
    if expense_id is None:
        return None
    for payment in payments:
        if payment.expense_id == expense_id and payment.installment_index == installment_index:
            return payment
    return None


def is_installment_advance_paid(
    payments: Iterable[AdvancePayment],
    expense_id: Optional[str],
    installment_index: int,
) -> bool:
    return get_advance_payment(payments, expense_id, installment_index) is not None


def resolve_installment_status(
    expense: Expense,
    card: Optional[Card],
    installment_index: int,
    payments: Iterable[AdvancePayment] = (),
    today: Optional[date] = None,
    default_due_day: int = DEFAULT_DUE_DAY,
) -> InstallmentStatus:
    """
    Settlement status of one installment.

    An early payment takes precedence in the reported state so the user
    can see it was paid ahead; both states count as settled.
    """
    if is_installment_advance_paid(payments, expense.id, installment_index):
        return InstallmentStatus.SETTLED_ADVANCE

    due_month = installment_due_month(expense, card, installment_index, default_due_day)
    if is_invoice_overdue(card, due_month, today, default_due_day):
        return InstallmentStatus.SETTLED_AUTO

    return InstallmentStatus.PENDING


def is_installment_settled(
    expense: Expense,
    card: Optional[Card],
    installment_index: int,
    payments: Iterable[AdvancePayment] = (),
    today: Optional[date] = None,
    default_due_day: int = DEFAULT_DUE_DAY,
) -> bool:
    return resolve_installment_status(
        expense, card, installment_index, payments, today, default_due_day
    ).is_settled
