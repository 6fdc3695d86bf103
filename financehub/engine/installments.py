"""Installment attribution: which month each installment belongs to.

Two months matter for every installment:

* the **due month**, when it is billed on the card statement;
* the **budget month**, where the spend is counted in monthly rollups.

Card rule: a purchase made after the card's due day rolls to the next cycle,
so its first installment is due the month after the purchase. A purchase on
or before the due day is due in the purchase month itself.

Override rule: when the user pins the first installment to an explicit
month, installment ``i`` is due in ``override + i``. If the pinned month is
later than the purchase month, the budget month sits one month before the
due month.
"""

from typing import Iterator, Optional

from financehub.models.records import Card, Expense
from financehub.models.reports import Installment
from financehub.utils.dates import MonthKey, month_key


DEFAULT_DUE_DAY = 1


def installment_count(expense: Expense) -> int:
    """Number of installments; anything below 1 counts as 1."""
    return max(1, expense.installments)


def installment_value(expense: Expense) -> float:
    """The share of the total billed in each installment."""
    return expense.amount / installment_count(expense)


def card_due_day(card: Optional[Card], default_due_day: int = DEFAULT_DUE_DAY) -> int:
    """A card's due day, falling back when the card is missing or has none."""
    if card is None or not card.due_day:
        return default_due_day
    return card.due_day


def first_due_month(
    expense: Expense,
    card: Optional[Card],
    default_due_day: int = DEFAULT_DUE_DAY,
) -> MonthKey:
    """Due month of installment 0."""
    if expense.first_installment_month is not None:
        return expense.first_installment_month

    purchase_month = month_key(expense.purchase_date)

    # Pix and cash are attributed to the day they happened
    if not expense.is_card:
        return purchase_month

    if expense.purchase_date.day > card_due_day(card, default_due_day):
        return purchase_month.shift(1)
    return purchase_month


def installment_due_month(
    expense: Expense,
    card: Optional[Card],
    index: int,
    default_due_day: int = DEFAULT_DUE_DAY,
) -> MonthKey:
    """Month in which installment ``index`` (zero-based) is billed."""
    return first_due_month(expense, card, default_due_day).shift(index)


def has_deferred_override(expense: Expense) -> bool:
    """True when the pinned first month is after the purchase month."""
    override = expense.first_installment_month
    return override is not None and override > month_key(expense.purchase_date)


def installment_budget_month(
    expense: Expense,
    card: Optional[Card],
    index: int,
    default_due_day: int = DEFAULT_DUE_DAY,
) -> MonthKey:
    """Month to which installment ``index`` is attributed in spend rollups."""
    due = installment_due_month(expense, card, index, default_due_day)
    if has_deferred_override(expense):
        return due.shift(-1)
    return due


def iter_installments(
    expense: Expense,
    card: Optional[Card],
    default_due_day: int = DEFAULT_DUE_DAY,
) -> Iterator[Installment]:
    """Yield every installment of an expense with both of its months."""
    count = installment_count(expense)
    value = installment_value(expense)

    for index in range(count):
        yield Installment(
            expense_id=expense.id,
            description=expense.description,
            index=index,
            count=count,
            value=value,
            due_month=installment_due_month(expense, card, index, default_due_day),
            budget_month=installment_budget_month(expense, card, index, default_due_day),
            card_id=expense.card_id if expense.is_card else None,
        )
