"""Yield accrual over business days.

An income with a daily rate grows by ``(1 + rate/100)`` on every business
day after the day it was received. Weekends add nothing. This module is
the single place the compounding formula lives; every balance shown
anywhere calls ``calc_current_value``.
"""

from datetime import date, timedelta
from typing import Iterable, Optional

from financehub.models.records import Income, Jar
from financehub.utils.dates import business_days_between


def find_jar(income: Income, jars: Optional[Iterable[Jar]]) -> Optional[Jar]:
    """The jar an income is linked to, matched by name."""
    if not income.jar_linked or not income.jar_name or not jars:
        return None
    for jar in jars:
        if jar.name == income.jar_name:
            return jar
    return None


def resolve_daily_rate(income: Income, jars: Optional[Iterable[Jar]] = None) -> float:
    """
    Effective rate in percent per business day.

    A linked jar with a positive rate wins; otherwise the income's own
    rate applies. Negative rates resolve to 0.
    """
    jar = find_jar(income, jars)
    if jar is not None and jar.daily_rate > 0:
        return jar.daily_rate
    return max(income.daily_rate, 0.0)


def elapsed_business_days(start: date, as_of: date) -> int:
    """Business days after ``start`` up to and including ``as_of``."""
    if as_of <= start:
        return 0
    return business_days_between(start + timedelta(days=1), as_of)


def calc_current_value(
    income: Income,
    as_of: date,
    jars: Optional[Iterable[Jar]] = None,
) -> float:
    """
    Current value of an income on ``as_of``.

    Returns the principal unchanged when there is no positive rate or
    ``as_of`` is not after the date the income was received.

    Example:
        1000 at 0.05% from Monday 2024-01-01 to Monday 2024-01-08
        grows over 5 business days: 1000 * 1.0005 ** 5 = 1002.5031
    """
    rate = resolve_daily_rate(income, jars)
    if rate <= 0 or as_of <= income.received_on:
        return income.amount

    days = elapsed_business_days(income.received_on, as_of)
    return income.amount * (1 + rate / 100) ** days


def calc_yield(
    income: Income,
    as_of: date,
    jars: Optional[Iterable[Jar]] = None,
) -> float:
    """Yield accrued so far (current value minus principal)."""
    return calc_current_value(income, as_of, jars) - income.amount
