"""Utility helpers."""

from financehub.utils.dates import (
    MonthKey,
    add_months,
    business_days_between,
    due_date_in_month,
    generate_month_range,
    is_business_day,
    last_business_day_of_month,
    last_day_of_month,
    month_key,
    parse_date,
)

__all__ = [
    "MonthKey",
    "add_months",
    "business_days_between",
    "due_date_in_month",
    "generate_month_range",
    "is_business_day",
    "last_business_day_of_month",
    "last_day_of_month",
    "month_key",
    "parse_date",
]
