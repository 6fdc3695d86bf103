"""
Financial computation engine.

Installment attribution, yield accrual, payment status and the
aggregations built on top of them.
"""

from financehub.engine.aggregation import Aggregator, FinanceSnapshot
from financehub.engine.installments import (
    first_due_month,
    installment_budget_month,
    installment_count,
    installment_due_month,
    installment_value,
    iter_installments,
)
from financehub.engine.status import (
    get_advance_payment,
    invoice_due_date,
    is_installment_advance_paid,
    is_installment_settled,
    is_invoice_overdue,
    resolve_installment_status,
)
from financehub.engine.yields import (
    calc_current_value,
    calc_yield,
    resolve_daily_rate,
)

__all__ = [
    # Aggregation
    "Aggregator",
    "FinanceSnapshot",
    # Installments
    "first_due_month",
    "installment_budget_month",
    "installment_count",
    "installment_due_month",
    "installment_value",
    "iter_installments",
    # Status
    "get_advance_payment",
    "invoice_due_date",
    "is_installment_advance_paid",
    "is_installment_settled",
    "is_invoice_overdue",
    "resolve_installment_status",
    # Yield
    "calc_current_value",
    "calc_yield",
    "resolve_daily_rate",
]
