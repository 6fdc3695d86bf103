"""
Data Models Package

This package contains all Pydantic models used in FinanceHub.
Stored records, computed views and audit events all conform to these schemas.
"""

from financehub.models.records import (
    AdvancePayment,
    Card,
    Expense,
    ExpenseCategory,
    Income,
    InstallmentStatus,
    Jar,
    PaymentMethod,
    SalaryConfig,
    StoredRecord,
)
from financehub.models.reports import (
    AnnualReport,
    CardStatement,
    CategoryTotal,
    CreditorDebt,
    DashboardSummary,
    Installment,
    JarBalance,
    MonthSummary,
    PaymentMethodTotal,
    UpcomingInvoice,
    YearReport,
)
from financehub.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from financehub.models.validation import ValidationIssue, ValidationResult

__all__ = [
    # Stored records
    "AdvancePayment",
    "Card",
    "Expense",
    "ExpenseCategory",
    "Income",
    "InstallmentStatus",
    "Jar",
    "PaymentMethod",
    "SalaryConfig",
    "StoredRecord",
    # Computed views
    "AnnualReport",
    "CardStatement",
    "CategoryTotal",
    "CreditorDebt",
    "DashboardSummary",
    "Installment",
    "JarBalance",
    "MonthSummary",
    "PaymentMethodTotal",
    "UpcomingInvoice",
    "YearReport",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
    # Validation
    "ValidationIssue",
    "ValidationResult",
]
