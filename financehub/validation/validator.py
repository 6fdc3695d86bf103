"""
Record Validation

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - SCHEMA VALIDATION:
- Form input is parsed into a typed record
- Missing or unparseable dates and month keys are caught here
- Pydantic errors are translated into ValidationIssues

STAGE 2 - SEMANTIC VALIDATION:
- Required values that the schema tolerates (empty description, zero amount)
- References to other records (card, expense, installment index)
- Suspicious but allowed input is reported as a warning

IMPORTANT: Validation runs before any store call. A record with a single
error is never written, so a failed save leaves nothing half-done.
"""

from typing import Any, Iterable, Optional, Type, TypeVar

from pydantic import ValidationError

from financehub.engine.installments import DEFAULT_DUE_DAY, installment_due_month
from financehub.engine.status import is_invoice_overdue
from financehub.models.records import (
    AdvancePayment,
    Card,
    Expense,
    Income,
    Jar,
    STRICT_INPUT,
    SalaryConfig,
    StoredRecord,
)
from financehub.models.validation import ValidationIssue, ValidationResult


RecordT = TypeVar("RecordT", bound=StoredRecord)

# Floating point slack when comparing money values
MONEY_TOLERANCE = 0.005


class RecordValidationError(Exception):
    """A record was rejected before reaching the store."""

    def __init__(self, result: ValidationResult):
        self.result = result
        messages = "; ".join(issue.message for issue in result.errors)
        super().__init__(f"Invalid {result.entity_type}: {messages}")

    @property
    def issues(self) -> list[ValidationIssue]:
        return self.result.issues


def _missing(field: str, label: str) -> ValidationIssue:
    return ValidationIssue(
        field=field,
        issue_type="missing",
        message=f"{label} is required",
    )


def _not_positive(field: str, label: str) -> ValidationIssue:
    return ValidationIssue(
        field=field,
        issue_type="invalid_value",
        message=f"{label} must be greater than zero",
    )


def _negative(field: str, label: str) -> ValidationIssue:
    return ValidationIssue(
        field=field,
        issue_type="invalid_value",
        message=f"{label} cannot be negative",
    )


class RecordValidator:
    """
    Validates records before they are saved.

    Stage 1 (``parse``) only needs the raw input; stage 2 (``validate_*``)
    may look at the current cards, jars and expenses to check references.
    """

    # =========================================================================
    # STAGE 1 - SCHEMA
    # =========================================================================

    def parse(self, model: Type[RecordT], data: dict[str, Any]) -> RecordT:
        """
        Build a record from form input.

        Raises:
            RecordValidationError: If the input can't form a record
        """
        try:
            return model.model_validate(data, context={STRICT_INPUT: True})
        except ValidationError as e:
            issues = []
            for error in e.errors():
                field = ".".join(str(part) for part in error["loc"]) or "record"
                issue_type = "missing" if error["type"] == "missing" else "invalid_format"
                issues.append(ValidationIssue(
                    field=field,
                    issue_type=issue_type,
                    message=f"{field}: {error['msg']}",
                ))
            raise RecordValidationError(
                ValidationResult(entity_type=model.__name__.lower(), issues=issues)
            )

    # =========================================================================
    # STAGE 2 - SEMANTIC
    # =========================================================================

    def check_income(
        self,
        income: Income,
        jars: Iterable[Jar] = (),
    ) -> ValidationResult:
        issues = []

        if not income.description:
            issues.append(_missing("description", "Description"))
        if income.amount <= 0:
            issues.append(_not_positive("amount", "Amount"))
        if income.daily_rate < 0:
            issues.append(_negative("daily_rate", "Daily rate"))

        if income.jar_linked:
            if not income.jar_name:
                issues.append(ValidationIssue(
                    field="jar_name",
                    issue_type="missing",
                    message="Choose the jar this income belongs to",
                ))
            else:
                jar_names = {jar.name for jar in jars}
                if jar_names and income.jar_name not in jar_names:
                    issues.append(ValidationIssue(
                        field="jar_name",
                        issue_type="not_found",
                        message=f"No jar named '{income.jar_name}'",
                        severity="warning",
                        suggested_fix="The income will not show up in any jar",
                    ))

        return ValidationResult(entity_type="income", issues=issues)

    def check_expense(
        self,
        expense: Expense,
        cards: Iterable[Card] = (),
    ) -> ValidationResult:
        issues = []

        if not expense.description:
            issues.append(_missing("description", "Description"))
        if expense.amount <= 0:
            issues.append(_not_positive("amount", "Amount"))

        if expense.is_card:
            card_ids = {card.id for card in cards}
            if not expense.card_id:
                issues.append(ValidationIssue(
                    field="card_id",
                    issue_type="missing",
                    message="Card expenses need a card",
                    severity="warning",
                    suggested_fix="Without a card the invoice due day defaults to 1",
                ))
            elif card_ids and expense.card_id not in card_ids:
                issues.append(ValidationIssue(
                    field="card_id",
                    issue_type="not_found",
                    message=f"Card {expense.card_id} does not exist",
                ))
        elif expense.installments > 1:
            issues.append(ValidationIssue(
                field="installments",
                issue_type="suspicious_value",
                message="Installments are usually only used with a card",
                severity="warning",
            ))

        return ValidationResult(entity_type="expense", issues=issues)

    def check_card(self, card: Card) -> ValidationResult:
        issues = []

        if not card.name:
            issues.append(_missing("name", "Card name"))
        if card.due_day is None:
            issues.append(_missing("due_day", "Due day"))
        if card.limit < 0:
            issues.append(_negative("limit", "Limit"))

        return ValidationResult(entity_type="card", issues=issues)

    def check_jar(self, jar: Jar) -> ValidationResult:
        issues = []

        if not jar.name:
            issues.append(_missing("name", "Jar name"))
        if jar.goal < 0:
            issues.append(_negative("goal", "Goal"))
        if jar.daily_rate < 0:
            issues.append(_negative("daily_rate", "Daily rate"))

        return ValidationResult(entity_type="jar", issues=issues)

    def check_advance_payment(
        self,
        payment: AdvancePayment,
        expense: Optional[Expense],
        existing: Iterable[AdvancePayment] = (),
        card: Optional[Card] = None,
        default_due_day: int = DEFAULT_DUE_DAY,
    ) -> ValidationResult:
        """
        Checks an early payment against its expense.

        Only card installments whose invoice is still open on the payment
        date can be paid early. A second record for the same installment
        is an error: payments are append-only and never edited.
        """
        issues = []

        if expense is None:
            issues.append(ValidationIssue(
                field="expense_id",
                issue_type="not_found",
                message=f"Expense {payment.expense_id} does not exist",
            ))
        elif not expense.is_card:
            issues.append(ValidationIssue(
                field="expense_id",
                issue_type="invalid_value",
                message="Only card installments can be paid in advance",
            ))
        elif not 0 <= payment.installment_index < expense.installments:
            issues.append(ValidationIssue(
                field="installment_index",
                issue_type="invalid_value",
                message=(
                    f"Installment {payment.installment_index + 1} is out of range "
                    f"(1-{expense.installments})"
                ),
            ))
        else:
            due_month = installment_due_month(expense, card, payment.installment_index, default_due_day)
            if is_invoice_overdue(card, due_month, payment.payment_date, default_due_day):
                issues.append(ValidationIssue(
                    field="installment_index",
                    issue_type="invalid_value",
                    message=(
                        f"Installment {payment.installment_index + 1} was already settled "
                        f"with the {due_month} invoice"
                    ),
                ))

        if payment.amount_paid <= 0:
            issues.append(_not_positive("amount_paid", "Amount paid"))
        if payment.discount < -MONEY_TOLERANCE:
            issues.append(ValidationIssue(
                field="amount_paid",
                issue_type="invalid_value",
                message="Amount paid is higher than the installment value",
            ))

        for other in existing:
            if (
                other.expense_id == payment.expense_id
                and other.installment_index == payment.installment_index
            ):
                issues.append(ValidationIssue(
                    field="installment_index",
                    issue_type="duplicate",
                    message="This installment was already paid in advance",
                ))
                break

        return ValidationResult(entity_type="advance_payment", issues=issues)

    def check_salary(self, salary: SalaryConfig) -> ValidationResult:
        issues = []

        if salary.amount < 0:
            issues.append(_negative("amount", "Salary"))
        if salary.active and salary.amount == 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message="Salary is active but its amount is zero",
                severity="warning",
            ))

        return ValidationResult(entity_type="salary", issues=issues)

    # =========================================================================
    # ENFORCEMENT
    # =========================================================================

    @staticmethod
    def ensure_valid(result: ValidationResult) -> ValidationResult:
        """
        Raises:
            RecordValidationError: If the result carries any error
        """
        if not result.is_valid:
            raise RecordValidationError(result)
        return result

    @staticmethod
    def get_user_friendly_summary(result: ValidationResult) -> str:
        """Summary shown next to the entry form."""
        if result.is_valid and not result.warnings:
            return "✅ All checks passed."

        lines = []
        if result.errors:
            lines.append("❌ Please fix the following:")
            for issue in result.errors:
                lines.append(f"   • {issue.message}")
                if issue.suggested_fix:
                    lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("⚠️ Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
