"""Tests for record validation."""

from datetime import date

import pytest

from financehub.models import (
    AdvancePayment,
    Card,
    Expense,
    Income,
    Jar,
    PaymentMethod,
    SalaryConfig,
)
from financehub.validation import RecordValidationError, RecordValidator

from conftest import make_card, make_expense, make_income, make_jar


@pytest.fixture
def validator():
    return RecordValidator()


def advance(index=0, paid=100.0, original=100.0, expense_id="exp-1") -> AdvancePayment:
    return AdvancePayment(
        expense_id=expense_id,
        installment_index=index,
        original_value=original,
        amount_paid=paid,
        discount=original - paid,
        payment_date=date(2024, 1, 20),
    )


class TestSchemaStage:
    """Form input that can't form a record."""

    def test_parse_valid_input(self, validator):
        income = validator.parse(Income, {
            "description": "Freela",
            "amount": 100,
            "received_on": date(2024, 1, 1),
        })
        assert income.amount == 100.0

    def test_missing_date(self, validator):
        with pytest.raises(RecordValidationError) as exc_info:
            validator.parse(Expense, {"description": "Mercado", "amount": 10})

        issues = exc_info.value.issues
        assert len(issues) == 1
        assert issues[0].issue_type == "missing"
        assert exc_info.value.result.entity_type == "expense"

    def test_invalid_date(self, validator):
        with pytest.raises(RecordValidationError) as exc_info:
            validator.parse(Income, {"amount": 10, "received_on": "yesterday"})
        assert exc_info.value.issues[0].issue_type == "invalid_format"

    @pytest.mark.parametrize("month", ["2024-13", "jun/24"])
    def test_malformed_override_month(self, validator, month):
        with pytest.raises(RecordValidationError) as exc_info:
            validator.parse(Expense, {
                "description": "Notebook",
                "amount": 1200,
                "purchase_date": date(2024, 1, 15),
                "first_installment_month": month,
            })
        assert exc_info.value.issues[0].issue_type == "invalid_format"
        assert "YYYY-MM" in exc_info.value.issues[0].message

    def test_blank_override_month(self, validator):
        expense = validator.parse(Expense, {
            "description": "Notebook",
            "amount": 1200,
            "purchase_date": date(2024, 1, 15),
            "first_installment_month": "",
        })
        assert expense.first_installment_month is None

    def test_stored_malformed_override_loads_as_none(self):
        expense = Expense.from_document({
            "descricao": "Notebook",
            "valor": 1200,
            "data": "2024-01-15",
            "mesPrimeiraParcela": "2024-13",
        })
        assert expense.first_installment_month is None


class TestIncomeChecks:

    def test_valid(self, validator):
        assert validator.check_income(make_income()).is_valid

    def test_description_and_amount_required(self, validator):
        income = make_income(description="", amount=0.0)
        result = validator.check_income(income)
        assert not result.is_valid
        assert {issue.field for issue in result.errors} == {"description", "amount"}

    def test_jar_link_needs_a_name(self, validator):
        result = validator.check_income(make_income(jar_linked=True))
        assert [issue.field for issue in result.errors] == ["jar_name"]

    def test_unknown_jar_is_a_warning(self, validator):
        income = make_income(jar_linked=True, jar_name="Casa")
        result = validator.check_income(income, [make_jar(name="Viagem")])
        assert result.is_valid
        assert result.warnings == ["No jar named 'Casa'"]


class TestExpenseChecks:

    def test_valid(self, validator):
        assert validator.check_expense(make_expense(), [make_card()]).is_valid

    def test_amount_required(self, validator):
        result = validator.check_expense(make_expense(amount=0.0), [make_card()])
        assert [issue.field for issue in result.errors] == ["amount"]

    def test_unknown_card_is_rejected(self, validator):
        result = validator.check_expense(make_expense(card_id="ghost"), [make_card()])
        assert not result.is_valid

    def test_card_expense_without_card_is_a_warning(self, validator):
        result = validator.check_expense(make_expense(card_id=None), [make_card()])
        assert result.is_valid
        assert len(result.warnings) == 1

    def test_pix_installments_warn(self, validator):
        expense = make_expense(payment_method=PaymentMethod.PIX, card_id=None, installments=3)
        result = validator.check_expense(expense)
        assert result.is_valid
        assert result.warnings


class TestOtherChecks:

    def test_card_needs_name_and_due_day(self, validator):
        result = validator.check_card(Card(name="", due_day=None))
        assert {issue.field for issue in result.errors} == {"name", "due_day"}

    def test_jar_needs_name(self, validator):
        assert not validator.check_jar(Jar(name="")).is_valid
        assert validator.check_jar(Jar(name="Viagem", goal=1000.0)).is_valid

    def test_negative_salary(self, validator):
        assert not validator.check_salary(SalaryConfig(amount=-1.0)).is_valid
        assert validator.check_salary(SalaryConfig(amount=3000.0, active=True)).is_valid

    def test_active_zero_salary_warns(self, validator):
        result = validator.check_salary(SalaryConfig(amount=0.0, active=True))
        assert result.is_valid
        assert result.warnings


class TestAdvancePaymentChecks:

    def setup_method(self):
        self.validator = RecordValidator()
        self.expense = make_expense(amount=300.0, installments=3)

    def test_valid(self):
        assert self.validator.check_advance_payment(advance(index=2), self.expense).is_valid

    def test_index_out_of_range(self):
        result = self.validator.check_advance_payment(advance(index=3), self.expense)
        assert [issue.field for issue in result.errors] == ["installment_index"]

    def test_unknown_expense(self):
        result = self.validator.check_advance_payment(advance(), None)
        assert [issue.issue_type for issue in result.errors] == ["not_found"]

    def test_paying_more_than_owed(self):
        result = self.validator.check_advance_payment(advance(paid=120.0), self.expense)
        assert not result.is_valid

    def test_duplicate_is_rejected(self):
        result = self.validator.check_advance_payment(
            advance(index=1, paid=90.0),
            self.expense,
            [advance(index=1)],
        )
        assert [issue.issue_type for issue in result.errors] == ["duplicate"]

    def test_non_card_expense_is_rejected(self):
        expense = make_expense(payment_method=PaymentMethod.PIX, card_id=None)
        result = self.validator.check_advance_payment(advance(), expense)
        assert [issue.field for issue in result.errors] == ["expense_id"]

    def test_settled_installment_is_rejected(self):
        # Due on Feb 10th; already closed when paid on the 11th
        payment = advance().model_copy(update={"payment_date": date(2024, 2, 11)})
        result = self.validator.check_advance_payment(payment, self.expense, card=make_card(due_day=10))
        assert [issue.field for issue in result.errors] == ["installment_index"]

    def test_open_installment_on_due_date(self):
        payment = advance().model_copy(update={"payment_date": date(2024, 2, 10)})
        result = self.validator.check_advance_payment(payment, self.expense, card=make_card(due_day=10))
        assert result.is_valid


class TestEnforcement:

    def test_ensure_valid_raises(self, validator):
        result = validator.check_card(Card(name="", due_day=10))
        with pytest.raises(RecordValidationError, match="Card name is required"):
            validator.ensure_valid(result)

    def test_ensure_valid_passes_through(self, validator):
        result = validator.check_card(make_card())
        assert validator.ensure_valid(result) is result

    def test_summary(self, validator):
        result = validator.check_income(make_income(description=""))
        summary = validator.get_user_friendly_summary(result)
        assert "Description is required" in summary
        assert validator.get_user_friendly_summary(validator.check_card(make_card())) == "✅ All checks passed."
