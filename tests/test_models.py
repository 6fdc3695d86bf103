"""
Tests for FinanceHub models

Test strategy:
1. Unit tests for individual components (models, validators, engine)
2. Session tests against the in-memory document store
3. No real API calls in tests
"""

import pytest
from datetime import date, datetime, timezone

from financehub.models import (
    AdvancePayment,
    Card,
    Expense,
    ExpenseCategory,
    Income,
    InstallmentStatus,
    Jar,
    PaymentMethod,
    SalaryConfig,
    ValidationIssue,
    ValidationResult,
)
from financehub.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from financehub.utils.dates import MonthKey


class TestRecordModels:
    """Tests for the stored record models."""

    def test_income_from_document(self):
        """Stored keys map onto English field names."""
        income = Income.from_document({
            "id": "abc",
            "descricao": "Salário extra",
            "valor": 1500,
            "data": "2024-01-10",
            "rendimento": "0.05",
            "reserva": True,
            "reservaNome": "Viagem",
        })
        assert income.id == "abc"
        assert income.description == "Salário extra"
        assert income.amount == 1500.0
        assert income.received_on == date(2024, 1, 10)
        assert income.daily_rate == 0.05
        assert income.jar_linked
        assert income.jar_name == "Viagem"

    def test_income_to_document(self):
        """Documents use the stored keys and never include the id."""
        income = Income(id="abc", description="Freela", amount=200.0, received_on=date(2024, 1, 10))
        document = income.to_document()
        assert document["descricao"] == "Freela"
        assert document["valor"] == 200.0
        assert document["data"] == "2024-01-10"
        assert "id" not in document

    def test_strips_whitespace(self):
        """Test that whitespace is stripped from text fields."""
        card = Card(name="  Nubank  ", due_day=10)
        assert card.name == "Nubank"

    def test_malformed_numbers_load_as_zero(self):
        expense = Expense.from_document({
            "descricao": "Mercado",
            "valor": "abc",
            "data": "2024-01-10",
        })
        assert expense.amount == 0.0

    def test_comma_decimal_is_read(self):
        income = Income.from_document({"valor": "12,50", "data": "2024-01-10"})
        assert income.amount == 12.5

    def test_unparseable_date_is_rejected(self):
        with pytest.raises(ValueError):
            Expense.from_document({"descricao": "Mercado", "valor": 10, "data": "ontem"})

    def test_missing_date_is_rejected(self):
        with pytest.raises(ValueError):
            Income.from_document({"descricao": "Freela", "valor": 10})

    def test_expense_defaults(self):
        expense = Expense(description="Mercado", amount=10.0, purchase_date=date(2024, 1, 1))
        assert expense.payment_method == PaymentMethod.CARTAO
        assert expense.category == ExpenseCategory.OUTRO
        assert expense.installments == 1
        assert expense.first_installment_month is None
        assert expense.is_card

    def test_expense_boundary_coercion(self):
        expense = Expense.from_document({
            "descricao": "Curso",
            "valor": 600,
            "data": "2024-01-10",
            "categoria": "viagens",
            "pagamento": "boleto",
            "parcelas": 0,
            "cartaoId": "",
            "mesPrimeiraParcela": "2024-03",
        })
        assert expense.category == ExpenseCategory.OUTRO
        assert expense.payment_method == PaymentMethod.DINHEIRO
        assert expense.installments == 1
        assert expense.card_id is None
        assert expense.first_installment_month == MonthKey(2024, 3)

    def test_invalid_override_month_is_dropped(self):
        expense = Expense.from_document({
            "descricao": "Curso",
            "valor": 600,
            "data": "2024-01-10",
            "mesPrimeiraParcela": "março",
        })
        assert expense.first_installment_month is None

    def test_override_month_round_trips_as_text(self):
        expense = Expense(
            description="Curso",
            amount=600.0,
            purchase_date=date(2024, 1, 10),
            first_installment_month="2024-03",
        )
        assert expense.to_document()["mesPrimeiraParcela"] == "2024-03"

    def test_card_due_day_clamped(self):
        assert Card.from_document({"nome": "A", "vencimento": 45}).due_day == 31
        assert Card.from_document({"nome": "A", "vencimento": 0}).due_day is None
        assert Card.from_document({"nome": "A", "vencimento": "10"}).due_day == 10

    def test_jar_defaults(self):
        jar = Jar(name="Viagem")
        assert jar.icon == "piggy-bank"
        assert jar.to_document()["cor"] == "#10b981"

    def test_advance_payment_requires_valid_index(self):
        with pytest.raises(ValueError):
            AdvancePayment(
                expense_id="e1",
                installment_index="x",
                payment_date=date(2024, 1, 1),
            )

    def test_salary_lenient_active_flag(self):
        assert SalaryConfig.from_document({"valor": 3000, "ativo": "true"}).active
        assert not SalaryConfig.from_document({"valor": 3000}).active

    def test_timestamps_are_informational(self):
        income = Income.from_document({
            "valor": 1,
            "data": "2024-01-10",
            "criadoEm": "not a timestamp",
            "updatedAt": "2024-01-10T10:00:00Z",
        })
        assert income.created_at is None
        assert income.updated_at == datetime(2024, 1, 10, 10, tzinfo=timezone.utc)


class TestAuditModels:
    """Tests for audit models."""

    def test_audit_event_creation(self):
        """Test AuditEvent creation."""
        event = AuditEvent(
            event_type=AuditEventType.RECORD_CREATED,
            description="Expense created",
        )
        assert event.event_type == AuditEventType.RECORD_CREATED
        assert event.severity == AuditSeverity.INFO
        assert event.event_id is not None

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEventBuilder.record_created("u1", "expense", "e1", "Mercado")
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == "record_created"
        assert log_dict["entity_id"] == "e1"
        assert log_dict["user_id"] == "u1"
        assert log_dict["is_user_action"] is True

    def test_audit_event_to_document(self):
        event = AuditEventBuilder.save_failed("u1", "income", "timeout")
        document = event.to_document()
        assert document["event_type"] == "save_failed"
        assert document["severity"] == "error"
        assert document["error_message"] == "timeout"

    def test_advance_payment_event(self):
        event = AuditEventBuilder.advance_payment_recorded("u1", "e1", 2, 90.0, 10.0)
        assert event.description == "Installment 3 paid in advance"
        assert event.details["discount"] == 10.0


class TestValidationResult:
    """Tests for ValidationResult model."""

    def test_validation_result_has_errors(self):
        result = ValidationResult(
            entity_type="expense",
            issues=[
                ValidationIssue(field="amount", issue_type="missing", message="Amount is required"),
            ],
        )
        assert not result.is_valid
        assert len(result.errors) == 1

    def test_validation_result_warnings_only(self):
        result = ValidationResult(
            entity_type="expense",
            issues=[
                ValidationIssue(
                    field="card_id",
                    issue_type="missing",
                    message="Card expenses need a card",
                    severity="warning",
                ),
            ],
        )
        assert result.is_valid
        assert result.warnings == ["Card expenses need a card"]


class TestEnums:
    """Tests for the closed value sets."""

    def test_all_categories_exist(self):
        expected = {
            "alimentacao", "transporte", "moradia", "saude", "lazer",
            "educacao", "roupas", "tecnologia", "outro",
        }
        assert {c.value for c in ExpenseCategory} == expected

    def test_every_category_has_label(self):
        assert all(c.label for c in ExpenseCategory)

    def test_settled_states(self):
        assert not InstallmentStatus.PENDING.is_settled
        assert InstallmentStatus.SETTLED_AUTO.is_settled
        assert InstallmentStatus.SETTLED_ADVANCE.is_settled
