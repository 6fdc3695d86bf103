"""
Core Data Models for FinanceHub

These models define the schemas for every record the user keeps.
They are designed to:
1. Give the engine explicit, typed records instead of raw documents
2. Parse dates and month keys exactly once, at the storage boundary
3. Keep dashboards rendering when a stored document is malformed
4. Read and write the same document keys the web app always used

DESIGN DECISION: Stored documents use the original Portuguese keys
(``descricao``, ``valor``, ``data``...). Python code uses English field
names; the mapping lives in the field aliases and nowhere else.

DESIGN DECISION: Malformed numbers are coerced to 0 instead of raising.
A single bad document must not take the whole dashboard down; the
validator catches missing values on the way in.
"""

import math
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_serializer,
    field_validator,
)

from financehub.utils.dates import MonthKey, parse_date


# Validation context flag set when parsing form input rather than stored
# documents. Unreadable month keys raise instead of loading as None.
STRICT_INPUT = "strict_input"


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class ExpenseCategory(str, Enum):
    """
    Supported expense categories.

    Unknown stored values load as OUTRO.
    """
    ALIMENTACAO = "alimentacao"
    TRANSPORTE = "transporte"
    MORADIA = "moradia"
    SAUDE = "saude"
    LAZER = "lazer"
    EDUCACAO = "educacao"
    ROUPAS = "roupas"
    TECNOLOGIA = "tecnologia"
    OUTRO = "outro"

    @property
    def label(self) -> str:
        return CATEGORY_LABELS[self]


CATEGORY_LABELS = {
    ExpenseCategory.ALIMENTACAO: "Alimentação",
    ExpenseCategory.TRANSPORTE: "Transporte",
    ExpenseCategory.MORADIA: "Moradia",
    ExpenseCategory.SAUDE: "Saúde",
    ExpenseCategory.LAZER: "Lazer",
    ExpenseCategory.EDUCACAO: "Educação",
    ExpenseCategory.ROUPAS: "Roupas",
    ExpenseCategory.TECNOLOGIA: "Tecnologia",
    ExpenseCategory.OUTRO: "Outro",
}


class PaymentMethod(str, Enum):
    """How an expense was paid."""
    CARTAO = "cartao"      # credit card, billed on the card's invoice
    PIX = "pix"            # instant transfer
    DINHEIRO = "dinheiro"  # cash


class InstallmentStatus(str, Enum):
    """
    Settlement status of one installment.

    Both settled states are terminal: nothing moves an installment back
    to PENDING.
    """
    PENDING = "pending"
    SETTLED_AUTO = "settled_auto"        # invoice due date has passed
    SETTLED_ADVANCE = "settled_advance"  # user recorded an early payment

    @property
    def is_settled(self) -> bool:
        return self is not InstallmentStatus.PENDING


# =============================================================================
# BOUNDARY COERCION
# =============================================================================

def coerce_number(value: Any) -> float:
    """Read a stored number, treating anything unusable as 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, str):
        value = value.strip().replace(",", ".")
        if not value:
            return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def coerce_int(value: Any, default: int = 0) -> int:
    number = coerce_number(value)
    if number == 0.0 and value not in (0, "0"):
        return default
    return int(number)


def coerce_optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def coerce_timestamp(value: Any) -> Optional[datetime]:
    """Audit timestamps are informational; unreadable ones load as None."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


# =============================================================================
# BASE RECORD
# =============================================================================

class StoredRecord(BaseModel):
    """
    Fields shared by every user-owned document.

    ``id`` is the document id assigned by the store; it is never written
    back into the document body.
    """
    model_config = ConfigDict(
        str_strip_whitespace=True,
        populate_by_name=True,
        extra="ignore",
    )

    id: Optional[str] = Field(
        default=None,
        description="Document id assigned by the store"
    )
    created_at: Optional[datetime] = Field(
        default=None,
        alias="criadoEm",
        description="When the record was first saved"
    )
    updated_at: Optional[datetime] = Field(
        default=None,
        alias="updatedAt",
        description="Last update timestamp"
    )

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def _lenient_timestamp(cls, v: Any) -> Optional[datetime]:
        return coerce_timestamp(v)

    @classmethod
    def from_document(cls, document: dict[str, Any]):
        """Build a record from a stored document (``id`` included)."""
        return cls.model_validate(document)

    def to_document(self, keep_none: bool = False) -> dict[str, Any]:
        """
        Serialize for the store, using the stored key names.

        Updates merge into the stored document, so they pass
        ``keep_none=True`` to write cleared fields as null.
        """
        return self.model_dump(
            mode="json",
            by_alias=True,
            exclude={"id"},
            exclude_none=not keep_none,
        )


# =============================================================================
# RECORDS
# =============================================================================

class Income(StoredRecord):
    """
    Money received or already held, optionally growing.

    The principal never changes after creation; its current value is
    always derived by the yield calculator.
    """

    description: str = Field(default="", alias="descricao")
    amount: float = Field(default=0.0, alias="valor")
    received_on: date = Field(..., alias="data")
    daily_rate: float = Field(
        default=0.0,
        alias="rendimento",
        description="Percent per business day (legacy per-income rate)"
    )
    jar_linked: bool = Field(default=False, alias="reserva")
    jar_name: str = Field(default="", alias="reservaNome")
    note: str = Field(default="", alias="obs")

    @field_validator("amount", "daily_rate", mode="before")
    @classmethod
    def _numbers(cls, v: Any) -> float:
        return coerce_number(v)

    @field_validator("received_on", mode="before")
    @classmethod
    def _date(cls, v: Any) -> date:
        return parse_date(v)

    @field_validator("description", "jar_name", "note", mode="before")
    @classmethod
    def _text(cls, v: Any) -> str:
        return "" if v is None else str(v)


class Expense(StoredRecord):
    """
    Money spent, possibly split into installments.

    ``amount`` is the total across all installments; each installment is
    ``amount / installments``.
    """

    description: str = Field(default="", alias="descricao")
    amount: float = Field(default=0.0, alias="valor")
    purchase_date: date = Field(..., alias="data")
    category: ExpenseCategory = Field(
        default=ExpenseCategory.OUTRO,
        alias="categoria"
    )
    payment_method: PaymentMethod = Field(
        default=PaymentMethod.CARTAO,
        alias="pagamento"
    )
    card_id: Optional[str] = Field(default=None, alias="cartaoId")
    installments: int = Field(default=1, alias="parcelas", ge=1)
    first_installment_month: Optional[MonthKey] = Field(
        default=None,
        alias="mesPrimeiraParcela",
        description="Explicit month of the first installment, overriding the card rule"
    )
    creditor: str = Field(default="", alias="credor")
    creditor_contact: str = Field(default="", alias="credorContato")
    note: str = Field(default="", alias="obs")

    @field_validator("amount", mode="before")
    @classmethod
    def _amount(cls, v: Any) -> float:
        return coerce_number(v)

    @field_validator("purchase_date", mode="before")
    @classmethod
    def _date(cls, v: Any) -> date:
        return parse_date(v)

    @field_validator("installments", mode="before")
    @classmethod
    def _installments(cls, v: Any) -> int:
        return max(1, coerce_int(v, default=1))

    @field_validator("category", mode="before")
    @classmethod
    def _category(cls, v: Any) -> ExpenseCategory:
        try:
            return ExpenseCategory(v)
        except ValueError:
            return ExpenseCategory.OUTRO

    @field_validator("payment_method", mode="before")
    @classmethod
    def _payment_method(cls, v: Any) -> PaymentMethod:
        if v is None or v == "":
            return PaymentMethod.CARTAO
        try:
            return PaymentMethod(v)
        except ValueError:
            return PaymentMethod.DINHEIRO

    @field_validator("card_id", mode="before")
    @classmethod
    def _card_id(cls, v: Any) -> Optional[str]:
        return coerce_optional_text(v)

    @field_validator("first_installment_month", mode="before")
    @classmethod
    def _override(cls, v: Any, info: ValidationInfo) -> Optional[MonthKey]:
        if v is None or isinstance(v, MonthKey):
            return v
        text = str(v).strip()
        if not text:
            return None
        try:
            return MonthKey.parse(text)
        except ValueError:
            if info.context and info.context.get(STRICT_INPUT):
                raise ValueError(f"First installment month must be YYYY-MM, got {text!r}")
            return None

    @field_validator("description", "creditor", "creditor_contact", "note", mode="before")
    @classmethod
    def _text(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_serializer("first_installment_month")
    def _serialize_override(self, v: Optional[MonthKey]) -> Optional[str]:
        return str(v) if v else None

    @property
    def is_card(self) -> bool:
        return self.payment_method == PaymentMethod.CARTAO


class Card(StoredRecord):
    """A credit card. Its due day governs invoice cutoff and attribution."""

    name: str = Field(default="", alias="nome")
    holder: str = Field(default="", alias="titular")
    limit: float = Field(default=0.0, alias="limite")
    due_day: Optional[int] = Field(
        default=None,
        alias="vencimento",
        description="Monthly due day (1-31), clamped to the month length when used"
    )
    color: str = Field(default="#6366f1")

    @field_validator("limit", mode="before")
    @classmethod
    def _limit(cls, v: Any) -> float:
        return coerce_number(v)

    @field_validator("due_day", mode="before")
    @classmethod
    def _due_day(cls, v: Any) -> Optional[int]:
        day = coerce_int(v, default=0)
        if day <= 0:
            return None
        return min(day, 31)

    @field_validator("name", "holder", "color", mode="before")
    @classmethod
    def _text(cls, v: Any) -> str:
        return "" if v is None else str(v)


class Jar(StoredRecord):
    """
    A savings goal ("reserva"/"caixinha").

    Incomes link to a jar by name. A jar rate, when set, wins over the
    linked income's own rate.
    """

    name: str = Field(default="", alias="nome")
    goal: float = Field(default=0.0, alias="meta")
    daily_rate: float = Field(
        default=0.0,
        alias="rendimento",
        description="Percent per business day"
    )
    icon: str = Field(default="piggy-bank", alias="icone")
    color: str = Field(default="#10b981", alias="cor")

    @field_validator("goal", "daily_rate", mode="before")
    @classmethod
    def _numbers(cls, v: Any) -> float:
        return coerce_number(v)

    @field_validator("name", "icon", "color", mode="before")
    @classmethod
    def _text(cls, v: Any) -> str:
        return "" if v is None else str(v)


class AdvancePayment(StoredRecord):
    """
    An immutable fact: installment ``installment_index`` of an expense was
    paid early, possibly at a discount.

    Append-only. Its presence settles the installment regardless of the
    invoice cutoff.
    """

    expense_id: str = Field(..., alias="gastoId", min_length=1)
    installment_index: int = Field(..., alias="parcelaIndex", ge=0)
    original_value: float = Field(default=0.0, alias="valorOriginal")
    amount_paid: float = Field(default=0.0, alias="valorPago")
    discount: float = Field(default=0.0, alias="desconto")
    payment_date: date = Field(..., alias="dataPagamento")

    @field_validator("original_value", "amount_paid", "discount", mode="before")
    @classmethod
    def _numbers(cls, v: Any) -> float:
        return coerce_number(v)

    @field_validator("installment_index", mode="before")
    @classmethod
    def _index(cls, v: Any) -> int:
        return coerce_int(v, default=-1)

    @field_validator("payment_date", mode="before")
    @classmethod
    def _date(cls, v: Any) -> date:
        return parse_date(v)


class SalaryConfig(StoredRecord):
    """
    The user's monthly salary rule (a singleton document).

    Interpreted per month by the aggregation engine; it is never a list
    of transactions.
    """

    amount: float = Field(default=0.0, alias="valor")
    active: bool = Field(default=False, alias="ativo")
    note: str = Field(default="", alias="obs")

    @field_validator("amount", mode="before")
    @classmethod
    def _amount(cls, v: Any) -> float:
        return coerce_number(v)

    @field_validator("active", mode="before")
    @classmethod
    def _active(cls, v: Any) -> bool:
        if isinstance(v, str):
            return v.strip().lower() in {"true", "1", "yes", "sim"}
        return bool(v)

    @field_validator("note", mode="before")
    @classmethod
    def _text(cls, v: Any) -> str:
        return "" if v is None else str(v)
