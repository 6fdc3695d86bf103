"""
Derived View Models

Everything the dashboard, card statements and annual report show is one of
these models. They are computed from the loaded snapshot on every render
and are never stored.
"""

from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from financehub.models.records import ExpenseCategory, InstallmentStatus, PaymentMethod
from financehub.utils.dates import MonthKey


class ReportModel(BaseModel):
    """Base for computed views; MonthKey is a plain dataclass."""
    model_config = ConfigDict(arbitrary_types_allowed=True)


class Installment(ReportModel):
    """One installment of an expense, attributed to its months."""

    expense_id: Optional[str]
    description: str
    index: int = Field(ge=0, description="Zero-based installment index")
    count: int = Field(ge=1, description="Total number of installments")
    value: float
    due_month: MonthKey
    budget_month: MonthKey
    card_id: Optional[str] = None
    status: InstallmentStatus = InstallmentStatus.PENDING
    amount_paid: Optional[float] = Field(
        default=None,
        description="Amount actually paid when settled by an early payment"
    )

    @property
    def number(self) -> int:
        """One-based installment number, as shown to users ("2/10")."""
        return self.index + 1

    @property
    def label(self) -> str:
        return f"{self.number}/{self.count}"


class MonthSummary(ReportModel):
    """Income, spend and balance of one month."""

    month: MonthKey
    income: float = 0.0
    salary: float = 0.0
    expenses: float = 0.0

    @property
    def total_income(self) -> float:
        return self.income + self.salary

    @property
    def balance(self) -> float:
        return self.total_income - self.expenses


class CategoryTotal(BaseModel):
    category: ExpenseCategory
    total: float
    share_percent: float = 0.0

    @property
    def label(self) -> str:
        return self.category.label


class PaymentMethodTotal(BaseModel):
    payment_method: PaymentMethod
    total: float


class CardStatement(ReportModel):
    """A card's invoice for one due month."""

    card_id: str
    card_name: str
    month: MonthKey
    due_date: date
    installments: list[Installment] = Field(default_factory=list)
    total: float = 0.0
    paid_total: float = 0.0
    pending_total: float = 0.0
    limit: float = 0.0
    overdue: bool = Field(
        default=False,
        description="The due date of this invoice has passed"
    )

    @property
    def available_limit(self) -> Optional[float]:
        if self.limit <= 0:
            return None
        return self.limit - self.total

    @property
    def limit_usage_percent(self) -> float:
        if self.limit <= 0:
            return 0.0
        return min(self.total / self.limit * 100, 100.0)


class UpcomingInvoice(ReportModel):
    """A card invoice coming due soon."""

    card_id: str
    card_name: str
    due_date: date
    month: MonthKey
    total: float
    days_left: int
    urgent: bool = False
    color: str = ""


class JarBalance(ReportModel):
    """Current value of a savings jar and its goal progress."""

    jar_id: Optional[str]
    name: str
    balance: float
    principal: float
    goal: float = 0.0

    @property
    def accrued_yield(self) -> float:
        return self.balance - self.principal

    @property
    def goal_percent(self) -> float:
        if self.goal <= 0:
            return 0.0
        return min(self.balance / self.goal * 100, 100.0)


class CreditorDebt(ReportModel):
    """An expense owed to a person rather than a card issuer."""

    expense_id: Optional[str]
    description: str
    creditor: str
    creditor_contact: str = ""
    total: float
    pending_total: float
    pending_installments: int


class YearReport(ReportModel):
    """One year of the annual report."""

    year: int
    months: list[MonthSummary]
    categories: list[CategoryTotal] = Field(default_factory=list)

    @property
    def total_income(self) -> float:
        return sum(m.total_income for m in self.months)

    @property
    def total_expenses(self) -> float:
        return sum(m.expenses for m in self.months)

    @property
    def balance(self) -> float:
        return self.total_income - self.total_expenses


class AnnualReport(ReportModel):
    """Multi-year report rows, oldest year first."""

    generated_on: date
    years: list[YearReport]

    @property
    def total_income(self) -> float:
        return sum(y.total_income for y in self.years)

    @property
    def total_expenses(self) -> float:
        return sum(y.total_expenses for y in self.years)


class DashboardSummary(ReportModel):
    """Headline KPIs for the current month."""

    month: MonthKey
    total_balance: float
    total_yield: float
    month_income: float
    month_expenses: float
    free_balance: float
    pending_invoices: float
    budget_usage_percent: float
    budget_level: str = Field(
        default="ok",
        pattern="^(ok|warning|danger)$",
    )
    upcoming: list[UpcomingInvoice] = Field(default_factory=list)
