"""
Aggregation Engine

Rolls the loaded records up into every view the app shows: card invoices,
month totals, category breakdowns, jar balances, the dashboard and the
annual report.

DESIGN DECISION: The aggregator never does date or compounding math itself.
Months come from the installment engine, settlement from the status
resolver, current values from the yield calculator. If a rule changes,
it changes in one place and every view follows.

DESIGN DECISION: Aggregates are pure functions of an immutable snapshot
and an evaluation date. Calling the same method twice on the same
snapshot returns the same answer.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Iterable, Optional

import structlog

from financehub.config import AppSettings, get_settings
from financehub.engine.installments import iter_installments
from financehub.engine.status import (
    get_advance_payment,
    invoice_due_date,
    is_invoice_overdue,
    resolve_installment_status,
)
from financehub.engine.yields import calc_current_value
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
from financehub.utils.dates import (
    MonthKey,
    due_date_in_month,
    generate_month_range,
    last_business_day_of_month,
    month_key,
)


logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class FinanceSnapshot:
    """
    Every collection of one user, as last loaded from the store.

    The snapshot is replaced wholesale after each reload; nothing
    mutates it in place.
    """

    incomes: tuple[Income, ...] = ()
    expenses: tuple[Expense, ...] = ()
    cards: tuple[Card, ...] = ()
    jars: tuple[Jar, ...] = ()
    advance_payments: tuple[AdvancePayment, ...] = ()
    salary: Optional[SalaryConfig] = None
    yield_marker: Optional[date] = None
    _cards_by_id: dict[str, Card] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "_cards_by_id",
            {card.id: card for card in self.cards if card.id},
        )

    def card(self, card_id: Optional[str]) -> Optional[Card]:
        if not card_id:
            return None
        return self._cards_by_id.get(card_id)

    def expense(self, expense_id: str) -> Optional[Expense]:
        for expense in self.expenses:
            if expense.id == expense_id:
                return expense
        return None

    def replace(self, **changes) -> "FinanceSnapshot":
        """A new snapshot with some collections swapped out."""
        values = {
            "incomes": self.incomes,
            "expenses": self.expenses,
            "cards": self.cards,
            "jars": self.jars,
            "advance_payments": self.advance_payments,
            "salary": self.salary,
            "yield_marker": self.yield_marker,
        }
        values.update(changes)
        for name in ("incomes", "expenses", "cards", "jars", "advance_payments"):
            values[name] = tuple(values[name])
        return FinanceSnapshot(**values)


class Aggregator:
    """
    Computes derived views over one snapshot, as of one evaluation date.

    Usage:
        agg = Aggregator(snapshot, today=date(2024, 3, 10))
        agg.card_invoice_total(card_id, MonthKey(2024, 3))
        agg.dashboard()
    """

    def __init__(
        self,
        snapshot: FinanceSnapshot,
        today: Optional[date] = None,
        settings: Optional[AppSettings] = None,
    ):
        self._snapshot = snapshot
        self._today = today or date.today()
        self._settings = settings or get_settings().app
        self._default_due_day = self._settings.default_due_day

    @property
    def today(self) -> date:
        return self._today

    @property
    def current_month(self) -> MonthKey:
        return month_key(self._today)

    # =========================================================================
    # INSTALLMENTS
    # =========================================================================

    def expense_installments(self, expense: Expense) -> list[Installment]:
        """All installments of an expense, with their settlement status."""
        card = self._snapshot.card(expense.card_id) if expense.is_card else None
        payments = self._snapshot.advance_payments
        installments = []

        for installment in iter_installments(expense, card, self._default_due_day):
            status = resolve_installment_status(
                expense,
                card,
                installment.index,
                payments,
                self._today,
                self._default_due_day,
            )
            advance = (
                get_advance_payment(payments, expense.id, installment.index)
                if status == InstallmentStatus.SETTLED_ADVANCE
                else None
            )
            installments.append(installment.model_copy(update={
                "status": status,
                "amount_paid": advance.amount_paid if advance else None,
            }))

        return installments

    def _all_installments(self) -> Iterable[tuple[Expense, Installment]]:
        for expense in self._snapshot.expenses:
            for installment in iter_installments(
                expense,
                self._snapshot.card(expense.card_id) if expense.is_card else None,
                self._default_due_day,
            ):
                yield expense, installment

    def installments_for_budget_month(self, key: MonthKey) -> list[Installment]:
        """Installments counted as spend in ``key``."""
        return [
            installment
            for expense in self._snapshot.expenses
            for installment in self.expense_installments(expense)
            if installment.budget_month == key
        ]

    def pending_installments(self, key: MonthKey) -> list[Installment]:
        """Installments billed in ``key`` that are not settled yet."""
        return [
            installment
            for expense in self._snapshot.expenses
            for installment in self.expense_installments(expense)
            if installment.due_month == key and not installment.status.is_settled
        ]

    # =========================================================================
    # MONTH TOTALS
    # =========================================================================

    def card_invoice_total(self, card_id: str, key: MonthKey) -> float:
        """Sum of installments billed on the card in ``key`` (by due month)."""
        return sum(
            installment.value
            for expense, installment in self._all_installments()
            if expense.is_card
            and expense.card_id == card_id
            and installment.due_month == key
        )

    def month_expenses_total(self, key: MonthKey) -> float:
        """Spend attributed to ``key`` across every payment method (by budget month)."""
        return sum(
            installment.value
            for _, installment in self._all_installments()
            if installment.budget_month == key
        )

    def salary_for_month(self, key: MonthKey) -> float:
        """
        Salary counted in ``key``.

        Payday is the month's last business day; a month whose payday has
        not arrived yet counts no salary.
        """
        salary = self._snapshot.salary
        if salary is None or not salary.active or salary.amount <= 0:
            return 0.0
        payday = last_business_day_of_month(key.year, key.month)
        if payday > self._today:
            return 0.0
        return salary.amount

    def month_received_total(self, key: MonthKey) -> float:
        """Principal of the incomes received in ``key``."""
        return sum(
            income.amount
            for income in self._snapshot.incomes
            if month_key(income.received_on) == key
        )

    def month_income_total(self, key: MonthKey) -> float:
        """Incomes received in ``key`` plus that month's salary."""
        return self.month_received_total(key) + self.salary_for_month(key)

    def month_summary(self, key: MonthKey) -> MonthSummary:
        return MonthSummary(
            month=key,
            income=self.month_received_total(key),
            salary=self.salary_for_month(key),
            expenses=self.month_expenses_total(key),
        )

    def monthly_series(self, year: int) -> list[MonthSummary]:
        """Twelve month summaries for ``year``."""
        return [self.month_summary(MonthKey(year, month)) for month in range(1, 13)]

    # =========================================================================
    # BREAKDOWNS
    # =========================================================================

    def category_totals(
        self,
        key: Optional[MonthKey] = None,
        year: Optional[int] = None,
    ) -> list[CategoryTotal]:
        """
        Spend per category, largest first.

        Filters by budget month ``key``, or by every month of ``year``, or
        covers the whole history when neither is given.
        """
        totals: dict[ExpenseCategory, float] = defaultdict(float)

        for expense, installment in self._all_installments():
            if key is not None and installment.budget_month != key:
                continue
            if year is not None and installment.budget_month.year != year:
                continue
            totals[expense.category] += installment.value

        grand_total = sum(totals.values())
        rows = [
            CategoryTotal(
                category=category,
                total=total,
                share_percent=(total / grand_total * 100) if grand_total > 0 else 0.0,
            )
            for category, total in totals.items()
            if total != 0
        ]
        rows.sort(key=lambda row: row.total, reverse=True)
        return rows

    def payment_method_totals(self) -> list[PaymentMethodTotal]:
        """Total spend per payment method over the whole history."""
        totals = {method: 0.0 for method in PaymentMethod}
        for expense in self._snapshot.expenses:
            totals[expense.payment_method] += expense.amount
        return [
            PaymentMethodTotal(payment_method=method, total=total)
            for method, total in totals.items()
        ]

    # =========================================================================
    # BALANCES
    # =========================================================================

    def income_current_value(self, income: Income) -> float:
        return calc_current_value(income, self._today, self._snapshot.jars)

    def total_balance(self) -> float:
        """Current value of every income, yield included."""
        return sum(self.income_current_value(income) for income in self._snapshot.incomes)

    def total_yield(self) -> float:
        return sum(
            self.income_current_value(income) - income.amount
            for income in self._snapshot.incomes
        )

    def jar_balance(self, jar: Jar) -> JarBalance:
        """Balance of the incomes linked to a jar and its goal progress."""
        linked = [
            income
            for income in self._snapshot.incomes
            if income.jar_linked and income.jar_name == jar.name
        ]
        return JarBalance(
            jar_id=jar.id,
            name=jar.name,
            balance=sum(self.income_current_value(income) for income in linked),
            principal=sum(income.amount for income in linked),
            goal=jar.goal,
        )

    def jar_balances(self) -> list[JarBalance]:
        return [self.jar_balance(jar) for jar in self._snapshot.jars]

    # =========================================================================
    # CARDS
    # =========================================================================

    def card_statement(self, card_id: str, key: MonthKey) -> CardStatement:
        """The card's invoice for ``key`` with the status of each installment."""
        card = self._snapshot.card(card_id)
        installments = [
            installment
            for expense in self._snapshot.expenses
            if expense.is_card and expense.card_id == card_id
            for installment in self.expense_installments(expense)
            if installment.due_month == key
        ]
        total = sum(installment.value for installment in installments)
        paid = sum(
            installment.value
            for installment in installments
            if installment.status.is_settled
        )

        return CardStatement(
            card_id=card_id,
            card_name=card.name if card else "",
            month=key,
            due_date=invoice_due_date(card, key, self._default_due_day),
            installments=installments,
            total=total,
            paid_total=paid,
            pending_total=total - paid,
            limit=card.limit if card else 0.0,
            overdue=is_invoice_overdue(card, key, self._today, self._default_due_day),
        )

    def next_due_date(self, card: Card) -> date:
        """The card's next due date on or after today."""
        due_day = card.due_day or self._default_due_day
        due = due_date_in_month(due_day, self.current_month)
        if due < self._today:
            due = due_date_in_month(due_day, self.current_month.shift(1))
        return due

    def upcoming_invoices(self, days: Optional[int] = None) -> list[UpcomingInvoice]:
        """
        Card invoices with something to pay whose due date is within ``days``.

        Feeds both the dashboard list and the notification badge.
        """
        window = self._settings.upcoming_window_days if days is None else days
        limit = self._today + timedelta(days=window)
        items = []

        for card in self._snapshot.cards:
            if not card.id:
                continue
            due = self.next_due_date(card)
            if due > limit:
                continue
            key = month_key(due)
            total = self.card_invoice_total(card.id, key)
            if total <= 0:
                continue
            days_left = (due - self._today).days
            items.append(UpcomingInvoice(
                card_id=card.id,
                card_name=card.name,
                due_date=due,
                month=key,
                total=total,
                days_left=days_left,
                urgent=days_left <= self._settings.urgent_window_days,
                color=card.color,
            ))

        items.sort(key=lambda item: item.due_date)
        return items

    # =========================================================================
    # DEBTS
    # =========================================================================

    def creditor_debts(self) -> list[CreditorDebt]:
        """Expenses owed to a person, with what is still outstanding."""
        debts = []
        for expense in self._snapshot.expenses:
            if not expense.creditor:
                continue
            pending = [
                installment
                for installment in self.expense_installments(expense)
                if not installment.status.is_settled
            ]
            debts.append(CreditorDebt(
                expense_id=expense.id,
                description=expense.description,
                creditor=expense.creditor,
                creditor_contact=expense.creditor_contact,
                total=expense.amount,
                pending_total=sum(installment.value for installment in pending),
                pending_installments=len(pending),
            ))
        debts.sort(key=lambda debt: debt.pending_total, reverse=True)
        return debts

    # =========================================================================
    # REPORTS
    # =========================================================================

    def first_month(self) -> Optional[MonthKey]:
        """Earliest month with any income or attributed spend."""
        months = [month_key(income.received_on) for income in self._snapshot.incomes]
        months.extend(installment.budget_month for _, installment in self._all_installments())
        return min(months) if months else None

    def report_years(self) -> list[int]:
        """Years from the first recorded month through the current year."""
        first = self.first_month()
        start = first.year if first else self._today.year
        return list(range(min(start, self._today.year), self._today.year + 1))

    def annual_report(self, years: Optional[Iterable[int]] = None) -> AnnualReport:
        """Per-year and per-month totals with a category breakdown per year."""
        selected = sorted(set(years)) if years is not None else self.report_years()
        logger.debug("annual_report", years=selected)
        return AnnualReport(
            generated_on=self._today,
            years=[
                YearReport(
                    year=year,
                    months=self.monthly_series(year),
                    categories=self.category_totals(year=year),
                )
                for year in selected
            ],
        )

    def balance_evolution(self, months: Optional[int] = None) -> list[tuple[MonthKey, float]]:
        """
        Cumulative balance (income minus spend) at the end of each of the
        last ``months`` months, oldest first.
        """
        count = months or self._settings.balance_evolution_months
        end = self.current_month
        window_start = end.shift(-(count - 1))
        first = self.first_month()

        running = 0.0
        if first is not None and first < window_start:
            for key in generate_month_range(first, window_start.shift(-1)):
                running += self.month_summary(key).balance

        series = []
        for key in generate_month_range(window_start, end):
            if first is not None and key >= first:
                running += self.month_summary(key).balance
            series.append((key, running))
        return series

    def dashboard(self, key: Optional[MonthKey] = None) -> DashboardSummary:
        """Headline numbers for ``key`` (the current month by default)."""
        key = key or self.current_month
        total_balance = self.total_balance()
        month_expenses = self.month_expenses_total(key)
        month_income = self.month_income_total(key)
        available = total_balance + self.salary_for_month(key)

        pending_invoices = sum(
            self.card_invoice_total(card.id, key)
            for card in self._snapshot.cards
            if card.id
        )

        usage = min(month_expenses / available * 100, 100.0) if available > 0 else 0.0
        if usage > self._settings.budget_danger_percent:
            level = "danger"
        elif usage > self._settings.budget_warning_percent:
            level = "warning"
        else:
            level = "ok"

        return DashboardSummary(
            month=key,
            total_balance=total_balance,
            total_yield=self.total_yield(),
            month_income=month_income,
            month_expenses=month_expenses,
            free_balance=available - month_expenses,
            pending_invoices=pending_invoices,
            budget_usage_percent=usage,
            budget_level=level,
            upcoming=self.upcoming_invoices(),
        )

