"""Shared fixtures: settings with defaults and record factories."""

from datetime import date

import pytest

from financehub.config import AppSettings, CollectionSettings
from financehub.models import Card, Expense, Income, Jar, PaymentMethod


@pytest.fixture
def app_settings():
    return AppSettings(
        default_due_day=1,
        upcoming_window_days=7,
        urgent_window_days=2,
        balance_evolution_months=6,
        budget_warning_percent=60.0,
        budget_danger_percent=80.0,
    )


@pytest.fixture
def collections():
    return CollectionSettings()


def make_card(card_id="card-1", due_day=10, **kwargs) -> Card:
    return Card(id=card_id, name=kwargs.pop("name", "Nubank"), due_day=due_day, **kwargs)


def make_expense(
    amount=100.0,
    purchase_date=date(2024, 1, 15),
    installments=1,
    card_id="card-1",
    payment_method=PaymentMethod.CARTAO,
    expense_id="exp-1",
    **kwargs,
) -> Expense:
    return Expense(
        id=expense_id,
        description=kwargs.pop("description", "Mercado"),
        amount=amount,
        purchase_date=purchase_date,
        installments=installments,
        card_id=card_id,
        payment_method=payment_method,
        **kwargs,
    )


def make_income(
    amount=1000.0,
    received_on=date(2024, 1, 1),
    daily_rate=0.0,
    income_id="inc-1",
    **kwargs,
) -> Income:
    return Income(
        id=income_id,
        description=kwargs.pop("description", "Freela"),
        amount=amount,
        received_on=received_on,
        daily_rate=daily_rate,
        **kwargs,
    )


def make_jar(name="Viagem", daily_rate=0.0, goal=0.0, jar_id="jar-1") -> Jar:
    return Jar(id=jar_id, name=name, daily_rate=daily_rate, goal=goal)
