"""
Streamlit Frontend for FinanceHub

The dashboard the user opens every day: balances, card invoices, jars,
the annual report and the entry forms.

DESIGN PRINCIPLES:
1. Every number on screen comes from the aggregator, never from the page
2. Explicit confirmation before anything is deleted
3. Clear error messages when a save fails
. Records are edited through the same forms, prefilled from the snapshot
"""

import asyncio
import logging
from datetime import date
from typing import Optional

import streamlit as st

from financehub.config import get_settings, validate_all_settings
from financehub.models import (
    Card,
    Expense,
    ExpenseCategory,
    Income,
    Jar,
    PaymentMethod,
    SalaryConfig,
)
from financehub.services import RecordKind
from financehub.session import ActionOutcome, FinanceSession, create_session
from financehub.utils import MonthKey
from financehub.validation import RecordValidationError


# Page configuration
st.set_page_config(
    page_title="FinanceHub",
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .budget-ok { color: #28a745; font-weight: bold; }
    .budget-warning { color: #ffc107; font-weight: bold; }
    .budget-danger { color: #dc3545; font-weight: bold; }
    .urgent-box {
        padding: 12px;
        background-color: #f8d7da;
        border-radius: 10px;
        border-left: 5px solid #dc3545;
        margin: 6px 0;
    }
    .upcoming-box {
        padding: 12px;
        background-color: #fff3cd;
        border-radius: 10px;
        border-left: 5px solid #ffc107;
        margin: 6px 0;
    }
</style>
""", unsafe_allow_html=True)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def brl(value: float) -> str:
    text = f"{value:,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")
    return f"R$ {text}"


def show_outcome(outcome: ActionOutcome) -> None:
    if outcome.ok:
        st.success(outcome.message)
    else:
        st.error(outcome.message)


@st.cache_resource
def get_session() -> FinanceSession:
    """Get or create the user's session (cached)."""
    settings = get_settings()
    logging.basicConfig(level=settings.app.effective_log_level)
    session = create_session(use_storage=True)
    outcome = run_async(session.load_all())
    if not outcome.ok:
        st.error(outcome.message)
    run_async(session.run_daily_yield_marker())
    return session


def main():
    """Main application entry point."""
    session = get_session()

    st.sidebar.title("💰 FinanceHub")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["📊 Dashboard", "📝 Entries", "💳 Cards", "🐷 Jars", "📅 Annual Report", "⚙️ Settings"],
        index=0,
    )

    st.sidebar.markdown("---")
    if st.sidebar.button("🔄 Reload data"):
        show_outcome(run_async(session.load_all()))

    if page == "📊 Dashboard":
        render_dashboard_page(session)
    elif page == "📝 Entries":
        render_entries_page(session)
    elif page == "💳 Cards":
        render_cards_page(session)
    elif page == "🐷 Jars":
        render_jars_page(session)
    elif page == "📅 Annual Report":
        render_annual_page(session)
    elif page == "⚙️ Settings":
        render_settings_page(session)


def render_dashboard_page(session: FinanceSession):
    """Render the dashboard."""
    agg = session.aggregator()
    summary = agg.dashboard()

    st.title(f"📊 Dashboard · {summary.month}")

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Total balance", brl(summary.total_balance), f"+{brl(summary.total_yield)} yield")
    col2.metric("Income this month", brl(summary.month_income))
    col3.metric("Spent this month", brl(summary.month_expenses))
    col4.metric("Free balance", brl(summary.free_balance))

    st.markdown(
        f'Budget used: <span class="budget-{summary.budget_level}">'
        f"{summary.budget_usage_percent:.0f}%</span> · "
        f"Pending card invoices: {brl(summary.pending_invoices)}",
        unsafe_allow_html=True,
    )
    st.progress(min(summary.budget_usage_percent, 100.0) / 100)

    if summary.upcoming:
        st.subheader("⏰ Upcoming invoices")
        for invoice in summary.upcoming:
            css = "urgent-box" if invoice.urgent else "upcoming-box"
            when = "today" if invoice.days_left == 0 else f"in {invoice.days_left} days"
            st.markdown(
                f'<div class="{css}"><strong>{invoice.card_name}</strong>: '
                f"{brl(invoice.total)} due {when} ({invoice.due_date:%d/%m})</div>",
                unsafe_allow_html=True,
            )

    col1, col2 = st.columns(2)
    with col1:
        st.subheader("Spending by category")
        categories = agg.category_totals(agg.current_month)
        if categories:
            st.bar_chart({c.label: c.total for c in categories})
        else:
            st.info("No expenses this month yet.")

    with col2:
        st.subheader("Balance evolution")
        evolution = agg.balance_evolution()
        st.line_chart({str(key): value for key, value in evolution})

    debts = agg.creditor_debts()
    if debts:
        st.subheader("🤝 Owed to others")
        st.dataframe(
            [
                {
                    "Creditor": debt.creditor,
                    "Contact": debt.creditor_contact,
                    "Expense": debt.description,
                    "Pending": brl(debt.pending_total),
                    "Installments left": debt.pending_installments,
                }
                for debt in debts
            ],
            use_container_width=True,
        )


def start_edit(kind: RecordKind, record_id: str) -> None:
    st.session_state.editing = (kind, record_id)


def stop_edit() -> None:
    st.session_state.editing = None


def editing_record(session: FinanceSession, kind: RecordKind):
    """The record of ``kind`` currently being edited, if any."""
    editing = st.session_state.get("editing")
    if not editing or editing[0] != kind:
        return None
    record = session.find(kind, editing[1])
    if record is None:
        stop_edit()
    return record


def save_and_report(outcome: ActionOutcome) -> None:
    show_outcome(outcome)
    if outcome.ok:
        stop_edit()


def option_index(options: list, predicate) -> int:
    for index, option in enumerate(options):
        if predicate(option):
            return index
    return 0


def render_expense_form(session: FinanceSession, expense: Optional[Expense] = None):
    """Create a new expense, or edit ``expense`` in place."""
    snapshot = session.snapshot
    editing = expense is not None
    expense = expense or Expense(purchase_date=date.today())
    card_options = [None] + list(snapshot.cards)

    if editing:
        st.info(f"✏️ Editing '{expense.description}'")

    with st.form(f"expense_form_{expense.id or 'new'}", clear_on_submit=not editing):
        col1, col2 = st.columns(2)
        with col1:
            description = st.text_input("Description *", value=expense.description)
            amount = st.number_input(
                "Total amount *",
                min_value=0.0,
                value=float(expense.amount),
                step=0.01,
                format="%.2f",
            )
            purchase_date = st.date_input("Date *", value=expense.purchase_date)
            category = st.selectbox(
                "Category",
                options=list(ExpenseCategory),
                index=list(ExpenseCategory).index(expense.category),
                format_func=lambda c: c.label,
            )
            note = st.text_input("Note", value=expense.note)
        with col2:
            method = st.selectbox(
                "Payment",
                options=list(PaymentMethod),
                index=list(PaymentMethod).index(expense.payment_method),
                format_func=lambda m: m.value.title(),
            )
            card = st.selectbox(
                "Card",
                options=card_options,
                index=option_index(card_options, lambda c: c is not None and c.id == expense.card_id),
                format_func=lambda c: "-" if c is None else c.name,
            )
            installments = st.number_input("Installments", min_value=1, max_value=48, value=expense.installments)
            override = st.text_input(
                "First installment month (YYYY-MM, optional)",
                value=str(expense.first_installment_month or ""),
            )
            creditor = st.text_input("Creditor (optional)", value=expense.creditor)
            creditor_contact = st.text_input("Creditor contact", value=expense.creditor_contact)
        submitted = st.form_submit_button("💾 Save expense", type="primary")

    if editing and st.button("Cancel edit", key="cancel-edit-expense"):
        stop_edit()
        st.rerun()

    if submitted:
        try:
            parsed = session.validator.parse(Expense, {
                "id": expense.id,
                "description": description,
                "amount": amount,
                "purchase_date": purchase_date,
                "category": category,
                "payment_method": method,
                "card_id": card.id if card and method == PaymentMethod.CARTAO else None,
                "installments": installments,
                "first_installment_month": override,
                "creditor": creditor,
                "creditor_contact": creditor_contact,
                "note": note,
            })
        except RecordValidationError as e:
            st.error(session.validator.get_user_friendly_summary(e.result))
        else:
            save_and_report(run_async(session.save_expense(parsed)))


def render_income_form(session: FinanceSession, income: Optional[Income] = None):
    """Create a new income, or edit ``income`` in place."""
    editing = income is not None
    income = income or Income(received_on=date.today())
    jar_options = [None] + list(session.snapshot.jars)

    if editing:
        st.info(f"✏️ Editing '{income.description}'")

    with st.form(f"income_form_{income.id or 'new'}", clear_on_submit=not editing):
        description = st.text_input("Description *", value=income.description)
        amount = st.number_input(
            "Amount *",
            min_value=0.0,
            value=float(income.amount),
            step=0.01,
            format="%.2f",
        )
        received_on = st.date_input("Date *", value=income.received_on)
        rate = st.number_input(
            "Daily rate (% per business day)",
            min_value=0.0,
            value=float(income.daily_rate),
            step=0.001,
            format="%.4f",
        )
        jar = st.selectbox(
            "Jar",
            options=jar_options,
            index=option_index(
                jar_options,
                lambda j: income.jar_linked and j is not None and j.name == income.jar_name,
            ),
            format_func=lambda j: "-" if j is None else j.name,
        )
        note = st.text_input("Note", value=income.note)
        submitted = st.form_submit_button("💾 Save income", type="primary")

    if editing and st.button("Cancel edit", key="cancel-edit-income"):
        stop_edit()
        st.rerun()

    if submitted:
        try:
            parsed = session.validator.parse(Income, {
                "id": income.id,
                "description": description,
                "amount": amount,
                "received_on": received_on,
                "daily_rate": rate,
                "jar_linked": jar is not None,
                "jar_name": jar.name if jar else "",
                "note": note,
            })
        except RecordValidationError as e:
            st.error(session.validator.get_user_friendly_summary(e.result))
        else:
            save_and_report(run_async(session.save_income(parsed)))


def render_entries_page(session: FinanceSession):
    """Render the income and expense forms and lists."""
    st.title("📝 Entries")
    tab_expense, tab_income = st.tabs(["Expenses", "Incomes"])

    with tab_expense:
        render_expense_form(session, editing_record(session, RecordKind.EXPENSE))
        render_expense_list(session)

    with tab_income:
        render_income_form(session, editing_record(session, RecordKind.INCOME))

        agg = session.aggregator()
        for income in session.snapshot.incomes:
            col1, col2, col3, col4 = st.columns([4, 2, 1, 1])
            col1.markdown(f"**{income.description}** · {income.received_on:%d/%m/%Y}")
            col2.markdown(brl(agg.income_current_value(income)))
            if col3.button("✏️", key=f"edit-income-{income.id}"):
                start_edit(RecordKind.INCOME, income.id)
                st.rerun()
            if col4.button("🗑️", key=f"del-income-{income.id}"):
                st.session_state.pending = run_async(session.request_delete(RecordKind.INCOME, income.id))

    render_pending_confirmation(session)


def render_expense_list(session: FinanceSession):
    snapshot = session.snapshot
    agg = session.aggregator()
    for expense in snapshot.expenses:
        with st.expander(f"{expense.description} · {brl(expense.amount)} · {expense.purchase_date:%d/%m/%Y}"):
            for installment in agg.expense_installments(expense):
                col1, col2, col3 = st.columns([4, 2, 2])
                col1.markdown(f"{installment.label} · due {installment.due_month}")
                col2.markdown(f"{brl(installment.value)} · {installment.status.value.replace('_', ' ')}")
                if not installment.status.is_settled and expense.is_card:
                    if col3.button("Pay early", key=f"adv-{expense.id}-{installment.index}"):
                        show_outcome(run_async(session.record_advance_payment(
                            expense.id,
                            installment.index,
                            installment.value,
                        )))
            col1, col2 = st.columns(2)
            if col1.button("✏️ Edit expense", key=f"edit-expense-{expense.id}"):
                start_edit(RecordKind.EXPENSE, expense.id)
                st.rerun()
            if col2.button("🗑️ Delete expense", key=f"del-expense-{expense.id}"):
                st.session_state.pending = run_async(session.request_delete(RecordKind.EXPENSE, expense.id))


def render_pending_confirmation(session: FinanceSession):
    """The confirmation step for a staged deletion."""
    action = st.session_state.get("pending")
    if action is None:
        return

    st.warning(action.prompt)
    col1, col2 = st.columns(2)
    if col1.button("✅ Confirm", type="primary"):
        show_outcome(run_async(session.confirm(action)))
        st.session_state.pending = None
    if col2.button("❌ Cancel"):
        session.cancel(action)
        st.session_state.pending = None
        st.rerun()


def render_cards_page(session: FinanceSession):
    """Render card statements and the card form."""
    st.title("💳 Cards")
    agg = session.aggregator()

    month_text = st.text_input("Month", value=str(agg.current_month))
    try:
        month = MonthKey.parse(month_text)
    except ValueError:
        st.error("Use the YYYY-MM format")
        return

    for card in session.snapshot.cards:
        statement = agg.card_statement(card.id, month)
        badge = "🔴 closed" if statement.overdue else "🟢 open"
        st.subheader(f"{card.name} · {brl(statement.total)} · due {statement.due_date:%d/%m} {badge}")
        if statement.limit > 0:
            st.progress(min(statement.limit_usage_percent, 100.0) / 100)
            st.caption(f"Available limit: {brl(statement.available_limit or 0.0)}")
        st.dataframe(
            [
                {
                    "Expense": i.description,
                    "Installment": i.label,
                    "Value": brl(i.value),
                    "Status": i.status.value.replace("_", " "),
                }
                for i in statement.installments
            ],
            use_container_width=True,
        )
        col1, col2 = st.columns(2)
        if col1.button("✏️ Edit card", key=f"edit-card-{card.id}"):
            start_edit(RecordKind.CARD, card.id)
            st.rerun()
        if col2.button("🗑️ Delete card", key=f"del-card-{card.id}"):
            st.session_state.pending = run_async(session.request_delete(RecordKind.CARD, card.id))

    render_pending_confirmation(session)

    card = editing_record(session, RecordKind.CARD)
    editing = card is not None
    card = card or Card(due_day=10)
    if editing:
        st.info(f"✏️ Editing '{card.name}'")

    with st.form(f"card_form_{card.id or 'new'}", clear_on_submit=not editing):
        name = st.text_input("Card name *", value=card.name)
        holder = st.text_input("Holder", value=card.holder)
        limit = st.number_input("Limit", min_value=0.0, value=float(card.limit), step=100.0)
        due_day = st.number_input("Due day *", min_value=1, max_value=31, value=card.due_day or 10)
        submitted = st.form_submit_button("💾 Save card", type="primary")

    if editing and st.button("Cancel edit", key="cancel-edit-card"):
        stop_edit()
        st.rerun()

    if submitted:
        updated = card.model_copy(update={
            "name": name.strip(),
            "holder": holder.strip(),
            "limit": limit,
            "due_day": int(due_day),
        })
        save_and_report(run_async(session.save_card(updated)))


def render_jars_page(session: FinanceSession):
    """Render jar balances and the jar form."""
    st.title("🐷 Jars")
    agg = session.aggregator()

    for balance in agg.jar_balances():
        st.subheader(f"{balance.name} · {brl(balance.balance)}")
        st.caption(f"Yield so far: {brl(balance.accrued_yield)}")
        if balance.goal > 0:
            st.progress(min(balance.goal_percent, 100.0) / 100)
            st.caption(f"{balance.goal_percent:.0f}% of {brl(balance.goal)}")
        if balance.jar_id:
            col1, col2 = st.columns(2)
            if col1.button("✏️ Edit jar", key=f"edit-jar-{balance.jar_id}"):
                start_edit(RecordKind.JAR, balance.jar_id)
                st.rerun()
            if col2.button("🗑️ Delete jar", key=f"del-jar-{balance.jar_id}"):
                st.session_state.pending = run_async(session.request_delete(RecordKind.JAR, balance.jar_id))

    render_pending_confirmation(session)

    jar = editing_record(session, RecordKind.JAR)
    editing = jar is not None
    jar = jar or Jar()
    if editing:
        st.info(f"✏️ Editing '{jar.name}'")

    with st.form(f"jar_form_{jar.id or 'new'}", clear_on_submit=not editing):
        name = st.text_input("Jar name *", value=jar.name)
        goal = st.number_input("Goal", min_value=0.0, value=float(jar.goal), step=100.0)
        rate = st.number_input(
            "Daily rate (% per business day)",
            min_value=0.0,
            value=float(jar.daily_rate),
            step=0.001,
            format="%.4f",
        )
        submitted = st.form_submit_button("💾 Save jar", type="primary")

    if editing and st.button("Cancel edit", key="cancel-edit-jar"):
        stop_edit()
        st.rerun()

    if submitted:
        updated = jar.model_copy(update={"name": name.strip(), "goal": goal, "daily_rate": rate})
        save_and_report(run_async(session.save_jar(updated)))


def render_annual_page(session: FinanceSession):
    """Render the multi-year report."""
    st.title("📅 Annual Report")
    report = session.aggregator().annual_report()

    if not report.years:
        st.info("Nothing recorded yet.")
        return

    st.metric("Balance across all years", brl(report.total_income - report.total_expenses))
    for year in report.years:
        st.subheader(f"{year.year} · {brl(year.balance)}")
        st.dataframe(
            [
                {
                    "Month": str(row.month),
                    "Income": brl(row.total_income),
                    "Expenses": brl(row.expenses),
                    "Balance": brl(row.balance),
                }
                for row in year.months
            ],
            use_container_width=True,
        )
        if year.categories:
            st.bar_chart({c.label: c.total for c in year.categories})


def render_settings_page(session: FinanceSession):
    """Render salary configuration and connection status."""
    st.title("⚙️ Settings")

    salary = session.snapshot.salary or SalaryConfig()
    st.markdown("### Salary")
    with st.form("salary_form"):
        amount = st.number_input("Monthly salary", min_value=0.0, value=salary.amount, step=100.0)
        active = st.checkbox("Active", value=salary.active)
        submitted = st.form_submit_button("💾 Save salary", type="primary")
    if submitted:
        show_outcome(run_async(session.save_salary(SalaryConfig(amount=amount, active=active))))

    st.markdown("### Connection Status")
    st.caption(f"Environment: {get_settings().app.app_environment}")
    status = validate_all_settings()
    services = [
        ("Google Sheets (Storage)", "google_sheets"),
        ("Collections", "collections"),
        ("Application", "app"),
    ]
    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    st.markdown("### Recent activity")
    for event in session.audit_logger.recent_events[:20]:
        st.caption(f"{event.timestamp:%d/%m %H:%M} · {event.description}")


if __name__ == "__main__":
    main()
