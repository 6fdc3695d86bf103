"""
Session Controller for FinanceHub

This module ties together the repository, validator, audit logger and
the engine, and defines every user action:
1. Load (store → typed snapshot)
2. Save (form → validate → store → reload)
3. Delete (request → confirm → store → reload)
4. Advance payment (append-only record of an early installment payment)
5. Daily yield marker (once per business day)

DESIGN DECISION: The session enforces the boundaries:
- Nothing reaches the store without passing validation
- A failed store call leaves the in-memory snapshot untouched
- Deletions only happen after an explicit confirmation
- Every mutation is audited

No action ever raises to the caller for an expected failure; each returns
an ActionOutcome the app can show as-is.
"""

from datetime import date
from typing import Optional
from uuid import uuid4

import structlog
from pydantic import BaseModel, ConfigDict, Field

from financehub.audit import AuditLogger
from financehub.config import AppSettings, get_settings
from financehub.engine.aggregation import Aggregator, FinanceSnapshot
from financehub.engine.installments import installment_value
from financehub.engine.yields import resolve_daily_rate
from financehub.models.audit import AuditEventBuilder
from financehub.models.records import (
    AdvancePayment,
    Card,
    Expense,
    Income,
    Jar,
    SalaryConfig,
    StoredRecord,
)
from financehub.models.validation import ValidationIssue, ValidationResult
from financehub.services.repository import FinanceRepository, RecordKind
from financehub.services.storage import (
    DocumentStoreInterface,
    GoogleSheetsClient,
    GoogleSheetsDocumentStore,
    InMemoryDocumentStore,
    StorageError,
)
from financehub.utils.dates import is_business_day
from financehub.validation import RecordValidationError, RecordValidator


logger = structlog.get_logger(__name__)

# Snapshot attribute holding each collection
SNAPSHOT_FIELDS = {
    RecordKind.INCOME: "incomes",
    RecordKind.EXPENSE: "expenses",
    RecordKind.CARD: "cards",
    RecordKind.JAR: "jars",
    RecordKind.ADVANCE_PAYMENT: "advance_payments",
}


class ActionOutcome(BaseModel):
    """What a user action produced, ready to show in the app."""

    model_config = ConfigDict(frozen=True)

    ok: bool
    message: str
    record_id: Optional[str] = None
    issues: list[ValidationIssue] = Field(default_factory=list)


class PendingAction(BaseModel):
    """
    A destructive action waiting for the user's confirmation.

    Carries everything needed to run it later; nothing happens until
    it is passed to ``FinanceSession.confirm``.
    """

    model_config = ConfigDict(frozen=True)

    action_id: str = Field(default_factory=lambda: uuid4().hex)
    kind: RecordKind
    record_id: str
    label: str = ""

    @property
    def prompt(self) -> str:
        name = f" '{self.label}'" if self.label else ""
        return f"Delete {self.kind.value.replace('_', ' ')}{name}? This cannot be undone."


def record_label(record: StoredRecord) -> str:
    return getattr(record, "description", "") or getattr(record, "name", "") or (record.id or "")


class FinanceSession:
    """
    One user's working session.

    Owns the current snapshot and replaces it wholesale after every
    successful mutation.

    Usage:
        session = FinanceSession(FinanceRepository(store, "uid"))
        await session.load_all()
        outcome = await session.save_expense(expense)
        session.aggregator().dashboard()
    """

    def __init__(
        self,
        repository: FinanceRepository,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[RecordValidator] = None,
        settings: Optional[AppSettings] = None,
    ):
        self._repository = repository
        self._audit_logger = audit_logger or AuditLogger()
        self._validator = validator or RecordValidator()
        self._settings = settings or get_settings().app
        self._snapshot = FinanceSnapshot()
        self._pending: dict[str, PendingAction] = {}

    @property
    def user_id(self) -> str:
        return self._repository.user_id

    @property
    def repository(self) -> FinanceRepository:
        return self._repository

    @property
    def snapshot(self) -> FinanceSnapshot:
        return self._snapshot

    @property
    def validator(self) -> RecordValidator:
        return self._validator

    @property
    def audit_logger(self) -> AuditLogger:
        return self._audit_logger

    @property
    def pending_actions(self) -> list[PendingAction]:
        return list(self._pending.values())

    def aggregator(self, today: Optional[date] = None) -> Aggregator:
        """Views over the current snapshot as of ``today``."""
        return Aggregator(self._snapshot, today=today, settings=self._settings)

    # =========================================================================
    # LOADING
    # =========================================================================

    async def load_all(self) -> ActionOutcome:
        """Load every collection, replacing the snapshot on success."""
        try:
            snapshot = await self._repository.load_snapshot()
        except StorageError as e:
            await self._audit_logger.log_storage_error("load", str(e), user_id=self.user_id)
            return ActionOutcome(ok=False, message=f"Could not load your data: {e}")

        for kind, record_id, reason in self._repository.drain_skipped():
            await self._audit_logger.log(AuditEventBuilder.record_skipped(
                user_id=self.user_id,
                entity_type=kind.value,
                entity_id=record_id,
                reason=reason,
            ))

        self._snapshot = snapshot
        counts = {name: len(getattr(snapshot, name)) for name in SNAPSHOT_FIELDS.values()}
        await self._audit_logger.log(AuditEventBuilder.data_loaded(self.user_id, counts))
        return ActionOutcome(ok=True, message="Data loaded")

    async def _reload(self, kind: RecordKind) -> bool:
        try:
            records = await self._repository.load_kind(kind)
        except StorageError as e:
            logger.warning("reload_failed", user_id=self.user_id, kind=kind.value, error=str(e))
            return False
        self._snapshot = self._snapshot.replace(**{SNAPSHOT_FIELDS[kind]: records})
        return True

    # =========================================================================
    # SAVING
    # =========================================================================

    async def _reject(self, result: ValidationResult) -> ActionOutcome:
        await self._audit_logger.log_validation_failed(
            user_id=self.user_id,
            entity_type=result.entity_type,
            issues=[issue.model_dump() for issue in result.errors],
        )
        return ActionOutcome(
            ok=False,
            message=self._validator.get_user_friendly_summary(result),
            issues=result.issues,
        )

    async def _save(
        self,
        kind: RecordKind,
        record: StoredRecord,
        result: ValidationResult,
    ) -> ActionOutcome:
        if not result.is_valid:
            return await self._reject(result)

        is_update = bool(record.id)
        try:
            record_id = await self._repository.save(record)
        except StorageError as e:
            await self._audit_logger.log(AuditEventBuilder.save_failed(
                user_id=self.user_id,
                entity_type=kind.value,
                error_message=str(e),
                entity_id=record.id,
            ))
            return ActionOutcome(ok=False, message=f"Could not save: {e}", record_id=record.id)

        builder = AuditEventBuilder.record_updated if is_update else AuditEventBuilder.record_created
        await self._audit_logger.log(builder(
            user_id=self.user_id,
            entity_type=kind.value,
            entity_id=record_id,
            label=record_label(record),
        ))

        message = "Saved" if not result.warnings else "Saved. " + " ".join(result.warnings)
        if not await self._reload(kind):
            message += " (refresh to see the change)"
        return ActionOutcome(ok=True, message=message, record_id=record_id, issues=result.issues)

    async def save_income(self, income: Income) -> ActionOutcome:
        """Create the income when it has no id, otherwise update it."""
        result = self._validator.check_income(income, self._snapshot.jars)
        return await self._save(RecordKind.INCOME, income, result)

    async def save_expense(self, expense: Expense) -> ActionOutcome:
        """Create the expense when it has no id, otherwise update it."""
        result = self._validator.check_expense(expense, self._snapshot.cards)
        return await self._save(RecordKind.EXPENSE, expense, result)

    async def save_card(self, card: Card) -> ActionOutcome:
        return await self._save(RecordKind.CARD, card, self._validator.check_card(card))

    async def save_jar(self, jar: Jar) -> ActionOutcome:
        return await self._save(RecordKind.JAR, jar, self._validator.check_jar(jar))

    async def save_salary(self, salary: SalaryConfig) -> ActionOutcome:
        """Overwrite the salary configuration singleton."""
        result = self._validator.check_salary(salary)
        if not result.is_valid:
            return await self._reject(result)

        try:
            await self._repository.save_salary(salary)
        except StorageError as e:
            await self._audit_logger.log(AuditEventBuilder.save_failed(
                user_id=self.user_id,
                entity_type="salary",
                error_message=str(e),
            ))
            return ActionOutcome(ok=False, message=f"Could not save salary: {e}")

        self._snapshot = self._snapshot.replace(salary=salary)
        await self._audit_logger.log(AuditEventBuilder.salary_updated(
            user_id=self.user_id,
            amount=salary.amount,
            active=salary.active,
        ))
        return ActionOutcome(ok=True, message="Salary saved")

    # =========================================================================
    # DELETING
    # =========================================================================

    def find(self, kind: RecordKind, record_id: str) -> Optional[StoredRecord]:
        """The loaded record of ``kind`` with ``record_id``, if any."""
        for record in getattr(self._snapshot, SNAPSHOT_FIELDS[kind]):
            if record.id == record_id:
                return record
        return None

    async def request_delete(self, kind: RecordKind, record_id: str) -> PendingAction:
        """
        Stage a deletion. Nothing is removed until ``confirm`` is called
        with the returned action.
        """
        record = self.find(kind, record_id)
        action = PendingAction(
            kind=kind,
            record_id=record_id,
            label=record_label(record) if record else "",
        )
        self._pending[action.action_id] = action
        await self._audit_logger.log(AuditEventBuilder.delete_requested(
            user_id=self.user_id,
            entity_type=kind.value,
            entity_id=record_id,
        ))
        return action

    def cancel(self, action: PendingAction) -> None:
        self._pending.pop(action.action_id, None)

    async def confirm(self, action: PendingAction) -> ActionOutcome:
        """Run a staged deletion."""
        if self._pending.pop(action.action_id, None) is None:
            return ActionOutcome(ok=False, message="This action is no longer pending")

        try:
            await self._repository.delete(action.kind, action.record_id)
        except StorageError as e:
            await self._audit_logger.log_storage_error("delete", str(e), user_id=self.user_id)
            return ActionOutcome(ok=False, message=f"Could not delete: {e}", record_id=action.record_id)

        await self._audit_logger.log(AuditEventBuilder.record_deleted(
            user_id=self.user_id,
            entity_type=action.kind.value,
            entity_id=action.record_id,
        ))
        message = "Deleted"
        if not await self._reload(action.kind):
            message += " (refresh to see the change)"
        return ActionOutcome(ok=True, message=message, record_id=action.record_id)

    # =========================================================================
    # ADVANCE PAYMENTS
    # =========================================================================

    async def record_advance_payment(
        self,
        expense_id: str,
        installment_index: int,
        amount_paid: float,
        payment_date: Optional[date] = None,
    ) -> ActionOutcome:
        """
        Record that one installment was paid before its invoice closed.

        The discount is the installment value minus what was paid.
        Payments are append-only: a second record for the same
        installment is rejected.
        """
        expense = self._snapshot.expense(expense_id)
        original_value = installment_value(expense) if expense else 0.0

        try:
            payment = self._validator.parse(AdvancePayment, {
                "expense_id": expense_id,
                "installment_index": installment_index,
                "original_value": original_value,
                "amount_paid": amount_paid,
                "discount": round(original_value - amount_paid, 2),
                "payment_date": payment_date or date.today(),
            })
        except RecordValidationError as e:
            return await self._reject(e.result)

        result = self._validator.check_advance_payment(
            payment,
            expense,
            self._snapshot.advance_payments,
            card=self._snapshot.card(expense.card_id) if expense else None,
            default_due_day=self._settings.default_due_day,
        )
        if not result.is_valid:
            return await self._reject(result)

        try:
            record_id = await self._repository.save(payment)
        except StorageError as e:
            await self._audit_logger.log(AuditEventBuilder.save_failed(
                user_id=self.user_id,
                entity_type=RecordKind.ADVANCE_PAYMENT.value,
                error_message=str(e),
            ))
            return ActionOutcome(ok=False, message=f"Could not record payment: {e}")

        await self._audit_logger.log(AuditEventBuilder.advance_payment_recorded(
            user_id=self.user_id,
            expense_id=expense_id,
            installment_index=installment_index,
            amount_paid=payment.amount_paid,
            discount=payment.discount,
        ))

        message = f"Installment {installment_index + 1} paid"
        if payment.discount > 0:
            message += f" with R$ {payment.discount:.2f} discount"
        if not await self._reload(RecordKind.ADVANCE_PAYMENT):
            message += " (refresh to see the change)"
        return ActionOutcome(ok=True, message=message, record_id=record_id)

    # =========================================================================
    # DAILY YIELD MARKER
    # =========================================================================

    async def run_daily_yield_marker(self, today: Optional[date] = None) -> bool:
        """
        Mark yields as updated for today.

        Runs at most once per business day, and only when some income
        actually earns a yield. Balances are always computed on read; the
        marker only records that the day was seen.

        Returns True if the marker was written.
        """
        today = today or date.today()
        if not is_business_day(today):
            return False

        marker = self._snapshot.yield_marker
        if marker is not None and marker >= today:
            return False

        jars = self._snapshot.jars
        bearing = [income for income in self._snapshot.incomes if resolve_daily_rate(income, jars) > 0]
        if not bearing:
            return False

        try:
            await self._repository.set_yield_marker(today)
        except StorageError as e:
            await self._audit_logger.log_storage_error("yield_marker", str(e), user_id=self.user_id)
            return False

        self._snapshot = self._snapshot.replace(yield_marker=today)
        await self._audit_logger.log(AuditEventBuilder.yield_marker_updated(
            user_id=self.user_id,
            marker=today.isoformat(),
            incomes=len(bearing),
        ))
        return True


def create_session(
    user_id: Optional[str] = None,
    store: Optional[DocumentStoreInterface] = None,
    use_storage: bool = True,
) -> FinanceSession:
    """
    Factory function to create a session with all its components.

    Args:
        user_id: Owner of the data; defaults to the configured local user
        store: Document store to use. When omitted, Google Sheets is used
               if configured, otherwise an in-memory store. In production
               a missing Google Sheets configuration raises instead.
        use_storage: Set to False to skip Google Sheets entirely.
    """
    settings = get_settings()
    user_id = user_id or settings.app.user_id

    if store is None:
        if use_storage:
            try:
                store = GoogleSheetsDocumentStore(GoogleSheetsClient())
            except Exception as e:
                if settings.app.is_production:
                    raise
                # Storage not configured - continue without it
                logger.warning("storage_not_configured", error=str(e))
                store = InMemoryDocumentStore()
        else:
            store = InMemoryDocumentStore()

    repository = FinanceRepository(store, user_id, settings.collections)
    audit_logger = AuditLogger(store, repository.audit_path)
    return FinanceSession(repository, audit_logger=audit_logger, settings=settings.app)
