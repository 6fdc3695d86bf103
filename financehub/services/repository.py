"""
Finance Repository

Maps typed records to one user's collections in the document store.

DESIGN DECISION: This is the only place raw documents are turned into
records. Everything downstream of the repository works with validated
models; an unreadable document is logged and skipped here so it can
never reach the engine.

Layout (collection names configurable):
    users/{uid}                      user doc, holds lastYieldUpdate
    users/{uid}/receitas             incomes
    users/{uid}/gastos               expenses
    users/{uid}/cartoes              cards
    users/{uid}/reservas             jars
    users/{uid}/antecipacoes         advance payments (append-only)
    users/{uid}/config/salario       salary configuration
"""

import asyncio
from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional, Type, TypeVar

import structlog
from pydantic import ValidationError

from financehub.config import CollectionSettings, get_settings
from financehub.engine.aggregation import FinanceSnapshot
from financehub.models.records import (
    AdvancePayment,
    Card,
    Expense,
    Income,
    Jar,
    SalaryConfig,
    StoredRecord,
)
from financehub.services.storage.interface import Document, DocumentStoreInterface, join_path
from financehub.utils.dates import parse_date


logger = structlog.get_logger(__name__)

RecordT = TypeVar("RecordT", bound=StoredRecord)


class RecordKind(str, Enum):
    """The user-editable collections."""
    INCOME = "income"
    EXPENSE = "expense"
    CARD = "card"
    JAR = "jar"
    ADVANCE_PAYMENT = "advance_payment"


RECORD_TYPES: dict[RecordKind, Type[StoredRecord]] = {
    RecordKind.INCOME: Income,
    RecordKind.EXPENSE: Expense,
    RecordKind.CARD: Card,
    RecordKind.JAR: Jar,
    RecordKind.ADVANCE_PAYMENT: AdvancePayment,
}


def kind_of(record: StoredRecord) -> RecordKind:
    for kind, record_type in RECORD_TYPES.items():
        if isinstance(record, record_type):
            return kind
    raise TypeError(f"Not a stored record type: {type(record).__name__}")


class FinanceRepository:
    """
    Typed access to one user's documents.

    Usage:
        repo = FinanceRepository(store, user_id="abc")
        snapshot = await repo.load_snapshot()
        expense_id = await repo.save(Expense(...))
    """

    def __init__(
        self,
        store: DocumentStoreInterface,
        user_id: str,
        collections: Optional[CollectionSettings] = None,
    ):
        if not user_id:
            raise ValueError("user_id is required")
        self._store = store
        self._user_id = user_id
        self._collections = collections or get_settings().collections
        self._skipped: list[tuple[RecordKind, Optional[str], str]] = []

    @property
    def user_id(self) -> str:
        return self._user_id

    @property
    def store(self) -> DocumentStoreInterface:
        return self._store

    # =========================================================================
    # PATHS
    # =========================================================================

    @property
    def user_path(self) -> str:
        return join_path(self._collections.users, self._user_id)

    def collection_path(self, kind: RecordKind) -> str:
        names = {
            RecordKind.INCOME: self._collections.incomes,
            RecordKind.EXPENSE: self._collections.expenses,
            RecordKind.CARD: self._collections.cards,
            RecordKind.JAR: self._collections.jars,
            RecordKind.ADVANCE_PAYMENT: self._collections.advance_payments,
        }
        return join_path(self.user_path, names[kind])

    @property
    def salary_path(self) -> str:
        return join_path(self.user_path, self._collections.config, self._collections.salary_document)

    @property
    def audit_path(self) -> str:
        return join_path(self.user_path, self._collections.audit)

    # =========================================================================
    # LOADING
    # =========================================================================

    def _parse(
        self,
        kind: RecordKind,
        model: Type[RecordT],
        documents: list[Document],
    ) -> list[RecordT]:
        records = []
        for document in documents:
            try:
                records.append(model.from_document(document))
            except ValidationError as e:
                logger.warning(
                    "record_skipped",
                    user_id=self._user_id,
                    kind=kind.value,
                    id=document.get("id"),
                    errors=e.error_count(),
                )
                self._skipped.append((kind, document.get("id"), f"{e.error_count()} invalid fields"))
        return records

    async def _load(
        self,
        kind: RecordKind,
        order_by: Optional[str] = None,
        direction: str = "asc",
    ) -> list:
        documents = await self._store.list_documents(
            self.collection_path(kind),
            order_by=order_by,
            direction=direction,
        )
        return self._parse(kind, RECORD_TYPES[kind], documents)

    async def load_incomes(self) -> list[Income]:
        return await self._load(RecordKind.INCOME, order_by="data", direction="desc")

    async def load_expenses(self) -> list[Expense]:
        return await self._load(RecordKind.EXPENSE, order_by="data", direction="desc")

    async def load_cards(self) -> list[Card]:
        return await self._load(RecordKind.CARD)

    async def load_jars(self) -> list[Jar]:
        return await self._load(RecordKind.JAR)

    async def load_advance_payments(self) -> list[AdvancePayment]:
        return await self._load(RecordKind.ADVANCE_PAYMENT, order_by="criadoEm")

    async def load_salary(self) -> Optional[SalaryConfig]:
        document = await self._store.get_document(self.salary_path)
        if document is None:
            return None
        try:
            return SalaryConfig.from_document(document)
        except ValidationError as e:
            logger.warning("salary_config_unreadable", user_id=self._user_id, errors=e.error_count())
            return None

    async def load_yield_marker(self) -> Optional[date]:
        document = await self._store.get_document(self.user_path)
        if not document:
            return None
        value = document.get(self._collections.yield_marker_field)
        if not value:
            return None
        try:
            return parse_date(value)
        except ValueError:
            logger.warning("yield_marker_unreadable", user_id=self._user_id, value=str(value))
            return None

    def drain_skipped(self) -> list[tuple[RecordKind, Optional[str], str]]:
        """Documents skipped since the last call, as (kind, id, reason)."""
        skipped, self._skipped = self._skipped, []
        return skipped

    async def load_kind(self, kind: RecordKind) -> list:
        """Reload a single collection."""
        loaders = {
            RecordKind.INCOME: self.load_incomes,
            RecordKind.EXPENSE: self.load_expenses,
            RecordKind.CARD: self.load_cards,
            RecordKind.JAR: self.load_jars,
            RecordKind.ADVANCE_PAYMENT: self.load_advance_payments,
        }
        return await loaders[kind]()

    async def load_snapshot(self) -> FinanceSnapshot:
        """Load every collection at once."""
        (
            incomes,
            expenses,
            cards,
            jars,
            payments,
            salary,
            marker,
        ) = await asyncio.gather(
            self.load_incomes(),
            self.load_expenses(),
            self.load_cards(),
            self.load_jars(),
            self.load_advance_payments(),
            self.load_salary(),
            self.load_yield_marker(),
        )
        return FinanceSnapshot(
            incomes=tuple(incomes),
            expenses=tuple(expenses),
            cards=tuple(cards),
            jars=tuple(jars),
            advance_payments=tuple(payments),
            salary=salary,
            yield_marker=marker,
        )

    # =========================================================================
    # WRITING
    # =========================================================================

    async def save(self, record: StoredRecord) -> str:
        """
        Create the record when it has no id, otherwise update it.

        Returns:
            The record's id
        """
        kind = kind_of(record)
        now = datetime.now(timezone.utc)
        path = self.collection_path(kind)

        if record.id:
            document = record.model_copy(update={"updated_at": now}).to_document(keep_none=True)
            document.pop("criadoEm", None)
            await self._store.update_document(path, record.id, document)
            return record.id

        document = record.model_copy(update={"created_at": now, "updated_at": now}).to_document()
        return await self._store.create_document(path, document)

    async def delete(self, kind: RecordKind, record_id: str) -> None:
        await self._store.delete_document(self.collection_path(kind), record_id)

    async def save_salary(self, config: SalaryConfig) -> None:
        document = config.model_copy(update={"updated_at": datetime.now(timezone.utc)}).to_document()
        await self._store.set_document(self.salary_path, document, merge=True)

    async def set_yield_marker(self, marker: date) -> None:
        await self._store.set_document(
            self.user_path,
            {self._collections.yield_marker_field: marker.isoformat()},
            merge=True,
        )
