"""Services package."""

from financehub.services.repository import FinanceRepository, RecordKind
from financehub.services.storage import (
    ConnectionError,
    DocumentStoreInterface,
    GoogleSheetsClient,
    GoogleSheetsDocumentStore,
    InMemoryDocumentStore,
    NotFoundError,
    StorageError,
)

__all__ = [
    # Repository
    "FinanceRepository",
    "RecordKind",
    # Storage services
    "ConnectionError",
    "DocumentStoreInterface",
    "GoogleSheetsClient",
    "GoogleSheetsDocumentStore",
    "InMemoryDocumentStore",
    "NotFoundError",
    "StorageError",
]
