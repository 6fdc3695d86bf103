"""
Storage Services Package

Provides the abstract document store interface and its implementations.
Google Sheets is the hosted backend; the in-memory store serves tests and
offline use.
"""

from financehub.services.storage.interface import (
    ConnectionError,
    Document,
    DocumentStoreInterface,
    NotFoundError,
    StorageError,
    join_path,
    split_document_path,
)
from financehub.services.storage.memory import InMemoryDocumentStore
from financehub.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsDocumentStore,
)

__all__ = [
    # Interfaces
    "Document",
    "DocumentStoreInterface",
    "join_path",
    "split_document_path",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "StorageError",
    # Implementations
    "GoogleSheetsClient",
    "GoogleSheetsDocumentStore",
    "InMemoryDocumentStore",
]
