"""
Abstract Document Store Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap Google Sheets for a real document database later
2. Use in-memory storage for testing
3. Keep business logic decoupled from storage implementation

The interface is intentionally simple - we're not building an ORM.
Documents are flat dicts grouped into collections addressed by
slash-separated paths, e.g. ``users/{uid}/gastos``. A document path is its
collection path plus the document id: ``users/{uid}/config/salario``.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


Document = dict[str, Any]


def split_document_path(path: str) -> tuple[str, str]:
    """
    Split a document path into (collection_path, document_id).

    ``users/u1`` -> (``users``, ``u1``)

    Raises:
        ValueError: If the path has no collection part
    """
    parts = [part for part in path.strip("/").split("/") if part]
    if len(parts) < 2:
        raise ValueError(f"Invalid document path: {path!r}")
    return "/".join(parts[:-1]), parts[-1]


def join_path(*parts: str) -> str:
    """Join path segments, ignoring stray slashes."""
    return "/".join(str(part).strip("/") for part in parts if str(part).strip("/"))


class DocumentStoreInterface(ABC):
    """
    Abstract interface for document storage operations.

    Any storage implementation (Google Sheets, Firestore, etc.)
    must implement these methods.
    """

    @abstractmethod
    async def list_documents(
        self,
        collection_path: str,
        order_by: Optional[str] = None,
        direction: str = "asc",
    ) -> list[Document]:
        """
        List every document in a collection.

        Args:
            collection_path: Slash-separated collection path
            order_by: Field to sort by (documents missing it sort first)
            direction: "asc" or "desc"

        Returns:
            Documents as dicts, each including its ``id``

        Raises:
            StorageError: If the read fails
        """
        pass

    @abstractmethod
    async def create_document(
        self,
        collection_path: str,
        fields: Document,
    ) -> str:
        """
        Add a document with a store-assigned id.

        Returns:
            The new document's id

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def update_document(
        self,
        collection_path: str,
        document_id: str,
        fields: Document,
    ) -> None:
        """
        Merge fields into an existing document.

        Raises:
            NotFoundError: If the document doesn't exist
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def delete_document(
        self,
        collection_path: str,
        document_id: str,
    ) -> None:
        """
        Delete a document. Deleting a missing document is not an error.

        Raises:
            StorageError: If the delete fails
        """
        pass

    @abstractmethod
    async def get_document(self, path: str) -> Optional[Document]:
        """
        Read one document by its full path.

        Returns:
            The document fields, or None if it doesn't exist
        """
        pass

    @abstractmethod
    async def set_document(
        self,
        path: str,
        fields: Document,
        merge: bool = False,
    ) -> None:
        """
        Create or overwrite a document at a fixed path.

        Args:
            path: Full document path
            fields: Document fields
            merge: Keep existing fields not present in ``fields``

        Raises:
            StorageError: If the write fails
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Document not found in storage."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
