"""
In-Memory Document Store

Dictionary-backed implementation of the document store interface.
Used by the test suite and by the app when no backend is configured;
data lives only as long as the process.
"""

import copy
from typing import Optional
from uuid import uuid4

from financehub.services.storage.interface import (
    Document,
    DocumentStoreInterface,
    NotFoundError,
    split_document_path,
)


def _sort_key(field: str):
    def key(document: Document):
        value = document.get(field)
        # Missing values first, then by type name so mixed types never compare
        return (value is not None, type(value).__name__, value if value is not None else 0)
    return key


class InMemoryDocumentStore(DocumentStoreInterface):
    """
    Keeps collections as ``{collection_path: {document_id: fields}}``.

    Every read returns deep copies, so callers can never mutate stored
    state by accident.
    """

    def __init__(self, initial: Optional[dict[str, dict[str, Document]]] = None):
        self._collections: dict[str, dict[str, Document]] = copy.deepcopy(initial or {})

    def _collection(self, collection_path: str) -> dict[str, Document]:
        return self._collections.setdefault(collection_path.strip("/"), {})

    async def list_documents(
        self,
        collection_path: str,
        order_by: Optional[str] = None,
        direction: str = "asc",
    ) -> list[Document]:
        documents = [
            {"id": document_id, **copy.deepcopy(fields)}
            for document_id, fields in self._collection(collection_path).items()
        ]
        if order_by:
            documents.sort(key=_sort_key(order_by), reverse=direction == "desc")
        return documents

    async def create_document(self, collection_path: str, fields: Document) -> str:
        document_id = uuid4().hex
        self._collection(collection_path)[document_id] = copy.deepcopy(fields)
        return document_id

    async def update_document(
        self,
        collection_path: str,
        document_id: str,
        fields: Document,
    ) -> None:
        collection = self._collection(collection_path)
        if document_id not in collection:
            raise NotFoundError(f"Document not found: {collection_path}/{document_id}")
        collection[document_id].update(copy.deepcopy(fields))

    async def delete_document(self, collection_path: str, document_id: str) -> None:
        self._collection(collection_path).pop(document_id, None)

    async def get_document(self, path: str) -> Optional[Document]:
        collection_path, document_id = split_document_path(path)
        fields = self._collection(collection_path).get(document_id)
        return copy.deepcopy(fields) if fields is not None else None

    async def set_document(
        self,
        path: str,
        fields: Document,
        merge: bool = False,
    ) -> None:
        collection_path, document_id = split_document_path(path)
        collection = self._collection(collection_path)
        if merge and document_id in collection:
            collection[document_id].update(copy.deepcopy(fields))
        else:
            collection[document_id] = copy.deepcopy(fields)
