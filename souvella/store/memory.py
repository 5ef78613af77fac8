"""In-process document store.

Used as the default backend for local runs and as the store of the test suite.
A single ``asyncio.Lock`` serialises writers, which gives the same per-document
atomicity the hosted backends offer.
"""

import asyncio
import copy
import uuid
from typing import Any, Dict, List, Optional, Sequence, Tuple

from loguru import logger

from souvella.exceptions import DocumentExistsError, NotFoundError
from souvella.store.base import Document


class InMemoryDocumentStore:
    """Dict-of-dicts implementation of ``DocumentStore``."""

    def __init__(self) -> None:
        self._collections: Dict[str, Dict[str, Document]] = {}
        self._lock = asyncio.Lock()

    def _collection(self, name: str) -> Dict[str, Document]:
        return self._collections.setdefault(name, {})

    @staticmethod
    def _export(document_id: str, data: Document) -> Document:
        out = copy.deepcopy(data)
        out["id"] = document_id
        return out

    @staticmethod
    def _import(data: Document) -> Document:
        payload = copy.deepcopy(data)
        payload.pop("id", None)
        return payload

    async def query_by_field(self, collection: str, field: str, value: Any) -> List[Document]:
        docs = self._collection(collection)
        return [
            self._export(doc_id, data)
            for doc_id, data in docs.items()
            if field in data and data[field] == value
        ]

    async def get_document(self, collection: str, document_id: str) -> Optional[Document]:
        data = self._collection(collection).get(document_id)
        if data is None:
            return None
        return self._export(document_id, data)

    async def create_document(
        self, collection: str, data: Document, document_id: Optional[str] = None
    ) -> str:
        async with self._lock:
            docs = self._collection(collection)
            document_id = document_id or str(uuid.uuid4())
            if document_id in docs:
                raise DocumentExistsError(collection, document_id)
            docs[document_id] = self._import(data)
        return document_id

    async def set_document(self, collection: str, document_id: str, data: Document) -> None:
        async with self._lock:
            self._collection(collection)[document_id] = self._import(data)

    async def update_document(self, collection: str, document_id: str, data: Document) -> None:
        async with self._lock:
            docs = self._collection(collection)
            if document_id not in docs:
                raise NotFoundError(collection, document_id)
            docs[document_id].update(self._import(data))

    async def batch_update(self, collection: str, updates: Sequence[Tuple[str, Document]]) -> None:
        async with self._lock:
            docs = self._collection(collection)
            missing = [doc_id for doc_id, _ in updates if doc_id not in docs]
            if missing:
                raise NotFoundError(collection, missing[0])
            for doc_id, partial in updates:
                docs[doc_id].update(self._import(partial))
        logger.debug(f"Batch updated {len(updates)} documents in {collection}")

    async def increment_field(
        self, collection: str, document_id: str, field: str, amount: int = 1
    ) -> int:
        async with self._lock:
            docs = self._collection(collection)
            if document_id not in docs:
                raise NotFoundError(collection, document_id)
            new_value = int(docs[document_id].get(field) or 0) + amount
            docs[document_id][field] = new_value
        return new_value

    async def delete_document(self, collection: str, document_id: str) -> None:
        async with self._lock:
            self._collection(collection).pop(document_id, None)
