"""SQL-backed document store (PostgreSQL in production, SQLite in tests)."""

import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, List, Optional, Sequence, Tuple

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from souvella.exceptions import DocumentExistsError, NotFoundError, StoreUnavailableError
from souvella.models.document import DocumentRecord
from souvella.store.base import Document


def _field_clause(field: str, value: Any):
    """Build the JSON path comparison for ``data[field] == value``."""
    element = DocumentRecord.data[field]
    if isinstance(value, bool):
        return element.as_boolean() == value
    if isinstance(value, int):
        return element.as_integer() == value
    if isinstance(value, float):
        return element.as_float() == value
    return element.as_string() == str(value)


def _export(row: DocumentRecord) -> Document:
    out = dict(row.data)
    out["id"] = row.id
    return out


def _payload(data: Document) -> Document:
    payload = dict(data)
    payload.pop("id", None)
    return payload


class SqlDocumentStore:
    """``DocumentStore`` over a single ``documents`` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        """Initialize the store.

        Args:
            session_factory: Async session factory bound to the engine
        """
        self.session_factory = session_factory

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncIterator[AsyncSession]:
        """Open a session and turn driver failures into ``StoreUnavailableError``."""
        try:
            async with self.session_factory() as session:
                yield session
        except (SQLAlchemyError, OSError) as exc:
            logger.error(f"Document store failure | operation={operation} error={exc}")
            raise StoreUnavailableError(f"Document store unavailable during {operation}") from exc

    async def query_by_field(self, collection: str, field: str, value: Any) -> List[Document]:
        async with self._session("query_by_field") as session:
            stmt = select(DocumentRecord).where(
                DocumentRecord.collection == collection,
                _field_clause(field, value),
            )
            result = await session.execute(stmt)
            return [_export(row) for row in result.scalars().all()]

    async def get_document(self, collection: str, document_id: str) -> Optional[Document]:
        async with self._session("get_document") as session:
            row = await session.get(DocumentRecord, (collection, document_id))
            return _export(row) if row else None

    async def create_document(
        self, collection: str, data: Document, document_id: Optional[str] = None
    ) -> str:
        document_id = document_id or str(uuid.uuid4())
        async with self._session("create_document") as session:
            session.add(DocumentRecord(collection=collection, id=document_id, data=_payload(data)))
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise DocumentExistsError(collection, document_id) from exc
        return document_id

    async def set_document(self, collection: str, document_id: str, data: Document) -> None:
        async with self._session("set_document") as session:
            record = DocumentRecord(collection=collection, id=document_id, data=_payload(data))
            try:
                await session.merge(record)
                await session.commit()
            except IntegrityError:
                # A concurrent writer inserted the row between our read and insert
                await session.rollback()
                await session.merge(record)
                await session.commit()

    async def update_document(self, collection: str, document_id: str, data: Document) -> None:
        async with self._session("update_document") as session:
            async with session.begin():
                row = await self._locked_row(session, collection, document_id)
                row.data = {**row.data, **_payload(data)}

    async def batch_update(self, collection: str, updates: Sequence[Tuple[str, Document]]) -> None:
        if not updates:
            return
        async with self._session("batch_update") as session:
            async with session.begin():
                ids = [doc_id for doc_id, _ in updates]
                stmt = (
                    select(DocumentRecord)
                    .where(DocumentRecord.collection == collection, DocumentRecord.id.in_(ids))
                    .with_for_update()
                )
                rows = {row.id: row for row in (await session.execute(stmt)).scalars().all()}
                for doc_id, partial in updates:
                    row = rows.get(doc_id)
                    if row is None:
                        raise NotFoundError(collection, doc_id)
                    row.data = {**row.data, **_payload(partial)}
        logger.debug(f"Batch updated {len(updates)} documents in {collection}")

    async def increment_field(
        self, collection: str, document_id: str, field: str, amount: int = 1
    ) -> int:
        async with self._session("increment_field") as session:
            async with session.begin():
                row = await self._locked_row(session, collection, document_id)
                new_value = int(row.data.get(field) or 0) + amount
                row.data = {**row.data, field: new_value}
        return new_value

    async def delete_document(self, collection: str, document_id: str) -> None:
        async with self._session("delete_document") as session:
            async with session.begin():
                row = await session.get(DocumentRecord, (collection, document_id))
                if row is not None:
                    await session.delete(row)

    async def _locked_row(self, session: AsyncSession, collection: str, document_id: str) -> DocumentRecord:
        stmt = (
            select(DocumentRecord)
            .where(DocumentRecord.collection == collection, DocumentRecord.id == document_id)
            .with_for_update()
        )
        row = (await session.execute(stmt)).scalars().first()
        if row is None:
            raise NotFoundError(collection, document_id)
        return row
