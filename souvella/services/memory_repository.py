"""Memory repository: creation and reads scoped to a relationship."""

import uuid
from typing import List, Optional

from loguru import logger

from souvella.exceptions import (
    DailyUploadLimitError,
    MalformedDocumentError,
    NotFoundError,
    ValidationError,
)
from souvella.schemas.memory import Memory, MemoryKind, UploadStatus
from souvella.services.relationship_service import RelationshipService
from souvella.store.base import MEMORIES, Document, DocumentStore
from souvella.utils.timezone import Clock


def parse_memories(documents: List[Document]) -> List[Memory]:
    """Build records from raw documents, skipping the ones that fail validation."""
    memories: List[Memory] = []
    for document in documents:
        try:
            memories.append(Memory.from_document(document))
        except MalformedDocumentError as e:
            logger.warning(f"Skipping malformed memory | {e}")
    return memories


class MemoryRepository:
    """CRUD over memories owned by a relationship."""

    def __init__(
        self,
        store: DocumentStore,
        relationships: RelationshipService,
        clock: Clock,
        upload_limit: int = 0,
    ):
        """Initialize memory repository.

        Args:
            store: Document store
            relationships: Used to check the owning relationship exists
            clock: Calendar clock
            upload_limit: Memories one author may post per relationship per day, 0 for no limit
        """
        self.store = store
        self.relationships = relationships
        self.clock = clock
        self.upload_limit = upload_limit

    async def create_memory(
        self,
        relationship_id: str,
        author_id: str,
        kind: MemoryKind,
        body: str = "",
        media_ref: Optional[str] = None,
    ) -> Memory:
        """Post a memory to a relationship.

        An image or audio memory whose upload never produced a ``media_ref`` is
        stored as text so it cannot present as playable media.

        Args:
            relationship_id: Owning relationship
            author_id: Posting user
            kind: Memory kind
            body: Text, or caption for media memories
            media_ref: URI of the uploaded binary

        Returns:
            The stored memory

        Raises:
            NotFoundError: If the relationship does not exist
            ValidationError: If a text memory carries a media_ref
            DailyUploadLimitError: If the author already hit today's upload limit
        """
        await self.relationships.ensure_exists(relationship_id)

        kind = MemoryKind(kind)
        if kind == MemoryKind.TEXT and media_ref:
            raise ValidationError("Text memories cannot carry media")
        if kind != MemoryKind.TEXT and not media_ref:
            logger.warning(
                f"Media upload missing, storing as text | relationship={relationship_id} "
                f"author={author_id} kind={kind.value}"
            )
            kind = MemoryKind.TEXT
            media_ref = None

        if self.upload_limit > 0:
            status = await self.daily_upload_status(author_id, relationship_id)
            if status.uploads_today >= self.upload_limit:
                raise DailyUploadLimitError(
                    f"You've already shared {status.uploads_today} memories today"
                )

        memory_id = str(uuid.uuid4())
        memory = Memory(
            id=memory_id,
            relationship_id=relationship_id,
            author_id=author_id,
            kind=kind,
            body=body,
            media_ref=media_ref,
            created_at=self.clock.now(),
        )
        await self.store.create_document(MEMORIES, memory.to_document(), document_id=memory_id)

        logger.info(
            f"Memory created | memory={memory_id} relationship={relationship_id} kind={kind.value}"
        )
        return memory

    async def get_memory(self, memory_id: str) -> Memory:
        """Get a memory.

        Raises:
            NotFoundError: If it does not exist
            MalformedDocumentError: If the stored document is invalid
        """
        document = await self.store.get_document(MEMORIES, memory_id)
        if document is None:
            raise NotFoundError("Memory", memory_id)
        return Memory.from_document(document)

    async def find_memory(self, memory_id: str) -> Optional[Memory]:
        """Like ``get_memory`` but returns None for missing or unreadable documents."""
        document = await self.store.get_document(MEMORIES, memory_id)
        if document is None:
            return None
        try:
            return Memory.from_document(document)
        except MalformedDocumentError as e:
            logger.warning(f"Unreadable memory | {e}")
            return None

    async def all_for_relationship(self, relationship_id: str) -> List[Memory]:
        """Every memory of a relationship, unordered."""
        documents = await self.store.query_by_field(MEMORIES, "relationship_id", relationship_id)
        return parse_memories(documents)

    async def list_for_relationship(self, relationship_id: str) -> List[Memory]:
        """Timeline of a relationship, newest first.

        Raises:
            NotFoundError: If the relationship does not exist
        """
        await self.relationships.ensure_exists(relationship_id)
        memories = await self.all_for_relationship(relationship_id)
        return sorted(memories, key=lambda m: (m.created_at, m.id), reverse=True)

    async def daily_upload_status(self, author_id: str, relationship_id: str) -> UploadStatus:
        """Whether ``author_id`` already posted to the relationship today."""
        today = self.clock.today()
        documents = await self.store.query_by_field(MEMORIES, "author_id", author_id)
        todays = [
            memory
            for memory in parse_memories(documents)
            if memory.relationship_id == relationship_id
            and self.clock.day_of(memory.created_at) == today
        ]
        todays.sort(key=lambda m: m.created_at, reverse=True)

        return UploadStatus(
            has_uploaded=bool(todays),
            uploads_today=len(todays),
            todays_memory=todays[0] if todays else None,
        )
