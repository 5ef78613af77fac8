"""Freshness of memories: the "new" badge lifecycle."""

import enum
from datetime import datetime
from typing import List

from loguru import logger

from souvella.schemas.memory import Memory
from souvella.services.memory_repository import MemoryRepository
from souvella.services.relationship_service import RelationshipService
from souvella.store.base import MEMORIES, DocumentStore
from souvella.utils.timezone import Clock


class Freshness(str, enum.Enum):
    """NEW is set at creation; VIEWED is terminal."""

    NEW = "new"
    VIEWED = "viewed"


def freshness_of(memory: Memory) -> Freshness:
    return Freshness.NEW if memory.is_new else Freshness.VIEWED


class FreshnessService:
    """Applies the NEW -> VIEWED transition and answers "what's new"."""

    def __init__(
        self,
        store: DocumentStore,
        memories: MemoryRepository,
        relationships: RelationshipService,
        clock: Clock,
    ):
        self.store = store
        self.memories = memories
        self.relationships = relationships
        self.clock = clock

    def _is_due(self, memory: Memory, day_start: datetime) -> bool:
        """Flagged new and posted before today, so the transition applies."""
        return memory.is_new and memory.created_at < day_start

    async def mark_relationship_viewed(self, relationship_id: str) -> int:
        """Flip ``is_new`` off for the relationship's memories posted before today.

        Memories posted today keep their badge until the day rolls over.
        Calling this again with nothing new in between changes nothing.

        Args:
            relationship_id: Relationship whose memories were seen

        Returns:
            Number of memories that transitioned to VIEWED

        Raises:
            NotFoundError: If the relationship does not exist
        """
        await self.relationships.ensure_exists(relationship_id)
        day_start = self.clock.start_of_day()

        candidates = await self.memories.all_for_relationship(relationship_id)
        updates = [(memory.id, {"is_new": False}) for memory in candidates if self._is_due(memory, day_start)]
        if updates:
            await self.store.batch_update(MEMORIES, updates)

        logger.info(f"Memories marked viewed | relationship={relationship_id} count={len(updates)}")
        return len(updates)

    async def list_new_memories(self, relationship_id: str) -> List[Memory]:
        """Memories flagged new or posted today, newest first.

        Raises:
            NotFoundError: If the relationship does not exist
        """
        await self.relationships.ensure_exists(relationship_id)
        today = self.clock.today()

        memories = await self.memories.all_for_relationship(relationship_id)
        fresh = [m for m in memories if m.is_new or self.clock.day_of(m.created_at) == today]
        return sorted(fresh, key=lambda m: (m.created_at, m.id), reverse=True)
