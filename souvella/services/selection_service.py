"""Daily selection engine: "Today's Memory Gems" per relationship."""

from datetime import date
from typing import List, Optional

from loguru import logger

from souvella.exceptions import InconsistentReferenceError, MalformedDocumentError
from souvella.schemas.memory import Memory
from souvella.schemas.selection import DailySelection, SelectionState
from souvella.services.memory_repository import MemoryRepository
from souvella.services.relationship_service import RelationshipService
from souvella.services.sampler import WeightedSampler
from souvella.store.base import DAILY_SELECTIONS, DocumentStore
from souvella.utils.timezone import Clock


class DailySelectionEngine:
    """Computes, caches and rerolls the daily selection.

    The selection for a relationship and day is either ABSENT or COMPUTED.
    ``_compute`` is the only way from one to the other (and from COMPUTED to a
    fresh COMPUTED on reroll). It overwrites the stored document, so two
    concurrent first reads or rerolls settle on whichever write landed last.
    Callers always get the stored id list resolved again, never the in-memory
    draw.
    """

    def __init__(
        self,
        store: DocumentStore,
        memories: MemoryRepository,
        relationships: RelationshipService,
        sampler: WeightedSampler,
        clock: Clock,
        default_count: int = 4,
    ):
        """Initialize daily selection engine.

        Args:
            store: Document store
            memories: Memory repository, for candidates and id resolution
            relationships: Used to check the relationship exists
            sampler: Weighted sampler
            clock: Calendar clock deciding what "today" is
            default_count: Selection size when the caller gives none
        """
        self.store = store
        self.memories = memories
        self.relationships = relationships
        self.sampler = sampler
        self.clock = clock
        self.default_count = default_count

    async def _load(self, relationship_id: str, day: date) -> Optional[DailySelection]:
        document = await self.store.get_document(
            DAILY_SELECTIONS, DailySelection.document_id(relationship_id, day)
        )
        if document is None:
            return None
        try:
            return DailySelection.from_document(document)
        except MalformedDocumentError as e:
            # A cached selection is derived state; recompute rather than fail
            logger.error(f"Discarding unreadable daily selection | {e}")
            return None

    async def state(self, relationship_id: str, day: Optional[date] = None) -> SelectionState:
        """Whether a selection has been computed for the relationship and day."""
        selection = await self._load(relationship_id, day or self.clock.today())
        return SelectionState.ABSENT if selection is None else SelectionState.COMPUTED

    async def get_daily_selection(
        self,
        relationship_id: str,
        day: Optional[date] = None,
        count: Optional[int] = None,
    ) -> List[Memory]:
        """Return the day's selection, computing and storing it on first read.

        Args:
            relationship_id: Relationship
            day: Calendar day, defaults to today
            count: Size used if the selection has to be computed

        Returns:
            Selected memories in stored order

        Raises:
            NotFoundError: If the relationship does not exist
        """
        await self.relationships.ensure_exists(relationship_id)
        day = day or self.clock.today()

        selection = await self._load(relationship_id, day)
        if selection is None:
            return await self._compute(relationship_id, day, self._count(count))

        logger.debug(
            f"Serving cached daily selection | relationship={relationship_id} date={day} "
            f"size={len(selection.memory_ids)}"
        )
        return await self._resolve(selection)

    async def reroll(self, relationship_id: str, count: Optional[int] = None) -> List[Memory]:
        """Recompute today's selection and overwrite the stored one.

        Raises:
            NotFoundError: If the relationship does not exist
        """
        await self.relationships.ensure_exists(relationship_id)
        day = self.clock.today()
        logger.info(f"Rerolling daily selection | relationship={relationship_id} date={day}")
        return await self._compute(relationship_id, day, self._count(count))

    def _count(self, count: Optional[int]) -> int:
        return self.default_count if count is None else count

    async def _compute(self, relationship_id: str, day: date, count: int) -> List[Memory]:
        """Transition to COMPUTED: draw, overwrite, then resolve what is stored."""
        candidates = await self.memories.all_for_relationship(relationship_id)
        drawn = self.sampler.sample(candidates, count)

        selection = DailySelection(
            id=DailySelection.document_id(relationship_id, day),
            relationship_id=relationship_id,
            selection_date=day,
            memory_ids=[memory.id for memory in drawn],
            computed_at=self.clock.now(),
        )
        await self.store.set_document(DAILY_SELECTIONS, selection.id, selection.to_document())

        logger.info(
            f"Daily selection computed | relationship={relationship_id} date={day} "
            f"candidates={len(candidates)} selected={len(drawn)}"
        )

        stored = await self._load(relationship_id, day)
        return await self._resolve(stored or selection)

    async def _resolve(self, selection: DailySelection) -> List[Memory]:
        """Turn stored ids into memories, skipping the ones that no longer resolve."""
        resolved: List[Memory] = []
        for memory_id in selection.memory_ids:
            memory = await self.memories.find_memory(memory_id)
            if memory is None or memory.relationship_id != selection.relationship_id:
                logger.warning(str(InconsistentReferenceError(selection.relationship_id, memory_id)))
                continue
            resolved.append(memory)
        return resolved
