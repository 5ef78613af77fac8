"""Reaction quota tracker: rate-limited thumbs up."""

import asyncio
from datetime import date
from typing import Optional, Tuple

from loguru import logger

from souvella.exceptions import (
    DocumentExistsError,
    NotFoundError,
    SouvellaBaseException,
    StoreUnavailableError,
    ValidationError,
)
from souvella.schemas.reaction import (
    IdempotencyKeyRecord,
    ReactionOutcome,
    ReactionRecord,
    ReactionResult,
    quota_key,
)
from souvella.services.memory_repository import MemoryRepository
from souvella.store.base import MEMORIES, REACTION_KEYS, REACTIONS, DocumentStore
from souvella.utils.timezone import Clock

QUOTA_EXHAUSTED_MESSAGE = "You've used all your thumbs up for today!"

# How long a request waits for another request holding the same idempotency key
KEY_WAIT_ATTEMPTS = 40
KEY_WAIT_INTERVAL = 0.05


def accepted_message(remaining: int) -> str:
    return f"Thumbs up added! You have {remaining} left today."


class ReactionQuotaTracker:
    """Gates thumbs up to ``max_daily_reactions`` per user per calendar day.

    Every accepted reaction claims one slot document ``{user}:{day}:{slot}``
    with create-if-absent. Slot ids are finite and unique, so two requests
    racing for the last unit cannot both claim it. The memory's counter is
    incremented right after the claim; if that fails the slot is released and
    the error propagates. Should the release fail as well, the unit stays spent
    for the rest of the day and the failure is logged at ERROR.

    A client idempotency key is claimed the same way, before the quota is
    touched, so concurrent retries of one request spend at most one unit.
    """

    def __init__(
        self,
        store: DocumentStore,
        memories: MemoryRepository,
        clock: Clock,
        max_daily_reactions: int = 2,
    ):
        """Initialize reaction quota tracker.

        Args:
            store: Document store
            memories: Memory repository, to check the target exists
            clock: Calendar clock deciding what "today" is
            max_daily_reactions: Thumbs up each user gets per day
        """
        self.store = store
        self.memories = memories
        self.clock = clock
        self.max_daily_reactions = max_daily_reactions

    async def used_count(self, user_id: str, day: Optional[date] = None) -> int:
        """Quota units a user spent on ``day`` (default today).

        Every slot document counts, readable or not.
        """
        day = day or self.clock.today()
        return len(await self.store.query_by_field(REACTIONS, "quota_key", quota_key(user_id, day)))

    async def remaining(self, user_id: str) -> int:
        """Thumbs up the user has left today, never below zero."""
        return max(0, self.max_daily_reactions - await self.used_count(user_id))

    async def react(
        self,
        memory_id: str,
        user_id: str,
        idempotency_key: Optional[str] = None,
    ) -> ReactionResult:
        """Give a memory a thumbs up, if the user has one left today.

        Args:
            memory_id: Target memory
            user_id: Reacting user
            idempotency_key: Client key; a retry carrying the key of an
                earlier request returns that request's outcome again

        Returns:
            The outcome; a spent quota is ``accepted=False``, not an error

        Raises:
            NotFoundError: If the memory does not exist
            ValidationError: If the idempotency key was used for another memory
            StoreUnavailableError: If the store fails, or a request holding the
                same key did not finish in time
        """
        today = self.clock.today()
        if not idempotency_key:
            result, _ = await self._react(memory_id, user_id, today)
            return result

        held = await self._claim_key(memory_id, user_id, today, idempotency_key)
        if held is not None:
            return await self._replay(held, memory_id)

        key_id = IdempotencyKeyRecord.document_id(user_id, today, idempotency_key)
        try:
            result, slot_id = await self._react(memory_id, user_id, today, idempotency_key)
        except SouvellaBaseException:
            # Free the key so a retry evaluates the request again
            await self._release(REACTION_KEYS, key_id)
            raise

        await self._settle_key(key_id, result, slot_id)
        return result

    async def _react(
        self,
        memory_id: str,
        user_id: str,
        day: date,
        idempotency_key: Optional[str] = None,
    ) -> Tuple[ReactionResult, Optional[str]]:
        """Spend one unit on ``memory_id``; returns the result and the claimed slot."""
        if await self.used_count(user_id, day) >= self.max_daily_reactions:
            logger.info(f"Reaction rejected, quota spent | user={user_id} memory={memory_id}")
            return self._rejected(memory_id), None

        await self.memories.get_memory(memory_id)

        slot_id = await self._claim_slot(user_id, memory_id, day, idempotency_key)
        if slot_id is None:
            logger.info(f"Reaction rejected, lost last slot | user={user_id} memory={memory_id}")
            return self._rejected(memory_id), None

        try:
            reaction_count = await self.store.increment_field(MEMORIES, memory_id, "reaction_count")
        except (StoreUnavailableError, NotFoundError):
            logger.error(f"Reaction increment failed, releasing slot | user={user_id} slot={slot_id}")
            await self._release(REACTIONS, slot_id)
            raise

        remaining = await self.remaining(user_id)
        logger.info(
            f"Reaction accepted | user={user_id} memory={memory_id} "
            f"reaction_count={reaction_count} remaining={remaining}"
        )
        result = ReactionResult(
            accepted=True,
            remaining=remaining,
            message=accepted_message(remaining),
            memory_id=memory_id,
            reaction_count=reaction_count,
        )
        return result, slot_id

    @staticmethod
    def _rejected(memory_id: str) -> ReactionResult:
        return ReactionResult(
            accepted=False,
            remaining=0,
            message=QUOTA_EXHAUSTED_MESSAGE,
            memory_id=memory_id,
        )

    async def _claim_slot(
        self,
        user_id: str,
        memory_id: str,
        day: date,
        idempotency_key: Optional[str],
    ) -> Optional[str]:
        """Create the first free slot document, or return None when all are taken."""
        for slot in range(self.max_daily_reactions):
            record = ReactionRecord(
                id=ReactionRecord.document_id(user_id, day, slot),
                user_id=user_id,
                memory_id=memory_id,
                reaction_date=day,
                slot=slot,
                quota_key=quota_key(user_id, day),
                idempotency_key=idempotency_key,
                created_at=self.clock.now(),
            )
            try:
                await self.store.create_document(REACTIONS, record.to_document(), document_id=record.id)
            except DocumentExistsError:
                continue
            return record.id
        return None

    async def _claim_key(
        self,
        memory_id: str,
        user_id: str,
        day: date,
        idempotency_key: str,
    ) -> Optional[IdempotencyKeyRecord]:
        """Claim the idempotency key.

        Returns None when this request now holds the key, otherwise the record
        of the request that got there first, once it has an outcome.
        """
        record = IdempotencyKeyRecord(
            id=IdempotencyKeyRecord.document_id(user_id, day, idempotency_key),
            user_id=user_id,
            memory_id=memory_id,
            reaction_date=day,
            idempotency_key=idempotency_key,
            created_at=self.clock.now(),
        )

        for _ in range(KEY_WAIT_ATTEMPTS):
            try:
                await self.store.create_document(REACTION_KEYS, record.to_document(), document_id=record.id)
                return None
            except DocumentExistsError:
                document = await self.store.get_document(REACTION_KEYS, record.id)

            if document is None:
                # Released by a failed request, take it over
                continue

            held = IdempotencyKeyRecord.from_document(document)
            if held.outcome != ReactionOutcome.PENDING or held.memory_id != memory_id:
                return held
            await asyncio.sleep(KEY_WAIT_INTERVAL)

        logger.warning(f"Idempotency key still pending | user={user_id} key={idempotency_key}")
        raise StoreUnavailableError(f"Reaction with idempotency key {idempotency_key} is still in progress")

    async def _replay(self, held: IdempotencyKeyRecord, memory_id: str) -> ReactionResult:
        """Answer a retry with the outcome of the request that holds the key."""
        if held.memory_id != memory_id:
            logger.warning(
                f"Idempotency key reused for another memory | user={held.user_id} "
                f"key={held.idempotency_key} original={held.memory_id} memory={memory_id}"
            )
            raise ValidationError(
                f"Idempotency key {held.idempotency_key} was already used for another memory"
            )

        remaining = await self.remaining(held.user_id)
        logger.info(
            f"Replayed reaction | user={held.user_id} memory={memory_id} "
            f"key={held.idempotency_key} outcome={held.outcome.value}"
        )
        if held.outcome == ReactionOutcome.REJECTED:
            return ReactionResult(
                accepted=False,
                remaining=remaining,
                message=QUOTA_EXHAUSTED_MESSAGE,
                memory_id=memory_id,
            )

        memory = await self.memories.get_memory(memory_id)
        return ReactionResult(
            accepted=True,
            remaining=remaining,
            message=accepted_message(remaining),
            memory_id=memory_id,
            reaction_count=memory.reaction_count,
        )

    async def _settle_key(self, key_id: str, result: ReactionResult, slot_id: Optional[str]) -> None:
        outcome = ReactionOutcome.ACCEPTED if result.accepted else ReactionOutcome.REJECTED
        try:
            await self.store.update_document(
                REACTION_KEYS, key_id, {"outcome": outcome.value, "slot_id": slot_id}
            )
        except (StoreUnavailableError, NotFoundError) as e:
            logger.error(f"Could not record reaction outcome | key={key_id} error={e}")

    async def _release(self, collection: str, document_id: str) -> None:
        """Delete a claim; a failure is logged and the caller's error propagates."""
        try:
            await self.store.delete_document(collection, document_id)
        except StoreUnavailableError as e:
            logger.error(
                f"Could not release claim, it stays spent for today | "
                f"document={collection}/{document_id} error={e}"
            )
