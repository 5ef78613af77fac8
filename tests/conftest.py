"""Test configuration and fixtures."""

import asyncio
import os

# Ensure tests run with the lightweight configuration before importing application modules.
os.environ.setdefault("SOUVELLA_ENVIRONMENT", "testing")
os.environ.setdefault("SOUVELLA_STORE_BACKEND", "memory")
os.environ.setdefault("SOUVELLA_LOG_LEVEL", "WARNING")

import random
from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest
from fastapi.testclient import TestClient

from souvella.application import get_app
from souvella.dependencies import get_clock, get_sampler, get_store
from souvella.schemas.memory import Memory, MemoryKind
from souvella.services.freshness_service import FreshnessService
from souvella.services.memory_repository import MemoryRepository
from souvella.services.reaction_service import ReactionQuotaTracker
from souvella.services.relationship_service import RelationshipService
from souvella.services.sampler import WeightedSampler
from souvella.services.selection_service import DailySelectionEngine
from souvella.store.base import MEMORIES
from souvella.store.memory import InMemoryDocumentStore
from souvella.utils.timezone import Clock

NOON = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


class FrozenClock(Clock):
    """Clock whose current instant only moves when a test moves it."""

    def __init__(self, moment: datetime = NOON, tz_name: str = "UTC"):
        self.moment = moment
        super().__init__(tz_name, now_fn=lambda: self.moment)

    def advance(self, **kwargs) -> None:
        self.moment = self.moment + timedelta(**kwargs)

    def set(self, moment: datetime) -> None:
        self.moment = moment


@pytest.fixture
def clock() -> FrozenClock:
    """Clock frozen at noon UTC on 2024-06-15."""
    return FrozenClock()


class YieldingDocumentStore(InMemoryDocumentStore):
    """In-memory store whose reads hand control back to the event loop.

    Concurrent callers then interleave between their reads and writes the way
    they do against a remote backend.
    """

    async def query_by_field(self, collection, field, value):
        await asyncio.sleep(0)
        return await super().query_by_field(collection, field, value)

    async def get_document(self, collection, document_id):
        await asyncio.sleep(0)
        return await super().get_document(collection, document_id)


@pytest.fixture
def store() -> InMemoryDocumentStore:
    """Empty in-memory document store."""
    return InMemoryDocumentStore()


@pytest.fixture
def yielding_store() -> YieldingDocumentStore:
    """Empty in-memory store that suspends on every read."""
    return YieldingDocumentStore()


@pytest.fixture
def sampler() -> WeightedSampler:
    """Seeded sampler so statistical tests are reproducible."""
    return WeightedSampler(random.Random(1234))


@pytest.fixture
def relationships(store, clock) -> RelationshipService:
    return RelationshipService(store, clock)


@pytest.fixture
def memories(store, relationships, clock) -> MemoryRepository:
    return MemoryRepository(store, relationships, clock)


@pytest.fixture
def engine(store, memories, relationships, sampler, clock) -> DailySelectionEngine:
    return DailySelectionEngine(store, memories, relationships, sampler, clock, default_count=4)


@pytest.fixture
def tracker(store, memories, clock) -> ReactionQuotaTracker:
    return ReactionQuotaTracker(store, memories, clock, max_daily_reactions=2)


@pytest.fixture
def freshness(store, memories, relationships, clock) -> FreshnessService:
    return FreshnessService(store, memories, relationships, clock)


@pytest.fixture
async def relationship(relationships):
    """A relationship created by alice."""
    return await relationships.create_relationship("alice", name="Alice & Bob")


@pytest.fixture
def make_memory(store, memories, clock, relationship):
    """Factory posting a text memory, optionally backdated and pre-reacted."""

    async def _make(
        body: str = "a memory",
        reaction_count: int = 0,
        created_at: Optional[datetime] = None,
        relationship_id: Optional[str] = None,
        author_id: str = "alice",
    ) -> Memory:
        original = clock.moment
        if created_at is not None:
            clock.set(created_at)
        try:
            memory = await memories.create_memory(
                relationship_id or relationship.id, author_id, MemoryKind.TEXT, body=body
            )
        finally:
            clock.set(original)
        if reaction_count:
            await store.update_document(MEMORIES, memory.id, {"reaction_count": reaction_count})
            memory = await memories.get_memory(memory.id)
        return memory

    return _make


@pytest.fixture
def client(store, clock):
    """Create test client backed by the in-memory store and the frozen clock."""
    app = get_app()
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_sampler] = lambda: WeightedSampler(random.Random(99))

    with TestClient(app) as test_client:
        yield test_client
