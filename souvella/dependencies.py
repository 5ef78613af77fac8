"""FastAPI dependencies wiring the services for one request."""

from fastapi import Depends, Request

from souvella.services.freshness_service import FreshnessService
from souvella.services.memory_repository import MemoryRepository
from souvella.services.reaction_service import ReactionQuotaTracker
from souvella.services.relationship_service import RelationshipService
from souvella.services.sampler import WeightedSampler
from souvella.services.selection_service import DailySelectionEngine
from souvella.settings import settings
from souvella.store.base import DocumentStore
from souvella.utils.timezone import Clock


def get_store(request: Request) -> DocumentStore:
    """Document store built at startup."""
    return request.app.state.store


def get_sampler(request: Request) -> WeightedSampler:
    """Sampler built at startup, so a configured seed spans requests."""
    return request.app.state.sampler


def get_clock() -> Clock:
    return Clock(settings.day_timezone)


def get_relationship_service(
    store: DocumentStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
) -> RelationshipService:
    return RelationshipService(store, clock)


def get_memory_repository(
    store: DocumentStore = Depends(get_store),
    relationships: RelationshipService = Depends(get_relationship_service),
    clock: Clock = Depends(get_clock),
) -> MemoryRepository:
    return MemoryRepository(store, relationships, clock, upload_limit=settings.daily_upload_limit)


def get_selection_engine(
    store: DocumentStore = Depends(get_store),
    memories: MemoryRepository = Depends(get_memory_repository),
    relationships: RelationshipService = Depends(get_relationship_service),
    sampler: WeightedSampler = Depends(get_sampler),
    clock: Clock = Depends(get_clock),
) -> DailySelectionEngine:
    return DailySelectionEngine(
        store,
        memories,
        relationships,
        sampler,
        clock,
        default_count=settings.daily_selection_count,
    )


def get_reaction_tracker(
    store: DocumentStore = Depends(get_store),
    memories: MemoryRepository = Depends(get_memory_repository),
    clock: Clock = Depends(get_clock),
) -> ReactionQuotaTracker:
    return ReactionQuotaTracker(store, memories, clock, max_daily_reactions=settings.max_daily_reactions)


def get_freshness_service(
    store: DocumentStore = Depends(get_store),
    memories: MemoryRepository = Depends(get_memory_repository),
    relationships: RelationshipService = Depends(get_relationship_service),
    clock: Clock = Depends(get_clock),
) -> FreshnessService:
    return FreshnessService(store, memories, relationships, clock)
