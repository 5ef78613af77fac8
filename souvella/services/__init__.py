"""Domain services."""

from souvella.services.freshness_service import Freshness, FreshnessService, freshness_of
from souvella.services.memory_repository import MemoryRepository
from souvella.services.reaction_service import ReactionQuotaTracker
from souvella.services.relationship_service import RelationshipService
from souvella.services.sampler import WeightedSampler, reaction_weight
from souvella.services.selection_service import DailySelectionEngine

__all__ = [
    "DailySelectionEngine",
    "Freshness",
    "FreshnessService",
    "MemoryRepository",
    "ReactionQuotaTracker",
    "RelationshipService",
    "WeightedSampler",
    "freshness_of",
    "reaction_weight",
]
