"""Validated records exchanged with the document store and the API."""

from souvella.schemas.memory import Memory, MemoryKind, UploadStatus
from souvella.schemas.reaction import (
    IdempotencyKeyRecord,
    ReactionOutcome,
    ReactionRecord,
    ReactionResult,
    quota_key,
)
from souvella.schemas.relationship import Membership, Relationship
from souvella.schemas.selection import DailySelection, SelectionState

__all__ = [
    "DailySelection",
    "IdempotencyKeyRecord",
    "Membership",
    "Memory",
    "MemoryKind",
    "ReactionOutcome",
    "ReactionRecord",
    "ReactionResult",
    "Relationship",
    "SelectionState",
    "UploadStatus",
    "quota_key",
]
