"""Thumbs-up records."""

import enum
from datetime import date, datetime
from typing import ClassVar, Optional

from pydantic import BaseModel, Field, field_validator

from souvella.schemas.base import DocumentModel, ensure_utc
from souvella.store.base import REACTION_KEYS, REACTIONS


def quota_key(user_id: str, day: date) -> str:
    """Key grouping every quota unit a user spent on one day."""
    return f"{user_id}:{day.isoformat()}"


class ReactionRecord(DocumentModel):
    """One consumed unit of a user's daily thumbs-up quota.

    The document id is ``{user_id}:{day}:{slot}``; a slot can only be created
    once, which is what keeps two concurrent reactions from spending the same
    unit.
    """

    collection: ClassVar[str] = REACTIONS

    user_id: str = Field(..., min_length=1)
    memory_id: str = Field(..., min_length=1)
    reaction_date: date
    slot: int = Field(..., ge=0)
    quota_key: str
    idempotency_key: Optional[str] = None
    created_at: datetime

    @staticmethod
    def document_id(user_id: str, day: date, slot: int) -> str:
        return f"{quota_key(user_id, day)}:{slot}"

    @field_validator("created_at")
    @classmethod
    def validate_created_at(cls, v: datetime) -> datetime:
        return ensure_utc(v)


class ReactionOutcome(str, enum.Enum):
    """Where the request holding an idempotency key got to."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class IdempotencyKeyRecord(DocumentModel):
    """Claim on a client idempotency key for one user and day.

    Created with create-if-absent before any quota is touched, so of several
    requests carrying the same key only one ever reaches the quota. The others
    wait for its outcome and replay it.
    """

    collection: ClassVar[str] = REACTION_KEYS

    user_id: str = Field(..., min_length=1)
    memory_id: str = Field(..., min_length=1)
    reaction_date: date
    idempotency_key: str = Field(..., min_length=1)
    outcome: ReactionOutcome = ReactionOutcome.PENDING
    slot_id: Optional[str] = None
    created_at: datetime

    @staticmethod
    def document_id(user_id: str, day: date, idempotency_key: str) -> str:
        return f"{quota_key(user_id, day)}:{idempotency_key}"

    @field_validator("created_at")
    @classmethod
    def validate_created_at(cls, v: datetime) -> datetime:
        return ensure_utc(v)


class ReactionResult(BaseModel):
    """Outcome of a thumbs-up attempt. A spent quota is a normal outcome, not an error."""

    accepted: bool
    remaining: int = Field(..., ge=0)
    message: str
    memory_id: str
    reaction_count: Optional[int] = None
