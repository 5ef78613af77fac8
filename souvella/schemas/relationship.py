"""Relationship and membership records."""

from datetime import datetime
from typing import ClassVar, Optional

from pydantic import Field, field_validator

from souvella.schemas.base import DocumentModel, ensure_utc
from souvella.store.base import MEMBERSHIPS, RELATIONSHIPS


class Relationship(DocumentModel):
    """A pairing of users sharing one memory stream."""

    collection: ClassVar[str] = RELATIONSHIPS

    invite_code: str = Field(..., min_length=1)
    name: Optional[str] = None
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def validate_created_at(cls, v: datetime) -> datetime:
        return ensure_utc(v)


class Membership(DocumentModel):
    """A user's seat in a relationship."""

    collection: ClassVar[str] = MEMBERSHIPS

    user_id: str = Field(..., min_length=1)
    relationship_id: str = Field(..., min_length=1)
    created_at: datetime

    @staticmethod
    def document_id(user_id: str, relationship_id: str) -> str:
        return f"{user_id}:{relationship_id}"

    @field_validator("created_at")
    @classmethod
    def validate_created_at(cls, v: datetime) -> datetime:
        return ensure_utc(v)
