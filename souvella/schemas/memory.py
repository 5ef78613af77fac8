"""Memory records."""

import enum
from datetime import datetime
from typing import ClassVar, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from souvella.schemas.base import DocumentModel, ensure_utc
from souvella.store.base import MEMORIES


class MemoryKind(str, enum.Enum):
    """What a memory holds."""

    TEXT = "text"
    IMAGE = "image"
    AUDIO = "audio"


class Memory(DocumentModel):
    """A single entry posted to a relationship.

    ``body`` is the text itself for text memories and the caption otherwise.
    ``media_ref`` points at the uploaded binary and is present exactly when the
    memory is an image or audio memory.
    """

    collection: ClassVar[str] = MEMORIES

    relationship_id: str = Field(..., min_length=1)
    author_id: str = Field(..., min_length=1)
    kind: MemoryKind
    body: str = ""
    media_ref: Optional[str] = None
    created_at: datetime
    reaction_count: int = Field(default=0, ge=0)
    is_new: bool = True

    @field_validator("created_at")
    @classmethod
    def validate_created_at(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @model_validator(mode="after")
    def validate_media_ref(self) -> "Memory":
        """A memory is media-valid only when it has something to play or show."""
        if self.kind == MemoryKind.TEXT and self.media_ref:
            raise ValueError("text memories cannot carry a media_ref")
        if self.kind != MemoryKind.TEXT and not self.media_ref:
            raise ValueError(f"{self.kind.value} memories require a media_ref")
        return self


class UploadStatus(BaseModel):
    """Whether a user already posted to a relationship today."""

    has_uploaded: bool
    uploads_today: int = 0
    todays_memory: Optional[Memory] = None
