"""Daily selection records."""

import enum
from datetime import date, datetime
from typing import ClassVar, List

from pydantic import Field, field_validator

from souvella.schemas.base import DocumentModel, ensure_utc
from souvella.store.base import DAILY_SELECTIONS


class SelectionState(str, enum.Enum):
    """Lifecycle of the selection for one relationship and day."""

    ABSENT = "absent"
    COMPUTED = "computed"


class DailySelection(DocumentModel):
    """Cached "today's gems" for a relationship.

    Keyed by relationship and day so at most one document exists per pair; a
    reroll overwrites it wholesale.
    """

    collection: ClassVar[str] = DAILY_SELECTIONS

    relationship_id: str = Field(..., min_length=1)
    selection_date: date
    memory_ids: List[str] = Field(default_factory=list)
    computed_at: datetime

    @staticmethod
    def document_id(relationship_id: str, day: date) -> str:
        return f"{relationship_id}:{day.isoformat()}"

    @field_validator("memory_ids")
    @classmethod
    def validate_distinct(cls, v: List[str]) -> List[str]:
        if len(set(v)) != len(v):
            raise ValueError("memory_ids must not contain duplicates")
        return v

    @field_validator("computed_at")
    @classmethod
    def validate_computed_at(cls, v: datetime) -> datetime:
        return ensure_utc(v)
