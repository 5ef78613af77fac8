"""API endpoints for memories, thumbs up and the "new" badge."""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, Query, status
from pydantic import BaseModel, Field

from souvella.dependencies import (
    get_freshness_service,
    get_memory_repository,
    get_reaction_tracker,
)
from souvella.schemas.memory import Memory, MemoryKind
from souvella.schemas.reaction import ReactionResult
from souvella.services.freshness_service import Freshness, FreshnessService, freshness_of
from souvella.services.memory_repository import MemoryRepository
from souvella.services.reaction_service import ReactionQuotaTracker

router = APIRouter()


# Request/Response models

class MemoryCreate(BaseModel):
    """Create memory request."""

    relationship_id: str = Field(..., min_length=1)
    author_id: str = Field(..., min_length=1)
    kind: MemoryKind = Field(default=MemoryKind.TEXT)
    body: str = Field(default="", description="Text, or caption for photo and audio memories")
    media_ref: Optional[str] = Field(None, description="URI of the uploaded photo or audio")


class ReactionCreate(BaseModel):
    """Thumbs up request."""

    user_id: str = Field(..., min_length=1)


class MemoryResponse(BaseModel):
    """Memory response."""

    id: str
    relationship_id: str
    author_id: str
    kind: MemoryKind
    body: str
    media_ref: Optional[str]
    created_at: datetime
    reaction_count: int
    is_new: bool
    freshness: Freshness

    @classmethod
    def from_record(cls, memory: Memory) -> "MemoryResponse":
        return cls(
            id=memory.id,
            relationship_id=memory.relationship_id,
            author_id=memory.author_id,
            kind=memory.kind,
            body=memory.body,
            media_ref=memory.media_ref,
            created_at=memory.created_at,
            reaction_count=memory.reaction_count,
            is_new=memory.is_new,
            freshness=freshness_of(memory),
        )


class MarkViewedResponse(BaseModel):
    """Mark-as-viewed response."""

    relationship_id: str
    marked: int


class UploadStatusResponse(BaseModel):
    """Today's upload status response."""

    has_uploaded: bool
    uploads_today: int
    todays_memory: Optional[MemoryResponse]


@router.post(
    "",
    response_model=MemoryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Post a memory",
)
async def create_memory(
    request: MemoryCreate,
    repository: MemoryRepository = Depends(get_memory_repository),
) -> MemoryResponse:
    """Post a memory to a relationship.

    Raises:
        NotFoundError: If the relationship does not exist
        ValidationError: If a text memory carries media
        DailyUploadLimitError: If the author already posted today's memories
    """
    memory = await repository.create_memory(
        relationship_id=request.relationship_id,
        author_id=request.author_id,
        kind=request.kind,
        body=request.body,
        media_ref=request.media_ref,
    )
    return MemoryResponse.from_record(memory)


@router.get("/upload-status", response_model=UploadStatusResponse, summary="Today's upload status")
async def get_upload_status(
    author_id: str = Query(..., min_length=1),
    relationship_id: str = Query(..., min_length=1),
    repository: MemoryRepository = Depends(get_memory_repository),
) -> UploadStatusResponse:
    upload_status = await repository.daily_upload_status(author_id, relationship_id)
    return UploadStatusResponse(
        has_uploaded=upload_status.has_uploaded,
        uploads_today=upload_status.uploads_today,
        todays_memory=(
            MemoryResponse.from_record(upload_status.todays_memory)
            if upload_status.todays_memory
            else None
        ),
    )


@router.get(
    "/relationship/{relationship_id}",
    response_model=List[MemoryResponse],
    summary="Relationship timeline",
)
async def list_memories(
    relationship_id: str,
    repository: MemoryRepository = Depends(get_memory_repository),
) -> List[MemoryResponse]:
    """All memories of a relationship, newest first."""
    memories = await repository.list_for_relationship(relationship_id)
    return [MemoryResponse.from_record(m) for m in memories]


@router.get(
    "/relationship/{relationship_id}/new",
    response_model=List[MemoryResponse],
    summary="New memories",
)
async def list_new_memories(
    relationship_id: str,
    freshness: FreshnessService = Depends(get_freshness_service),
) -> List[MemoryResponse]:
    """Memories still flagged new or posted today."""
    memories = await freshness.list_new_memories(relationship_id)
    return [MemoryResponse.from_record(m) for m in memories]


@router.post(
    "/relationship/{relationship_id}/viewed",
    response_model=MarkViewedResponse,
    summary="Mark memories as viewed",
)
async def mark_memories_viewed(
    relationship_id: str,
    freshness: FreshnessService = Depends(get_freshness_service),
) -> MarkViewedResponse:
    """Clear the new badge on memories posted before today."""
    marked = await freshness.mark_relationship_viewed(relationship_id)
    return MarkViewedResponse(relationship_id=relationship_id, marked=marked)


@router.post("/{memory_id}/react", response_model=ReactionResult, summary="Give a thumbs up")
async def react_to_memory(
    memory_id: str,
    request: ReactionCreate,
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key"),
    tracker: ReactionQuotaTracker = Depends(get_reaction_tracker),
) -> ReactionResult:
    """Give a memory a thumbs up.

    A spent daily quota is answered with ``accepted=false`` and status 200.
    Retrying with the same ``Idempotency-Key`` replays the first outcome; a key
    already used for another memory is a 400.
    """
    return await tracker.react(memory_id, request.user_id, idempotency_key=idempotency_key)
