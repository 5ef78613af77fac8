"""API endpoints for "Today's Memory Gems"."""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from souvella.dependencies import get_selection_engine
from souvella.routes.memories import MemoryResponse
from souvella.services.selection_service import DailySelectionEngine

router = APIRouter()


# Request/Response models

class RerollRequest(BaseModel):
    """Reroll request."""

    count: Optional[int] = Field(None, ge=0, description="Selection size, defaults to the configured count")


class DailySelectionResponse(BaseModel):
    """Daily selection response."""

    relationship_id: str
    selection_date: date
    memories: List[MemoryResponse]


@router.get(
    "/{relationship_id}",
    response_model=DailySelectionResponse,
    summary="Today's memory gems",
)
async def get_daily_selection(
    relationship_id: str,
    count: Optional[int] = Query(None, ge=0, description="Selection size if it has to be computed"),
    engine: DailySelectionEngine = Depends(get_selection_engine),
) -> DailySelectionResponse:
    """Today's selection, computed on first read and cached for the day."""
    today = engine.clock.today()
    memories = await engine.get_daily_selection(relationship_id, day=today, count=count)
    return DailySelectionResponse(
        relationship_id=relationship_id,
        selection_date=today,
        memories=[MemoryResponse.from_record(m) for m in memories],
    )


@router.post(
    "/{relationship_id}/reroll",
    response_model=DailySelectionResponse,
    summary="Reroll today's memory gems",
)
async def reroll_daily_selection(
    relationship_id: str,
    request: Optional[RerollRequest] = None,
    engine: DailySelectionEngine = Depends(get_selection_engine),
) -> DailySelectionResponse:
    """Draw a fresh selection and replace today's."""
    count = request.count if request else None
    memories = await engine.reroll(relationship_id, count=count)
    return DailySelectionResponse(
        relationship_id=relationship_id,
        selection_date=engine.clock.today(),
        memories=[MemoryResponse.from_record(m) for m in memories],
    )
