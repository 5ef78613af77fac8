"""API endpoints for the daily thumbs-up quota."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from souvella.dependencies import get_reaction_tracker
from souvella.services.reaction_service import ReactionQuotaTracker

router = APIRouter()


class RemainingReactionsResponse(BaseModel):
    """Remaining thumbs up response."""

    user_id: str
    remaining: int
    max_daily_reactions: int


@router.get(
    "/remaining/{user_id}",
    response_model=RemainingReactionsResponse,
    summary="Thumbs up left today",
)
async def get_remaining_reactions(
    user_id: str,
    tracker: ReactionQuotaTracker = Depends(get_reaction_tracker),
) -> RemainingReactionsResponse:
    return RemainingReactionsResponse(
        user_id=user_id,
        remaining=await tracker.remaining(user_id),
        max_daily_reactions=tracker.max_daily_reactions,
    )
