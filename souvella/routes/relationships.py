"""API endpoints for relationships and invite-code pairing."""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from souvella.dependencies import get_relationship_service
from souvella.schemas.relationship import Relationship
from souvella.services.relationship_service import MAX_NAME_LENGTH, RelationshipService

router = APIRouter()


# Request/Response models

class RelationshipCreate(BaseModel):
    """Create relationship request."""

    user_id: str = Field(..., min_length=1, description="Creating user")
    name: Optional[str] = Field(None, max_length=MAX_NAME_LENGTH, description="Display name")


class RelationshipJoin(BaseModel):
    """Join relationship request."""

    user_id: str = Field(..., min_length=1, description="Joining user")
    invite_code: str = Field(..., min_length=1, description="Code shared by the partner")


class RelationshipRename(BaseModel):
    """Rename relationship request."""

    name: str = Field(..., description="New display name")


class RelationshipResponse(BaseModel):
    """Relationship response."""

    id: str
    invite_code: str
    name: Optional[str]
    created_at: datetime

    @classmethod
    def from_record(cls, relationship: Relationship) -> "RelationshipResponse":
        return cls(
            id=relationship.id,
            invite_code=relationship.invite_code,
            name=relationship.name,
            created_at=relationship.created_at,
        )


@router.post(
    "",
    response_model=RelationshipResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create relationship",
)
async def create_relationship(
    request: RelationshipCreate,
    service: RelationshipService = Depends(get_relationship_service),
) -> RelationshipResponse:
    """Create a relationship and return its invite code."""
    relationship = await service.create_relationship(request.user_id, name=request.name)
    return RelationshipResponse.from_record(relationship)


@router.post("/join", response_model=RelationshipResponse, summary="Join relationship by invite code")
async def join_relationship(
    request: RelationshipJoin,
    service: RelationshipService = Depends(get_relationship_service),
) -> RelationshipResponse:
    """Join the relationship an invite code belongs to."""
    relationship = await service.join_relationship(request.invite_code, request.user_id)
    return RelationshipResponse.from_record(relationship)


@router.get(
    "/user/{user_id}",
    response_model=List[RelationshipResponse],
    summary="List a user's relationships",
)
async def list_user_relationships(
    user_id: str,
    service: RelationshipService = Depends(get_relationship_service),
) -> List[RelationshipResponse]:
    """Relationships of a user, newest first."""
    relationships = await service.list_for_user(user_id)
    return [RelationshipResponse.from_record(r) for r in relationships]


@router.get("/{relationship_id}", response_model=RelationshipResponse, summary="Get relationship")
async def get_relationship(
    relationship_id: str,
    service: RelationshipService = Depends(get_relationship_service),
) -> RelationshipResponse:
    relationship = await service.get_relationship(relationship_id)
    return RelationshipResponse.from_record(relationship)


@router.patch("/{relationship_id}/name", response_model=RelationshipResponse, summary="Rename relationship")
async def rename_relationship(
    relationship_id: str,
    request: RelationshipRename,
    service: RelationshipService = Depends(get_relationship_service),
) -> RelationshipResponse:
    relationship = await service.rename(relationship_id, request.name)
    return RelationshipResponse.from_record(relationship)
