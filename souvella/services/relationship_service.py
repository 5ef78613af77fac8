"""Relationships: creation, invite-code pairing and naming."""

import secrets
import string
import uuid
from typing import List, Optional

from loguru import logger

from souvella.exceptions import DocumentExistsError, NotFoundError, ValidationError
from souvella.schemas.relationship import Membership, Relationship
from souvella.store.base import MEMBERSHIPS, RELATIONSHIPS, DocumentStore
from souvella.utils.timezone import Clock

INVITE_CODE_ALPHABET = string.ascii_letters + string.digits
INVITE_CODE_LENGTH = 10
MAX_NAME_LENGTH = 100


def generate_invite_code(length: int = INVITE_CODE_LENGTH) -> str:
    """Random alphanumeric code a partner types in to join."""
    return "".join(secrets.choice(INVITE_CODE_ALPHABET) for _ in range(length))


class RelationshipService:
    """Relationship CRUD and pairing."""

    def __init__(self, store: DocumentStore, clock: Clock):
        """Initialize relationship service.

        Args:
            store: Document store
            clock: Calendar clock used for timestamps
        """
        self.store = store
        self.clock = clock

    async def create_relationship(self, user_id: str, name: Optional[str] = None) -> Relationship:
        """Create a relationship and seat its creator in it.

        Args:
            user_id: Creating user
            name: Optional display name

        Returns:
            The new relationship, with its invite code
        """
        relationship_id = str(uuid.uuid4())
        relationship = Relationship(
            id=relationship_id,
            invite_code=generate_invite_code(),
            name=self._clean_name(name) if name else None,
            created_at=self.clock.now(),
        )
        await self.store.create_document(RELATIONSHIPS, relationship.to_document(), document_id=relationship_id)
        await self._add_member(user_id, relationship_id)

        logger.info(f"Created relationship | relationship={relationship_id} user={user_id}")
        return relationship

    async def join_relationship(self, invite_code: str, user_id: str) -> Relationship:
        """Join the relationship an invite code belongs to. Joining twice is a no-op.

        Raises:
            NotFoundError: If no relationship uses the code
        """
        code = invite_code.strip()
        documents = await self.store.query_by_field(RELATIONSHIPS, "invite_code", code)
        if not documents:
            raise NotFoundError("Invite code", code)

        relationship = Relationship.from_document(documents[0])
        await self._add_member(user_id, relationship.id)

        logger.info(f"User joined relationship | relationship={relationship.id} user={user_id}")
        return relationship

    async def get_relationship(self, relationship_id: str) -> Relationship:
        """Get a relationship.

        Raises:
            NotFoundError: If it does not exist
        """
        document = await self.store.get_document(RELATIONSHIPS, relationship_id)
        if document is None:
            raise NotFoundError("Relationship", relationship_id)
        return Relationship.from_document(document)

    async def ensure_exists(self, relationship_id: str) -> None:
        """Raise ``NotFoundError`` for unknown relationships."""
        await self.get_relationship(relationship_id)

    async def list_for_user(self, user_id: str) -> List[Relationship]:
        """Relationships a user belongs to, newest first (the first one is the primary)."""
        memberships = await self.store.query_by_field(MEMBERSHIPS, "user_id", user_id)

        relationships: List[Relationship] = []
        for membership in memberships:
            relationship_id = membership.get("relationship_id", "")
            document = await self.store.get_document(RELATIONSHIPS, relationship_id)
            if document is None:
                logger.warning(
                    f"Membership points at missing relationship | user={user_id} relationship={relationship_id}"
                )
                continue
            relationships.append(Relationship.from_document(document))

        return sorted(relationships, key=lambda r: r.created_at, reverse=True)

    async def rename(self, relationship_id: str, name: str) -> Relationship:
        """Rename a relationship.

        Raises:
            NotFoundError: If it does not exist
            ValidationError: If the name is blank or too long
        """
        clean = self._clean_name(name)
        await self.ensure_exists(relationship_id)
        await self.store.update_document(RELATIONSHIPS, relationship_id, {"name": clean})
        return await self.get_relationship(relationship_id)

    async def _add_member(self, user_id: str, relationship_id: str) -> None:
        membership = Membership(
            id=Membership.document_id(user_id, relationship_id),
            user_id=user_id,
            relationship_id=relationship_id,
            created_at=self.clock.now(),
        )
        try:
            await self.store.create_document(MEMBERSHIPS, membership.to_document(), document_id=membership.id)
        except DocumentExistsError:
            logger.debug(f"User already in relationship | relationship={relationship_id} user={user_id}")

    @staticmethod
    def _clean_name(name: str) -> str:
        clean = name.strip()
        if not clean:
            raise ValidationError("Relationship name cannot be empty")
        if len(clean) > MAX_NAME_LENGTH:
            raise ValidationError(f"Relationship name cannot exceed {MAX_NAME_LENGTH} characters")
        return clean
