"""Document store contract shared by every backend.

The core only ever talks to a ``DocumentStore`` handed to it, never to a
module-level client. Documents are plain JSON-compatible dicts; every document
returned by a store carries its id under the ``"id"`` key.
"""

from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple, runtime_checkable

# Collection names
MEMORIES = "memories"
DAILY_SELECTIONS = "daily_selections"
REACTIONS = "user_reactions"
REACTION_KEYS = "reaction_idempotency_keys"
RELATIONSHIPS = "relationships"
MEMBERSHIPS = "user_relationships"

Document = Dict[str, Any]


@runtime_checkable
class DocumentStore(Protocol):
    """Async document store primitives."""

    async def query_by_field(self, collection: str, field: str, value: Any) -> List[Document]:
        """Return every document of ``collection`` whose ``field`` equals ``value``."""
        ...

    async def get_document(self, collection: str, document_id: str) -> Optional[Document]:
        """Return the document, or None if it does not exist."""
        ...

    async def create_document(
        self, collection: str, data: Document, document_id: Optional[str] = None
    ) -> str:
        """Create a document and return its id.

        With an explicit ``document_id`` the call is create-if-absent and raises
        ``DocumentExistsError`` when the id is already taken.
        """
        ...

    async def set_document(self, collection: str, document_id: str, data: Document) -> None:
        """Create or fully overwrite a document."""
        ...

    async def update_document(self, collection: str, document_id: str, data: Document) -> None:
        """Merge ``data`` into an existing document; ``NotFoundError`` if absent."""
        ...

    async def batch_update(self, collection: str, updates: Sequence[Tuple[str, Document]]) -> None:
        """Apply several partial updates, all or nothing."""
        ...

    async def increment_field(
        self, collection: str, document_id: str, field: str, amount: int = 1
    ) -> int:
        """Atomically add ``amount`` to a numeric field and return the new value."""
        ...

    async def delete_document(self, collection: str, document_id: str) -> None:
        """Delete a document; deleting a missing document is a no-op."""
        ...
