"""Document store adapters."""

from souvella.store.base import (
    DAILY_SELECTIONS,
    MEMBERSHIPS,
    MEMORIES,
    REACTIONS,
    REACTION_KEYS,
    RELATIONSHIPS,
    Document,
    DocumentStore,
)
from souvella.store.memory import InMemoryDocumentStore
from souvella.store.sql import SqlDocumentStore

__all__ = [
    "DAILY_SELECTIONS",
    "MEMBERSHIPS",
    "MEMORIES",
    "REACTIONS",
    "REACTION_KEYS",
    "RELATIONSHIPS",
    "Document",
    "DocumentStore",
    "InMemoryDocumentStore",
    "SqlDocumentStore",
]
