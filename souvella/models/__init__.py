"""Database models."""

from souvella.models.document import DocumentRecord

__all__ = ["DocumentRecord"]
