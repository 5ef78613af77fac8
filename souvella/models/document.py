"""Generic document table backing the SQL document store."""

from sqlalchemy import JSON, Column, DateTime, Index, String

from souvella.database.base import Base
from souvella.utils.timezone import utcnow


class DocumentRecord(Base):
    """One document of one collection, payload kept as JSON."""

    __tablename__ = "documents"

    collection = Column(String(64), primary_key=True)
    id = Column(String(255), primary_key=True)
    data = Column(JSON, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("idx_documents_collection", "collection"),
    )

    def __repr__(self) -> str:
        return f"<DocumentRecord(collection={self.collection}, id={self.id})>"
