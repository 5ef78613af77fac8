"""Shared plumbing for records that live in the document store."""

from datetime import datetime, timezone
from typing import Any, ClassVar, Dict, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from souvella.exceptions import MalformedDocumentError

T = TypeVar("T", bound="DocumentModel")


def ensure_utc(value: datetime) -> datetime:
    """Treat naive timestamps as UTC and normalise aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class DocumentModel(BaseModel):
    """A validated record with a store document on the other side.

    Documents are validated here, when they cross the store boundary, so the
    services never see a half-formed dict.
    """

    model_config = ConfigDict(frozen=True, use_enum_values=False)

    collection: ClassVar[str] = ""

    id: str

    @classmethod
    def from_document(cls: type[T], document: Dict[str, Any]) -> T:
        """Build the record from a stored document.

        Raises:
            MalformedDocumentError: If the document does not match the record shape
        """
        try:
            return cls.model_validate(document)
        except PydanticValidationError as exc:
            raise MalformedDocumentError(
                cls.collection,
                str(document.get("id", "<no id>")),
                f"{exc.error_count()} validation error(s): {exc.errors()[0]['msg']}",
            ) from exc

    def to_document(self) -> Dict[str, Any]:
        """JSON-compatible payload for the store, without the id."""
        return self.model_dump(mode="json", exclude={"id"})
