"""
Custom exceptions for the Souvella backend
"""


class SouvellaBaseException(Exception):
    """Base exception for Souvella"""
    pass


class NotFoundError(SouvellaBaseException):
    """Exception raised when a relationship, memory or document does not exist"""

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class ValidationError(SouvellaBaseException):
    """Exception raised for validation errors"""
    pass


class MalformedDocumentError(ValidationError):
    """Exception raised when a stored document does not match its record shape"""

    def __init__(self, collection: str, document_id: str, reason: str):
        self.collection = collection
        self.document_id = document_id
        self.reason = reason
        super().__init__(f"Malformed document {collection}/{document_id}: {reason}")


class DailyUploadLimitError(ValidationError):
    """Exception raised when a user already posted their memories for today"""
    pass


class DocumentExistsError(SouvellaBaseException):
    """Exception raised when creating a document under an id that is taken"""

    def __init__(self, collection: str, document_id: str):
        self.collection = collection
        self.document_id = document_id
        super().__init__(f"Document {collection}/{document_id} already exists")


class StoreUnavailableError(SouvellaBaseException):
    """Exception raised for any I/O failure against the document store"""
    pass


class InconsistentReferenceError(SouvellaBaseException):
    """A daily selection points at a memory that no longer resolves.

    Only used to classify the warning that is logged when the id is skipped.
    """

    def __init__(self, relationship_id: str, memory_id: str):
        self.relationship_id = relationship_id
        self.memory_id = memory_id
        super().__init__(
            f"Daily selection for relationship {relationship_id} references missing memory {memory_id}"
        )
