from typing import Any, Optional

class RepositoryException(Exception):
    """Base exception for all repository-related errors."""
    pass

class EntityNotFoundException(RepositoryException):
    """Raised when an entity that must exist for the operation is missing."""
    def __init__(self, entity: str, key: Any = None):
        self.entity = entity
        self.key = key
        message = f"{entity} not found" if key is None else f"{entity} {key} not found"
        super().__init__(message)

class DuplicateEntityException(RepositoryException):
    """Raised when a write would break a uniqueness constraint (one rating/review/vote per user)."""
    def __init__(self, entity: str, fields: Optional[str] = None, value: Any = None):
        self.entity = entity
        self.fields = fields
        self.value = value
        if fields is None:
            message = f"{entity} already exists"
        else:
            message = f"{entity} with {fields} ({value}) already exists"
        super().__init__(message)

class InvalidEntityDataException(RepositoryException):
    """Raised when a stored row cannot be converted to or from its domain object."""
    def __init__(self, entity: str, reason: str):
        self.entity = entity
        super().__init__(f"Invalid {entity} data: {reason}")

class RepositoryOperationException(RepositoryException):
    """Raised when a repository operation fails for any reason not covered by other exceptions."""
    pass
