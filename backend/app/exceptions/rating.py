class RatingServiceException(Exception):
    """Base exception for rating/review service errors."""
    code = "internal_error"

class ResourceNotFoundException(RatingServiceException):
    """Raised when a referenced movie, review or rating does not exist."""
    code = "not_found"

class ConflictException(RatingServiceException):
    """Raised when a user tries to create a second review for the same movie."""
    code = "conflict"

class ForbiddenException(RatingServiceException):
    """Raised when a caller who is neither the owner nor an admin mutates a review."""
    code = "forbidden"

class InvalidRequestException(RatingServiceException):
    """Raised when request parameters are invalid (e.g. score outside 1-10, empty review content)."""
    code = "validation_error"
