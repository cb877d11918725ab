from typing import Tuple

from app.config import (
    MIN_SCORE,
    MAX_SCORE,
    MAX_REVIEW_LENGTH,
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE
)
from app.exceptions.rating import InvalidRequestException


def validate_score(score) -> int:
    # bool is an int subclass, reject it explicitly
    if isinstance(score, bool) or not isinstance(score, int):
        raise InvalidRequestException(f"Score must be an integer between {MIN_SCORE} and {MAX_SCORE}")
    if score < MIN_SCORE or score > MAX_SCORE:
        raise InvalidRequestException(f"Score must be between {MIN_SCORE} and {MAX_SCORE}, got {score}")
    return score


def validate_content(content) -> str:
    if not isinstance(content, str) or not content.strip():
        raise InvalidRequestException("Review content is required")
    content = content.strip()
    if len(content) > MAX_REVIEW_LENGTH:
        raise InvalidRequestException(f"Review content cannot exceed {MAX_REVIEW_LENGTH} characters")
    return content


def normalize_pagination(page, limit) -> Tuple[int, int]:
    """Clamp page/limit to sane values instead of rejecting the request."""
    try:
        page = int(page) if page is not None else 1
    except (TypeError, ValueError):
        page = 1
    try:
        limit = int(limit) if limit is not None else DEFAULT_PAGE_SIZE
    except (TypeError, ValueError):
        limit = DEFAULT_PAGE_SIZE

    page = max(page, 1)
    if limit < 1:
        limit = DEFAULT_PAGE_SIZE
    return page, min(limit, MAX_PAGE_SIZE)
