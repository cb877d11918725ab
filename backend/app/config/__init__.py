from app.config.reviews import *
from app.config.rate_limit import *

VERSION = "0.1.0"
API_TITLE = "Movie Review API"
API_DESCRIPTION = "API for movie ratings, reviews and moderation"


def validate_config():
    if MIN_SCORE < 1 or MIN_SCORE >= MAX_SCORE:
        raise ValueError("MIN_SCORE must be at least 1 and less than MAX_SCORE")
    if DEFAULT_PAGE_SIZE < 1 or DEFAULT_PAGE_SIZE > MAX_PAGE_SIZE:
        raise ValueError("DEFAULT_PAGE_SIZE must be between 1 and MAX_PAGE_SIZE")
    if AVERAGE_RATING_DECIMALS < 0:
        raise ValueError("AVERAGE_RATING_DECIMALS must not be negative")
    if WRITE_MAX_REQUESTS < 1 or WRITE_WINDOW_SECONDS < 1:
        raise ValueError("Rate limit settings must be positive")


validate_config()
