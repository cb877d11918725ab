from datetime import datetime
from enum import Enum
from typing import Optional, List


class VoteType(str, Enum):
    HELPFUL = "helpful"
    UNHELPFUL = "unhelpful"


class Rating:
    def __init__(
        self,
        user_id: int,
        movie_id: int,
        score: int,
        created_at: datetime = None,
        updated_at: datetime = None
    ):
        self.user_id = user_id
        self.movie_id = movie_id
        self.score = score
        self.created_at = created_at
        self.updated_at = updated_at

class Review:
    def __init__(
        self,
        user_id: int,
        movie_id: int,
        rating: int,
        content: str,
        id: Optional[int] = None,
        is_hidden: bool = False,
        helpful_votes: int = 0,
        unhelpful_votes: int = 0,
        is_edited: bool = False,
        edited_at: datetime = None,
        created_at: datetime = None,
        username: Optional[str] = None,
        movie_title: Optional[str] = None
    ):
        self.user_id = user_id
        self.movie_id = movie_id
        self.rating = rating
        self.content = content
        self.id = id
        self.is_hidden = is_hidden
        self.helpful_votes = helpful_votes
        self.unhelpful_votes = unhelpful_votes
        self.is_edited = is_edited
        self.edited_at = edited_at
        self.created_at = created_at
        # populated from the joined user/movie rows on reads
        self.username = username
        self.movie_title = movie_title

class ReviewVote:
    def __init__(
        self,
        user_id: int,
        review_id: int,
        vote_type: VoteType,
        created_at: datetime = None
    ):
        self.user_id = user_id
        self.review_id = review_id
        self.vote_type = vote_type
        self.created_at = created_at

class VoteTally:
    def __init__(self, review_id: int, helpful_votes: int, unhelpful_votes: int):
        self.review_id = review_id
        self.helpful_votes = helpful_votes
        self.unhelpful_votes = unhelpful_votes

class MovieStats:
    def __init__(self, movie_id: int, average_rating: float, total_ratings: int, total_reviews: int):
        self.movie_id = movie_id
        self.average_rating = average_rating
        self.total_ratings = total_ratings
        self.total_reviews = total_reviews

    def __eq__(self, other):
        if not isinstance(other, MovieStats):
            return NotImplemented
        return (
            self.movie_id == other.movie_id
            and self.average_rating == other.average_rating
            and self.total_ratings == other.total_ratings
            and self.total_reviews == other.total_reviews
        )

class User:
    def __init__(
        self,
        username: str,
        email: str,
        hashed_password: str,
        id: Optional[int] = None,
        is_active: bool = True,
        is_admin: bool = False,
        created_at: datetime = None
    ):
        self.username = username
        self.email = email
        self.hashed_password = hashed_password
        self.id = id
        self.is_active = is_active
        self.is_admin = is_admin
        self.created_at = created_at

class Movie:
    def __init__(
        self,
        title: str,
        description: str,
        release_year: int,
        duration: int,
        country: str,
        poster_url: str,
        id: Optional[int] = None,
        original_title: Optional[str] = None,
        language: str = "English",
        background_url: Optional[str] = None,
        trailer_url: Optional[str] = None,
        genres: List[str] = None,
        views: int = 0,
        is_active: bool = True,
        average_rating: float = 0.0,
        total_ratings: int = 0,
        total_reviews: int = 0,
        created_by: Optional[int] = None,
        created_at: datetime = None
    ):
        self.title = title
        self.description = description
        self.release_year = release_year
        self.duration = duration
        self.country = country
        self.poster_url = poster_url
        self.id = id
        self.original_title = original_title
        self.language = language
        self.background_url = background_url
        self.trailer_url = trailer_url
        self.genres = genres or []
        self.views = views
        self.is_active = is_active
        self.average_rating = average_rating
        self.total_ratings = total_ratings
        self.total_reviews = total_reviews
        self.created_by = created_by
        self.created_at = created_at
