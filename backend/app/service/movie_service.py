from typing import Any, Dict, List, Optional, Tuple
import logging

from sqlalchemy.orm import Session

from app.config import TOP_RATED_MIN_RATINGS
from app.db.database import atomic
from app.domain.models import Movie
from app.repositories.interface.movie_repository import MovieRepository
from app.service.validation import normalize_pagination
from app.exceptions.repository import RepositoryException
from app.exceptions.rating import (
    RatingServiceException,
    ResourceNotFoundException,
    InvalidRequestException
)

logger = logging.getLogger(__name__)

# owned by the aggregation service, never taken from user input
DERIVED_FIELDS = {"average_rating", "total_ratings", "total_reviews"}

EDITABLE_FIELDS = {
    "title", "original_title", "description", "release_year", "duration", "country",
    "language", "poster_url", "background_url", "trailer_url", "genres", "is_active"
}


class MovieService:
    def __init__(self, movie_repository: MovieRepository, session: Session):
        self.movie_repository = movie_repository
        self.session = session

    def create_movie(self, data: Dict[str, Any], created_by: Optional[int] = None) -> Movie:
        fields = {k: v for k, v in data.items() if k in EDITABLE_FIELDS}
        try:
            movie = Movie(created_by=created_by, **fields)
        except TypeError as e:
            raise InvalidRequestException(f"Invalid movie data: {str(e)}")

        try:
            with atomic(self.session):
                movie = self.movie_repository.create(movie)
            logger.info(f"Movie {movie.id} '{movie.title}' created by user {created_by}")
            return movie
        except RepositoryException as e:
            logger.error(f"Failed to create movie: {str(e)}")
            raise RatingServiceException(f"Failed to create movie: {str(e)}")

    def update_movie(self, movie_id: int, data: Dict[str, Any]) -> Movie:
        try:
            with atomic(self.session):
                movie = self.movie_repository.get_by_id(movie_id)
                if movie is None:
                    raise ResourceNotFoundException(f"Movie with ID {movie_id} not found")

                for field, value in data.items():
                    if field in EDITABLE_FIELDS:
                        setattr(movie, field, value)
                    elif field in DERIVED_FIELDS:
                        logger.warning(f"Ignoring attempt to set derived field '{field}' on movie {movie_id}")

                movie = self.movie_repository.update(movie)
            logger.info(f"Movie {movie_id} updated")
            return movie
        except RatingServiceException:
            raise
        except RepositoryException as e:
            logger.error(f"Failed to update movie {movie_id}: {str(e)}")
            raise RatingServiceException(f"Failed to update movie: {str(e)}")

    def get_movie(self, movie_id: int, count_view: bool = False, include_inactive: bool = False) -> Movie:
        try:
            movie: Movie = self.movie_repository.get_by_id(movie_id)
            if movie is None or (not movie.is_active and not include_inactive):
                raise ResourceNotFoundException(f"Movie with ID {movie_id} not found")

            if count_view:
                with atomic(self.session):
                    self.movie_repository.increment_views(movie_id)
                movie.views += 1
            return movie
        except RatingServiceException:
            raise
        except RepositoryException as e:
            raise RatingServiceException(f"Failed to get movie: {str(e)}")

    def list_movies(
        self,
        page: int = 1,
        limit: int = None,
        sort: str = "-created_at",
        search: Optional[str] = None,
        genre: Optional[str] = None,
        year: Optional[int] = None,
        country: Optional[str] = None,
        include_inactive: bool = False
    ) -> Tuple[List[Movie], int]:
        page, limit = normalize_pagination(page, limit)
        try:
            return self.movie_repository.list_movies(
                page,
                limit,
                sort,
                search=search,
                genre=genre,
                year=year,
                country=country,
                include_inactive=include_inactive
            )
        except RepositoryException as e:
            raise RatingServiceException(f"Failed to list movies: {str(e)}")

    def get_top_rated(self, limit: int = 10) -> List[Movie]:
        _, limit = normalize_pagination(1, limit)
        try:
            return self.movie_repository.get_top_rated(limit, TOP_RATED_MIN_RATINGS)
        except RepositoryException as e:
            raise RatingServiceException(f"Failed to get top rated movies: {str(e)}")

    def get_trending(self, limit: int = 10) -> List[Movie]:
        _, limit = normalize_pagination(1, limit)
        try:
            return self.movie_repository.get_trending(limit)
        except RepositoryException as e:
            raise RatingServiceException(f"Failed to get trending movies: {str(e)}")
