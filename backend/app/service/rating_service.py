from typing import List
import logging

from sqlalchemy.orm import Session

from app.db.database import atomic
from app.domain.models import Rating
from app.repositories import RatingRepository, MovieRepository
from app.service.aggregation_service import AggregationService
from app.service.validation import validate_score
from app.exceptions.repository import RepositoryException
from app.exceptions.rating import (
    RatingServiceException,
    ResourceNotFoundException
)

logger = logging.getLogger(__name__)

class RatingService:
    def __init__(
        self,
        rating_repo: RatingRepository,
        movie_repo: MovieRepository,
        aggregation_service: AggregationService,
        session: Session
    ):
        self.rating_repo = rating_repo
        self.movie_repo = movie_repo
        self.aggregation_service = aggregation_service
        self.session = session

    def submit_rating(self, user_id: int, movie_id: int, score: int) -> Rating:
        validate_score(score)
        try:
            with atomic(self.session):
                # raises if the movie does not exist
                self.aggregation_service.lock_movie(movie_id)

                rating_obj = Rating(user_id=user_id, movie_id=movie_id, score=score)

                existing_rating = self.rating_repo.get_by_user_id_and_movie_id(user_id, movie_id)
                if existing_rating:
                    rating = self.rating_repo.update_rating(rating_obj)
                else:
                    rating = self.rating_repo.add_rating(rating_obj)

                self.aggregation_service.recompute(movie_id)

            logger.info(f"User {user_id} rated movie {movie_id} with {score}")
            return rating
        except RatingServiceException:
            raise
        except RepositoryException as e:
            logger.error(f"Failed to save rating for user {user_id} and movie {movie_id}: {str(e)}")
            raise RatingServiceException(f"Failed to save rating: {str(e)}")
        except Exception as e:
            logger.exception(f"Unexpected error while submitting rating for movie {movie_id}")
            raise RatingServiceException(f"Unexpected error while submitting rating: {str(e)}")

    def get_user_ratings(self, user_id: int) -> List[Rating]:
        try:
            return self.rating_repo.get_user_ratings(user_id)
        except RepositoryException as e:
            raise RatingServiceException(f"Failed to get user ratings: {str(e)}")

    def get_user_rating(self, user_id: int, movie_id: int) -> Rating:
        try:
            rating = self.rating_repo.get_by_user_id_and_movie_id(user_id, movie_id)
        except RepositoryException as e:
            raise RatingServiceException(f"Failed to get rating: {str(e)}")

        if rating is None:
            raise ResourceNotFoundException(f"Rating for user {user_id} and movie {movie_id} not found")
        return rating

    def remove_rating(self, user_id: int, movie_id: int) -> bool:
        try:
            with atomic(self.session):
                self.aggregation_service.lock_movie(movie_id)

                existing_rating = self.rating_repo.get_by_user_id_and_movie_id(user_id, movie_id)
                if not existing_rating:
                    raise ResourceNotFoundException(f"Rating for user {user_id} and movie {movie_id} not found")

                success = self.rating_repo.delete_by_user_id_and_movie_id(user_id, movie_id)
                if not success:
                    raise RatingServiceException("Failed to delete rating")

                self.aggregation_service.recompute(movie_id)

            logger.info(f"User {user_id} removed their rating for movie {movie_id}")
            return True
        except RatingServiceException:
            raise
        except RepositoryException as e:
            logger.error(f"Failed to remove rating for user {user_id} and movie {movie_id}: {str(e)}")
            raise RatingServiceException(f"Failed to remove rating: {str(e)}")
        except Exception as e:
            logger.exception(f"Unexpected error while removing rating for movie {movie_id}")
            raise RatingServiceException(f"Unexpected error while removing rating: {str(e)}")
