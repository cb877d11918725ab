from datetime import datetime
from typing import List, Optional, Tuple
import logging

from sqlalchemy.orm import Session

from app.config import DELETE_REVIEW_REMOVES_RATING
from app.db.database import atomic
from app.domain.models import Rating, Review, ReviewVote, VoteTally, VoteType
from app.repositories import (
    RatingRepository,
    ReviewRepository,
    ReviewVoteRepository,
    MovieRepository
)
from app.service.aggregation_service import AggregationService
from app.service.validation import validate_score, validate_content, normalize_pagination
from app.exceptions.repository import RepositoryException, DuplicateEntityException
from app.exceptions.rating import (
    RatingServiceException,
    ResourceNotFoundException,
    ConflictException,
    ForbiddenException,
    InvalidRequestException
)

logger = logging.getLogger(__name__)


class ReviewService:
    def __init__(
        self,
        review_repo: ReviewRepository,
        rating_repo: RatingRepository,
        vote_repo: ReviewVoteRepository,
        movie_repo: MovieRepository,
        aggregation_service: AggregationService,
        session: Session,
        remove_rating_on_delete: bool = DELETE_REVIEW_REMOVES_RATING
    ):
        self.review_repo = review_repo
        self.rating_repo = rating_repo
        self.vote_repo = vote_repo
        self.movie_repo = movie_repo
        self.aggregation_service = aggregation_service
        self.session = session
        self.remove_rating_on_delete = remove_rating_on_delete

    def _record_opinion(self, user_id: int, movie_id: int, score: int, create_missing_rating: bool) -> Optional[Rating]:
        """Mirror a review's score into the (user, movie) rating, then refresh the movie stats.

        A new review may create the rating. An edited review only touches a rating
        that is already there.
        """
        rating = Rating(user_id=user_id, movie_id=movie_id, score=score)
        if create_missing_rating:
            rating = self.rating_repo.upsert_rating(rating)
        elif self.rating_repo.get_by_user_id_and_movie_id(user_id, movie_id) is not None:
            rating = self.rating_repo.update_rating(rating)
        else:
            rating = None

        self.aggregation_service.recompute(movie_id)
        return rating

    def _get_review(self, review_id: int) -> Review:
        review = self.review_repo.get_by_id(review_id)
        if review is None:
            raise ResourceNotFoundException(f"Review with ID {review_id} not found")
        return review

    def submit_review(self, user_id: int, movie_id: int, rating: int, content: str) -> Review:
        validate_score(rating)
        content = validate_content(content)
        try:
            with atomic(self.session):
                self.aggregation_service.lock_movie(movie_id)

                if self.review_repo.get_by_user_id_and_movie_id(user_id, movie_id):
                    raise ConflictException(f"User {user_id} has already reviewed movie {movie_id}")

                try:
                    review = self.review_repo.create(Review(
                        user_id=user_id,
                        movie_id=movie_id,
                        rating=rating,
                        content=content,
                        is_hidden=False,
                        helpful_votes=0,
                        unhelpful_votes=0
                    ))
                except DuplicateEntityException:
                    raise ConflictException(f"User {user_id} has already reviewed movie {movie_id}")

                self._record_opinion(user_id, movie_id, rating, create_missing_rating=True)

            logger.info(f"User {user_id} reviewed movie {movie_id} (review {review.id}, rating {rating})")
            return review
        except RatingServiceException:
            raise
        except RepositoryException as e:
            logger.error(f"Failed to create review for user {user_id} and movie {movie_id}: {str(e)}")
            raise RatingServiceException(f"Failed to create review: {str(e)}")
        except Exception as e:
            logger.exception(f"Unexpected error while creating review for movie {movie_id}")
            raise RatingServiceException(f"Unexpected error while creating review: {str(e)}")

    def update_review(self, review_id: int, user_id: int, rating: int, content: str) -> Review:
        validate_score(rating)
        content = validate_content(content)
        try:
            with atomic(self.session):
                review = self._get_review(review_id)
                if review.user_id != user_id:
                    raise ForbiddenException("You can only edit your own reviews")

                self.aggregation_service.lock_movie(review.movie_id)

                review.rating = rating
                review.content = content
                review.is_edited = True
                review.edited_at = datetime.now()
                review = self.review_repo.update(review)

                self._record_opinion(user_id, review.movie_id, rating, create_missing_rating=False)

            logger.info(f"User {user_id} edited review {review_id}")
            return review
        except RatingServiceException:
            raise
        except RepositoryException as e:
            logger.error(f"Failed to update review {review_id}: {str(e)}")
            raise RatingServiceException(f"Failed to update review: {str(e)}")
        except Exception as e:
            logger.exception(f"Unexpected error while updating review {review_id}")
            raise RatingServiceException(f"Unexpected error while updating review: {str(e)}")

    def delete_review(self, review_id: int, user_id: Optional[int], is_admin: bool = False) -> bool:
        try:
            with atomic(self.session):
                review = self._get_review(review_id)
                if review.user_id != user_id and not is_admin:
                    raise ForbiddenException("You can only delete your own reviews")

                self.aggregation_service.lock_movie(review.movie_id)

                if not self.review_repo.delete(review_id):
                    raise RatingServiceException("Failed to delete review")

                if self.remove_rating_on_delete:
                    self.rating_repo.delete_by_user_id_and_movie_id(review.user_id, review.movie_id)

                self.aggregation_service.recompute(review.movie_id)

            logger.info(
                f"Review {review_id} on movie {review.movie_id} deleted by "
                f"{'admin' if is_admin and review.user_id != user_id else 'owner'} {user_id}"
            )
            return True
        except RatingServiceException:
            raise
        except RepositoryException as e:
            logger.error(f"Failed to delete review {review_id}: {str(e)}")
            raise RatingServiceException(f"Failed to delete review: {str(e)}")
        except Exception as e:
            logger.exception(f"Unexpected error while deleting review {review_id}")
            raise RatingServiceException(f"Unexpected error while deleting review: {str(e)}")

    def _apply_vote(self, review_id: int, user_id: int, vote_type: VoteType) -> Review:
        review = self._get_review(review_id)

        helpful_delta, unhelpful_delta = 0, 0
        existing_vote = self.vote_repo.get_by_user_id_and_review_id(user_id, review_id)

        if existing_vote is None:
            self.vote_repo.create(ReviewVote(user_id=user_id, review_id=review_id, vote_type=vote_type))
            if vote_type == VoteType.HELPFUL:
                helpful_delta = 1
            else:
                unhelpful_delta = 1
        elif existing_vote.vote_type != vote_type:
            self.vote_repo.update_vote_type(user_id, review_id, vote_type)
            if vote_type == VoteType.HELPFUL:
                helpful_delta, unhelpful_delta = 1, -1
            else:
                helpful_delta, unhelpful_delta = -1, 1

        if helpful_delta or unhelpful_delta:
            review = self.review_repo.update_vote_counts(review_id, helpful_delta, unhelpful_delta)
        return review

    def vote_on_review(self, review_id: int, user_id: int, vote_type) -> VoteTally:
        """Record a helpful/unhelpful vote.

        Per (user, review): unvoted -> helpful|unhelpful, helpful <-> unhelpful.
        Repeating the current vote changes nothing. If a concurrent request from
        the same user stores the first vote before us, the whole vote is replayed
        once against that stored vote.
        """
        try:
            vote_type = VoteType(vote_type)
        except ValueError:
            raise InvalidRequestException(f"Vote type must be 'helpful' or 'unhelpful', got {vote_type!r}")

        try:
            try:
                with atomic(self.session):
                    review = self._apply_vote(review_id, user_id, vote_type)
            except DuplicateEntityException:
                logger.info(f"Concurrent first vote by user {user_id} on review {review_id}, retrying")
                with atomic(self.session):
                    review = self._apply_vote(review_id, user_id, vote_type)

            return VoteTally(
                review_id=review_id,
                helpful_votes=review.helpful_votes,
                unhelpful_votes=review.unhelpful_votes
            )
        except RatingServiceException:
            raise
        except RepositoryException as e:
            logger.error(f"Failed to record vote on review {review_id}: {str(e)}")
            raise RatingServiceException(f"Failed to record vote: {str(e)}")
        except Exception as e:
            logger.exception(f"Unexpected error while voting on review {review_id}")
            raise RatingServiceException(f"Unexpected error while voting on review: {str(e)}")

    def get_movie_reviews(
        self,
        movie_id: int,
        page: int = 1,
        limit: int = None,
        sort: str = "-helpful_votes"
    ) -> Tuple[List[Review], int]:
        """Public listing. Hidden reviews are left out."""
        page, limit = normalize_pagination(page, limit)
        try:
            if self.movie_repo.get_by_id(movie_id) is None:
                raise ResourceNotFoundException(f"Movie with ID {movie_id} not found")
            return self.review_repo.list_for_movie(movie_id, page, limit, sort, include_hidden=False)
        except RatingServiceException:
            raise
        except RepositoryException as e:
            raise RatingServiceException(f"Failed to get movie reviews: {str(e)}")
