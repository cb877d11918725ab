from collections import Counter
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple
import logging

from sqlalchemy.orm import Session

from app.config import (
    DASHBOARD_TOP_RATED_MIN_RATINGS,
    NEW_USER_WINDOW_DAYS,
    RATING_CHART_DAYS
)
from app.db.database import atomic
from app.domain.models import Review, User, VoteType
from app.repositories import (
    MovieRepository,
    RatingRepository,
    ReviewRepository,
    UserRepository
)
from app.service.review_service import ReviewService
from app.service.validation import normalize_pagination
from app.exceptions.repository import RepositoryException
from app.exceptions.rating import (
    RatingServiceException,
    ResourceNotFoundException,
    InvalidRequestException
)

logger = logging.getLogger(__name__)


class ModerationService:
    """Admin-only operations. Callers are expected to have checked the admin role already."""

    def __init__(
        self,
        review_repo: ReviewRepository,
        rating_repo: RatingRepository,
        movie_repo: MovieRepository,
        user_repo: UserRepository,
        review_service: ReviewService,
        session: Session
    ):
        self.review_repo = review_repo
        self.rating_repo = rating_repo
        self.movie_repo = movie_repo
        self.user_repo = user_repo
        self.review_service = review_service
        self.session = session

    def set_visibility(self, review_id: int, is_hidden: bool) -> Review:
        # totalReviews counts hidden reviews too, so no recompute here
        try:
            with atomic(self.session):
                review = self.review_repo.set_hidden(review_id, bool(is_hidden))
                if review is None:
                    raise ResourceNotFoundException(f"Review with ID {review_id} not found")

            logger.info(f"Review {review_id} {'hidden' if is_hidden else 'unhidden'}")
            return review
        except RatingServiceException:
            raise
        except RepositoryException as e:
            logger.error(f"Failed to change visibility of review {review_id}: {str(e)}")
            raise RatingServiceException(f"Failed to change review visibility: {str(e)}")

    def admin_delete_review(self, review_id: int, admin_id: Optional[int] = None) -> bool:
        return self.review_service.delete_review(review_id, user_id=admin_id, is_admin=True)

    def admin_delete_movie(self, movie_id: int) -> bool:
        try:
            with atomic(self.session):
                if self.movie_repo.lock_for_update(movie_id) is None:
                    raise ResourceNotFoundException(f"Movie with ID {movie_id} not found")

                if not self.movie_repo.delete(movie_id):
                    raise RatingServiceException("Failed to delete movie")

            logger.info(f"Movie {movie_id} deleted together with its ratings and reviews")
            return True
        except RatingServiceException:
            raise
        except RepositoryException as e:
            logger.error(f"Failed to delete movie {movie_id}: {str(e)}")
            raise RatingServiceException(f"Failed to delete movie: {str(e)}")

    # ---- user management ----

    def _get_user(self, user_id: int) -> User:
        user = self.user_repo.get_by_id(user_id)
        if user is None:
            raise ResourceNotFoundException(f"User with ID {user_id} not found")
        return user

    def list_users(
        self,
        page: int = 1,
        limit: int = None,
        search: Optional[str] = None,
        is_admin: Optional[bool] = None,
        is_active: Optional[bool] = None
    ) -> Tuple[List[User], int]:
        page, limit = normalize_pagination(page, limit)
        try:
            return self.user_repo.list_users(page, limit, search=search, is_admin=is_admin, is_active=is_active)
        except RepositoryException as e:
            raise RatingServiceException(f"Failed to list users: {str(e)}")

    def get_user_details(self, user_id: int) -> Dict[str, Any]:
        try:
            user = self._get_user(user_id)
            return {
                "user": user,
                "stats": {
                    "total_ratings": len(self.rating_repo.get_user_ratings(user_id)),
                    "total_reviews": len(self.review_repo.get_by_user_id(user_id))
                }
            }
        except RatingServiceException:
            raise
        except RepositoryException as e:
            raise RatingServiceException(f"Failed to get user: {str(e)}")

    def _update_user(self, user_id: int, admin_id: Optional[int], **changes) -> User:
        if user_id == admin_id:
            raise InvalidRequestException("You cannot change your own role or status")
        try:
            with atomic(self.session):
                user = self._get_user(user_id)
                for field, value in changes.items():
                    setattr(user, field, value)
                user = self.user_repo.update(user)

            logger.info(f"Admin {admin_id} updated user {user_id}: {changes}")
            return user
        except RatingServiceException:
            raise
        except RepositoryException as e:
            logger.error(f"Failed to update user {user_id}: {str(e)}")
            raise RatingServiceException(f"Failed to update user: {str(e)}")

    def set_user_role(self, user_id: int, is_admin: bool, admin_id: Optional[int] = None) -> User:
        return self._update_user(user_id, admin_id, is_admin=bool(is_admin))

    def set_user_status(self, user_id: int, is_active: bool, admin_id: Optional[int] = None) -> User:
        return self._update_user(user_id, admin_id, is_active=bool(is_active))

    def admin_delete_user(self, user_id: int, admin_id: Optional[int] = None) -> bool:
        """Delete a user and everything they wrote, keeping movie stats and vote counters exact.

        Every movie the user rated or reviewed is locked before the delete and
        recomputed after it, all in one transaction.
        """
        if user_id == admin_id:
            raise InvalidRequestException("You cannot delete your own account")

        aggregation_service = self.review_service.aggregation_service
        vote_repo = self.review_service.vote_repo
        try:
            with atomic(self.session):
                self._get_user(user_id)

                own_reviews = self.review_repo.get_by_user_id(user_id)
                movie_ids = sorted(
                    {rating.movie_id for rating in self.rating_repo.get_user_ratings(user_id)}
                    | {review.movie_id for review in own_reviews}
                )
                # always in ascending id order
                for movie_id in movie_ids:
                    aggregation_service.lock_movie(movie_id)

                own_review_ids = {review.id for review in own_reviews}
                for vote in vote_repo.get_by_user_id(user_id):
                    if vote.review_id in own_review_ids:
                        continue
                    if vote.vote_type == VoteType.HELPFUL:
                        self.review_repo.update_vote_counts(vote.review_id, -1, 0)
                    else:
                        self.review_repo.update_vote_counts(vote.review_id, 0, -1)

                if not self.user_repo.delete(user_id):
                    raise RatingServiceException("Failed to delete user")

                for movie_id in movie_ids:
                    aggregation_service.recompute(movie_id)

            logger.info(f"User {user_id} deleted by admin {admin_id}, {len(movie_ids)} movie(s) recomputed")
            return True
        except RatingServiceException:
            raise
        except RepositoryException as e:
            logger.error(f"Failed to delete user {user_id}: {str(e)}")
            raise RatingServiceException(f"Failed to delete user: {str(e)}")

    def list_reviews(
        self,
        page: int = 1,
        limit: int = None,
        is_hidden: Optional[bool] = None,
        movie_id: Optional[int] = None,
        user_id: Optional[int] = None
    ) -> Tuple[List[Review], int]:
        page, limit = normalize_pagination(page, limit)
        try:
            return self.review_repo.list_reviews(
                page,
                limit,
                is_hidden=is_hidden,
                movie_id=movie_id,
                user_id=user_id
            )
        except RepositoryException as e:
            raise RatingServiceException(f"Failed to list reviews: {str(e)}")

    def get_dashboard_stats(self, now: datetime = None) -> Dict[str, Any]:
        now = now or datetime.now()
        try:
            total_users = self.user_repo.count()
            new_users = self.user_repo.count_since(now - timedelta(days=NEW_USER_WINDOW_DAYS))

            chart_start = (now - timedelta(days=RATING_CHART_DAYS)).replace(hour=0, minute=0, second=0, microsecond=0)
            per_day = Counter(created.date() for created in self.rating_repo.get_created_since(chart_start) if created)
            chart_data = [
                {"date": day.strftime("%b %d"), "value": per_day[day]}
                for day in sorted(per_day)
            ]

            return {
                "stats": {
                    "total_users": total_users,
                    "total_movies": self.movie_repo.count(),
                    "total_reviews": self.review_repo.count(),
                    "total_ratings": self.rating_repo.count(),
                    "new_users": new_users,
                    "old_users": total_users - new_users
                },
                "chart_data": chart_data,
                "recent_users": self.user_repo.get_recent(5),
                "top_rated_movies": self.movie_repo.get_top_rated(10, DASHBOARD_TOP_RATED_MIN_RATINGS)
            }
        except RepositoryException as e:
            logger.error(f"Failed to build dashboard stats: {str(e)}")
            raise RatingServiceException(f"Failed to build dashboard stats: {str(e)}")
