from sqlalchemy.orm import Session, joinedload
from typing import List, Optional, Tuple
from datetime import datetime

from app.db.models import ReviewORM, ReviewVoteORM
from app.domain.models import Review
from app.repositories.interface.review_repository import ReviewRepository
from app.exceptions.repository import (
    EntityNotFoundException,
    DuplicateEntityException,
    RepositoryOperationException,
    InvalidEntityDataException
)

SORT_FIELDS = {
    "-helpful_votes": ReviewORM.helpful_votes.desc(),
    "helpful_votes": ReviewORM.helpful_votes.asc(),
    "-created_at": ReviewORM.created_at.desc(),
    "created_at": ReviewORM.created_at.asc(),
    "-rating": ReviewORM.rating.desc(),
    "rating": ReviewORM.rating.asc(),
}
DEFAULT_SORT = "-helpful_votes"


class SQLAlchemyReviewRepo(ReviewRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_domain(self, review_orm: ReviewORM) -> Review:
        try:
            return Review(
                id=review_orm.id,
                user_id=review_orm.user_id,
                movie_id=review_orm.movie_id,
                rating=review_orm.rating,
                content=review_orm.content,
                is_hidden=review_orm.is_hidden,
                helpful_votes=review_orm.helpful_votes,
                unhelpful_votes=review_orm.unhelpful_votes,
                is_edited=review_orm.is_edited,
                edited_at=review_orm.edited_at,
                created_at=review_orm.created_at,
                username=review_orm.user.username if review_orm.user else None,
                movie_title=review_orm.movie.title if review_orm.movie else None
            )
        except Exception as e:
            raise InvalidEntityDataException("Review", f"Failed to convert review data: {str(e)}")

    def _to_orm(self, review: Review) -> ReviewORM:
        try:
            return ReviewORM(
                id=review.id,
                user_id=review.user_id,
                movie_id=review.movie_id,
                rating=review.rating,
                content=review.content,
                is_hidden=review.is_hidden,
                helpful_votes=review.helpful_votes,
                unhelpful_votes=review.unhelpful_votes,
                is_edited=review.is_edited,
                edited_at=review.edited_at,
                created_at=review.created_at or datetime.now()
            )
        except Exception as e:
            raise InvalidEntityDataException("Review", f"Failed to convert to ORM: {str(e)}")

    def _query(self):
        return self.session.query(ReviewORM).options(
            joinedload(ReviewORM.user),
            joinedload(ReviewORM.movie)
        )

    def get_by_id(self, review_id: int) -> Optional[Review]:
        try:
            review_orm = self._query().filter(ReviewORM.id == review_id).first()
            return self._to_domain(review_orm) if review_orm else None
        except InvalidEntityDataException:
            raise
        except Exception as e:
            raise RepositoryOperationException(f"Failed to get review by ID: {str(e)}")

    def get_by_user_id_and_movie_id(self, user_id: int, movie_id: int) -> Optional[Review]:
        try:
            review_orm = self._query().filter(
                ReviewORM.user_id == user_id,
                ReviewORM.movie_id == movie_id
            ).first()
            return self._to_domain(review_orm) if review_orm else None
        except InvalidEntityDataException:
            raise
        except Exception as e:
            raise RepositoryOperationException(f"Failed to get review by user and movie: {str(e)}")

    def create(self, review: Review) -> Review:
        try:
            existing = self.session.query(ReviewORM.id).filter(
                ReviewORM.user_id == review.user_id,
                ReviewORM.movie_id == review.movie_id
            ).first()
            if existing:
                raise DuplicateEntityException("Review", "user_id and movie_id", f"{review.user_id}, {review.movie_id}")

            review_orm = self._to_orm(review)
            self.session.add(review_orm)
            self.session.flush()
            self.session.refresh(review_orm)
            return self._to_domain(review_orm)
        except (DuplicateEntityException, InvalidEntityDataException):
            raise
        except Exception as e:
            raise RepositoryOperationException(f"Failed to create review: {str(e)}")

    def update(self, review: Review) -> Review:
        try:
            review_orm = self.session.get(ReviewORM, review.id)
            if not review_orm:
                raise EntityNotFoundException("Review", review.id)

            review_orm.rating = review.rating
            review_orm.content = review.content
            review_orm.is_edited = review.is_edited
            review_orm.edited_at = review.edited_at
            self.session.flush()
            return self._to_domain(review_orm)
        except (EntityNotFoundException, InvalidEntityDataException):
            raise
        except Exception as e:
            raise RepositoryOperationException(f"Failed to update review: {str(e)}")

    def delete(self, review_id: int) -> bool:
        try:
            review_orm = self.session.get(ReviewORM, review_id)
            if not review_orm:
                return False

            self.session.query(ReviewVoteORM).filter(
                ReviewVoteORM.review_id == review_id
            ).delete(synchronize_session=False)
            self.session.delete(review_orm)
            self.session.flush()
            return True
        except Exception as e:
            raise RepositoryOperationException(f"Failed to delete review: {str(e)}")

    def set_hidden(self, review_id: int, is_hidden: bool) -> Optional[Review]:
        try:
            review_orm = self.session.get(ReviewORM, review_id)
            if not review_orm:
                return None

            review_orm.is_hidden = is_hidden
            self.session.flush()
            return self._to_domain(review_orm)
        except InvalidEntityDataException:
            raise
        except Exception as e:
            raise RepositoryOperationException(f"Failed to change review visibility: {str(e)}")

    def update_vote_counts(self, review_id: int, helpful_delta: int, unhelpful_delta: int) -> Review:
        """Apply counter deltas in SQL so concurrent voters do not overwrite each other."""
        try:
            updated = self.session.query(ReviewORM).filter(ReviewORM.id == review_id).update(
                {
                    ReviewORM.helpful_votes: ReviewORM.helpful_votes + helpful_delta,
                    ReviewORM.unhelpful_votes: ReviewORM.unhelpful_votes + unhelpful_delta
                },
                synchronize_session=False
            )
            if not updated:
                raise EntityNotFoundException("Review", review_id)
            self.session.flush()

            review_orm = self.session.get(ReviewORM, review_id, populate_existing=True)
            return self._to_domain(review_orm)
        except (EntityNotFoundException, InvalidEntityDataException):
            raise
        except Exception as e:
            raise RepositoryOperationException(f"Failed to update review votes: {str(e)}")

    def count_by_movie(self, movie_id: int) -> int:
        # hidden reviews are still counted
        try:
            return self.session.query(ReviewORM).filter(ReviewORM.movie_id == movie_id).count()
        except Exception as e:
            raise RepositoryOperationException(f"Failed to count movie reviews: {str(e)}")

    def list_for_movie(
        self,
        movie_id: int,
        page: int,
        limit: int,
        sort: str = DEFAULT_SORT,
        include_hidden: bool = False
    ) -> Tuple[List[Review], int]:
        try:
            query = self.session.query(ReviewORM).filter(ReviewORM.movie_id == movie_id)
            if not include_hidden:
                query = query.filter(ReviewORM.is_hidden.is_(False))

            total = query.count()
            order = SORT_FIELDS.get(sort, SORT_FIELDS[DEFAULT_SORT])
            reviews_orm = (
                query.options(joinedload(ReviewORM.user), joinedload(ReviewORM.movie))
                .order_by(order, ReviewORM.id.desc())
                .offset((page - 1) * limit)
                .limit(limit)
                .all()
            )
            return [self._to_domain(r) for r in reviews_orm], total
        except InvalidEntityDataException:
            raise
        except Exception as e:
            raise RepositoryOperationException(f"Failed to list movie reviews: {str(e)}")

    def list_reviews(
        self,
        page: int,
        limit: int,
        is_hidden: Optional[bool] = None,
        movie_id: Optional[int] = None,
        user_id: Optional[int] = None
    ) -> Tuple[List[Review], int]:
        try:
            query = self.session.query(ReviewORM)
            if is_hidden is not None:
                query = query.filter(ReviewORM.is_hidden.is_(is_hidden))
            if movie_id is not None:
                query = query.filter(ReviewORM.movie_id == movie_id)
            if user_id is not None:
                query = query.filter(ReviewORM.user_id == user_id)

            total = query.count()
            reviews_orm = (
                query.options(joinedload(ReviewORM.user), joinedload(ReviewORM.movie))
                .order_by(ReviewORM.created_at.desc(), ReviewORM.id.desc())
                .offset((page - 1) * limit)
                .limit(limit)
                .all()
            )
            return [self._to_domain(r) for r in reviews_orm], total
        except InvalidEntityDataException:
            raise
        except Exception as e:
            raise RepositoryOperationException(f"Failed to list reviews: {str(e)}")

    def count(self) -> int:
        try:
            return self.session.query(ReviewORM).count()
        except Exception as e:
            raise RepositoryOperationException(f"Failed to count reviews: {str(e)}")

    def get_by_user_id(self, user_id: int) -> List[Review]:
        try:
            reviews_orm = self.session.query(ReviewORM).filter(ReviewORM.user_id == user_id).all()
            return [self._to_domain(r) for r in reviews_orm]
        except InvalidEntityDataException:
            raise
        except Exception as e:
            raise RepositoryOperationException(f"Failed to get user reviews: {str(e)}")
