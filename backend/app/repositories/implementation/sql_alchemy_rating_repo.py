from sqlalchemy import func
from sqlalchemy.orm import Session
from typing import List, Optional, Tuple
from datetime import datetime

from app.db.models import RatingORM
from app.domain.models import Rating
from app.repositories.interface.rating_repository import RatingRepository
from app.exceptions.repository import (
    EntityNotFoundException,
    DuplicateEntityException,
    RepositoryOperationException,
    InvalidEntityDataException
)


class SQLAlchemyRatingRepo(RatingRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_domain(self, rating_orm: RatingORM) -> Rating:
        try:
            return Rating(
                user_id=rating_orm.user_id,
                movie_id=rating_orm.movie_id,
                score=rating_orm.score,
                created_at=rating_orm.created_at,
                updated_at=rating_orm.updated_at
            )
        except Exception as e:
            raise InvalidEntityDataException("Rating", f"Failed to convert rating data: {str(e)}")


    def _to_orm(self, rating: Rating) -> RatingORM:
        try:
            now = datetime.now()
            return RatingORM(
                user_id=rating.user_id,
                movie_id=rating.movie_id,
                score=rating.score,
                created_at=rating.created_at or now,
                updated_at=rating.updated_at or now
            )
        except Exception as e:
            raise InvalidEntityDataException("Rating", f"Failed to convert to ORM: {str(e)}")

    def _get_orm(self, user_id: int, movie_id: int) -> Optional[RatingORM]:
        return self.session.query(RatingORM).filter(
            RatingORM.user_id == user_id,
            RatingORM.movie_id == movie_id
        ).first()

    def get_user_ratings(self, user_id: int) -> List[Rating]:
        try:
            ratings_orm = self.session.query(RatingORM).filter(
                RatingORM.user_id == user_id
            ).order_by(RatingORM.updated_at.desc()).all()
            return [self._to_domain(r) for r in ratings_orm]
        except Exception as e:
            raise RepositoryOperationException(f"Failed to get user ratings: {str(e)}")

    def get_movie_ratings(self, movie_id: int) -> List[Rating]:
        try:
            ratings_orm = self.session.query(RatingORM).filter(
                RatingORM.movie_id == movie_id
            ).all()
            return [self._to_domain(r) for r in ratings_orm]
        except Exception as e:
            raise RepositoryOperationException(f"Failed to get movie ratings: {str(e)}")

    def add_rating(self, rating: Rating) -> Rating:
        try:
            existing_rating = self._get_orm(rating.user_id, rating.movie_id)
            if existing_rating:
                raise DuplicateEntityException("Rating", "user_id and movie_id", f"{rating.user_id}, {rating.movie_id}")

            new_rating = self._to_orm(rating)
            self.session.add(new_rating)
            self.session.flush()
            return self._to_domain(new_rating)
        except (DuplicateEntityException, InvalidEntityDataException):
            raise
        except Exception as e:
            raise RepositoryOperationException(f"Failed to add rating: {str(e)}")

    def get_by_user_id_and_movie_id(self, user_id: int, movie_id: int) -> Optional[Rating]:
        try:
            rating_orm = self._get_orm(user_id, movie_id)
            return self._to_domain(rating_orm) if rating_orm else None
        except Exception as e:
            raise RepositoryOperationException(f"Failed to get rating by user and movie: {str(e)}")

    def delete_by_user_id_and_movie_id(self, user_id: int, movie_id: int) -> bool:
        try:
            rating_orm = self._get_orm(user_id, movie_id)
            if rating_orm:
                self.session.delete(rating_orm)
                self.session.flush()
                return True
            return False
        except Exception as e:
            raise RepositoryOperationException(f"Failed to delete rating: {str(e)}")

    def update_rating(self, rating: Rating) -> Rating:
        try:
            rating_orm = self._get_orm(rating.user_id, rating.movie_id)
            if not rating_orm:
                raise EntityNotFoundException("Rating", f"for user {rating.user_id} and movie {rating.movie_id}")

            rating_orm.score = rating.score
            rating_orm.updated_at = datetime.now()
            self.session.flush()
            return self._to_domain(rating_orm)
        except EntityNotFoundException:
            raise
        except Exception as e:
            raise RepositoryOperationException(f"Failed to update rating: {str(e)}")

    def upsert_rating(self, rating: Rating) -> Rating:
        """Create the (user, movie) rating or overwrite its score if it already exists."""
        try:
            rating_orm = self._get_orm(rating.user_id, rating.movie_id)
            if rating_orm is None:
                rating_orm = self._to_orm(rating)
                self.session.add(rating_orm)
            else:
                rating_orm.score = rating.score
                rating_orm.updated_at = datetime.now()
            self.session.flush()
            return self._to_domain(rating_orm)
        except InvalidEntityDataException:
            raise
        except Exception as e:
            raise RepositoryOperationException(f"Failed to upsert rating: {str(e)}")

    def get_score_summary(self, movie_id: int) -> Tuple[int, int]:
        try:
            total, count = self.session.query(
                func.coalesce(func.sum(RatingORM.score), 0),
                func.count(RatingORM.user_id)
            ).filter(RatingORM.movie_id == movie_id).one()
            return int(total), int(count)
        except Exception as e:
            raise RepositoryOperationException(f"Failed to summarize movie ratings: {str(e)}")

    def count(self) -> int:
        try:
            return self.session.query(RatingORM).count()
        except Exception as e:
            raise RepositoryOperationException(f"Failed to count ratings: {str(e)}")

    def get_created_since(self, since: datetime) -> List[datetime]:
        try:
            rows = self.session.query(RatingORM.created_at).filter(
                RatingORM.created_at >= since
            ).order_by(RatingORM.created_at).all()
            return [row[0] for row in rows]
        except Exception as e:
            raise RepositoryOperationException(f"Failed to get recent ratings: {str(e)}")
