from datetime import datetime
from sqlalchemy.orm import Session
from typing import Optional, List, Tuple
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError

from app.domain.models import User
from app.db.models import UserORM, RatingORM, ReviewORM, ReviewVoteORM
from app.repositories.interface.user_repository import UserRepository
from app.exceptions.repository import (
    EntityNotFoundException,
    DuplicateEntityException,
    RepositoryOperationException,
)

class SQLAlchemyUserRepo(UserRepository):
    def __init__(self, db: Session):
        self.db = db

    def _to_domain(self, user_orm: UserORM) -> User:
        return User(
            id=user_orm.id,
            username=user_orm.username,
            email=user_orm.email,
            hashed_password=user_orm.hashed_password,
            is_active=user_orm.is_active,
            is_admin=user_orm.is_admin,
            created_at=user_orm.created_at
        )

    def _to_orm(self, user: User) -> UserORM:
        return UserORM(
            id=user.id,
            username=user.username,
            email=user.email,
            hashed_password=user.hashed_password,
            is_active=user.is_active,
            is_admin=user.is_admin,
            created_at=user.created_at or datetime.now()
        )

    def get_by_id(self, user_id: int) -> Optional[User]:
        """Get a user by ID"""
        try:
            user_orm = self.db.query(UserORM).filter(UserORM.id == user_id).first()
            return self._to_domain(user_orm) if user_orm else None
        except Exception as e:
            raise RepositoryOperationException(f"Failed to get user by ID: {str(e)}")

    def get_by_username(self, username: str) -> Optional[User]:
        """Get a user by username"""
        try:
            user_orm = self.db.query(UserORM).filter(UserORM.username == username).first()
            return self._to_domain(user_orm) if user_orm else None
        except Exception as e:
            raise RepositoryOperationException(f"Failed to get user by username: {str(e)}")

    def get_by_email(self, email: str) -> Optional[User]:
        """Get a user by email"""
        try:
            user_orm = self.db.query(UserORM).filter(UserORM.email == email).first()
            return self._to_domain(user_orm) if user_orm else None
        except Exception as e:
            raise RepositoryOperationException(f"Failed to get user by email: {str(e)}")

    def create(self, user: User) -> User:
        """Create a new user"""
        try:
            user_orm = self._to_orm(user)
            self.db.add(user_orm)
            self.db.flush()
            self.db.refresh(user_orm)
            return self._to_domain(user_orm)
        except IntegrityError:
            raise DuplicateEntityException("User", "username or email", user.username)
        except Exception as e:
            raise RepositoryOperationException(f"Failed to create user: {str(e)}")

    def update(self, user: User) -> User:
        try:
            user_orm = self.db.get(UserORM, user.id)
            if not user_orm:
                raise EntityNotFoundException("User", user.id)

            user_orm.username = user.username
            user_orm.email = user.email
            user_orm.hashed_password = user.hashed_password
            user_orm.is_active = user.is_active
            user_orm.is_admin = user.is_admin

            self.db.flush()
            self.db.refresh(user_orm)
            return self._to_domain(user_orm)
        except EntityNotFoundException:
            raise
        except IntegrityError:
            raise DuplicateEntityException("User", "username or email", user.username)
        except Exception as e:
            raise RepositoryOperationException(f"Failed to update user: {str(e)}")

    def delete(self, user_id: int) -> bool:
        """Delete a user together with their ratings, reviews and votes.

        Movie stats and vote counters are left to the caller.
        """
        try:
            user_orm = self.db.get(UserORM, user_id)
            if not user_orm:
                return False

            own_reviews = select(ReviewORM.id).where(ReviewORM.user_id == user_id)
            self.db.query(ReviewVoteORM).filter(
                or_(ReviewVoteORM.user_id == user_id, ReviewVoteORM.review_id.in_(own_reviews))
            ).delete(synchronize_session=False)
            self.db.query(ReviewORM).filter(ReviewORM.user_id == user_id).delete(synchronize_session=False)
            self.db.query(RatingORM).filter(RatingORM.user_id == user_id).delete(synchronize_session=False)

            self.db.delete(user_orm)
            self.db.flush()
            return True
        except Exception as e:
            raise RepositoryOperationException(f"Failed to delete user: {str(e)}")

    def get_all(self) -> List[User]:
        try:
            user_orms = self.db.query(UserORM).all()
            return [self._to_domain(user_orm) for user_orm in user_orms]
        except Exception as e:
            raise RepositoryOperationException(f"Failed to get all users: {str(e)}")

    def count(self) -> int:
        try:
            return self.db.query(UserORM).count()
        except Exception as e:
            raise RepositoryOperationException(f"Failed to count users: {str(e)}")

    def count_since(self, since: datetime) -> int:
        try:
            return self.db.query(UserORM).filter(UserORM.created_at >= since).count()
        except Exception as e:
            raise RepositoryOperationException(f"Failed to count new users: {str(e)}")

    def get_recent(self, limit: int) -> List[User]:
        try:
            user_orms = self.db.query(UserORM).order_by(UserORM.created_at.desc(), UserORM.id.desc()).limit(limit).all()
            return [self._to_domain(user_orm) for user_orm in user_orms]
        except Exception as e:
            raise RepositoryOperationException(f"Failed to get recent users: {str(e)}")

    def list_users(
        self,
        page: int,
        limit: int,
        search: Optional[str] = None,
        is_admin: Optional[bool] = None,
        is_active: Optional[bool] = None
    ) -> Tuple[List[User], int]:
        """Newest first. `search` matches username or email."""
        try:
            query = self.db.query(UserORM)
            if search:
                pattern = f"%{search}%"
                query = query.filter(or_(UserORM.username.ilike(pattern), UserORM.email.ilike(pattern)))
            if is_admin is not None:
                query = query.filter(UserORM.is_admin.is_(is_admin))
            if is_active is not None:
                query = query.filter(UserORM.is_active.is_(is_active))

            total = query.count()
            user_orms = (
                query.order_by(UserORM.created_at.desc(), UserORM.id.desc())
                .offset((page - 1) * limit)
                .limit(limit)
                .all()
            )
            return [self._to_domain(user_orm) for user_orm in user_orms], total
        except Exception as e:
            raise RepositoryOperationException(f"Failed to list users: {str(e)}")
