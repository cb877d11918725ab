from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import datetime

from app.db.models import ReviewVoteORM
from app.domain.models import ReviewVote, VoteType
from app.repositories.interface.review_vote_repository import ReviewVoteRepository
from app.exceptions.repository import (
    EntityNotFoundException,
    DuplicateEntityException,
    RepositoryOperationException,
    InvalidEntityDataException
)


class SQLAlchemyReviewVoteRepo(ReviewVoteRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_domain(self, vote_orm: ReviewVoteORM) -> ReviewVote:
        try:
            return ReviewVote(
                user_id=vote_orm.user_id,
                review_id=vote_orm.review_id,
                vote_type=VoteType(vote_orm.vote_type),
                created_at=vote_orm.created_at
            )
        except Exception as e:
            raise InvalidEntityDataException("ReviewVote", f"Failed to convert vote data: {str(e)}")

    def _get_orm(self, user_id: int, review_id: int) -> Optional[ReviewVoteORM]:
        return self.session.query(ReviewVoteORM).filter(
            ReviewVoteORM.user_id == user_id,
            ReviewVoteORM.review_id == review_id
        ).first()

    def get_by_user_id_and_review_id(self, user_id: int, review_id: int) -> Optional[ReviewVote]:
        try:
            vote_orm = self._get_orm(user_id, review_id)
            return self._to_domain(vote_orm) if vote_orm else None
        except InvalidEntityDataException:
            raise
        except Exception as e:
            raise RepositoryOperationException(f"Failed to get review vote: {str(e)}")

    def create(self, vote: ReviewVote) -> ReviewVote:
        try:
            if self._get_orm(vote.user_id, vote.review_id):
                raise DuplicateEntityException("ReviewVote", "user_id and review_id", f"{vote.user_id}, {vote.review_id}")

            now = datetime.now()
            vote_orm = ReviewVoteORM(
                user_id=vote.user_id,
                review_id=vote.review_id,
                vote_type=VoteType(vote.vote_type).value,
                created_at=vote.created_at or now,
                updated_at=now
            )
            self.session.add(vote_orm)
            self.session.flush()
            return self._to_domain(vote_orm)
        except IntegrityError:
            # another transaction inserted the same (user, review) first
            raise DuplicateEntityException("ReviewVote", "user_id and review_id", f"{vote.user_id}, {vote.review_id}")
        except (DuplicateEntityException, InvalidEntityDataException):
            raise
        except Exception as e:
            raise RepositoryOperationException(f"Failed to create review vote: {str(e)}")

    def update_vote_type(self, user_id: int, review_id: int, vote_type: VoteType) -> ReviewVote:
        try:
            vote_orm = self._get_orm(user_id, review_id)
            if not vote_orm:
                raise EntityNotFoundException("ReviewVote", f"for user {user_id} and review {review_id}")

            vote_orm.vote_type = VoteType(vote_type).value
            vote_orm.updated_at = datetime.now()
            self.session.flush()
            return self._to_domain(vote_orm)
        except (EntityNotFoundException, InvalidEntityDataException):
            raise
        except Exception as e:
            raise RepositoryOperationException(f"Failed to update review vote: {str(e)}")

    def count_by_review(self, review_id: int) -> int:
        try:
            return self.session.query(ReviewVoteORM).filter(ReviewVoteORM.review_id == review_id).count()
        except Exception as e:
            raise RepositoryOperationException(f"Failed to count review votes: {str(e)}")

    def get_by_user_id(self, user_id: int) -> List[ReviewVote]:
        try:
            votes_orm = self.session.query(ReviewVoteORM).filter(ReviewVoteORM.user_id == user_id).all()
            return [self._to_domain(v) for v in votes_orm]
        except InvalidEntityDataException:
            raise
        except Exception as e:
            raise RepositoryOperationException(f"Failed to get user votes: {str(e)}")
