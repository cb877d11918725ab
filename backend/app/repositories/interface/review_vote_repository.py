from abc import ABC, abstractmethod
from typing import List, Optional

from app.domain.models import ReviewVote, VoteType


class ReviewVoteRepository(ABC):
    @abstractmethod
    def get_by_user_id_and_review_id(self, user_id: int, review_id: int) -> Optional["ReviewVote"]:
        pass

    @abstractmethod
    def create(self, vote: "ReviewVote") -> "ReviewVote":
        pass

    @abstractmethod
    def update_vote_type(self, user_id: int, review_id: int, vote_type: "VoteType") -> "ReviewVote":
        pass

    @abstractmethod
    def count_by_review(self, review_id: int) -> int:
        pass

    @abstractmethod
    def get_by_user_id(self, user_id: int) -> List["ReviewVote"]:
        pass
