from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

from app.domain.models import Review


class ReviewRepository(ABC):
    @abstractmethod
    def get_by_id(self, review_id: int) -> Optional["Review"]:
        pass

    @abstractmethod
    def get_by_user_id_and_movie_id(self, user_id: int, movie_id: int) -> Optional["Review"]:
        pass

    @abstractmethod
    def create(self, review: "Review") -> "Review":
        pass

    @abstractmethod
    def update(self, review: "Review") -> "Review":
        pass

    @abstractmethod
    def delete(self, review_id: int) -> bool:
        pass

    @abstractmethod
    def set_hidden(self, review_id: int, is_hidden: bool) -> Optional["Review"]:
        pass

    @abstractmethod
    def update_vote_counts(self, review_id: int, helpful_delta: int, unhelpful_delta: int) -> "Review":
        pass

    @abstractmethod
    def count_by_movie(self, movie_id: int) -> int:
        pass

    @abstractmethod
    def list_for_movie(
        self,
        movie_id: int,
        page: int,
        limit: int,
        sort: str,
        include_hidden: bool = False
    ) -> Tuple[List["Review"], int]:
        pass

    @abstractmethod
    def list_reviews(
        self,
        page: int,
        limit: int,
        is_hidden: Optional[bool] = None,
        movie_id: Optional[int] = None,
        user_id: Optional[int] = None
    ) -> Tuple[List["Review"], int]:
        pass

    @abstractmethod
    def count(self) -> int:
        pass

    @abstractmethod
    def get_by_user_id(self, user_id: int) -> List["Review"]:
        pass
