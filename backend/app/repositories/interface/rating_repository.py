from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Tuple

from app.domain.models import Rating

class RatingRepository(ABC):
    @abstractmethod
    def get_user_ratings(self, user_id: int) -> List["Rating"]:
        pass

    @abstractmethod
    def get_by_user_id_and_movie_id(self, user_id: int, movie_id: int) -> Optional["Rating"]:
        pass

    @abstractmethod
    def add_rating(self, rating: Rating) -> "Rating":
        pass

    @abstractmethod
    def update_rating(self, rating: Rating) -> "Rating":
        pass

    @abstractmethod
    def upsert_rating(self, rating: Rating) -> "Rating":
        pass

    @abstractmethod
    def delete_by_user_id_and_movie_id(self, user_id: int, movie_id: int) -> bool:
        pass

    @abstractmethod
    def get_movie_ratings(self, movie_id: int) -> List["Rating"]:
        pass

    @abstractmethod
    def get_score_summary(self, movie_id: int) -> Tuple[int, int]:
        """Return (sum of scores, number of ratings) for a movie."""
        pass

    @abstractmethod
    def count(self) -> int:
        pass

    @abstractmethod
    def get_created_since(self, since: datetime) -> List[datetime]:
        pass
