from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

from app.domain.models import Movie


class MovieRepository(ABC):
    @abstractmethod
    def get_by_id(self, movie_id: int) -> Optional["Movie"]:
        pass

    @abstractmethod
    def get_all_ids(self) -> List[int]:
        pass

    @abstractmethod
    def create(self, movie: "Movie") -> "Movie":
        pass

    @abstractmethod
    def update(self, movie: "Movie") -> "Movie":
        pass

    @abstractmethod
    def delete(self, movie_id: int) -> bool:
        pass

    @abstractmethod
    def lock_for_update(self, movie_id: int) -> Optional["Movie"]:
        pass

    @abstractmethod
    def update_stats(self, movie_id: int, average_rating: float, total_ratings: int, total_reviews: int) -> None:
        pass

    @abstractmethod
    def list_movies(
        self,
        page: int,
        limit: int,
        sort: str,
        search: Optional[str] = None,
        genre: Optional[str] = None,
        year: Optional[int] = None,
        country: Optional[str] = None,
        include_inactive: bool = False
    ) -> Tuple[List["Movie"], int]:
        pass

    @abstractmethod
    def get_top_rated(self, limit: int, min_ratings: int) -> List["Movie"]:
        pass

    @abstractmethod
    def get_trending(self, limit: int) -> List["Movie"]:
        pass

    @abstractmethod
    def increment_views(self, movie_id: int) -> None:
        pass

    @abstractmethod
    def count(self) -> int:
        pass
