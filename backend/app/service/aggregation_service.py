from decimal import Decimal, ROUND_HALF_UP
import logging

from sqlalchemy.orm import Session

from app.config import AVERAGE_RATING_DECIMALS
from app.db.database import atomic
from app.domain.models import MovieStats
from app.repositories import MovieRepository, RatingRepository, ReviewRepository
from app.exceptions.rating import ResourceNotFoundException

logger = logging.getLogger(__name__)

_QUANTUM = Decimal(1).scaleb(-AVERAGE_RATING_DECIMALS)


def compute_average(score_sum: int, count: int) -> float:
    """Mean of the scores rounded half-up once, at the end. Zero when there are no ratings."""
    if count == 0:
        return 0.0
    average = Decimal(score_sum) / Decimal(count)
    return float(average.quantize(_QUANTUM, rounding=ROUND_HALF_UP))


class AggregationService:
    """Keeps a movie's averageRating / totalRatings / totalReviews in line with its ratings and reviews.

    recompute() does not commit. It is meant to run inside the caller's transaction,
    right after the rating or review write that triggered it, so both land together.
    The movie row is locked first; concurrent writers on the same movie queue up
    behind each other and the last recompute always sees every committed rating.
    """

    def __init__(
        self,
        movie_repo: MovieRepository,
        rating_repo: RatingRepository,
        review_repo: ReviewRepository,
        session: Session = None
    ):
        self.movie_repo = movie_repo
        self.rating_repo = rating_repo
        self.review_repo = review_repo
        self.session = session

    def lock_movie(self, movie_id: int):
        movie = self.movie_repo.lock_for_update(movie_id)
        if movie is None:
            raise ResourceNotFoundException(f"Movie with ID {movie_id} not found")
        return movie

    def recompute(self, movie_id: int) -> MovieStats:
        score_sum, total_ratings = self.rating_repo.get_score_summary(movie_id)
        total_reviews = self.review_repo.count_by_movie(movie_id)

        stats = MovieStats(
            movie_id=movie_id,
            average_rating=compute_average(score_sum, total_ratings),
            total_ratings=total_ratings,
            total_reviews=total_reviews
        )
        self.movie_repo.update_stats(
            movie_id,
            average_rating=stats.average_rating,
            total_ratings=stats.total_ratings,
            total_reviews=stats.total_reviews
        )
        logger.debug(
            f"Recomputed stats for movie {movie_id}: average={stats.average_rating} "
            f"ratings={stats.total_ratings} reviews={stats.total_reviews}"
        )
        return stats

    def recompute_movie(self, movie_id: int) -> MovieStats:
        """Standalone recompute for one movie, committed on its own."""
        with atomic(self.session):
            self.lock_movie(movie_id)
            return self.recompute(movie_id)

    def recompute_all(self) -> int:
        """Reconcile stored stats for every movie. Returns how many movies were out of date."""
        changed = 0
        for movie_id in self.movie_repo.get_all_ids():
            with atomic(self.session):
                movie = self.movie_repo.lock_for_update(movie_id)
                if movie is None:
                    # deleted since the id list was read
                    continue
                before = MovieStats(movie_id, movie.average_rating, movie.total_ratings, movie.total_reviews)
                after = self.recompute(movie_id)
                if before != after:
                    changed += 1
                    logger.warning(
                        f"Movie {movie_id} stats were stale: "
                        f"({before.average_rating}, {before.total_ratings}, {before.total_reviews}) -> "
                        f"({after.average_rating}, {after.total_ratings}, {after.total_reviews})"
                    )
        logger.info(f"Stats reconciliation finished, {changed} movie(s) corrected")
        return changed
