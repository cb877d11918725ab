from sqlalchemy import or_, select
from sqlalchemy.orm import Session
from typing import List, Optional, Tuple
import json

from app.db.models import MovieORM, RatingORM, ReviewORM, ReviewVoteORM
from app.domain.models import Movie
from app.repositories.interface.movie_repository import MovieRepository
from app.exceptions.repository import (
    RepositoryOperationException,
    InvalidEntityDataException
)

# public sort keys -> ORM ordering
SORT_FIELDS = {
    "-created_at": MovieORM.created_at.desc(),
    "created_at": MovieORM.created_at.asc(),
    "-average_rating": MovieORM.average_rating.desc(),
    "average_rating": MovieORM.average_rating.asc(),
    "-release_year": MovieORM.release_year.desc(),
    "release_year": MovieORM.release_year.asc(),
    "title": MovieORM.title.asc(),
    "-views": MovieORM.views.desc(),
}


class SQLAlchemyMovieRepo(MovieRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_domain(self, movie_orm: MovieORM) -> Movie:
        try:
            genres_dict = json.loads(movie_orm.genres) if movie_orm.genres else []
            genre_names = [genre['name'] for genre in genres_dict]

            return Movie(
                id=movie_orm.id,
                title=movie_orm.title,
                original_title=movie_orm.original_title,
                description=movie_orm.description,
                release_year=movie_orm.release_year,
                duration=movie_orm.duration,
                country=movie_orm.country,
                language=movie_orm.language,
                poster_url=movie_orm.poster_url,
                background_url=movie_orm.background_url,
                trailer_url=movie_orm.trailer_url,
                genres=genre_names,
                views=movie_orm.views or 0,
                is_active=movie_orm.is_active,
                average_rating=movie_orm.average_rating or 0.0,
                total_ratings=movie_orm.total_ratings or 0,
                total_reviews=movie_orm.total_reviews or 0,
                created_by=movie_orm.created_by,
                created_at=movie_orm.created_at
            )
        except Exception as e:
            raise InvalidEntityDataException("Movie", f"Failed to convert movie data: {str(e)}")

    def _to_orm(self, movie: Movie) -> MovieORM:
        try:
            genres_json = json.dumps([{"name": genre} for genre in movie.genres])

            return MovieORM(
                id=movie.id,
                title=movie.title,
                original_title=movie.original_title,
                description=movie.description,
                release_year=movie.release_year,
                duration=movie.duration,
                country=movie.country,
                language=movie.language,
                poster_url=movie.poster_url,
                background_url=movie.background_url,
                trailer_url=movie.trailer_url,
                genres=genres_json,
                views=movie.views,
                is_active=movie.is_active,
                created_by=movie.created_by,
                # a new movie always starts with empty stats
                average_rating=0.0,
                total_ratings=0,
                total_reviews=0
            )
        except Exception as e:
            raise InvalidEntityDataException("Movie", f"Failed to convert to ORM: {str(e)}")

    def get_by_id(self, movie_id: int) -> Optional[Movie]:
        try:
            if not isinstance(movie_id, int):
                raise RepositoryOperationException(f"Invalid movie_id type. Expected int, got {type(movie_id)}")

            movie_orm = self.session.get(MovieORM, movie_id)
            if not movie_orm:
                return None
            return self._to_domain(movie_orm)
        except (InvalidEntityDataException, RepositoryOperationException):
            raise
        except Exception as e:
            raise RepositoryOperationException(f"Failed to get movie by ID: {str(e)}")

    def get_all_ids(self) -> List[int]:
        try:
            return [row[0] for row in self.session.query(MovieORM.id).order_by(MovieORM.id).all()]
        except Exception as e:
            raise RepositoryOperationException(f"Failed to get movie IDs: {str(e)}")

    def create(self, movie: Movie) -> Movie:
        try:
            movie_orm = self._to_orm(movie)
            self.session.add(movie_orm)
            self.session.flush()
            self.session.refresh(movie_orm)
            return self._to_domain(movie_orm)
        except InvalidEntityDataException:
            raise
        except Exception as e:
            raise RepositoryOperationException(f"Failed to create movie: {str(e)}")

    def update(self, movie: Movie) -> Movie:
        """Overwrite the descriptive fields. Rating stats are left alone."""
        try:
            movie_orm = self.session.get(MovieORM, movie.id)
            if not movie_orm:
                raise RepositoryOperationException(f"Movie {movie.id} does not exist")

            movie_orm.title = movie.title
            movie_orm.original_title = movie.original_title
            movie_orm.description = movie.description
            movie_orm.release_year = movie.release_year
            movie_orm.duration = movie.duration
            movie_orm.country = movie.country
            movie_orm.language = movie.language
            movie_orm.poster_url = movie.poster_url
            movie_orm.background_url = movie.background_url
            movie_orm.trailer_url = movie.trailer_url
            movie_orm.genres = json.dumps([{"name": genre} for genre in movie.genres])
            movie_orm.is_active = movie.is_active

            self.session.flush()
            self.session.refresh(movie_orm)
            return self._to_domain(movie_orm)
        except (InvalidEntityDataException, RepositoryOperationException):
            raise
        except Exception as e:
            raise RepositoryOperationException(f"Failed to update movie: {str(e)}")

    def delete(self, movie_id: int) -> bool:
        try:
            movie_orm = self.session.get(MovieORM, movie_id)
            if not movie_orm:
                return False

            review_ids = select(ReviewORM.id).where(ReviewORM.movie_id == movie_id)
            self.session.query(ReviewVoteORM).filter(
                ReviewVoteORM.review_id.in_(review_ids)
            ).delete(synchronize_session=False)
            self.session.query(ReviewORM).filter(ReviewORM.movie_id == movie_id).delete(synchronize_session=False)
            self.session.query(RatingORM).filter(RatingORM.movie_id == movie_id).delete(synchronize_session=False)

            self.session.delete(movie_orm)
            self.session.flush()
            return True
        except Exception as e:
            raise RepositoryOperationException(f"Failed to delete movie: {str(e)}")

    def lock_for_update(self, movie_id: int) -> Optional[Movie]:
        # FOR UPDATE is a no-op on SQLite, which serializes writers on its own
        try:
            movie_orm = (
                self.session.query(MovieORM)
                .filter(MovieORM.id == movie_id)
                .with_for_update()
                .populate_existing()
                .first()
            )
            return self._to_domain(movie_orm) if movie_orm else None
        except InvalidEntityDataException:
            raise
        except Exception as e:
            raise RepositoryOperationException(f"Failed to lock movie: {str(e)}")

    def update_stats(self, movie_id: int, average_rating: float, total_ratings: int, total_reviews: int) -> None:
        try:
            updated = self.session.query(MovieORM).filter(MovieORM.id == movie_id).update(
                {
                    MovieORM.average_rating: average_rating,
                    MovieORM.total_ratings: total_ratings,
                    MovieORM.total_reviews: total_reviews
                },
                synchronize_session="fetch"
            )
            if not updated:
                raise RepositoryOperationException(f"Movie {movie_id} does not exist")
            self.session.flush()
        except RepositoryOperationException:
            raise
        except Exception as e:
            raise RepositoryOperationException(f"Failed to update movie stats: {str(e)}")

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
    ) -> Tuple[List[Movie], int]:
        try:
            query = self.session.query(MovieORM)
            if not include_inactive:
                query = query.filter(MovieORM.is_active.is_(True))
            if search:
                pattern = f"%{search}%"
                query = query.filter(or_(MovieORM.title.ilike(pattern), MovieORM.description.ilike(pattern)))
            if genre:
                # genres are stored as a JSON list of {"name": ...} objects
                query = query.filter(MovieORM.genres.ilike(f'%"name": {json.dumps(genre)}%'))
            if year is not None:
                query = query.filter(MovieORM.release_year == year)
            if country:
                query = query.filter(MovieORM.country.ilike(country))

            total = query.count()
            order = SORT_FIELDS.get(sort, SORT_FIELDS["-created_at"])
            movies_orm = (
                query.order_by(order, MovieORM.id.desc())
                .offset((page - 1) * limit)
                .limit(limit)
                .all()
            )
            return [self._to_domain(m) for m in movies_orm], total
        except InvalidEntityDataException:
            raise
        except Exception as e:
            raise RepositoryOperationException(f"Failed to list movies: {str(e)}")

    def get_top_rated(self, limit: int, min_ratings: int) -> List[Movie]:
        try:
            movies_orm = (
                self.session.query(MovieORM)
                .filter(MovieORM.is_active.is_(True), MovieORM.total_ratings >= min_ratings)
                .order_by(MovieORM.average_rating.desc(), MovieORM.total_ratings.desc())
                .limit(limit)
                .all()
            )
            return [self._to_domain(m) for m in movies_orm]
        except InvalidEntityDataException:
            raise
        except Exception as e:
            raise RepositoryOperationException(f"Failed to get top rated movies: {str(e)}")

    def get_trending(self, limit: int) -> List[Movie]:
        try:
            movies_orm = (
                self.session.query(MovieORM)
                .filter(MovieORM.is_active.is_(True))
                .order_by(MovieORM.views.desc(), MovieORM.average_rating.desc())
                .limit(limit)
                .all()
            )
            return [self._to_domain(m) for m in movies_orm]
        except InvalidEntityDataException:
            raise
        except Exception as e:
            raise RepositoryOperationException(f"Failed to get trending movies: {str(e)}")

    def increment_views(self, movie_id: int) -> None:
        try:
            self.session.query(MovieORM).filter(MovieORM.id == movie_id).update(
                {MovieORM.views: MovieORM.views + 1},
                synchronize_session=False
            )
            self.session.flush()
        except Exception as e:
            raise RepositoryOperationException(f"Failed to increment movie views: {str(e)}")

    def count(self) -> int:
        try:
            return self.session.query(MovieORM).count()
        except Exception as e:
            raise RepositoryOperationException(f"Failed to count movies: {str(e)}")
