import os

# settings must exist before anything under app.config is imported
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("JWT_ALGORITHM", "HS256")
os.environ.setdefault("JWT_ACCESS_TOKEN_EXPIRE_MINUTES", "30")
os.environ.setdefault("USE_SQLITE", "true")
os.environ.setdefault("SQLITE_PATH", ":memory:")

import json
import pytest
from datetime import datetime
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.database import enable_sqlite_foreign_keys
from app.db.models import Base, UserORM, MovieORM


def make_movie(movie_id: int, title: str, **overrides) -> MovieORM:
    fields = dict(
        id=movie_id,
        title=title,
        description=f"{title} description",
        release_year=1999,
        duration=120,
        country="USA",
        language="English",
        poster_url=f"https://img.example.com/{movie_id}.jpg",
        genres=json.dumps([{"name": "Drama"}]),
        views=0,
        is_active=True,
        average_rating=0.0,
        total_ratings=0,
        total_reviews=0,
        created_at=datetime.now()
    )
    fields.update(overrides)
    return MovieORM(**fields)


def make_user(user_id: int, username: str, **overrides) -> UserORM:
    fields = dict(
        id=user_id,
        username=username,
        email=f"{username}@test.com",
        hashed_password="hashed_pw",
        is_active=True,
        is_admin=False,
        created_at=datetime.now()
    )
    fields.update(overrides)
    return UserORM(**fields)


@pytest.fixture
def engine():
    """Fresh in-memory SQLite database shared by every connection of one test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False)
    db = TestingSessionLocal()
    yield db
    db.close()


@pytest.fixture
def catalog(session):
    """Three users, one admin and two movies with empty stats."""
    users = [
        make_user(1, "alice"),
        make_user(2, "bob"),
        make_user(3, "carol"),
        make_user(99, "admin", is_admin=True)
    ]
    movies = [
        make_movie(1, "The Matrix", release_year=1999),
        make_movie(2, "Titanic", release_year=1997)
    ]
    session.add_all(users + movies)
    session.commit()
    return {"users": users, "movies": movies}


@pytest.fixture
def services(session):
    """Every service wired to real repositories over the test session."""
    from app.repositories import (
        SQLAlchemyMovieRepo,
        SQLAlchemyRatingRepo,
        SQLAlchemyReviewRepo,
        SQLAlchemyReviewVoteRepo,
        SQLAlchemyUserRepo
    )
    from app.service.aggregation_service import AggregationService
    from app.service.moderation_service import ModerationService
    from app.service.movie_service import MovieService
    from app.service.rating_service import RatingService
    from app.service.review_service import ReviewService

    movie_repo = SQLAlchemyMovieRepo(session)
    rating_repo = SQLAlchemyRatingRepo(session)
    review_repo = SQLAlchemyReviewRepo(session)
    vote_repo = SQLAlchemyReviewVoteRepo(session)
    user_repo = SQLAlchemyUserRepo(session)

    aggregation = AggregationService(movie_repo, rating_repo, review_repo, session)
    review = ReviewService(review_repo, rating_repo, vote_repo, movie_repo, aggregation, session)
    return {
        "aggregation": aggregation,
        "rating": RatingService(rating_repo, movie_repo, aggregation, session),
        "review": review,
        "moderation": ModerationService(review_repo, rating_repo, movie_repo, user_repo, review, session),
        "movie": MovieService(movie_repo, session),
        "repos": {
            "movie": movie_repo,
            "rating": rating_repo,
            "review": review_repo,
            "vote": vote_repo,
            "user": user_repo
        }
    }
