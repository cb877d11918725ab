from fastapi import Depends
from sqlalchemy.orm import Session

from app.db.database import get_db
from app.repositories import (
    SQLAlchemyUserRepo,
    SQLAlchemyRatingRepo,
    SQLAlchemyMovieRepo,
    SQLAlchemyReviewRepo,
    SQLAlchemyReviewVoteRepo
)
from app.service.aggregation_service import AggregationService
from app.service.auth_service import AuthService
from app.service.moderation_service import ModerationService
from app.service.movie_service import MovieService
from app.service.rating_service import RatingService
from app.service.review_service import ReviewService

def get_auth_service(db: Session = Depends(get_db)) -> AuthService:
    return AuthService(SQLAlchemyUserRepo(db), db)

def get_aggregation_service(db: Session = Depends(get_db)) -> AggregationService:
    return AggregationService(
        movie_repo=SQLAlchemyMovieRepo(db),
        rating_repo=SQLAlchemyRatingRepo(db),
        review_repo=SQLAlchemyReviewRepo(db),
        session=db
    )

def get_rating_service(
    db: Session = Depends(get_db),
    aggregation_service: AggregationService = Depends(get_aggregation_service)
) -> RatingService:
    return RatingService(
        rating_repo=SQLAlchemyRatingRepo(db),
        movie_repo=SQLAlchemyMovieRepo(db),
        aggregation_service=aggregation_service,
        session=db
    )

def get_review_service(
    db: Session = Depends(get_db),
    aggregation_service: AggregationService = Depends(get_aggregation_service)
) -> ReviewService:
    return ReviewService(
        review_repo=SQLAlchemyReviewRepo(db),
        rating_repo=SQLAlchemyRatingRepo(db),
        vote_repo=SQLAlchemyReviewVoteRepo(db),
        movie_repo=SQLAlchemyMovieRepo(db),
        aggregation_service=aggregation_service,
        session=db
    )

def get_moderation_service(
    db: Session = Depends(get_db),
    review_service: ReviewService = Depends(get_review_service)
) -> ModerationService:
    return ModerationService(
        review_repo=SQLAlchemyReviewRepo(db),
        rating_repo=SQLAlchemyRatingRepo(db),
        movie_repo=SQLAlchemyMovieRepo(db),
        user_repo=SQLAlchemyUserRepo(db),
        review_service=review_service,
        session=db
    )

def get_movie_service(db: Session = Depends(get_db)) -> MovieService:
    return MovieService(SQLAlchemyMovieRepo(db), db)
