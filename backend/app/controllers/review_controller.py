from fastapi import APIRouter, Depends, Query, status

from app.domain.models import User
from app.domain.dto import (
    RatingCreate,
    RatingResponse,
    ReviewCreate,
    ReviewUpdate,
    ReviewResponse,
    ReviewPage,
    ReviewVoteRequest,
    VoteTallyResponse
)
from app.auth.dependencies import get_current_active_user
from app.auth.rate_limit import write_rate_limit
from app.config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from app.controllers.errors import to_http_exception, paginate
from app.service.dependencies import get_rating_service, get_review_service
from app.service.rating_service import RatingService
from app.service.review_service import ReviewService
from app.service.validation import normalize_pagination
from app.exceptions.rating import RatingServiceException

router = APIRouter(
    prefix="/reviews",
    tags=["Reviews"],
    responses={404: {"description": "Not found"}}
)


@router.post("/rating", status_code=status.HTTP_201_CREATED, response_model=RatingResponse)
def rate_movie(
    rating_data: RatingCreate,
    current_user: User = Depends(write_rate_limit),
    rating_service: RatingService = Depends(get_rating_service)
):
    try:
        return rating_service.submit_rating(current_user.id, rating_data.movie_id, rating_data.score)
    except RatingServiceException as e:
        raise to_http_exception(e)


@router.get("/rating/{movie_id}", response_model=RatingResponse)
def get_my_rating(
    movie_id: int,
    current_user: User = Depends(get_current_active_user),
    rating_service: RatingService = Depends(get_rating_service)
):
    try:
        return rating_service.get_user_rating(current_user.id, movie_id)
    except RatingServiceException as e:
        raise to_http_exception(e)


@router.delete("/rating/{movie_id}")
def delete_rating(
    movie_id: int,
    current_user: User = Depends(get_current_active_user),
    rating_service: RatingService = Depends(get_rating_service)
):
    try:
        rating_service.remove_rating(current_user.id, movie_id)
        return {"status": "success", "message": "Rating deleted successfully"}
    except RatingServiceException as e:
        raise to_http_exception(e)


@router.get("/movie/{movie_id}", response_model=ReviewPage)
def get_movie_reviews(
    movie_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    sort: str = Query("-helpful_votes"),
    review_service: ReviewService = Depends(get_review_service)
):
    try:
        page, limit = normalize_pagination(page, limit)
        reviews, total = review_service.get_movie_reviews(movie_id, page, limit, sort)
        return {
            "reviews": [ReviewResponse.model_validate(r) for r in reviews],
            "pagination": paginate(page, limit, total)
        }
    except RatingServiceException as e:
        raise to_http_exception(e)


@router.post("", status_code=status.HTTP_201_CREATED, response_model=ReviewResponse)
def create_review(
    review_data: ReviewCreate,
    current_user: User = Depends(write_rate_limit),
    review_service: ReviewService = Depends(get_review_service)
):
    try:
        return review_service.submit_review(
            current_user.id,
            review_data.movie_id,
            review_data.rating,
            review_data.content
        )
    except RatingServiceException as e:
        raise to_http_exception(e)


@router.put("/{review_id}", response_model=ReviewResponse)
def update_review(
    review_id: int,
    review_data: ReviewUpdate,
    current_user: User = Depends(get_current_active_user),
    review_service: ReviewService = Depends(get_review_service)
):
    try:
        return review_service.update_review(review_id, current_user.id, review_data.rating, review_data.content)
    except RatingServiceException as e:
        raise to_http_exception(e)


@router.delete("/{review_id}")
def delete_review(
    review_id: int,
    current_user: User = Depends(get_current_active_user),
    review_service: ReviewService = Depends(get_review_service)
):
    try:
        review_service.delete_review(review_id, current_user.id, is_admin=current_user.is_admin)
        return {"status": "success", "message": "Review deleted successfully"}
    except RatingServiceException as e:
        raise to_http_exception(e)


@router.post("/{review_id}/vote", response_model=VoteTallyResponse)
def vote_review(
    review_id: int,
    vote: ReviewVoteRequest,
    current_user: User = Depends(get_current_active_user),
    review_service: ReviewService = Depends(get_review_service)
):
    try:
        return review_service.vote_on_review(review_id, current_user.id, vote.vote_type)
    except RatingServiceException as e:
        raise to_http_exception(e)
