from fastapi import APIRouter, Depends
from typing import List

from app.domain.models import User
from app.domain.dto import UserProfile, RatingResponse
from app.auth.dependencies import get_current_active_user
from app.controllers.errors import to_http_exception
from app.service.dependencies import get_rating_service
from app.service.rating_service import RatingService
from app.exceptions.rating import RatingServiceException


router = APIRouter(
    prefix="/users",
    tags=["Users"],
    responses={404: {"description": "Not found"}}
)

@router.get("/me", response_model=UserProfile)
def read_user_me(current_user: User = Depends(get_current_active_user)):
    return UserProfile(
        id=current_user.id,
        username=current_user.username,
        email=current_user.email,
        is_admin=current_user.is_admin
    )

@router.get("/ratings", response_model=List[RatingResponse])
def get_user_ratings(
    current_user: User = Depends(get_current_active_user),
    rating_service: RatingService = Depends(get_rating_service)
):
    try:
        ratings = rating_service.get_user_ratings(current_user.id)
    except RatingServiceException as e:
        raise to_http_exception(e)

    return [
        RatingResponse(
            movie_id=rating.movie_id,
            score=rating.score,
            created_at=rating.created_at,
            updated_at=rating.updated_at
        )
        for rating in ratings
    ]
