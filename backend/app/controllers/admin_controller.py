from fastapi import APIRouter, Depends, Query, status
from typing import Optional

from app.domain.models import User
from app.domain.dto import (
    AdminReviewResponse,
    AdminReviewPage,
    AdminUserResponse,
    AdminUserDetail,
    AdminUserPage,
    UserRoleUpdate,
    UserStatusUpdate,
    ReviewVisibilityUpdate,
    MovieCreate,
    MovieUpdate,
    MovieResponse,
    MoviePage,
    DashboardStats,
    ReconcileResponse
)
from app.auth.dependencies import get_current_admin_user
from app.config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from app.controllers.errors import to_http_exception, paginate
from app.service.dependencies import (
    get_moderation_service,
    get_movie_service,
    get_aggregation_service
)
from app.service.aggregation_service import AggregationService
from app.service.moderation_service import ModerationService
from app.service.movie_service import MovieService
from app.exceptions.rating import RatingServiceException

router = APIRouter(
    prefix="/admin",
    tags=["Admin"],
    dependencies=[Depends(get_current_admin_user)],
    responses={403: {"description": "Admin privileges required"}}
)


@router.get("/stats", response_model=DashboardStats)
def get_dashboard_stats(
    moderation_service: ModerationService = Depends(get_moderation_service)
):
    try:
        return moderation_service.get_dashboard_stats()
    except RatingServiceException as e:
        raise to_http_exception(e)


# ---- review moderation ----

@router.get("/reviews", response_model=AdminReviewPage)
def list_reviews(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    is_hidden: Optional[bool] = None,
    movie_id: Optional[int] = None,
    user_id: Optional[int] = None,
    moderation_service: ModerationService = Depends(get_moderation_service)
):
    try:
        reviews, total = moderation_service.list_reviews(
            page,
            limit,
            is_hidden=is_hidden,
            movie_id=movie_id,
            user_id=user_id
        )
        return {
            "reviews": [AdminReviewResponse.model_validate(r) for r in reviews],
            "pagination": paginate(page, limit, total)
        }
    except RatingServiceException as e:
        raise to_http_exception(e)


@router.put("/reviews/{review_id}/visibility", response_model=AdminReviewResponse)
def set_review_visibility(
    review_id: int,
    visibility: ReviewVisibilityUpdate,
    moderation_service: ModerationService = Depends(get_moderation_service)
):
    try:
        return moderation_service.set_visibility(review_id, visibility.is_hidden)
    except RatingServiceException as e:
        raise to_http_exception(e)


@router.delete("/reviews/{review_id}")
def delete_review(
    review_id: int,
    current_user: User = Depends(get_current_admin_user),
    moderation_service: ModerationService = Depends(get_moderation_service)
):
    try:
        moderation_service.admin_delete_review(review_id, admin_id=current_user.id)
        return {"status": "success", "message": "Review deleted successfully"}
    except RatingServiceException as e:
        raise to_http_exception(e)


# ---- movie management ----

@router.get("/movies", response_model=MoviePage)
def list_movies(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    sort: str = "-created_at",
    search: Optional[str] = None,
    genre: Optional[str] = None,
    year: Optional[int] = Query(None, ge=1800),
    country: Optional[str] = None,
    movie_service: MovieService = Depends(get_movie_service)
):
    """Like the public listing, but deactivated movies are included."""
    try:
        movies, total = movie_service.list_movies(
            page,
            limit,
            sort,
            search=search,
            genre=genre,
            year=year,
            country=country,
            include_inactive=True
        )
        return {
            "movies": [MovieResponse.model_validate(m) for m in movies],
            "pagination": paginate(page, limit, total)
        }
    except RatingServiceException as e:
        raise to_http_exception(e)


@router.get("/movies/{movie_id}", response_model=MovieResponse)
def get_movie(
    movie_id: int,
    movie_service: MovieService = Depends(get_movie_service)
):
    try:
        return movie_service.get_movie(movie_id, include_inactive=True)
    except RatingServiceException as e:
        raise to_http_exception(e)


@router.post("/movies", status_code=status.HTTP_201_CREATED, response_model=MovieResponse)
def create_movie(
    movie_data: MovieCreate,
    current_user: User = Depends(get_current_admin_user),
    movie_service: MovieService = Depends(get_movie_service)
):
    try:
        return movie_service.create_movie(movie_data.model_dump(), created_by=current_user.id)
    except RatingServiceException as e:
        raise to_http_exception(e)


@router.post("/movies/recompute-stats", response_model=ReconcileResponse)
def recompute_movie_stats(
    aggregation_service: AggregationService = Depends(get_aggregation_service)
):
    try:
        return ReconcileResponse(movies_corrected=aggregation_service.recompute_all())
    except RatingServiceException as e:
        raise to_http_exception(e)


@router.put("/movies/{movie_id}", response_model=MovieResponse)
def update_movie(
    movie_id: int,
    movie_data: MovieUpdate,
    movie_service: MovieService = Depends(get_movie_service)
):
    try:
        return movie_service.update_movie(movie_id, movie_data.model_dump(exclude_unset=True))
    except RatingServiceException as e:
        raise to_http_exception(e)


@router.delete("/movies/{movie_id}")
def delete_movie(
    movie_id: int,
    moderation_service: ModerationService = Depends(get_moderation_service)
):
    try:
        moderation_service.admin_delete_movie(movie_id)
        return {"status": "success", "message": "Movie deleted successfully"}
    except RatingServiceException as e:
        raise to_http_exception(e)


# ---- user management ----

@router.get("/users", response_model=AdminUserPage)
def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    search: Optional[str] = None,
    is_admin: Optional[bool] = None,
    is_active: Optional[bool] = None,
    moderation_service: ModerationService = Depends(get_moderation_service)
):
    try:
        users, total = moderation_service.list_users(
            page,
            limit,
            search=search,
            is_admin=is_admin,
            is_active=is_active
        )
        return {
            "users": [AdminUserResponse.model_validate(u) for u in users],
            "pagination": paginate(page, limit, total)
        }
    except RatingServiceException as e:
        raise to_http_exception(e)


@router.get("/users/{user_id}", response_model=AdminUserDetail)
def get_user(
    user_id: int,
    moderation_service: ModerationService = Depends(get_moderation_service)
):
    try:
        details = moderation_service.get_user_details(user_id)
        return {
            "user": AdminUserResponse.model_validate(details["user"]),
            "stats": details["stats"]
        }
    except RatingServiceException as e:
        raise to_http_exception(e)


@router.put("/users/{user_id}/role", response_model=AdminUserResponse)
def set_user_role(
    user_id: int,
    role: UserRoleUpdate,
    current_user: User = Depends(get_current_admin_user),
    moderation_service: ModerationService = Depends(get_moderation_service)
):
    try:
        return moderation_service.set_user_role(user_id, role.is_admin, admin_id=current_user.id)
    except RatingServiceException as e:
        raise to_http_exception(e)


@router.put("/users/{user_id}/status", response_model=AdminUserResponse)
def set_user_status(
    user_id: int,
    user_status: UserStatusUpdate,
    current_user: User = Depends(get_current_admin_user),
    moderation_service: ModerationService = Depends(get_moderation_service)
):
    try:
        return moderation_service.set_user_status(user_id, user_status.is_active, admin_id=current_user.id)
    except RatingServiceException as e:
        raise to_http_exception(e)


@router.delete("/users/{user_id}")
def delete_user(
    user_id: int,
    current_user: User = Depends(get_current_admin_user),
    moderation_service: ModerationService = Depends(get_moderation_service)
):
    try:
        moderation_service.admin_delete_user(user_id, admin_id=current_user.id)
        return {"status": "success", "message": "User deleted successfully"}
    except RatingServiceException as e:
        raise to_http_exception(e)
