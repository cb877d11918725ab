from typing import List, Optional
from fastapi import APIRouter, Depends, Query

from app.config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from app.domain.dto import MoviePage, MovieResponse, MovieStatsResponse
from app.domain.models import Movie
from app.controllers.errors import to_http_exception, paginate
from app.service.dependencies import get_movie_service
from app.service.movie_service import MovieService
from app.exceptions.rating import RatingServiceException


router = APIRouter(
    prefix="/movies",
    tags=["Movies"],
    responses={404: {"description": "Not found"}}
)


@router.get("", response_model=MoviePage)
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
    try:
        movies, total = movie_service.list_movies(
            page,
            limit,
            sort,
            search=search,
            genre=genre,
            year=year,
            country=country
        )
    except RatingServiceException as e:
        raise to_http_exception(e)

    return {
        "movies": [MovieResponse.model_validate(m) for m in movies],
        "pagination": paginate(page, limit, total)
    }


@router.get("/top-rated", response_model=List[MovieResponse])
def get_top_rated(
    limit: int = Query(10, ge=1, le=MAX_PAGE_SIZE),
    movie_service: MovieService = Depends(get_movie_service)
):
    try:
        return movie_service.get_top_rated(limit)
    except RatingServiceException as e:
        raise to_http_exception(e)


@router.get("/trending", response_model=List[MovieResponse])
def get_trending(
    limit: int = Query(10, ge=1, le=MAX_PAGE_SIZE),
    movie_service: MovieService = Depends(get_movie_service)
):
    try:
        return movie_service.get_trending(limit)
    except RatingServiceException as e:
        raise to_http_exception(e)


@router.get("/{movie_id}", response_model=MovieResponse)
def get_movie(
    movie_id: int,
    movie_service: MovieService = Depends(get_movie_service)
):
    try:
        movie: Movie = movie_service.get_movie(movie_id, count_view=True)
    except RatingServiceException as e:
        raise to_http_exception(e)

    return movie


@router.get("/{movie_id}/stats", response_model=MovieStatsResponse)
def get_movie_stats(
    movie_id: int,
    movie_service: MovieService = Depends(get_movie_service)
):
    try:
        movie: Movie = movie_service.get_movie(movie_id)
    except RatingServiceException as e:
        raise to_http_exception(e)

    return MovieStatsResponse(
        movie_id=movie.id,
        average_rating=movie.average_rating,
        total_ratings=movie.total_ratings,
        total_reviews=movie.total_reviews
    )
