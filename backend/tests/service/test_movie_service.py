import pytest
from unittest.mock import Mock

from app.service.movie_service import MovieService
from app.exceptions.rating import (
    RatingServiceException,
    ResourceNotFoundException,
    InvalidRequestException
)
from app.exceptions.repository import RepositoryOperationException


@pytest.fixture
def movie_data():
    return {
        "title": "Heat",
        "description": "A group of professional bank robbers",
        "release_year": 1995,
        "duration": 170,
        "country": "USA",
        "poster_url": "https://img.example.com/heat.jpg",
        "genres": ["Crime", "Thriller"]
    }


def test_create_movie(services, movie_data):
    movie = services["movie"].create_movie(movie_data, created_by=None)

    assert movie.id is not None
    assert movie.genres == ["Crime", "Thriller"]
    assert (movie.average_rating, movie.total_ratings, movie.total_reviews) == (0.0, 0, 0)


def test_create_movie_ignores_supplied_stats(services, movie_data):
    movie_data.update(average_rating=9.9, total_ratings=1000)
    movie = services["movie"].create_movie(movie_data)

    assert (movie.average_rating, movie.total_ratings) == (0.0, 0)


def test_create_movie_missing_field(services, movie_data):
    del movie_data["country"]
    with pytest.raises(InvalidRequestException, match="Invalid movie data"):
        services["movie"].create_movie(movie_data)


def test_create_movie_repository_failure(movie_data):
    movie_repo = Mock()
    movie_repo.create.side_effect = RepositoryOperationException("boom")
    session = Mock()

    with pytest.raises(RatingServiceException, match="Failed to create movie"):
        MovieService(movie_repo, session).create_movie(movie_data)

    session.rollback.assert_called_once()


def test_update_movie_cannot_touch_stats(services, catalog):
    services["rating"].submit_rating(1, 1, 9)

    movie = services["movie"].update_movie(1, {
        "title": "The Matrix Reloaded",
        "average_rating": 1.0,
        "total_ratings": 500,
        "total_reviews": 42
    })

    assert movie.title == "The Matrix Reloaded"
    assert (movie.average_rating, movie.total_ratings, movie.total_reviews) == (9.0, 1, 0)


def test_update_missing_movie(services, catalog):
    with pytest.raises(ResourceNotFoundException):
        services["movie"].update_movie(999, {"title": "Nope"})


def test_get_movie_counts_views(services, catalog):
    services["movie"].get_movie(1, count_view=True)
    movie = services["movie"].get_movie(1, count_view=True)

    assert movie.views == 2
    assert services["movie"].get_movie(1).views == 2


def test_get_inactive_movie(services, catalog):
    services["movie"].update_movie(2, {"is_active": False})

    with pytest.raises(ResourceNotFoundException):
        services["movie"].get_movie(2)
    assert services["movie"].get_movie(2, include_inactive=True).id == 2


def test_list_and_top_rated(services, catalog):
    services["rating"].submit_rating(1, 2, 9)
    services["rating"].submit_rating(1, 1, 5)

    movies, total = services["movie"].list_movies(page=1, limit=10, sort="-average_rating")
    assert total == 2
    assert [m.id for m in movies] == [2, 1]

    assert [m.id for m in services["movie"].get_top_rated()] == [2, 1]
    assert len(services["movie"].get_trending(limit=1)) == 1
