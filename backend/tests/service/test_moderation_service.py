import pytest
from datetime import datetime, timedelta
from unittest.mock import Mock

from app.db.models import RatingORM, ReviewORM, ReviewVoteORM
from app.service.moderation_service import ModerationService
from app.domain.models import Rating, Review, User
from app.exceptions.rating import RatingServiceException, ResourceNotFoundException, InvalidRequestException
from app.exceptions.repository import RepositoryOperationException

from conftest import make_user


def test_set_visibility_missing_review():
    review_repo = Mock()
    review_repo.set_hidden.return_value = None
    service = ModerationService(review_repo, Mock(), Mock(), Mock(), Mock(), Mock())

    with pytest.raises(ResourceNotFoundException, match="Review with ID 4 not found"):
        service.set_visibility(4, True)


def test_admin_delete_review_bypasses_ownership():
    review_service = Mock()
    review_service.delete_review.return_value = True
    service = ModerationService(Mock(), Mock(), Mock(), Mock(), review_service, Mock())

    assert service.admin_delete_review(7, admin_id=99) is True
    review_service.delete_review.assert_called_once_with(7, user_id=99, is_admin=True)


def test_dashboard_wraps_repository_errors():
    user_repo = Mock()
    user_repo.count.side_effect = RepositoryOperationException("connection lost")
    service = ModerationService(Mock(), Mock(), Mock(), user_repo, Mock(), Mock())

    with pytest.raises(RatingServiceException, match="Failed to build dashboard stats"):
        service.get_dashboard_stats()


def test_admin_cannot_delete_themselves():
    user_repo = Mock()
    service = ModerationService(Mock(), Mock(), Mock(), user_repo, Mock(), Mock())

    with pytest.raises(InvalidRequestException, match="You cannot delete your own account"):
        service.admin_delete_user(99, admin_id=99)

    user_repo.delete.assert_not_called()


def test_admin_delete_user_locks_then_recomputes_each_movie():
    review_repo, rating_repo, user_repo, review_service, session = Mock(), Mock(), Mock(), Mock(), Mock()

    # Setup mocks
    user_repo.get_by_id.return_value = User("alice", "alice@test.com", "hashed_pw", id=1)
    user_repo.delete.return_value = True
    rating_repo.get_user_ratings.return_value = [Rating(1, 3, 7), Rating(1, 1, 2)]
    review_repo.get_by_user_id.return_value = [Review(id=5, user_id=1, movie_id=2, rating=6, content="Fine")]
    review_service.vote_repo.get_by_user_id.return_value = []
    aggregation_service = review_service.aggregation_service
    service = ModerationService(review_repo, rating_repo, Mock(), user_repo, review_service, session)

    # Test
    assert service.admin_delete_user(1, admin_id=99) is True

    # Verify
    assert [c.args[0] for c in aggregation_service.lock_movie.call_args_list] == [1, 2, 3]
    assert [c.args[0] for c in aggregation_service.recompute.call_args_list] == [1, 2, 3]
    user_repo.delete.assert_called_once_with(1)
    session.commit.assert_called_once()


def test_set_role_on_self_rejected():
    service = ModerationService(Mock(), Mock(), Mock(), Mock(), Mock(), Mock())

    with pytest.raises(InvalidRequestException):
        service.set_user_role(99, False, admin_id=99)
    with pytest.raises(InvalidRequestException):
        service.set_user_status(99, False, admin_id=99)


# ---- against a real database ----

def test_hidden_review_leaves_listing_but_stays_counted(services, catalog):
    review = services["review"].submit_review(2, 1, 4, "Meh")
    services["review"].submit_review(3, 1, 8, "Good")

    hidden = services["moderation"].set_visibility(review.id, True)
    assert hidden.is_hidden is True

    reviews, total = services["review"].get_movie_reviews(1)
    assert total == 1
    assert review.id not in [r.id for r in reviews]
    assert services["repos"]["movie"].get_by_id(1).total_reviews == 2

    hidden_reviews, _ = services["moderation"].list_reviews(is_hidden=True)
    assert [r.id for r in hidden_reviews] == [review.id]

    services["moderation"].set_visibility(review.id, False)
    _, total = services["review"].get_movie_reviews(1)
    assert total == 2


def test_admin_deletes_someone_elses_review(services, catalog):
    """totalReviews drops by one, the reviewer's rating stays."""
    services["rating"].submit_rating(1, 1, 6)
    review = services["review"].submit_review(2, 1, 10, "Masterpiece")
    before = services["repos"]["movie"].get_by_id(1)
    assert (before.average_rating, before.total_ratings, before.total_reviews) == (8.0, 2, 1)

    services["moderation"].admin_delete_review(review.id, admin_id=99)

    after = services["repos"]["movie"].get_by_id(1)
    assert after.total_reviews == 0
    assert (after.average_rating, after.total_ratings) == (8.0, 2)
    assert services["repos"]["review"].get_by_id(review.id) is None


def test_admin_delete_missing_review(services, catalog):
    with pytest.raises(ResourceNotFoundException):
        services["moderation"].admin_delete_review(999, admin_id=99)


def test_admin_delete_movie_cascades(services, catalog, session):
    review = services["review"].submit_review(1, 1, 9, "Mind bending")
    services["review"].vote_on_review(review.id, 2, "helpful")
    services["rating"].submit_rating(3, 1, 5)

    assert services["moderation"].admin_delete_movie(1) is True

    assert services["repos"]["movie"].get_by_id(1) is None
    assert session.query(RatingORM).filter(RatingORM.movie_id == 1).count() == 0
    assert session.query(ReviewORM).filter(ReviewORM.movie_id == 1).count() == 0
    assert session.query(ReviewVoteORM).count() == 0


def test_admin_delete_missing_movie(services, catalog):
    with pytest.raises(ResourceNotFoundException, match="Movie with ID 999 not found"):
        services["moderation"].admin_delete_movie(999)


def test_dashboard_stats(services, catalog, session):
    now = datetime.now()
    session.add(make_user(4, "veteran", created_at=now - timedelta(days=200)))
    session.commit()

    services["rating"].submit_rating(1, 1, 8)
    services["rating"].submit_rating(2, 1, 9)
    services["review"].submit_review(3, 2, 6, "Fine")

    # a rating from before the chart window
    old = now - timedelta(days=60)
    session.add(RatingORM(user_id=4, movie_id=2, score=4, created_at=old, updated_at=old))
    session.commit()

    dashboard = services["moderation"].get_dashboard_stats(now=now)

    stats = dashboard["stats"]
    assert stats["total_users"] == 5
    assert stats["new_users"] == 4
    assert stats["old_users"] == 1
    assert stats["total_movies"] == 2
    assert stats["total_reviews"] == 1
    assert stats["total_ratings"] == 4

    assert dashboard["chart_data"] == [{"date": now.strftime("%b %d"), "value": 3}]
    assert len(dashboard["recent_users"]) == 5
    # neither movie has the five ratings needed for the dashboard list
    assert dashboard["top_rated_movies"] == []


# ---- user management ----

def test_deleting_user_recomputes_stats(services, catalog):
    """Alice rated 2 and Bob rated 10. Without Alice the movie stands at 10.0 from one rating."""
    services["rating"].submit_rating(1, 1, 2)
    services["rating"].submit_rating(2, 1, 10)
    assert services["repos"]["movie"].get_by_id(1).average_rating == 6.0

    assert services["moderation"].admin_delete_user(1, admin_id=99) is True

    movie = services["repos"]["movie"].get_by_id(1)
    assert (movie.average_rating, movie.total_ratings, movie.total_reviews) == (10.0, 1, 0)
    assert services["repos"]["user"].get_by_id(1) is None


def test_deleting_user_removes_reviews_and_their_votes(services, catalog, session):
    """Alice's review goes, and her vote on Bob's review is taken off Bob's counters."""
    alice_review = services["review"].submit_review(1, 1, 9, "Mind bending")
    bob_review = services["review"].submit_review(2, 2, 6, "Long")
    services["review"].vote_on_review(alice_review.id, 3, "helpful")
    services["review"].vote_on_review(bob_review.id, 1, "unhelpful")
    services["review"].vote_on_review(bob_review.id, 3, "helpful")

    services["moderation"].admin_delete_user(1, admin_id=99)

    matrix = services["repos"]["movie"].get_by_id(1)
    assert (matrix.average_rating, matrix.total_ratings, matrix.total_reviews) == (0.0, 0, 0)
    titanic = services["repos"]["movie"].get_by_id(2)
    assert (titanic.average_rating, titanic.total_ratings, titanic.total_reviews) == (6.0, 1, 1)

    assert services["repos"]["review"].get_by_id(alice_review.id) is None
    stored = services["repos"]["review"].get_by_id(bob_review.id)
    assert (stored.helpful_votes, stored.unhelpful_votes) == (1, 0)
    assert session.query(ReviewVoteORM).count() == 1


def test_delete_missing_user(services, catalog):
    with pytest.raises(ResourceNotFoundException, match="User with ID 404 not found"):
        services["moderation"].admin_delete_user(404, admin_id=99)


def test_list_users_filters(services, catalog):
    users, total = services["moderation"].list_users(search="CAR")
    assert total == 1
    assert users[0].username == "carol"

    admins, total = services["moderation"].list_users(is_admin=True)
    assert (total, admins[0].id) == (1, 99)

    _, total = services["moderation"].list_users(page=1, limit=2)
    assert total == 4


def test_user_details_count_activity(services, catalog):
    services["rating"].submit_rating(2, 1, 8)
    services["review"].submit_review(2, 2, 7, "Solid")

    details = services["moderation"].get_user_details(2)

    assert details["user"].username == "bob"
    assert details["stats"] == {"total_ratings": 2, "total_reviews": 1}


def test_set_role_and_status(services, catalog):
    promoted = services["moderation"].set_user_role(2, True, admin_id=99)
    assert promoted.is_admin is True

    disabled = services["moderation"].set_user_status(3, False, admin_id=99)
    assert disabled.is_active is False

    inactive, total = services["moderation"].list_users(is_active=False)
    assert (total, inactive[0].id) == (1, 3)


def test_set_role_missing_user(services, catalog):
    with pytest.raises(ResourceNotFoundException):
        services["moderation"].set_user_role(404, True, admin_id=99)
