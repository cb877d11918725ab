import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.db.database import get_db
from app.auth.rate_limit import rate_limiter
from app.service.auth_service import AuthService


def auth_header(user_id: int) -> dict:
    token = AuthService(None, None).create_access_token({"sub": str(user_id)})
    return {"Authorization": f"Bearer {token}"}


ALICE, BOB, CAROL, ADMIN = (auth_header(i) for i in (1, 2, 3, 99))


@pytest.fixture
def client(session, catalog):
    def override_get_db():
        yield session

    app.dependency_overrides[get_db] = override_get_db
    rate_limiter.reset()
    yield TestClient(app)
    app.dependency_overrides.clear()
    rate_limiter.reset()


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}


def test_rate_and_read_back(client):
    response = client.post("/reviews/rating", json={"movie_id": 1, "score": 6}, headers=ALICE)
    assert response.status_code == 201

    response = client.post("/reviews/rating", json={"movie_id": 1, "score": 8}, headers=ALICE)
    assert response.status_code == 201
    assert response.json()["score"] == 8

    assert client.get("/reviews/rating/1", headers=ALICE).json()["score"] == 8
    stats = client.get("/movies/1/stats").json()
    assert stats == {"movie_id": 1, "average_rating": 8.0, "total_ratings": 1, "total_reviews": 0}


def test_rating_requires_login(client):
    response = client.post("/reviews/rating", json={"movie_id": 1, "score": 6})
    assert response.status_code == 401


@pytest.mark.parametrize("score", [0, 11, 7.5, "8"])
def test_invalid_score_is_rejected(client, score):
    response = client.post("/reviews/rating", json={"movie_id": 1, "score": score}, headers=ALICE)
    assert response.status_code == 422
    assert client.get("/movies/1/stats").json()["total_ratings"] == 0


def test_rating_unknown_movie(client):
    response = client.post("/reviews/rating", json={"movie_id": 999, "score": 6}, headers=ALICE)
    assert response.status_code == 404
    assert response.json() == {"detail": "Movie with ID 999 not found", "code": "not_found"}
    assert response.headers["X-Error-Code"] == "not_found"


def test_delete_rating(client):
    client.post("/reviews/rating", json={"movie_id": 2, "score": 4}, headers=BOB)

    assert client.delete("/reviews/rating/2", headers=BOB).status_code == 200
    assert client.get("/reviews/rating/2", headers=BOB).status_code == 404
    assert client.delete("/reviews/rating/2", headers=BOB).status_code == 404


def test_review_conflict(client):
    body = {"movie_id": 1, "rating": 7, "content": "Great film"}
    first = client.post("/reviews", json=body, headers=ALICE)
    assert first.status_code == 201
    assert first.json()["username"] == "alice"

    second = client.post("/reviews", json=body, headers=ALICE)
    assert second.status_code == 409
    assert second.json() == {"detail": "User 1 has already reviewed movie 1", "code": "conflict"}


def test_blank_review_is_rejected(client):
    response = client.post("/reviews", json={"movie_id": 1, "rating": 7, "content": "   "}, headers=ALICE)
    assert response.status_code == 422


def test_edit_and_delete_need_ownership(client):
    review_id = client.post(
        "/reviews", json={"movie_id": 1, "rating": 7, "content": "Great film"}, headers=ALICE
    ).json()["id"]

    response = client.put(f"/reviews/{review_id}", json={"rating": 1, "content": "hacked"}, headers=BOB)
    assert response.status_code == 403
    assert client.delete(f"/reviews/{review_id}", headers=BOB).status_code == 403

    response = client.put(f"/reviews/{review_id}", json={"rating": 9, "content": "Even better"}, headers=ALICE)
    assert response.status_code == 200
    assert response.json()["is_edited"] is True
    assert client.get("/movies/1/stats").json()["average_rating"] == 9.0


def test_voting(client):
    review_id = client.post(
        "/reviews", json={"movie_id": 1, "rating": 7, "content": "Great film"}, headers=ALICE
    ).json()["id"]

    tally = client.post(f"/reviews/{review_id}/vote", json={"vote_type": "helpful"}, headers=BOB).json()
    assert (tally["helpful_votes"], tally["unhelpful_votes"]) == (1, 0)

    tally = client.post(f"/reviews/{review_id}/vote", json={"vote_type": "unhelpful"}, headers=BOB).json()
    assert (tally["helpful_votes"], tally["unhelpful_votes"]) == (0, 1)

    response = client.post(f"/reviews/{review_id}/vote", json={"vote_type": "funny"}, headers=BOB)
    assert response.status_code == 422


def test_public_listing_and_moderation(client):
    first = client.post("/reviews", json={"movie_id": 1, "rating": 7, "content": "Great"}, headers=ALICE).json()
    client.post("/reviews", json={"movie_id": 1, "rating": 2, "content": "buy cheap pills"}, headers=BOB)
    spam = client.get("/admin/reviews?movie_id=1", headers=ADMIN).json()["reviews"]
    spam_id = next(r["id"] for r in spam if r["user_id"] == 2)

    assert client.put(f"/admin/reviews/{spam_id}/visibility", json={"is_hidden": True}, headers=ALICE).status_code == 403
    response = client.put(f"/admin/reviews/{spam_id}/visibility", json={"is_hidden": True}, headers=ADMIN)
    assert response.status_code == 200
    assert response.json()["is_hidden"] is True

    page = client.get("/reviews/movie/1").json()
    assert [r["id"] for r in page["reviews"]] == [first["id"]]
    assert page["pagination"] == {"page": 1, "limit": 10, "total": 1, "pages": 1}
    assert client.get("/movies/1/stats").json()["total_reviews"] == 2


def test_admin_delete_review(client):
    review_id = client.post(
        "/reviews", json={"movie_id": 2, "rating": 5, "content": "Too long"}, headers=CAROL
    ).json()["id"]

    assert client.delete(f"/admin/reviews/{review_id}", headers=ADMIN).status_code == 200

    stats = client.get("/movies/2/stats").json()
    assert (stats["total_reviews"], stats["total_ratings"], stats["average_rating"]) == (0, 1, 5.0)


def test_admin_movie_management(client):
    body = {
        "title": "Heat",
        "description": "A group of professional bank robbers",
        "release_year": 1995,
        "duration": 170,
        "country": "USA",
        "poster_url": "https://img.example.com/heat.jpg",
        "genres": ["Crime"]
    }
    assert client.post("/admin/movies", json=body, headers=ALICE).status_code == 403

    created = client.post("/admin/movies", json=body, headers=ADMIN)
    assert created.status_code == 201
    movie_id = created.json()["id"]

    updated = client.put(
        f"/admin/movies/{movie_id}",
        json={"duration": 171, "average_rating": 10},
        headers=ADMIN
    ).json()
    assert updated["duration"] == 171
    assert updated["average_rating"] == 0.0

    assert client.delete(f"/admin/movies/{movie_id}", headers=ADMIN).status_code == 200
    assert client.get(f"/movies/{movie_id}").status_code == 404


def test_recompute_stats_endpoint(client):
    client.post("/reviews/rating", json={"movie_id": 1, "score": 6}, headers=ALICE)

    response = client.post("/admin/movies/recompute-stats", headers=ADMIN)
    assert response.status_code == 200
    assert response.json() == {"movies_corrected": 0}


def test_dashboard_requires_admin(client):
    assert client.get("/admin/stats", headers=BOB).status_code == 403

    response = client.get("/admin/stats", headers=ADMIN)
    assert response.status_code == 200
    assert response.json()["stats"]["total_movies"] == 2


def test_movie_catalog(client):
    page = client.get("/movies?limit=1&sort=title").json()
    assert page["pagination"]["total"] == 2
    assert page["movies"][0]["title"] == "The Matrix"

    client.get("/movies/2")
    assert client.get("/movies/trending").json()[0]["id"] == 2


def test_user_ratings(client):
    client.post("/reviews/rating", json={"movie_id": 1, "score": 6}, headers=CAROL)
    client.post("/reviews/rating", json={"movie_id": 2, "score": 9}, headers=CAROL)

    ratings = client.get("/users/ratings", headers=CAROL).json()
    assert sorted(r["score"] for r in ratings) == [6, 9]
    assert client.get("/users/me", headers=CAROL).json()["username"] == "carol"


def test_write_rate_limit(client, monkeypatch):
    monkeypatch.setitem(rate_limiter.policies, "write", {"requests": 2, "window": 3600})

    for score in (5, 6):
        assert client.post("/reviews/rating", json={"movie_id": 1, "score": score}, headers=ALICE).status_code == 201

    response = client.post("/reviews/rating", json={"movie_id": 1, "score": 7}, headers=ALICE)
    assert response.status_code == 429
    assert "Retry-After" in response.headers

    # limits are per user
    assert client.post("/reviews/rating", json={"movie_id": 1, "score": 7}, headers=BOB).status_code == 201


def test_forbidden_edit_body_carries_code(client):
    review_id = client.post(
        "/reviews", json={"movie_id": 2, "rating": 6, "content": "Long"}, headers=ALICE
    ).json()["id"]

    response = client.put(f"/reviews/{review_id}", json={"rating": 1, "content": "mine now"}, headers=BOB)
    assert response.status_code == 403
    assert response.json() == {"detail": "You can only edit your own reviews", "code": "forbidden"}


def test_admin_deletes_user_and_stats_follow(client):
    client.post("/reviews/rating", json={"movie_id": 1, "score": 2}, headers=ALICE)
    client.post("/reviews/rating", json={"movie_id": 1, "score": 10}, headers=BOB)
    assert client.get("/movies/1/stats").json()["average_rating"] == 6.0

    assert client.delete("/admin/users/1", headers=BOB).status_code == 403

    response = client.delete("/admin/users/1", headers=ADMIN)
    assert response.status_code == 200

    stats = client.get("/movies/1/stats").json()
    assert (stats["average_rating"], stats["total_ratings"]) == (10.0, 1)
    assert client.get("/admin/users/1", headers=ADMIN).status_code == 404


def test_admin_cannot_delete_own_account(client):
    response = client.delete("/admin/users/99", headers=ADMIN)
    assert response.status_code == 400
    assert response.json() == {"detail": "You cannot delete your own account", "code": "validation_error"}


def test_admin_user_management(client):
    page = client.get("/admin/users?search=bo", headers=ADMIN).json()
    assert [u["username"] for u in page["users"]] == ["bob"]
    assert page["pagination"]["total"] == 1
    assert "hashed_password" not in page["users"][0]

    client.post("/reviews/rating", json={"movie_id": 2, "score": 7}, headers=BOB)
    detail = client.get("/admin/users/2", headers=ADMIN).json()
    assert detail["user"]["is_admin"] is False
    assert detail["stats"] == {"total_ratings": 1, "total_reviews": 0}

    promoted = client.put("/admin/users/2/role", json={"is_admin": True}, headers=ADMIN)
    assert promoted.status_code == 200
    assert promoted.json()["is_admin"] is True
    # bob can now reach admin routes
    assert client.get("/admin/stats", headers=BOB).status_code == 200

    disabled = client.put("/admin/users/3/status", json={"is_active": False}, headers=ADMIN)
    assert disabled.json()["is_active"] is False
    assert client.get("/users/me", headers=CAROL).status_code == 400

    assert client.put("/admin/users/99/role", json={"is_admin": False}, headers=ADMIN).status_code == 400
    assert client.put("/admin/users/404/status", json={"is_active": True}, headers=ADMIN).status_code == 404


def test_admin_movie_listing_includes_inactive(client):
    client.put("/admin/movies/2", json={"is_active": False}, headers=ADMIN)

    public = client.get("/movies").json()
    assert [m["id"] for m in public["movies"]] == [1]
    assert client.get("/movies/2").status_code == 404

    listing = client.get("/admin/movies", headers=ADMIN).json()
    assert sorted(m["id"] for m in listing["movies"]) == [1, 2]
    assert client.get("/admin/movies/2", headers=ADMIN).json()["is_active"] is False
    assert client.get("/admin/movies", headers=BOB).status_code == 403


def test_movie_filters(client):
    by_year = client.get("/movies?year=1997").json()
    assert [m["title"] for m in by_year["movies"]] == ["Titanic"]

    assert client.get("/movies?genre=drama").json()["pagination"]["total"] == 2
    assert client.get("/movies?genre=Dram").json()["pagination"]["total"] == 0
    assert client.get("/movies?country=usa&year=1999").json()["movies"][0]["title"] == "The Matrix"
    assert client.get("/movies?country=France").json()["movies"] == []
