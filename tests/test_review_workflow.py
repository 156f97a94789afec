import pytest

from moviecatalog.models.review import Review
from moviecatalog.services.review_service import ReviewService
from moviecatalog.utils.errors import Conflict, Forbidden, InvalidArgument, NotFound
from factories import create_movie, create_review, create_user, login


@pytest.fixture
def movie(db_session):
    return create_movie(db_session)


# ==================== SERVICE ====================

def test_create_review_is_approved_and_persisted(db_session, movie, user):
    review = ReviewService.create_review(db_session, movie.id, user.id, 9, "Great")

    assert review.id is not None
    assert review.is_approved is True
    assert review.username == user.username
    assert review.movie_title == "Inception"


def test_second_review_for_same_movie_conflicts(db_session, movie, user):
    ReviewService.create_review(db_session, movie.id, user.id, 7, "first")

    with pytest.raises(Conflict):
        ReviewService.create_review(db_session, movie.id, user.id, 3, "something else")
    assert db_session.query(Review).count() == 1


def test_unique_constraint_backs_up_the_existence_check(db_session, movie, user, monkeypatch):
    ReviewService.create_review(db_session, movie.id, user.id, 7)

    # Simulate the race: the existence check sees nothing, the insert still fails
    class EmptyQuery:
        def filter(self, *args):
            return self

        def first(self):
            return None

    original_query = db_session.query
    monkeypatch.setattr(
        db_session, "query",
        lambda *entities: EmptyQuery() if entities == (Review,) else original_query(*entities)
    )

    with pytest.raises(Conflict):
        ReviewService.create_review(db_session, movie.id, user.id, 5)


def test_review_for_missing_movie_is_not_found(db_session, user):
    with pytest.raises(NotFound):
        ReviewService.create_review(db_session, 999, user.id, 5)


@pytest.mark.parametrize("rating", [0, 11, -1, True])
def test_out_of_range_rating_is_rejected(db_session, movie, user, rating):
    with pytest.raises(InvalidArgument):
        ReviewService.create_review(db_session, movie.id, user.id, rating)


@pytest.mark.parametrize("rating", [1, 10])
def test_boundary_ratings_are_accepted(db_session, movie, user, rating):
    review = ReviewService.create_review(db_session, movie.id, user.id, rating)

    updated = ReviewService.update_review(db_session, review.id, user.id, rating, "edited")
    assert updated.rating == rating


def test_update_rejects_invalid_rating(db_session, movie, user):
    review = create_review(db_session, movie, user)

    with pytest.raises(InvalidArgument):
        ReviewService.update_review(db_session, review.id, user.id, 11)


def test_update_by_owner_sets_updated_at(db_session, movie, user):
    review = create_review(db_session, movie, user, rating=4)

    updated = ReviewService.update_review(db_session, review.id, user.id, 6, "changed my mind")

    assert updated.rating == 6
    assert updated.comment == "changed my mind"
    assert updated.updated_at is not None


def test_only_the_owner_may_update_or_delete(db_session, movie, user, admin):
    review = create_review(db_session, movie, user)
    stranger = create_user(db_session, username="stranger")

    for other in (stranger, admin):
        with pytest.raises(Forbidden):
            ReviewService.update_review(db_session, review.id, other.id, 5, "valid payload")
        with pytest.raises(Forbidden):
            ReviewService.delete_review(db_session, review.id, other.id)

    ReviewService.delete_review(db_session, review.id, user.id)
    assert db_session.query(Review).count() == 0


def test_missing_review_is_not_found(db_session, user):
    with pytest.raises(NotFound):
        ReviewService.update_review(db_session, 404, user.id, 5)
    with pytest.raises(NotFound):
        ReviewService.approve_review(db_session, 404)
    with pytest.raises(NotFound):
        ReviewService.reject_review(db_session, 404)


def test_approve_and_reject(db_session, movie, user):
    stranger = create_user(db_session, username="stranger")
    pending = create_review(db_session, movie, user, is_approved=False)
    doomed = create_review(db_session, movie, stranger, is_approved=False)

    assert ReviewService.approve_review(db_session, pending.id).is_approved is True

    ReviewService.reject_review(db_session, doomed.id)
    assert db_session.get(Review, doomed.id) is None


def test_aggregates_ignore_unapproved_reviews(db_session, movie, user):
    stranger = create_user(db_session, username="stranger")
    create_review(db_session, movie, user, rating=8, is_approved=True)
    create_review(db_session, movie, stranger, rating=2, is_approved=False)

    assert ReviewService.get_average_rating(db_session, movie.id) == 8.0
    assert ReviewService.get_review_count(db_session, movie.id) == 1


def test_aggregates_are_zero_without_reviews(db_session, movie):
    assert ReviewService.get_average_rating(db_session, movie.id) == 0.0
    assert ReviewService.get_review_count(db_session, movie.id) == 0


def test_average_is_rounded_to_one_decimal(db_session, movie):
    for name, rating in (("a_user", 7), ("b_user", 8), ("c_user", 8)):
        create_review(db_session, movie, create_user(db_session, username=name), rating=rating)

    assert ReviewService.get_average_rating(db_session, movie.id) == 7.7


# ==================== HTTP ====================

def test_posting_a_review_requires_a_session(client, db_session, movie):
    response = client.post("/api/reviews", json={"movie_id": movie.id, "rating": 8})

    assert response.status_code == 401


def test_review_lifecycle_over_http(client, db_session, movie, user):
    login(client, user)

    created = client.post("/api/reviews", json={"movie_id": movie.id, "rating": 8, "comment": "<b>Loved</b> it"})
    assert created.status_code == 201
    body = created.json()["data"]
    assert body["username"] == "viewer"
    assert body["comment"] == "<b>Loved</b> it"

    duplicate = client.post("/api/reviews", json={"movie_id": movie.id, "rating": 2})
    assert duplicate.status_code == 409
    assert duplicate.json()["success"] is False

    listing = client.get(f"/api/reviews/movie/{movie.id}").json()["data"]
    assert listing["average_rating"] == 8.0
    assert listing["review_count"] == 1

    updated = client.put(f"/api/reviews/{body['id']}", json={"rating": 6, "comment": "meh"})
    assert updated.json()["data"]["rating"] == 6

    assert [r["id"] for r in client.get("/api/reviews/my").json()["data"]] == [body["id"]]
    assert client.delete(f"/api/reviews/{body['id']}").status_code == 200


def test_script_in_comment_is_rejected(client, movie, user):
    login(client, user)

    response = client.post(
        "/api/reviews",
        json={"movie_id": movie.id, "rating": 5, "comment": "<script>alert(1)</script>"}
    )

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_rating_out_of_range_over_http_is_400(client, movie, user):
    login(client, user)

    response = client.post("/api/reviews", json={"movie_id": movie.id, "rating": 11})

    assert response.status_code == 400
    assert "Rating must be between 1 and 10" in response.json()["error"]


@pytest.mark.parametrize("rating", [True, "7", 7.0])
def test_non_integer_rating_over_http_is_400(client, db_session, movie, user, rating):
    login(client, user)

    created = client.post("/api/reviews", json={"movie_id": movie.id, "rating": rating})
    assert created.status_code == 400
    assert created.json()["success"] is False
    assert db_session.query(Review).count() == 0

    review = create_review(db_session, movie, user, rating=4)
    updated = client.put(f"/api/reviews/{review.id}", json={"rating": rating})
    assert updated.status_code == 400
    assert updated.json()["success"] is False
    db_session.refresh(review)
    assert review.rating == 4


def test_moderation_endpoints_are_admin_only(client, db_session, movie, user, admin):
    review = create_review(db_session, movie, user, is_approved=False)

    login(client, user)
    assert client.patch(f"/api/reviews/{review.id}/approve").status_code == 403

    login(client, admin)
    pending = client.get("/api/reviews/pending").json()["data"]
    assert [r["id"] for r in pending] == [review.id]

    approved = client.patch(f"/api/reviews/{review.id}/approve")
    assert approved.json()["data"]["is_approved"] is True

    assert client.patch(f"/api/reviews/{review.id}/reject").status_code == 200
    assert client.get(f"/api/reviews/{review.id}").status_code == 404
