import pytest
from sqlalchemy.exc import OperationalError

from moviecatalog.models.user import Role
from moviecatalog.services.auth_service import AuthService
from moviecatalog.services.movie_service import MovieService
from moviecatalog.utils.errors import Conflict, Forbidden, InvalidArgument, Unauthenticated
from moviecatalog.utils.security import verify_password
from factories import DEFAULT_PASSWORD, create_user, login


def register(client, username="alex", email="alex@example.com", password="Password1"):
    return client.post("/api/auth/register", json={"username": username, "email": email, "password": password})


def test_register_then_login_resolves_to_the_new_user(client):
    registered = register(client)
    assert registered.status_code == 201
    user_id = registered.json()["data"]["id"]

    client.cookies.clear()
    response = client.post("/api/auth/login", json={"email": "alex@example.com", "password": "Password1"})

    assert response.status_code == 200
    token = response.cookies.get("sessionId")
    principal = client.app.state.session_store.resolve(token)
    assert principal.user_id == user_id
    assert principal.role == Role.USER

    me = client.get("/api/auth/me").json()
    assert me["success"] is True
    assert me["data"]["username"] == "alex"
    assert "password_hash" not in me["data"]


def test_register_sets_an_http_only_cookie(client):
    response = register(client)

    cookie = response.headers["set-cookie"]
    assert cookie.startswith("sessionId=")
    assert "HttpOnly" in cookie
    assert client.get("/api/auth/me").status_code == 200


@pytest.mark.parametrize("username, email, password", [
    ("al", "alex@example.com", "Password1"),
    ("alex!", "alex@example.com", "Password1"),
    ("alex", "alex@example.com", "password1"),
    ("alex", "alex@example.com", "Pass1"),
    ("alex", "not-an-email", "Password1"),
])
def test_register_rejects_bad_shapes(client, username, email, password):
    response = register(client, username, email, password)

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_duplicate_registration_conflicts(client):
    register(client)

    assert register(client, username="other").status_code == 409
    assert register(client, email="other@example.com").status_code == 409


def test_wrong_password_is_401(client, user):
    response = client.post("/api/auth/login", json={"email": user.email, "password": "Wrong1234"})

    assert response.status_code == 401
    assert response.json() == {"success": False, "error": "Invalid email or password"}


def test_deactivated_account_cannot_log_in(db_session):
    create_user(db_session, username="ghost", is_active=False)

    with pytest.raises(Forbidden):
        AuthService.authenticate(db_session, "ghost@example.com", DEFAULT_PASSWORD)
    with pytest.raises(Unauthenticated):
        AuthService.authenticate(db_session, "nobody@example.com", DEFAULT_PASSWORD)


def test_logout_invalidates_the_session(client, user):
    login(client, user)
    token = client.cookies.get("sessionId")

    response = client.post("/api/auth/logout")

    assert response.json() == {"success": True, "message": "Logout successful"}
    assert client.app.state.session_store.resolve(token) is None
    client.cookies.clear()
    client.cookies.set("sessionId", token)
    assert client.get("/api/auth/me").status_code == 401


def test_logout_without_session_succeeds(client):
    assert client.post("/api/auth/logout").status_code == 200


def test_profile_update_enforces_uniqueness(client, db_session, user):
    create_user(db_session, username="taken")
    login(client, user)

    assert client.put("/api/user/profile", json={"username": "taken"}).status_code == 409

    response = client.put("/api/user/profile", json={"username": "fresh", "email": "fresh@example.com"})
    assert response.status_code == 200
    assert response.json()["data"]["email"] == "fresh@example.com"
    assert client.get("/api/user/profile").json()["data"]["username"] == "fresh"


def test_change_password(db_session, user):
    with pytest.raises(InvalidArgument):
        AuthService.change_password(db_session, user.id, "Wrong1234", "NewPassword1")
    with pytest.raises(InvalidArgument):
        AuthService.change_password(db_session, user.id, DEFAULT_PASSWORD, "weak")

    AuthService.change_password(db_session, user.id, DEFAULT_PASSWORD, "NewPassword1")

    db_session.refresh(user)
    assert verify_password("NewPassword1", user.password_hash)


def test_change_password_over_http(client, user):
    login(client, user)

    response = client.put("/api/user/password", json={"old_password": DEFAULT_PASSWORD, "new_password": "Another123"})

    assert response.status_code == 200
    login(client, user, password="Another123")


def test_update_profile_service_conflict(db_session, user):
    create_user(db_session, username="other")

    with pytest.raises(Conflict):
        AuthService.update_profile(db_session, user.id, email="other@example.com")


def test_unknown_route_uses_error_envelope(client):
    response = client.get("/api/nowhere")

    assert response.status_code == 404
    assert response.json()["success"] is False


def test_health(client):
    body = client.get("/health").json()

    assert body["success"] is True
    assert body["data"]["status"] == "healthy"


def test_store_failure_answers_with_internal_envelope(client, monkeypatch):
    def broken_listing(*args, **kwargs):
        raise OperationalError("SELECT movies", {}, Exception("database is locked"))

    monkeypatch.setattr(MovieService, "list_movies", broken_listing)

    response = client.get("/api/movies")

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "Database error"}
