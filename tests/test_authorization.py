import pytest

from moviecatalog.models.user import Role
from moviecatalog.services.authorization import AuthorizationGuard
from moviecatalog.services.session_store import SessionStore
from moviecatalog.utils.errors import Forbidden, Unauthenticated
from factories import create_user, login


@pytest.fixture
def guard():
    return AuthorizationGuard(SessionStore())


def test_guard_distinguishes_users_and_admins(guard):
    user_token = guard.store.create_session(1, Role.USER)
    admin_token = guard.store.create_session(2, Role.ADMIN)

    assert guard.is_authenticated(user_token)
    assert not guard.is_admin(user_token)
    assert guard.is_admin(admin_token)
    assert not guard.is_authenticated("missing")
    assert not guard.is_admin(None)


def test_require_admin_raises_unauthenticated_before_forbidden(guard):
    user_token = guard.store.create_session(1, Role.USER)

    with pytest.raises(Unauthenticated):
        guard.require_admin("missing")
    with pytest.raises(Forbidden):
        guard.require_admin(user_token)
    assert guard.require_admin(guard.store.create_session(2, Role.ADMIN)).user_id == 2


def test_admin_endpoint_without_session_is_401(client):
    response = client.get("/api/admin/dashboard")

    assert response.status_code == 401
    assert response.json() == {"success": False, "error": "Not authenticated"}


def test_admin_endpoint_with_user_session_is_403(client, user):
    login(client, user)

    response = client.get("/api/admin/dashboard")

    assert response.status_code == 403
    assert response.json()["error"] == "Admin access required"


def test_admin_endpoint_with_admin_session_succeeds(client, admin):
    login(client, admin)

    response = client.get("/api/admin/dashboard")

    assert response.status_code == 200
    assert response.json()["success"] is True


def test_stale_cookie_is_401(client, user):
    login(client, user)
    client.cookies.clear()
    client.cookies.set("sessionId", "forged-token")

    assert client.get("/api/auth/me").status_code == 401


def test_role_change_invalidates_existing_sessions(client, db_session, admin):
    target = create_user(db_session, username="target")
    store = client.app.state.session_store
    target_token = store.create_session(target.id, Role.USER)

    login(client, admin)
    response = client.patch(f"/api/admin/users/{target.id}/role", json={"role": "ADMIN"})

    assert response.status_code == 200
    assert response.json()["data"]["role"] == "ADMIN"
    assert store.resolve(target_token) is None
