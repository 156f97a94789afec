import os

from fastapi import Depends, Request
from fastapi.security import APIKeyCookie
from sqlalchemy.orm import Session
from typing import Optional

from moviecatalog.database import get_db
from moviecatalog.models.user import User
from moviecatalog.services.authorization import AuthorizationGuard
from moviecatalog.services.session_store import Principal, SessionStore
from moviecatalog.utils.errors import Unauthenticated

SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "sessionId")

# Session token travels in an HttpOnly cookie
session_cookie = APIKeyCookie(name=SESSION_COOKIE_NAME, auto_error=False)


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store


def get_guard(store: SessionStore = Depends(get_session_store)) -> AuthorizationGuard:
    return AuthorizationGuard(store)


def get_session_token(token: Optional[str] = Depends(session_cookie)) -> Optional[str]:
    return token


# Dependency to get the current authenticated principal
def get_current_principal(
    token: Optional[str] = Depends(session_cookie),
    guard: AuthorizationGuard = Depends(get_guard)
) -> Principal:
    return guard.require_authenticated(token)


# Dependency for admin-only endpoints
def get_admin_principal(
    token: Optional[str] = Depends(session_cookie),
    guard: AuthorizationGuard = Depends(get_guard)
) -> Principal:
    return guard.require_admin(token)


# Dependency to get the current authenticated user row
def get_current_user(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
) -> User:
    user = db.get(User, principal.user_id)
    if user is None:
        raise Unauthenticated("User not found")
    return user


def get_background_jobs(request: Request):
    return request.app.state.background_jobs
