from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session
from typing import Optional

from moviecatalog.database import get_db
from moviecatalog.schemas.auth import UserRegister, UserLogin, UserResponse
from moviecatalog.services.auth_service import AuthService
from moviecatalog.services.session_store import SessionStore
from moviecatalog.utils.dependencies import (
    SESSION_COOKIE_NAME,
    get_current_user,
    get_session_store,
    get_session_token,
)
from moviecatalog.utils.responses import ok
from moviecatalog.models.user import User

# Define router
router = APIRouter(prefix="/api/auth", tags=["Authentication"])


def start_session(response: Response, store: SessionStore, user: User) -> None:
    """Issue a session for the user and hand the token over in the cookie"""
    token = store.create_session(user.id, user.role)
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=token,
        max_age=int(store.ttl_seconds),
        httponly=True,
        samesite="lax",
        path="/",
    )


# Register a new user
@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(
    user_data: UserRegister,
    response: Response,
    db: Session = Depends(get_db),
    store: SessionStore = Depends(get_session_store)
):
    """Register a new user and log them in"""
    user = AuthService.register_user(db, user_data.username, user_data.email, user_data.password)
    start_session(response, store, user)
    return ok(UserResponse.model_validate(user), "Registration successful")


# Login endpoint
@router.post("/login")
def login(
    credentials: UserLogin,
    response: Response,
    db: Session = Depends(get_db),
    store: SessionStore = Depends(get_session_store)
):
    """Login with email and password"""
    user = AuthService.authenticate(db, credentials.email, credentials.password)
    start_session(response, store, user)
    return ok(UserResponse.model_validate(user), "Login successful")


@router.post("/logout")
def logout(
    response: Response,
    token: Optional[str] = Depends(get_session_token),
    store: SessionStore = Depends(get_session_store)
):
    """Drop the current session; succeeds even without one"""
    store.invalidate(token)
    response.delete_cookie(SESSION_COOKIE_NAME, path="/")
    return ok(message="Logout successful")


# Get current authenticated user
@router.get("/me")
def get_me(current_user: User = Depends(get_current_user)):
    """Get current authenticated user"""
    return ok(UserResponse.model_validate(current_user))
