from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from moviecatalog.database import get_db
from moviecatalog.models.user import User
from moviecatalog.schemas.auth import PasswordChange, ProfileUpdate, UserResponse
from moviecatalog.services.auth_service import AuthService
from moviecatalog.utils.dependencies import get_current_user
from moviecatalog.utils.responses import ok

router = APIRouter(prefix="/api/user", tags=["User"])


@router.get("/profile")
def get_profile(current_user: User = Depends(get_current_user)):
    return ok(UserResponse.model_validate(current_user))


@router.put("/profile")
def update_profile(
    payload: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Change username and/or email; both must stay unique"""
    user = AuthService.update_profile(db, current_user.id, payload.username, payload.email)
    return ok(UserResponse.model_validate(user), "Profile updated")


@router.put("/password")
def change_password(
    payload: PasswordChange,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    AuthService.change_password(db, current_user.id, payload.old_password, payload.new_password)
    return ok(message="Password changed")
