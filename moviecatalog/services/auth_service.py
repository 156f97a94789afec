from sqlalchemy.orm import Session
from typing import Optional
import logging

from moviecatalog.database import commit_or_conflict
from moviecatalog.models.user import User, Role
from moviecatalog.utils.errors import Conflict, Forbidden, InvalidArgument, NotFound, Unauthenticated
from moviecatalog.utils.security import hash_password, verify_password
from moviecatalog.utils.validators import ensure_password_strength, validate_email, validate_username

logger = logging.getLogger(__name__)


class AuthService:
    @staticmethod
    def register_user(db: Session, username: str, email: str, password: str) -> User:
        validate_username(username)
        validate_email(email)
        ensure_password_strength(password)

        # Check existing email / username
        if db.query(User).filter(User.email == email).first():
            raise Conflict("Email already registered")
        if db.query(User).filter(User.username == username).first():
            raise Conflict("Username already taken")

        new_user = User(
            username=username,
            email=email,
            password_hash=hash_password(password),
            role=Role.USER,
            is_active=True
        )
        db.add(new_user)
        commit_or_conflict(db, "Username or email already registered")
        db.refresh(new_user)
        logger.info(f"Registered user {new_user.id} ({username})")
        return new_user

    @staticmethod
    def authenticate(db: Session, email: str, password: str) -> User:
        user = db.query(User).filter(User.email == email).first()

        if not user:
            logger.warning(f"Login failed: User not found with email {email}")
            raise Unauthenticated("Invalid email or password")

        if not verify_password(password, user.password_hash):
            logger.warning(f"Login failed: Incorrect password for email {email}")
            raise Unauthenticated("Invalid email or password")

        if not user.is_active:
            raise Forbidden("Account is deactivated")

        return user

    @staticmethod
    def get_user(db: Session, user_id: int) -> User:
        user = db.get(User, user_id)
        if not user:
            raise NotFound("User not found")
        return user

    @staticmethod
    def update_profile(
        db: Session,
        user_id: int,
        username: Optional[str] = None,
        email: Optional[str] = None
    ) -> User:
        user = AuthService.get_user(db, user_id)

        if username is not None and username != user.username:
            validate_username(username)
            if db.query(User).filter(User.username == username, User.id != user_id).first():
                raise Conflict("Username already taken")
            user.username = username

        if email is not None and email != user.email:
            validate_email(email)
            if db.query(User).filter(User.email == email, User.id != user_id).first():
                raise Conflict("Email already registered")
            user.email = email

        commit_or_conflict(db, "Username or email already registered")
        db.refresh(user)
        return user

    @staticmethod
    def change_password(db: Session, user_id: int, old_password: str, new_password: str) -> None:
        user = AuthService.get_user(db, user_id)

        if not verify_password(old_password, user.password_hash):
            raise InvalidArgument("Invalid old password")

        ensure_password_strength(new_password)
        user.password_hash = hash_password(new_password)
        db.commit()
        logger.info(f"Password changed for user {user_id}")
