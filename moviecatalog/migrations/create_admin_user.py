"""
Create (or promote) an administrator account

Usage:
    python -m moviecatalog.migrations.create_admin_user --username admin --email admin@example.com --password 'Admin1234'

An existing user with the same email is promoted to ADMIN and reactivated;
the password is left untouched in that case.
"""

import argparse

from sqlalchemy.orm import Session

from moviecatalog.database import SessionLocal
from moviecatalog.models.user import User, Role
from moviecatalog.services.auth_service import AuthService


def create_admin(db: Session, username: str, email: str, password: str) -> User:
    existing = db.query(User).filter(User.email == email).first()
    if existing:
        existing.role = Role.ADMIN
        existing.is_active = True
        db.commit()
        db.refresh(existing)
        return existing

    user = AuthService.register_user(db, username, email, password)
    user.role = Role.ADMIN
    db.commit()
    db.refresh(user)
    return user


def main(argv=None):
    parser = argparse.ArgumentParser(description="Create or promote an admin account")
    parser.add_argument("--username", required=True)
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", required=True)
    args = parser.parse_args(argv)

    db = SessionLocal()
    try:
        user = create_admin(db, args.username, args.email, args.password)
        print(f"Admin ready: id={user.id} username={user.username} email={user.email}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
