"""
Field validation rules shared by the services.

Every check raises InvalidArgument so the caller gets a 400 with a readable
message instead of a generic failure.
"""
import re
from typing import Optional

from moviecatalog.utils.errors import InvalidArgument

EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9+_.-]+@[A-Za-z0-9-]+(\.[A-Za-z0-9-]+)+$")
USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_]{3,20}$")

MIN_RATING, MAX_RATING = 1, 10
MIN_YEAR, MAX_YEAR = 1888, 2024
MIN_DURATION, MAX_DURATION = 1, 600
MAX_TITLE_LENGTH = 255


def ensure_password_strength(password: str) -> str:
    """Validate password complexity requirements."""
    if password is None or len(password) < 8:
        raise InvalidArgument("Password must be at least 8 characters long")
    if len(password) > 72:
        raise InvalidArgument("Password cannot be longer than 72 characters")
    if not re.search(r"[A-Z]", password):
        raise InvalidArgument("Password must contain uppercase letter")
    if not re.search(r"[a-z]", password):
        raise InvalidArgument("Password must contain lowercase letter")
    if not re.search(r"[0-9]", password):
        raise InvalidArgument("Password must contain digit")
    return password


def validate_username(username: str) -> str:
    if username is None or not USERNAME_PATTERN.match(username):
        raise InvalidArgument("Username must be 3-20 characters: letters, digits or underscore")
    return username


def validate_email(email: str) -> str:
    if email is None or not EMAIL_PATTERN.match(email):
        raise InvalidArgument("Invalid email address")
    return email


def validate_rating(rating: int) -> int:
    # bool is an int subclass; True must not pass as rating 1
    if isinstance(rating, bool) or not isinstance(rating, int) or not MIN_RATING <= rating <= MAX_RATING:
        raise InvalidArgument(f"Rating must be between {MIN_RATING} and {MAX_RATING}")
    return rating


def validate_title(title: str) -> str:
    if title is None or not 1 <= len(title.strip()) <= MAX_TITLE_LENGTH:
        raise InvalidArgument(f"Title must be between 1 and {MAX_TITLE_LENGTH} characters")
    return title.strip()


def validate_year(year: Optional[int]) -> Optional[int]:
    if year is not None and not MIN_YEAR <= year <= MAX_YEAR:
        raise InvalidArgument(f"Year must be between {MIN_YEAR} and {MAX_YEAR}")
    return year


def validate_duration(duration: Optional[int]) -> Optional[int]:
    if duration is not None and not MIN_DURATION <= duration <= MAX_DURATION:
        raise InvalidArgument(f"Duration must be between {MIN_DURATION} and {MAX_DURATION} minutes")
    return duration


def validate_pagination(page: int, limit: int) -> tuple[int, int]:
    """Reject pagination parameters outside page >= 1, limit >= 1"""
    if page < 1:
        raise InvalidArgument("Page must be at least 1")
    if limit < 1:
        raise InvalidArgument("Limit must be at least 1")
    return page, limit


def validate_search_query(query: Optional[str]) -> str:
    if query is None or not query.strip():
        raise InvalidArgument("Search query is required")
    return query.strip()
