"""
Admin schemas - dashboard read models and user management payloads
"""

from pydantic import BaseModel, EmailStr, ConfigDict
from datetime import datetime
from typing import List, Optional

from moviecatalog.models.user import Role


class UserStatusUpdate(BaseModel):
    is_active: bool


class UserRoleUpdate(BaseModel):
    role: Role


class AdminUserUpdate(BaseModel):
    username: str
    email: EmailStr
    role: Role
    is_active: bool


class AdminUserResponse(BaseModel):
    """User row with review statistics"""
    id: int
    username: str
    email: str
    role: Role
    is_active: bool
    created_at: Optional[datetime] = None
    review_count: int = 0
    last_review_date: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class TopMovie(BaseModel):
    id: int
    title: str
    year: Optional[int] = None
    director: Optional[str] = None
    average_rating: float
    review_count: int


class DashboardStats(BaseModel):
    total_users: int
    total_movies: int
    total_reviews: int
    pending_reviews: int
    average_rating: float
    active_users: int
    today_users: int
    today_reviews: int
    today_movies: int
    top_movies: List[TopMovie]


class MonthlyStat(BaseModel):
    month: int
    users: int = 0
    reviews: int = 0
    movies: int = 0


class ActivityItem(BaseModel):
    type: str  # user_registered | review_added | movie_added
    username: Optional[str] = None
    activity_date: datetime
    movie_title: Optional[str] = None
    rating: Optional[int] = None
    comment: Optional[str] = None
