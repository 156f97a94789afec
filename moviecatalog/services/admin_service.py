"""
Admin Service - dashboard read models and user/movie/review management

Listings load the full result set, filter in memory, then slice the page.
That keeps the filters simple but bounds the admin views to moderate data
volumes; large deployments should push filter and offset into the query.
"""

from sqlalchemy.orm import Session
from sqlalchemy import and_, extract, func
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple
import logging
import platform
import sys

from moviecatalog.database import commit_or_conflict
from moviecatalog.models.movie import Movie, Genre
from moviecatalog.models.review import Review
from moviecatalog.models.user import User, Role
from moviecatalog.services.movie_service import MovieService
from moviecatalog.services.review_service import ReviewService
from moviecatalog.services.session_store import SessionStore
from moviecatalog.utils.dates import day_bounds, round_rating, utcnow, year_bounds
from moviecatalog.utils.errors import Conflict, NotFound
from moviecatalog.utils.validators import validate_email, validate_pagination, validate_search_query, validate_username

logger = logging.getLogger(__name__)

RECENT_ACTIVITY_DAYS = 7
DASHBOARD_TOP_MOVIES = 5

USER_FILTERS = {
    "active": lambda user: user["is_active"],
    "inactive": lambda user: not user["is_active"],
    "admins": lambda user: user["role"] == Role.ADMIN,
    "admin": lambda user: user["role"] == Role.ADMIN,
}

REVIEW_FILTERS = {
    "pending": lambda review: not review.is_approved,
    "approved": lambda review: review.is_approved,
}


SQLITE_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def created_between(db: Session, column, start: datetime, end: datetime):
    """
    Half-open [start, end) window on a created_at column

    SQLite keeps server_default timestamps as text without fractional seconds,
    so both sides are normalised with datetime() before comparing.
    """
    if db.get_bind().dialect.name == "sqlite":
        normalised = func.datetime(column)
        return and_(
            normalised >= start.strftime(SQLITE_TIMESTAMP_FORMAT),
            normalised < end.strftime(SQLITE_TIMESTAMP_FORMAT)
        )
    return and_(column >= start, column < end)


def paginate(items: List, page: int, limit: int) -> Tuple[List, int]:
    """Slice a materialised list; a page past the end is simply empty"""
    validate_pagination(page, limit)
    offset = (page - 1) * limit
    return items[offset:offset + limit], len(items)


class AdminService:
    """Read-only aggregations plus the admin mutations that need session cleanup"""

    # ==================== DASHBOARD ====================

    @staticmethod
    def dashboard_stats(db: Session) -> Dict:
        """
        Snapshot for the admin dashboard

        Returns:
            Totals, pending review count, global approved average, number of
            distinct reviewers, today's new users/reviews/movies and the top 5 movies
        """
        today_start, today_end = day_bounds(utcnow())

        global_avg = db.query(func.avg(Review.rating)).filter(Review.is_approved.is_(True)).scalar()
        reviewers = db.query(func.count(func.distinct(Review.user_id))).scalar()

        def created_today(model) -> int:
            return db.query(func.count(model.id)).filter(
                created_between(db, model.created_at, today_start, today_end)
            ).scalar() or 0

        return {
            "total_users": db.query(func.count(User.id)).scalar() or 0,
            "total_movies": db.query(func.count(Movie.id)).scalar() or 0,
            "total_reviews": db.query(func.count(Review.id)).scalar() or 0,
            "pending_reviews": db.query(func.count(Review.id)).filter(Review.is_approved.is_(False)).scalar() or 0,
            "average_rating": round_rating(global_avg),
            "active_users": reviewers or 0,
            "today_users": created_today(User),
            "today_reviews": created_today(Review),
            "today_movies": created_today(Movie),
            "top_movies": MovieService.get_top_rated(db, DASHBOARD_TOP_MOVIES),
        }

    @staticmethod
    def monthly_stats(db: Session, year: int) -> List[Dict]:
        """Twelve entries, one per month, zero-filled"""
        start, end = year_bounds(year)
        series = {month: {"month": month, "users": 0, "reviews": 0, "movies": 0} for month in range(1, 13)}

        for key, model in (("users", User), ("reviews", Review), ("movies", Movie)):
            month = extract("month", model.created_at)
            rows = (
                db.query(month, func.count(model.id))
                .filter(created_between(db, model.created_at, start, end))
                .group_by(month)
                .all()
            )
            for month_number, count in rows:
                series[int(month_number)][key] = int(count)

        return [series[month] for month in range(1, 13)]

    @staticmethod
    def recent_activity(db: Session, limit: int = 10) -> List[Dict]:
        """Registrations, reviews and new movies from the last week, newest first"""
        validate_pagination(1, limit)
        since = utcnow() - timedelta(days=RECENT_ACTIVITY_DAYS)
        events: List[Dict] = []

        users = db.query(User).filter(User.created_at > since).order_by(User.created_at.desc()).limit(limit).all()
        for user in users:
            events.append({
                "type": "user_registered",
                "username": user.username,
                "activity_date": user.created_at,
            })

        reviews = (
            ReviewService.query_with_details(db)
            .filter(Review.created_at > since)
            .order_by(Review.created_at.desc())
            .limit(limit)
            .all()
        )
        for review in reviews:
            events.append({
                "type": "review_added",
                "username": review.username,
                "activity_date": review.created_at,
                "movie_title": review.movie_title,
                "rating": review.rating,
                "comment": review.comment,
            })

        movies = db.query(Movie).filter(Movie.created_at > since).order_by(Movie.created_at.desc()).limit(limit).all()
        for movie in movies:
            events.append({
                "type": "movie_added",
                "activity_date": movie.created_at,
                "movie_title": movie.title,
            })

        events.sort(key=lambda event: event["activity_date"], reverse=True)
        return events[:limit]

    # ==================== USERS ====================

    @staticmethod
    def _users_with_stats(db: Session) -> List[Dict]:
        stats = (
            db.query(
                Review.user_id.label("user_id"),
                func.count(Review.id).label("review_count"),
                func.max(Review.created_at).label("last_review_date"),
            )
            .group_by(Review.user_id)
            .subquery()
        )
        rows = (
            db.query(User, stats.c.review_count, stats.c.last_review_date)
            .outerjoin(stats, stats.c.user_id == User.id)
            .order_by(User.created_at.desc(), User.id.desc())
            .all()
        )
        return [
            {
                "id": user.id,
                "username": user.username,
                "email": user.email,
                "role": user.role,
                "is_active": user.is_active,
                "created_at": user.created_at,
                "review_count": int(review_count or 0),
                "last_review_date": last_review_date,
            }
            for user, review_count, last_review_date in rows
        ]

    @staticmethod
    def list_users(db: Session, page: int = 1, limit: int = 10, user_filter: str = "all") -> Tuple[List[Dict], int]:
        """
        Page through users with review statistics

        Args:
            user_filter: all | active | inactive | admins; unknown values mean all

        Returns:
            (page items, total matching users)
        """
        users = AdminService._users_with_stats(db)
        predicate = USER_FILTERS.get((user_filter or "all").lower())
        if predicate:
            users = [user for user in users if predicate(user)]
        return paginate(users, page, limit)

    @staticmethod
    def search_users(db: Session, query: str) -> List[Dict]:
        text = validate_search_query(query).lower()
        return [
            user for user in AdminService._users_with_stats(db)
            if text in user["username"].lower() or text in user["email"].lower()
        ]

    @staticmethod
    def _get_user_row(db: Session, user_id: int) -> User:
        user = db.get(User, user_id)
        if not user:
            raise NotFound("User not found")
        return user

    @staticmethod
    def _drop_sessions(session_store: Optional[SessionStore], user_id: int) -> None:
        if session_store is not None:
            session_store.invalidate_user(user_id)

    @staticmethod
    def update_user(
        db: Session,
        user_id: int,
        username: str,
        email: str,
        role: Role,
        is_active: bool,
        session_store: Optional[SessionStore] = None
    ) -> User:
        user = AdminService._get_user_row(db, user_id)
        validate_username(username)
        validate_email(email)

        if db.query(User).filter(User.username == username, User.id != user_id).first():
            raise Conflict("Username already taken")
        if db.query(User).filter(User.email == email, User.id != user_id).first():
            raise Conflict("Email already registered")

        access_changed = user.role != Role(role) or user.is_active != is_active
        user.username = username
        user.email = email
        user.role = Role(role)
        user.is_active = is_active
        commit_or_conflict(db, "Username or email already registered")
        db.refresh(user)

        if access_changed:
            AdminService._drop_sessions(session_store, user_id)
        logger.info(f"Admin updated user {user_id}")
        return user

    @staticmethod
    def update_user_status(
        db: Session,
        user_id: int,
        is_active: bool,
        session_store: Optional[SessionStore] = None
    ) -> User:
        user = AdminService._get_user_row(db, user_id)
        user.is_active = is_active
        db.commit()
        db.refresh(user)

        AdminService._drop_sessions(session_store, user_id)
        logger.info(f"User {user_id} {'activated' if is_active else 'deactivated'}")
        return user

    @staticmethod
    def update_user_role(
        db: Session,
        user_id: int,
        role: Role,
        session_store: Optional[SessionStore] = None
    ) -> User:
        user = AdminService._get_user_row(db, user_id)
        user.role = Role(role)
        db.commit()
        db.refresh(user)

        AdminService._drop_sessions(session_store, user_id)
        logger.info(f"User {user_id} role set to {user.role.value}")
        return user

    @staticmethod
    def delete_user(db: Session, user_id: int, session_store: Optional[SessionStore] = None) -> None:
        """Delete a user together with their reviews"""
        user = AdminService._get_user_row(db, user_id)
        db.delete(user)
        db.commit()

        AdminService._drop_sessions(session_store, user_id)
        logger.info(f"Deleted user {user_id}")

    # ==================== MOVIES & REVIEWS ====================

    @staticmethod
    def list_movies(
        db: Session,
        page: int = 1,
        limit: int = 10,
        sort_by: Optional[str] = None,
        order: Optional[str] = None
    ) -> Tuple[List[Dict], int]:
        movies = MovieService.list_movies(db, sort_by, order)
        return paginate(movies, page, limit)

    @staticmethod
    def list_reviews(db: Session, page: int = 1, limit: int = 10, review_filter: str = "all") -> Tuple[List[Review], int]:
        """
        Args:
            review_filter: all | pending | approved; unknown values mean all
        """
        reviews = ReviewService.list_reviews(db)
        predicate = REVIEW_FILTERS.get((review_filter or "all").lower())
        if predicate:
            reviews = [review for review in reviews if predicate(review)]
        return paginate(reviews, page, limit)

    # ==================== SYSTEM ====================

    @staticmethod
    def system_info(db: Session, session_store: Optional[SessionStore] = None) -> Dict:
        bind = db.get_bind()
        return {
            "python_version": sys.version.split()[0],
            "platform": platform.system(),
            "platform_release": platform.release(),
            "database_dialect": bind.dialect.name,
            "server_time": utcnow(),
            "table_rows": {
                "users": db.query(func.count(User.id)).scalar() or 0,
                "movies": db.query(func.count(Movie.id)).scalar() or 0,
                "genres": db.query(func.count(Genre.id)).scalar() or 0,
                "reviews": db.query(func.count(Review.id)).scalar() or 0,
            },
            "active_sessions": len(session_store) if session_store is not None else 0,
        }
