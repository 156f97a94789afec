"""
Admin Routes - dashboard, user/movie/review/genre management, maintenance jobs

Every endpoint requires an ADMIN session: a missing session is 401, a
non-admin session is 403.
"""

from fastapi import APIRouter, Depends, Query, status
from apscheduler.jobstores.base import JobLookupError
from sqlalchemy.orm import Session
from datetime import datetime, timezone
from typing import Optional

from moviecatalog.database import get_db
from moviecatalog.schemas.admin import (
    ActivityItem,
    AdminUserResponse,
    AdminUserUpdate,
    DashboardStats,
    MonthlyStat,
    TopMovie,
    UserRoleUpdate,
    UserStatusUpdate,
)
from moviecatalog.schemas.movie import GenreCreate, GenreResponse, GenreWithCount, MovieCreate, MovieUpdate
from moviecatalog.schemas.review import ReviewResponse
from moviecatalog.routes.movies import movie_detail, summaries
from moviecatalog.services.admin_service import AdminService
from moviecatalog.services.background_jobs import BackgroundJobService
from moviecatalog.services.genre_service import GenreService
from moviecatalog.services.movie_service import MovieService
from moviecatalog.services.review_service import ReviewService
from moviecatalog.services.session_store import Principal, SessionStore
from moviecatalog.utils.dependencies import get_admin_principal, get_background_jobs, get_session_store
from moviecatalog.utils.dates import utcnow
from moviecatalog.utils.errors import NotFound
from moviecatalog.utils.responses import ok, paginated

router = APIRouter(
    prefix="/api/admin",
    tags=["Admin"],
    dependencies=[Depends(get_admin_principal)]
)


# ==================== DASHBOARD ====================

@router.get("/dashboard")
def dashboard(db: Session = Depends(get_db)):
    """Totals, today's activity and the top 5 movies"""
    return ok(DashboardStats(**AdminService.dashboard_stats(db)))


@router.get("/stats")
def monthly_stats(year: Optional[int] = Query(None), db: Session = Depends(get_db)):
    """Per-month new users, reviews and movies for a year (default: current year)"""
    year = year or utcnow().year
    return ok([MonthlyStat(**row) for row in AdminService.monthly_stats(db, year)])


@router.get("/activity")
def recent_activity(limit: int = Query(10), db: Session = Depends(get_db)):
    return ok([ActivityItem(**event) for event in AdminService.recent_activity(db, limit)])


@router.get("/top-movies")
def top_movies(limit: int = Query(10), db: Session = Depends(get_db)):
    return ok([TopMovie(**movie) for movie in MovieService.get_top_rated(db, limit)])


# ==================== USERS ====================

@router.get("/users")
def list_users(
    page: int = Query(1),
    limit: int = Query(10),
    filter_by: str = Query("all", alias="filter", description="all | active | inactive | admins"),
    db: Session = Depends(get_db)
):
    users, total = AdminService.list_users(db, page, limit, filter_by)
    return ok(paginated([AdminUserResponse(**u) for u in users], page, limit, total))


@router.get("/users/search")
def search_users(q: Optional[str] = Query(None), db: Session = Depends(get_db)):
    return ok([AdminUserResponse(**u) for u in AdminService.search_users(db, q)])


@router.put("/users/{user_id}")
def update_user(
    user_id: int,
    payload: AdminUserUpdate,
    db: Session = Depends(get_db),
    store: SessionStore = Depends(get_session_store)
):
    user = AdminService.update_user(
        db, user_id, payload.username, payload.email, payload.role, payload.is_active, store
    )
    return ok(AdminUserResponse.model_validate(user), "User updated")


@router.patch("/users/{user_id}/status")
def update_user_status(
    user_id: int,
    payload: UserStatusUpdate,
    db: Session = Depends(get_db),
    store: SessionStore = Depends(get_session_store)
):
    user = AdminService.update_user_status(db, user_id, payload.is_active, store)
    return ok(AdminUserResponse.model_validate(user), "User status updated")


@router.patch("/users/{user_id}/role")
def update_user_role(
    user_id: int,
    payload: UserRoleUpdate,
    db: Session = Depends(get_db),
    store: SessionStore = Depends(get_session_store)
):
    user = AdminService.update_user_role(db, user_id, payload.role, store)
    return ok(AdminUserResponse.model_validate(user), "User role updated")


@router.delete("/users/{user_id}")
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    store: SessionStore = Depends(get_session_store)
):
    AdminService.delete_user(db, user_id, store)
    return ok(message="User deleted")


# ==================== MOVIES ====================

@router.get("/movies")
def list_movies(
    page: int = Query(1),
    limit: int = Query(10),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    order: Optional[str] = Query(None),
    db: Session = Depends(get_db)
):
    movies, total = AdminService.list_movies(db, page, limit, sort_by, order)
    return ok(paginated(summaries(movies), page, limit, total))


@router.get("/movies/search")
def search_movies(q: Optional[str] = Query(None), db: Session = Depends(get_db)):
    return ok(summaries(MovieService.search_movies(db, q)))


@router.post("/movies", status_code=status.HTTP_201_CREATED)
def create_movie(payload: MovieCreate, db: Session = Depends(get_db)):
    movie = MovieService.create_movie(db, **payload.model_dump())
    return ok(movie_detail(MovieService.get_movie(db, movie.id)), "Movie created")


@router.put("/movies/{movie_id}")
def update_movie(movie_id: int, payload: MovieUpdate, db: Session = Depends(get_db)):
    MovieService.update_movie(db, movie_id, **payload.model_dump())
    return ok(movie_detail(MovieService.get_movie(db, movie_id)), "Movie updated")


@router.delete("/movies/{movie_id}")
def delete_movie(movie_id: int, db: Session = Depends(get_db)):
    MovieService.delete_movie(db, movie_id)
    return ok(message="Movie deleted")


# ==================== REVIEWS ====================

@router.get("/reviews")
def list_reviews(
    page: int = Query(1),
    limit: int = Query(10),
    filter_by: str = Query("all", alias="filter", description="all | pending | approved"),
    db: Session = Depends(get_db)
):
    reviews, total = AdminService.list_reviews(db, page, limit, filter_by)
    return ok(paginated([ReviewResponse.model_validate(r) for r in reviews], page, limit, total))


@router.get("/reviews/pending")
def pending_reviews(db: Session = Depends(get_db)):
    reviews = ReviewService.list_reviews(db, only_unapproved=True)
    return ok([ReviewResponse.model_validate(r) for r in reviews])


@router.patch("/reviews/{review_id}/approve")
def approve_review(review_id: int, db: Session = Depends(get_db)):
    review = ReviewService.approve_review(db, review_id)
    return ok(ReviewResponse.model_validate(review), "Review approved")


@router.patch("/reviews/{review_id}/reject")
def reject_review(review_id: int, db: Session = Depends(get_db)):
    ReviewService.reject_review(db, review_id)
    return ok(message="Review rejected")


@router.delete("/reviews/{review_id}")
def delete_review(review_id: int, db: Session = Depends(get_db)):
    ReviewService.admin_delete_review(db, review_id)
    return ok(message="Review deleted")


# ==================== GENRES ====================

@router.get("/genres")
def list_genres(db: Session = Depends(get_db)):
    return ok([GenreWithCount(**g) for g in GenreService.genres_with_counts(db)])


@router.post("/genres", status_code=status.HTTP_201_CREATED)
def create_genre(payload: GenreCreate, db: Session = Depends(get_db)):
    genre = GenreService.create_genre(db, payload.name)
    return ok(GenreResponse.model_validate(genre), "Genre created")


@router.put("/genres/{genre_id}")
def update_genre(genre_id: int, payload: GenreCreate, db: Session = Depends(get_db)):
    genre = GenreService.update_genre(db, genre_id, payload.name)
    return ok(GenreResponse.model_validate(genre), "Genre updated")


@router.delete("/genres/{genre_id}")
def delete_genre(genre_id: int, db: Session = Depends(get_db)):
    GenreService.delete_genre(db, genre_id)
    return ok(message="Genre deleted")


# ==================== SYSTEM & JOBS ====================

@router.get("/system")
def system_info(db: Session = Depends(get_db), store: SessionStore = Depends(get_session_store)):
    return ok(AdminService.system_info(db, store))


@router.get("/jobs/status")
def get_jobs_status(jobs: BackgroundJobService = Depends(get_background_jobs)):
    """
    Get status of the scheduled maintenance jobs

    Returns:
    - Job IDs and names
    - Next run times
    - Last execution times
    - Current status (idle/running/success/failed)
    """
    stats = jobs.get_job_stats()
    return ok({
        "scheduler_running": stats['scheduler_running'],
        "timezone": stats['timezone'],
        "jobs": stats['jobs'],
        "checked_at": datetime.now(timezone.utc).isoformat()
    })


@router.post("/jobs/trigger/sweep")
def trigger_session_sweep(
    jobs: BackgroundJobService = Depends(get_background_jobs),
    admin: Principal = Depends(get_admin_principal)
):
    """Run the expired-session sweep now"""
    evicted = jobs.sweep_sessions()
    return ok({
        "job": "sweep_sessions",
        "evicted": evicted,
        "triggered_at": datetime.now(timezone.utc).isoformat(),
        "triggered_by": admin.user_id
    }, "Session sweep completed")


@router.post("/jobs/pause/{job_id}")
def pause_job(job_id: str, jobs: BackgroundJobService = Depends(get_background_jobs)):
    try:
        jobs.pause_job(job_id)
    except JobLookupError:
        raise NotFound(f"No scheduled job '{job_id}'")
    return ok(message=f"Job '{job_id}' paused")


@router.post("/jobs/resume/{job_id}")
def resume_job(job_id: str, jobs: BackgroundJobService = Depends(get_background_jobs)):
    try:
        jobs.resume_job(job_id)
    except JobLookupError:
        raise NotFound(f"No scheduled job '{job_id}'")
    return ok(message=f"Job '{job_id}' resumed")
