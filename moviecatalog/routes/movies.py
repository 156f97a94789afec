from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Dict, List, Optional

from moviecatalog.database import get_db
from moviecatalog.schemas.movie import (
    GenreNames,
    GenreResponse,
    MovieCreate,
    MovieDetail,
    MovieSummary,
    MovieUpdate,
)
from moviecatalog.schemas.review import ReviewResponse
from moviecatalog.services.genre_service import GenreService
from moviecatalog.services.movie_service import MovieService
from moviecatalog.utils.dependencies import get_admin_principal
from moviecatalog.utils.responses import ok

router = APIRouter(prefix="/api/movies", tags=["Movies"])


def summaries(movies: List[Dict]) -> List[MovieSummary]:
    return [MovieSummary(**movie) for movie in movies]


def movie_detail(detail: Dict) -> MovieDetail:
    return MovieDetail(
        **{key: value for key, value in detail.items() if key not in ("genres", "reviews")},
        genres=[GenreResponse.model_validate(genre) for genre in detail["genres"]],
        reviews=[ReviewResponse.model_validate(review) for review in detail["reviews"]],
    )


# ==================== CATALOG ====================

@router.get("")
def list_movies(
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    order: Optional[str] = Query(None),
    limit: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db)
):
    """
    List movies with average rating and review count

    - **sortBy**: rating | year | title | reviews | created (anything else: newest first)
    - **order**: asc | desc (default depends on sortBy)
    - **limit**: Max number of movies
    """
    return ok(summaries(MovieService.list_movies(db, sort_by, order, limit)))


@router.get("/search")
def search_movies(q: Optional[str] = Query(None), db: Session = Depends(get_db)):
    """Search title, director and description (case-insensitive)"""
    return ok(summaries(MovieService.search_movies(db, q)))


@router.get("/top")
def top_rated(limit: int = Query(10), db: Session = Depends(get_db)):
    """Movies with at least one approved review, best rated first"""
    return ok(summaries(MovieService.get_top_rated(db, limit)))


@router.get("/genres")
def list_genres(db: Session = Depends(get_db)):
    return ok([GenreResponse.model_validate(g) for g in GenreService.list_genres(db)])


@router.get("/years")
def movies_by_years(
    from_year: int = Query(..., alias="from"),
    to_year: int = Query(..., alias="to"),
    db: Session = Depends(get_db)
):
    return ok(summaries(MovieService.get_movies_by_year_range(db, from_year, to_year)))


@router.get("/{movie_id}")
def get_movie(movie_id: int, db: Session = Depends(get_db)):
    """Movie with genres and all of its reviews"""
    return ok(movie_detail(MovieService.get_movie(db, movie_id)))


# ==================== ADMIN ====================

@router.post("", status_code=status.HTTP_201_CREATED, dependencies=[Depends(get_admin_principal)])
def create_movie(payload: MovieCreate, db: Session = Depends(get_db)):
    movie = MovieService.create_movie(db, **payload.model_dump())
    return ok(movie_detail(MovieService.get_movie(db, movie.id)), "Movie created")


@router.put("/{movie_id}", dependencies=[Depends(get_admin_principal)])
def update_movie(movie_id: int, payload: MovieUpdate, db: Session = Depends(get_db)):
    MovieService.update_movie(db, movie_id, **payload.model_dump())
    return ok(movie_detail(MovieService.get_movie(db, movie_id)), "Movie updated")


@router.delete("/{movie_id}", dependencies=[Depends(get_admin_principal)])
def delete_movie(movie_id: int, db: Session = Depends(get_db)):
    MovieService.delete_movie(db, movie_id)
    return ok(message="Movie deleted")


@router.post("/{movie_id}/genres", dependencies=[Depends(get_admin_principal)])
def add_genres(movie_id: int, payload: GenreNames, db: Session = Depends(get_db)):
    genres = MovieService.add_genres_to_movie(db, movie_id, payload.genres)
    return ok([GenreResponse.model_validate(g) for g in genres], "Genres added")


@router.delete("/{movie_id}/genres/{genre_id}", dependencies=[Depends(get_admin_principal)])
def remove_genre(movie_id: int, genre_id: int, db: Session = Depends(get_db)):
    MovieService.remove_genre_from_movie(db, movie_id, genre_id)
    return ok(message="Genre removed")
