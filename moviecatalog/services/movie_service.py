"""
Movie Service - catalog queries and admin movie management

Average rating and review count are never stored: every query joins the
approved reviews and aggregates on read.
"""

from sqlalchemy.orm import Session, joinedload
from sqlalchemy import and_, func, or_
from typing import Dict, List, Optional
import logging

from moviecatalog.models.movie import Movie, Genre
from moviecatalog.models.review import Review
from moviecatalog.services.genre_service import GenreService
from moviecatalog.utils.dates import round_rating
from moviecatalog.utils.errors import InvalidArgument, NotFound
from moviecatalog.utils.validators import (
    validate_duration,
    validate_search_query,
    validate_title,
    validate_year,
)

logger = logging.getLogger(__name__)

# Direction used when the caller gives a sort key but no order
DEFAULT_ORDER = {
    "rating": "desc",
    "year": "desc",
    "title": "asc",
    "reviews": "desc",
    "created": "desc",
}


class MovieService:
    """Service for catalog browsing and movie administration"""

    @staticmethod
    def _aggregate_query(db: Session):
        """Movies joined with AVG/COUNT over approved reviews only"""
        avg_rating = func.avg(Review.rating).label("avg_rating")
        review_count = func.count(Review.id).label("review_count")
        query = (
            db.query(Movie, avg_rating, review_count)
            .outerjoin(Review, and_(Review.movie_id == Movie.id, Review.is_approved.is_(True)))
            .group_by(Movie.id)
        )
        return query, avg_rating, review_count

    @staticmethod
    def _to_dict(movie: Movie, avg_rating: Optional[float], review_count: Optional[int]) -> Dict:
        return {
            "id": movie.id,
            "title": movie.title,
            "director": movie.director,
            "year": movie.year,
            "description": movie.description,
            "duration": movie.duration,
            "poster_url": movie.poster_url,
            "created_at": movie.created_at,
            "average_rating": round_rating(avg_rating),
            "review_count": int(review_count or 0),
        }

    @staticmethod
    def _like_pattern(query: str) -> str:
        escaped = query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        return f"%{escaped}%"

    @staticmethod
    def _get_movie_row(db: Session, movie_id: int) -> Movie:
        movie = db.get(Movie, movie_id)
        if not movie:
            raise NotFound("Movie not found")
        return movie

    # ==================== CATALOG QUERIES ====================

    @staticmethod
    def list_movies(
        db: Session,
        sort_by: Optional[str] = None,
        order: Optional[str] = None,
        limit: Optional[int] = None
    ) -> List[Dict]:
        """
        List movies with aggregate rating

        Args:
            sort_by: rating | year | title | reviews; anything else sorts by creation date
            order: asc | desc; defaults depend on the sort key
            limit: Max results, all movies when None

        Returns:
            List of movie dicts with average_rating and review_count
        """
        query, avg_rating, review_count = MovieService._aggregate_query(db)

        key = (sort_by or "created").lower()
        if key not in DEFAULT_ORDER:
            key = "created"
        direction = (order or DEFAULT_ORDER[key]).lower()
        if direction not in ("asc", "desc"):
            direction = DEFAULT_ORDER[key]

        sort_columns = {
            "rating": func.coalesce(func.avg(Review.rating), 0),
            "year": Movie.year,
            "title": Movie.title,
            "reviews": func.count(Review.id),
            "created": Movie.created_at,
        }
        column = sort_columns[key]
        primary = column.desc() if direction == "desc" else column.asc()
        query = query.order_by(primary, Movie.id.asc())

        if limit is not None and limit > 0:
            query = query.limit(limit)

        return [MovieService._to_dict(m, avg, count) for m, avg, count in query.all()]

    @staticmethod
    def search_movies(db: Session, query: str) -> List[Dict]:
        """Case-insensitive substring match on title, director or description"""
        text = validate_search_query(query)
        pattern = MovieService._like_pattern(text)

        base, _, _ = MovieService._aggregate_query(db)
        rows = (
            base.filter(or_(
                Movie.title.ilike(pattern, escape="\\"),
                Movie.director.ilike(pattern, escape="\\"),
                Movie.description.ilike(pattern, escape="\\"),
            ))
            .order_by(Movie.title, Movie.id)
            .all()
        )
        return [MovieService._to_dict(m, avg, count) for m, avg, count in rows]

    @staticmethod
    def get_movie(db: Session, movie_id: int) -> Dict:
        """
        Movie detail: aggregates over approved reviews, genres, and every
        review including unapproved ones
        """
        base, _, _ = MovieService._aggregate_query(db)
        row = base.filter(Movie.id == movie_id).first()
        if row is None:
            raise NotFound("Movie not found")

        movie, avg, count = row
        reviews = (
            db.query(Review)
            .options(joinedload(Review.user), joinedload(Review.movie))
            .filter(Review.movie_id == movie_id)
            .order_by(Review.created_at.desc(), Review.id.desc())
            .all()
        )

        detail = MovieService._to_dict(movie, avg, count)
        detail["genres"] = list(movie.genres)
        detail["reviews"] = reviews
        return detail

    @staticmethod
    def get_top_rated(db: Session, limit: int = 10) -> List[Dict]:
        """Movies with at least one approved review, best average first"""
        if limit < 1:
            raise InvalidArgument("Limit must be at least 1")

        query, avg_rating, review_count = MovieService._aggregate_query(db)
        rows = (
            query.having(func.count(Review.id) > 0)
            .order_by(func.avg(Review.rating).desc(), func.count(Review.id).desc(), Movie.id.asc())
            .limit(limit)
            .all()
        )
        return [MovieService._to_dict(m, avg, count) for m, avg, count in rows]

    @staticmethod
    def get_movies_by_year_range(db: Session, from_year: int, to_year: int) -> List[Dict]:
        if from_year > to_year:
            raise InvalidArgument("from must not be greater than to")

        query, _, _ = MovieService._aggregate_query(db)
        rows = (
            query.filter(Movie.year.between(from_year, to_year))
            .order_by(Movie.year.desc(), Movie.id.asc())
            .all()
        )
        return [MovieService._to_dict(m, avg, count) for m, avg, count in rows]

    # ==================== ADMINISTRATION ====================

    @staticmethod
    def _validated_fields(
        title: str,
        director: Optional[str],
        year: Optional[int],
        description: Optional[str],
        duration: Optional[int],
        poster_url: Optional[str]
    ) -> Dict:
        return {
            "title": validate_title(title),
            "director": director,
            "year": validate_year(year),
            "description": description,
            "duration": validate_duration(duration),
            "poster_url": poster_url,
        }

    @staticmethod
    def create_movie(
        db: Session,
        title: str,
        director: Optional[str] = None,
        year: Optional[int] = None,
        description: Optional[str] = None,
        duration: Optional[int] = None,
        poster_url: Optional[str] = None,
        genres: Optional[List[str]] = None
    ) -> Movie:
        fields = MovieService._validated_fields(title, director, year, description, duration, poster_url)

        movie = Movie(**fields)
        if genres:
            movie.genres = GenreService.get_or_create(db, genres)

        db.add(movie)
        db.commit()
        db.refresh(movie)
        logger.info(f"Created movie {movie.id} ({movie.title})")
        return movie

    @staticmethod
    def update_movie(
        db: Session,
        movie_id: int,
        title: str,
        director: Optional[str] = None,
        year: Optional[int] = None,
        description: Optional[str] = None,
        duration: Optional[int] = None,
        poster_url: Optional[str] = None
    ) -> Movie:
        movie = MovieService._get_movie_row(db, movie_id)
        fields = MovieService._validated_fields(title, director, year, description, duration, poster_url)

        for name, value in fields.items():
            setattr(movie, name, value)

        db.commit()
        db.refresh(movie)
        logger.info(f"Updated movie {movie_id}")
        return movie

    @staticmethod
    def delete_movie(db: Session, movie_id: int) -> None:
        """Delete a movie; its reviews and genre links go with it"""
        movie = MovieService._get_movie_row(db, movie_id)
        db.delete(movie)
        db.commit()
        logger.info(f"Deleted movie {movie_id}")

    @staticmethod
    def add_genres_to_movie(db: Session, movie_id: int, genre_names: List[str]) -> List[Genre]:
        movie = MovieService._get_movie_row(db, movie_id)

        for genre in GenreService.get_or_create(db, genre_names):
            if genre not in movie.genres:
                movie.genres.append(genre)

        db.commit()
        db.refresh(movie)
        return list(movie.genres)

    @staticmethod
    def remove_genre_from_movie(db: Session, movie_id: int, genre_id: int) -> None:
        movie = MovieService._get_movie_row(db, movie_id)
        genre = next((g for g in movie.genres if g.id == genre_id), None)
        if genre is None:
            raise NotFound("Genre is not assigned to this movie")

        movie.genres.remove(genre)
        db.commit()
