from sqlalchemy.orm import Session
from sqlalchemy import func
from typing import Dict, Iterable, List
import logging

from moviecatalog.database import commit_or_conflict
from moviecatalog.models.movie import Genre, movie_genres
from moviecatalog.utils.errors import Conflict, InvalidArgument, NotFound

logger = logging.getLogger(__name__)


class GenreService:
    """Genre catalogue and movie association counts"""

    @staticmethod
    def _clean_name(name: str) -> str:
        if name is None or not name.strip():
            raise InvalidArgument("Genre name is required")
        name = name.strip()
        if len(name) > 100:
            raise InvalidArgument("Genre name cannot be longer than 100 characters")
        return name

    @staticmethod
    def _find_by_name(db: Session, name: str):
        return db.query(Genre).filter(func.lower(Genre.name) == name.lower()).first()

    @staticmethod
    def list_genres(db: Session) -> List[Genre]:
        return db.query(Genre).order_by(Genre.name).all()

    @staticmethod
    def get_genre(db: Session, genre_id: int) -> Genre:
        genre = db.get(Genre, genre_id)
        if not genre:
            raise NotFound("Genre not found")
        return genre

    @staticmethod
    def create_genre(db: Session, name: str) -> Genre:
        name = GenreService._clean_name(name)
        if GenreService._find_by_name(db, name):
            raise Conflict(f"Genre '{name}' already exists")

        genre = Genre(name=name)
        db.add(genre)
        commit_or_conflict(db, f"Genre '{name}' already exists")
        db.refresh(genre)
        logger.info(f"Created genre {genre.id} ({name})")
        return genre

    @staticmethod
    def get_or_create(db: Session, names: Iterable[str]) -> List[Genre]:
        """
        Resolve genre names case-insensitively, creating missing ones.
        New rows are flushed but not committed; the caller owns the transaction.
        """
        genres: Dict[str, Genre] = {}
        for raw in names:
            name = GenreService._clean_name(raw)
            key = name.lower()
            if key in genres:
                continue
            genre = GenreService._find_by_name(db, name)
            if genre is None:
                genre = Genre(name=name)
                db.add(genre)
                db.flush()
            genres[key] = genre
        return list(genres.values())

    @staticmethod
    def update_genre(db: Session, genre_id: int, name: str) -> Genre:
        genre = GenreService.get_genre(db, genre_id)
        name = GenreService._clean_name(name)

        existing = GenreService._find_by_name(db, name)
        if existing and existing.id != genre.id:
            raise Conflict(f"Genre '{name}' already exists")

        genre.name = name
        commit_or_conflict(db, f"Genre '{name}' already exists")
        db.refresh(genre)
        return genre

    @staticmethod
    def delete_genre(db: Session, genre_id: int) -> None:
        genre = GenreService.get_genre(db, genre_id)
        db.delete(genre)
        db.commit()
        logger.info(f"Deleted genre {genre_id}")

    @staticmethod
    def genres_with_counts(db: Session) -> List[Dict]:
        """All genres with the number of movies in each, busiest first"""
        movie_count = func.count(movie_genres.c.movie_id).label("movie_count")
        rows = (
            db.query(Genre, movie_count)
            .outerjoin(movie_genres, movie_genres.c.genre_id == Genre.id)
            .group_by(Genre.id)
            .order_by(movie_count.desc(), Genre.name)
            .all()
        )
        return [
            {"id": genre.id, "name": genre.name, "movie_count": int(count)}
            for genre, count in rows
        ]
