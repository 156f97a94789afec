"""
Import all models to ensure they are registered with SQLAlchemy
"""
from moviecatalog.models.user import User, Role
from moviecatalog.models.movie import Movie, Genre, movie_genres
from moviecatalog.models.review import Review

__all__ = [
    "User",
    "Role",
    "Movie",
    "Genre",
    "movie_genres",
    "Review",
]
