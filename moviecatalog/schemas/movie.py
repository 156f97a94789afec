"""
Movie and genre schemas
"""

from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime
from typing import List, Optional

from moviecatalog.schemas.review import ReviewResponse


class GenreResponse(BaseModel):
    id: int
    name: str
    model_config = ConfigDict(from_attributes=True)


class GenreWithCount(GenreResponse):
    movie_count: int


class GenreCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)


class GenreNames(BaseModel):
    genres: List[str] = Field(..., min_length=1)


class MovieCreate(BaseModel):
    """Admin payload for a new movie; ranges are validated by MovieService"""
    title: str
    director: Optional[str] = None
    year: Optional[int] = None
    description: Optional[str] = None
    duration: Optional[int] = None
    poster_url: Optional[str] = Field(None, max_length=500)
    genres: List[str] = Field(default_factory=list)


class MovieUpdate(BaseModel):
    title: str
    director: Optional[str] = None
    year: Optional[int] = None
    description: Optional[str] = None
    duration: Optional[int] = None
    poster_url: Optional[str] = Field(None, max_length=500)


class MovieSummary(BaseModel):
    """Movie row with aggregates over approved reviews"""
    id: int
    title: str
    director: Optional[str] = None
    year: Optional[int] = None
    description: Optional[str] = None
    duration: Optional[int] = None
    poster_url: Optional[str] = None
    created_at: Optional[datetime] = None
    average_rating: float = 0.0
    review_count: int = 0


class MovieWithGenres(MovieSummary):
    genres: List[GenreResponse] = []


class MovieDetail(MovieWithGenres):
    reviews: List[ReviewResponse] = []
