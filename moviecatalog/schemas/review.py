"""
Review Schemas - Pydantic models for review request/response validation
"""

from pydantic import BaseModel, Field, ConfigDict, StrictInt, field_validator
from datetime import datetime
from typing import Optional

from moviecatalog.schemas.validation import SafeStringMixin

MAX_COMMENT_LENGTH = 2000


class ReviewCreate(BaseModel, SafeStringMixin):
    """Schema for posting a review; rating must be a JSON integer, bounds are checked by ReviewService"""
    movie_id: int = Field(..., description="Movie ID", gt=0)
    rating: StrictInt = Field(..., description="Rating value (1-10)")
    comment: str = Field("", max_length=MAX_COMMENT_LENGTH)

    @field_validator('comment')
    @classmethod
    def clean_comment(cls, v):
        v = cls.validate_no_script(v)
        return cls.sanitize_html(v)


class ReviewUpdate(BaseModel, SafeStringMixin):
    """Schema for editing an existing review"""
    rating: StrictInt = Field(..., description="New rating value (1-10)")
    comment: str = Field("", max_length=MAX_COMMENT_LENGTH)

    @field_validator('comment')
    @classmethod
    def clean_comment(cls, v):
        v = cls.validate_no_script(v)
        return cls.sanitize_html(v)


class ReviewResponse(BaseModel):
    """Review as returned to clients, with author and movie names resolved"""
    id: int
    movie_id: int
    user_id: int
    username: Optional[str] = None
    movie_title: Optional[str] = None
    rating: int
    comment: str
    is_approved: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class MovieReviewsResponse(BaseModel):
    reviews: list[ReviewResponse]
    average_rating: float
    review_count: int
