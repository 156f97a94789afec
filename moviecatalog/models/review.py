from typing import Optional

from sqlalchemy import Column, Integer, Text, Boolean, DateTime, ForeignKey, UniqueConstraint, Index
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from moviecatalog.database import Base


class Review(Base):
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, index=True)
    movie_id = Column(Integer, ForeignKey("movies.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    rating = Column(Integer, nullable=False)  # 1-10
    comment = Column(Text, nullable=False, default="")
    is_approved = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="reviews")
    movie = relationship("Movie", back_populates="reviews")

    # One review per user per movie; the application check in ReviewService is only a fast path
    __table_args__ = (
        UniqueConstraint("user_id", "movie_id", name="unique_user_movie_review"),
        Index("ix_reviews_movie_id_approved", "movie_id", "is_approved"),
        Index("ix_reviews_created_at", "created_at"),
    )

    @property
    def username(self) -> Optional[str]:
        return self.user.username if self.user else None

    @property
    def movie_title(self) -> Optional[str]:
        return self.movie.title if self.movie else None

    def __repr__(self):
        return f"<Review(id={self.id}, movie_id={self.movie_id}, user_id={self.user_id}, rating={self.rating})>"
