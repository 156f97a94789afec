"""
Review Service - review authoring, moderation and rating aggregates

Reviews are approved on creation. Rejecting a review deletes it; there is no
persisted rejected state.
"""

from sqlalchemy.orm import Session, joinedload
from sqlalchemy import func
from typing import List, Optional
import logging

from moviecatalog.database import commit_or_conflict
from moviecatalog.models.movie import Movie
from moviecatalog.models.review import Review
from moviecatalog.utils.dates import round_rating, utcnow
from moviecatalog.utils.errors import Conflict, Forbidden, NotFound
from moviecatalog.utils.validators import validate_rating

logger = logging.getLogger(__name__)

DUPLICATE_REVIEW_MESSAGE = "You have already reviewed this movie"


class ReviewService:
    """Service for review operations"""

    @staticmethod
    def query_with_details(db: Session):
        return db.query(Review).options(joinedload(Review.user), joinedload(Review.movie))

    @staticmethod
    def _get_review_row(db: Session, review_id: int) -> Review:
        review = db.get(Review, review_id)
        if not review:
            raise NotFound("Review not found")
        return review

    @staticmethod
    def _ensure_owner(review: Review, user_id: int) -> None:
        # Ownership is strict: admins moderate through approve/reject/admin_delete instead
        if review.user_id != user_id:
            raise Forbidden("You can only modify your own reviews")

    @staticmethod
    def create_review(
        db: Session,
        movie_id: int,
        user_id: int,
        rating: int,
        comment: Optional[str] = ""
    ) -> Review:
        """
        Create a review for a movie

        Args:
            db: Database session
            movie_id: Reviewed movie
            user_id: Author
            rating: Integer 1-10
            comment: Optional text

        Returns:
            The created Review, approved

        Raises:
            NotFound: movie does not exist
            InvalidArgument: rating out of range
            Conflict: the user already reviewed this movie
        """
        if not db.get(Movie, movie_id):
            raise NotFound("Movie not found")

        validate_rating(rating)

        # Fast path for a friendly message; the unique constraint is the real guard
        existing = db.query(Review).filter(
            Review.user_id == user_id,
            Review.movie_id == movie_id
        ).first()
        if existing:
            raise Conflict(DUPLICATE_REVIEW_MESSAGE)

        review = Review(
            movie_id=movie_id,
            user_id=user_id,
            rating=rating,
            comment=comment or "",
            is_approved=True
        )
        db.add(review)
        commit_or_conflict(db, DUPLICATE_REVIEW_MESSAGE)
        db.refresh(review)

        logger.info(f"User {user_id} reviewed movie {movie_id} (review {review.id}, rating {rating})")
        return review

    @staticmethod
    def update_review(
        db: Session,
        review_id: int,
        user_id: int,
        rating: int,
        comment: Optional[str] = ""
    ) -> Review:
        review = ReviewService._get_review_row(db, review_id)
        ReviewService._ensure_owner(review, user_id)
        validate_rating(rating)

        review.rating = rating
        review.comment = comment or ""
        review.updated_at = utcnow()
        db.commit()
        db.refresh(review)
        return review

    @staticmethod
    def delete_review(db: Session, review_id: int, user_id: int) -> None:
        review = ReviewService._get_review_row(db, review_id)
        ReviewService._ensure_owner(review, user_id)

        db.delete(review)
        db.commit()
        logger.info(f"User {user_id} deleted review {review_id}")

    # ==================== MODERATION ====================

    @staticmethod
    def approve_review(db: Session, review_id: int) -> Review:
        review = ReviewService._get_review_row(db, review_id)
        review.is_approved = True
        db.commit()
        db.refresh(review)
        logger.info(f"Approved review {review_id}")
        return review

    @staticmethod
    def reject_review(db: Session, review_id: int) -> None:
        """Reject a review by deleting it"""
        review = ReviewService._get_review_row(db, review_id)
        db.delete(review)
        db.commit()
        logger.info(f"Rejected (deleted) review {review_id}")

    @staticmethod
    def admin_delete_review(db: Session, review_id: int) -> None:
        review = ReviewService._get_review_row(db, review_id)
        db.delete(review)
        db.commit()
        logger.info(f"Admin deleted review {review_id}")

    # ==================== QUERIES ====================

    @staticmethod
    def get_review(db: Session, review_id: int) -> Review:
        review = ReviewService.query_with_details(db).filter(Review.id == review_id).first()
        if not review:
            raise NotFound("Review not found")
        return review

    @staticmethod
    def get_movie_reviews(db: Session, movie_id: int) -> List[Review]:
        """Approved reviews of a movie, newest first"""
        if not db.get(Movie, movie_id):
            raise NotFound("Movie not found")

        return ReviewService.query_with_details(db).filter(
            Review.movie_id == movie_id,
            Review.is_approved.is_(True)
        ).order_by(
            Review.created_at.desc(), Review.id.desc()
        ).all()

    @staticmethod
    def get_user_reviews(db: Session, user_id: int) -> List[Review]:
        return ReviewService.query_with_details(db).filter(
            Review.user_id == user_id
        ).order_by(
            Review.created_at.desc(), Review.id.desc()
        ).all()

    @staticmethod
    def list_reviews(db: Session, only_unapproved: bool = False) -> List[Review]:
        query = ReviewService.query_with_details(db)
        if only_unapproved:
            query = query.filter(Review.is_approved.is_(False))
        return query.order_by(Review.created_at.desc(), Review.id.desc()).all()

    @staticmethod
    def get_average_rating(db: Session, movie_id: int) -> float:
        """Average over approved reviews, 0.0 when there are none"""
        avg = db.query(func.avg(Review.rating)).filter(
            Review.movie_id == movie_id,
            Review.is_approved.is_(True)
        ).scalar()
        return round_rating(avg)

    @staticmethod
    def get_review_count(db: Session, movie_id: int) -> int:
        return db.query(func.count(Review.id)).filter(
            Review.movie_id == movie_id,
            Review.is_approved.is_(True)
        ).scalar() or 0
