from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from moviecatalog.database import get_db
from moviecatalog.schemas.review import (
    MovieReviewsResponse,
    ReviewCreate,
    ReviewResponse,
    ReviewUpdate,
)
from moviecatalog.services.review_service import ReviewService
from moviecatalog.services.session_store import Principal
from moviecatalog.utils.dependencies import get_admin_principal, get_current_principal
from moviecatalog.utils.responses import ok

router = APIRouter(prefix="/api/reviews", tags=["Reviews"])


def review_out(review) -> ReviewResponse:
    return ReviewResponse.model_validate(review)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_review(
    review_data: ReviewCreate,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    """
    Review a movie

    - **movie_id**: Movie being reviewed
    - **rating**: Integer from 1 to 10
    - **comment**: Optional text, limited HTML allowed

    One review per user per movie; a second attempt returns 409.
    """
    review = ReviewService.create_review(
        db, review_data.movie_id, principal.user_id, review_data.rating, review_data.comment
    )
    return ok(review_out(ReviewService.get_review(db, review.id)), "Review added")


@router.get("/movie/{movie_id}")
def get_movie_reviews(movie_id: int, db: Session = Depends(get_db)):
    """Approved reviews for a movie with the aggregate rating"""
    reviews = ReviewService.get_movie_reviews(db, movie_id)
    return ok(MovieReviewsResponse(
        reviews=[review_out(r) for r in reviews],
        average_rating=ReviewService.get_average_rating(db, movie_id),
        review_count=ReviewService.get_review_count(db, movie_id),
    ))


@router.get("/my")
def get_my_reviews(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    return ok([review_out(r) for r in ReviewService.get_user_reviews(db, principal.user_id)])


@router.get("/pending", dependencies=[Depends(get_admin_principal)])
def get_pending_reviews(db: Session = Depends(get_db)):
    return ok([review_out(r) for r in ReviewService.list_reviews(db, only_unapproved=True)])


@router.get("/{review_id}")
def get_review(review_id: int, db: Session = Depends(get_db)):
    return ok(review_out(ReviewService.get_review(db, review_id)))


@router.put("/{review_id}")
def update_review(
    review_id: int,
    review_data: ReviewUpdate,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    """Edit your own review"""
    ReviewService.update_review(db, review_id, principal.user_id, review_data.rating, review_data.comment)
    return ok(review_out(ReviewService.get_review(db, review_id)), "Review updated")


@router.delete("/{review_id}")
def delete_review(
    review_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    """Delete your own review"""
    ReviewService.delete_review(db, review_id, principal.user_id)
    return ok(message="Review deleted")


# ==================== MODERATION ====================

@router.patch("/{review_id}/approve", dependencies=[Depends(get_admin_principal)])
def approve_review(review_id: int, db: Session = Depends(get_db)):
    review = ReviewService.approve_review(db, review_id)
    return ok(review_out(review), "Review approved")


@router.patch("/{review_id}/reject", dependencies=[Depends(get_admin_principal)])
def reject_review(review_id: int, db: Session = Depends(get_db)):
    ReviewService.reject_review(db, review_id)
    return ok(message="Review rejected")
