from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select
from app.database import get_session
from app.dependencies.admin import is_admin
from app.models.book import Book
from app.models.review import Review
from app.models.user import User
from datetime import datetime
from app.schemas.review_schemas import ReviewCreate, ReviewUpdate
from app.utils.sanitize import sanitize_input
from app.utils.token import get_current_user


router = APIRouter()


# ---------------------------------------------------------
# LIST REVIEWS FOR A BOOK
# ---------------------------------------------------------

@router.get("/book/{book_id}")
def list_reviews(book_id: int, session: Session = Depends(get_session)):
    if not session.get(Book, book_id):
        raise HTTPException(404, "Book not found")

    rows = session.exec(
        select(Review, User)
        .join(User, User.id == Review.user_id)
        .where(Review.book_id == book_id)
        .order_by(Review.created_at.desc())
    ).all()

    reviews = [
        {
            "id": r.id,
            "rating": r.rating,
            "comment": r.comment,
            "user_id": r.user_id,
            "user_name": u.full_name or u.email.split("@")[0],
            "created_at": r.created_at,
            "updated_at": r.updated_at,
        }
        for r, u in rows
    ]

    avg_rating = (
        sum(r["rating"] for r in reviews) / len(reviews)
        if reviews else 0
    )

    return {
        "book_id": book_id,
        "average_rating": round(avg_rating, 1),
        "total_reviews": len(reviews),
        "reviews": reviews,
    }


@router.get("/book/{book_id}/mine")
def my_review(
    book_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    review = session.exec(
        select(Review).where(Review.book_id == book_id, Review.user_id == current_user.id)
    ).first()
    return {"review": review}


# ---------------------------------------------------------
# CREATE A REVIEW
# ---------------------------------------------------------

@router.post("/book/{book_id}")
def create_review(
    book_id: int,
    data: ReviewCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    if not session.get(Book, book_id):
        raise HTTPException(404, "Book not found")

    existing = session.exec(
        select(Review).where(Review.book_id == book_id, Review.user_id == current_user.id)
    ).first()
    if existing:
        raise HTTPException(400, "You have already reviewed this book")

    review = Review(
        book_id=book_id,
        user_id=current_user.id,
        rating=data.rating,
        comment=sanitize_input(data.comment, max_length=1000) if data.comment else None,
    )

    session.add(review)
    session.commit()
    session.refresh(review)

    return {"message": "Review added", "review": review}


# ---------------------------------------------------------
# UPDATE A REVIEW
# ---------------------------------------------------------

@router.put("/{review_id}")
def update_review(
    review_id: int,
    data: ReviewUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    review = session.get(Review, review_id)

    if not review or review.user_id != current_user.id:
        raise HTTPException(404, "Review not found")

    if data.rating is not None:
        review.rating = data.rating

    if data.comment is not None:
        review.comment = sanitize_input(data.comment, max_length=1000)

    review.updated_at = datetime.utcnow()

    session.add(review)
    session.commit()
    session.refresh(review)

    return {"message": "Review updated successfully", "review": review}


# ---------------------------------------------------------
# DELETE REVIEW
# ---------------------------------------------------------

@router.delete("/{review_id}")
def delete_review(
    review_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    review = session.get(Review, review_id)

    if not review or (review.user_id != current_user.id and not is_admin(current_user)):
        raise HTTPException(404, "Review not found")

    session.delete(review)
    session.commit()

    return {"message": "Review deleted successfully"}
