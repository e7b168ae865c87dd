from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select
from app.database import get_session
from app.models.wishlist import Wishlist
from app.models.book import Book
from app.models.user import User
from app.utils.token import get_current_user
from sqlalchemy import func

router = APIRouter()


@router.post("/add/{book_id}")
def add_to_saved_wishlist(
    book_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    if not session.get(Book, book_id):
        raise HTTPException(404, "Book not found")

    existing = session.exec(
        select(Wishlist)
        .where(Wishlist.user_id == current_user.id, Wishlist.book_id == book_id)
    ).first()

    if existing:
        return {"message": "Already in wishlist"}

    new_item = Wishlist(user_id=current_user.id, book_id=book_id)
    session.add(new_item)
    session.commit()

    return {"message": "Added to wishlist"}


@router.delete("/remove/{book_id}")
def remove_from_saved_wishlist(
    book_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    item = session.exec(
        select(Wishlist)
        .where(Wishlist.user_id == current_user.id, Wishlist.book_id == book_id)
    ).first()

    if not item:
        raise HTTPException(404, "Wishlist item not found")

    session.delete(item)
    session.commit()

    return {"message": "Removed from wishlist"}


@router.get("")
def get_saved_wishlist(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    rows = session.exec(
        select(Wishlist, Book)
        .join(Book, Wishlist.book_id == Book.id)
        .where(Wishlist.user_id == current_user.id)
        .order_by(Wishlist.created_at)
    ).all()

    return [
        {
            "wishlist_id": w.id,
            "book_id": book.id,
            "title": book.title,
            "author": book.author,
            "price": book.price,
            "image_url": book.image_url,
            "in_stock": book.in_stock,
        }
        for w, book in rows
    ]


@router.get("/status/{book_id}")
def saved_wishlist_status(
    book_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    exists = session.exec(
        select(Wishlist).where(
            Wishlist.user_id == current_user.id,
            Wishlist.book_id == book_id
        )
    ).first()

    return {"in_wishlist": bool(exists)}


@router.get("/count")
def saved_wishlist_count(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    count = session.exec(
        select(func.count()).select_from(Wishlist).where(
            Wishlist.user_id == current_user.id
        )
    ).one()

    return {"count": count or 0}
