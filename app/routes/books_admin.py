from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select
from app.database import get_session
from app.dependencies.admin import require_admin
from app.models.book import Book
from app.models.user import User
from app.schemas.book_schemas import BookCreate, BookUpdate
from datetime import datetime

router = APIRouter()


@router.get("")
def list_books_admin(
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    return session.exec(select(Book).order_by(Book.created_at.desc())).all()


@router.post("")
def create_book(
    data: BookCreate,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    book = Book(**data.model_dump())
    session.add(book)
    session.commit()
    session.refresh(book)
    return {"message": "Book added successfully", "book": book}


@router.put("/{book_id}")
def update_book(
    book_id: int,
    data: BookUpdate,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    book = session.get(Book, book_id)
    if not book:
        raise HTTPException(404, "Book not found")

    for key, value in data.model_dump(exclude_unset=True).items():
        setattr(book, key, value)

    book.updated_at = datetime.utcnow()
    session.add(book)
    session.commit()
    session.refresh(book)
    return {"message": "Book updated successfully", "book": book}


@router.delete("/{book_id}")
def delete_book(
    book_id: int,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    book = session.get(Book, book_id)
    if not book:
        raise HTTPException(404, "Book not found")

    session.delete(book)
    session.commit()
    return {"message": "Book deleted successfully"}
