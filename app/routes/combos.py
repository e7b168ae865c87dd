from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Optional
from sqlmodel import Session, select
from app.database import get_session
from app.models.book import Book
from app.models.combo import Combo
from app.services.products import get_active_combo

router = APIRouter()


@router.get("", summary="List active combos")
def list_combos(
    limit: Optional[int] = Query(None, ge=1),
    session: Session = Depends(get_session),
):
    query = select(Combo).where(Combo.is_active == True).order_by(Combo.created_at.desc())  # noqa: E712
    if limit:
        query = query.limit(limit)
    return session.exec(query).all()


@router.get("/{combo_id}", summary="Combo details with its books")
def get_combo(combo_id: int, session: Session = Depends(get_session)):
    combo = get_active_combo(session, combo_id)
    if not combo:
        raise HTTPException(404, "Combo not found")

    books = []
    if combo.book_ids:
        books = session.exec(select(Book).where(Book.id.in_(combo.book_ids))).all()

    return {**combo.model_dump(), "books": books}
