from fastapi import APIRouter, Depends, HTTPException
from typing import List
from sqlmodel import Session, select
from app.database import get_session
from app.dependencies.admin import require_admin
from app.models.book import Book
from app.models.combo import Combo
from app.models.user import User
from app.schemas.combo_schemas import ComboCreate, ComboUpdate
from datetime import datetime

router = APIRouter()


def _check_books(session: Session, book_ids: List[int]) -> List[int]:
    unique_ids = list(dict.fromkeys(book_ids))
    found = session.exec(select(Book.id).where(Book.id.in_(unique_ids))).all()
    missing = sorted(set(unique_ids) - set(found))
    if missing:
        raise HTTPException(400, f"Unknown book ids: {missing}")
    return unique_ids


@router.get("")
def list_combos_admin(
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    return session.exec(select(Combo).order_by(Combo.created_at.desc())).all()


@router.post("")
def create_combo(
    data: ComboCreate,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    values = data.model_dump()
    values["book_ids"] = _check_books(session, data.book_ids)

    combo = Combo(**values)
    session.add(combo)
    session.commit()
    session.refresh(combo)
    return {"message": "Combo added successfully", "combo": combo}


@router.put("/{combo_id}")
def update_combo(
    combo_id: int,
    data: ComboUpdate,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    combo = session.get(Combo, combo_id)
    if not combo:
        raise HTTPException(404, "Combo not found")

    values = data.model_dump(exclude_unset=True)
    if values.get("book_ids") is not None:
        values["book_ids"] = _check_books(session, values["book_ids"])

    for key, value in values.items():
        setattr(combo, key, value)

    combo.updated_at = datetime.utcnow()
    session.add(combo)
    session.commit()
    session.refresh(combo)
    return {"message": "Combo updated successfully", "combo": combo}


@router.delete("/{combo_id}")
def delete_combo(
    combo_id: int,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    combo = session.get(Combo, combo_id)
    if not combo:
        raise HTTPException(404, "Combo not found")

    session.delete(combo)
    session.commit()
    return {"message": "Combo deleted successfully"}
