from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select
from app.database import get_session
from app.dependencies.client_session import get_cart_store
from app.models.book import Book
from app.models.cart import CartItem
from app.models.user import User
from app.schemas.cart_schemas import CartUpdateRequest
from app.services.cart_store import CartStore
from app.utils.token import get_current_user
from datetime import datetime


router = APIRouter()


def _add_quantity(session: Session, user_id: int, book_id: int, quantity: int) -> CartItem:
    existing_item = session.exec(
        select(CartItem).where(
            CartItem.user_id == user_id,
            CartItem.book_id == book_id
        )
    ).first()

    if existing_item:
        existing_item.quantity += quantity
        existing_item.updated_at = datetime.utcnow()
        session.add(existing_item)
        return existing_item

    new_item = CartItem(user_id=user_id, book_id=book_id, quantity=quantity)
    session.add(new_item)
    return new_item


# View saved cart

@router.get("")
def get_saved_cart(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    rows = session.exec(
        select(CartItem, Book)
        .join(Book, CartItem.book_id == Book.id)
        .where(CartItem.user_id == current_user.id)
    ).all()

    items = []
    subtotal = 0

    for cart_item, book in rows:
        subtotal += book.price * cart_item.quantity
        items.append({
            "item_id": cart_item.id,
            "book_id": book.id,
            "title": book.title,
            "author": book.author,
            "image_url": book.image_url,
            "price": book.price,
            "original_price": book.original_price,
            "quantity": cart_item.quantity,
            "in_stock": book.in_stock,
            "total": book.price * cart_item.quantity
        })

    return {"items": items, "subtotal": subtotal}


# Add to saved cart

@router.post("/add/{book_id}")
def add_to_saved_cart(
    book_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    if not session.get(Book, book_id):
        raise HTTPException(status_code=404, detail="Book not found")

    item = _add_quantity(session, current_user.id, book_id, 1)
    session.commit()
    session.refresh(item)
    return {"message": "Cart updated", "item": item}


# Update saved cart

@router.put("/update/{item_id}")
def update_saved_cart_item(
    item_id: int,
    data: CartUpdateRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    item = session.get(CartItem, item_id)

    if not item or item.user_id != current_user.id:
        raise HTTPException(404, "Cart item not found")

    if data.quantity <= 0:
        session.delete(item)
        session.commit()
        return {"message": "Item removed"}

    item.quantity = data.quantity
    item.updated_at = datetime.utcnow()
    session.add(item)
    session.commit()
    session.refresh(item)

    return {"message": "Quantity updated", "item": item}


# Remove from saved cart

@router.delete("/remove/{item_id}")
def remove_saved_item(
    item_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    item = session.get(CartItem, item_id)

    if not item or item.user_id != current_user.id:
        raise HTTPException(404, "Item not found")

    session.delete(item)
    session.commit()

    return {"message": "Item removed from cart"}


def clear_saved_cart(session: Session, user_id: int):
    items = session.exec(
        select(CartItem).where(CartItem.user_id == user_id)
    ).all()

    for item in items:
        session.delete(item)

    session.commit()


@router.delete("/clear")
def clear_saved_cart_endpoint(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    clear_saved_cart(session, current_user.id)
    return {"message": "Cart cleared"}


# Copy the session cart's books into the account cart

@router.post("/import")
def import_session_cart(
    cart: CartStore = Depends(get_cart_store),
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    imported = 0
    for line in cart.lines:
        if line.is_combo or not line.product_id.isdigit():
            continue
        if not session.get(Book, int(line.product_id)):
            continue
        _add_quantity(session, current_user.id, int(line.product_id), line.quantity)
        imported += 1

    session.commit()
    return {"message": "Cart saved to your account", "imported": imported}
