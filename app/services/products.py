from typing import Optional

from sqlmodel import Session

from app.models.book import Book
from app.models.combo import Combo
from app.schemas.cart_schemas import CartLine
from app.schemas.wishlist_schemas import WishlistEntry

COMBO_PREFIX = "combo-"
COMBO_CATEGORY = "Combo"


def combo_product_id(combo_id: int) -> str:
    return f"{COMBO_PREFIX}{combo_id}"


def book_to_cart_line(book: Book) -> CartLine:
    return CartLine(
        product_id=str(book.id),
        title=book.title,
        author=book.author,
        unit_price=book.price,
        original_unit_price=book.original_price,
        image_url=book.image_url,
        category=book.category,
    )


def combo_to_cart_line(combo: Combo) -> CartLine:
    return CartLine(
        product_id=combo_product_id(combo.id),
        title=combo.title,
        unit_price=combo.price,
        original_unit_price=combo.original_price,
        image_url=combo.image_url,
        category=COMBO_CATEGORY,
        is_combo=True,
        combo_id=combo.id,
    )


def book_to_wishlist_entry(book: Book) -> WishlistEntry:
    return WishlistEntry(
        product_id=str(book.id),
        title=book.title,
        author=book.author,
        price=book.price,
        original_price=book.original_price,
        image_url=book.image_url,
        category=book.category,
        in_stock=book.in_stock,
    )


def get_active_combo(session: Session, combo_id: int) -> Optional[Combo]:
    combo = session.get(Combo, combo_id)
    if combo is None or not combo.is_active:
        return None
    return combo
