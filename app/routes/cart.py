from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session
from app.constants.storage_keys import PROMO_KEY
from app.database import get_session
from app.dependencies.client_session import get_cart_store, get_client_storage
from app.models.book import Book
from app.schemas.cart_schemas import (
    CartAddRequest,
    CartResponse,
    CartSummary,
    CartUpdateRequest,
    PromoApplyRequest,
)
from app.services.cart_store import CartStore
from app.services.local_storage import KeyValueStorage, load_json, save_json
from app.services.products import book_to_cart_line, combo_to_cart_line, get_active_combo
from app.services.promo import PromoEvaluator, database_lookup

router = APIRouter()


def load_promo(storage: KeyValueStorage, session: Session) -> PromoEvaluator:
    return PromoEvaluator.from_state(
        load_json(storage, PROMO_KEY, {}, expected_type=dict),
        lookup=database_lookup(session),
    )


def build_summary(cart: CartStore, promo: PromoEvaluator) -> CartSummary:
    totals = cart.totals
    subtotal = totals["total_amount"]
    return CartSummary(
        total_items=totals["total_items"],
        subtotal=subtotal,
        total_mrp=totals["total_mrp"],
        saved_amount=totals["saved_amount"],
        savings_percent=totals["savings_percent"],
        promo_code=promo.code,
        promo_error=promo.error,
        discount=promo.discount,
        discount_amount=promo.discount_amount(subtotal),
        final_total=promo.final_total(subtotal),
    )


def cart_response(cart: CartStore, promo: PromoEvaluator) -> CartResponse:
    return CartResponse(items=cart.lines, is_open=cart.is_open, summary=build_summary(cart, promo))


# View Cart
@router.get("", response_model=CartResponse)
def get_cart(
    cart: CartStore = Depends(get_cart_store),
    storage: KeyValueStorage = Depends(get_client_storage),
    session: Session = Depends(get_session),
):
    return cart_response(cart, load_promo(storage, session))


# Add to Cart
@router.post("/add", response_model=CartResponse)
def add_to_cart(
    data: CartAddRequest,
    cart: CartStore = Depends(get_cart_store),
    storage: KeyValueStorage = Depends(get_client_storage),
    session: Session = Depends(get_session),
):
    if data.book_id is not None:
        book = session.get(Book, data.book_id)
        if not book:
            raise HTTPException(status_code=404, detail="Book not found")
        if not book.in_stock:
            raise HTTPException(status_code=400, detail="Book is out of stock")
        line = book_to_cart_line(book)
    else:
        combo = get_active_combo(session, data.combo_id)
        if not combo:
            raise HTTPException(status_code=404, detail="Combo not found")
        line = combo_to_cart_line(combo)

    cart.add_line(line)
    return cart_response(cart, load_promo(storage, session))


# Update Cart
@router.put("/update/{product_id}", response_model=CartResponse)
def update_cart_item(
    product_id: str,
    data: CartUpdateRequest,
    cart: CartStore = Depends(get_cart_store),
    storage: KeyValueStorage = Depends(get_client_storage),
    session: Session = Depends(get_session),
):
    if data.quantity >= 1 and cart.get_line(product_id) is None:
        raise HTTPException(404, "Cart item not found")

    cart.set_quantity(product_id, data.quantity)
    return cart_response(cart, load_promo(storage, session))


# Remove Cart
@router.delete("/remove/{product_id}", response_model=CartResponse)
def remove_item(
    product_id: str,
    cart: CartStore = Depends(get_cart_store),
    storage: KeyValueStorage = Depends(get_client_storage),
    session: Session = Depends(get_session),
):
    cart.remove_line(product_id)
    return cart_response(cart, load_promo(storage, session))


# Clear Cart
@router.delete("/clear", response_model=CartResponse)
def clear_cart_endpoint(
    cart: CartStore = Depends(get_cart_store),
    storage: KeyValueStorage = Depends(get_client_storage),
):
    cart.clear()
    storage.remove_item(PROMO_KEY)
    return cart_response(cart, PromoEvaluator())


# Drawer
@router.post("/open", response_model=CartResponse)
def open_cart(
    cart: CartStore = Depends(get_cart_store),
    storage: KeyValueStorage = Depends(get_client_storage),
    session: Session = Depends(get_session),
):
    cart.open()
    return cart_response(cart, load_promo(storage, session))


@router.post("/close", response_model=CartResponse)
def close_cart(
    cart: CartStore = Depends(get_cart_store),
    storage: KeyValueStorage = Depends(get_client_storage),
):
    # closing the drawer forgets any applied promo code
    cart.close()
    storage.remove_item(PROMO_KEY)
    return cart_response(cart, PromoEvaluator())


# Promo code
@router.post("/promo")
def apply_promo_code(
    data: PromoApplyRequest,
    cart: CartStore = Depends(get_cart_store),
    storage: KeyValueStorage = Depends(get_client_storage),
    session: Session = Depends(get_session),
):
    promo = PromoEvaluator(lookup=database_lookup(session))
    applied = promo.apply(data.code)
    save_json(storage, PROMO_KEY, promo.to_state())

    return {
        "applied": applied,
        "message": f"Promo code applied! {promo.label}" if applied else promo.error,
        "cart": cart_response(cart, promo),
    }
