from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session
from app.database import get_session
from app.dependencies.client_session import get_wishlist_store
from app.models.book import Book
from app.schemas.wishlist_schemas import WishlistAddRequest
from app.services.products import book_to_wishlist_entry
from app.services.wishlist_store import WishlistStore

router = APIRouter()


@router.post("/add")
def add_to_wishlist(
    data: WishlistAddRequest,
    wishlist: WishlistStore = Depends(get_wishlist_store),
    session: Session = Depends(get_session),
):
    book = session.get(Book, data.book_id)
    if not book:
        raise HTTPException(404, "Book not found")

    if not wishlist.add(book_to_wishlist_entry(book)):
        return {"message": "Already in wishlist", "count": wishlist.count}

    return {"message": "Added to wishlist", "count": wishlist.count}


@router.delete("/remove/{product_id}")
def remove_from_wishlist(
    product_id: str,
    wishlist: WishlistStore = Depends(get_wishlist_store),
):
    wishlist.remove(product_id)
    return {"message": "Removed from wishlist", "count": wishlist.count}


@router.get("")
def get_wishlist(wishlist: WishlistStore = Depends(get_wishlist_store)):
    return {"count": wishlist.count, "items": wishlist.entries}


@router.get("/status/{product_id}")
def wishlist_status(
    product_id: str,
    wishlist: WishlistStore = Depends(get_wishlist_store),
):
    return {"in_wishlist": wishlist.has(product_id)}


@router.get("/count")
def wishlist_count(wishlist: WishlistStore = Depends(get_wishlist_store)):
    return {"count": wishlist.count}
