import re
from typing import Optional

from fastapi import Depends, Header, HTTPException
from sqlmodel import Session

from app.database import get_session
from app.services.cart_store import CartStore
from app.services.local_storage import DatabaseStorage
from app.services.wishlist_store import WishlistStore

SESSION_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{8,128}$")


def get_client_session_id(x_client_session: Optional[str] = Header(None)) -> str:
    if not x_client_session or not SESSION_ID_PATTERN.match(x_client_session):
        raise HTTPException(400, "Missing or invalid X-Client-Session header")
    return x_client_session


def get_client_storage(
    session_id: str = Depends(get_client_session_id),
    session: Session = Depends(get_session),
) -> DatabaseStorage:
    return DatabaseStorage(session, session_id)


def get_cart_store(storage: DatabaseStorage = Depends(get_client_storage)) -> CartStore:
    return CartStore(storage)


def get_wishlist_store(storage: DatabaseStorage = Depends(get_client_storage)) -> WishlistStore:
    return WishlistStore(storage)
