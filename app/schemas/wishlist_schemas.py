from pydantic import BaseModel
from typing import Optional


class WishlistEntry(BaseModel):
    product_id: str
    title: str
    author: Optional[str] = None
    price: float
    original_price: Optional[float] = None
    image_url: Optional[str] = None
    category: Optional[str] = None
    in_stock: bool = True


class WishlistAddRequest(BaseModel):
    book_id: int
