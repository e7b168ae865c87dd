from pydantic import BaseModel, Field, model_validator
from typing import List, Optional


class CartLine(BaseModel):
    product_id: str
    title: str
    author: Optional[str] = None
    unit_price: float = Field(..., ge=0)
    original_unit_price: Optional[float] = None
    image_url: Optional[str] = None
    category: Optional[str] = None
    quantity: int = Field(default=1, ge=1)
    is_combo: bool = False
    combo_id: Optional[int] = None

    @property
    def line_total(self) -> float:
        return self.unit_price * self.quantity


class CartAddRequest(BaseModel):
    book_id: Optional[int] = None
    combo_id: Optional[int] = None

    @model_validator(mode="after")
    def exactly_one_product(self):
        if (self.book_id is None) == (self.combo_id is None):
            raise ValueError("Provide exactly one of book_id or combo_id")
        return self


class CartUpdateRequest(BaseModel):
    quantity: int


class PromoApplyRequest(BaseModel):
    code: str


class CartSummary(BaseModel):
    total_items: int
    subtotal: float
    total_mrp: float
    saved_amount: float
    savings_percent: int
    promo_code: Optional[str] = None
    promo_error: Optional[str] = None
    discount: float = 0.0
    discount_amount: float = 0.0
    final_total: float


class CartResponse(BaseModel):
    items: List[CartLine]
    is_open: bool
    summary: CartSummary
