# app/schemas/checkout_schemas.py
from pydantic import BaseModel
from typing import Dict, List, Optional

from app.config import settings
from app.schemas.cart_schemas import CartLine, CartSummary


class CustomerDetails(BaseModel):
    name: str = ""
    phone: str = ""
    email: Optional[str] = None
    address: str = ""
    city: str = settings.DEFAULT_CITY
    state: str = settings.DEFAULT_STATE
    pincode: str = ""


class CheckoutAdvanceRequest(BaseModel):
    customer: Optional[CustomerDetails] = None


class CheckoutState(BaseModel):
    step: int
    step_label: str
    customer: CustomerDetails
    errors: Dict[str, str]
    items: List[CartLine]
    summary: CartSummary
    delivery_fee: float
    grand_total: float


class OrderConfirmation(BaseModel):
    order_id: int
    order_ref: str
    total: float
    status: str
