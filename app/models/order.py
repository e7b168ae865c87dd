from sqlmodel import SQLModel, Field
from sqlalchemy import Column, Text
from typing import Optional
from datetime import datetime

from app.constants.order_status import OrderStatus


class Order(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: Optional[int] = Field(default=None, foreign_key="user.id")
    # client session that placed the order, owns its request_key
    session_id: Optional[str] = Field(default=None, index=True)

    customer_name: str
    customer_phone: str = Field(index=True)
    customer_email: Optional[str] = None
    address: str  # flattened "address, city, state - pincode"

    total_amount: float
    discount_amount: float = 0.0
    promo_code: Optional[str] = None

    # JSON-serialized snapshot of the cart lines at checkout
    items_json: str = Field(default="[]", sa_column=Column(Text, nullable=False))

    status: str = Field(default=OrderStatus.pending.value, index=True)

    # client generated key, a repeated submit returns the same order
    request_key: Optional[str] = Field(default=None, unique=True, index=True)

    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
