from pydantic import BaseModel

from app.constants.order_status import OrderStatus


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
