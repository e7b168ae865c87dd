from enum import Enum


class OrderStatus(str, Enum):
    pending = "Pending"
    confirmed = "Confirmed"
    delivered = "Delivered"
    cancelled = "Cancelled"


# Customers may only cancel orders that have not been delivered yet
USER_CANCELLABLE = {OrderStatus.pending.value, OrderStatus.confirmed.value}
