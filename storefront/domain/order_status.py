# storefront/domain/order_status.py
from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


TERMINAL_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED, OrderStatus.REFUNDED})

#forward path only, cancel/refund handled separately
_NEXT = {
    OrderStatus.PENDING: OrderStatus.PROCESSING,
    OrderStatus.PROCESSING: OrderStatus.SHIPPED,
    OrderStatus.SHIPPED: OrderStatus.DELIVERED,
}


def can_transition(current, target) -> bool:
    current = OrderStatus(current)
    target = OrderStatus(target)

    if current in TERMINAL_STATUSES:
        return False

    if target in (OrderStatus.CANCELLED, OrderStatus.REFUNDED):
        return True

    return _NEXT.get(current) is target
