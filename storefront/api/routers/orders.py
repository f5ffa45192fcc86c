# storefront/api/routers/orders.py
from fastapi import APIRouter, Depends, Header
from sqlalchemy.orm import Session

from storefront.data.database import get_db
from storefront.domain.schemas import OrderCreate, OrderCreated, OrderOut, OrderStatusUpdate
from storefront.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


def get_service(db: Session):
    return OrderService(db)


@router.post("", response_model=OrderCreated)
def create_order(
    payload: OrderCreate,
    idempotency_key: str | None = Header(None, alias="Idempotency-Key"),
    db: Session = Depends(get_db),
):
    """
    Places an order from a checkout payload.
    Totals are recomputed server side, stock is decremented in the same
    transaction.
    """
    svc = get_service(db)
    return svc.create_order(payload, idempotency_key=idempotency_key)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(order_id: str, db: Session = Depends(get_db)):
    svc = get_service(db)
    return svc.get_order(order_id)


@router.patch("/{order_id}/status", response_model=OrderOut)
def update_order_status(order_id: str, payload: OrderStatusUpdate, db: Session = Depends(get_db)):
    svc = get_service(db)
    return svc.update_order_status(order_id, payload.status)
