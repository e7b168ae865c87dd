# -------- ADMIN ORDERS --------
from datetime import date, datetime, time, timedelta
from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Optional
from sqlmodel import Session, or_, select
from sqlalchemy import String, cast
from app.constants.order_status import OrderStatus
from app.database import get_session
from app.dependencies.admin import require_admin
from app.models.order import Order
from app.models.user import User
from app.schemas.orders_schemas import OrderStatusUpdate
from app.services.analytics import parse_order_items
from app.utils.pagination import paginate

router = APIRouter()


def _order_row(o: Order) -> dict:
    return {
        "order_id": o.id,
        "customer_name": o.customer_name,
        "customer_phone": o.customer_phone,
        "customer_email": o.customer_email,
        "address": o.address,
        "total_amount": o.total_amount,
        "status": o.status,
        "created_at": o.created_at,
        "items": parse_order_items(o.items_json),
    }


@router.get("")
def list_orders(
    page: int = 1,
    limit: int = 20,
    search: Optional[str] = None,
    status: Optional[OrderStatus] = None,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    query = select(Order)

    if search:
        like = f"%{search}%"
        query = query.where(
            or_(
                Order.customer_name.ilike(like),
                Order.customer_phone.ilike(like),
                cast(Order.id, String).ilike(like),
            )
        )

    if status:
        query = query.where(Order.status == status.value)

    if start_date:
        query = query.where(Order.created_at >= datetime.combine(start_date, time.min))

    if end_date:
        # inclusive of the whole end day
        query = query.where(Order.created_at < datetime.combine(end_date + timedelta(days=1), time.min))

    query = query.order_by(Order.created_at.desc())

    return paginate(session=session, query=query, page=page, limit=limit, serialize=_order_row)


@router.get("/{order_id}")
def order_details(
    order_id: int,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    order = session.get(Order, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return _order_row(order)


@router.patch("/{order_id}/status")
def update_order_status(
    order_id: int,
    data: OrderStatusUpdate,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    order = session.get(Order, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")

    order.status = data.status.value
    order.updated_at = datetime.utcnow()
    session.add(order)
    session.commit()

    return {"message": f"Order status updated to {order.status}", "order_id": order.id, "status": order.status}


@router.delete("/{order_id}")
def delete_order(
    order_id: int,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    order = session.get(Order, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")

    session.delete(order)
    session.commit()
    return {"message": "Order deleted successfully"}
