from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select
from app.constants.order_status import OrderStatus, USER_CANCELLABLE
from app.database import get_session
from app.dependencies.admin import is_admin
from app.models.order import Order
from app.models.user import User
from app.schemas.user_schemas import ProfileUpdate
from app.services.analytics import parse_order_items
from app.utils.sanitize import sanitize_input, sanitize_phone
from app.utils.token import get_current_user

router = APIRouter()


def _profile(user: User) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "full_name": user.full_name,
        "phone": user.phone,
        "address": user.address,
        "role": user.role,
        "is_admin": is_admin(user),
        "created_at": user.created_at,
    }


# -------- USER PROFILE --------

@router.get("/me")
def get_my_profile(current_user: User = Depends(get_current_user)):
    return _profile(current_user)


@router.put("/me")
def update_my_profile(
    data: ProfileUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    if data.full_name is not None:
        current_user.full_name = sanitize_input(data.full_name)
    if data.phone is not None:
        current_user.phone = sanitize_phone(data.phone)
    if data.address is not None:
        current_user.address = sanitize_input(data.address)

    current_user.updated_at = datetime.utcnow()
    session.add(current_user)
    session.commit()
    session.refresh(current_user)

    return {"message": "Profile updated", "profile": _profile(current_user)}


# -------- MY ORDERS --------

@router.get("/me/orders")
def my_orders(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    orders = session.exec(
        select(Order)
        .where(Order.user_id == current_user.id)
        .order_by(Order.created_at.desc())
    ).all()

    return [
        {
            "order_id": o.id,
            "status": o.status,
            "total_amount": o.total_amount,
            "address": o.address,
            "created_at": o.created_at,
            "items": parse_order_items(o.items_json),
            "can_cancel": o.status in USER_CANCELLABLE,
        }
        for o in orders
    ]


@router.post("/me/orders/{order_id}/cancel")
def cancel_my_order(
    order_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    order = session.get(Order, order_id)

    if not order or order.user_id != current_user.id:
        raise HTTPException(404, "Order not found")

    if order.status not in USER_CANCELLABLE:
        raise HTTPException(400, f"Orders that are {order.status} cannot be cancelled")

    order.status = OrderStatus.cancelled.value
    order.updated_at = datetime.utcnow()
    session.add(order)
    session.commit()

    return {"message": "Order cancelled", "order_id": order.id, "status": order.status}
