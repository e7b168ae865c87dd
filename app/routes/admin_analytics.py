from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from typing import Optional
from datetime import datetime
from sqlmodel import Session, func, select
from app.database import get_session
from app.dependencies.admin import require_admin
from app.models.book import Book
from app.models.combo import Combo
from app.models.order import Order
from app.models.user import User
from app.services.analytics import (
    AnalyticsSnapshot,
    TimeRange,
    build_analytics,
    dashboard_stats,
    search_customers,
    summarize_customers,
)
from app.services.analytics_export import build_analytics_workbook


router = APIRouter()


def _all_orders(session: Session):
    return session.exec(select(Order).order_by(Order.created_at.desc())).all()


@router.get("/dashboard")
def dashboard(
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    orders = _all_orders(session)
    total_books = session.exec(select(func.count(Book.id))).one()
    total_combos = session.exec(select(func.count(Combo.id))).one()
    return dashboard_stats(orders, total_books, total_combos)


@router.get("/analytics", response_model=AnalyticsSnapshot)
def analytics_overview(
    time_range: TimeRange = TimeRange.all,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    return build_analytics(_all_orders(session), time_range)


@router.get("/analytics/export")
def export_excel(
    time_range: TimeRange = TimeRange.all,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    snapshot = build_analytics(_all_orders(session), time_range)
    buffer = build_analytics_workbook(snapshot)

    filename = f"analytics_{time_range.value}_{datetime.utcnow().date()}.xlsx"

    return StreamingResponse(
        buffer,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/customers")
def list_customers(
    search: Optional[str] = None,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    customers = search_customers(summarize_customers(_all_orders(session)), search)
    return {"total": len(customers), "customers": customers}


@router.get("/customers/{phone}/orders")
def customer_orders(
    phone: str,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    orders = session.exec(
        select(Order)
        .where(Order.customer_phone == phone)
        .order_by(Order.created_at.desc())
    ).all()
    return {"phone": phone, "orders": orders}
