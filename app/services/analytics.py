"""
Back-office aggregation over the fetched order list.

All functions take plain sequences of orders (``Order`` rows) and a ``now``
so results are reproducible in tests. Timestamps are naive UTC.
"""
import json
import logging
import math
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel, Field, ValidationError

from app.constants.order_status import OrderStatus

logger = logging.getLogger(__name__)

BEST_SELLER_LIMIT = 10
RECENT_ORDER_LIMIT = 5


class TimeRange(str, Enum):
    all = "all"
    month = "month"
    week = "week"


class SoldItem(BaseModel):
    """One line of an order's item snapshot, as far as reporting needs it."""

    title: Optional[str] = None
    author: Optional[str] = None
    category: Optional[str] = None
    price: Optional[float] = Field(default=None, allow_inf_nan=False)
    quantity: Optional[int] = None


class CategoryRevenue(BaseModel):
    name: str
    revenue: float


class BookSales(BaseModel):
    title: str
    author: str
    quantity: int
    revenue: float


class StatusCount(BaseModel):
    status: str
    count: int


class AnalyticsSnapshot(BaseModel):
    time_range: TimeRange
    total_revenue: float
    total_orders: int
    avg_order_value: float
    revenue_by_category: List[CategoryRevenue]
    best_selling_books: List[BookSales]
    sales_by_status: List[StatusCount]
    revenue_this_month: float
    revenue_last_month: float
    orders_this_month: int
    orders_last_month: int
    revenue_growth: float
    order_growth: float


def _is_cancelled(order) -> bool:
    return order.status == OrderStatus.cancelled.value


def _amount(value) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def month_start(moment: datetime) -> datetime:
    return moment.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def previous_month_start(moment: datetime) -> datetime:
    return month_start(month_start(moment) - timedelta(days=1))


def filter_orders_by_range(orders: Sequence, time_range: TimeRange, now: datetime) -> List:
    if time_range == TimeRange.month:
        start = month_start(now)
    elif time_range == TimeRange.week:
        start = now - timedelta(days=7)
    else:
        return list(orders)
    return [o for o in orders if o.created_at and o.created_at >= start]


def parse_order_items(raw) -> List[Dict]:
    """Decode an order's item snapshot, empty on anything malformed."""
    if raw is None or raw == "":
        return []
    if isinstance(raw, list):
        items = raw
    else:
        try:
            items = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Error parsing order items, skipping order")
            return []
    if not isinstance(items, list):
        logger.warning("Order items snapshot is not a list, skipping order")
        return []
    return [item for item in items if isinstance(item, dict)]


def sold_items(raw) -> List[SoldItem]:
    items = []
    for item in parse_order_items(raw):
        try:
            items.append(SoldItem.model_validate(item))
        except ValidationError:
            logger.warning(f"Skipping malformed order item: {item!r}")
    return items


def growth_percent(current: float, previous: float) -> float:
    if not previous:
        return 0.0
    return round((current - previous) / previous * 100, 1)


def build_analytics(orders: Sequence, time_range: TimeRange = TimeRange.all, now: Optional[datetime] = None) -> AnalyticsSnapshot:
    now = now or datetime.utcnow()
    window = filter_orders_by_range(orders, time_range, now)
    active = [o for o in window if not _is_cancelled(o)]

    total_revenue = sum(_amount(o.total_amount) for o in active)
    avg_order_value = total_revenue / len(active) if active else 0.0

    category_revenue: Dict[str, float] = {}
    book_sales: Dict[str, Dict] = {}

    for order in active:
        for item in sold_items(order.items_json):
            quantity = item.quantity or 0
            line_revenue = (item.price or 0.0) * quantity
            if not math.isfinite(line_revenue):
                logger.warning(f"Skipping order item with unusable revenue in order {order.id}")
                continue

            category = item.category or "Unknown"
            category_revenue[category] = category_revenue.get(category, 0.0) + line_revenue

            title = item.title or "Unknown"
            sales = book_sales.setdefault(title, {
                "title": title,
                "author": item.author or "Unknown",
                "quantity": 0,
                "revenue": 0.0,
            })
            sales["quantity"] += quantity
            sales["revenue"] += line_revenue

    revenue_by_category = sorted(
        (CategoryRevenue(name=name, revenue=round(revenue, 2)) for name, revenue in category_revenue.items()),
        key=lambda c: c.revenue,
        reverse=True,
    )
    best_selling_books = [
        BookSales(**s)
        for s in sorted(book_sales.values(), key=lambda s: s["quantity"], reverse=True)[:BEST_SELLER_LIMIT]
    ]

    # cancelled orders still count here
    status_counts: Dict[str, int] = {}
    for order in window:
        status_counts[order.status] = status_counts.get(order.status, 0) + 1
    sales_by_status = [StatusCount(status=s, count=c) for s, c in status_counts.items()]

    # month over month always looks at the full history
    this_month = month_start(now)
    last_month = previous_month_start(now)
    current = [o for o in orders if o.created_at and o.created_at >= this_month]
    previous = [o for o in orders if o.created_at and last_month <= o.created_at < this_month]

    revenue_this_month = sum(_amount(o.total_amount) for o in current if not _is_cancelled(o))
    revenue_last_month = sum(_amount(o.total_amount) for o in previous if not _is_cancelled(o))

    return AnalyticsSnapshot(
        time_range=time_range,
        total_revenue=total_revenue,
        total_orders=len(window),
        avg_order_value=avg_order_value,
        revenue_by_category=revenue_by_category,
        best_selling_books=best_selling_books,
        sales_by_status=sales_by_status,
        revenue_this_month=revenue_this_month,
        revenue_last_month=revenue_last_month,
        orders_this_month=len(current),
        orders_last_month=len(previous),
        revenue_growth=growth_percent(revenue_this_month, revenue_last_month),
        order_growth=growth_percent(len(current), len(previous)),
    )


def summarize_customers(orders: Sequence) -> List[Dict]:
    """Group orders by phone number, biggest spenders first."""
    customers: Dict[str, Dict] = {}

    for order in orders:
        key = order.customer_phone
        customer = customers.get(key)
        if customer is None:
            customer = customers[key] = {
                "name": order.customer_name,
                "phone": order.customer_phone,
                "address": order.address,
                "email": order.customer_email or "N/A",
                "total_orders": 0,
                "total_spent": 0.0,
                "first_order_date": order.created_at,
                "last_order_date": order.created_at,
                "order_ids": [],
            }

        customer["total_orders"] += 1
        customer["total_spent"] += _amount(order.total_amount)
        customer["order_ids"].append(order.id)

        if order.created_at and order.created_at > customer["last_order_date"]:
            customer["last_order_date"] = order.created_at
        if order.created_at and order.created_at < customer["first_order_date"]:
            customer["first_order_date"] = order.created_at

    return sorted(customers.values(), key=lambda c: c["total_spent"], reverse=True)


def search_customers(customers: List[Dict], term: Optional[str]) -> List[Dict]:
    if not term:
        return customers
    needle = term.lower()
    return [
        c for c in customers
        if needle in (c["name"] or "").lower()
        or term in (c["phone"] or "")
        or needle in (c["email"] or "").lower()
    ]


def dashboard_stats(orders: Sequence, total_books: int, total_combos: int) -> Dict:
    recent = sorted(orders, key=lambda o: o.created_at, reverse=True)[:RECENT_ORDER_LIMIT]
    return {
        "total_orders": len(orders),
        "total_books": total_books,
        "total_combos": total_combos,
        "total_revenue": sum(_amount(o.total_amount) for o in orders if not _is_cancelled(o)),
        "pending_orders": sum(1 for o in orders if o.status == OrderStatus.pending.value),
        "recent_orders": recent,
    }
