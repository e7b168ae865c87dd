import json
from datetime import datetime
from types import SimpleNamespace

from openpyxl import load_workbook

from app.services.analytics import (
    TimeRange,
    build_analytics,
    dashboard_stats,
    growth_percent,
    parse_order_items,
    search_customers,
    summarize_customers,
)
from app.services.analytics_export import build_analytics_workbook

NOW = datetime(2026, 5, 15, 12, 0)


def order(id, total, status="Delivered", created_at=NOW, items=None, phone="9876543210", name="Asha"):
    return SimpleNamespace(
        id=id,
        total_amount=total,
        status=status,
        created_at=created_at,
        items_json=json.dumps(items or []),
        customer_name=name,
        customer_phone=phone,
        customer_email=None,
        address="1 Main Road, Namakkal",
    )


def test_cancelled_orders_are_excluded_from_revenue():
    snapshot = build_analytics([order(1, 100), order(2, 50, status="Cancelled")], now=NOW)

    assert snapshot.total_revenue == 100
    assert snapshot.total_orders == 2
    assert snapshot.avg_order_value == 100
    assert {s.status: s.count for s in snapshot.sales_by_status} == {"Delivered": 1, "Cancelled": 1}


def test_category_revenue_and_best_sellers():
    orders = [
        order(1, 1000, items=[
            {"title": "Atomic Habits", "author": "James Clear", "price": 399, "quantity": 2, "category": "Self Development"},
            {"title": "Psychology of Money", "author": "Morgan Housel", "price": 299, "quantity": 1, "category": "Finance"},
        ]),
        order(2, 299, items=[
            {"title": "Psychology of Money", "author": "Morgan Housel", "price": 299, "quantity": 3, "category": "Finance"},
        ]),
        order(3, 999, status="Cancelled", items=[
            {"title": "Deep Work", "price": 999, "quantity": 9, "category": "Self Development"},
        ]),
    ]
    snapshot = build_analytics(orders, now=NOW)

    assert [(c.name, c.revenue) for c in snapshot.revenue_by_category] == [
        ("Finance", 1196.0),
        ("Self Development", 798.0),
    ]
    assert snapshot.best_selling_books[0].title == "Psychology of Money"
    assert snapshot.best_selling_books[0].quantity == 4
    assert "Deep Work" not in [b.title for b in snapshot.best_selling_books]


def test_malformed_items_are_skipped():
    broken = order(1, 100)
    broken.items_json = "{oops"
    snapshot = build_analytics([broken, order(2, 50, items=[{"title": "A", "price": 50, "quantity": 1}])], now=NOW)
    assert snapshot.total_revenue == 150
    assert snapshot.revenue_by_category[0].name == "Unknown"
    assert parse_order_items('{"not": "a list"}') == []


def test_items_with_unusable_fields_are_skipped():
    orders = [
        order(1, 100, items=[{"title": "Huge", "price": 10, "quantity": 1e400}]),
        order(2, 100, items=[{"title": "Numeric category", "price": 10, "quantity": 1, "category": 5}]),
        order(3, 100, items=[{"title": "Listed category", "price": 10, "quantity": 1, "category": ["x"]}]),
        order(4, 100, items=[{"title": 7, "author": {"a": 1}, "price": 10, "quantity": 1}]),
        order(5, 100, items=[{"title": "Overflow", "price": 1e308, "quantity": 10}]),
        order(6, 40, items=[{"title": "Good", "author": "Someone", "price": 40, "quantity": 1, "category": "Finance"}]),
    ]
    snapshot = build_analytics(orders, now=NOW)

    assert snapshot.total_revenue == 540
    assert [(c.name, c.revenue) for c in snapshot.revenue_by_category] == [("Finance", 40.0)]
    assert [b.title for b in snapshot.best_selling_books] == ["Good"]


def test_time_range_windows():
    orders = [
        order(1, 100, created_at=datetime(2026, 5, 12)),
        order(2, 200, created_at=datetime(2026, 5, 2)),
        order(3, 400, created_at=datetime(2026, 3, 30)),
    ]
    assert build_analytics(orders, TimeRange.week, NOW).total_revenue == 100
    assert build_analytics(orders, TimeRange.month, NOW).total_revenue == 300
    assert build_analytics(orders, TimeRange.all, NOW).total_revenue == 700


def test_month_over_month_growth():
    orders = [
        order(1, 300, created_at=datetime(2026, 5, 3)),
        order(2, 100, created_at=datetime(2026, 4, 1)),
        order(3, 100, created_at=datetime(2026, 4, 30, 23, 59)),
        order(4, 500, status="Cancelled", created_at=datetime(2026, 4, 10)),
        order(5, 900, created_at=datetime(2026, 3, 31)),
    ]
    snapshot = build_analytics(orders, TimeRange.week, NOW)

    assert snapshot.revenue_this_month == 300
    assert snapshot.revenue_last_month == 200
    assert snapshot.orders_this_month == 1
    assert snapshot.orders_last_month == 3
    assert snapshot.revenue_growth == 50.0
    assert snapshot.order_growth == -66.7


def test_growth_with_no_previous_value():
    assert growth_percent(100, 0) == 0.0


def test_month_boundaries_in_january():
    snapshot = build_analytics(
        [order(1, 80, created_at=datetime(2025, 12, 20))],
        now=datetime(2026, 1, 5),
    )
    assert snapshot.revenue_last_month == 80
    assert snapshot.revenue_this_month == 0


def test_customers_grouped_by_phone():
    orders = [
        order(1, 100, phone="9000000001", name="Asha", created_at=datetime(2026, 5, 1)),
        order(2, 250, phone="9000000001", name="Asha", created_at=datetime(2026, 5, 9)),
        order(3, 300, phone="9000000002", name="Ravi"),
    ]
    customers = summarize_customers(orders)

    assert [c["phone"] for c in customers] == ["9000000001", "9000000002"]
    assert customers[0]["total_orders"] == 2
    assert customers[0]["total_spent"] == 350
    assert customers[0]["first_order_date"] == datetime(2026, 5, 1)
    assert customers[0]["email"] == "N/A"

    assert [c["name"] for c in search_customers(customers, "ravi")] == ["Ravi"]
    assert len(search_customers(customers, "")) == 2


def test_dashboard_stats():
    orders = [order(1, 100, status="Pending"), order(2, 40, status="Cancelled")]
    stats = dashboard_stats(orders, total_books=4, total_combos=1)
    assert stats["total_revenue"] == 100
    assert stats["pending_orders"] == 1
    assert stats["total_books"] == 4


def test_workbook_has_a_sheet_per_section():
    snapshot = build_analytics([order(1, 399, items=[
        {"title": "Atomic Habits", "author": "James Clear", "price": 399, "quantity": 1, "category": "Self Development"},
    ])], now=NOW)
    workbook = load_workbook(build_analytics_workbook(snapshot))
    assert workbook.sheetnames == ["Overview", "Categories", "Best Sellers", "Status"]
    assert workbook["Best Sellers"]["A2"].value == "Atomic Habits"
