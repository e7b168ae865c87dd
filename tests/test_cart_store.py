import json

import pytest

from app.schemas.cart_schemas import CartLine
from app.services.cart_store import CartStore, cart_totals
from app.services.local_storage import MemoryStorage


def line(product_id, price, original=None, **extra):
    return CartLine(product_id=product_id, title=f"Book {product_id}", unit_price=price,
                    original_unit_price=original, **extra)


@pytest.fixture
def storage():
    return MemoryStorage()


def test_add_same_product_twice_increments_quantity(storage):
    cart = CartStore(storage)
    cart.add_line(line("1", 200))
    cart.add_line(line("1", 200))

    assert len(cart) == 1
    assert cart.get_line("1").quantity == 2


def test_add_line_ignores_incoming_quantity_and_opens_drawer(storage):
    cart = CartStore(storage)
    assert cart.is_open is False

    cart.add_line(line("1", 200, quantity=5))

    assert cart.get_line("1").quantity == 1
    assert cart.is_open is True


def test_totals_follow_every_mutation(storage):
    cart = CartStore(storage)
    cart.add_line(line("1", 200))
    cart.add_line(line("2", 150.5))
    cart.add_line(line("2", 150.5))
    cart.set_quantity("1", 3)
    cart.add_line(line("3", 99))
    cart.remove_line("3")

    expected_amount = sum(l.unit_price * l.quantity for l in cart.lines)
    expected_items = sum(l.quantity for l in cart.lines)
    assert cart.total_amount == pytest.approx(expected_amount) == pytest.approx(901)
    assert cart.total_items == expected_items == 5


def test_set_quantity_zero_is_the_same_as_remove(storage):
    a = CartStore(MemoryStorage())
    b = CartStore(MemoryStorage())
    for cart in (a, b):
        cart.add_line(line("1", 100))
        cart.add_line(line("2", 100))

    a.set_quantity("1", 0)
    b.remove_line("1")

    assert a.get_line("1") is None
    assert [l.product_id for l in a.lines] == [l.product_id for l in b.lines] == ["2"]


def test_remove_missing_line_is_a_no_op(storage):
    cart = CartStore(storage)
    cart.add_line(line("1", 100))
    cart.remove_line("nope")
    assert len(cart) == 1


def test_clear_empties_cart(storage):
    cart = CartStore(storage)
    cart.add_line(line("1", 100))
    cart.clear()
    assert cart.is_empty()
    assert cart.total_amount == 0
    assert json.loads(storage.get_item("cart")) == []


def test_cart_is_restored_from_storage(storage):
    cart = CartStore(storage)
    cart.add_line(line("1", 100))
    cart.set_quantity("1", 4)

    restored = CartStore(storage)
    assert restored.get_line("1").quantity == 4
    assert restored.total_amount == 400


@pytest.mark.parametrize("raw", ["{not json", '{"an": "object"}', "42", ""])
def test_corrupt_storage_loads_an_empty_cart(raw):
    cart = CartStore(MemoryStorage({"cart": raw}))
    assert cart.is_empty()
    assert cart.total_items == 0


def test_invalid_stored_lines_are_skipped():
    raw = json.dumps([
        {"product_id": "1", "title": "Ok", "unit_price": 100, "quantity": 2},
        {"product_id": "2", "title": "Bad quantity", "unit_price": 100, "quantity": 0},
        {"title": "No id"},
        "junk",
    ])
    cart = CartStore(MemoryStorage({"cart": raw}))
    assert [l.product_id for l in cart.lines] == ["1"]


def test_cart_totals_report_savings_against_mrp():
    totals = cart_totals([line("1", 300, original=400), line("2", 100)])
    assert totals["total_amount"] == 400
    assert totals["total_mrp"] == 500
    assert totals["saved_amount"] == 100
    assert totals["savings_percent"] == 20


def test_combo_lines_are_separate_from_books(storage):
    cart = CartStore(storage)
    cart.add_line(line("5", 100))
    cart.add_line(line("combo-5", 450, is_combo=True, combo_id=5))
    assert len(cart) == 2
    assert cart.get_line("combo-5").is_combo
