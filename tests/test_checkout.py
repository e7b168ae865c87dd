import json

import pytest
from sqlalchemy.exc import OperationalError
from sqlmodel import select

from app.constants.storage_keys import CHECKOUT_KEY, PROMO_KEY
from app.exceptions import (
    CheckoutValidationError,
    EmptyCartError,
    IdempotencyKeyConflictError,
    InvalidStepError,
    OrderPersistError,
    PromoRejectedError,
    SubmissionInProgressError,
)
from app.models.order import Order
from app.models.promo_code import PromoCode
from app.schemas.cart_schemas import CartLine
from app.schemas.checkout_schemas import CustomerDetails
from app.services.cart_store import CartStore
from app.services.checkout import (
    Advance,
    CheckoutDraft,
    CheckoutStep,
    GoBack,
    OrderSubmitter,
    load_draft,
    save_draft,
    transition,
    validate_customer,
)
from app.services.local_storage import MemoryStorage
from app.services.promo import PromoEvaluator, database_lookup

LINES = [CartLine(product_id="1", title="Atomic Habits", unit_price=399, quantity=2, category="Self Development")]


def valid_customer(**overrides):
    data = dict(name="Jo", phone="9876543210", address="12 Park Street Area", pincode="600001")
    data.update(overrides)
    return CustomerDetails(**data)


def payment_draft():
    return CheckoutDraft(step=CheckoutStep.PAYMENT, customer=valid_customer())


def filled_cart(storage):
    cart = CartStore(storage)
    cart.add_line(LINES[0])
    cart.set_quantity("1", 2)
    return cart


# -------- validation --------

def test_valid_customer_has_no_errors():
    assert validate_customer(valid_customer()) == {}


def test_short_pincode_is_rejected():
    errors = validate_customer(valid_customer(pincode="60000"))
    assert errors == {"pincode": "Pincode must be exactly 6 digits"}


def test_errors_follow_form_order():
    errors = validate_customer(CustomerDetails(name="", phone="12345", email="bad", address="short", pincode=""))
    assert list(errors) == ["name", "phone", "email", "address", "pincode"]
    assert errors["phone"] == "Enter a valid 10-digit Indian mobile number"


def test_name_rules():
    assert validate_customer(valid_customer(name="J"))["name"] == "Name must be at least 2 characters"
    assert "name" in validate_customer(valid_customer(name="R2D2"))
    assert "name" not in validate_customer(valid_customer(name="Dr. A Rao"))


def test_phone_accepts_separators():
    assert validate_customer(valid_customer(phone="98765 43210")) == {}
    assert "phone" in validate_customer(valid_customer(phone="5876543210"))


# -------- state machine --------

def test_advance_from_cart_requires_items():
    with pytest.raises(EmptyCartError):
        transition(CheckoutDraft(), Advance(), [])

    draft = transition(CheckoutDraft(), Advance(), LINES)
    assert draft.step == CheckoutStep.ADDRESS


def test_invalid_address_stays_on_address_step():
    draft = CheckoutDraft(step=CheckoutStep.ADDRESS)
    with pytest.raises(CheckoutValidationError) as exc:
        transition(draft, Advance(valid_customer(pincode="60000")), LINES)
    assert exc.value.first_invalid_field == "pincode"
    assert draft.step == CheckoutStep.ADDRESS


def test_valid_address_moves_to_payment_with_cleaned_details():
    draft = CheckoutDraft(step=CheckoutStep.ADDRESS)
    nxt = transition(draft, Advance(valid_customer(name="  Jo <b>", pincode="600 001")), LINES)
    assert nxt.step == CheckoutStep.PAYMENT
    assert nxt.customer.name == "Jo b"
    assert nxt.customer.pincode == "600001"


def test_cannot_advance_past_payment():
    with pytest.raises(InvalidStepError):
        transition(payment_draft(), Advance(), LINES)


def test_go_back_only_to_reached_steps():
    draft = payment_draft()
    assert transition(draft, GoBack(1), LINES).step == CheckoutStep.CART
    assert transition(draft, GoBack(2), []).step == CheckoutStep.ADDRESS

    with pytest.raises(InvalidStepError):
        transition(CheckoutDraft(step=CheckoutStep.ADDRESS), GoBack(3), LINES)
    with pytest.raises(InvalidStepError):
        transition(draft, GoBack(0), LINES)


def test_draft_persists_and_survives_corruption():
    storage = MemoryStorage()
    save_draft(storage, payment_draft())
    assert load_draft(storage).step == CheckoutStep.PAYMENT

    storage.set_item(CHECKOUT_KEY, json.dumps({"step": 9}))
    assert load_draft(storage).step == CheckoutStep.CART


# -------- submission --------

def test_submit_persists_order_and_clears_cart(session):
    storage = MemoryStorage()
    cart = filled_cart(storage)
    save_draft(storage, payment_draft())
    promo = PromoEvaluator()
    promo.apply("save10")
    storage.set_item(PROMO_KEY, json.dumps(promo.to_state()))
    notified = []

    submitter = OrderSubmitter(session, notifier=lambda order, lines: notified.append((order, lines)), clock=lambda: 1700000000.5)
    confirmation = submitter.submit(session_id="sess-1", draft=payment_draft(), cart=cart, storage=storage, promo=promo)

    order = session.get(Order, confirmation.order_id)
    assert order.total_amount == pytest.approx(718.2)
    assert order.discount_amount == pytest.approx(79.8)
    assert order.promo_code == "SAVE10"
    assert order.status == "Pending"
    assert order.address == "12 Park Street Area, Namakkal, Tamil Nadu - 600001"
    assert json.loads(order.items_json)[0]["quantity"] == 2
    assert confirmation.order_ref == "1700000000500"

    assert cart.is_empty()
    assert storage.get_item(CHECKOUT_KEY) is None
    assert storage.get_item(PROMO_KEY) is None
    assert len(notified) == 1


def test_submit_requires_payment_step(session):
    storage = MemoryStorage()
    with pytest.raises(InvalidStepError):
        OrderSubmitter(session).submit(session_id="s", draft=CheckoutDraft(), cart=filled_cart(storage), storage=storage)


def test_submit_with_empty_cart_fails(session):
    storage = MemoryStorage()
    with pytest.raises(EmptyCartError):
        OrderSubmitter(session).submit(session_id="s", draft=payment_draft(), cart=CartStore(storage), storage=storage)


def test_repeated_request_key_returns_the_same_order(session):
    storage = MemoryStorage()
    submitter = OrderSubmitter(session)
    first = submitter.submit(session_id="s", draft=payment_draft(), cart=filled_cart(storage), storage=storage, request_key="key-1")
    second = submitter.submit(session_id="s", draft=payment_draft(), cart=filled_cart(storage), storage=storage, request_key="key-1")

    assert first.order_id == second.order_id
    assert len(session.exec(select(Order)).all()) == 1


def test_notification_failure_does_not_fail_the_order(session):
    storage = MemoryStorage()
    cart = filled_cart(storage)

    def broken_notifier(order, lines):
        raise RuntimeError("mail is down")

    confirmation = OrderSubmitter(session, notifier=broken_notifier).submit(
        session_id="s", draft=payment_draft(), cart=cart, storage=storage
    )
    assert confirmation.order_id
    assert cart.is_empty()


class FailingSession:
    def __init__(self):
        self.rolled_back = False

    def add(self, obj):
        pass

    def commit(self):
        raise OperationalError("INSERT", {}, Exception("database is locked"))

    def rollback(self):
        self.rolled_back = True


def test_persist_failure_keeps_cart_and_draft():
    storage = MemoryStorage()
    cart = filled_cart(storage)
    save_draft(storage, payment_draft())
    failing = FailingSession()

    with pytest.raises(OrderPersistError):
        OrderSubmitter(failing).submit(session_id="s", draft=payment_draft(), cart=cart, storage=storage)

    assert failing.rolled_back
    assert cart.total_items == 2
    assert load_draft(storage).step == CheckoutStep.PAYMENT


def test_concurrent_submission_is_rejected(session):
    storage = MemoryStorage()
    OrderSubmitter._in_flight.add("busy-session")
    try:
        with pytest.raises(SubmissionInProgressError):
            OrderSubmitter(session).submit(session_id="busy-session", draft=payment_draft(), cart=filled_cart(storage), storage=storage)
    finally:
        OrderSubmitter._in_flight.discard("busy-session")

    assert "s" not in OrderSubmitter._in_flight


def test_order_key_from_another_session_is_rejected(session):
    first_storage = MemoryStorage()
    OrderSubmitter(session).submit(
        session_id="session-a", draft=payment_draft(), cart=filled_cart(first_storage),
        storage=first_storage, request_key="shared-key",
    )

    other_storage = MemoryStorage()
    other_cart = filled_cart(other_storage)
    with pytest.raises(IdempotencyKeyConflictError):
        OrderSubmitter(session).submit(
            session_id="session-b", draft=payment_draft(), cart=other_cart,
            storage=other_storage, request_key="shared-key",
        )

    assert other_cart.total_items == 2
    assert len(session.exec(select(Order)).all()) == 1


def test_order_stores_sanitized_customer_details(session):
    storage = MemoryStorage()
    draft = CheckoutDraft(
        step=CheckoutStep.PAYMENT,
        customer=valid_customer(address="<img src=x onerror=alert(1)> Park Street"),
    )
    confirmation = OrderSubmitter(session).submit(session_id="s", draft=draft, cart=filled_cart(storage), storage=storage)

    order = session.get(Order, confirmation.order_id)
    assert "<" not in order.address
    assert "onerror" not in order.address
    assert order.address.endswith("Park Street, Namakkal, Tamil Nadu - 600001")


def test_promo_is_checked_again_when_the_order_is_placed(session):
    session.add(PromoCode(code="ONCE50", discount=0.5, usage_limit=1))
    session.commit()

    carts = []
    for _ in range(2):
        storage = MemoryStorage()
        promo = PromoEvaluator(database_lookup(session))
        assert promo.apply("once50")
        storage.set_item(PROMO_KEY, json.dumps(promo.to_state()))
        carts.append((storage, filled_cart(storage), promo))

    storage, cart, promo = carts[0]
    first = OrderSubmitter(session).submit(session_id="a", draft=payment_draft(), cart=cart, storage=storage, promo=promo)
    assert session.get(Order, first.order_id).discount_amount == pytest.approx(399)

    storage, cart, promo = carts[1]
    with pytest.raises(PromoRejectedError) as exc:
        OrderSubmitter(session).submit(session_id="b", draft=payment_draft(), cart=cart, storage=storage, promo=promo)

    assert str(exc.value) == "Promo code usage limit reached"
    assert storage.get_item(PROMO_KEY) is None
    assert cart.total_items == 2
    assert session.exec(select(PromoCode)).one().times_used == 1
    assert len(session.exec(select(Order)).all()) == 1
