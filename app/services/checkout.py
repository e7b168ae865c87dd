"""
Checkout flow: Cart (1) -> Address (2) -> Payment (3).

Steps only move forward one at a time and only when the current step is
valid; going back to any step already reached is always allowed. The
transition function is pure, persistence of the draft and the final order
submission live outside it.
"""
import json
import logging
import re
import threading
import time
from dataclasses import dataclass
from enum import IntEnum
from typing import Callable, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from app.constants.order_status import OrderStatus
from app.constants.storage_keys import CHECKOUT_KEY, PROMO_KEY
from app.exceptions import (
    CheckoutValidationError,
    EmptyCartError,
    IdempotencyKeyConflictError,
    InvalidStepError,
    OrderPersistError,
    PromoCodeError,
    PromoRejectedError,
    SubmissionInProgressError,
)
from app.models.order import Order
from app.schemas.cart_schemas import CartLine
from app.schemas.checkout_schemas import CustomerDetails, OrderConfirmation
from app.services.cart_store import CartStore
from app.services.local_storage import KeyValueStorage, load_json, save_json
from app.services.promo import PromoEvaluator, database_lookup, record_promo_use
from app.utils.sanitize import (
    EMAIL_PATTERN,
    sanitize_email,
    sanitize_input,
    sanitize_phone,
    sanitize_pincode,
)

logger = logging.getLogger(__name__)

DELIVERY_FEE = 0.0

NAME_PATTERN = re.compile(r"^[a-zA-Z\s.]+$")
PHONE_PATTERN = re.compile(r"^[6-9]\d{9}$")
PINCODE_PATTERN = re.compile(r"^\d{6}$")


class CheckoutStep(IntEnum):
    CART = 1
    ADDRESS = 2
    PAYMENT = 3

    @property
    def label(self) -> str:
        return self.name


class CheckoutDraft(BaseModel):
    step: CheckoutStep = CheckoutStep.CART
    customer: CustomerDetails = Field(default_factory=CustomerDetails)
    errors: Dict[str, str] = Field(default_factory=dict)


@dataclass(frozen=True)
class Advance:
    customer: Optional[CustomerDetails] = None


@dataclass(frozen=True)
class GoBack:
    step: int


# -------- customer details --------

def clean_customer(details: CustomerDetails) -> CustomerDetails:
    email = None
    if details.email and details.email.strip():
        # keep invalid input around so validation can report it
        email = sanitize_email(details.email) or sanitize_input(details.email)
    return CustomerDetails(
        name=sanitize_input(details.name),
        phone=sanitize_phone(details.phone),
        email=email,
        address=sanitize_input(details.address),
        city=sanitize_input(details.city),
        state=sanitize_input(details.state),
        pincode=sanitize_pincode(details.pincode),
    )


def validate_customer(details: CustomerDetails) -> Dict[str, str]:
    """Return field -> message for every invalid field, in form order."""
    errors: Dict[str, str] = {}

    name = details.name.strip()
    if not name:
        errors["name"] = "Name is required"
    elif len(name) < 2:
        errors["name"] = "Name must be at least 2 characters"
    elif len(name) > 50:
        errors["name"] = "Name must be less than 50 characters"
    elif not NAME_PATTERN.match(name):
        errors["name"] = "Name can only contain letters, spaces, and dots"

    phone = details.phone.strip()
    if not phone:
        errors["phone"] = "Phone number is required"
    elif not PHONE_PATTERN.match(re.sub(r"[\s()-]", "", phone)):
        errors["phone"] = "Enter a valid 10-digit Indian mobile number"

    if details.email and not EMAIL_PATTERN.match(details.email.strip()):
        errors["email"] = "Invalid email address"

    address = details.address.strip()
    if not address:
        errors["address"] = "Address is required"
    elif len(address) < 10:
        errors["address"] = "Address must be at least 10 characters"
    elif len(address) > 200:
        errors["address"] = "Address must be less than 200 characters"

    pincode = details.pincode.strip()
    if not pincode:
        errors["pincode"] = "Pincode is required"
    elif not PINCODE_PATTERN.match(pincode):
        errors["pincode"] = "Pincode must be exactly 6 digits"

    return errors


def format_address(details: CustomerDetails) -> str:
    return f"{details.address}, {details.city}, {details.state} - {details.pincode}"


# -------- state machine --------

def transition(draft: CheckoutDraft, event, cart_lines: List[CartLine]) -> CheckoutDraft:
    if isinstance(event, GoBack):
        if not CheckoutStep.CART <= event.step <= draft.step:
            raise InvalidStepError(f"Cannot go to step {event.step} from step {int(draft.step)}")
        return draft.model_copy(update={"step": CheckoutStep(event.step), "errors": {}})

    if not isinstance(event, Advance):
        raise InvalidStepError(f"Unknown checkout event {event!r}")

    if not cart_lines:
        raise EmptyCartError()

    if draft.step == CheckoutStep.CART:
        return draft.model_copy(update={"step": CheckoutStep.ADDRESS, "errors": {}})

    if draft.step == CheckoutStep.ADDRESS:
        customer = clean_customer(event.customer or draft.customer)
        errors = validate_customer(customer)
        if errors:
            raise CheckoutValidationError(errors)
        return CheckoutDraft(step=CheckoutStep.PAYMENT, customer=customer, errors={})

    raise InvalidStepError("Already at the payment step, place the order to continue")


# -------- draft persistence --------

def load_draft(storage: KeyValueStorage) -> CheckoutDraft:
    raw = load_json(storage, CHECKOUT_KEY, {}, expected_type=dict)
    try:
        return CheckoutDraft.model_validate(raw)
    except ValidationError:
        logger.warning("Discarding invalid stored checkout draft")
        return CheckoutDraft()


def save_draft(storage: KeyValueStorage, draft: CheckoutDraft) -> None:
    save_json(storage, CHECKOUT_KEY, draft.model_dump(mode="json"))


def clear_draft(storage: KeyValueStorage) -> None:
    storage.remove_item(CHECKOUT_KEY)


# -------- order submission --------

def build_items_snapshot(lines: List[CartLine]) -> List[Dict]:
    return [
        {
            "id": line.product_id,
            "title": line.title,
            "author": line.author,
            "price": line.unit_price,
            "original_price": line.original_unit_price,
            "quantity": line.quantity,
            "category": line.category,
            "image_url": line.image_url,
            "is_combo": line.is_combo,
            "combo_id": line.combo_id,
        }
        for line in lines
    ]


class OrderSubmitter:
    """Places the order for one client session.

    The cart and draft are only cleared after the order row is committed.
    A repeated ``request_key`` from the same session returns the order
    already written for it. The applied promo code is looked up again and
    its use is counted in the same transaction as the order.
    """

    _in_flight = set()
    _lock = threading.Lock()

    def __init__(
        self,
        session: Session,
        notifier: Optional[Callable[[Order, List[CartLine]], None]] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.session = session
        self.notifier = notifier
        self.clock = clock

    def _acquire(self, session_id: str) -> None:
        with self._lock:
            if session_id in self._in_flight:
                raise SubmissionInProgressError()
            self._in_flight.add(session_id)

    def _release(self, session_id: str) -> None:
        with self._lock:
            self._in_flight.discard(session_id)

    def _confirmation(self, order: Order) -> OrderConfirmation:
        return OrderConfirmation(
            order_id=order.id,
            order_ref=str(int(self.clock() * 1000)),
            total=order.total_amount,
            status=order.status,
        )

    def submit(
        self,
        *,
        session_id: str,
        draft: CheckoutDraft,
        cart: CartStore,
        storage: KeyValueStorage,
        promo: Optional[PromoEvaluator] = None,
        user_id: Optional[int] = None,
        request_key: Optional[str] = None,
    ) -> OrderConfirmation:
        self._acquire(session_id)
        try:
            if request_key:
                existing = self.session.exec(
                    select(Order).where(Order.request_key == request_key)
                ).first()
                if existing:
                    if existing.session_id != session_id:
                        logger.warning(f"Order key {request_key} reused by another session")
                        raise IdempotencyKeyConflictError()
                    logger.info(f"Order {existing.id} already placed for key {request_key}")
                    self._finish(cart, storage)
                    return self._confirmation(existing)

            if draft.step != CheckoutStep.PAYMENT:
                raise InvalidStepError("Orders can only be placed from the payment step")

            if cart.is_empty():
                raise EmptyCartError()

            customer = clean_customer(draft.customer)
            errors = validate_customer(customer)
            if errors:
                raise CheckoutValidationError(errors)

            promo = self._current_promo(promo, storage)

            lines = cart.lines
            subtotal = cart.total_amount
            discount_amount = promo.discount_amount(subtotal) if promo else 0.0
            grand_total = subtotal - discount_amount + DELIVERY_FEE

            order = Order(
                user_id=user_id,
                session_id=session_id,
                customer_name=customer.name,
                customer_phone=customer.phone,
                customer_email=customer.email or None,
                address=format_address(customer),
                total_amount=grand_total,
                discount_amount=discount_amount,
                promo_code=promo.code if promo else None,
                items_json=json.dumps(build_items_snapshot(lines)),
                status=OrderStatus.pending.value,
                request_key=request_key,
            )

            try:
                self.session.add(order)
                record_promo_use(self.session, order.promo_code)
                self.session.commit()
                self.session.refresh(order)
            except PromoCodeError as e:
                self.session.rollback()
                storage.remove_item(PROMO_KEY)
                raise PromoRejectedError(str(e))
            except SQLAlchemyError:
                self.session.rollback()
                logger.exception("Failed to persist order")
                raise OrderPersistError()

            logger.info(f"Order {order.id} placed, total {grand_total}")

            if self.notifier:
                try:
                    self.notifier(order, lines)
                except Exception:
                    logger.exception(f"Order notification failed for order {order.id}")

            self._finish(cart, storage)
            return self._confirmation(order)
        finally:
            self._release(session_id)

    def _current_promo(self, promo: Optional[PromoEvaluator], storage: KeyValueStorage) -> Optional[PromoEvaluator]:
        """Look the applied code up again, it may have expired or run out since."""
        if promo is None or not promo.code:
            return None
        current = PromoEvaluator(lookup=database_lookup(self.session))
        if not current.apply(promo.code):
            storage.remove_item(PROMO_KEY)
            raise PromoRejectedError(current.error)
        return current

    @staticmethod
    def _finish(cart: CartStore, storage: KeyValueStorage) -> None:
        cart.clear()
        clear_draft(storage)
        storage.remove_item(PROMO_KEY)
