from fastapi import APIRouter, BackgroundTasks, Depends, Header, HTTPException
from typing import Optional
from sqlmodel import Session
from app.database import get_session
from app.dependencies.client_session import (
    get_cart_store,
    get_client_session_id,
    get_client_storage,
)
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
from app.models.user import User
from app.routes.cart import build_summary, load_promo
from app.schemas.checkout_schemas import (
    CheckoutAdvanceRequest,
    CheckoutState,
    CustomerDetails,
    OrderConfirmation,
)
from app.services.cart_store import CartStore
from app.services.checkout import (
    DELIVERY_FEE,
    Advance,
    CheckoutDraft,
    CheckoutStep,
    GoBack,
    OrderSubmitter,
    clean_customer,
    load_draft,
    save_draft,
    transition,
)
from app.services.email_service import send_order_notification
from app.services.local_storage import KeyValueStorage
from app.utils.token import get_optional_user

router = APIRouter()


def checkout_state(draft: CheckoutDraft, cart: CartStore, storage: KeyValueStorage, session: Session) -> CheckoutState:
    summary = build_summary(cart, load_promo(storage, session))
    return CheckoutState(
        step=int(draft.step),
        step_label=draft.step.label,
        customer=draft.customer,
        errors=draft.errors,
        items=cart.lines,
        summary=summary,
        delivery_fee=DELIVERY_FEE,
        grand_total=summary.final_total + DELIVERY_FEE,
    )


def _prefill(draft: CheckoutDraft, user: Optional[User]) -> CheckoutDraft:
    if user is None or draft.customer.email:
        return draft
    customer = draft.customer.model_copy(update={"email": user.email})
    if not customer.name and user.full_name:
        customer.name = user.full_name
    if not customer.phone and user.phone:
        customer.phone = user.phone
    return draft.model_copy(update={"customer": customer})


@router.get("", response_model=CheckoutState)
def get_checkout(
    cart: CartStore = Depends(get_cart_store),
    storage: KeyValueStorage = Depends(get_client_storage),
    session: Session = Depends(get_session),
    current_user: Optional[User] = Depends(get_optional_user),
):
    draft = _prefill(load_draft(storage), current_user)
    return checkout_state(draft, cart, storage, session)


@router.post("/next", response_model=CheckoutState)
def next_step(
    data: CheckoutAdvanceRequest,
    cart: CartStore = Depends(get_cart_store),
    storage: KeyValueStorage = Depends(get_client_storage),
    session: Session = Depends(get_session),
):
    draft = load_draft(storage)

    try:
        draft = transition(draft, Advance(customer=data.customer), cart.lines)
    except EmptyCartError as e:
        raise HTTPException(400, str(e))
    except CheckoutValidationError as e:
        # stay on the address step, remember what was typed and why it failed
        save_draft(storage, draft.model_copy(update={
            "customer": data.customer or draft.customer,
            "errors": e.errors,
        }))
        raise HTTPException(400, {
            "message": str(e),
            "errors": e.errors,
            "first_invalid_field": e.first_invalid_field,
        })
    except InvalidStepError as e:
        raise HTTPException(409, str(e))

    save_draft(storage, draft)
    return checkout_state(draft, cart, storage, session)


@router.post("/back/{step}", response_model=CheckoutState)
def previous_step(
    step: int,
    cart: CartStore = Depends(get_cart_store),
    storage: KeyValueStorage = Depends(get_client_storage),
    session: Session = Depends(get_session),
):
    draft = load_draft(storage)
    try:
        draft = transition(draft, GoBack(step=step), cart.lines)
    except InvalidStepError as e:
        raise HTTPException(400, str(e))

    save_draft(storage, draft)
    return checkout_state(draft, cart, storage, session)


@router.put("/customer", response_model=CheckoutState)
def save_customer(
    data: CustomerDetails,
    cart: CartStore = Depends(get_cart_store),
    storage: KeyValueStorage = Depends(get_client_storage),
    session: Session = Depends(get_session),
):
    """Keep in-progress form input without advancing.

    Changed details at the payment step send the shopper back to the address
    step, which is the only way into payment.
    """
    draft = load_draft(storage)
    changes = {"customer": data, "errors": {}}
    if draft.step == CheckoutStep.PAYMENT and clean_customer(data) != draft.customer:
        changes["step"] = CheckoutStep.ADDRESS
    draft = draft.model_copy(update=changes)
    save_draft(storage, draft)
    return checkout_state(draft, cart, storage, session)


@router.post("/place-order", response_model=OrderConfirmation)
def place_order(
    background_tasks: BackgroundTasks,
    idempotency_key: Optional[str] = Header(None),
    session_id: str = Depends(get_client_session_id),
    cart: CartStore = Depends(get_cart_store),
    storage: KeyValueStorage = Depends(get_client_storage),
    session: Session = Depends(get_session),
    current_user: Optional[User] = Depends(get_optional_user),
):
    def notify(order: Order, lines):
        background_tasks.add_task(send_order_notification, order.model_dump(), lines)

    submitter = OrderSubmitter(session, notifier=notify)
    draft = load_draft(storage)

    try:
        return submitter.submit(
            session_id=session_id,
            draft=draft,
            cart=cart,
            storage=storage,
            promo=load_promo(storage, session),
            user_id=current_user.id if current_user else None,
            request_key=idempotency_key,
        )
    except (SubmissionInProgressError, IdempotencyKeyConflictError) as e:
        raise HTTPException(409, str(e))
    except PromoRejectedError as e:
        raise HTTPException(400, {"message": str(e), "promo_rejected": True})
    except OrderPersistError as e:
        raise HTTPException(503, str(e))
    except CheckoutValidationError as e:
        raise HTTPException(400, {"message": str(e), "errors": e.errors})
    except (EmptyCartError, InvalidStepError) as e:
        raise HTTPException(400, str(e))


@router.get("/success/{order_id}")
def order_success(order_id: int, session: Session = Depends(get_session)):
    order = session.get(Order, order_id)
    if not order:
        raise HTTPException(404, "Order not found")

    return {
        "order_id": order.id,
        "total": order.total_amount,
        "status": order.status,
        "placed_at": order.created_at,
        "continue_shopping_url": "/",
        "account_url": "/account",
    }
