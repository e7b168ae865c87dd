"""
Promo code lookup and discount arithmetic.

Codes are normalized (trimmed, uppercased) before lookup. A database row in
``promo_code`` wins over the static table, so codes can be expired or capped
without a deploy.
"""
import logging
from datetime import datetime
from typing import Callable, Dict, Optional

from sqlalchemy import or_, update
from sqlmodel import Session, select

from app.constants.promo_codes import INVALID_PROMO_MESSAGE, PROMO_CODES
from app.exceptions import PromoCodeError
from app.models.promo_code import PromoCode

logger = logging.getLogger(__name__)


def normalize_code(code: Optional[str]) -> str:
    return (code or "").strip().upper()


def static_lookup(code: str) -> Dict:
    entry = PROMO_CODES.get(code)
    if not entry:
        raise PromoCodeError(INVALID_PROMO_MESSAGE)
    return {"code": code, "discount": entry["discount"], "label": entry["label"]}


def database_lookup(session: Session, now: Optional[datetime] = None) -> Callable[[str], Dict]:
    def lookup(code: str) -> Dict:
        row = session.exec(select(PromoCode).where(PromoCode.code == code)).first()
        if row is None:
            return static_lookup(code)
        if not row.active:
            raise PromoCodeError(INVALID_PROMO_MESSAGE)
        if row.expires_at and row.expires_at < (now or datetime.utcnow()):
            raise PromoCodeError("Promo code has expired")
        if not 0 < row.discount <= 1:
            logger.warning(f"Promo code {code} has an out of range discount {row.discount}")
            raise PromoCodeError(INVALID_PROMO_MESSAGE)
        if row.usage_limit is not None and row.times_used >= row.usage_limit:
            raise PromoCodeError("Promo code usage limit reached")
        return {
            "code": row.code,
            "discount": row.discount,
            "label": row.label or f"Save {round(row.discount * 100)}%",
        }

    return lookup


def record_promo_use(session: Session, code: Optional[str]) -> None:
    """Count one use of a database code, raising once its limit is reached.

    The increment is a single conditional UPDATE so two orders racing for the
    last use cannot both get it.
    """
    if not code:
        return
    row = session.exec(select(PromoCode).where(PromoCode.code == code)).first()
    if row is None:
        return
    result = session.execute(
        update(PromoCode)
        .where(PromoCode.id == row.id)
        .where(or_(PromoCode.usage_limit.is_(None), PromoCode.times_used < PromoCode.usage_limit))
        .values(times_used=PromoCode.times_used + 1)
    )
    if result.rowcount == 0:
        raise PromoCodeError("Promo code usage limit reached")


class PromoEvaluator:
    def __init__(self, lookup: Callable[[str], Dict] = static_lookup):
        self.lookup = lookup
        self.reset()

    def reset(self) -> None:
        self.code: Optional[str] = None
        self.label: Optional[str] = None
        self.discount = 0.0
        self.error: Optional[str] = None

    def apply(self, code: str) -> bool:
        normalized = normalize_code(code)
        try:
            entry = self.lookup(normalized)
        except PromoCodeError as e:
            self.reset()
            self.error = str(e)
            logger.info(f"Rejected promo code {normalized!r}: {e}")
            return False

        self.code = entry["code"]
        self.label = entry["label"]
        self.discount = entry["discount"]
        self.error = None
        return True

    def discount_amount(self, subtotal: float) -> float:
        return subtotal * self.discount

    def final_total(self, subtotal: float) -> float:
        return subtotal - self.discount_amount(subtotal)

    def to_state(self) -> Dict:
        return {"code": self.code, "label": self.label, "discount": self.discount, "error": self.error}

    @classmethod
    def from_state(cls, state: Dict, lookup: Callable[[str], Dict] = static_lookup) -> "PromoEvaluator":
        evaluator = cls(lookup)
        try:
            evaluator.code = state.get("code")
            evaluator.label = state.get("label")
            evaluator.discount = float(state.get("discount") or 0.0)
            evaluator.error = state.get("error")
        except (TypeError, ValueError):
            evaluator.reset()
        if not 0 <= evaluator.discount <= 1:
            evaluator.reset()
        return evaluator
