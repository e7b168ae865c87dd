"""
Session cart: line items keyed by product id, persisted on every mutation.
"""
import logging
from typing import Dict, Iterable, List, Optional

from pydantic import ValidationError

from app.constants.storage_keys import CART_KEY, CART_OPEN_KEY
from app.schemas.cart_schemas import CartLine
from app.services.local_storage import KeyValueStorage, load_json, save_json

logger = logging.getLogger(__name__)


def cart_totals(lines: Iterable[CartLine]) -> Dict[str, float]:
    total_items = 0
    total_amount = 0.0
    total_mrp = 0.0

    for line in lines:
        total_items += line.quantity
        total_amount += line.unit_price * line.quantity
        original = line.original_unit_price or line.unit_price
        total_mrp += original * line.quantity

    saved_amount = total_mrp - total_amount
    savings_percent = round(saved_amount / total_mrp * 100) if total_mrp > 0 else 0

    return {
        "total_items": total_items,
        "total_amount": total_amount,
        "total_mrp": total_mrp,
        "saved_amount": saved_amount,
        "savings_percent": savings_percent,
    }


def _restore_lines(raw_items: list) -> List[CartLine]:
    lines: List[CartLine] = []
    seen = set()
    for raw in raw_items:
        try:
            line = CartLine.model_validate(raw)
        except ValidationError:
            logger.warning(f"Skipping invalid stored cart line: {raw!r}")
            continue
        if line.product_id in seen:
            continue
        seen.add(line.product_id)
        lines.append(line)
    return lines


class CartStore:
    def __init__(self, storage: KeyValueStorage):
        self.storage = storage
        self.is_open = load_json(storage, CART_OPEN_KEY, False, expected_type=bool)
        self._lines: List[CartLine] = _restore_lines(load_json(storage, CART_KEY, []))
        self._revision = 0
        self._totals_cache: Optional[tuple] = None

    # -------- reads --------

    @property
    def lines(self) -> List[CartLine]:
        return list(self._lines)

    def __len__(self):
        return len(self._lines)

    def is_empty(self) -> bool:
        return not self._lines

    def get_line(self, product_id: str) -> Optional[CartLine]:
        for line in self._lines:
            if line.product_id == product_id:
                return line
        return None

    def _totals(self) -> Dict[str, float]:
        if self._totals_cache is None or self._totals_cache[0] != self._revision:
            self._totals_cache = (self._revision, cart_totals(self._lines))
        return self._totals_cache[1]

    @property
    def total_amount(self) -> float:
        return self._totals()["total_amount"]

    @property
    def total_items(self) -> int:
        return self._totals()["total_items"]

    @property
    def totals(self) -> Dict[str, float]:
        return dict(self._totals())

    # -------- mutations --------

    def add_line(self, product: CartLine) -> CartLine:
        existing = self.get_line(product.product_id)
        if existing:
            updated = existing.model_copy(update={"quantity": existing.quantity + 1})
            self._replace(updated)
        else:
            updated = product.model_copy(update={"quantity": 1})
            self._commit(self._lines + [updated])
        self.open()
        return updated

    def remove_line(self, product_id: str) -> None:
        self._commit([line for line in self._lines if line.product_id != product_id])

    def set_quantity(self, product_id: str, quantity: int) -> None:
        if quantity < 1:
            self.remove_line(product_id)
            return
        existing = self.get_line(product_id)
        if existing is None:
            return
        self._replace(existing.model_copy(update={"quantity": quantity}))

    def clear(self) -> None:
        self._commit([])

    def open(self) -> None:
        self.is_open = True
        save_json(self.storage, CART_OPEN_KEY, True)

    def close(self) -> None:
        self.is_open = False
        save_json(self.storage, CART_OPEN_KEY, False)

    def _replace(self, updated: CartLine) -> None:
        self._commit([
            updated if line.product_id == updated.product_id else line
            for line in self._lines
        ])

    def _commit(self, lines: List[CartLine]) -> None:
        self._lines = lines
        self._revision += 1
        save_json(self.storage, CART_KEY, [line.model_dump() for line in lines])
