import logging
from typing import List

from pydantic import ValidationError

from app.constants.storage_keys import WISHLIST_KEY
from app.schemas.wishlist_schemas import WishlistEntry
from app.services.local_storage import KeyValueStorage, load_json, save_json

logger = logging.getLogger(__name__)


class WishlistStore:
    """Set-like saved products, insertion ordered, persisted like the cart."""

    def __init__(self, storage: KeyValueStorage):
        self.storage = storage
        self._entries: List[WishlistEntry] = []
        for raw in load_json(storage, WISHLIST_KEY, []):
            try:
                entry = WishlistEntry.model_validate(raw)
            except ValidationError:
                logger.warning(f"Skipping invalid stored wishlist entry: {raw!r}")
                continue
            if not self.has(entry.product_id):
                self._entries.append(entry)

    @property
    def entries(self) -> List[WishlistEntry]:
        return list(self._entries)

    @property
    def count(self) -> int:
        return len(self._entries)

    def has(self, product_id: str) -> bool:
        return any(e.product_id == product_id for e in self._entries)

    def add(self, entry: WishlistEntry) -> bool:
        if self.has(entry.product_id):
            return False
        self._save(self._entries + [entry])
        return True

    def remove(self, product_id: str) -> None:
        self._save([e for e in self._entries if e.product_id != product_id])

    def _save(self, entries: List[WishlistEntry]) -> None:
        self._entries = entries
        save_json(self.storage, WISHLIST_KEY, [e.model_dump() for e in entries])
