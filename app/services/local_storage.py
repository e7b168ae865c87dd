"""
Durable per-session key/value storage.

Mirrors the contract of a browser's local storage: string values keyed by
name, scoped to one client session. Everything read back goes through
``parse_or_default`` so a corrupt or missing record never raises.
"""
import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, Optional

from sqlmodel import Session, select

from app.models.client_storage import ClientStorage

logger = logging.getLogger(__name__)


class KeyValueStorage(ABC):
    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def remove_item(self, key: str) -> None:
        ...


class MemoryStorage(KeyValueStorage):
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get_item(self, key):
        return self._data.get(key)

    def set_item(self, key, value):
        self._data[key] = value

    def remove_item(self, key):
        self._data.pop(key, None)


class DatabaseStorage(KeyValueStorage):
    """Storage rows in the ``client_storage`` table for one session id.

    Each write commits immediately, last write wins.
    """

    def __init__(self, session: Session, session_id: str):
        self.session = session
        self.session_id = session_id

    def _row(self, key: str) -> Optional[ClientStorage]:
        return self.session.exec(
            select(ClientStorage).where(
                ClientStorage.session_id == self.session_id,
                ClientStorage.key == key,
            )
        ).first()

    def get_item(self, key):
        row = self._row(key)
        return row.value if row else None

    def set_item(self, key, value):
        row = self._row(key)
        if row is None:
            row = ClientStorage(session_id=self.session_id, key=key, value=value)
        else:
            row.value = value
            row.updated_at = datetime.utcnow()
        self.session.add(row)
        self.session.commit()

    def remove_item(self, key):
        row = self._row(key)
        if row is not None:
            self.session.delete(row)
            self.session.commit()


def parse_or_default(raw: Optional[str], default: Any, expected_type: type = list) -> Any:
    if raw is None or raw == "":
        return default
    try:
        value = json.loads(raw)
    except (TypeError, ValueError):
        logger.warning("Discarding unparseable stored value")
        return default
    if expected_type is not None and not isinstance(value, expected_type):
        logger.warning(f"Discarding stored value of type {type(value).__name__}")
        return default
    return value


def load_json(storage: KeyValueStorage, key: str, default: Any, expected_type: type = list) -> Any:
    return parse_or_default(storage.get_item(key), default, expected_type)


def save_json(storage: KeyValueStorage, key: str, value: Any) -> None:
    storage.set_item(key, json.dumps(value))
