import pytest

from app.services.local_storage import (
    DatabaseStorage,
    KeyValueStorage,
    MemoryStorage,
    load_json,
    parse_or_default,
    save_json,
)


def test_parse_or_default_never_raises():
    assert parse_or_default(None, []) == []
    assert parse_or_default("not json", []) == []
    assert parse_or_default('{"a": 1}', []) == []
    assert parse_or_default('{"a": 1}', {}, expected_type=dict) == {"a": 1}
    assert parse_or_default("[1, 2]", []) == [1, 2]


def test_database_storage_is_scoped_per_session(session):
    first = DatabaseStorage(session, "session-aaaaaaaa")
    second = DatabaseStorage(session, "session-bbbbbbbb")

    save_json(first, "cart", [1])
    save_json(first, "cart", [1, 2])
    assert load_json(first, "cart", []) == [1, 2]
    assert load_json(second, "cart", []) == []

    first.remove_item("cart")
    first.remove_item("cart")
    assert first.get_item("cart") is None


def test_memory_storage_roundtrip():
    storage = MemoryStorage()
    storage.set_item("k", "v")
    assert storage.get_item("k") == "v"
    storage.remove_item("k")
    assert storage.get_item("k") is None


def test_storage_base_class_cannot_be_used_directly():
    with pytest.raises(TypeError):
        KeyValueStorage()
