from app.schemas.wishlist_schemas import WishlistEntry
from app.services.local_storage import MemoryStorage
from app.services.wishlist_store import WishlistStore


def entry(product_id, title=None):
    return WishlistEntry(product_id=product_id, title=title or f"Book {product_id}", price=100)


def test_add_is_idempotent_and_keeps_order():
    wishlist = WishlistStore(MemoryStorage())
    wishlist.add(entry("1", "First"))
    wishlist.add(entry("2"))

    assert wishlist.add(entry("1", "Renamed")) is False
    assert wishlist.count == 2
    assert [e.product_id for e in wishlist.entries] == ["1", "2"]
    assert wishlist.entries[0].title == "First"


def test_has_and_remove():
    wishlist = WishlistStore(MemoryStorage())
    wishlist.add(entry("1"))
    assert wishlist.has("1")

    wishlist.remove("1")
    wishlist.remove("1")
    assert not wishlist.has("1")
    assert wishlist.count == 0


def test_wishlist_survives_reload_and_corruption():
    storage = MemoryStorage()
    WishlistStore(storage).add(entry("7"))
    assert WishlistStore(storage).has("7")

    storage.set_item("wishlist", "[oops")
    assert WishlistStore(storage).count == 0
