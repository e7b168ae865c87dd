"""
In-memory catalog pipeline: filter -> sort -> paginate.

Operates on anything exposing ``title``, ``author``, ``description``,
``category``, ``price`` and ``in_stock`` attributes (``Book`` rows, or the
storefront's combined book list).
"""
import math
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, ValidationError

from app.constants.catalog import ALL_CATEGORIES, DEFAULT_SORT, SORT_OPTIONS


class CatalogFilters(BaseModel):
    category: str = ALL_CATEGORIES
    search: str = ""
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    in_stock: bool = False
    sort_by: str = DEFAULT_SORT


class CatalogPage(BaseModel):
    filtered_count: int
    sorted_count: int
    total_pages: int
    current_page: int
    page_size: int
    items: List[Any]


def _text(value) -> str:
    return (value or "").casefold()


def filter_books(books: Sequence, filters: CatalogFilters) -> List:
    result = list(books)

    if filters.category != ALL_CATEGORIES:
        result = [b for b in result if b.category == filters.category]

    query = filters.search.strip().casefold()
    if query:
        result = [
            b for b in result
            if query in _text(b.title)
            or query in _text(b.author)
            or query in _text(b.description)
        ]

    if filters.min_price is not None:
        result = [b for b in result if b.price >= filters.min_price]

    if filters.max_price is not None:
        result = [b for b in result if b.price <= filters.max_price]

    if filters.in_stock:
        result = [b for b in result if b.in_stock]

    return result


def sort_books(books: Sequence, sort_by: str) -> List:
    if sort_by not in SORT_OPTIONS:
        raise ValueError(f"Unknown sort option: {sort_by}")

    if sort_by == "title":
        return sorted(books, key=lambda b: _text(b.title))
    if sort_by == "author":
        return sorted(books, key=lambda b: _text(b.author))
    if sort_by == "price-low":
        return sorted(books, key=lambda b: b.price)
    return sorted(books, key=lambda b: b.price, reverse=True)


def paginate_books(books: Sequence, page: int, page_size: int) -> List:
    page = max(page, 1)
    start = (page - 1) * page_size
    return list(books[start:start + page_size])


def run_catalog_pipeline(books: Sequence, filters: CatalogFilters, page: int = 1, page_size: int = 12) -> CatalogPage:
    filtered = filter_books(books, filters)
    ordered = sort_books(filtered, filters.sort_by)
    page = max(page, 1)

    return CatalogPage(
        filtered_count=len(filtered),
        sorted_count=len(ordered),
        total_pages=math.ceil(len(ordered) / page_size) if page_size else 0,
        current_page=page,
        page_size=page_size,
        items=paginate_books(ordered, page, page_size),
    )


def category_counts(books: Sequence) -> List[Dict]:
    counts: Dict[str, int] = {}
    for book in books:
        counts[book.category] = counts.get(book.category, 0) + 1
    return [
        {
            "id": name.lower().replace(" ", "-"),
            "name": name,
            "count": count,
        }
        for name, count in counts.items()
    ]


class CatalogBrowser:
    """Remembers the active filters and page for one shopper.

    Any change to the filters sends the shopper back to page 1.
    """

    def __init__(self, filters: Optional[CatalogFilters] = None, page: int = 1, page_size: int = 12):
        self.filters = filters or CatalogFilters()
        self.page = max(page, 1)
        self.page_size = page_size

    def update_filters(self, filters: CatalogFilters) -> None:
        if filters != self.filters:
            self.filters = filters
            self.page = 1

    def go_to_page(self, page: int) -> None:
        self.page = max(page, 1)

    def view(self, books: Sequence) -> CatalogPage:
        return run_catalog_pipeline(books, self.filters, self.page, self.page_size)

    def to_state(self) -> Dict:
        return {"filters": self.filters.model_dump(), "page": self.page}

    @classmethod
    def from_state(cls, state: Dict, page_size: int = 12) -> "CatalogBrowser":
        try:
            filters = CatalogFilters.model_validate(state.get("filters") or {})
            page = int(state.get("page") or 1)
        except (ValidationError, TypeError, ValueError):
            return cls(page_size=page_size)
        return cls(filters, page, page_size)
