from fastapi import APIRouter, Depends, Header, HTTPException, Query
from typing import Optional
from sqlmodel import Session, func, select
from app.config import settings
from app.constants.catalog import ALL_CATEGORIES, CATEGORIES, DEFAULT_SORT, SORT_OPTIONS
from app.constants.storage_keys import CATALOG_KEY
from app.database import get_session
from app.dependencies.client_session import SESSION_ID_PATTERN
from app.models.book import Book
from app.models.review import Review
from app.services.catalog import CatalogBrowser, CatalogFilters, category_counts
from app.services.local_storage import DatabaseStorage, load_json, save_json

router = APIRouter()


# ---------- CATALOG ----------
@router.get("", summary="Browse books with filters, sorting and pagination")
def list_books(
    category: str = ALL_CATEGORIES,
    search: str = "",
    min_price: Optional[float] = Query(None, ge=0),
    max_price: Optional[float] = Query(None, ge=0),
    in_stock: bool = False,
    sort_by: str = DEFAULT_SORT,
    page: Optional[int] = Query(None, ge=1),
    x_client_session: Optional[str] = Header(None),
    session: Session = Depends(get_session),
):
    if sort_by not in SORT_OPTIONS:
        raise HTTPException(400, f"Unknown sort option '{sort_by}'")

    filters = CatalogFilters(
        category=category,
        search=search,
        min_price=min_price,
        max_price=max_price,
        in_stock=in_stock,
        sort_by=sort_by,
    )

    # With a client session the page survives between requests and any
    # filter change starts again from page 1
    storage = None
    if x_client_session and SESSION_ID_PATTERN.match(x_client_session):
        storage = DatabaseStorage(session, x_client_session)
        browser = CatalogBrowser.from_state(
            load_json(storage, CATALOG_KEY, {}, expected_type=dict),
            page_size=settings.ITEMS_PER_PAGE,
        )
    else:
        browser = CatalogBrowser(page_size=settings.ITEMS_PER_PAGE)

    browser.update_filters(filters)
    if page is not None:
        browser.go_to_page(page)

    books = session.exec(select(Book)).all()
    result = browser.view(books)

    if storage is not None:
        save_json(storage, CATALOG_KEY, browser.to_state())

    return {
        "filters": filters,
        "filtered_count": result.filtered_count,
        "total_items": result.sorted_count,
        "total_pages": result.total_pages,
        "current_page": result.current_page,
        "limit": result.page_size,
        "results": result.items,
    }


@router.get("/options", summary="Categories and sort options for the catalog")
def catalog_options():
    return {
        "categories": CATEGORIES,
        "sort_options": [{"value": k, "label": v} for k, v in SORT_OPTIONS.items()],
        "items_per_page": settings.ITEMS_PER_PAGE,
    }


@router.get("/collections", summary="Books grouped by category")
def list_collections(session: Session = Depends(get_session)):
    books = session.exec(select(Book)).all()
    return {"collections": category_counts(books)}


# ---------- BOOK DETAIL ----------
@router.get("/{book_id}", summary="Book details with rating summary")
def get_book(book_id: int, session: Session = Depends(get_session)):
    book = session.get(Book, book_id)
    if not book:
        raise HTTPException(404, "Book not found")

    avg_rating, review_count = session.exec(
        select(func.avg(Review.rating), func.count(Review.id)).where(Review.book_id == book_id)
    ).one()

    return {
        **book.model_dump(),
        "average_rating": round(float(avg_rating), 1) if avg_rating is not None else 0.0,
        "review_count": review_count or 0,
    }
