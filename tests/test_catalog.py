from types import SimpleNamespace

import pytest

from app.services.catalog import (
    CatalogBrowser,
    CatalogFilters,
    category_counts,
    filter_books,
    run_catalog_pipeline,
    sort_books,
)


def make_books():
    books = []
    for i in range(20):
        books.append(SimpleNamespace(
            title=f"Title {i:02d}",
            author=f"Author {19 - i:02d}",
            description="a practical guide" if i % 2 else "a story",
            category="Finance" if i < 5 else "Self Development",
            price=100 + i * 10,
            in_stock=i != 3,
        ))
    return books


def test_first_page_holds_twelve_books():
    page = run_catalog_pipeline(make_books(), CatalogFilters(), page=1, page_size=12)
    assert page.filtered_count == 20
    assert page.total_pages == 2
    assert len(page.items) == 12

    second = run_catalog_pipeline(make_books(), CatalogFilters(), page=2, page_size=12)
    assert len(second.items) == 8


def test_category_filter():
    page = run_catalog_pipeline(make_books(), CatalogFilters(category="Finance"), page_size=12)
    assert page.filtered_count == 5
    assert page.total_pages == 1
    assert all(b.category == "Finance" for b in page.items)


def test_search_is_case_insensitive_across_fields():
    books = make_books()
    assert len(filter_books(books, CatalogFilters(search="PRACTICAL"))) == 10
    assert len(filter_books(books, CatalogFilters(search="author 19"))) == 1
    assert filter_books(books, CatalogFilters(search="title 07"))[0].price == 170


def test_price_and_stock_filters():
    books = make_books()
    result = filter_books(books, CatalogFilters(min_price=120, max_price=150, in_stock=True))
    assert [b.price for b in result] == [120, 140, 150]


def test_sorting():
    books = make_books()
    assert sort_books(books, "price-high")[0].price == 290
    assert sort_books(books, "price-low")[0].price == 100
    assert sort_books(books, "author")[0].author == "Author 00"
    assert sort_books(books, "title")[0].title == "Title 00"

    with pytest.raises(ValueError):
        sort_books(books, "rating")


def test_page_past_the_end_is_empty():
    page = run_catalog_pipeline(make_books(), CatalogFilters(), page=5, page_size=12)
    assert page.items == []
    assert page.current_page == 5


def test_filter_change_resets_page():
    browser = CatalogBrowser(page_size=12)
    browser.go_to_page(2)
    browser.update_filters(CatalogFilters())
    assert browser.page == 2

    browser.update_filters(CatalogFilters(category="Finance"))
    assert browser.page == 1
    assert browser.view(make_books()).filtered_count == 5

    browser.go_to_page(2)
    browser.update_filters(CatalogFilters(category="Finance", sort_by="price-low"))
    assert browser.page == 1


def test_browser_state_roundtrip():
    browser = CatalogBrowser(CatalogFilters(search="habit"), page=3)
    restored = CatalogBrowser.from_state(browser.to_state())
    assert restored.page == 3
    assert restored.filters.search == "habit"

    broken = CatalogBrowser.from_state({"filters": {"min_price": "cheap"}, "page": "x"})
    assert broken.page == 1
    assert broken.filters == CatalogFilters()


def test_category_counts():
    counts = {c["name"]: c["count"] for c in category_counts(make_books())}
    assert counts == {"Finance": 5, "Self Development": 15}
