CATEGORIES = ["All", "Self Development", "Finance"]

ALL_CATEGORIES = "All"

SORT_OPTIONS = {
    "title": "Title (A-Z)",
    "price-low": "Price: Low to High",
    "price-high": "Price: High to Low",
    "author": "Author (A-Z)",
}

DEFAULT_SORT = "title"
