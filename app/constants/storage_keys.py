CART_KEY = "cart"
WISHLIST_KEY = "wishlist"
CHECKOUT_KEY = "checkout"
PROMO_KEY = "promo"
CATALOG_KEY = "catalog"
CART_OPEN_KEY = "cart_open"
