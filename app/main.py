import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager

from app.database import create_db_and_tables
from app.config import settings
from app.routes import (
    account_cart,
    account_wishlist,
    admin_analytics,
    admin_orders,
    auth,
    books_admin,
    books_public,
    cart,
    checkout,
    combos,
    combos_admin,
    contact,
    health,
    review,
    users,
    wishlist,
)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Run DB creation ONLY in local
    if settings.ENV == "local":
        create_db_and_tables()
    yield

app = FastAPI(title=f"{settings.STORE_NAME} API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(Exception)
async def unhandled_exception(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Something went wrong. Please reload the page and try again.",
            "action": "reload",
        },
    )


# Storefront
app.include_router(books_public.router, prefix="/books", tags=["Catalog"])
app.include_router(combos.router, prefix="/combos", tags=["Combos"])
app.include_router(review.router, prefix="/reviews", tags=["Reviews"])
app.include_router(cart.router, prefix="/cart", tags=["Cart"])
app.include_router(wishlist.router, prefix="/wishlist", tags=["Wishlist"])
app.include_router(checkout.router, prefix="/checkout", tags=["Checkout"])
app.include_router(contact.router, prefix="/contact", tags=["Contact"])

# Accounts
app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
app.include_router(users.router, prefix="/users", tags=["Users"])
app.include_router(account_cart.router, prefix="/account/cart", tags=["Account Cart"])
app.include_router(account_wishlist.router, prefix="/account/wishlist", tags=["Account Wishlist"])

# Admin
app.include_router(books_admin.router, prefix="/admin/books", tags=["Admin Books"])
app.include_router(combos_admin.router, prefix="/admin/combos", tags=["Admin Combos"])
app.include_router(admin_orders.router, prefix="/admin/orders", tags=["Admin Orders"])
app.include_router(admin_analytics.router, prefix="/admin", tags=["Admin Analytics"])

app.include_router(health.router, prefix="/health", tags=["Health"])


@app.get("/")
def root():
    return {
        "catalog": ["/books", "/books/{book_id}", "/books/collections", "/combos"],
        "cart": [
            "/cart", "/cart/add", "/cart/update/{product_id}",
            "/cart/remove/{product_id}", "/cart/clear", "/cart/promo"
        ],
        "wishlist": ["/wishlist", "/wishlist/add", "/wishlist/remove/{product_id}"],
        "checkout": [
            "/checkout", "/checkout/next", "/checkout/back/{step}",
            "/checkout/place-order", "/checkout/success/{order_id}"
        ],
        "auth": ["/auth/register", "/auth/login"],
        "admin": [
            "/admin/books", "/admin/combos", "/admin/orders",
            "/admin/customers", "/admin/analytics", "/admin/dashboard"
        ],
    }
