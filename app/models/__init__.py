from app.models.user import User
from app.models.book import Book
from app.models.combo import Combo
from app.models.review import Review
from app.models.order import Order
from app.models.cart import CartItem
from app.models.wishlist import Wishlist
from app.models.promo_code import PromoCode
from app.models.client_storage import ClientStorage

# add ALL models here
