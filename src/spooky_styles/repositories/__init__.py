from spooky_styles.repositories.base import BaseRepository
from spooky_styles.repositories.cart_repository import CartRepository
from spooky_styles.repositories.inspiration_repository import InspirationRepository
from spooky_styles.repositories.order_repository import OrderRepository
from spooky_styles.repositories.product_repository import ProductRepository
from spooky_styles.repositories.user_repository import UserRepository

__all__ = [
    "BaseRepository",
    "CartRepository",
    "InspirationRepository",
    "OrderRepository",
    "ProductRepository",
    "UserRepository",
]
