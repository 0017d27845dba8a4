from spooky_styles.models.cart import Cart, CartItem, CartOwner, normalize_customizations
from spooky_styles.models.inspiration import Inspiration, InspirationProduct
from spooky_styles.models.order import (
    GuestInfo,
    Order,
    OrderItem,
    OrderTotals,
    calculate_order_totals,
    ORDER_STATUSES,
    PAYMENT_STATUSES,
)
from spooky_styles.models.product import Product, ProductColor, CATEGORIES, THEMES
from spooky_styles.models.user import User

__all__ = [
    "Cart",
    "CartItem",
    "CartOwner",
    "normalize_customizations",
    "Inspiration",
    "InspirationProduct",
    "GuestInfo",
    "Order",
    "OrderItem",
    "OrderTotals",
    "calculate_order_totals",
    "ORDER_STATUSES",
    "PAYMENT_STATUSES",
    "Product",
    "ProductColor",
    "CATEGORIES",
    "THEMES",
    "User",
]
