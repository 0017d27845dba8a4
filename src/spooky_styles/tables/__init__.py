# Re-export all tables from a single entry point. Importing this package
# registers every table with Base.metadata before init_db() calls
# Base.metadata.create_all().

from spooky_styles.tables.cart import Cart, CartItem
from spooky_styles.tables.inspiration import CostumeInspiration, CostumeInspirationProduct
from spooky_styles.tables.order import Order, OrderItem
from spooky_styles.tables.product import Product, ProductColor
from spooky_styles.tables.user import User

__all__ = [
    "User",
    "Product",
    "ProductColor",
    "Cart",
    "CartItem",
    "Order",
    "OrderItem",
    "CostumeInspiration",
    "CostumeInspirationProduct",
]
