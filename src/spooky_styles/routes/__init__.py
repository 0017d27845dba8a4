from spooky_styles.routes.cart import cart_bp
from spooky_styles.routes.inspirations import inspirations_bp
from spooky_styles.routes.orders import orders_bp
from spooky_styles.routes.payments import payments_bp
from spooky_styles.routes.paystack import paystack_bp
from spooky_styles.routes.products import products_bp
from spooky_styles.routes.user import user_bp

__all__ = [
    "cart_bp",
    "inspirations_bp",
    "orders_bp",
    "payments_bp",
    "paystack_bp",
    "products_bp",
    "user_bp",
]
