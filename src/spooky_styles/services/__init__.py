from spooky_styles.services.cart_service import CartService
from spooky_styles.services.inspiration_service import InspirationService
from spooky_styles.services.order_service import OrderService
from spooky_styles.services.payment_service import PaymentService
from spooky_styles.services.paystack_service import PaystackService
from spooky_styles.services.product_service import ProductService
from spooky_styles.services.user_service import UserService

__all__ = [
    "CartService",
    "InspirationService",
    "OrderService",
    "PaymentService",
    "PaystackService",
    "ProductService",
    "UserService",
]
