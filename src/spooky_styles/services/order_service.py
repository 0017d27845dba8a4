from typing import Any, Dict, List, Optional, Tuple
import logging

from spooky_styles.core.exceptions import NotFoundError, ValidationError
from spooky_styles.models.cart import Cart, CartOwner
from spooky_styles.models.order import (
    ORDER_STATUSES,
    GuestInfo,
    Order,
    OrderTotals,
    calculate_order_totals,
)
from spooky_styles.repositories.cart_repository import CartRepository
from spooky_styles.repositories.order_repository import OrderRepository
from spooky_styles.repositories.product_repository import ProductRepository
from spooky_styles.utils.validators import ValidationUtils

logger = logging.getLogger(__name__)


class OrderService:
    """
    Order placement and lookup

    Business Rules:
    - Orders are built from the owner's cart; stock is re-checked at checkout
    - Registered users get 5% off and free shipping, guests pay flat shipping
    - Guests must provide contact and shipping details
    """

    def __init__(
        self,
        order_repository: OrderRepository,
        cart_repository: CartRepository,
        product_repository: ProductRepository,
        currency: str = "usd",
    ):
        self.order_repo = order_repository
        self.cart_repo = cart_repository
        self.product_repo = product_repository
        self.currency = currency

    def prepare_checkout(self, owner: CartOwner) -> Tuple[Cart, List[Dict[str, Any]], OrderTotals]:
        """
        Validate the owner's cart against current stock and price it.

        Returns the cart, the order lines to insert and the totals.
        """
        cart = self.cart_repo.get_cart(owner)
        if cart.is_empty:
            raise ValidationError("Cart is empty")

        lines = []
        for item in cart.items:
            product = self.product_repo.find_by_id(item.product_id)
            if product is None:
                raise NotFoundError("Product", item.product_id)
            if product.stock_quantity <= 0:
                raise ValidationError(f"{product.name} is out of stock")
            if product.stock_quantity < item.quantity:
                raise ValidationError(
                    f"Insufficient stock for {product.name}. Only {product.stock_quantity} available."
                )
            lines.append({
                "product_id": item.product_id,
                "product_name": product.name,
                "quantity": item.quantity,
                "price_cents": item.price_cents,
                "customizations": item.customizations,
            })

        totals = calculate_order_totals(cart.subtotal_cents, owner.is_guest)
        return cart, lines, totals

    def checkout(self, owner: CartOwner, guest_info: Optional[GuestInfo] = None) -> Order:
        """Create a pending order from the owner's cart and clear the cart"""
        return self.create_order_from_cart(owner, guest_info)

    def create_order_from_cart(
        self,
        owner: CartOwner,
        guest_info: Optional[GuestInfo] = None,
        status: str = "pending",
        payment_intent_id: Optional[str] = None,
    ) -> Order:
        if owner.is_guest and guest_info is None:
            raise ValidationError(
                "Guest checkout requires contact and shipping information",
                {"guest_info": ["This field is required for guest checkout"]},
            )

        cart, lines, totals = self.prepare_checkout(owner)

        order_data: Dict[str, Any] = {
            "user_id": owner.user_id,
            "status": status,
            "currency": self.currency,
            "stripe_payment_intent_id": payment_intent_id,
            **totals.to_dict(),
        }
        if owner.is_guest:
            order_data["guest_email"] = self._normalize_email(guest_info.email)
            order_data["guest_name"] = guest_info.name
            order_data["guest_address"] = guest_info.address_dict()

        order = self.order_repo.create_order(order_data, lines, cart_id=cart.id)
        logger.info(
            f"Order {order.id} created for {owner.describe()}: "
            f"total={order.total_cents} status={order.status}"
        )
        return order

    def get_order(self, order_id: str, user_id: str) -> Order:
        order = self.order_repo.find_for_user(order_id, user_id)
        if order is None:
            raise NotFoundError("Order", order_id)
        return order

    def list_orders(self, user_id: str) -> List[Order]:
        return self.order_repo.list_for_user(user_id)

    def get_order_by_payment_intent(self, payment_intent_id: str) -> Order:
        order = self.order_repo.find_by_payment_intent(payment_intent_id)
        if order is None:
            raise NotFoundError("Order", payment_intent_id)
        return order

    def update_status(self, order_id: str, status: str) -> Order:
        if status not in ORDER_STATUSES:
            raise ValidationError(
                f"Invalid status. Must be one of: {', '.join(ORDER_STATUSES)}",
                {"status": [f"Must be one of: {', '.join(ORDER_STATUSES)}"]},
            )
        order = self.order_repo.update_status(order_id, status)
        if order is None:
            raise NotFoundError("Order", order_id)
        logger.info(f"Order {order_id} status changed to {status}")
        return order

    def _normalize_email(self, email: str) -> str:
        try:
            return ValidationUtils.normalize_email(email)
        except ValueError:
            raise ValidationError("Invalid email address", {"email": ["Not a valid email address"]})
