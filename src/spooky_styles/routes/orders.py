import logging

from flask import Blueprint

from spooky_styles.models.order import GuestInfo
from spooky_styles.routes.schemas import CheckoutSchema, OrderStatusSchema
from spooky_styles.routes.utils import (
    get_cart_owner,
    get_current_user_id,
    get_service,
    load_body,
    load_optional_body,
    require_admin,
    success_response,
)
from spooky_styles.services.order_service import OrderService

logger = logging.getLogger(__name__)

orders_bp = Blueprint("orders", __name__)

_checkout_schema = CheckoutSchema()
_status_schema = OrderStatusSchema()


@orders_bp.route("/checkout", methods=["POST"])
def checkout():
    """
    Turn the caller's cart into a pending order.

    Registered users send X-User-Id; guests send X-Session-Id and a
    guest_info object with contact and shipping details.
    """
    owner = get_cart_owner()
    data = load_optional_body(_checkout_schema)
    guest_info = GuestInfo.from_dict(data["guest_info"]) if owner.is_guest and data.get("guest_info") else None

    order = get_service(OrderService).checkout(owner, guest_info)
    return success_response(order.to_dict(), "Order created", 201)


@orders_bp.route("", methods=["GET"])
def list_orders():
    user_id = get_current_user_id()
    orders = get_service(OrderService).list_orders(user_id)
    return success_response({"orders": [o.to_dict() for o in orders], "count": len(orders)})


@orders_bp.route("/<uuid:order_id>", methods=["GET"])
def get_order(order_id):
    user_id = get_current_user_id()
    order = get_service(OrderService).get_order(str(order_id), user_id)
    return success_response(order.to_dict())


@orders_bp.route("/payment-intent/<string:payment_intent_id>", methods=["GET"])
def get_order_by_payment_intent(payment_intent_id):
    """Public lookup used by guest order-confirmation pages."""
    order = get_service(OrderService).get_order_by_payment_intent(payment_intent_id)
    return success_response(order.to_dict())


@orders_bp.route("/<uuid:order_id>/status", methods=["PUT"])
def update_order_status(order_id):
    admin = require_admin()
    data = load_body(_status_schema)
    order = get_service(OrderService).update_status(str(order_id), data["status"])
    logger.info(f"Admin {admin.id} set order {order_id} to {data['status']}")
    return success_response(order.to_dict(), "Order status updated")
