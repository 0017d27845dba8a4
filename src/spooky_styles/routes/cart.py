import logging

from flask import Blueprint

from spooky_styles.core.exceptions import BadRequestError
from spooky_styles.routes.schemas import AddCartItemSchema, RemoveCartItemSchema, UpdateCartItemSchema
from spooky_styles.routes.utils import (
    get_cart_owner,
    get_current_user_id,
    get_service,
    get_session_id,
    load_body,
    load_optional_body,
    success_response,
)
from spooky_styles.services.cart_service import CartService

logger = logging.getLogger(__name__)

cart_bp = Blueprint("cart", __name__)

_add_schema = AddCartItemSchema()
_update_schema = UpdateCartItemSchema()
_remove_schema = RemoveCartItemSchema()


@cart_bp.route("", methods=["GET"])
def get_cart():
    """Return the caller's cart; an owner without a cart gets an empty one."""
    cart = get_service(CartService).get_cart(get_cart_owner())
    return success_response(cart.to_dict())


@cart_bp.route("/total", methods=["GET"])
def get_cart_total():
    total = get_service(CartService).get_cart_total(get_cart_owner())
    return success_response({"subtotal_cents": total})


@cart_bp.route("/items", methods=["POST"])
def add_cart_item():
    """Add a product, or increment the line with the same customizations."""
    owner = get_cart_owner()
    data = load_body(_add_schema)
    cart = get_service(CartService).add_item(
        owner,
        str(data["product_id"]),
        data["quantity"],
        data["customizations"],
    )
    return success_response(cart.to_dict(), "Item added to cart", 201)


@cart_bp.route("/items/<uuid:product_id>", methods=["PUT"])
def update_cart_item(product_id):
    """Set the quantity of a line; 0 removes it."""
    owner = get_cart_owner()
    data = load_body(_update_schema)
    cart = get_service(CartService).update_item_quantity(
        owner,
        str(product_id),
        data["quantity"],
        data["customizations"],
    )
    return success_response(cart.to_dict(), "Cart updated")


@cart_bp.route("/items/<uuid:product_id>", methods=["DELETE"])
def remove_cart_item(product_id):
    owner = get_cart_owner()
    data = load_optional_body(_remove_schema)
    cart = get_service(CartService).remove_item(owner, str(product_id), data["customizations"])
    return success_response(cart.to_dict(), "Item removed from cart")


@cart_bp.route("", methods=["DELETE"])
def clear_cart():
    cart = get_service(CartService).clear_cart(get_cart_owner())
    return success_response(cart.to_dict(), "Cart cleared")


@cart_bp.route("/merge", methods=["POST"])
def merge_cart():
    """Move a guest session's cart into the signed-in user's cart."""
    user_id = get_current_user_id()
    session_id = get_session_id()
    if not session_id:
        raise BadRequestError("X-Session-Id header is required to merge a guest cart.")

    cart = get_service(CartService).merge_guest_cart(user_id, session_id)
    return success_response(cart.to_dict(), "Guest cart merged")
