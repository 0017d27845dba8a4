import logging

from flask import Blueprint, jsonify, request

from spooky_styles.models.order import GuestInfo
from spooky_styles.routes.schemas import CheckoutSchema, ConfirmPaymentSchema
from spooky_styles.routes.utils import (
    get_cart_owner,
    get_service,
    load_body,
    load_optional_body,
    success_response,
)
from spooky_styles.services.payment_service import PaymentService

logger = logging.getLogger(__name__)

payments_bp = Blueprint("payments", __name__)

_intent_schema = CheckoutSchema()
_confirm_schema = ConfirmPaymentSchema()


@payments_bp.route("/intent", methods=["POST"])
def create_payment_intent():
    """Create a Stripe PaymentIntent for the caller's cart total."""
    owner = get_cart_owner()
    data = load_optional_body(_intent_schema)
    guest_info = GuestInfo.from_dict(data["guest_info"]) if owner.is_guest and data.get("guest_info") else None

    result = get_service(PaymentService).create_payment_intent(owner, guest_info)
    return success_response(result, "Payment intent created", 201)


@payments_bp.route("/confirm", methods=["POST"])
def confirm_payment():
    data = load_body(_confirm_schema)
    result = get_service(PaymentService).confirm_payment(data["payment_intent_id"])
    return success_response(result, "Payment confirmed")


@payments_bp.route("/webhook", methods=["POST"])
def stripe_webhook():
    """Stripe event receiver. The raw body is needed for signature checks."""
    result = get_service(PaymentService).handle_webhook(
        request.get_data(),
        request.headers.get("Stripe-Signature"),
    )
    return jsonify(result), 200
