import logging

from flask import Blueprint, jsonify, request

from spooky_styles.routes.schemas import PaystackInitializeSchema, PaystackRefundSchema
from spooky_styles.routes.utils import (
    get_current_user_id,
    get_service,
    load_body,
    parse_int,
    require_admin,
    success_response,
)
from spooky_styles.services.paystack_service import PaystackService

logger = logging.getLogger(__name__)

paystack_bp = Blueprint("paystack", __name__)

_initialize_schema = PaystackInitializeSchema()
_refund_schema = PaystackRefundSchema()


@paystack_bp.route("/initialize", methods=["POST"])
def initialize_payment():
    """Start a Paystack transaction for one of the caller's orders."""
    user_id = get_current_user_id()
    data = load_body(_initialize_schema)
    result = get_service(PaystackService).initialize_for_order(user_id, str(data["order_id"]), data["email"])
    return success_response(result, "Payment initialized", 201)


@paystack_bp.route("/verify/<string:reference>", methods=["GET"])
def verify_payment(reference):
    result = get_service(PaystackService).verify(reference)
    return success_response(result)


@paystack_bp.route("/webhook", methods=["POST"])
def paystack_webhook():
    result = get_service(PaystackService).handle_webhook(
        request.get_data(),
        request.headers.get("X-Paystack-Signature"),
    )
    return jsonify(result), 200


@paystack_bp.route("/transactions", methods=["GET"])
def list_transactions():
    require_admin()
    page = parse_int(request.args.get("page"), default=1, min_val=1, field_name="page")
    per_page = parse_int(request.args.get("per_page"), default=50, min_val=1, max_val=100, field_name="per_page")
    result = get_service(PaystackService).list_transactions(page, per_page)
    return success_response(result)


@paystack_bp.route("/refund", methods=["POST"])
def refund():
    admin = require_admin()
    data = load_body(_refund_schema)
    result = get_service(PaystackService).refund_transaction(data["transaction"], data["amount"])
    logger.info(f"Admin {admin.id} requested refund for {data['transaction']}")
    return success_response(result, "Refund initiated")
