import json
from typing import Any, Dict, Optional
import logging

import stripe

from spooky_styles.core.config import StripeConfig
from spooky_styles.core.exceptions import (
    BadRequestError,
    ExternalServiceError,
    InternalServerError,
    ValidationError,
)
from spooky_styles.models.cart import CartOwner
from spooky_styles.models.order import GuestInfo
from spooky_styles.repositories.cart_repository import CartRepository
from spooky_styles.repositories.order_repository import OrderRepository
from spooky_styles.services.order_service import OrderService

logger = logging.getLogger(__name__)


def _field(obj: Any, key: str, default: Any = None) -> Any:
    """Read a key from a StripeObject or a plain dict; StripeObject has no .get()"""
    return obj[key] if obj is not None and key in obj else default


class PaymentService:
    """
    Stripe PaymentIntent flow

    The intent amount is always the order total computed from the owner's
    cart. The order itself is created by the payment_intent.succeeded
    webhook, which is idempotent per intent id.
    """

    def __init__(
        self,
        order_service: OrderService,
        order_repository: OrderRepository,
        cart_repository: CartRepository,
        settings: StripeConfig,
    ):
        self.order_service = order_service
        self.order_repo = order_repository
        self.cart_repo = cart_repository
        self.settings = settings

    def create_payment_intent(self, owner: CartOwner, guest_info: Optional[GuestInfo] = None) -> Dict[str, Any]:
        if owner.is_guest and guest_info is None:
            raise ValidationError(
                "Guest checkout requires contact and shipping information",
                {"guest_info": ["This field is required for guest checkout"]},
            )

        cart, _, totals = self.order_service.prepare_checkout(owner)
        if totals.total_cents < self.settings.minimum_charge_cents:
            raise ValidationError(
                f"Amount must be at least {self.settings.minimum_charge_cents} cents"
            )

        metadata = {
            "user_id": owner.user_id or "",
            "session_id": owner.session_id or "",
            "cart_item_count": str(len(cart.items)),
            "is_guest": "true" if owner.is_guest else "false",
        }
        params: Dict[str, Any] = {
            "amount": totals.total_cents,
            "currency": self.settings.currency,
            "metadata": metadata,
            "automatic_payment_methods": {"enabled": True},
        }
        if guest_info is not None:
            metadata.update({
                "guest_email": guest_info.email,
                "guest_name": guest_info.name,
                "guest_address": json.dumps(guest_info.address_dict()),
            })
            params["receipt_email"] = guest_info.email

        try:
            intent = stripe.PaymentIntent.create(api_key=self.settings.secret_key, **params)
        except stripe.StripeError as e:
            logger.error(f"Stripe PaymentIntent creation failed for {owner.describe()}: {e}")
            raise ExternalServiceError("stripe", getattr(e, "user_message", None) or "Payment provider error")

        logger.info(f"Created payment intent {intent['id']} for {owner.describe()} amount={totals.total_cents}")
        return {
            "client_secret": intent["client_secret"],
            "payment_intent_id": intent["id"],
            "amount": totals.total_cents,
            "currency": self.settings.currency,
            "totals": totals.to_dict(),
        }

    def confirm_payment(self, payment_intent_id: str) -> Dict[str, Any]:
        try:
            intent = stripe.PaymentIntent.retrieve(payment_intent_id, api_key=self.settings.secret_key)
        except stripe.StripeError as e:
            logger.error(f"Stripe PaymentIntent retrieval failed for {payment_intent_id}: {e}")
            raise ExternalServiceError("stripe", getattr(e, "user_message", None) or "Payment provider error")

        if intent["status"] != "succeeded":
            raise ValidationError(f"Payment not completed. Status: {intent['status']}")

        order = self.order_repo.find_by_payment_intent(payment_intent_id)
        return {
            "payment_intent_id": payment_intent_id,
            "status": intent["status"],
            "order": order.to_dict() if order else None,
        }

    def handle_webhook(self, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        if not self.settings.webhook_secret:
            logger.error("Stripe webhook received but STRIPE_WEBHOOK_SECRET is not configured")
            raise InternalServerError("Stripe webhook secret not configured")
        if not signature:
            raise BadRequestError("Missing Stripe-Signature header")

        try:
            event = stripe.Webhook.construct_event(payload, signature, self.settings.webhook_secret)
        except ValueError:
            raise BadRequestError("Invalid webhook payload")
        except stripe.SignatureVerificationError:
            logger.warning("Stripe webhook signature verification failed")
            raise BadRequestError("Invalid webhook signature")

        event_type = event["type"]
        intent = event["data"]["object"]
        logger.info(f"Stripe webhook received: {event_type}")

        if event_type == "payment_intent.succeeded":
            self._handle_payment_succeeded(intent)
        elif event_type in ("payment_intent.payment_failed", "payment_intent.canceled"):
            self._handle_payment_cancelled(intent, event_type)
        else:
            logger.info(f"Unhandled Stripe event type {event_type}")

        return {"received": True, "type": event_type}

    def _handle_payment_succeeded(self, intent: Any) -> None:
        payment_intent_id = intent["id"]

        existing = self.order_repo.find_by_payment_intent(payment_intent_id)
        if existing is not None:
            if self.order_repo.mark_processing_if_pending(existing.id):
                logger.info(f"Order {existing.id} moved to processing for {payment_intent_id}")
            else:
                logger.info(f"Order {existing.id} already handled for {payment_intent_id}")
            return

        metadata = _field(intent, "metadata")
        user_id = _field(metadata, "user_id") or None
        session_id = _field(metadata, "session_id") or None
        if not user_id and not session_id:
            logger.warning(f"Payment {payment_intent_id} succeeded without cart owner metadata")
            return

        owner = CartOwner(user_id=user_id, session_id=session_id)
        guest_info = self._guest_info_from_metadata(metadata) if owner.is_guest else None

        cart = self.cart_repo.get_cart(owner)
        if cart.is_empty:
            logger.warning(f"Payment {payment_intent_id} succeeded but cart of {owner.describe()} is empty")
            return

        order = self.order_service.create_order_from_cart(
            owner,
            guest_info,
            status="processing",
            payment_intent_id=payment_intent_id,
        )
        logger.info(f"Order {order.id} created from payment {payment_intent_id}")

    def _handle_payment_cancelled(self, intent: Any, event_type: str) -> None:
        order = self.order_repo.find_by_payment_intent(intent["id"])
        if order is None:
            logger.info(f"{event_type} for {intent['id']} has no order")
            return
        self.order_repo.cancel(order.id)
        logger.info(f"Order {order.id} cancelled after {event_type}")

    def _guest_info_from_metadata(self, metadata: Any) -> GuestInfo:
        address = json.loads(_field(metadata, "guest_address") or "{}")
        return GuestInfo(
            email=_field(metadata, "guest_email", ""),
            name=_field(metadata, "guest_name", ""),
            address=address.get("address", ""),
            city=address.get("city", ""),
            state=address.get("state", ""),
            zip_code=address.get("zip_code", ""),
            country=address.get("country") or "US",
        )
