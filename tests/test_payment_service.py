import json
from unittest.mock import patch

import pytest
import stripe

from spooky_styles.core.exceptions import (
    BadRequestError,
    ExternalServiceError,
    InternalServerError,
    ValidationError,
)
from spooky_styles.models.cart import CartOwner
from spooky_styles.models.order import GuestInfo

from fakes import stripe_signed_event

GUEST = CartOwner(session_id="guest-session-0001")


@pytest.fixture
def user_owner(customer):
    return CartOwner(user_id=customer.id)


@pytest.fixture
def wig(repos):
    return repos.products.add(name="Ghostly Ethereal Waves", theme="ghost", price_cents=3199, stock_quantity=10)


@pytest.fixture
def guest_info(sample_guest_info):
    return GuestInfo.from_dict(sample_guest_info)


def intent_event(event_type, intent_id="pi_123", metadata=None):
    return {
        "type": event_type,
        "data": {"object": {"id": intent_id, "metadata": metadata or {}}},
    }


class TestCreatePaymentIntent:
    def test_amount_is_server_computed_total(self, services, user_owner, wig):
        services.cart.add_item(user_owner, wig.id, 2)

        with patch.object(stripe.PaymentIntent, "create",
                          return_value={"id": "pi_123", "client_secret": "pi_123_secret"}) as create:
            result = services.payments.create_payment_intent(user_owner)

        kwargs = create.call_args.kwargs
        assert kwargs["amount"] == 6398 - 320
        assert kwargs["currency"] == "usd"
        assert kwargs["api_key"] == "sk_test_spooky"
        assert kwargs["metadata"]["user_id"] == user_owner.user_id
        assert kwargs["metadata"]["is_guest"] == "false"
        assert kwargs["automatic_payment_methods"] == {"enabled": True}
        assert "receipt_email" not in kwargs

        assert result["client_secret"] == "pi_123_secret"
        assert result["payment_intent_id"] == "pi_123"
        assert result["amount"] == 6078
        assert result["totals"]["discount_cents"] == 320

    def test_guest_intent_carries_contact_details(self, services, wig, guest_info):
        services.cart.add_item(GUEST, wig.id, 1)

        with patch.object(stripe.PaymentIntent, "create",
                          return_value={"id": "pi_456", "client_secret": "secret"}) as create:
            services.payments.create_payment_intent(GUEST, guest_info)

        kwargs = create.call_args.kwargs
        assert kwargs["amount"] == 3199 + 999
        assert kwargs["receipt_email"] == "Morticia@Gmail.com"
        assert kwargs["metadata"]["session_id"] == GUEST.session_id
        assert kwargs["metadata"]["is_guest"] == "true"
        assert json.loads(kwargs["metadata"]["guest_address"])["city"] == "Westfield"

    def test_guest_without_info_is_rejected(self, services, wig):
        services.cart.add_item(GUEST, wig.id, 1)

        with pytest.raises(ValidationError):
            services.payments.create_payment_intent(GUEST)

    def test_empty_cart_is_rejected(self, services, user_owner):
        with pytest.raises(ValidationError):
            services.payments.create_payment_intent(user_owner)

    def test_total_below_minimum_charge_is_rejected(self, services, repos, user_owner):
        sticker = repos.products.add(name="Bat Sticker", price_cents=40)
        services.cart.add_item(user_owner, sticker.id, 1)

        with pytest.raises(ValidationError):
            services.payments.create_payment_intent(user_owner)

    def test_stripe_failure_becomes_external_service_error(self, services, user_owner, wig):
        services.cart.add_item(user_owner, wig.id, 1)

        with patch.object(stripe.PaymentIntent, "create", side_effect=stripe.APIConnectionError("network down")):
            with pytest.raises(ExternalServiceError) as exc:
                services.payments.create_payment_intent(user_owner)

        assert exc.value.status_code == 503
        assert exc.value.details == {"service": "stripe"}


class TestConfirmPayment:
    def test_unfinished_payment_is_rejected(self, services):
        with patch.object(stripe.PaymentIntent, "retrieve",
                          return_value={"id": "pi_123", "status": "requires_payment_method"}):
            with pytest.raises(ValidationError) as exc:
                services.payments.confirm_payment("pi_123")

        assert "requires_payment_method" in exc.value.message

    def test_succeeded_payment_returns_order_when_created(self, services, user_owner, wig):
        services.cart.add_item(user_owner, wig.id, 1)
        order = services.orders.create_order_from_cart(user_owner, status="processing", payment_intent_id="pi_123")

        with patch.object(stripe.PaymentIntent, "retrieve", return_value={"id": "pi_123", "status": "succeeded"}):
            result = services.payments.confirm_payment("pi_123")

        assert result["status"] == "succeeded"
        assert result["order"]["id"] == order.id


class TestWebhook:
    def test_missing_secret_is_a_server_error(self, services):
        services.payments.settings.webhook_secret = ""

        with pytest.raises(InternalServerError):
            services.payments.handle_webhook(b"{}", "t=1,v1=abc")

    def test_missing_signature_is_rejected(self, services):
        with pytest.raises(BadRequestError):
            services.payments.handle_webhook(b"{}", None)

    def test_bad_signature_is_rejected(self, services):
        error = stripe.SignatureVerificationError("No signatures found", "t=1,v1=bad")
        with patch.object(stripe.Webhook, "construct_event", side_effect=error):
            with pytest.raises(BadRequestError):
                services.payments.handle_webhook(b"{}", "t=1,v1=bad")

    def test_succeeded_creates_processing_order_from_cart(self, services, repos, user_owner, wig):
        services.cart.add_item(user_owner, wig.id, 2)
        event = intent_event("payment_intent.succeeded", metadata={"user_id": user_owner.user_id, "session_id": ""})

        with patch.object(stripe.Webhook, "construct_event", return_value=event) as construct:
            result = services.payments.handle_webhook(b"payload", "sig")

        construct.assert_called_once_with(b"payload", "sig", "whsec_spooky")
        assert result == {"received": True, "type": "payment_intent.succeeded"}

        order = repos.orders.find_by_payment_intent("pi_123")
        assert order.status == "processing"
        assert order.total_cents == 6078
        assert services.cart.get_cart(user_owner).is_empty
        assert repos.products.find_by_id(wig.id).stock_quantity == 8

    def test_succeeded_is_idempotent(self, services, repos, user_owner, wig):
        services.cart.add_item(user_owner, wig.id, 1)
        event = intent_event("payment_intent.succeeded", metadata={"user_id": user_owner.user_id})

        with patch.object(stripe.Webhook, "construct_event", return_value=event):
            services.payments.handle_webhook(b"payload", "sig")
            services.cart.add_item(user_owner, wig.id, 1)
            services.payments.handle_webhook(b"payload", "sig")

        assert len(repos.orders.orders) == 1
        assert not services.cart.get_cart(user_owner).is_empty

    def test_succeeded_moves_existing_pending_order_to_processing(self, services, repos, user_owner, wig):
        services.cart.add_item(user_owner, wig.id, 1)
        order = services.orders.create_order_from_cart(user_owner, payment_intent_id="pi_123")

        with patch.object(stripe.Webhook, "construct_event", return_value=intent_event("payment_intent.succeeded")):
            services.payments.handle_webhook(b"payload", "sig")

        assert repos.orders.find_by_id(order.id).status == "processing"

    def test_guest_order_is_built_from_metadata(self, services, repos, wig, guest_info):
        services.cart.add_item(GUEST, wig.id, 1)
        metadata = {
            "user_id": "",
            "session_id": GUEST.session_id,
            "guest_email": guest_info.email,
            "guest_name": guest_info.name,
            "guest_address": json.dumps(guest_info.address_dict()),
        }

        with patch.object(stripe.Webhook, "construct_event",
                          return_value=intent_event("payment_intent.succeeded", "pi_guest", metadata)):
            services.payments.handle_webhook(b"payload", "sig")

        order = repos.orders.find_by_payment_intent("pi_guest")
        assert order.user_id is None
        assert order.guest_email == "morticia@gmail.com"
        assert order.guest_address["state"] == "NJ"
        assert order.shipping_cents == 999

    def test_succeeded_without_owner_metadata_creates_nothing(self, services, repos):
        with patch.object(stripe.Webhook, "construct_event", return_value=intent_event("payment_intent.succeeded")):
            services.payments.handle_webhook(b"payload", "sig")

        assert repos.orders.orders == {}

    @pytest.mark.parametrize("event_type", ["payment_intent.payment_failed", "payment_intent.canceled"])
    def test_failed_or_canceled_cancels_order(self, services, repos, user_owner, wig, event_type):
        services.cart.add_item(user_owner, wig.id, 1)
        order = services.orders.create_order_from_cart(user_owner, payment_intent_id="pi_123")

        with patch.object(stripe.Webhook, "construct_event", return_value=intent_event(event_type)):
            services.payments.handle_webhook(b"payload", "sig")

        assert repos.orders.find_by_id(order.id).status == "cancelled"

    def test_other_events_are_acknowledged(self, services):
        with patch.object(stripe.Webhook, "construct_event", return_value=intent_event("charge.refunded")):
            result = services.payments.handle_webhook(b"payload", "sig")

        assert result == {"received": True, "type": "charge.refunded"}


class TestSignedWebhook:
    """Events go through stripe.Webhook.construct_event unpatched"""

    def test_succeeded_creates_order_for_registered_user(self, services, repos, user_owner, wig):
        services.cart.add_item(user_owner, wig.id, 2)
        payload, signature = stripe_signed_event(
            "payment_intent.succeeded",
            "pi_signed_user",
            {"user_id": user_owner.user_id, "session_id": "", "is_guest": "false"},
        )

        result = services.payments.handle_webhook(payload, signature)

        assert result == {"received": True, "type": "payment_intent.succeeded"}
        order = repos.orders.find_by_payment_intent("pi_signed_user")
        assert order.status == "processing"
        assert order.user_id == user_owner.user_id
        assert services.cart.get_cart(user_owner).is_empty

    def test_succeeded_creates_guest_order_from_metadata(self, services, repos, wig, guest_info):
        services.cart.add_item(GUEST, wig.id, 1)
        payload, signature = stripe_signed_event(
            "payment_intent.succeeded",
            "pi_signed_guest",
            {
                "user_id": "",
                "session_id": GUEST.session_id,
                "is_guest": "true",
                "guest_email": guest_info.email,
                "guest_name": guest_info.name,
                "guest_address": json.dumps(guest_info.address_dict()),
            },
        )

        services.payments.handle_webhook(payload, signature)

        order = repos.orders.find_by_payment_intent("pi_signed_guest")
        assert order.guest_name == "Morticia Addams"
        assert order.guest_address["zip_code"] == "07090"

    def test_succeeded_without_metadata_is_acknowledged(self, services, repos):
        payload, signature = stripe_signed_event("payment_intent.succeeded", "pi_signed_bare")

        result = services.payments.handle_webhook(payload, signature)

        assert result["received"] is True
        assert repos.orders.orders == {}

    def test_canceled_cancels_existing_order(self, services, repos, user_owner, wig):
        services.cart.add_item(user_owner, wig.id, 1)
        order = services.orders.create_order_from_cart(user_owner, payment_intent_id="pi_signed_cancel")
        payload, signature = stripe_signed_event("payment_intent.canceled", "pi_signed_cancel")

        services.payments.handle_webhook(payload, signature)

        assert repos.orders.find_by_id(order.id).status == "cancelled"

    def test_payload_signed_with_another_secret_is_rejected(self, services):
        payload, signature = stripe_signed_event("payment_intent.succeeded", secret="whsec_someone_else")

        with pytest.raises(BadRequestError):
            services.payments.handle_webhook(payload, signature)
