import hashlib
import hmac
import json
import random
import time
from typing import Any, Dict, Optional
import logging

import requests

from spooky_styles.core.config import PaystackConfig
from spooky_styles.core.exceptions import (
    BadRequestError,
    ConflictError,
    ExternalServiceError,
    NotFoundError,
    UnauthorizedError,
)
from spooky_styles.repositories.order_repository import OrderRepository

logger = logging.getLogger(__name__)


def generate_reference() -> str:
    """Unique transaction reference: SPOOKY-<epoch ms>-<0..999999>"""
    return f"SPOOKY-{int(time.time() * 1000)}-{random.randint(0, 999999)}"


class PaystackService:
    """
    Paystack transaction API client and order payment state

    Amounts are sent in the currency's minor unit (kobo for NGN), which is
    how orders store their totals.
    """

    def __init__(
        self,
        order_repository: OrderRepository,
        settings: PaystackConfig,
        session: Optional[requests.Session] = None,
    ):
        self.order_repo = order_repository
        self.settings = settings
        self.http = session or requests.Session()

    # Provider API
    def initialize_payment(
        self,
        email: str,
        amount: int,
        reference: str,
        metadata: Optional[Dict[str, Any]] = None,
        callback_url: Optional[str] = None,
    ) -> Dict[str, Any]:
        body = self._request("POST", "/transaction/initialize", json={
            "email": email,
            "amount": amount,
            "reference": reference,
            "currency": self.settings.currency,
            "callback_url": callback_url or self.settings.callback_url,
            "metadata": metadata or {},
        })
        return body["data"]

    def verify_payment(self, reference: str) -> Dict[str, Any]:
        return self._request("GET", f"/transaction/verify/{reference}")["data"]

    def get_transaction(self, transaction_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/transaction/{transaction_id}")["data"]

    def list_transactions(self, page: int = 1, per_page: int = 50) -> Dict[str, Any]:
        body = self._request("GET", "/transaction", params={"page": page, "perPage": per_page})
        return {"transactions": body.get("data") or [], "meta": body.get("meta") or {}}

    def refund_transaction(self, transaction: str, amount: Optional[int] = None) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"transaction": transaction}
        if amount is not None:
            payload["amount"] = amount
        data = self._request("POST", "/refund", json=payload)["data"]
        logger.info(f"Refund requested for Paystack transaction {transaction}")
        return data

    def verify_webhook_signature(self, payload: bytes, signature: Optional[str]) -> bool:
        """HMAC-SHA512 of the raw body keyed with the secret key"""
        if not signature or not self.settings.secret_key:
            return False
        expected = hmac.new(self.settings.secret_key.encode("utf-8"), payload, hashlib.sha512).hexdigest()
        return hmac.compare_digest(expected, signature)

    # Order flow
    def initialize_for_order(self, user_id: str, order_id: str, email: str) -> Dict[str, Any]:
        order = self.order_repo.find_for_user(order_id, user_id)
        if order is None:
            raise NotFoundError("Order", order_id)
        if order.payment_status == "paid":
            raise ConflictError("Order has already been paid", conflict_field="payment_status")
        if order.status == "cancelled":
            raise BadRequestError("Cannot pay for a cancelled order")

        reference = generate_reference()
        data = self.initialize_payment(
            email=email,
            amount=order.total_cents,
            reference=reference,
            metadata={"order_id": order.id, "user_id": user_id},
        )
        self.order_repo.set_payment_reference(order.id, reference)
        logger.info(f"Paystack payment {reference} initialized for order {order.id}")

        return {
            "authorization_url": data.get("authorization_url"),
            "access_code": data.get("access_code"),
            "reference": reference,
            "amount": order.total_cents,
            "currency": self.settings.currency,
        }

    def verify(self, reference: str) -> Dict[str, Any]:
        data = self.verify_payment(reference)
        status = data.get("status")

        order = None
        if status == "success":
            order = self.order_repo.mark_paid(reference)
            logger.info(f"Paystack payment {reference} verified as paid")
        elif status == "failed":
            self.order_repo.mark_payment_failed(reference)
            logger.warning(f"Paystack payment {reference} failed")

        if order is None:
            order = self.order_repo.find_by_reference(reference)

        return {
            "reference": reference,
            "status": status,
            "amount": data.get("amount"),
            "paid_at": data.get("paid_at"),
            "order": order.to_dict() if order else None,
        }

    def handle_webhook(self, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        if not self.verify_webhook_signature(payload, signature):
            logger.warning("Paystack webhook signature verification failed")
            raise UnauthorizedError("Invalid signature")

        try:
            event = json.loads(payload)
        except ValueError:
            raise BadRequestError("Invalid webhook payload")

        if not isinstance(event, dict):
            raise BadRequestError("Webhook payload must be a JSON object")

        event_type = event.get("event")
        if not isinstance(event_type, str) or not event_type:
            raise BadRequestError("Webhook event type is missing")
        data = event.get("data")
        if not isinstance(data, dict):
            data = {}
        reference = data.get("reference")
        logger.info(f"Paystack webhook received: {event_type} ({reference})")

        if event_type == "charge.success" and reference:
            if self.order_repo.mark_paid(reference) is None:
                logger.warning(f"charge.success for unknown reference {reference}")
        elif event_type == "charge.failed" and reference:
            self.order_repo.mark_payment_failed(reference)
        elif event_type.startswith("transfer."):
            logger.info(f"Paystack transfer event {event_type}: {data.get('transfer_code')}")
        else:
            logger.info(f"Unhandled Paystack event {event_type}")

        return {"received": True, "event": event_type}

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        url = f"{self.settings.base_url}{path}"
        headers = {
            "Authorization": f"Bearer {self.settings.secret_key}",
            "Content-Type": "application/json",
        }
        try:
            response = self.http.request(method, url, headers=headers, timeout=self.settings.timeout, **kwargs)
        except requests.RequestException as e:
            logger.error(f"Paystack request {method} {path} failed: {e}")
            raise ExternalServiceError("paystack", "Payment provider unavailable")

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if not response.ok or not body.get("status"):
            message = body.get("message") or f"Paystack returned HTTP {response.status_code}"
            logger.error(f"Paystack error on {method} {path}: {message}")
            raise ExternalServiceError("paystack", message)

        return body
