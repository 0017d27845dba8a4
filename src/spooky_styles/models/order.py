from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP

ORDER_STATUSES = ("pending", "processing", "shipped", "delivered", "cancelled")
PAYMENT_STATUSES = ("pending", "paid", "failed")

MEMBER_DISCOUNT_RATE = Decimal("0.05")
GUEST_SHIPPING_CENTS = 999


@dataclass
class OrderTotals:
    subtotal_cents: int
    discount_cents: int
    shipping_cents: int
    total_cents: int

    def to_dict(self) -> Dict[str, int]:
        return {
            "subtotal_cents": self.subtotal_cents,
            "discount_cents": self.discount_cents,
            "shipping_cents": self.shipping_cents,
            "total_cents": self.total_cents,
        }


def calculate_order_totals(subtotal_cents: int, is_guest: bool) -> OrderTotals:
    """
    Registered users get 5% off and free shipping; guests pay flat shipping.

    The discount is rounded half-up to a whole cent.
    """
    if is_guest:
        discount_cents = 0
        shipping_cents = GUEST_SHIPPING_CENTS
    else:
        discount = (Decimal(subtotal_cents) * MEMBER_DISCOUNT_RATE).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
        discount_cents = int(discount)
        shipping_cents = 0

    return OrderTotals(
        subtotal_cents=subtotal_cents,
        discount_cents=discount_cents,
        shipping_cents=shipping_cents,
        total_cents=subtotal_cents - discount_cents + shipping_cents,
    )


@dataclass
class GuestInfo:
    """Contact and shipping details for a checkout without an account"""
    email: str
    name: str
    address: str
    city: str
    state: str
    zip_code: str
    country: str = "US"

    def address_dict(self) -> Dict[str, str]:
        """Shape stored in orders.guest_address"""
        return {
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "zip_code": self.zip_code,
            "country": self.country,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GuestInfo":
        return cls(
            email=data["email"],
            name=data["name"],
            address=data["address"],
            city=data["city"],
            state=data["state"],
            zip_code=data["zip_code"],
            country=data.get("country") or "US",
        )


@dataclass
class OrderItem:
    id: str
    product_id: Optional[str]  # None once the product has been deleted
    product_name: str
    quantity: int
    price_cents: int
    customizations: Dict[str, Any] = field(default_factory=dict)

    @property
    def line_total_cents(self) -> int:
        return self.price_cents * self.quantity

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "price_cents": self.price_cents,
            "customizations": self.customizations,
            "line_total_cents": self.line_total_cents,
        }


@dataclass
class Order:
    """A placed order with snapshotted amounts"""
    id: str
    user_id: Optional[str]
    status: str
    subtotal_cents: int
    discount_cents: int
    shipping_cents: int
    total_cents: int
    currency: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    stripe_payment_intent_id: Optional[str] = None
    payment_reference: Optional[str] = None
    payment_status: Optional[str] = None
    paid_at: Optional[datetime] = None
    guest_email: Optional[str] = None
    guest_name: Optional[str] = None
    guest_address: Optional[Dict[str, Any]] = None
    items: List[OrderItem] = field(default_factory=list)

    @property
    def is_guest_order(self) -> bool:
        return self.user_id is None

    @property
    def total_dollars(self) -> Decimal:
        return Decimal(self.total_cents) / 100

    @property
    def item_count(self) -> int:
        return sum(i.quantity for i in self.items)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "status": self.status,
            "subtotal_cents": self.subtotal_cents,
            "discount_cents": self.discount_cents,
            "shipping_cents": self.shipping_cents,
            "total_cents": self.total_cents,
            "total_dollars": str(self.total_dollars),
            "currency": self.currency,
            "stripe_payment_intent_id": self.stripe_payment_intent_id,
            "payment_reference": self.payment_reference,
            "payment_status": self.payment_status,
            "paid_at": self.paid_at.isoformat() if self.paid_at else None,
            "is_guest_order": self.is_guest_order,
            "guest_email": self.guest_email,
            "guest_name": self.guest_name,
            "guest_address": self.guest_address,
            "item_count": self.item_count,
            "items": [i.to_dict() for i in self.items],
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
