from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any
from datetime import datetime
from decimal import Decimal


def normalize_customizations(raw: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Canonical form of a customization selection.

    Empty values are dropped and accessories are de-duplicated and sorted,
    so two equal selections always serialize to the same JSONB value and
    land on the same cart line.
    """
    if not raw:
        return {}

    normalized: Dict[str, Any] = {}

    color = raw.get("color")
    if isinstance(color, str) and color.strip():
        normalized["color"] = color.strip()

    accessories = raw.get("accessories") or []
    cleaned = sorted({a.strip() for a in accessories if isinstance(a, str) and a.strip()})
    if cleaned:
        normalized["accessories"] = cleaned

    return normalized


@dataclass(frozen=True)
class CartOwner:
    """Who a cart belongs to: a registered user, or else a guest session"""
    user_id: Optional[str] = None
    session_id: Optional[str] = None

    def __post_init__(self):
        if not self.user_id and not self.session_id:
            raise ValueError("A cart owner needs a user id or a session id")

    @property
    def is_guest(self) -> bool:
        return self.user_id is None

    def describe(self) -> str:
        return f"user {self.user_id}" if self.user_id else f"guest session {self.session_id}"


@dataclass
class CartItem:
    """A product + customization line in a cart"""
    id: str
    product_id: str
    product_name: str
    quantity: int
    price_cents: int  # Effective price when the line was created
    customizations: Dict[str, Any] = field(default_factory=dict)
    image_url: Optional[str] = None
    stock_quantity: Optional[int] = None

    @property
    def line_total_cents(self) -> int:
        return self.price_cents * self.quantity

    @property
    def line_total_dollars(self) -> Decimal:
        return Decimal(self.line_total_cents) / 100

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "image_url": self.image_url,
            "quantity": self.quantity,
            "price_cents": self.price_cents,
            "customizations": self.customizations,
            "line_total_cents": self.line_total_cents,
            "line_total_dollars": str(self.line_total_dollars),
        }


@dataclass
class Cart:
    """A user's or guest's cart. id is None until the first item is added."""
    id: Optional[str]
    user_id: Optional[str] = None
    session_id: Optional[str] = None
    items: List[CartItem] = field(default_factory=list)
    updated_at: Optional[datetime] = None

    @property
    def subtotal_cents(self) -> int:
        return sum(item.line_total_cents for item in self.items)

    @property
    def total_quantity(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def is_empty(self) -> bool:
        return len(self.items) == 0

    def find_item(self, product_id: str, customizations: Dict[str, Any]) -> Optional[CartItem]:
        """Find the line for a product with exactly these (normalized) customizations"""
        return next(
            (i for i in self.items if i.product_id == product_id and i.customizations == customizations),
            None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "session_id": self.session_id,
            "items": [i.to_dict() for i in self.items],
            "item_count": len(self.items),
            "total_quantity": self.total_quantity,
            "subtotal_cents": self.subtotal_cents,
            "subtotal_dollars": str(Decimal(self.subtotal_cents) / 100),
            "is_empty": self.is_empty,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
