from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any
from datetime import datetime
from decimal import Decimal

CATEGORIES = ("wig", "hat", "mask", "accessory", "makeup")
THEMES = ("witch", "zombie", "vampire", "skeleton", "ghost")


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


@dataclass
class ProductColor:
    """A color option offered for a product"""
    id: str
    product_id: str
    color_name: str
    color_hex: str
    created_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "color_name": self.color_name,
            "color_hex": self.color_hex,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProductColor":
        return cls(
            id=data["id"],
            product_id=data["product_id"],
            color_name=data["color_name"],
            color_hex=data["color_hex"],
            created_at=_parse_datetime(data.get("created_at")),
        )


@dataclass
class Product:
    """A catalog item with its color options"""
    id: str
    name: str
    description: Optional[str]
    price_cents: int
    promotional_price_cents: Optional[int]
    category: str
    theme: str
    model_url: Optional[str]
    thumbnail_url: str
    image_url: str
    ar_image_url: str
    stock_quantity: int
    is_accessory: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    colors: List[ProductColor] = field(default_factory=list)

    @property
    def effective_price_cents(self) -> int:
        """Promotional price when set, otherwise the regular price"""
        if self.promotional_price_cents is not None:
            return self.promotional_price_cents
        return self.price_cents

    @property
    def effective_price_dollars(self) -> Decimal:
        return Decimal(self.effective_price_cents) / 100

    @property
    def in_stock(self) -> bool:
        return self.stock_quantity > 0

    @property
    def on_sale(self) -> bool:
        return self.promotional_price_cents is not None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price_cents": self.price_cents,
            "promotional_price_cents": self.promotional_price_cents,
            "effective_price_cents": self.effective_price_cents,
            "effective_price_dollars": str(self.effective_price_dollars),
            "on_sale": self.on_sale,
            "category": self.category,
            "theme": self.theme,
            "model_url": self.model_url,
            "thumbnail_url": self.thumbnail_url,
            "image_url": self.image_url,
            "ar_image_url": self.ar_image_url,
            "stock_quantity": self.stock_quantity,
            "in_stock": self.in_stock,
            "is_accessory": self.is_accessory,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "colors": [c.to_dict() for c in self.colors],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Product":
        """Rebuild a product from to_dict() output (cache hits)"""
        return cls(
            id=data["id"],
            name=data["name"],
            description=data.get("description"),
            price_cents=data["price_cents"],
            promotional_price_cents=data.get("promotional_price_cents"),
            category=data["category"],
            theme=data["theme"],
            model_url=data.get("model_url"),
            thumbnail_url=data["thumbnail_url"],
            image_url=data["image_url"],
            ar_image_url=data["ar_image_url"],
            stock_quantity=data["stock_quantity"],
            is_accessory=data["is_accessory"],
            created_at=_parse_datetime(data.get("created_at")),
            updated_at=_parse_datetime(data.get("updated_at")),
            colors=[ProductColor.from_dict(c) for c in data.get("colors") or []],
        )
