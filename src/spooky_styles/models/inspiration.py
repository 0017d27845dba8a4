from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any
from datetime import datetime

from spooky_styles.models.product import Product


@dataclass
class InspirationProduct:
    """A product as it appears inside an inspiration"""
    product: Product
    display_order: int

    def to_dict(self) -> Dict[str, Any]:
        data = self.product.to_dict()
        data["display_order"] = self.display_order
        return data


@dataclass
class Inspiration:
    id: str
    name: str
    description: Optional[str]
    image_url: Optional[str]
    created_at: Optional[datetime] = None
    products: List[InspirationProduct] = field(default_factory=list)

    @property
    def bundle_price_cents(self) -> int:
        """Cost of one of each product at today's effective prices"""
        return sum(p.product.effective_price_cents for p in self.products)

    def to_dict(self, include_products: bool = True) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "image_url": self.image_url,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
        if include_products:
            data["products"] = [p.to_dict() for p in self.products]
            data["bundle_price_cents"] = self.bundle_price_cents
        return data
