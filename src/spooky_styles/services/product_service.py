import json
from typing import Any, Dict, List, Optional
import logging

from spooky_styles.cache import Cache
from spooky_styles.core.config import RedisConfig
from spooky_styles.core.exceptions import NotFoundError, ValidationError
from spooky_styles.models.product import CATEGORIES, THEMES, Product, ProductColor
from spooky_styles.repositories.product_repository import ProductRepository
from spooky_styles.utils.validators import ValidationUtils

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("name", "price_cents", "category", "theme", "thumbnail_url", "image_url", "ar_image_url")


class ProductService:
    """
    Catalog business logic

    Responsibilities:
    - Validate category/theme filters and admin writes
    - Read-through caching of listings, searches and single products
    - Cache invalidation on every write
    """

    def __init__(self, product_repository: ProductRepository, cache: Cache, cache_settings: RedisConfig):
        self.product_repo = product_repository
        self.cache = cache
        self.cache_ttl = cache_settings.default_ttl
        self.search_ttl = cache_settings.search_ttl

    def list_products(
        self,
        category: Optional[str] = None,
        theme: Optional[str] = None,
        search: Optional[str] = None,
        is_accessory: Optional[bool] = None,
    ) -> List[Product]:
        self._validate_category(category)
        self._validate_theme(theme)

        filters = {
            "category": category,
            "theme": theme,
            "search": search.strip() if search else None,
            "is_accessory": is_accessory,
        }
        filters = {k: v for k, v in filters.items() if v is not None and v != ""}
        cache_key = f"products:{json.dumps(filters, sort_keys=True)}"

        cached = self.cache.get_json(cache_key)
        if cached is not None:
            logger.debug(f"Cache hit for {cache_key}")
            return [Product.from_dict(p) for p in cached]

        products = self.product_repo.list_products(**filters)
        self.cache.set_json(cache_key, [p.to_dict() for p in products], self.cache_ttl)
        logger.info(f"Listed {len(products)} products with filters {filters}")
        return products

    def search_products(self, keyword: Optional[str]) -> List[Product]:
        keyword = (keyword or "").strip()
        if not keyword:
            raise ValidationError("Search query is required", {"q": ["Search query is required"]})

        cache_key = f"products:search:{keyword}"
        cached = self.cache.get_json(cache_key)
        if cached is not None:
            return [Product.from_dict(p) for p in cached]

        products = self.product_repo.search(keyword)
        self.cache.set_json(cache_key, [p.to_dict() for p in products], self.search_ttl)
        return products

    def get_product(self, product_id: str) -> Product:
        cache_key = f"product:{product_id}"
        cached = self.cache.get_json(cache_key)
        if cached is not None:
            return Product.from_dict(cached)

        product = self.product_repo.find_by_id(product_id)
        if product is None:
            raise NotFoundError("Product", product_id)

        self.cache.set_json(cache_key, product.to_dict(), self.cache_ttl)
        return product

    def create_product(self, data: Dict[str, Any]) -> Product:
        missing = [f for f in REQUIRED_FIELDS if data.get(f) in (None, "")]
        if missing:
            raise ValidationError(
                "Missing required fields",
                {f: ["This field is required"] for f in missing},
            )

        data = dict(data)
        data.setdefault("stock_quantity", 0)
        data.setdefault("is_accessory", False)
        self._validate_product_fields(data, existing=None)

        product = self.product_repo.create(data)
        self._invalidate(product.id)
        logger.info(f"Created product {product.id} ({product.name})")
        return product

    def update_product(self, product_id: str, data: Dict[str, Any]) -> Product:
        existing = self.product_repo.find_by_id(product_id)
        if existing is None:
            raise NotFoundError("Product", product_id)

        if not data:
            return existing

        for f in REQUIRED_FIELDS:
            if f in data and data[f] in (None, ""):
                raise ValidationError(f"{f} cannot be empty", {f: ["This field cannot be empty"]})

        self._validate_product_fields(data, existing=existing)

        product = self.product_repo.update(product_id, data)
        if product is None:
            raise NotFoundError("Product", product_id)

        self._invalidate(product_id)
        logger.info(f"Updated product {product_id}: {sorted(data.keys())}")
        return product

    def delete_product(self, product_id: str) -> None:
        if not self.product_repo.delete(product_id):
            raise NotFoundError("Product", product_id)
        self._invalidate(product_id)
        logger.info(f"Deleted product {product_id}")

    def add_color(self, product_id: str, color_name: str, color_hex: str) -> ProductColor:
        if not color_name or not color_name.strip():
            raise ValidationError("Color name is required", {"color_name": ["This field is required"]})
        if not ValidationUtils.validate_hex_color(color_hex):
            raise ValidationError(
                "Invalid color hex code. Must be in format #RRGGBB",
                {"color_hex": ["Must be in format #RRGGBB"]},
            )
        if not self.product_repo.exists(product_id):
            raise NotFoundError("Product", product_id)

        color = self.product_repo.add_color(product_id, color_name.strip(), color_hex.upper())
        self._invalidate(product_id)
        logger.info(f"Added color {color.color_hex} to product {product_id}")
        return color

    def delete_color(self, color_id: str) -> None:
        product_id = self.product_repo.delete_color(color_id)
        if product_id is None:
            raise NotFoundError("Product color", color_id)
        self._invalidate(product_id)

    def low_stock(self, threshold: int = 10) -> List[Product]:
        if threshold < 0:
            raise ValidationError("Threshold must be a non-negative number", {"threshold": ["Must be >= 0"]})
        return self.product_repo.low_stock(threshold)

    def out_of_stock(self) -> List[Product]:
        return self.product_repo.out_of_stock()

    # Private helpers
    def _validate_category(self, category: Optional[str]) -> None:
        if category and category not in CATEGORIES:
            raise ValidationError(
                f"Invalid category. Must be one of: {', '.join(CATEGORIES)}",
                {"category": [f"Must be one of: {', '.join(CATEGORIES)}"]},
            )

    def _validate_theme(self, theme: Optional[str]) -> None:
        if theme and theme not in THEMES:
            raise ValidationError(
                f"Invalid theme. Must be one of: {', '.join(THEMES)}",
                {"theme": [f"Must be one of: {', '.join(THEMES)}"]},
            )

    def _validate_product_fields(self, data: Dict[str, Any], existing: Optional[Product]) -> None:
        self._validate_category(data.get("category"))
        self._validate_theme(data.get("theme"))

        if "price_cents" in data and not ValidationUtils.validate_price_cents(data["price_cents"]):
            raise ValidationError("Price must be greater than 0", {"price_cents": ["Must be greater than 0"]})

        if "stock_quantity" in data and data["stock_quantity"] is not None and data["stock_quantity"] < 0:
            raise ValidationError("Stock quantity cannot be negative", {"stock_quantity": ["Must be >= 0"]})

        price = data.get("price_cents", existing.price_cents if existing else None)
        if "promotional_price_cents" in data:
            promo = data["promotional_price_cents"]
        else:
            promo = existing.promotional_price_cents if existing else None

        if promo is not None and price is not None and promo >= price:
            raise ValidationError(
                "Promotional price must be less than regular price",
                {"promotional_price_cents": ["Must be less than price_cents"]},
            )
        if promo is not None and promo <= 0:
            raise ValidationError(
                "Promotional price must be greater than 0",
                {"promotional_price_cents": ["Must be greater than 0"]},
            )

    def _invalidate(self, product_id: Optional[str] = None) -> None:
        self.cache.invalidate("products:*")
        if product_id:
            self.cache.delete(f"product:{product_id}")
