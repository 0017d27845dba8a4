from typing import List, Optional, Dict, Any
import logging

from spooky_styles.repositories.base import BaseRepository
from spooky_styles.models.product import Product, ProductColor
from spooky_styles.core.exceptions import NotFoundError

logger = logging.getLogger(__name__)

# Columns an admin may write through create/update
WRITABLE_COLUMNS = (
    "name",
    "description",
    "price_cents",
    "promotional_price_cents",
    "category",
    "theme",
    "model_url",
    "thumbnail_url",
    "image_url",
    "ar_image_url",
    "stock_quantity",
    "is_accessory",
)

PRODUCT_SELECT = """
SELECT
    p.id,
    p.name,
    p.description,
    p.price_cents,
    p.promotional_price_cents,
    p.category,
    p.theme,
    p.model_url,
    p.thumbnail_url,
    p.image_url,
    p.ar_image_url,
    p.stock_quantity,
    p.is_accessory,
    p.created_at,
    p.updated_at,
    COALESCE(
        (SELECT json_agg(
                    json_build_object(
                        'id', pc.id,
                        'product_id', pc.product_id,
                        'color_name', pc.color_name,
                        'color_hex', pc.color_hex
                    ) ORDER BY pc.created_at, pc.color_name)
         FROM product_colors pc
         WHERE pc.product_id = p.id),
        '[]'::json
    ) AS colors
FROM products p
"""


class ProductRepository(BaseRepository[Product]):
    """Repository for products and their color options"""

    @property
    def table_name(self) -> str:
        return "products"

    def find_by_id(self, product_id: str) -> Optional[Product]:
        row = self.execute_single_query(PRODUCT_SELECT + " WHERE p.id = :id", {"id": product_id})
        return self.row_to_product(row) if row else None

    def get_by_id(self, product_id: str) -> Product:
        product = self.find_by_id(product_id)
        if product is None:
            raise NotFoundError("Product", product_id)
        return product

    def list_products(
        self,
        category: Optional[str] = None,
        theme: Optional[str] = None,
        search: Optional[str] = None,
        is_accessory: Optional[bool] = None,
    ) -> List[Product]:
        """List products newest first, with dynamic WHERE clause building"""
        query = PRODUCT_SELECT + " WHERE 1=1"
        params: Dict[str, Any] = {}

        if category:
            query += " AND p.category = :category"
            params["category"] = category

        if theme:
            query += " AND p.theme = :theme"
            params["theme"] = theme

        if is_accessory is not None:
            query += " AND p.is_accessory = :is_accessory"
            params["is_accessory"] = is_accessory

        if search:
            query += " AND (p.name ILIKE :search OR p.description ILIKE :search)"
            params["search"] = f"%{search}%"

        query += " ORDER BY p.created_at DESC, p.name"

        rows = self.execute_query(query, params)
        return [self.row_to_product(r) for r in rows]

    def search(self, keyword: str) -> List[Product]:
        return self.list_products(search=keyword)

    def create(self, data: Dict[str, Any]) -> Product:
        columns = [c for c in WRITABLE_COLUMNS if c in data]
        command = f"""
        INSERT INTO products ({", ".join(columns)}, created_at, updated_at)
        VALUES ({", ".join(":" + c for c in columns)}, NOW(), NOW())
        RETURNING id
        """
        row = self.execute_returning(command, {c: data[c] for c in columns})
        logger.info(f"Inserted product {row['id']}")
        return self.get_by_id(row["id"])

    def update(self, product_id: str, data: Dict[str, Any]) -> Optional[Product]:
        """Partial update; returns None when the product does not exist"""
        columns = [c for c in WRITABLE_COLUMNS if c in data]
        if not columns:
            return self.find_by_id(product_id)

        assignments = ", ".join(f"{c} = :{c}" for c in columns)
        params = {c: data[c] for c in columns}
        params["id"] = product_id

        affected = self.execute_command(
            f"UPDATE products SET {assignments}, updated_at = NOW() WHERE id = :id",
            params,
        )
        if affected == 0:
            return None
        return self.find_by_id(product_id)

    def delete(self, product_id: str) -> bool:
        # cart_items, product_colors and inspiration links cascade;
        # order_items.product_id is set to NULL
        affected = self.execute_command("DELETE FROM products WHERE id = :id", {"id": product_id})
        return affected > 0

    def add_color(self, product_id: str, color_name: str, color_hex: str) -> ProductColor:
        row = self.execute_returning(
            """
            INSERT INTO product_colors (product_id, color_name, color_hex, created_at)
            VALUES (:product_id, :color_name, :color_hex, NOW())
            RETURNING id, product_id, color_name, color_hex, created_at
            """,
            {"product_id": product_id, "color_name": color_name, "color_hex": color_hex},
        )
        return ProductColor(**row)

    def delete_color(self, color_id: str) -> Optional[str]:
        """Delete a color; returns its product id, or None when it did not exist"""
        row = self.execute_returning(
            "DELETE FROM product_colors WHERE id = :id RETURNING product_id",
            {"id": color_id},
        )
        return row["product_id"] if row else None

    def low_stock(self, threshold: int) -> List[Product]:
        rows = self.execute_query(
            PRODUCT_SELECT
            + " WHERE p.stock_quantity > 0 AND p.stock_quantity <= :threshold"
            + " ORDER BY p.stock_quantity ASC, p.name ASC",
            {"threshold": threshold},
        )
        return [self.row_to_product(r) for r in rows]

    def out_of_stock(self) -> List[Product]:
        rows = self.execute_query(PRODUCT_SELECT + " WHERE p.stock_quantity = 0 ORDER BY p.name ASC")
        return [self.row_to_product(r) for r in rows]

    def row_to_product(self, row: Dict[str, Any]) -> Product:
        colors = [
            ProductColor(
                id=str(c["id"]),
                product_id=str(c["product_id"]),
                color_name=c["color_name"],
                color_hex=c["color_hex"],
            )
            for c in row.get("colors") or []
        ]
        return Product(
            id=str(row["id"]),
            name=row["name"],
            description=row["description"],
            price_cents=row["price_cents"],
            promotional_price_cents=row["promotional_price_cents"],
            category=row["category"],
            theme=row["theme"],
            model_url=row["model_url"],
            thumbnail_url=row["thumbnail_url"],
            image_url=row["image_url"],
            ar_image_url=row["ar_image_url"],
            stock_quantity=row["stock_quantity"],
            is_accessory=row["is_accessory"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            colors=colors,
        )
