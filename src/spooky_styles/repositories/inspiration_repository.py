from typing import List, Optional, Dict, Any
import logging

from spooky_styles.repositories.base import BaseRepository
from spooky_styles.repositories.product_repository import PRODUCT_SELECT, ProductRepository
from spooky_styles.models.inspiration import Inspiration, InspirationProduct

logger = logging.getLogger(__name__)


class InspirationRepository(BaseRepository[Inspiration]):
    """Repository for costume inspirations and their product links"""

    def __init__(self, product_repository: ProductRepository):
        self.product_repo = product_repository

    @property
    def table_name(self) -> str:
        return "costume_inspirations"

    def list_all(self) -> List[Inspiration]:
        rows = self.execute_query(
            """
            SELECT id, name, description, image_url, created_at
            FROM costume_inspirations
            ORDER BY created_at DESC
            """
        )
        return [self._row_to_inspiration(r) for r in rows]

    def find_by_id(self, inspiration_id: str) -> Optional[Inspiration]:
        row = self.execute_single_query(
            """
            SELECT id, name, description, image_url, created_at
            FROM costume_inspirations
            WHERE id = :id
            """,
            {"id": inspiration_id},
        )
        if not row:
            return None
        inspiration = self._row_to_inspiration(row)
        inspiration.products = self.get_products(inspiration.id)
        return inspiration

    def get_products(self, inspiration_id: str) -> List[InspirationProduct]:
        """Products linked to an inspiration, in display order"""
        query = (
            "SELECT sub.*, cip.display_order FROM ("
            + PRODUCT_SELECT
            + """) sub
            JOIN costume_inspiration_products cip ON cip.product_id = sub.id
            WHERE cip.inspiration_id = :inspiration_id
            ORDER BY cip.display_order ASC, sub.name ASC
            """
        )
        rows = self.execute_query(query, {"inspiration_id": inspiration_id})
        return [
            InspirationProduct(
                product=self.product_repo.row_to_product(r),
                display_order=r["display_order"],
            )
            for r in rows
        ]

    def create(self, name: str, description: Optional[str], image_url: Optional[str]) -> Inspiration:
        row = self.execute_returning(
            """
            INSERT INTO costume_inspirations (name, description, image_url, created_at)
            VALUES (:name, :description, :image_url, NOW())
            RETURNING id, name, description, image_url, created_at
            """,
            {"name": name, "description": description, "image_url": image_url},
        )
        logger.info(f"Created inspiration {row['id']}")
        return self._row_to_inspiration(row)

    def link_product(self, inspiration_id: str, product_id: str, display_order: int) -> None:
        """Add a product to an inspiration, or move it to a new display position"""
        self.execute_command(
            """
            INSERT INTO costume_inspiration_products (inspiration_id, product_id, display_order)
            VALUES (:inspiration_id, :product_id, :display_order)
            ON CONFLICT (inspiration_id, product_id)
            DO UPDATE SET display_order = EXCLUDED.display_order
            """,
            {"inspiration_id": inspiration_id, "product_id": product_id, "display_order": display_order},
        )

    def _row_to_inspiration(self, row: Dict[str, Any]) -> Inspiration:
        return Inspiration(
            id=str(row["id"]),
            name=row["name"],
            description=row["description"],
            image_url=row["image_url"],
            created_at=row["created_at"],
        )
