from typing import Any, Dict, List, Optional
import logging

from spooky_styles.core.exceptions import NotFoundError, ValidationError
from spooky_styles.models.cart import CartOwner
from spooky_styles.models.inspiration import Inspiration, InspirationProduct
from spooky_styles.repositories.inspiration_repository import InspirationRepository
from spooky_styles.repositories.product_repository import ProductRepository
from spooky_styles.services.cart_service import CartService

logger = logging.getLogger(__name__)


class InspirationService:
    """Themed costume bundles and adding a whole bundle to a cart"""

    def __init__(
        self,
        inspiration_repository: InspirationRepository,
        product_repository: ProductRepository,
        cart_service: CartService,
    ):
        self.inspiration_repo = inspiration_repository
        self.product_repo = product_repository
        self.cart_service = cart_service

    def list_inspirations(self) -> List[Inspiration]:
        return self.inspiration_repo.list_all()

    def get_inspiration(self, inspiration_id: str) -> Inspiration:
        inspiration = self.inspiration_repo.find_by_id(inspiration_id)
        if inspiration is None:
            raise NotFoundError("Inspiration", inspiration_id)
        return inspiration

    def get_inspiration_products(self, inspiration_id: str) -> List[InspirationProduct]:
        if not self.inspiration_repo.exists(inspiration_id):
            raise NotFoundError("Inspiration", inspiration_id)
        return self.inspiration_repo.get_products(inspiration_id)

    def add_inspiration_to_cart(self, inspiration_id: str, owner: CartOwner) -> Dict[str, Any]:
        """
        Add one of each in-stock product to the owner's cart.

        Products that are out of stock, or whose stock is already fully in
        the cart, are skipped and reported instead of failing the request.
        """
        products = self.get_inspiration_products(inspiration_id)

        added = 0
        skipped: List[str] = []
        for entry in products:
            product = entry.product
            if not product.in_stock:
                skipped.append(product.id)
                continue
            try:
                self.cart_service.add_item(owner, product.id, 1, {})
                added += 1
            except (ValidationError, NotFoundError) as e:
                logger.info(f"Skipping product {product.id} from inspiration {inspiration_id}: {e.message}")
                skipped.append(product.id)

        logger.info(
            f"Added inspiration {inspiration_id} to cart of {owner.describe()}: "
            f"{added} added, {len(skipped)} skipped"
        )
        return {
            "cart": self.cart_service.get_cart(owner),
            "added_count": added,
            "skipped_product_ids": skipped,
        }

    def create_inspiration(self, name: str, description: Optional[str], image_url: Optional[str]) -> Inspiration:
        if not name or not name.strip():
            raise ValidationError("Name is required", {"name": ["This field is required"]})
        return self.inspiration_repo.create(name.strip(), description, image_url)

    def link_product(self, inspiration_id: str, product_id: str, display_order: int = 0) -> Inspiration:
        if not self.inspiration_repo.exists(inspiration_id):
            raise NotFoundError("Inspiration", inspiration_id)
        if not self.product_repo.exists(product_id):
            raise NotFoundError("Product", product_id)

        self.inspiration_repo.link_product(inspiration_id, product_id, display_order)
        logger.info(f"Linked product {product_id} to inspiration {inspiration_id} at {display_order}")
        return self.get_inspiration(inspiration_id)
