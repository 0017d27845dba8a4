from typing import Any, Dict, List, Optional, Tuple
import logging

from spooky_styles.core.exceptions import InsufficientStockError, NotFoundError, ValidationError
from spooky_styles.models.cart import Cart, CartItem, CartOwner, normalize_customizations
from spooky_styles.repositories.cart_repository import CartRepository
from spooky_styles.repositories.product_repository import ProductRepository

logger = logging.getLogger(__name__)


class CartService:
    """
    Shopping cart business logic

    Business Rules:
    - A line is identified by product + normalized customizations
    - A line's quantity never exceeds the product's current stock
    - Each line snapshots the effective price when it is created
    """

    def __init__(self, cart_repository: CartRepository, product_repository: ProductRepository):
        self.cart_repo = cart_repository
        self.product_repo = product_repository

    def get_cart(self, owner: CartOwner) -> Cart:
        return self.cart_repo.get_cart(owner)

    def add_item(
        self,
        owner: CartOwner,
        product_id: str,
        quantity: int,
        customizations: Optional[Dict[str, Any]] = None,
    ) -> Cart:
        logger.info(f"Adding {quantity} x product {product_id} to cart of {owner.describe()}")

        if quantity <= 0:
            raise ValidationError("Quantity must be greater than 0", {"quantity": ["Must be greater than 0"]})

        product = self.product_repo.find_by_id(product_id)
        if product is None:
            raise NotFoundError("Product", product_id)

        customizations = normalize_customizations(customizations)
        cart_id, existing = self._find_line(owner, product_id, customizations)

        new_quantity = quantity + (existing.quantity if existing else 0)
        if new_quantity > product.stock_quantity:
            raise InsufficientStockError(product.stock_quantity)

        if existing:
            self.cart_repo.set_quantity(cart_id, existing.id, new_quantity)
        else:
            # the cart row is only created once the line is known to fit
            self.cart_repo.add_line(
                cart_id or self.cart_repo.get_or_create_cart_id(owner),
                product_id,
                quantity,
                product.effective_price_cents,
                customizations,
            )

        return self.cart_repo.get_cart(owner)

    def update_item_quantity(
        self,
        owner: CartOwner,
        product_id: str,
        quantity: int,
        customizations: Optional[Dict[str, Any]] = None,
    ) -> Cart:
        """Set a line's quantity; 0 removes the line"""
        if quantity < 0:
            raise ValidationError("Quantity cannot be negative", {"quantity": ["Must be >= 0"]})

        if quantity == 0:
            return self.remove_item(owner, product_id, customizations)

        customizations = normalize_customizations(customizations)
        cart_id, existing = self._find_line(owner, product_id, customizations)
        if existing is None:
            raise NotFoundError("Cart item", product_id)

        product = self.product_repo.find_by_id(product_id)
        if product is None:
            raise NotFoundError("Product", product_id)
        if quantity > product.stock_quantity:
            raise InsufficientStockError(product.stock_quantity)

        self.cart_repo.set_quantity(cart_id, existing.id, quantity)
        logger.info(f"Set product {product_id} quantity to {quantity} for {owner.describe()}")
        return self.cart_repo.get_cart(owner)

    def remove_item(
        self,
        owner: CartOwner,
        product_id: str,
        customizations: Optional[Dict[str, Any]] = None,
    ) -> Cart:
        customizations = normalize_customizations(customizations)
        cart_id, existing = self._find_line(owner, product_id, customizations)
        if existing is None:
            raise NotFoundError("Cart item", product_id)

        self.cart_repo.delete_item(cart_id, existing.id)
        logger.info(f"Removed product {product_id} from cart of {owner.describe()}")
        return self.cart_repo.get_cart(owner)

    def clear_cart(self, owner: CartOwner) -> Cart:
        cart_row = self.cart_repo.find_cart_row(owner)
        if cart_row:
            removed = self.cart_repo.clear(str(cart_row["id"]))
            logger.info(f"Cleared {removed} lines from cart of {owner.describe()}")
        return self.cart_repo.get_cart(owner)

    def get_cart_total(self, owner: CartOwner) -> int:
        return self.cart_repo.get_cart(owner).subtotal_cents

    def merge_guest_cart(self, user_id: str, session_id: str) -> Cart:
        """
        Fold a guest session's cart into the user's cart after sign-in.

        Matching lines are summed and capped at current stock. Lines whose
        product is gone or out of stock are dropped. The guest cart is
        deleted afterwards.
        """
        user_owner = CartOwner(user_id=user_id)
        guest_owner = CartOwner(session_id=session_id)

        guest_cart = self.cart_repo.get_cart(guest_owner)
        if guest_cart.id is None:
            return self.cart_repo.get_cart(user_owner)

        user_cart_id = self.cart_repo.get_or_create_cart_id(user_owner)
        user_cart = self.cart_repo.get_cart(user_owner)

        merged: List[Dict[str, Any]] = []
        dropped = 0
        for line in guest_cart.items:
            product = self.product_repo.find_by_id(line.product_id)
            if product is None or product.stock_quantity <= 0:
                dropped += 1
                continue

            customizations = normalize_customizations(line.customizations)
            existing = user_cart.find_item(line.product_id, customizations)
            quantity = line.quantity + (existing.quantity if existing else 0)
            merged.append({
                "product_id": line.product_id,
                "quantity": min(quantity, product.stock_quantity),
                "price_cents": existing.price_cents if existing else line.price_cents,
                "customizations": customizations,
            })

        self.cart_repo.merge_lines(user_cart_id, guest_cart.id, merged)
        logger.info(
            f"Merged guest session {session_id} into user {user_id}: "
            f"{len(merged)} lines kept, {dropped} dropped"
        )
        return self.cart_repo.get_cart(user_owner)

    def _find_line(
        self,
        owner: CartOwner,
        product_id: str,
        customizations: Dict[str, Any],
    ) -> Tuple[Optional[str], Optional[CartItem]]:
        """The owner's cart id and matching line, without creating a cart"""
        cart_row = self.cart_repo.find_cart_row(owner)
        if not cart_row:
            return None, None
        cart_id = str(cart_row["id"])
        return cart_id, self.cart_repo.find_item(cart_id, product_id, customizations)
