import json
from typing import Optional, List, Dict, Any
import logging

from sqlalchemy import text

from spooky_styles.repositories.base import BaseRepository
from spooky_styles.models.cart import Cart, CartItem, CartOwner

logger = logging.getLogger(__name__)


def _jsonb(customizations: Dict[str, Any]) -> str:
    return json.dumps(customizations, sort_keys=True)


class CartRepository(BaseRepository[Cart]):
    """
    Repository for user and guest carts.

    Lines are matched on (cart, product, customizations). Customizations are
    compared as JSONB values, so key order in the stored JSON does not matter.
    """

    @property
    def table_name(self) -> str:
        return "carts"

    def find_by_id(self, cart_id: str) -> Optional[Cart]:
        row = self.execute_single_query(
            "SELECT id, user_id, session_id, updated_at FROM carts WHERE id = :id",
            {"id": cart_id},
        )
        if not row:
            return None
        return self._build_cart(row, self.get_items(row["id"]))

    def find_cart_row(self, owner: CartOwner) -> Optional[Dict[str, Any]]:
        if owner.user_id:
            return self.execute_single_query(
                "SELECT id, user_id, session_id, updated_at FROM carts WHERE user_id = :user_id",
                {"user_id": owner.user_id},
            )
        return self.execute_single_query(
            """
            SELECT id, user_id, session_id, updated_at
            FROM carts
            WHERE session_id = :session_id AND user_id IS NULL
            """,
            {"session_id": owner.session_id},
        )

    def get_or_create_cart_id(self, owner: CartOwner) -> str:
        """Return the owner's cart id, creating the cart on first use"""
        if owner.user_id:
            command = """
            INSERT INTO carts (user_id, created_at, updated_at)
            VALUES (:user_id, NOW(), NOW())
            ON CONFLICT (user_id) WHERE user_id IS NOT NULL DO NOTHING
            """
            params = {"user_id": owner.user_id}
        else:
            command = """
            INSERT INTO carts (session_id, created_at, updated_at)
            VALUES (:session_id, NOW(), NOW())
            ON CONFLICT (session_id) WHERE user_id IS NULL DO NOTHING
            """
            params = {"session_id": owner.session_id}

        self.execute_command(command, params)
        row = self.find_cart_row(owner)
        return str(row["id"])

    def get_cart(self, owner: CartOwner) -> Cart:
        """The owner's cart with items; an unsaved empty cart when none exists"""
        row = self.find_cart_row(owner)
        if not row:
            return Cart(id=None, user_id=owner.user_id, session_id=owner.session_id)
        return self._build_cart(row, self.get_items(row["id"]))

    def get_items(self, cart_id: str) -> List[CartItem]:
        rows = self.execute_query(
            """
            SELECT
                ci.id,
                ci.product_id,
                ci.quantity,
                ci.price_cents,
                ci.customizations,
                p.name AS product_name,
                p.image_url,
                p.stock_quantity
            FROM cart_items ci
            JOIN products p ON p.id = ci.product_id
            WHERE ci.cart_id = :cart_id
            ORDER BY ci.created_at ASC
            """,
            {"cart_id": cart_id},
        )
        return [self._row_to_item(r) for r in rows]

    def find_item(self, cart_id: str, product_id: str, customizations: Dict[str, Any]) -> Optional[CartItem]:
        row = self.execute_single_query(
            """
            SELECT
                ci.id,
                ci.product_id,
                ci.quantity,
                ci.price_cents,
                ci.customizations,
                p.name AS product_name,
                p.image_url,
                p.stock_quantity
            FROM cart_items ci
            JOIN products p ON p.id = ci.product_id
            WHERE ci.cart_id = :cart_id
              AND ci.product_id = :product_id
              AND ci.customizations = CAST(:customizations AS JSONB)
            """,
            {"cart_id": cart_id, "product_id": product_id, "customizations": _jsonb(customizations)},
        )
        return self._row_to_item(row) if row else None

    def add_line(
        self,
        cart_id: str,
        product_id: str,
        quantity: int,
        price_cents: int,
        customizations: Dict[str, Any],
    ) -> None:
        self.execute_command(
            """
            INSERT INTO cart_items (cart_id, product_id, quantity, price_cents, customizations, created_at, updated_at)
            VALUES (:cart_id, :product_id, :quantity, :price_cents, CAST(:customizations AS JSONB), NOW(), NOW())
            """,
            {
                "cart_id": cart_id,
                "product_id": product_id,
                "quantity": quantity,
                "price_cents": price_cents,
                "customizations": _jsonb(customizations),
            },
        )
        self._touch(cart_id)

    def set_quantity(self, cart_id: str, item_id: str, quantity: int) -> bool:
        affected = self.execute_command(
            """
            UPDATE cart_items SET quantity = :quantity, updated_at = NOW()
            WHERE id = :item_id AND cart_id = :cart_id
            """,
            {"quantity": quantity, "item_id": item_id, "cart_id": cart_id},
        )
        self._touch(cart_id)
        return affected > 0

    def delete_item(self, cart_id: str, item_id: str) -> bool:
        affected = self.execute_command(
            "DELETE FROM cart_items WHERE id = :item_id AND cart_id = :cart_id",
            {"item_id": item_id, "cart_id": cart_id},
        )
        self._touch(cart_id)
        return affected > 0

    def clear(self, cart_id: str) -> int:
        affected = self.execute_command("DELETE FROM cart_items WHERE cart_id = :cart_id", {"cart_id": cart_id})
        self._touch(cart_id)
        return affected

    def merge_lines(self, user_cart_id: str, guest_cart_id: str, lines: List[Dict[str, Any]]) -> None:
        """
        Write the reconciled lines into the user's cart and drop the guest cart.

        Each line carries its final quantity; an existing line with the same
        product and customizations is overwritten.
        """
        with self.transaction() as conn:
            for line in lines:
                conn.execute(
                    text("""
                        INSERT INTO cart_items
                            (cart_id, product_id, quantity, price_cents, customizations, created_at, updated_at)
                        VALUES
                            (:cart_id, :product_id, :quantity, :price_cents, CAST(:customizations AS JSONB), NOW(), NOW())
                        ON CONFLICT (cart_id, product_id, customizations)
                        DO UPDATE SET quantity = EXCLUDED.quantity, updated_at = NOW()
                    """),
                    {
                        "cart_id": user_cart_id,
                        "product_id": line["product_id"],
                        "quantity": line["quantity"],
                        "price_cents": line["price_cents"],
                        "customizations": _jsonb(line["customizations"]),
                    },
                )
            conn.execute(text("DELETE FROM carts WHERE id = :id"), {"id": guest_cart_id})
            conn.execute(text("UPDATE carts SET updated_at = NOW() WHERE id = :id"), {"id": user_cart_id})

        logger.info(f"Merged {len(lines)} guest lines from cart {guest_cart_id} into cart {user_cart_id}")

    def _touch(self, cart_id: str) -> None:
        self.execute_command("UPDATE carts SET updated_at = NOW() WHERE id = :id", {"id": cart_id})

    def _build_cart(self, row: Dict[str, Any], items: List[CartItem]) -> Cart:
        return Cart(
            id=str(row["id"]),
            user_id=str(row["user_id"]) if row["user_id"] else None,
            session_id=row["session_id"],
            items=items,
            updated_at=row["updated_at"],
        )

    def _row_to_item(self, row: Dict[str, Any]) -> CartItem:
        return CartItem(
            id=str(row["id"]),
            product_id=str(row["product_id"]),
            product_name=row["product_name"],
            quantity=row["quantity"],
            price_cents=row["price_cents"],
            customizations=row["customizations"] or {},
            image_url=row["image_url"],
            stock_quantity=row["stock_quantity"],
        )
