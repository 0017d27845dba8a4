import json
from typing import Optional, List, Dict, Any
import logging

from sqlalchemy import text

from spooky_styles.repositories.base import BaseRepository
from spooky_styles.models.order import Order, OrderItem
from spooky_styles.core.exceptions import ConflictError, NotFoundError

logger = logging.getLogger(__name__)

ORDER_SELECT = """
SELECT
    o.id,
    o.user_id,
    o.status,
    o.subtotal_cents,
    o.discount_cents,
    o.shipping_cents,
    o.total_cents,
    o.currency,
    o.stripe_payment_intent_id,
    o.payment_reference,
    o.payment_status,
    o.paid_at,
    o.guest_email,
    o.guest_name,
    o.guest_address,
    o.created_at,
    o.updated_at,
    COALESCE(
        (SELECT json_agg(
                    json_build_object(
                        'id', oi.id,
                        'product_id', oi.product_id,
                        'product_name', oi.product_name,
                        'quantity', oi.quantity,
                        'price_cents', oi.price_cents,
                        'customizations', oi.customizations
                    ) ORDER BY oi.created_at, oi.product_name)
         FROM order_items oi
         WHERE oi.order_id = o.id),
        '[]'::json
    ) AS items
FROM orders o
"""


class OrderRepository(BaseRepository[Order]):
    """Repository for orders, their items and payment state"""

    @property
    def table_name(self) -> str:
        return "orders"

    def find_by_id(self, order_id: str) -> Optional[Order]:
        row = self.execute_single_query(ORDER_SELECT + " WHERE o.id = :id", {"id": order_id})
        return self._row_to_order(row) if row else None

    def get_by_id(self, order_id: str) -> Order:
        order = self.find_by_id(order_id)
        if order is None:
            raise NotFoundError("Order", order_id)
        return order

    def find_for_user(self, order_id: str, user_id: str) -> Optional[Order]:
        row = self.execute_single_query(
            ORDER_SELECT + " WHERE o.id = :id AND o.user_id = :user_id",
            {"id": order_id, "user_id": user_id},
        )
        return self._row_to_order(row) if row else None

    def list_for_user(self, user_id: str) -> List[Order]:
        rows = self.execute_query(
            ORDER_SELECT + " WHERE o.user_id = :user_id ORDER BY o.created_at DESC",
            {"user_id": user_id},
        )
        return [self._row_to_order(r) for r in rows]

    def find_by_payment_intent(self, payment_intent_id: str) -> Optional[Order]:
        row = self.execute_single_query(
            ORDER_SELECT + " WHERE o.stripe_payment_intent_id = :pi",
            {"pi": payment_intent_id},
        )
        return self._row_to_order(row) if row else None

    def find_by_reference(self, reference: str) -> Optional[Order]:
        row = self.execute_single_query(
            ORDER_SELECT + " WHERE o.payment_reference = :reference",
            {"reference": reference},
        )
        return self._row_to_order(row) if row else None

    def create_order(
        self,
        order: Dict[str, Any],
        lines: List[Dict[str, Any]],
        cart_id: Optional[str] = None,
    ) -> Order:
        """
        Insert an order with its items, decrement stock and clear the cart.

        All statements share one transaction. The stock decrement is guarded
        by the current quantity, so a concurrent checkout that already took
        the stock makes this one fail with ConflictError and roll back.
        """
        with self.transaction() as conn:
            order_id = conn.execute(
                text("""
                    INSERT INTO orders (
                        user_id, status, subtotal_cents, discount_cents, shipping_cents,
                        total_cents, currency, stripe_payment_intent_id, payment_status,
                        guest_email, guest_name, guest_address, created_at, updated_at
                    ) VALUES (
                        :user_id, :status, :subtotal_cents, :discount_cents, :shipping_cents,
                        :total_cents, :currency, :stripe_payment_intent_id, :payment_status,
                        :guest_email, :guest_name, CAST(:guest_address AS JSONB), NOW(), NOW()
                    )
                    RETURNING id
                """),
                {
                    "user_id": order.get("user_id"),
                    "status": order.get("status", "pending"),
                    "subtotal_cents": order["subtotal_cents"],
                    "discount_cents": order["discount_cents"],
                    "shipping_cents": order["shipping_cents"],
                    "total_cents": order["total_cents"],
                    "currency": order["currency"],
                    "stripe_payment_intent_id": order.get("stripe_payment_intent_id"),
                    "payment_status": order.get("payment_status"),
                    "guest_email": order.get("guest_email"),
                    "guest_name": order.get("guest_name"),
                    "guest_address": json.dumps(order["guest_address"]) if order.get("guest_address") else None,
                },
            ).scalar_one()

            for line in lines:
                conn.execute(
                    text("""
                        INSERT INTO order_items
                            (order_id, product_id, product_name, quantity, price_cents, customizations, created_at)
                        VALUES
                            (:order_id, :product_id, :product_name, :quantity, :price_cents,
                             CAST(:customizations AS JSONB), NOW())
                    """),
                    {
                        "order_id": order_id,
                        "product_id": line["product_id"],
                        "product_name": line["product_name"],
                        "quantity": line["quantity"],
                        "price_cents": line["price_cents"],
                        "customizations": json.dumps(line.get("customizations") or {}, sort_keys=True),
                    },
                )

                decremented = conn.execute(
                    text("""
                        UPDATE products
                        SET stock_quantity = stock_quantity - :quantity, updated_at = NOW()
                        WHERE id = :product_id AND stock_quantity >= :quantity
                    """),
                    {"product_id": line["product_id"], "quantity": line["quantity"]},
                ).rowcount
                if decremented == 0:
                    raise ConflictError(
                        f"Insufficient stock for {line['product_name']}",
                        conflict_field="stock_quantity",
                    )

            if cart_id:
                conn.execute(text("DELETE FROM cart_items WHERE cart_id = :cart_id"), {"cart_id": cart_id})
                conn.execute(text("UPDATE carts SET updated_at = NOW() WHERE id = :cart_id"), {"cart_id": cart_id})

        logger.info(f"Created order {order_id} with {len(lines)} lines")
        return self.get_by_id(str(order_id))

    def update_status(self, order_id: str, status: str) -> Optional[Order]:
        affected = self.execute_command(
            "UPDATE orders SET status = :status, updated_at = NOW() WHERE id = :id",
            {"status": status, "id": order_id},
        )
        return self.find_by_id(order_id) if affected else None

    def mark_processing_if_pending(self, order_id: str) -> bool:
        affected = self.execute_command(
            """
            UPDATE orders SET status = 'processing', updated_at = NOW()
            WHERE id = :id AND status = 'pending'
            """,
            {"id": order_id},
        )
        return affected > 0

    def cancel(self, order_id: str) -> bool:
        affected = self.execute_command(
            "UPDATE orders SET status = 'cancelled', updated_at = NOW() WHERE id = :id",
            {"id": order_id},
        )
        return affected > 0

    def set_payment_reference(self, order_id: str, reference: str) -> None:
        self.execute_command(
            """
            UPDATE orders
            SET payment_reference = :reference, payment_status = 'pending', updated_at = NOW()
            WHERE id = :id
            """,
            {"reference": reference, "id": order_id},
        )

    def mark_paid(self, reference: str) -> Optional[Order]:
        row = self.execute_returning(
            """
            UPDATE orders
            SET payment_status = 'paid', status = 'processing', paid_at = NOW(), updated_at = NOW()
            WHERE payment_reference = :reference
            RETURNING id
            """,
            {"reference": reference},
        )
        return self.find_by_id(str(row["id"])) if row else None

    def mark_payment_failed(self, reference: str) -> bool:
        affected = self.execute_command(
            """
            UPDATE orders SET payment_status = 'failed', updated_at = NOW()
            WHERE payment_reference = :reference
            """,
            {"reference": reference},
        )
        return affected > 0

    def _row_to_order(self, row: Dict[str, Any]) -> Order:
        items = [
            OrderItem(
                id=str(i["id"]),
                product_id=str(i["product_id"]) if i["product_id"] else None,
                product_name=i["product_name"],
                quantity=i["quantity"],
                price_cents=i["price_cents"],
                customizations=i.get("customizations") or {},
            )
            for i in row.get("items") or []
        ]
        return Order(
            id=str(row["id"]),
            user_id=str(row["user_id"]) if row["user_id"] else None,
            status=row["status"],
            subtotal_cents=row["subtotal_cents"],
            discount_cents=row["discount_cents"],
            shipping_cents=row["shipping_cents"],
            total_cents=row["total_cents"],
            currency=row["currency"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            stripe_payment_intent_id=row["stripe_payment_intent_id"],
            payment_reference=row["payment_reference"],
            payment_status=row["payment_status"],
            paid_at=row["paid_at"],
            guest_email=row["guest_email"],
            guest_name=row["guest_name"],
            guest_address=row["guest_address"],
            items=items,
        )
