from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, Text, text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import relationship

from spooky_styles.db import Base
from spooky_styles.models.order import ORDER_STATUSES, PAYMENT_STATUSES


def _sql_list(values):
    return ", ".join(f"'{v}'" for v in values)


class Order(Base):
    """
    A purchase by a registered user or a guest.

    Guest orders have no user_id; the contact and shipping fields are stored
    on the row (guest_email, guest_name, guest_address). user_id uses SET NULL
    so deleting a user keeps the order history.

    Amounts are snapshotted at checkout: later price changes never alter
    subtotal/discount/shipping/total.

    stripe_payment_intent_id and payment_reference (Paystack) are unique so
    that webhook retries can find the order they already created.
    """

    __tablename__ = "orders"

    id = Column(UUID(as_uuid=False), primary_key=True, server_default=text("gen_random_uuid()"))
    user_id = Column(
        UUID(as_uuid=False), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    status = Column(Text, nullable=False, default="pending", server_default=text("'pending'"))
    subtotal_cents = Column(Integer, nullable=False)
    discount_cents = Column(Integer, nullable=False, default=0)
    shipping_cents = Column(Integer, nullable=False, default=0)
    total_cents = Column(Integer, nullable=False)
    currency = Column(Text, nullable=False, default="usd", server_default=text("'usd'"))
    stripe_payment_intent_id = Column(Text, nullable=True, unique=True)
    payment_reference = Column(Text, nullable=True, unique=True)
    payment_status = Column(Text, nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    guest_email = Column(Text, nullable=True)
    guest_name = Column(Text, nullable=True)
    guest_address = Column(JSONB, nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        CheckConstraint(
            f"status IN ({_sql_list(ORDER_STATUSES)})",
            name="ck_order_status",
        ),
        CheckConstraint(
            f"payment_status IS NULL OR payment_status IN ({_sql_list(PAYMENT_STATUSES)})",
            name="ck_order_payment_status",
        ),
        CheckConstraint("total_cents >= 0", name="ck_order_total"),
        CheckConstraint("user_id IS NOT NULL OR guest_email IS NOT NULL", name="ck_order_contact"),
    )

    items = relationship(
        "OrderItem", back_populates="order", cascade="all, delete-orphan", passive_deletes=True
    )

    def __repr__(self) -> str:
        return f"<Order id={self.id} status={self.status!r} total_cents={self.total_cents}>"


class OrderItem(Base):
    """
    A line of an order.

    product_id is SET NULL when the product is deleted; product_name and
    price_cents keep the line readable afterwards.
    """

    __tablename__ = "order_items"

    id = Column(UUID(as_uuid=False), primary_key=True, server_default=text("gen_random_uuid()"))
    order_id = Column(
        UUID(as_uuid=False), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False
    )
    product_id = Column(
        UUID(as_uuid=False), ForeignKey("products.id", ondelete="SET NULL"), nullable=True
    )
    product_name = Column(Text, nullable=False)
    quantity = Column(Integer, nullable=False)
    price_cents = Column(Integer, nullable=False)
    customizations = Column(JSONB, nullable=False, default=dict, server_default=text("'{}'::jsonb"))
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_order_item_quantity"),
        CheckConstraint("price_cents >= 0", name="ck_order_item_price"),
    )

    order = relationship("Order", back_populates="items")

    def __repr__(self) -> str:
        return f"<OrderItem id={self.id} product_id={self.product_id} qty={self.quantity}>"
