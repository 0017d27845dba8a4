from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, Text, UniqueConstraint, text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import relationship

from spooky_styles.db import Base


class Cart(Base):
    """
    A shopping cart owned either by a user or by a guest session.

    The partial unique indexes allow one cart per user and one guest cart per
    session id. Deleting the user deletes the cart and, via the cascade on
    cart_items, every line in it.
    """

    __tablename__ = "carts"

    id = Column(UUID(as_uuid=False), primary_key=True, server_default=text("gen_random_uuid()"))
    user_id = Column(
        UUID(as_uuid=False), ForeignKey("users.id", ondelete="CASCADE"), nullable=True
    )
    session_id = Column(Text, nullable=True)
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
        CheckConstraint("user_id IS NOT NULL OR session_id IS NOT NULL", name="ck_cart_owner"),
        Index(
            "uq_carts_user_id",
            "user_id",
            unique=True,
            postgresql_where=text("user_id IS NOT NULL"),
        ),
        Index(
            "uq_carts_guest_session_id",
            "session_id",
            unique=True,
            postgresql_where=text("user_id IS NULL"),
        ),
    )

    items = relationship(
        "CartItem", back_populates="cart", cascade="all, delete-orphan", passive_deletes=True
    )

    def __repr__(self) -> str:
        return f"<Cart id={self.id} user_id={self.user_id} session_id={self.session_id!r}>"


class CartItem(Base):
    """
    One product + customization selection inside a cart.

    The same product with different customizations is a separate line; the
    same product with equal customizations is one line whose quantity grows.
    price_cents snapshots the effective price when the line was created.
    """

    __tablename__ = "cart_items"

    id = Column(UUID(as_uuid=False), primary_key=True, server_default=text("gen_random_uuid()"))
    cart_id = Column(
        UUID(as_uuid=False), ForeignKey("carts.id", ondelete="CASCADE"), nullable=False
    )
    product_id = Column(
        UUID(as_uuid=False), ForeignKey("products.id", ondelete="CASCADE"), nullable=False
    )
    quantity = Column(Integer, nullable=False)
    price_cents = Column(Integer, nullable=False)
    customizations = Column(JSONB, nullable=False, default=dict, server_default=text("'{}'::jsonb"))
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
        CheckConstraint("quantity > 0", name="ck_cart_item_quantity"),
        UniqueConstraint("cart_id", "product_id", "customizations", name="uq_cart_item_line"),
    )

    cart = relationship("Cart", back_populates="items")

    def __repr__(self) -> str:
        return f"<CartItem id={self.id} product_id={self.product_id} qty={self.quantity}>"
