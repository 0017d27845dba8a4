from datetime import datetime, timezone

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, Text, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from spooky_styles.db import Base


class Product(Base):
    """
    A wig, hat, mask, accessory or makeup item.

    Prices are integer cents. promotional_price_cents, when set, is what the
    customer pays and must stay below price_cents. stock_quantity is the only
    inventory counter: checkout decrements it inside the order transaction.
    """

    __tablename__ = "products"

    id = Column(UUID(as_uuid=False), primary_key=True, server_default=text("gen_random_uuid()"))
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    price_cents = Column(Integer, nullable=False)
    promotional_price_cents = Column(Integer, nullable=True)
    category = Column(Text, nullable=False)
    theme = Column(Text, nullable=False)
    model_url = Column(Text, nullable=True)
    thumbnail_url = Column(Text, nullable=False)
    image_url = Column(Text, nullable=False)
    ar_image_url = Column(Text, nullable=False)
    stock_quantity = Column(Integer, nullable=False, default=0, server_default=text("0"))
    is_accessory = Column(Boolean, nullable=False, default=False, server_default=text("false"))
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
        CheckConstraint("price_cents > 0", name="ck_product_price"),
        CheckConstraint(
            "promotional_price_cents IS NULL OR promotional_price_cents < price_cents",
            name="ck_product_promotional_price",
        ),
        CheckConstraint("stock_quantity >= 0", name="ck_product_stock"),
        Index("ix_products_category_theme", "category", "theme"),
    )

    # ON DELETE CASCADE in the schema; passive_deletes lets Postgres do it
    colors = relationship(
        "ProductColor", back_populates="product", cascade="all, delete-orphan", passive_deletes=True
    )

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r}>"


class ProductColor(Base):
    """A selectable color for a product, offered as a cart customization."""

    __tablename__ = "product_colors"

    id = Column(UUID(as_uuid=False), primary_key=True, server_default=text("gen_random_uuid()"))
    product_id = Column(
        UUID(as_uuid=False), ForeignKey("products.id", ondelete="CASCADE"), nullable=False
    )
    color_name = Column(Text, nullable=False)
    color_hex = Column(Text, nullable=False)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        CheckConstraint("color_hex ~* '^#[0-9A-F]{6}$'", name="ck_color_hex"),
    )

    product = relationship("Product", back_populates="colors")

    def __repr__(self) -> str:
        return f"<ProductColor id={self.id} hex={self.color_hex!r}>"
