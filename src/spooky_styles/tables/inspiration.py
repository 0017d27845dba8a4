from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Text, UniqueConstraint, text
from sqlalchemy.dialects.postgresql import UUID

from spooky_styles.db import Base


class CostumeInspiration(Base):
    """A themed look (e.g. 'Vampire Queen') bundling several products."""

    __tablename__ = "costume_inspirations"

    id = Column(UUID(as_uuid=False), primary_key=True, server_default=text("gen_random_uuid()"))
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    image_url = Column(Text, nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return f"<CostumeInspiration id={self.id} name={self.name!r}>"


class CostumeInspirationProduct(Base):
    """Join row: product inside an inspiration, shown in display_order."""

    __tablename__ = "costume_inspiration_products"

    id = Column(UUID(as_uuid=False), primary_key=True, server_default=text("gen_random_uuid()"))
    inspiration_id = Column(
        UUID(as_uuid=False),
        ForeignKey("costume_inspirations.id", ondelete="CASCADE"),
        nullable=False,
    )
    product_id = Column(
        UUID(as_uuid=False), ForeignKey("products.id", ondelete="CASCADE"), nullable=False
    )
    display_order = Column(Integer, nullable=False, default=0, server_default=text("0"))

    __table_args__ = (
        UniqueConstraint("inspiration_id", "product_id", name="uq_inspiration_product"),
    )

    def __repr__(self) -> str:
        return (
            f"<CostumeInspirationProduct inspiration_id={self.inspiration_id} "
            f"product_id={self.product_id} order={self.display_order}>"
        )
