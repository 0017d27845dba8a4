from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Text, text
from sqlalchemy.dialects.postgresql import UUID

from spooky_styles.db import Base


class User(Base):
    """
    A registered customer with an optional saved shipping address.

    The API trusts the X-User-Id header and looks the user up to decide
    admin access and to serve the profile.
    """

    __tablename__ = "users"

    id = Column(UUID(as_uuid=False), primary_key=True, server_default=text("gen_random_uuid()"))
    email = Column(Text, nullable=False, unique=True)
    name = Column(Text, nullable=False)
    is_admin = Column(Boolean, nullable=False, default=False, server_default=text("false"))

    # Saved shipping address, all empty until the first PUT /api/user/address
    phone = Column(Text)
    address = Column(Text)
    city = Column(Text)
    state = Column(Text)
    zip_code = Column(Text)
    country = Column(Text, nullable=False, default="US", server_default=text("'US'"))

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

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r}>"
