"""User model — authentication, profile, and embedded history lists."""

from typing import Any

from sqlalchemy import JSON, Boolean, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bookhaven.database import Base, TimestampMixin, UUIDPrimaryKeyMixin


class User(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Marketplace account: a guest (``user``), a ``vendor`` or an ``admin``."""

    __tablename__ = "users"

    username: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    hashed_password: Mapped[str | None] = mapped_column(String(255), nullable=True)
    role: Mapped[str] = mapped_column(String(50), default="user", nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Embedded lists: bookings mirrors the bookings ledger, reviews_given mirrors
    # Property.reviews, notifications is the inbox (newest last).
    bookings: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    reviews_given: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    notifications: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)

    # Relationships
    properties: Mapped[list["Property"]] = relationship(  # noqa: F821
        "Property", back_populates="owner", lazy="selectin", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r} role={self.role!r}>"
