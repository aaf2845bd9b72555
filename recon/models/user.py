"""User model."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from recon.database import Base
from recon.models.base import TimestampMixin, UUIDMixin


class User(UUIDMixin, TimestampMixin, Base):
    """Acting user for audit attribution (authentication handled elsewhere)."""

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
