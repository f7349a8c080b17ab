"""
Contact ORM model.
"""

from __future__ import annotations

import enum
from datetime import datetime
from uuid import UUID

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, TimestampMixin, UUIDMixin


class ContactRole(str, enum.Enum):
    """Trade role of a contact on building projects."""

    owner = "owner"
    builder = "builder"
    architect = "architect"
    certifier = "certifier"


class Contact(Base, UUIDMixin, TimestampMixin):
    """
    A person an organization works with.

    ``user_id`` links the contact to a signed-in User once one exists with
    the same email; project grants to the contact then apply to that user.
    """

    __tablename__ = "contacts"

    org_id: Mapped[UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    company: Mapped[str | None] = mapped_column(String(200), nullable=True)
    role: Mapped[ContactRole | None] = mapped_column(
        Enum(ContactRole, name="contact_role"), nullable=True
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_invited: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    invited_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<Contact id={self.id} name={self.name!r} org_id={self.org_id}>"
