"""Deck model storing named vocabulary collections."""

from __future__ import annotations

import uuid

from sqlalchemy import ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from flashdeck.models.base import GUID, Base, TimestampMixin


class Deck(TimestampMixin, Base):
    """A collection of cards owned by exactly one user."""

    __tablename__ = "decks"

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        GUID(),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)

    # Cached count(cards); recomputed after every card insert/delete.
    card_count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default=text("0"),
    )

    user = relationship("User", back_populates="decks")
    cards = relationship(
        "Card",
        back_populates="deck",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("ix_decks_user_id", "user_id"),
        Index("ix_decks_user_id_updated_at", "user_id", "updated_at"),
    )


__all__ = ["Deck"]
