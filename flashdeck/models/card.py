"""Card model representing a single front/back vocabulary pair."""

from __future__ import annotations

import uuid

from sqlalchemy import Boolean, ForeignKey, Index, String, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from flashdeck.models.base import GUID, Base, TimestampMixin


class Card(TimestampMixin, Base):
    """Individual flashcard persisted inside a deck."""

    __tablename__ = "cards"

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=uuid.uuid4)
    deck_id: Mapped[uuid.UUID] = mapped_column(
        GUID(),
        ForeignKey("decks.id", ondelete="CASCADE"),
        nullable=False,
    )

    front_text: Mapped[str] = mapped_column(String(500), nullable=False)
    back_text: Mapped[str] = mapped_column(String(500), nullable=False)
    memorized: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=text("false"),
    )

    deck = relationship("Deck", back_populates="cards")

    __table_args__ = (
        Index("ix_cards_deck_id", "deck_id"),
        Index("ix_cards_deck_id_memorized_updated_at", "deck_id", "memorized", "updated_at"),
    )


__all__ = ["Card"]
