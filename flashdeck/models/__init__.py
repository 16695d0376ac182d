"""Database models shared across the backend."""

from flashdeck.models.base import Base
from flashdeck.models.card import Card
from flashdeck.models.deck import Deck
from flashdeck.models.user import User

__all__ = [
    "Base",
    "Card",
    "Deck",
    "User",
]
