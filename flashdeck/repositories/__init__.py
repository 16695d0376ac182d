"""Repository layer exports."""

from flashdeck.repositories.base import BaseRepository
from flashdeck.repositories.card import CardCounters, CardRepository
from flashdeck.repositories.deck import DeckRepository
from flashdeck.repositories.user import UserRepository

__all__ = [
    "BaseRepository",
    "CardCounters",
    "CardRepository",
    "DeckRepository",
    "UserRepository",
]
