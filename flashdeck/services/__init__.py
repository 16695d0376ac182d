"""Business logic services orchestrating domain operations."""

from flashdeck.services.auth import AuthResult, AuthService
from flashdeck.services.card import CardService
from flashdeck.services.deck import DeckService

__all__ = [
    "AuthResult",
    "AuthService",
    "CardService",
    "DeckService",
]
