"""Router aggregations for public API endpoints."""

from fastapi import APIRouter

from flashdeck.api.routes import auth, cards, deck_cards, decks, health
from flashdeck.core.config import settings

# Health router (no prefix)
root_router = APIRouter()
root_router.include_router(health.router, tags=["health"])

# API routers under the configured prefix (default /api)
api_router = APIRouter(prefix=settings.api_v1_prefix)
api_router.include_router(auth.router)
api_router.include_router(decks.router)
api_router.include_router(deck_cards.router)
api_router.include_router(cards.router)

__all__ = ["api_router", "root_router"]
