"""Versioned API router."""

from fastapi import APIRouter

from . import catalog, health, quotes, reservations

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(catalog.router, prefix="/catalog", tags=["catalog"])
router.include_router(quotes.router, prefix="/quotes", tags=["quotes"])
router.include_router(
    reservations.router, prefix="/reservations", tags=["reservations"]
)

__all__ = ["router"]
