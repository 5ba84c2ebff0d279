"""Health check endpoints."""

from datetime import UTC, datetime

from fastapi import APIRouter

from app.core.config import get_settings
from app.core.settings import get_supabase_settings

router = APIRouter()


@router.get("", summary="Service health status")
async def healthcheck() -> dict[str, str | bool]:
    """Report service identity and whether reservation notifications are wired."""
    settings = get_settings()
    supabase = get_supabase_settings()
    return {
        "status": "ok",
        "service": settings.app_name,
        "environment": settings.app_env,
        "notifications": supabase.notifications_enabled and supabase.rpc_configured,
        "timestamp": datetime.now(UTC).isoformat(),
    }
