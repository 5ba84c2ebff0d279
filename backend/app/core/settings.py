"""Specialized settings adapters for integrations."""

from __future__ import annotations

from pydantic import BaseModel

from app.core.config import get_settings


class SupabaseSettings(BaseModel):
    """Slim view of Supabase-related configuration."""

    url: str | None = None
    service_key: str | None = None
    notification_rpc: str = "create_reservation_notification"
    notifications_enabled: bool = True
    timeout_seconds: float = 10.0

    @property
    def rpc_configured(self) -> bool:
        return bool(self.url and self.service_key)


def get_supabase_settings() -> SupabaseSettings:
    """Return Supabase-specific configuration."""

    settings = get_settings()
    return SupabaseSettings(
        url=(settings.supabase_url or "").rstrip("/") or None,
        service_key=settings.supabase_service_key or None,
        notification_rpc=settings.notification_rpc,
        notifications_enabled=settings.notifications_enabled,
        timeout_seconds=settings.backend_timeout_seconds,
    )
