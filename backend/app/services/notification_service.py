"""Post-commit reservation notifications.

Hooks run after a new reservation and its details are committed. A failing
hook is logged and never changes the reservation outcome.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass

import httpx

from app.core.settings import get_supabase_settings
from app.models.reservation import ReservationType

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ReservationEvent:
    reservation_id: uuid.UUID
    user_id: uuid.UUID
    quote_id: uuid.UUID
    reservation_type: ReservationType


NotificationHook = Callable[[ReservationEvent], Awaitable[None]]


async def notify_via_rpc(event: ReservationEvent) -> None:
    """Call the Supabase RPC that records a staff notification."""
    settings = get_supabase_settings()
    if not settings.notifications_enabled:
        logger.debug("Notifications disabled; skipping %s", event.reservation_id)
        return
    if not settings.rpc_configured:
        logger.debug("Supabase RPC not configured; skipping %s", event.reservation_id)
        return
    url = f"{settings.url.rstrip('/')}/rest/v1/rpc/{settings.notification_rpc}"
    headers = {
        "apikey": settings.service_key,
        "Authorization": f"Bearer {settings.service_key}",
    }
    payload = {
        "p_reservation_id": str(event.reservation_id),
        "p_user_id": str(event.user_id),
    }
    async with httpx.AsyncClient(timeout=settings.timeout_seconds) as client:
        response = await client.post(url, json=payload, headers=headers)
        response.raise_for_status()
    logger.info(
        "Notification recorded for %s reservation %s",
        event.reservation_type.value,
        event.reservation_id,
    )


DEFAULT_HOOKS: tuple[NotificationHook, ...] = (notify_via_rpc,)


async def run_hooks(
    event: ReservationEvent, hooks: Sequence[NotificationHook] | None = None
) -> int:
    """Run every hook in order; returns how many completed without error."""
    succeeded = 0
    for hook in DEFAULT_HOOKS if hooks is None else hooks:
        try:
            await hook(event)
        except Exception:
            logger.exception(
                "Notification hook %s failed for reservation %s",
                getattr(hook, "__name__", repr(hook)),
                event.reservation_id,
            )
            continue
        succeeded += 1
    return succeeded
