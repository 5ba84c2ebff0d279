"""Quote lifecycle and service additions."""
from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping, Sequence
from dataclasses import replace
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import BookingValidationError
from app.core.security import CurrentUser, require_user
from app.db.session import with_timeout
from app.models import (
    SERVICE_RECORD_MODELS,
    Quote,
    QuoteItem,
    QuoteStatus,
    ServiceType,
)
from app.schemas.quote import (
    AirportAddRequest,
    CruiseAddRequest,
    HotelAddRequest,
    RentcarAddRequest,
    TourAddRequest,
)
from app.services import catalog_service, selection_service
from app.services.catalog_service import DateWindow
from app.services.materializer_service import (
    AdditionForm,
    LineItemDraft,
    ResolvedLeg,
    ServiceRecordDraft,
    materialize_legs,
    materialize_quote_addition,
)
from app.services.summary_service import (
    QuoteSummary,
    list_quote_lines,
    summarize_quote,
)

logger = logging.getLogger(__name__)

DEFAULT_TITLE_NAME = "고객"

__all__ = [
    "add_airport_service",
    "add_cruise_services",
    "add_hotel_service",
    "add_rentcar_service",
    "add_tour_service",
    "delete_quote_item",
    "get_or_create_draft_quote",
    "get_quote",
    "get_quote_summary",
    "list_quote_lines",
    "list_quotes",
    "refresh_quote_total",
    "submit_quote",
]


def _title_name(user: CurrentUser, display_name: str | None) -> str:
    for candidate in (display_name, user.display_name):
        if candidate and candidate.strip():
            return candidate.strip()
    if user.email and "@" in user.email:
        local_part = user.email.split("@", 1)[0].strip()
        if local_part:
            return local_part
    return DEFAULT_TITLE_NAME


async def get_or_create_draft_quote(
    session: AsyncSession,
    user: CurrentUser | None,
    display_name: str | None = None,
) -> Quote:
    """Return the user's newest draft quote, creating a titled one if needed."""
    user = require_user(user)
    result = await with_timeout(
        session.execute(
            select(Quote)
            .where(Quote.user_id == user.id, Quote.status == QuoteStatus.DRAFT)
            .order_by(Quote.created_at.desc())
            .limit(1)
        ),
        label="draft quote",
    )
    quote = result.scalars().first()
    if quote is not None:
        return quote

    count = await with_timeout(
        session.scalar(select(func.count(Quote.id)).where(Quote.user_id == user.id)),
        label="quote count",
    )
    quote = Quote(
        id=uuid.uuid4(),
        user_id=user.id,
        title=f"{_title_name(user, display_name)}{(count or 0) + 1}",
        status=QuoteStatus.DRAFT,
        total_price=0,
    )
    session.add(quote)
    await with_timeout(session.commit(), label="create quote")
    await session.refresh(quote)
    logger.info("Created draft quote %s for user %s", quote.id, user.id)
    return quote


async def get_quote(
    session: AsyncSession,
    user: CurrentUser | None,
    quote_id: uuid.UUID,
) -> Quote | None:
    """Owner-scoped quote read."""
    user = require_user(user)
    result = await with_timeout(
        session.execute(
            select(Quote).where(Quote.id == quote_id, Quote.user_id == user.id)
        ),
        label="quote",
    )
    return result.scalars().one_or_none()


async def list_quotes(
    session: AsyncSession, user: CurrentUser | None
) -> list[Quote]:
    """The caller's quotes, newest first."""
    user = require_user(user)
    result = await with_timeout(
        session.execute(
            select(Quote)
            .where(Quote.user_id == user.id)
            .order_by(Quote.created_at.desc(), Quote.id)
        ),
        label="quotes",
    )
    return list(result.scalars().all())


async def _editable_quote(
    session: AsyncSession, user: CurrentUser | None, quote_id: uuid.UUID
) -> Quote:
    quote = await get_quote(session, user, quote_id)
    if quote is None:
        raise LookupError("Quote not found")
    if quote.status is not QuoteStatus.DRAFT:
        raise BookingValidationError(
            f"Quote is {quote.status.value}; only draft quotes can be changed"
        )
    return quote


async def _resolve_leg(
    session: AsyncSession,
    service_type: ServiceType,
    catalog: str,
    filters: Mapping[str, Any],
    *,
    window: DateWindow | None = None,
) -> ResolvedLeg:
    spec = catalog_service.get_catalog(catalog)
    if not catalog_service.is_complete(spec, filters, window):
        missing = [slot for slot in spec.chain if filters.get(slot) in (None, "")]
        if spec.windowed and window is None:
            missing.append("dates")
        raise BookingValidationError(
            f"Incomplete {catalog} selection; missing {', '.join(missing)}"
        )
    resolution = await catalog_service.resolve_code(
        session, catalog, filters, window=window
    )
    code = resolution.require(filters)
    unit_price = await catalog_service.lookup_price(
        session, catalog, code, window=window
    )
    return ResolvedLeg(service_type=service_type, code=code, unit_price=unit_price)


async def _persist_drafts(
    session: AsyncSession,
    quote: Quote,
    drafts: Sequence[tuple[ServiceRecordDraft, LineItemDraft]],
) -> list[QuoteItem]:
    quote_id = quote.id
    items: list[QuoteItem] = []
    for record_draft, line_draft in drafts:
        record = record_draft.to_model()
        session.add(record)
        await with_timeout(session.flush(), label="service record")
        item = line_draft.to_model(quote_id, record.id)
        session.add(item)
        items.append(item)
    await with_timeout(session.commit(), label="quote addition")
    await refresh_quote_total(session, quote)
    logger.info("Added %d item(s) to quote %s", len(items), quote_id)
    return items


async def add_airport_service(
    session: AsyncSession,
    user: CurrentUser | None,
    quote_id: uuid.UUID,
    payload: AirportAddRequest,
) -> list[QuoteItem]:
    """Add one quote item per transfer leg implied by the apply type."""
    quote = await _editable_quote(session, user, quote_id)
    states = selection_service.legs_for_apply_type(payload.apply_type)
    if len(states) != len(payload.legs):
        raise BookingValidationError(
            f"apply_type {payload.apply_type.value} requires {len(states)} leg(s)"
        )
    resolved = []
    for state, leg in zip(states, payload.legs):
        state = selection_service.apply_selection(state, "airport_route", leg.airport_route)
        state = selection_service.apply_selection(
            state, "airport_car_type", leg.airport_car_type
        )
        resolved.append(
            await _resolve_leg(session, ServiceType.AIRPORT, "airport", state.filters)
        )
    form = AdditionForm(
        quantity=payload.vehicle_count,
        usage_date=payload.usage_date,
        special_requests=payload.special_requests,
    )
    return await _persist_drafts(session, quote, materialize_legs(resolved, form))


async def add_cruise_services(
    session: AsyncSession,
    user: CurrentUser | None,
    quote_id: uuid.UUID,
    payload: CruiseAddRequest,
) -> list[QuoteItem]:
    """Add a quote item per cabin category with guests, plus the transfer car."""
    quote = await _editable_quote(session, user, quote_id)
    window = DateWindow.on(payload.checkin)
    legs: list[tuple[ResolvedLeg, AdditionForm]] = []
    for room in payload.rooms:
        if room.person_count <= 0:
            continue
        filters = {
            "schedule": payload.schedule,
            "cruise": payload.cruise,
            "payment": payload.payment,
            "room_type": room.room_type,
            "room_category": room.room_category,
        }
        leg = await _resolve_leg(
            session, ServiceType.ROOM, "room", filters, window=window
        )
        legs.append(
            (leg, AdditionForm(quantity=room.person_count, usage_date=payload.checkin))
        )
    if payload.car is not None and payload.car.count > 0:
        filters = {
            "schedule": payload.schedule,
            "cruise": payload.cruise,
            "car_category": payload.car.car_category,
            "car_type": payload.car.car_type,
        }
        leg = await _resolve_leg(session, ServiceType.CAR, "car", filters)
        legs.append(
            (
                leg,
                AdditionForm(
                    quantity=payload.car.count,
                    usage_date=payload.checkin,
                    car_type=payload.car.car_type,
                ),
            )
        )
    if not legs:
        raise BookingValidationError("Select at least one cabin guest or vehicle")

    drafts = []
    for index, (leg, form) in enumerate(legs):
        if index == 0:
            form = replace(form, special_requests=payload.special_requests)
        drafts.append(materialize_quote_addition(leg, form))
    return await _persist_drafts(session, quote, drafts)


async def add_hotel_service(
    session: AsyncSession,
    user: CurrentUser | None,
    quote_id: uuid.UUID,
    payload: HotelAddRequest,
) -> list[QuoteItem]:
    quote = await _editable_quote(session, user, quote_id)
    window = DateWindow(start=payload.checkin_date, end=payload.checkout_date)
    filters = {
        "hotel_name": payload.hotel_name,
        "room_name": payload.room_name,
        "room_type": payload.room_type,
        "weekday_type": payload.weekday_type,
    }
    leg = await _resolve_leg(session, ServiceType.HOTEL, "hotel", filters, window=window)
    form = AdditionForm(
        quantity=payload.room_count,
        usage_date=payload.checkin_date,
        checkout_date=payload.checkout_date,
        special_requests=payload.special_requests,
    )
    return await _persist_drafts(session, quote, [materialize_quote_addition(leg, form)])


async def add_rentcar_service(
    session: AsyncSession,
    user: CurrentUser | None,
    quote_id: uuid.UUID,
    payload: RentcarAddRequest,
) -> list[QuoteItem]:
    quote = await _editable_quote(session, user, quote_id)
    filters = {
        "rent_category": payload.rent_category,
        "rent_route": payload.rent_route,
        "rent_car_type": payload.rent_car_type,
    }
    leg = await _resolve_leg(session, ServiceType.RENTCAR, "rentcar", filters)
    form = AdditionForm(
        quantity=payload.vehicle_count,
        usage_date=payload.usage_date,
        special_requests=payload.special_requests,
    )
    return await _persist_drafts(session, quote, [materialize_quote_addition(leg, form)])


async def add_tour_service(
    session: AsyncSession,
    user: CurrentUser | None,
    quote_id: uuid.UUID,
    payload: TourAddRequest,
) -> list[QuoteItem]:
    quote = await _editable_quote(session, user, quote_id)
    filters = {
        "tour_name": payload.tour_name,
        "tour_vehicle": payload.tour_vehicle,
        "tour_type": payload.tour_type,
        "tour_capacity": payload.tour_capacity,
    }
    leg = await _resolve_leg(session, ServiceType.TOUR, "tour", filters)
    form = AdditionForm(
        quantity=payload.participant_count,
        usage_date=payload.tour_date,
        special_requests=payload.special_requests,
    )
    return await _persist_drafts(session, quote, [materialize_quote_addition(leg, form)])


async def refresh_quote_total(session: AsyncSession, quote: Quote) -> int:
    """Store the live sum of the quote's items as its denormalized total."""
    total = await with_timeout(
        session.scalar(
            select(func.coalesce(func.sum(QuoteItem.total_price), 0)).where(
                QuoteItem.quote_id == quote.id
            )
        ),
        label="quote total",
    )
    quote.total_price = int(total or 0)
    await with_timeout(session.commit(), label="quote total")
    return quote.total_price


async def delete_quote_item(
    session: AsyncSession,
    user: CurrentUser | None,
    quote_id: uuid.UUID,
    item_id: uuid.UUID,
) -> Quote:
    """Remove one item and its service record from a draft quote.

    The stored quote total is refreshed afterwards.
    """
    quote = await _editable_quote(session, user, quote_id)
    item = await with_timeout(session.get(QuoteItem, item_id), label="quote item")
    if item is None or item.quote_id != quote.id:
        raise LookupError("Quote item not found")
    model = SERVICE_RECORD_MODELS[item.service_type]
    await with_timeout(
        session.execute(delete(model).where(model.id == item.service_ref_id)),
        label=f"{item.service_type.value} record",
    )
    await session.delete(item)
    await with_timeout(session.commit(), label="remove quote item")
    await refresh_quote_total(session, quote)
    logger.info("Removed item %s from quote %s", item_id, quote.id)
    return quote


async def submit_quote(
    session: AsyncSession,
    user: CurrentUser | None,
    quote_id: uuid.UUID,
) -> Quote:
    """Move a draft quote with at least one item to ``submitted``."""
    quote = await _editable_quote(session, user, quote_id)
    item_count = await with_timeout(
        session.scalar(
            select(func.count(QuoteItem.id)).where(QuoteItem.quote_id == quote.id)
        ),
        label="quote items",
    )
    if not item_count:
        raise BookingValidationError("Cannot submit a quote without items")
    quote.status = QuoteStatus.SUBMITTED
    quote.submitted_at = datetime.now(UTC)
    await with_timeout(session.commit(), label="submit quote")
    await session.refresh(quote)
    return quote


async def get_quote_summary(
    session: AsyncSession,
    user: CurrentUser | None,
    quote_id: uuid.UUID,
) -> QuoteSummary | None:
    quote = await get_quote(session, user, quote_id)
    if quote is None:
        return None
    return await summarize_quote(session, quote)
