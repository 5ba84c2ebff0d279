"""Reservation management service helpers."""
from __future__ import annotations

import datetime
import logging
import uuid
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import (
    BackendTimeoutError,
    BookingValidationError,
    PartialWriteError,
)
from app.core.security import CurrentUser, require_user
from app.db.session import with_timeout
from app.models import (
    RESERVATION_DETAIL_MODELS,
    Quote,
    Reservation,
    ReservationCarSht,
    ReservationStatus,
    ReservationType,
)
from app.services.materializer_service import (
    ReservationDetailDraft,
    build_reservation_details,
)
from app.services.notification_service import (
    NotificationHook,
    ReservationEvent,
    run_hooks,
)
from app.services.summary_service import (
    detail_price_context,
    detail_total,
    list_quote_lines,
)

logger = logging.getLogger(__name__)

_ALLOWED_STATUS_TRANSITIONS: dict[ReservationStatus, set[ReservationStatus]] = {
    ReservationStatus.PENDING: {
        ReservationStatus.CONFIRMED,
        ReservationStatus.CANCELLED,
    },
    ReservationStatus.CONFIRMED: {
        ReservationStatus.COMPLETED,
        ReservationStatus.CANCELLED,
    },
    ReservationStatus.COMPLETED: set(),
    ReservationStatus.CANCELLED: set(),
}

# A seat_number of ALL books the whole vehicle.
ALL_SEATS = "ALL"


@dataclass(slots=True)
class ReservationOutcome:
    reservation: Reservation
    created: bool
    details: list[Any] = field(default_factory=list)
    total_price: int = 0


@dataclass(slots=True)
class ReservationListing:
    """A reservation with its details and the catalog rows they reference."""

    reservation: Reservation
    details: list[Any] = field(default_factory=list)
    total_price: int = 0
    price_context: dict[str, list[dict[str, Any]]] = field(default_factory=dict)


@dataclass(slots=True)
class SeatOccupancy:
    usage_date: datetime.date
    vehicle_number: str
    sht_category: str | None
    seats: list[str] = field(default_factory=list)

    @property
    def whole_vehicle(self) -> bool:
        return ALL_SEATS in self.seats

    def is_taken(self, seat: str) -> bool:
        return self.whole_vehicle or seat.strip().upper() in self.seats


def _validate_status_transition(
    current: ReservationStatus, new: ReservationStatus
) -> None:
    if current == new:
        return
    allowed = _ALLOWED_STATUS_TRANSITIONS.get(current, set())
    if new not in allowed:
        raise BookingValidationError(
            f"Cannot transition reservation from {current.value} to {new.value}"
        )


async def find_existing_reservation(
    session: AsyncSession,
    *,
    user_id: uuid.UUID,
    quote_id: uuid.UUID,
    reservation_type: ReservationType,
) -> Reservation | None:
    result = await with_timeout(
        session.execute(
            select(Reservation)
            .where(
                Reservation.user_id == user_id,
                Reservation.quote_id == quote_id,
                Reservation.reservation_type == reservation_type,
            )
            .execution_options(populate_existing=True)
        ),
        label="existing reservation",
    )
    return result.scalars().first()


async def get_reservation(
    session: AsyncSession,
    user: CurrentUser | None,
    reservation_id: uuid.UUID,
) -> Reservation | None:
    user = require_user(user)
    result = await with_timeout(
        session.execute(
            select(Reservation)
            .where(Reservation.id == reservation_id, Reservation.user_id == user.id)
            .execution_options(populate_existing=True)
        ),
        label="reservation",
    )
    return result.scalars().one_or_none()


async def list_reservation_details(
    session: AsyncSession,
    reservation_id: uuid.UUID,
    reservation_type: ReservationType,
) -> list[Any]:
    """Detail rows of every table the reservation type writes to, in insert order."""
    details: list[Any] = []
    for model in RESERVATION_DETAIL_MODELS[reservation_type]:
        result = await with_timeout(
            session.execute(
                select(model)
                .where(model.reservation_id == reservation_id)
                .order_by(model.created_at, model.id)
            ),
            label=f"{model.__tablename__} rows",
        )
        details.extend(result.scalars().all())
    return details


async def list_reservations(
    session: AsyncSession, user: CurrentUser | None
) -> list[ReservationListing]:
    """Every reservation of the caller, newest first, with details and price context."""
    user = require_user(user)
    result = await with_timeout(
        session.execute(
            select(Reservation)
            .where(Reservation.user_id == user.id)
            .order_by(Reservation.created_at.desc(), Reservation.id)
        ),
        label="reservations",
    )
    listings: list[ReservationListing] = []
    for reservation in result.scalars().all():
        details = await list_reservation_details(
            session, reservation.id, reservation.reservation_type
        )
        listings.append(
            ReservationListing(
                reservation=reservation,
                details=details,
                total_price=detail_total(details),
                price_context=await detail_price_context(session, details),
            )
        )
    return listings


def seat_set(seat_number: str | None) -> set[str]:
    """Seats named by a comma separated seat_number, upper-cased."""
    return {
        seat.strip().upper() for seat in (seat_number or "").split(",") if seat.strip()
    }


def shuttle_category(category: str | None) -> str | None:
    if category is None:
        return None
    normalized = category.strip().lower()
    if normalized == "drop-off":
        return "dropoff"
    return normalized or None


def _seats_overlap(left: set[str], right: set[str]) -> bool:
    if not left or not right:
        return False
    return ALL_SEATS in left or ALL_SEATS in right or bool(left & right)


async def _occupied_seats(
    session: AsyncSession,
    *,
    usage_date: datetime.date,
    vehicle_number: str,
    sht_category: str | None = None,
    exclude_reservation_id: uuid.UUID | None = None,
) -> SeatOccupancy:
    stmt = (
        select(ReservationCarSht.seat_number, ReservationCarSht.sht_category)
        .join(Reservation, Reservation.id == ReservationCarSht.reservation_id)
        .where(
            ReservationCarSht.usage_date == usage_date,
            ReservationCarSht.vehicle_number == vehicle_number,
            Reservation.status != ReservationStatus.CANCELLED,
        )
    )
    if exclude_reservation_id is not None:
        stmt = stmt.where(ReservationCarSht.reservation_id != exclude_reservation_id)
    result = await with_timeout(session.execute(stmt), label="occupied seats")

    wanted = shuttle_category(sht_category)
    seats: set[str] = set()
    for seat_number, category in result.all():
        if wanted is not None and shuttle_category(category) != wanted:
            continue
        seats |= seat_set(seat_number)
    return SeatOccupancy(
        usage_date=usage_date,
        vehicle_number=vehicle_number,
        sht_category=wanted,
        seats=sorted(seats),
    )


async def get_seat_occupancy(
    session: AsyncSession,
    user: CurrentUser | None,
    *,
    usage_date: datetime.date,
    vehicle_number: str,
    sht_category: str | None = None,
) -> SeatOccupancy:
    """Seats already booked on a shuttle vehicle for a date and category.

    Cancelled reservations free their seats. Without a category every
    category counts.
    """
    require_user(user)
    return await _occupied_seats(
        session,
        usage_date=usage_date,
        vehicle_number=vehicle_number,
        sht_category=sht_category,
    )


async def check_seat_availability(
    session: AsyncSession,
    seats: Iterable[Any],
    *,
    exclude_reservation_id: uuid.UUID | None = None,
) -> None:
    """Raise ``BookingValidationError`` when a requested seat is already booked.

    Seats without a usage date, vehicle or seat number are not checked.
    """
    requested: dict[tuple[datetime.date, str, str | None], set[str]] = {}
    for seat in seats:
        wanted = seat_set(seat.seat_number)
        if seat.usage_date is None or not seat.vehicle_number or not wanted:
            continue
        key = (seat.usage_date, seat.vehicle_number, shuttle_category(seat.sht_category))
        claimed = requested.setdefault(key, set())
        if _seats_overlap(claimed, wanted):
            raise BookingValidationError(
                f"Seat {seat.seat_number} on vehicle {seat.vehicle_number} "
                "is requested twice"
            )
        claimed |= wanted

    for (usage_date, vehicle_number, category), wanted in requested.items():
        occupancy = await _occupied_seats(
            session,
            usage_date=usage_date,
            vehicle_number=vehicle_number,
            sht_category=category,
            exclude_reservation_id=exclude_reservation_id,
        )
        taken = set(occupancy.seats)
        if _seats_overlap(taken, wanted):
            clash = sorted(wanted & taken) or sorted(wanted)
            raise BookingValidationError(
                f"Seat {', '.join(clash)} on vehicle {vehicle_number} "
                f"is already booked for {usage_date.isoformat()}"
            )


async def delete_details(
    session: AsyncSession,
    reservation_id: uuid.UUID,
    reservation_type: ReservationType,
) -> None:
    for model in RESERVATION_DETAIL_MODELS[reservation_type]:
        await with_timeout(
            session.execute(delete(model).where(model.reservation_id == reservation_id)),
            label=f"clear {model.__tablename__}",
        )
    await with_timeout(session.commit(), label="clear details")


async def persist_details(
    session: AsyncSession,
    reservation_id: uuid.UUID,
    drafts: Sequence[ReservationDetailDraft],
) -> int:
    """Insert each detail row in its own commit, collecting row failures.

    Rows that were written stay written. Raises ``PartialWriteError`` with one
    message per failed row once every draft has been attempted.
    """
    errors: list[str] = []
    written = 0
    for draft in drafts:
        session.add(draft.to_model(reservation_id))
        try:
            await with_timeout(session.commit(), label=f"{draft.label} detail")
        except (SQLAlchemyError, BackendTimeoutError) as exc:
            await session.rollback()
            logger.error(
                "Failed to save %s for reservation %s: %s", draft.label, reservation_id, exc
            )
            errors.append(f"{draft.label}: {exc}")
            continue
        written += 1
    if errors:
        raise PartialWriteError(errors, written=written)
    return written


async def _owned_quote(
    session: AsyncSession, user: CurrentUser, quote_id: uuid.UUID
) -> Quote:
    quote = await with_timeout(session.get(Quote, quote_id), label="quote")
    if quote is None or quote.user_id != user.id:
        raise LookupError("Quote not found")
    return quote


async def _claim_reservation(
    session: AsyncSession,
    *,
    user_id: uuid.UUID,
    quote_id: uuid.UUID,
    reservation_type: ReservationType,
) -> tuple[uuid.UUID, bool]:
    """Return the id of the reservation to fill and whether it is new."""
    existing = await find_existing_reservation(
        session, user_id=user_id, quote_id=quote_id, reservation_type=reservation_type
    )
    if existing is not None:
        return existing.id, False

    reservation_id = uuid.uuid4()
    session.add(
        Reservation(
            id=reservation_id,
            user_id=user_id,
            quote_id=quote_id,
            reservation_type=reservation_type,
            status=ReservationStatus.PENDING,
        )
    )
    try:
        await with_timeout(session.commit(), label="create reservation")
    except IntegrityError:
        await session.rollback()
        winner = await find_existing_reservation(
            session,
            user_id=user_id,
            quote_id=quote_id,
            reservation_type=reservation_type,
        )
        if winner is None:
            raise
        logger.info(
            "Reservation for quote %s (%s) created concurrently; updating %s",
            quote_id,
            reservation_type.value,
            winner.id,
        )
        return winner.id, False
    return reservation_id, True


async def create_or_update_reservation(
    session: AsyncSession,
    user: CurrentUser | None,
    quote_id: uuid.UUID,
    form: Any,
    *,
    hooks: Sequence[NotificationHook] | None = None,
) -> ReservationOutcome:
    """Create the reservation for (user, quote, type) or refill the existing one.

    Detail rows are validated, and shuttle seats checked against other
    bookings, before anything is written. An existing
    reservation keeps its id and has its details deleted and reinserted.
    Notification hooks run only for newly created reservations.
    """
    user = require_user(user)
    reservation_type = ReservationType(form.reservation_type)
    await _owned_quote(session, user, quote_id)
    lines = await list_quote_lines(session, quote_id)
    drafts = build_reservation_details(reservation_type, lines, form)
    if reservation_type is ReservationType.VEHICLE:
        existing = await find_existing_reservation(
            session, user_id=user.id, quote_id=quote_id, reservation_type=reservation_type
        )
        await check_seat_availability(
            session,
            form.seats,
            exclude_reservation_id=existing.id if existing is not None else None,
        )

    reservation_id, created = await _claim_reservation(
        session, user_id=user.id, quote_id=quote_id, reservation_type=reservation_type
    )
    if not created:
        await delete_details(session, reservation_id, reservation_type)

    written = await persist_details(session, reservation_id, drafts)
    logger.info(
        "%s %s reservation %s with %d detail row(s)",
        "Created" if created else "Updated",
        reservation_type.value,
        reservation_id,
        written,
    )

    if created:
        await run_hooks(
            ReservationEvent(
                reservation_id=reservation_id,
                user_id=user.id,
                quote_id=quote_id,
                reservation_type=reservation_type,
            ),
            hooks,
        )

    reservation = await get_reservation(session, user, reservation_id)
    if reservation is None:
        raise LookupError("Reservation not found")
    details = await list_reservation_details(session, reservation_id, reservation_type)
    return ReservationOutcome(
        reservation=reservation,
        created=created,
        details=details,
        total_price=detail_total(details),
    )


async def transition_reservation(
    session: AsyncSession,
    user: CurrentUser | None,
    reservation_id: uuid.UUID,
    status: ReservationStatus,
) -> Reservation:
    reservation = await get_reservation(session, user, reservation_id)
    if reservation is None:
        raise LookupError("Reservation not found")
    _validate_status_transition(reservation.status, status)
    reservation.status = status
    await with_timeout(session.commit(), label="reservation status")
    await session.refresh(reservation)
    return reservation
