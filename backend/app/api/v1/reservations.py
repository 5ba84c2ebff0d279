"""Reservation API."""

from __future__ import annotations

import uuid
from datetime import date
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.api.errors import http_error
from app.core.errors import BookingError
from app.core.security import CurrentUser
from app.schemas.reservation import (
    ReservationCreate,
    ReservationDetailsRead,
    ReservationListRead,
    ReservationOutcomeRead,
    ReservationRead,
    ReservationStatusUpdate,
    SeatOccupancyRead,
)
from app.services import reservation_service
from app.services.summary_service import detail_total

router = APIRouter()

SessionDep = Annotated[AsyncSession, Depends(deps.get_db_session)]
UserDep = Annotated[CurrentUser | None, Depends(deps.get_current_user)]


def _detail_dict(detail: Any) -> dict[str, Any]:
    values = {
        attr.key: getattr(detail, attr.key)
        for attr in inspect(detail).mapper.column_attrs
    }
    values["table"] = detail.__tablename__
    return values


@router.post(
    "",
    response_model=ReservationOutcomeRead,
    summary="Create or update the reservation for a quote and service type",
)
async def create_or_update_reservation(
    payload: ReservationCreate,
    session: SessionDep,
    current_user: UserDep,
) -> ReservationOutcomeRead:
    try:
        outcome = await reservation_service.create_or_update_reservation(
            session, current_user, payload.quote_id, payload.form
        )
    except (BookingError, LookupError) as exc:
        raise http_error(exc) from exc
    return ReservationOutcomeRead(
        reservation=ReservationRead.model_validate(outcome.reservation),
        details=[_detail_dict(detail) for detail in outcome.details],
        total_price=outcome.total_price,
        created=outcome.created,
    )


@router.get(
    "",
    response_model=list[ReservationListRead],
    summary="List the caller's reservations with details",
)
async def list_reservations(
    session: SessionDep,
    current_user: UserDep,
) -> list[ReservationListRead]:
    try:
        listings = await reservation_service.list_reservations(session, current_user)
    except BookingError as exc:
        raise http_error(exc) from exc
    return [
        ReservationListRead(
            reservation=ReservationRead.model_validate(listing.reservation),
            details=[_detail_dict(detail) for detail in listing.details],
            total_price=listing.total_price,
            price_context=listing.price_context,
        )
        for listing in listings
    ]


@router.get(
    "/seats",
    response_model=SeatOccupancyRead,
    summary="Booked shuttle seats for a date and vehicle",
)
async def get_seat_occupancy(
    session: SessionDep,
    current_user: UserDep,
    usage_date: date,
    vehicle_number: str,
    sht_category: str | None = None,
) -> SeatOccupancyRead:
    try:
        occupancy = await reservation_service.get_seat_occupancy(
            session,
            current_user,
            usage_date=usage_date,
            vehicle_number=vehicle_number,
            sht_category=sht_category,
        )
    except BookingError as exc:
        raise http_error(exc) from exc
    return SeatOccupancyRead.model_validate(occupancy)


@router.get(
    "/{reservation_id}",
    response_model=ReservationDetailsRead,
    summary="Get reservation with details",
)
async def get_reservation(
    reservation_id: uuid.UUID,
    session: SessionDep,
    current_user: UserDep,
) -> ReservationDetailsRead:
    try:
        reservation = await reservation_service.get_reservation(
            session, current_user, reservation_id
        )
        if reservation is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Reservation not found"
            )
        details = await reservation_service.list_reservation_details(
            session, reservation.id, reservation.reservation_type
        )
    except BookingError as exc:
        raise http_error(exc) from exc
    return ReservationDetailsRead(
        reservation=ReservationRead.model_validate(reservation),
        details=[_detail_dict(detail) for detail in details],
        total_price=detail_total(details),
    )


@router.post(
    "/{reservation_id}/status",
    response_model=ReservationRead,
    summary="Change reservation status",
)
async def update_status(
    reservation_id: uuid.UUID,
    payload: ReservationStatusUpdate,
    session: SessionDep,
    current_user: UserDep,
) -> ReservationRead:
    try:
        reservation = await reservation_service.transition_reservation(
            session, current_user, reservation_id, payload.status
        )
    except (BookingError, LookupError) as exc:
        raise http_error(exc) from exc
    return ReservationRead.model_validate(reservation)
