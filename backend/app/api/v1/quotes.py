"""Quote API: listing, draft lookup, service additions, summary and submission."""

from __future__ import annotations

import uuid
from collections.abc import Awaitable, Callable
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.api.errors import http_error
from app.core.errors import BookingError
from app.core.security import CurrentUser
from app.models import QuoteItem
from app.schemas.quote import (
    AirportAddRequest,
    CruiseAddRequest,
    HotelAddRequest,
    QuoteAdditionRead,
    QuoteItemRead,
    QuoteRead,
    QuoteSummaryRead,
    RentcarAddRequest,
    TourAddRequest,
)
from app.services import quote_service

router = APIRouter()

SessionDep = Annotated[AsyncSession, Depends(deps.get_db_session)]
UserDep = Annotated[CurrentUser | None, Depends(deps.get_current_user)]


@router.get("", response_model=list[QuoteRead], summary="List the caller's quotes")
async def list_quotes(
    session: SessionDep,
    current_user: UserDep,
) -> list[QuoteRead]:
    try:
        quotes = await quote_service.list_quotes(session, current_user)
    except BookingError as exc:
        raise http_error(exc) from exc
    return [QuoteRead.model_validate(quote) for quote in quotes]


@router.get("/active", response_model=QuoteRead, summary="Current draft quote")
async def get_active_quote(
    session: SessionDep,
    current_user: UserDep,
    display_name: str | None = None,
) -> QuoteRead:
    try:
        quote = await quote_service.get_or_create_draft_quote(
            session, current_user, display_name
        )
    except BookingError as exc:
        raise http_error(exc) from exc
    return QuoteRead.model_validate(quote)


@router.get("/{quote_id}", response_model=QuoteRead, summary="Get quote")
async def get_quote(
    quote_id: uuid.UUID,
    session: SessionDep,
    current_user: UserDep,
) -> QuoteRead:
    try:
        quote = await quote_service.get_quote(session, current_user, quote_id)
    except BookingError as exc:
        raise http_error(exc) from exc
    if quote is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Quote not found")
    return QuoteRead.model_validate(quote)


@router.get(
    "/{quote_id}/summary",
    response_model=QuoteSummaryRead,
    summary="De-duplicated quote summary with totals",
)
async def get_quote_summary(
    quote_id: uuid.UUID,
    session: SessionDep,
    current_user: UserDep,
) -> QuoteSummaryRead:
    try:
        summary = await quote_service.get_quote_summary(session, current_user, quote_id)
    except BookingError as exc:
        raise http_error(exc) from exc
    if summary is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Quote not found")
    return QuoteSummaryRead.model_validate(summary)


async def _add(
    session: AsyncSession,
    current_user: CurrentUser | None,
    quote_id: uuid.UUID,
    payload: Any,
    adder: Callable[..., Awaitable[list[QuoteItem]]],
) -> QuoteAdditionRead:
    try:
        items = await adder(session, current_user, quote_id, payload)
        quote = await quote_service.get_quote(session, current_user, quote_id)
    except (BookingError, LookupError) as exc:
        raise http_error(exc) from exc
    return QuoteAdditionRead(
        quote_id=quote_id,
        items=[QuoteItemRead.model_validate(item) for item in items],
        total_price=quote.total_price if quote is not None else 0,
    )


@router.post(
    "/{quote_id}/airport",
    response_model=QuoteAdditionRead,
    status_code=status.HTTP_201_CREATED,
    summary="Add airport transfer legs",
)
async def add_airport(
    quote_id: uuid.UUID,
    payload: AirportAddRequest,
    session: SessionDep,
    current_user: UserDep,
) -> QuoteAdditionRead:
    return await _add(
        session, current_user, quote_id, payload, quote_service.add_airport_service
    )


@router.post(
    "/{quote_id}/cruise",
    response_model=QuoteAdditionRead,
    status_code=status.HTTP_201_CREATED,
    summary="Add cruise cabins and transfer car",
)
async def add_cruise(
    quote_id: uuid.UUID,
    payload: CruiseAddRequest,
    session: SessionDep,
    current_user: UserDep,
) -> QuoteAdditionRead:
    return await _add(
        session, current_user, quote_id, payload, quote_service.add_cruise_services
    )


@router.post(
    "/{quote_id}/hotel",
    response_model=QuoteAdditionRead,
    status_code=status.HTTP_201_CREATED,
    summary="Add hotel stay",
)
async def add_hotel(
    quote_id: uuid.UUID,
    payload: HotelAddRequest,
    session: SessionDep,
    current_user: UserDep,
) -> QuoteAdditionRead:
    return await _add(
        session, current_user, quote_id, payload, quote_service.add_hotel_service
    )


@router.post(
    "/{quote_id}/rentcar",
    response_model=QuoteAdditionRead,
    status_code=status.HTTP_201_CREATED,
    summary="Add rent-car",
)
async def add_rentcar(
    quote_id: uuid.UUID,
    payload: RentcarAddRequest,
    session: SessionDep,
    current_user: UserDep,
) -> QuoteAdditionRead:
    return await _add(
        session, current_user, quote_id, payload, quote_service.add_rentcar_service
    )


@router.post(
    "/{quote_id}/tour",
    response_model=QuoteAdditionRead,
    status_code=status.HTTP_201_CREATED,
    summary="Add tour",
)
async def add_tour(
    quote_id: uuid.UUID,
    payload: TourAddRequest,
    session: SessionDep,
    current_user: UserDep,
) -> QuoteAdditionRead:
    return await _add(
        session, current_user, quote_id, payload, quote_service.add_tour_service
    )


@router.delete(
    "/{quote_id}/items/{item_id}",
    response_model=QuoteRead,
    summary="Remove an item from a draft quote",
)
async def delete_quote_item(
    quote_id: uuid.UUID,
    item_id: uuid.UUID,
    session: SessionDep,
    current_user: UserDep,
) -> QuoteRead:
    try:
        quote = await quote_service.delete_quote_item(
            session, current_user, quote_id, item_id
        )
    except (BookingError, LookupError) as exc:
        raise http_error(exc) from exc
    return QuoteRead.model_validate(quote)


@router.post("/{quote_id}/submit", response_model=QuoteRead, summary="Submit quote")
async def submit_quote(
    quote_id: uuid.UUID,
    session: SessionDep,
    current_user: UserDep,
) -> QuoteRead:
    try:
        quote = await quote_service.submit_quote(session, current_user, quote_id)
    except (BookingError, LookupError) as exc:
        raise http_error(exc) from exc
    return QuoteRead.model_validate(quote)
