"""Price catalog option and resolution endpoints."""

from __future__ import annotations

from datetime import date
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.api.errors import http_error
from app.core.errors import BookingError
from app.schemas.catalog import CatalogOptionsRead, ResolutionRead
from app.services import catalog_service
from app.services.catalog_service import DateWindow

router = APIRouter()


def _window(start_date: date | None, end_date: date | None) -> DateWindow | None:
    if start_date is None and end_date is None:
        return None
    start = start_date or end_date
    return DateWindow(start=start, end=end_date or start)


def _slot_filters(request: Request, catalog: str) -> dict[str, Any]:
    spec = catalog_service.get_catalog(catalog)
    return {
        slot: request.query_params[slot]
        for slot in spec.chain
        if request.query_params.get(slot)
    }


@router.get(
    "/{catalog}/options",
    response_model=CatalogOptionsRead,
    summary="Distinct values for the next selection slot",
)
async def list_options(
    catalog: str,
    request: Request,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    attribute: Annotated[str, Query(min_length=1)],
    start_date: date | None = None,
    end_date: date | None = None,
) -> CatalogOptionsRead:
    try:
        filters = _slot_filters(request, catalog)
        options = await catalog_service.list_options(
            session,
            catalog,
            attribute,
            filters,
            window=_window(start_date, end_date),
        )
    except BookingError as exc:
        raise http_error(exc) from exc
    return CatalogOptionsRead(catalog=catalog, attribute=attribute, options=options)


@router.get(
    "/{catalog}/resolve",
    response_model=ResolutionRead,
    summary="Resolve a full selection to a price code",
)
async def resolve(
    catalog: str,
    request: Request,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    start_date: date | None = None,
    end_date: date | None = None,
) -> ResolutionRead:
    try:
        filters = _slot_filters(request, catalog)
        resolution = await catalog_service.resolve_code(
            session, catalog, filters, window=_window(start_date, end_date)
        )
    except BookingError as exc:
        raise http_error(exc) from exc
    return ResolutionRead.model_validate(resolution)
