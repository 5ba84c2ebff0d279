"""Price catalog lookups: cascading option lists and price-code resolution."""

from __future__ import annotations

import datetime
import enum
import logging
from collections.abc import Collection, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import (
    AmbiguousMatchError,
    BookingValidationError,
    CatalogEntryNotFoundError,
)
from app.db.session import with_timeout
from app.models import (
    AirportPrice,
    CarPrice,
    HotelPrice,
    RentPrice,
    RoomPrice,
    TourPrice,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CatalogSpec:
    """Describes one price table and the order of its selection chain."""

    name: str
    model: type[Any]
    code_attr: str
    chain: tuple[str, ...]
    windowed: bool = False

    def column(self, attribute: str) -> Any:
        if attribute != self.code_attr and attribute not in self.chain:
            raise BookingValidationError(
                f"Unknown {self.name} catalog attribute: {attribute}"
            )
        return getattr(self.model, attribute)

    @property
    def code_column(self) -> Any:
        return getattr(self.model, self.code_attr)


CATALOGS: dict[str, CatalogSpec] = {
    "room": CatalogSpec(
        name="room",
        model=RoomPrice,
        code_attr="room_code",
        chain=("schedule", "cruise", "payment", "room_type", "room_category"),
        windowed=True,
    ),
    "car": CatalogSpec(
        name="car",
        model=CarPrice,
        code_attr="car_code",
        chain=("schedule", "cruise", "car_category", "car_type"),
    ),
    "airport": CatalogSpec(
        name="airport",
        model=AirportPrice,
        code_attr="airport_code",
        chain=("airport_category", "airport_route", "airport_car_type"),
    ),
    "hotel": CatalogSpec(
        name="hotel",
        model=HotelPrice,
        code_attr="hotel_code",
        chain=("hotel_name", "room_name", "room_type", "weekday_type"),
        windowed=True,
    ),
    "rentcar": CatalogSpec(
        name="rentcar",
        model=RentPrice,
        code_attr="rent_code",
        chain=("rent_category", "rent_route", "rent_car_type"),
    ),
    "tour": CatalogSpec(
        name="tour",
        model=TourPrice,
        code_attr="tour_code",
        chain=("tour_name", "tour_vehicle", "tour_type", "tour_capacity"),
    ),
}


def get_catalog(name: str) -> CatalogSpec:
    """Return the catalog definition registered under ``name``."""
    try:
        return CATALOGS[name]
    except KeyError as exc:
        raise BookingValidationError(f"Unknown price catalog: {name}") from exc


@dataclass(frozen=True, slots=True)
class DateWindow:
    """Stay dates that a catalog row's validity range must cover."""

    start: datetime.date
    end: datetime.date

    @classmethod
    def on(cls, day: datetime.date) -> "DateWindow":
        return cls(start=day, end=day)

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise BookingValidationError("Window end date is before its start date")


class ResolutionStatus(str, enum.Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    AMBIGUOUS = "ambiguous"


@dataclass(frozen=True, slots=True)
class Resolution:
    """Outcome of resolving a selection: found, not found, or ambiguous."""

    catalog: str
    status: ResolutionStatus
    code: str | None = None
    price: int | None = None
    candidates: tuple[str, ...] = ()

    @property
    def is_found(self) -> bool:
        return self.status is ResolutionStatus.FOUND

    def require(self, filters: Mapping[str, Any] | None = None) -> str:
        """Return the resolved code or raise the matching error kind."""
        if self.status is ResolutionStatus.AMBIGUOUS:
            raise AmbiguousMatchError(self.catalog, self.candidates)
        if self.status is ResolutionStatus.NOT_FOUND or self.code is None:
            raise CatalogEntryNotFoundError(self.catalog, dict(filters or {}))
        return self.code


def _coerce(spec: CatalogSpec, attribute: str, value: Any) -> Any:
    column = spec.column(attribute)
    if column.type.python_type is int and not isinstance(value, int):
        try:
            return int(value)
        except (TypeError, ValueError) as exc:
            raise BookingValidationError(
                f"{attribute} must be a whole number, got {value!r}"
            ) from exc
    return value


def _is_set(value: Any) -> bool:
    return value is not None and value != ""


def _filtered(
    stmt: Select[Any],
    spec: CatalogSpec,
    filters: Mapping[str, Any],
    window: DateWindow | None,
) -> Select[Any]:
    for attribute, value in filters.items():
        if not _is_set(value):
            continue
        stmt = stmt.where(spec.column(attribute) == _coerce(spec, attribute, value))
    if spec.windowed and window is not None:
        stmt = stmt.where(
            spec.model.start_date <= window.start,
            spec.model.end_date >= window.end,
        )
    return stmt


def is_complete(
    spec: CatalogSpec,
    filters: Mapping[str, Any],
    window: DateWindow | None = None,
) -> bool:
    """True when every slot of the chain (and the window, if dated) is pinned."""
    if spec.windowed and window is None:
        return False
    return all(_is_set(filters.get(slot)) for slot in spec.chain)


async def list_options(
    session: AsyncSession,
    catalog: str,
    attribute: str,
    filters: Mapping[str, Any] | None = None,
    *,
    window: DateWindow | None = None,
) -> list[Any]:
    """Return sorted distinct non-null values of ``attribute`` among matching rows."""
    spec = get_catalog(catalog)
    column = spec.column(attribute)
    stmt = select(column).where(column.is_not(None)).distinct()
    stmt = _filtered(stmt, spec, filters or {}, window)
    result = await with_timeout(session.execute(stmt), label=f"{catalog} options")
    return sorted({value for value in result.scalars().all() if _is_set(value)})


async def resolve_code(
    session: AsyncSession,
    catalog: str,
    filters: Mapping[str, Any],
    *,
    window: DateWindow | None = None,
) -> Resolution:
    """Resolve a fully pinned selection to exactly one catalog code."""
    spec = get_catalog(catalog)
    if not is_complete(spec, filters, window):
        return Resolution(catalog=catalog, status=ResolutionStatus.NOT_FOUND)

    pinned = {slot: filters[slot] for slot in spec.chain}
    stmt = _filtered(
        select(spec.code_column, spec.model.price), spec, pinned, window
    ).order_by(spec.code_column)
    result = await with_timeout(session.execute(stmt), label=f"{catalog} resolve")
    rows = result.all()

    if not rows:
        return Resolution(catalog=catalog, status=ResolutionStatus.NOT_FOUND)
    if len(rows) > 1:
        codes = tuple(row[0] for row in rows)
        logger.warning(
            "Catalog %s has %d rows for %s: %s", catalog, len(rows), pinned, codes
        )
        return Resolution(
            catalog=catalog, status=ResolutionStatus.AMBIGUOUS, candidates=codes
        )
    code, price = rows[0]
    return Resolution(
        catalog=catalog, status=ResolutionStatus.FOUND, code=code, price=int(price or 0)
    )


async def lookup_price(
    session: AsyncSession,
    catalog: str,
    code: str,
    *,
    window: DateWindow | None = None,
) -> int:
    """Read the current unit price for ``code`` straight from the catalog."""
    spec = get_catalog(catalog)
    stmt = select(spec.model.price).where(spec.code_column == code)
    stmt = _filtered(stmt, spec, {}, window)
    result = await with_timeout(session.execute(stmt), label=f"{catalog} price")
    prices = {int(price or 0) for price in result.scalars().all()}
    if not prices:
        raise CatalogEntryNotFoundError(catalog, {spec.code_attr: code})
    if len(prices) > 1:
        raise AmbiguousMatchError(catalog, [code] * len(prices))
    return prices.pop()


async def get_entries(
    session: AsyncSession, catalog: str, codes: Collection[str]
) -> Sequence[Any]:
    """Return every catalog row for the given codes, ordered by code."""
    if not codes:
        return []
    spec = get_catalog(catalog)
    stmt = (
        select(spec.model)
        .where(spec.code_column.in_(list(codes)))
        .order_by(spec.code_column)
    )
    result = await with_timeout(session.execute(stmt), label=f"{catalog} entries")
    return result.scalars().all()
