"""Turn resolved selections into service records, quote items and reservation details.

Everything in this module is pure: it builds drafts from already-resolved
prices and form input. Persisting the drafts is the job of the quote and
reservation services.
"""

from __future__ import annotations

import datetime
import uuid
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field, replace
from typing import Any

from app.core.errors import BookingValidationError
from app.models import (
    SERVICE_RECORD_MODELS,
    QuoteItem,
    ReservationAirport,
    ReservationCarSht,
    ReservationCruise,
    ReservationCruiseCar,
    ReservationHotel,
    ReservationRentcar,
    ReservationTour,
    ReservationType,
    ServiceType,
)
from app.services.selection_service import PICKUP_CATEGORY, SENDING_CATEGORY
from app.services.summary_service import (
    QuoteLine,
    SummaryRecord,
    deduplicate_by_key,
    summary_record,
)

# Car types containing a keyword are seat-sold shuttles unless they contain an
# exclusion, which is a private vehicle despite the shared wording.
SHUTTLE_KEYWORDS: tuple[str, ...] = ("셔틀",)
SHUTTLE_EXCLUSIONS: tuple[str, ...] = ("스테이하롱 셔틀 리무진 단독",)

RESERVATION_SERVICE_TYPES: dict[ReservationType, tuple[ServiceType, ...]] = {
    ReservationType.CRUISE: (ServiceType.ROOM, ServiceType.CAR),
    ReservationType.AIRPORT: (ServiceType.AIRPORT,),
    ReservationType.VEHICLE: (),
    ReservationType.HOTEL: (ServiceType.HOTEL,),
    ReservationType.RENTCAR: (ServiceType.RENTCAR,),
    ReservationType.TOUR: (ServiceType.TOUR,),
}


def is_shuttle(car_type: str | None) -> bool:
    """Classify a car-type label using the shuttle rule table."""
    if not car_type:
        return False
    if any(exclusion in car_type for exclusion in SHUTTLE_EXCLUSIONS):
        return False
    return any(keyword in car_type for keyword in SHUTTLE_KEYWORDS)


@dataclass(frozen=True, slots=True)
class VehicleCounts:
    car_count: int
    passenger_count: int


def split_vehicle_count(car_type: str | None, count: int) -> VehicleCounts:
    """Shuttles are sold per passenger, everything else per vehicle."""
    if is_shuttle(car_type):
        return VehicleCounts(car_count=0, passenger_count=count)
    return VehicleCounts(car_count=count, passenger_count=0)


@dataclass(frozen=True, slots=True)
class ResolvedLeg:
    """A selection resolved to a catalog code and its current unit price."""

    service_type: ServiceType
    code: str
    unit_price: int
    label: str | None = None


@dataclass(frozen=True, slots=True)
class AdditionForm:
    """Quantity and descriptive input for one quote addition."""

    quantity: int = 1
    usage_date: datetime.date | None = None
    special_requests: str | None = None
    car_type: str | None = None
    checkout_date: datetime.date | None = None


@dataclass(slots=True)
class ServiceRecordDraft:
    service_type: ServiceType
    values: dict[str, Any] = field(default_factory=dict)

    def to_model(self) -> Any:
        model = SERVICE_RECORD_MODELS[self.service_type]
        return model(id=uuid.uuid4(), **self.values)


@dataclass(slots=True)
class LineItemDraft:
    service_type: ServiceType
    quantity: int
    unit_price: int
    total_price: int
    usage_date: datetime.date | None = None

    def to_model(self, quote_id: uuid.UUID, service_ref_id: uuid.UUID) -> QuoteItem:
        return QuoteItem(
            id=uuid.uuid4(),
            quote_id=quote_id,
            service_type=self.service_type,
            service_ref_id=service_ref_id,
            quantity=self.quantity,
            unit_price=self.unit_price,
            total_price=self.total_price,
            usage_date=self.usage_date,
        )


def make_line_item(
    service_type: ServiceType,
    quantity: int,
    unit_price: int,
    usage_date: datetime.date | None = None,
) -> LineItemDraft:
    """Build a line item whose total is quantity times unit price."""
    if quantity < 0:
        raise BookingValidationError("Quantity cannot be negative")
    if unit_price < 0:
        raise BookingValidationError("Unit price cannot be negative")
    return LineItemDraft(
        service_type=service_type,
        quantity=quantity,
        unit_price=unit_price,
        total_price=quantity * unit_price,
        usage_date=usage_date,
    )


def _service_record_values(leg: ResolvedLeg, form: AdditionForm) -> dict[str, Any]:
    model = SERVICE_RECORD_MODELS[leg.service_type]
    values: dict[str, Any] = {
        model.code_attr: leg.code,
        "special_requests": form.special_requests,
    }
    if leg.service_type is ServiceType.ROOM:
        values["person_count"] = form.quantity
    elif leg.service_type is ServiceType.CAR:
        counts = split_vehicle_count(form.car_type, form.quantity)
        values["car_count"] = counts.car_count
        values["passenger_count"] = counts.passenger_count
    elif leg.service_type is ServiceType.AIRPORT:
        values["passenger_count"] = 1
    elif leg.service_type is ServiceType.HOTEL:
        values["checkin_date"] = form.usage_date
        values["checkout_date"] = form.checkout_date
        values["room_count"] = form.quantity
    elif leg.service_type is ServiceType.RENTCAR:
        values["vehicle_count"] = form.quantity
    elif leg.service_type is ServiceType.TOUR:
        values["tour_date"] = form.usage_date
        values["participant_count"] = form.quantity
    return values


def materialize_quote_addition(
    leg: ResolvedLeg, form: AdditionForm
) -> tuple[ServiceRecordDraft, LineItemDraft]:
    """Build the service record and its quote item for one resolved leg."""
    record = ServiceRecordDraft(
        service_type=leg.service_type, values=_service_record_values(leg, form)
    )
    line = make_line_item(
        leg.service_type, form.quantity, leg.unit_price, usage_date=form.usage_date
    )
    return record, line


def materialize_legs(
    legs: Sequence[ResolvedLeg], form: AdditionForm
) -> list[tuple[ServiceRecordDraft, LineItemDraft]]:
    """Materialize each leg independently.

    Only the first leg carries the requested quantity and the request note;
    later legs are booked as a single vehicle.
    """
    drafts = []
    for index, leg in enumerate(legs):
        leg_form = (
            form if index == 0 else replace(form, quantity=1, special_requests=None)
        )
        drafts.append(materialize_quote_addition(leg, leg_form))
    return drafts


@dataclass(slots=True)
class ReservationDetailDraft:
    """One reservation detail row waiting to be inserted."""

    model: type[Any]
    label: str
    values: dict[str, Any] = field(default_factory=dict)

    def to_model(self, reservation_id: uuid.UUID) -> Any:
        return self.model(id=uuid.uuid4(), reservation_id=reservation_id, **self.values)


def _entry_value(line: QuoteLine | SummaryRecord, name: str) -> Any:
    return (line.entry or {}).get(name)


def _line_total(line: QuoteLine) -> int:
    if line.total_price is not None:
        return int(line.total_price)
    return (line.quantity or 0) * (line.unit_price or 0)


def _airport_way(line: QuoteLine) -> str:
    category = _entry_value(line, "airport_category") or ""
    if PICKUP_CATEGORY in category:
        return "pickup"
    if SENDING_CATEGORY in category:
        return "sending"
    raise BookingValidationError(
        f"Airport item {line.code} has no pickup or sending category"
    )


def _airport_details(lines: Sequence[QuoteLine], form: Any) -> list[ReservationDetailDraft]:
    drafts = []
    for line in lines:
        way = _airport_way(line)
        leg = getattr(form, way)
        if leg is None:
            raise BookingValidationError(f"Missing {way} details for {line.code}")
        if not (leg.airport_location or "").strip():
            raise BookingValidationError(f"{way} airport location is required")
        car_count = leg.car_count
        drafts.append(
            ReservationDetailDraft(
                model=ReservationAirport,
                label=f"{way} {line.code}",
                values={
                    "airport_price_code": line.code,
                    "way_type": way,
                    "airport_location": leg.airport_location,
                    "flight_number": leg.flight_number,
                    "service_datetime": leg.service_datetime,
                    "stopover_location": leg.stopover_location,
                    "stopover_wait_minutes": leg.stopover_wait_minutes,
                    "car_count": car_count,
                    "passenger_count": leg.passenger_count,
                    "luggage_count": leg.luggage_count,
                    "unit_price": line.unit_price,
                    "total_price": line.unit_price * car_count,
                    "request_note": leg.request_note,
                },
            )
        )
    return drafts


def _cruise_details(lines: Sequence[QuoteLine], form: Any) -> list[ReservationDetailDraft]:
    rooms = deduplicate_by_key(
        summary_record(line) for line in lines if line.service_type is ServiceType.ROOM
    )
    cars = deduplicate_by_key(
        summary_record(line) for line in lines if line.service_type is ServiceType.CAR
    )
    drafts = [
        ReservationDetailDraft(
            model=ReservationCruise,
            label=f"room {room.code}",
            values={
                "room_price_code": room.code,
                "checkin": form.checkin,
                "guest_count": room.quantity,
                "room_count": room.occurrence_count,
                "unit_price": room.unit_price,
                "room_total_price": room.total_price,
                "request_note": form.room_request_note,
            },
        )
        for room in rooms
    ]
    car_form = form.car
    for car in cars:
        counts = split_vehicle_count(_entry_value(car, "car_type"), car.quantity)
        drafts.append(
            ReservationDetailDraft(
                model=ReservationCruiseCar,
                label=f"car {car.code}",
                values={
                    "car_price_code": car.code,
                    "car_count": counts.car_count,
                    "passenger_count": counts.passenger_count,
                    "pickup_datetime": car_form.pickup_datetime if car_form else None,
                    "pickup_location": car_form.pickup_location if car_form else None,
                    "dropoff_location": car_form.dropoff_location if car_form else None,
                    "unit_price": car.unit_price,
                    "car_total_price": car.total_price,
                    "request_note": car_form.request_note if car_form else None,
                },
            )
        )
    return drafts


def _vehicle_details(form: Any) -> list[ReservationDetailDraft]:
    return [
        ReservationDetailDraft(
            model=ReservationCarSht,
            label=f"seat {seat.vehicle_number or '?'}-{seat.seat_number or '?'}",
            values={
                "vehicle_number": seat.vehicle_number,
                "seat_number": seat.seat_number,
                "color_label": seat.color_label,
                "sht_category": seat.sht_category,
                "usage_date": seat.usage_date,
                "request_note": form.request_note,
            },
        )
        for seat in form.seats
    ]


def _hotel_details(lines: Sequence[QuoteLine], form: Any) -> list[ReservationDetailDraft]:
    return [
        ReservationDetailDraft(
            model=ReservationHotel,
            label=f"hotel {line.code}",
            values={
                "hotel_price_code": line.code,
                "checkin_date": line.record.get("checkin_date") or line.usage_date,
                "checkout_date": line.record.get("checkout_date"),
                "room_count": line.quantity,
                "guest_count": form.guest_count,
                "unit_price": line.unit_price,
                "total_price": _line_total(line),
                "request_note": form.request_note,
            },
        )
        for line in lines
    ]


def _rentcar_details(lines: Sequence[QuoteLine], form: Any) -> list[ReservationDetailDraft]:
    return [
        ReservationDetailDraft(
            model=ReservationRentcar,
            label=f"rentcar {line.code}",
            values={
                "rentcar_price_code": line.code,
                "pickup_datetime": form.pickup_datetime,
                "pickup_location": form.pickup_location,
                "destination": form.destination,
                "vehicle_count": line.quantity,
                "passenger_count": form.passenger_count,
                "unit_price": line.unit_price,
                "total_price": _line_total(line),
                "request_note": form.request_note,
            },
        )
        for line in lines
    ]


def _tour_details(lines: Sequence[QuoteLine], form: Any) -> list[ReservationDetailDraft]:
    return [
        ReservationDetailDraft(
            model=ReservationTour,
            label=f"tour {line.code}",
            values={
                "tour_price_code": line.code,
                "usage_date": line.record.get("tour_date") or line.usage_date,
                "participant_count": line.quantity,
                "pickup_location": form.pickup_location,
                "unit_price": line.unit_price,
                "total_price": _line_total(line),
                "request_note": form.request_note,
            },
        )
        for line in lines
    ]


def build_reservation_details(
    reservation_type: ReservationType | str,
    lines: Iterable[QuoteLine],
    form: Any,
) -> list[ReservationDetailDraft]:
    """Build the ordered detail rows for a reservation from its quote lines.

    Only lines whose service type belongs to the reservation type are used.
    Raises ``BookingValidationError`` when nothing would be written or the
    form is missing data a row needs.
    """
    reservation_type = ReservationType(reservation_type)
    if getattr(form, "reservation_type", reservation_type.value) != reservation_type.value:
        raise BookingValidationError(
            f"Form is for {form.reservation_type}, not {reservation_type.value}"
        )
    wanted = RESERVATION_SERVICE_TYPES[reservation_type]
    relevant = [line for line in lines if line.service_type in wanted and line.code]

    if reservation_type is ReservationType.VEHICLE:
        drafts = _vehicle_details(form)
    elif reservation_type is ReservationType.AIRPORT:
        drafts = _airport_details(relevant, form)
    elif reservation_type is ReservationType.CRUISE:
        drafts = _cruise_details(relevant, form)
    elif reservation_type is ReservationType.HOTEL:
        drafts = _hotel_details(relevant, form)
    elif reservation_type is ReservationType.RENTCAR:
        drafts = _rentcar_details(relevant, form)
    else:
        drafts = _tour_details(relevant, form)

    if not drafts:
        raise BookingValidationError(
            f"Quote has no {reservation_type.value} items to reserve"
        )
    return drafts
