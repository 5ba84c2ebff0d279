"""Pydantic schemas for reservations.

Each reservation type has its own form, tagged by ``reservation_type`` so a
single endpoint can accept any of them.
"""
from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.models.reservation import ReservationStatus, ReservationType


class AirportLegForm(BaseModel):
    """Traveller details for one transfer leg."""

    airport_location: str | None = None
    flight_number: str | None = None
    service_datetime: datetime | None = None
    stopover_location: str | None = None
    stopover_wait_minutes: int = Field(default=0, ge=0)
    car_count: int = Field(default=1, ge=1)
    passenger_count: int = Field(default=1, ge=1)
    luggage_count: int = Field(default=0, ge=0)
    request_note: str | None = None


class AirportReservationForm(BaseModel):
    reservation_type: Literal["airport"] = "airport"
    pickup: AirportLegForm | None = None
    sending: AirportLegForm | None = None

    @model_validator(mode="after")
    def _has_leg(self) -> "AirportReservationForm":
        if self.pickup is None and self.sending is None:
            raise ValueError("At least one of pickup or sending is required")
        return self


class CruiseCarForm(BaseModel):
    pickup_datetime: datetime | None = None
    pickup_location: str | None = None
    dropoff_location: str | None = None
    request_note: str | None = None


class CruiseReservationForm(BaseModel):
    reservation_type: Literal["cruise"] = "cruise"
    checkin: date
    room_request_note: str | None = None
    car: CruiseCarForm | None = None


class ShuttleSeatForm(BaseModel):
    vehicle_number: str | None = None
    seat_number: str | None = None
    color_label: str | None = None
    sht_category: str | None = None
    usage_date: date | None = None


class VehicleReservationForm(BaseModel):
    reservation_type: Literal["vehicle"] = "vehicle"
    seats: list[ShuttleSeatForm] = Field(min_length=1)
    request_note: str | None = None


class HotelReservationForm(BaseModel):
    reservation_type: Literal["hotel"] = "hotel"
    guest_count: int = Field(default=0, ge=0)
    request_note: str | None = None


class RentcarReservationForm(BaseModel):
    reservation_type: Literal["rentcar"] = "rentcar"
    pickup_datetime: datetime | None = None
    pickup_location: str | None = None
    destination: str | None = None
    passenger_count: int = Field(default=0, ge=0)
    request_note: str | None = None


class TourReservationForm(BaseModel):
    reservation_type: Literal["tour"] = "tour"
    pickup_location: str | None = None
    request_note: str | None = None


ReservationForm = Annotated[
    Union[
        AirportReservationForm,
        CruiseReservationForm,
        VehicleReservationForm,
        HotelReservationForm,
        RentcarReservationForm,
        TourReservationForm,
    ],
    Field(discriminator="reservation_type"),
]


class ReservationCreate(BaseModel):
    """Payload for creating (or re-submitting) a reservation from a quote."""

    quote_id: uuid.UUID
    form: ReservationForm

    @property
    def reservation_type(self) -> ReservationType:
        return ReservationType(self.form.reservation_type)


class ReservationRead(BaseModel):
    """Serialized reservation representation."""

    id: uuid.UUID
    user_id: uuid.UUID
    quote_id: uuid.UUID
    reservation_type: ReservationType
    status: ReservationStatus
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ReservationDetailsRead(BaseModel):
    """Reservation with its detail rows and their summed price."""

    reservation: ReservationRead
    details: list[dict[str, Any]] = Field(default_factory=list)
    total_price: int = 0


class ReservationListRead(ReservationDetailsRead):
    """A listed reservation with the catalog rows its details reference."""

    price_context: dict[str, list[dict[str, Any]]] = Field(default_factory=dict)


class ReservationOutcomeRead(ReservationDetailsRead):
    """Result of a create-or-update call."""

    created: bool


class ReservationStatusUpdate(BaseModel):
    status: ReservationStatus


class SeatOccupancyRead(BaseModel):
    """Seats already booked on one shuttle vehicle for a date."""

    usage_date: date
    vehicle_number: str
    sht_category: str | None = None
    seats: list[str] = Field(default_factory=list)
    whole_vehicle: bool = False

    model_config = ConfigDict(from_attributes=True)
