"""Pydantic schemas for quotes and quote additions."""
from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.models.quote import QuoteStatus, ServiceType
from app.services.selection_service import ApplyType


class QuoteRead(BaseModel):
    """Serialized quote representation."""

    id: uuid.UUID
    user_id: uuid.UUID
    title: str
    status: QuoteStatus
    total_price: int
    submitted_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class QuoteItemRead(BaseModel):
    """Serialized quote item."""

    id: uuid.UUID
    quote_id: uuid.UUID
    service_type: ServiceType
    service_ref_id: uuid.UUID
    quantity: int
    unit_price: int
    total_price: int
    usage_date: date | None = None

    model_config = ConfigDict(from_attributes=True)


class QuoteAdditionRead(BaseModel):
    """Items created by one addition and the refreshed quote total."""

    quote_id: uuid.UUID
    items: list[QuoteItemRead]
    total_price: int


class AirportLegSelection(BaseModel):
    """Route and vehicle chosen for one transfer leg; the category is implied."""

    airport_route: str = Field(min_length=1)
    airport_car_type: str = Field(min_length=1)


class AirportAddRequest(BaseModel):
    """Payload for adding airport transfer legs to a quote."""

    apply_type: ApplyType
    legs: list[AirportLegSelection] = Field(min_length=1, max_length=2)
    vehicle_count: int = Field(default=1, ge=1)
    usage_date: date | None = None
    special_requests: str | None = None

    @model_validator(mode="after")
    def _legs_match_apply_type(self) -> "AirportAddRequest":
        expected = 2 if self.apply_type is ApplyType.BOTH else 1
        if len(self.legs) != expected:
            raise ValueError(
                f"apply_type {self.apply_type.value} requires {expected} leg(s)"
            )
        return self


class CruiseRoomSelection(BaseModel):
    room_type: str = Field(min_length=1)
    room_category: str = Field(min_length=1)
    person_count: int = Field(default=0, ge=0)


class CruiseCarSelection(BaseModel):
    car_category: str = Field(min_length=1)
    car_type: str = Field(min_length=1)
    count: int = Field(default=0, ge=0)


class CruiseAddRequest(BaseModel):
    """Payload for adding cabins and an optional transfer car to a quote."""

    schedule: str = Field(min_length=1)
    cruise: str = Field(min_length=1)
    payment: str = Field(min_length=1)
    checkin: date
    rooms: list[CruiseRoomSelection] = Field(default_factory=list)
    car: CruiseCarSelection | None = None
    special_requests: str | None = None

    @model_validator(mode="after")
    def _has_something(self) -> "CruiseAddRequest":
        if not self.rooms and self.car is None:
            raise ValueError("At least one room or car selection is required")
        return self


class HotelAddRequest(BaseModel):
    hotel_name: str = Field(min_length=1)
    room_name: str = Field(min_length=1)
    room_type: str = Field(min_length=1)
    weekday_type: str = Field(min_length=1)
    checkin_date: date
    checkout_date: date
    room_count: int = Field(default=1, ge=1)
    special_requests: str | None = None

    @model_validator(mode="after")
    def _checkout_after_checkin(self) -> "HotelAddRequest":
        if self.checkout_date < self.checkin_date:
            raise ValueError("checkout_date must not be before checkin_date")
        return self


class RentcarAddRequest(BaseModel):
    rent_category: str = Field(min_length=1)
    rent_route: str = Field(min_length=1)
    rent_car_type: str = Field(min_length=1)
    vehicle_count: int = Field(default=1, ge=1)
    usage_date: date | None = None
    special_requests: str | None = None


class TourAddRequest(BaseModel):
    tour_name: str = Field(min_length=1)
    tour_vehicle: str = Field(min_length=1)
    tour_type: str = Field(min_length=1)
    tour_capacity: int = Field(ge=1)
    tour_date: date | None = None
    participant_count: int = Field(default=1, ge=1)
    special_requests: str | None = None


class SummaryRecordRead(BaseModel):
    """One de-duplicated summary row."""

    service_type: ServiceType
    code: str | None = None
    quantity: int
    unit_price: int
    total_price: int
    occurrence_count: int
    item_ids: list[uuid.UUID] = Field(default_factory=list)
    entry: dict[str, Any] | None = None

    model_config = ConfigDict(from_attributes=True)


class QuoteSummaryRead(BaseModel):
    """Per-service sections, totals and catalog context for a quote."""

    quote_id: uuid.UUID
    sections: dict[str, list[SummaryRecordRead]]
    section_totals: dict[str, int]
    computed_total: int
    stored_total: int
    grand_total: int
    price_context: dict[str, list[dict[str, Any]]] = Field(default_factory=dict)

    model_config = ConfigDict(from_attributes=True)
