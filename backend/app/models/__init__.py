"""ORM models package export."""

from app.models.catalog import (
    AirportPrice,
    CarPrice,
    HotelPrice,
    RentPrice,
    RoomPrice,
    TourPrice,
)
from app.models.quote import Quote, QuoteItem, QuoteStatus, ServiceType
from app.models.reservation import (
    DETAIL_PRICE_CODES,
    RESERVATION_DETAIL_MODELS,
    Reservation,
    ReservationAirport,
    ReservationCarSht,
    ReservationCruise,
    ReservationCruiseCar,
    ReservationHotel,
    ReservationRentcar,
    ReservationStatus,
    ReservationTour,
    ReservationType,
)
from app.models.service_record import (
    AirportService,
    CarService,
    HotelService,
    RentcarService,
    RoomService,
    TourService,
    SERVICE_RECORD_MODELS,
)

__all__ = [
    "AirportPrice",
    "CarPrice",
    "HotelPrice",
    "RentPrice",
    "RoomPrice",
    "TourPrice",
    "Quote",
    "QuoteItem",
    "QuoteStatus",
    "ServiceType",
    "DETAIL_PRICE_CODES",
    "RESERVATION_DETAIL_MODELS",
    "Reservation",
    "ReservationAirport",
    "ReservationCarSht",
    "ReservationCruise",
    "ReservationCruiseCar",
    "ReservationHotel",
    "ReservationRentcar",
    "ReservationStatus",
    "ReservationTour",
    "ReservationType",
    "AirportService",
    "CarService",
    "HotelService",
    "RentcarService",
    "RoomService",
    "TourService",
    "SERVICE_RECORD_MODELS",
]
