"""Schema exports."""

from app.schemas.catalog import CatalogOptionsRead, ResolutionRead
from app.schemas.quote import (
    AirportAddRequest,
    AirportLegSelection,
    CruiseAddRequest,
    CruiseCarSelection,
    CruiseRoomSelection,
    HotelAddRequest,
    QuoteAdditionRead,
    QuoteItemRead,
    QuoteRead,
    QuoteSummaryRead,
    RentcarAddRequest,
    SummaryRecordRead,
    TourAddRequest,
)
from app.schemas.reservation import (
    AirportLegForm,
    AirportReservationForm,
    CruiseCarForm,
    CruiseReservationForm,
    HotelReservationForm,
    RentcarReservationForm,
    ReservationCreate,
    ReservationDetailsRead,
    ReservationForm,
    ReservationOutcomeRead,
    ReservationRead,
    ReservationStatusUpdate,
    ShuttleSeatForm,
    TourReservationForm,
    VehicleReservationForm,
)

__all__ = [
    "AirportAddRequest",
    "AirportLegForm",
    "AirportLegSelection",
    "AirportReservationForm",
    "CatalogOptionsRead",
    "CruiseAddRequest",
    "CruiseCarForm",
    "CruiseCarSelection",
    "CruiseReservationForm",
    "CruiseRoomSelection",
    "HotelAddRequest",
    "HotelReservationForm",
    "QuoteAdditionRead",
    "QuoteItemRead",
    "QuoteRead",
    "QuoteSummaryRead",
    "RentcarAddRequest",
    "RentcarReservationForm",
    "ReservationCreate",
    "ReservationDetailsRead",
    "ReservationForm",
    "ReservationOutcomeRead",
    "ReservationRead",
    "ReservationStatusUpdate",
    "ResolutionRead",
    "ShuttleSeatForm",
    "SummaryRecordRead",
    "TourAddRequest",
    "TourReservationForm",
    "VehicleReservationForm",
]
