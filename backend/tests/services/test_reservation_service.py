"""Service-level tests for reservation create-or-update."""

from __future__ import annotations

import uuid
from datetime import date

import pytest
from sqlalchemy import func, select

from app.core.errors import (
    AuthRequiredError,
    BookingValidationError,
    PartialWriteError,
)
from app.core.security import CurrentUser
from app.db.session import get_sessionmaker
from app.models import (
    Reservation,
    ReservationAirport,
    ReservationCruise,
    ReservationCruiseCar,
    ReservationStatus,
    ReservationType,
)
from app.schemas.quote import (
    AirportAddRequest,
    AirportLegSelection,
    CruiseAddRequest,
    CruiseCarSelection,
    CruiseRoomSelection,
)
from app.schemas.reservation import (
    AirportLegForm,
    AirportReservationForm,
    CruiseReservationForm,
    ShuttleSeatForm,
    VehicleReservationForm,
)
from app.services import quote_service, reservation_service
from app.services.materializer_service import ReservationDetailDraft

pytestmark = pytest.mark.asyncio


class RecordingHook:
    def __init__(self) -> None:
        self.events = []

    async def __call__(self, event) -> None:
        self.events.append(event)


async def _failing_hook(event) -> None:
    raise RuntimeError("notification backend down")


AIRPORT_FORM = AirportReservationForm(
    pickup=AirportLegForm(airport_location="다낭공항", flight_number="VJ123"),
    sending=AirportLegForm(airport_location="다낭공항", luggage_count=2),
)


async def _airport_quote(session, user: CurrentUser) -> uuid.UUID:
    quote = await quote_service.get_or_create_draft_quote(session, user)
    await quote_service.add_airport_service(
        session,
        user,
        quote.id,
        AirportAddRequest(
            apply_type="both",
            legs=[
                AirportLegSelection(airport_route="다낭공항", airport_car_type="4인승"),
                AirportLegSelection(airport_route="다낭공항", airport_car_type="4인승"),
            ],
        ),
    )
    return quote.id


async def _reservation_count(session, quote_id: uuid.UUID) -> int:
    return await session.scalar(
        select(func.count(Reservation.id)).where(Reservation.quote_id == quote_id)
    )


async def test_first_submission_creates_reservation_and_notifies(
    price_catalog, db_url: str, traveler: CurrentUser
) -> None:
    hook = RecordingHook()
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        quote_id = await _airport_quote(session, traveler)
        outcome = await reservation_service.create_or_update_reservation(
            session, traveler, quote_id, AIRPORT_FORM, hooks=[hook]
        )

    assert outcome.created is True
    assert outcome.reservation.status is ReservationStatus.PENDING
    assert outcome.reservation.reservation_type is ReservationType.AIRPORT
    assert [detail.way_type for detail in outcome.details] == ["pickup", "sending"]
    assert all(isinstance(detail, ReservationAirport) for detail in outcome.details)
    assert outcome.details[0].flight_number == "VJ123"
    assert outcome.details[1].luggage_count == 2
    assert outcome.total_price == 380000
    assert len(hook.events) == 1
    assert hook.events[0].reservation_id == outcome.reservation.id
    assert hook.events[0].user_id == traveler.id


async def test_resubmission_reuses_reservation_and_replaces_details(
    price_catalog, db_url: str, traveler: CurrentUser
) -> None:
    hook = RecordingHook()
    updated_form = AirportReservationForm(
        pickup=AirportLegForm(airport_location="다낭공항", flight_number="VN999"),
        sending=AirportLegForm(airport_location="다낭공항"),
    )
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        quote_id = await _airport_quote(session, traveler)
        first = await reservation_service.create_or_update_reservation(
            session, traveler, quote_id, AIRPORT_FORM, hooks=[hook]
        )
        first_detail_ids = {detail.id for detail in first.details}
        second = await reservation_service.create_or_update_reservation(
            session, traveler, quote_id, updated_form, hooks=[hook]
        )
        count = await _reservation_count(session, quote_id)
        stored = await reservation_service.list_reservation_details(
            session, second.reservation.id, ReservationType.AIRPORT
        )

    assert second.created is False
    assert second.reservation.id == first.reservation.id
    assert count == 1
    assert len(stored) == 2
    assert {detail.id for detail in stored}.isdisjoint(first_detail_ids)
    assert stored[0].flight_number == "VN999"
    assert len(hook.events) == 1


async def test_failing_hook_does_not_change_outcome(
    price_catalog, db_url: str, traveler: CurrentUser
) -> None:
    after = RecordingHook()
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        quote_id = await _airport_quote(session, traveler)
        outcome = await reservation_service.create_or_update_reservation(
            session, traveler, quote_id, AIRPORT_FORM, hooks=[_failing_hook, after]
        )

    assert outcome.created is True
    assert len(outcome.details) == 2
    assert len(after.events) == 1


async def test_concurrent_insert_switches_to_update(
    price_catalog, db_url: str, traveler: CurrentUser, monkeypatch: pytest.MonkeyPatch
) -> None:
    hook = RecordingHook()
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        quote_id = await _airport_quote(session, traveler)
        first = await reservation_service.create_or_update_reservation(
            session, traveler, quote_id, AIRPORT_FORM, hooks=[]
        )

        original = reservation_service.find_existing_reservation
        calls = []

        async def stale_lookup(session, **kwargs):
            calls.append(kwargs)
            if len(calls) == 1:
                return None
            return await original(session, **kwargs)

        monkeypatch.setattr(reservation_service, "find_existing_reservation", stale_lookup)
        second = await reservation_service.create_or_update_reservation(
            session, traveler, quote_id, AIRPORT_FORM, hooks=[hook]
        )
        count = await _reservation_count(session, quote_id)

    assert len(calls) == 2
    assert second.created is False
    assert second.reservation.id == first.reservation.id
    assert len(second.details) == 2
    assert count == 1
    assert hook.events == []


async def test_invalid_form_writes_nothing(
    price_catalog, db_url: str, traveler: CurrentUser
) -> None:
    pickup_only = AirportReservationForm(pickup=AirportLegForm(airport_location="다낭공항"))
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        quote_id = await _airport_quote(session, traveler)
        with pytest.raises(BookingValidationError):
            await reservation_service.create_or_update_reservation(
                session, traveler, quote_id, pickup_only, hooks=[]
            )
        assert await _reservation_count(session, quote_id) == 0


async def test_partial_write_reports_failed_rows(
    price_catalog, db_url: str, traveler: CurrentUser
) -> None:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        quote_id = await _airport_quote(session, traveler)
        outcome = await reservation_service.create_or_update_reservation(
            session, traveler, quote_id, AIRPORT_FORM, hooks=[]
        )
        reservation_id = outcome.reservation.id
        await reservation_service.delete_details(
            session, reservation_id, ReservationType.AIRPORT
        )
        drafts = [
            ReservationDetailDraft(
                model=ReservationAirport,
                label="pickup broken",
                values={"airport_price_code": None, "way_type": "pickup"},
            ),
            ReservationDetailDraft(
                model=ReservationAirport,
                label="sending AP-002",
                values={"airport_price_code": "AP-002", "way_type": "sending"},
            ),
        ]
        with pytest.raises(PartialWriteError) as exc_info:
            await reservation_service.persist_details(session, reservation_id, drafts)
        stored = await reservation_service.list_reservation_details(
            session, reservation_id, ReservationType.AIRPORT
        )

    assert exc_info.value.written == 1
    assert len(exc_info.value.errors) == 1
    assert exc_info.value.errors[0].startswith("pickup broken")
    assert [detail.airport_price_code for detail in stored] == ["AP-002"]


async def test_cruise_reservation_merges_cabins(
    price_catalog, db_url: str, traveler: CurrentUser
) -> None:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        quote = await quote_service.get_or_create_draft_quote(session, traveler)
        for person_count in (2, 1):
            await quote_service.add_cruise_services(
                session,
                traveler,
                quote.id,
                CruiseAddRequest(
                    schedule="1박2일",
                    cruise="스테이하롱",
                    payment="카드",
                    checkin=date(2026, 6, 1),
                    rooms=[
                        CruiseRoomSelection(
                            room_type="오션뷰", room_category="성인", person_count=person_count
                        )
                    ],
                    car=CruiseCarSelection(
                        car_category="왕복", car_type="크루즈 셔틀 리무진", count=person_count
                    ),
                ),
            )
        outcome = await reservation_service.create_or_update_reservation(
            session,
            traveler,
            quote.id,
            CruiseReservationForm(checkin=date(2026, 6, 1)),
            hooks=[],
        )

    rooms = [detail for detail in outcome.details if isinstance(detail, ReservationCruise)]
    cars = [detail for detail in outcome.details if isinstance(detail, ReservationCruiseCar)]
    assert len(rooms) == 1
    assert (rooms[0].guest_count, rooms[0].room_count) == (3, 2)
    assert rooms[0].room_total_price == 4500000
    assert len(cars) == 1
    assert (cars[0].car_count, cars[0].passenger_count) == (0, 3)
    assert cars[0].car_total_price == 750000
    assert outcome.total_price == 5250000


async def test_vehicle_reservation_from_seats(
    price_catalog, db_url: str, traveler: CurrentUser
) -> None:
    form = VehicleReservationForm(
        seats=[
            ShuttleSeatForm(vehicle_number="2", seat_number="B1", sht_category="pickup"),
            ShuttleSeatForm(vehicle_number="2", seat_number="B2", sht_category="pickup"),
        ]
    )
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        quote = await quote_service.get_or_create_draft_quote(session, traveler)
        outcome = await reservation_service.create_or_update_reservation(
            session, traveler, quote.id, form, hooks=[]
        )

    assert outcome.created is True
    assert [detail.seat_number for detail in outcome.details] == ["B1", "B2"]
    assert outcome.total_price == 0


async def test_status_transitions(
    price_catalog, db_url: str, traveler: CurrentUser
) -> None:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        quote_id = await _airport_quote(session, traveler)
        outcome = await reservation_service.create_or_update_reservation(
            session, traveler, quote_id, AIRPORT_FORM, hooks=[]
        )
        reservation_id = outcome.reservation.id

        confirmed = await reservation_service.transition_reservation(
            session, traveler, reservation_id, ReservationStatus.CONFIRMED
        )
        assert confirmed.status is ReservationStatus.CONFIRMED

        completed = await reservation_service.transition_reservation(
            session, traveler, reservation_id, ReservationStatus.COMPLETED
        )
        assert completed.status is ReservationStatus.COMPLETED

        with pytest.raises(BookingValidationError):
            await reservation_service.transition_reservation(
                session, traveler, reservation_id, ReservationStatus.PENDING
            )


async def test_caller_must_be_signed_in_and_own_quote(
    price_catalog, db_url: str, traveler: CurrentUser
) -> None:
    stranger = CurrentUser(id=uuid.uuid4(), email="stranger@example.com")
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        quote_id = await _airport_quote(session, traveler)
        with pytest.raises(AuthRequiredError):
            await reservation_service.create_or_update_reservation(
                session, None, quote_id, AIRPORT_FORM, hooks=[]
            )
        with pytest.raises(LookupError):
            await reservation_service.create_or_update_reservation(
                session, stranger, quote_id, AIRPORT_FORM, hooks=[]
            )
        assert await _reservation_count(session, quote_id) == 0


async def test_airport_car_count_is_edited_at_reservation_time(
    price_catalog, db_url: str, traveler: CurrentUser
) -> None:
    form = AirportReservationForm(
        pickup=AirportLegForm(airport_location="다낭공항", car_count=3),
        sending=AirportLegForm(airport_location="다낭공항"),
    )
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        quote_id = await _airport_quote(session, traveler)
        outcome = await reservation_service.create_or_update_reservation(
            session, traveler, quote_id, form, hooks=[]
        )

    assert [(detail.car_count, detail.total_price) for detail in outcome.details] == [
        (3, 600000),
        (1, 180000),
    ]
    assert outcome.total_price == 780000


def _seats(*seat_numbers: str, category: str = "pickup") -> VehicleReservationForm:
    return VehicleReservationForm(
        seats=[
            ShuttleSeatForm(
                vehicle_number="2",
                seat_number=seat_number,
                sht_category=category,
                usage_date=date(2026, 6, 1),
            )
            for seat_number in seat_numbers
        ]
    )


async def test_seat_occupancy_by_date_vehicle_and_category(
    price_catalog, db_url: str, traveler: CurrentUser
) -> None:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        quote = await quote_service.get_or_create_draft_quote(session, traveler)
        await reservation_service.create_or_update_reservation(
            session, traveler, quote.id, _seats("B1, b2"), hooks=[]
        )

        pickup = await reservation_service.get_seat_occupancy(
            session,
            traveler,
            usage_date=date(2026, 6, 1),
            vehicle_number="2",
            sht_category="Pickup",
        )
        dropoff = await reservation_service.get_seat_occupancy(
            session,
            traveler,
            usage_date=date(2026, 6, 1),
            vehicle_number="2",
            sht_category="drop-off",
        )
        any_category = await reservation_service.get_seat_occupancy(
            session, traveler, usage_date=date(2026, 6, 1), vehicle_number="2"
        )
        other_day = await reservation_service.get_seat_occupancy(
            session, traveler, usage_date=date(2026, 6, 2), vehicle_number="2"
        )
        with pytest.raises(AuthRequiredError):
            await reservation_service.get_seat_occupancy(
                session, None, usage_date=date(2026, 6, 1), vehicle_number="2"
            )

    assert pickup.seats == ["B1", "B2"]
    assert pickup.is_taken("b1") is True
    assert pickup.is_taken("C1") is False
    assert dropoff.sht_category == "dropoff"
    assert dropoff.seats == []
    assert any_category.seats == ["B1", "B2"]
    assert other_day.seats == []


async def test_booked_seat_cannot_be_taken_by_another_reservation(
    price_catalog, db_url: str, traveler: CurrentUser
) -> None:
    stranger = CurrentUser(id=uuid.uuid4(), email="stranger@example.com")
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        mine = await quote_service.get_or_create_draft_quote(session, traveler)
        theirs = await quote_service.get_or_create_draft_quote(session, stranger)
        first = await reservation_service.create_or_update_reservation(
            session, traveler, mine.id, _seats("B1", "B2"), hooks=[]
        )

        with pytest.raises(BookingValidationError):
            await reservation_service.create_or_update_reservation(
                session, stranger, theirs.id, _seats("B2", "B3"), hooks=[]
            )
        assert await _reservation_count(session, theirs.id) == 0

        resubmitted = await reservation_service.create_or_update_reservation(
            session, traveler, mine.id, _seats("B1", "B2"), hooks=[]
        )
        dropoff = await reservation_service.create_or_update_reservation(
            session, stranger, theirs.id, _seats("B2", category="dropoff"), hooks=[]
        )

    assert resubmitted.created is False
    assert resubmitted.reservation.id == first.reservation.id
    assert dropoff.created is True


async def test_whole_vehicle_and_repeated_seats_are_rejected(
    price_catalog, db_url: str, traveler: CurrentUser
) -> None:
    stranger = CurrentUser(id=uuid.uuid4(), email="stranger@example.com")
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        mine = await quote_service.get_or_create_draft_quote(session, traveler)
        theirs = await quote_service.get_or_create_draft_quote(session, stranger)

        with pytest.raises(BookingValidationError):
            await reservation_service.create_or_update_reservation(
                session, traveler, mine.id, _seats("B1", "B1"), hooks=[]
            )

        await reservation_service.create_or_update_reservation(
            session, traveler, mine.id, _seats("ALL"), hooks=[]
        )
        with pytest.raises(BookingValidationError):
            await reservation_service.create_or_update_reservation(
                session, stranger, theirs.id, _seats("C4"), hooks=[]
            )


async def test_cancelled_reservation_frees_its_seats(
    price_catalog, db_url: str, traveler: CurrentUser
) -> None:
    stranger = CurrentUser(id=uuid.uuid4(), email="stranger@example.com")
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        mine = await quote_service.get_or_create_draft_quote(session, traveler)
        theirs = await quote_service.get_or_create_draft_quote(session, stranger)
        first = await reservation_service.create_or_update_reservation(
            session, traveler, mine.id, _seats("B1"), hooks=[]
        )
        await reservation_service.transition_reservation(
            session, traveler, first.reservation.id, ReservationStatus.CANCELLED
        )

        outcome = await reservation_service.create_or_update_reservation(
            session, stranger, theirs.id, _seats("B1"), hooks=[]
        )

    assert outcome.created is True
    assert [detail.seat_number for detail in outcome.details] == ["B1"]


async def test_reservations_are_listed_with_details_and_price_context(
    price_catalog, db_url: str, traveler: CurrentUser
) -> None:
    stranger = CurrentUser(id=uuid.uuid4(), email="stranger@example.com")
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        quote_id = await _airport_quote(session, traveler)
        airport = await reservation_service.create_or_update_reservation(
            session, traveler, quote_id, AIRPORT_FORM, hooks=[]
        )
        vehicle = await reservation_service.create_or_update_reservation(
            session, traveler, quote_id, _seats("A1"), hooks=[]
        )

        listings = await reservation_service.list_reservations(session, traveler)
        assert await reservation_service.list_reservations(session, stranger) == []

    by_id = {listing.reservation.id: listing for listing in listings}
    assert set(by_id) == {airport.reservation.id, vehicle.reservation.id}

    airport_listing = by_id[airport.reservation.id]
    assert [detail.way_type for detail in airport_listing.details] == ["pickup", "sending"]
    assert airport_listing.total_price == 380000
    assert [row["airport_code"] for row in airport_listing.price_context["airport"]] == [
        "AP-001",
        "AP-002",
    ]

    vehicle_listing = by_id[vehicle.reservation.id]
    assert [detail.seat_number for detail in vehicle_listing.details] == ["A1"]
    assert vehicle_listing.price_context == {}
