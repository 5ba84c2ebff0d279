"""Test fixtures for the booking backend."""
from __future__ import annotations

import os
import uuid
from collections.abc import AsyncIterator
from datetime import date

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine

os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")
os.environ.setdefault("NOTIFICATIONS_ENABLED", "false")

from app.core.config import get_settings
from app.core.security import CurrentUser, create_access_token
from app.db.base import Base
from app.db.session import dispose_engine, get_sessionmaker
from app.main import app
from app.models import (
    AirportPrice,
    CarPrice,
    HotelPrice,
    RentPrice,
    RoomPrice,
    TourPrice,
)

SEASON_START = date(2026, 1, 1)
SEASON_END = date(2026, 12, 31)


@pytest.fixture(scope="session")
def db_url(tmp_path_factory: pytest.TempPathFactory) -> str:
    """Provide a temporary SQLite database URL for the test session."""
    db_path = tmp_path_factory.mktemp("db") / "test.db"
    return f"sqlite+aiosqlite:///{db_path}"


@pytest_asyncio.fixture()
async def reset_database(db_url: str) -> AsyncIterator[None]:
    """Drop and recreate the database schema for an isolated test."""
    os.environ["DATABASE_URL"] = db_url
    get_settings.cache_clear()
    get_settings()

    await dispose_engine(db_url)
    engine = create_async_engine(db_url, future=True)
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.drop_all)
        await connection.run_sync(Base.metadata.create_all)
    await engine.dispose()
    yield
    await dispose_engine(db_url)


def _price_rows() -> list[object]:
    return [
        AirportPrice(
            airport_code="AP-001",
            airport_category="픽업",
            airport_route="다낭공항",
            airport_car_type="4인승",
            price=200000,
        ),
        AirportPrice(
            airport_code="AP-002",
            airport_category="샌딩",
            airport_route="다낭공항",
            airport_car_type="4인승",
            price=180000,
        ),
        AirportPrice(
            airport_code="AP-003",
            airport_category="픽업",
            airport_route="다낭공항",
            airport_car_type="7인승",
            price=250000,
        ),
        AirportPrice(
            airport_code="AP-010",
            airport_category="픽업",
            airport_route="노이바이공항",
            airport_car_type="16인승",
            price=300000,
        ),
        AirportPrice(
            airport_code="AP-011",
            airport_category="픽업",
            airport_route="노이바이공항",
            airport_car_type="16인승",
            price=320000,
        ),
        RoomPrice(
            room_code="R-001",
            schedule="1박2일",
            cruise="스테이하롱",
            payment="카드",
            room_type="오션뷰",
            room_category="성인",
            price=1500000,
            start_date=SEASON_START,
            end_date=SEASON_END,
        ),
        RoomPrice(
            room_code="R-002",
            schedule="1박2일",
            cruise="스테이하롱",
            payment="카드",
            room_type="오션뷰",
            room_category="아동",
            price=900000,
            start_date=SEASON_START,
            end_date=SEASON_END,
        ),
        RoomPrice(
            room_code="R-003",
            schedule="1박2일",
            cruise="스테이하롱",
            payment="카드",
            room_type="스위트",
            room_category="성인",
            price=2500000,
            start_date=date(2027, 1, 1),
            end_date=date(2027, 12, 31),
        ),
        CarPrice(
            car_code="C-001",
            schedule="1박2일",
            cruise="스테이하롱",
            car_category="왕복",
            car_type="스테이하롱 셔틀",
            price=200000,
        ),
        CarPrice(
            car_code="C-002",
            schedule="1박2일",
            cruise="스테이하롱",
            car_category="왕복",
            car_type="크루즈 셔틀 리무진",
            price=250000,
        ),
        CarPrice(
            car_code="C-003",
            schedule="1박2일",
            cruise="스테이하롱",
            car_category="왕복",
            car_type="스테이하롱 셔틀 리무진 단독",
            price=1200000,
        ),
        HotelPrice(
            hotel_code="H-001",
            hotel_name="하롱 호텔",
            room_name="디럭스",
            room_type="더블",
            weekday_type="평일",
            price=1000000,
            start_date=SEASON_START,
            end_date=SEASON_END,
        ),
        RentPrice(
            rent_code="RC-001",
            rent_category="일일",
            rent_route="하노이-하롱",
            rent_car_type="7인승",
            price=1500000,
        ),
        TourPrice(
            tour_code="T-001",
            tour_name="닌빈 투어",
            tour_vehicle="리무진",
            tour_type="단독",
            tour_capacity=4,
            price=800000,
        ),
    ]


@pytest_asyncio.fixture()
async def price_catalog(reset_database: None, db_url: str) -> None:
    """Seed one small price table per catalog."""
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        session.add_all(_price_rows())
        await session.commit()


@pytest.fixture()
def traveler() -> CurrentUser:
    return CurrentUser(id=uuid.uuid4(), email="minji.kim@example.com")


@pytest_asyncio.fixture()
async def app_context(
    price_catalog: None, traveler: CurrentUser
) -> AsyncIterator[dict[str, object]]:
    """Yield an async client plus an authenticated traveller."""
    token = create_access_token(str(traveler.id), email=traveler.email)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield {
            "client": client,
            "user": traveler,
            "headers": {"Authorization": f"Bearer {token}"},
        }
