"""Quote and quote item models."""
from __future__ import annotations

import datetime
import enum
import uuid
from typing import TYPE_CHECKING

from sqlalchemy import BigInteger, Date, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.models.mixins import TimestampMixin, value_enum

if TYPE_CHECKING:  # pragma: no cover - typing helpers
    from app.models.reservation import Reservation


class QuoteStatus(str, enum.Enum):
    """Lifecycle states for quotes."""

    DRAFT = "draft"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"


class ServiceType(str, enum.Enum):
    """Discriminator for the service record a quote item points at."""

    ROOM = "room"
    CAR = "car"
    AIRPORT = "airport"
    HOTEL = "hotel"
    RENTCAR = "rentcar"
    TOUR = "tour"


class Quote(TimestampMixin, Base):
    """A booking request aggregating priced service selections."""

    __tablename__ = "quote"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(index=True, nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[QuoteStatus] = mapped_column(
        value_enum(QuoteStatus), default=QuoteStatus.DRAFT, nullable=False
    )
    total_price: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    submitted_at: Mapped[datetime.datetime | None] = mapped_column(
        DateTime(timezone=True)
    )

    items: Mapped[list["QuoteItem"]] = relationship(
        "QuoteItem", back_populates="quote", cascade="all, delete-orphan"
    )
    reservations: Mapped[list["Reservation"]] = relationship(
        "Reservation", back_populates="quote"
    )


class QuoteItem(TimestampMixin, Base):
    """Priced, quantified reference from a quote to one service record."""

    __tablename__ = "quote_item"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    quote_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("quote.id", ondelete="CASCADE"), index=True, nullable=False
    )
    service_type: Mapped[ServiceType] = mapped_column(
        value_enum(ServiceType), nullable=False
    )
    service_ref_id: Mapped[uuid.UUID] = mapped_column(nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    unit_price: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    total_price: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    usage_date: Mapped[datetime.date | None] = mapped_column(Date)

    quote: Mapped[Quote] = relationship("Quote", back_populates="items")
