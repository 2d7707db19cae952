from __future__ import annotations

from datetime import date, datetime, time
from typing import Optional

from sqlalchemy import CheckConstraint, Enum, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.sql.sqltypes import BigInteger, Date, DateTime, Integer, String, Time

from .domain.lifecycle import BookingsState

# SQLite only autoincrements INTEGER PRIMARY KEY columns.
IdType = BigInteger().with_variant(Integer(), "sqlite")


class Base(DeclarativeBase):
    pass


class Organisation(Base):
    __tablename__ = "organisations"
    __table_args__ = (UniqueConstraint("slug", name="uq_organisations_slug"),)

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    slug: Mapped[str] = mapped_column(String(100), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    notification_phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)

    events: Mapped[list["PickupEvent"]] = relationship(back_populates="organisation")


class PickupEvent(Base):
    __tablename__ = "pickup_events"
    __table_args__ = (
        CheckConstraint("start_time < end_time", name="chk_events_window"),
        CheckConstraint("capacity >= 1", name="chk_events_capacity"),
        CheckConstraint("interval_minutes >= 1", name="chk_events_interval"),
        Index("idx_events_org_date", "organisation_id", "pickup_date"),
    )

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    organisation_id: Mapped[int] = mapped_column(IdType, ForeignKey("organisations.id"), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    pickup_date: Mapped[date] = mapped_column(Date, nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    interval_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    bookings_state: Mapped[BookingsState] = mapped_column(
        Enum(
            BookingsState,
            values_callable=lambda enum_cls: [e.value for e in enum_cls],
            native_enum=False,
        ),
        nullable=False,
        default=BookingsState.OPEN,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)

    organisation: Mapped["Organisation"] = relationship(back_populates="events")
    bookings: Mapped[list["Booking"]] = relationship(back_populates="event", passive_deletes=True)


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint("party_size >= 1", name="chk_bookings_party_size"),
        UniqueConstraint("pickup_event_id", "phone", name="uq_bookings_event_phone"),
        Index("idx_bookings_event_time", "pickup_event_id", "pickup_time"),
    )

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    pickup_event_id: Mapped[int] = mapped_column(IdType, ForeignKey("pickup_events.id"), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(50), nullable=False)
    address: Mapped[str] = mapped_column(String(500), nullable=False)
    pickup_time: Mapped[time] = mapped_column(Time, nullable=False)
    party_size: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)

    event: Mapped["PickupEvent"] = relationship(back_populates="bookings")
