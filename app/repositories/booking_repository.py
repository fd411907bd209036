"""Booking repository for slot allocation and booking history."""
from __future__ import annotations

from datetime import date

from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.models import Booking, BookingSlot

from .base import BaseRepository


def _insert_for(session: Session):
    """Dialect insert supporting ON CONFLICT."""
    if session.get_bind().dialect.name == "postgresql":
        return postgresql.insert
    return sqlite.insert


class BookingRepository(BaseRepository):
    """Repository for booking-related database operations."""

    def lock_slot(self, business_user_id: int, booking_date: date, booking_time: str) -> BookingSlot:
        """Get-or-create the slot row and lock it until the transaction ends.

        Concurrent allocators for the same (business, date, time) serialize
        on this row, so the following count and insert are atomic.

        Raises:
            DatabaseException: If database operation fails
        """
        key = (
            BookingSlot.business_user_id == business_user_id,
            BookingSlot.booking_date == booking_date,
            BookingSlot.booking_time == booking_time,
        )
        try:
            self.session.execute(
                _insert_for(self.session)(BookingSlot)
                .values(
                    business_user_id=business_user_id,
                    booking_date=booking_date,
                    booking_time=booking_time,
                    reserved=0,
                )
                .on_conflict_do_nothing(
                    index_elements=["business_user_id", "booking_date", "booking_time"]
                )
            )
            stmt = select(BookingSlot).where(*key).with_for_update()
            return self.session.scalars(stmt).one()
        except SQLAlchemyError as e:
            self._handle_db_error("lock_slot", e)

    def count_for_slot(self, business_user_id: int, booking_date: date, booking_time: str) -> int:
        try:
            stmt = select(func.count(Booking.id)).where(
                Booking.business_user_id == business_user_id,
                Booking.booking_date == booking_date,
                Booking.booking_time == booking_time,
            )
            return int(self.session.scalar(stmt) or 0)
        except SQLAlchemyError as e:
            self._handle_db_error("count_for_slot", e)

    def add_booking(
        self, user_id: int, business_user_id: int, booking_date: date, booking_time: str
    ) -> Booking:
        booking = Booking(
            user_id=user_id,
            business_user_id=business_user_id,
            booking_date=booking_date,
            booking_time=booking_time,
        )
        self.session.add(booking)
        self.flush()
        return booking

    def list_for_user(self, user_id: int) -> list[Booking]:
        try:
            stmt = (
                select(Booking)
                .where(Booking.user_id == user_id)
                .order_by(Booking.booking_date.desc(), Booking.booking_time.desc())
            )
            return list(self.session.scalars(stmt).all())
        except SQLAlchemyError as e:
            self._handle_db_error("list_for_user", e)

    def list_for_business(self, business_user_id: int) -> list[Booking]:
        try:
            stmt = (
                select(Booking)
                .where(Booking.business_user_id == business_user_id)
                .order_by(Booking.booking_date, Booking.booking_time)
            )
            return list(self.session.scalars(stmt).all())
        except SQLAlchemyError as e:
            self._handle_db_error("list_for_business", e)
