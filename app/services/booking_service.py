"""Booking allocator: capacity-checked reservations of hourly slots."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date

from sqlalchemy.orm import Session

from app.core.exceptions import ConflictException, ValidationException
from app.core.utils import format_hhmm, parse_hhmm
from app.domain.models import Booking, User
from app.repositories import BookingRepository, BusinessRepository

logger = logging.getLogger(__name__)

OUTSIDE_HOURS = "Booking time is outside of business hours."
NO_SLOTS = "No available slots for the selected time."


@dataclass(slots=True)
class BookingResult:
    booking: Booking
    remaining_slots: int
    is_last_slot: bool

    def as_dict(self) -> dict:
        return {
            "booking": serialize_booking(self.booking),
            "remaining_slots": self.remaining_slots,
            "is_last_slot": self.is_last_slot,
        }


def serialize_booking(booking: Booking, business_name: str | None = None) -> dict:
    data = {
        "id": booking.id,
        "user_id": booking.user_id,
        "business_user_id": booking.business_user_id,
        "booking_date": booking.booking_date.isoformat(),
        "booking_time": booking.booking_time,
        "created_at": booking.created_at.isoformat() if booking.created_at else None,
    }
    if business_name is not None:
        data["business_name"] = business_name
    return data


class BookingService:
    """Service for slot-based bookings."""

    def __init__(self, session: Session) -> None:
        self.session = session
        self.bookings = BookingRepository(session)
        self.businesses = BusinessRepository(session)

    def attempt_booking(
        self, customer: User, business_user_id: int, booking_date: date, booking_time: str
    ) -> BookingResult:
        """Reserve one place in the (business, date, time) slot.

        Raises:
            BusinessProfileNotFoundException: Unknown destination
            ValidationException: Time outside [opening, closing)
            ConflictException: Slot already at capacity
        """
        profile = self.businesses.get_profile_or_raise(business_user_id)

        requested = parse_hhmm(booking_time)
        opening = parse_hhmm(profile.opening_hour)
        closing = parse_hhmm(profile.closing_hour)
        if requested is None:
            raise ValidationException("The booking time must use the HH:MM format.")
        if opening is None or closing is None or requested < opening or requested >= closing:
            raise ValidationException(OUTSIDE_HOURS)

        slot_time = format_hhmm(requested)
        capacity = max(int(profile.counter_booking or 0), 0)

        try:
            slot = self.bookings.lock_slot(business_user_id, booking_date, slot_time)
            taken = self.bookings.count_for_slot(business_user_id, booking_date, slot_time)
            if taken >= capacity:
                raise ConflictException(NO_SLOTS)

            booking = self.bookings.add_booking(customer.id, business_user_id, booking_date, slot_time)
            slot.reserved = taken + 1
            self.bookings.commit()
        except Exception:
            self.bookings.rollback()
            raise

        remaining = capacity - taken - 1
        logger.info(
            f"Booking {booking.id}: user {customer.id} -> business {business_user_id} "
            f"{booking_date} {slot_time} ({remaining} left)"
        )
        return BookingResult(booking=booking, remaining_slots=remaining, is_last_slot=remaining <= 0)

    def list_user_bookings(self, user_id: int) -> list[dict]:
        """A customer's bookings with the destination name."""
        result = []
        for booking in self.bookings.list_for_user(user_id):
            profile = self.businesses.get_profile(booking.business_user_id)
            name = profile.business_name if profile else "Unknown"
            result.append(serialize_booking(booking, business_name=name))
        return result

    def list_business_bookings(self, business_user_id: int) -> list[dict]:
        self.businesses.get_profile_or_raise(business_user_id)
        return [serialize_booking(b) for b in self.bookings.list_for_business(business_user_id)]
