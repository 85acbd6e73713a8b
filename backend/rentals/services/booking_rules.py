# rentals/services/booking_rules.py
"""
Booking lifecycle rules: availability, pricing, state transitions and review
eligibility.

Everything in here is pure. Callers pass ORM rows (or anything with the same
attributes) and an explicit ``now`` so the rules can be exercised without a
database or a real clock. Datetimes are naive UTC throughout.
"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Iterable, List, Optional

from rentals.core.enums import (
    ACTIVE_BOOKING_STATUSES,
    TERMINAL_BOOKING_STATUSES,
    BookingStatus,
    RentalPeriod,
)
from rentals.core.exceptions import AuthorizationError, ValidationError
from rentals.core.roles import is_admin, is_host_of, is_owner_of

DAYS_PER_MONTH = Decimal(30)
DAYS_PER_YEAR = Decimal(365)

# Targets a host (or admin) may move a booking to, keyed by current status
HOST_TRANSITIONS = {
    BookingStatus.PENDING.value: {
        BookingStatus.CONFIRMED.value,
        BookingStatus.CANCELLED.value,
        BookingStatus.COMPLETED.value,
    },
    BookingStatus.CONFIRMED.value: {
        BookingStatus.CANCELLED.value,
        BookingStatus.COMPLETED.value,
    },
}

HOST_TARGET_STATUSES = (
    BookingStatus.CONFIRMED.value,
    BookingStatus.CANCELLED.value,
    BookingStatus.COMPLETED.value,
)


@dataclass
class AvailabilityResult:
    available: bool
    message: Optional[str] = None
    conflicting_dates: List[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        data = {"available": self.available}
        if self.message:
            data["message"] = self.message
        if self.conflicting_dates:
            data["conflictingDates"] = self.conflicting_dates
        return data


# ---------------------------
# Availability
# ---------------------------

def ranges_overlap(
    start_a: datetime,
    end_a: datetime,
    start_b: datetime,
    end_b: datetime,
) -> bool:
    """
    Closed-interval overlap: ranges that merely touch on a boundary date
    still count as overlapping.
    """
    return start_a <= end_b and end_a >= start_b


def window_violation(prop, start: datetime, end: datetime) -> Optional[str]:
    """Reason the requested range falls outside the listing's window, if it does."""
    if prop.available_from is not None and start < prop.available_from:
        return f"Property is only available from {prop.available_from.date().isoformat()}"
    if prop.available_to is not None and end > prop.available_to:
        return f"Property is only available until {prop.available_to.date().isoformat()}"
    return None


def conflicting_bookings(bookings: Iterable, start: datetime, end: datetime) -> list:
    return [
        b
        for b in bookings
        if b.status in ACTIVE_BOOKING_STATUSES
        and ranges_overlap(b.start_date, b.end_date, start, end)
    ]


def evaluate_availability(
    prop,
    start: datetime,
    end: datetime,
    existing_bookings: Iterable = (),
) -> AvailabilityResult:
    if not prop.is_available:
        return AvailabilityResult(False, "Property is not available")

    reason = window_violation(prop, start, end)
    if reason:
        return AvailabilityResult(False, reason)

    conflicts = conflicting_bookings(existing_bookings, start, end)
    if conflicts:
        return AvailabilityResult(
            False,
            "Property is already booked for the selected dates",
            [
                {"startDate": b.start_date.isoformat(), "endDate": b.end_date.isoformat()}
                for b in conflicts
            ],
        )
    return AvailabilityResult(True)


# ---------------------------
# Pricing
# ---------------------------

def billable_days(start: datetime, end: datetime) -> int:
    """Whole days between the two instants, rounded up, never less than one."""
    delta = abs(end - start)
    days = delta.days
    if delta.seconds or delta.microseconds:
        days += 1
    return max(days, 1)


def compute_total_price(
    price,
    rental_period: Optional[str],
    start: datetime,
    end: datetime,
) -> Decimal:
    """
    DAY listings bill per day; MONTH and YEAR bill a fraction of the unit
    price (days / 30, days / 365). Anything else, including sale listings,
    costs the listed price.
    """
    price = Decimal(str(price))
    days = Decimal(billable_days(start, end))

    if rental_period == RentalPeriod.DAY.value:
        return price * days
    if rental_period == RentalPeriod.MONTH.value:
        return price * (days / DAYS_PER_MONTH)
    if rental_period == RentalPeriod.YEAR.value:
        return price * (days / DAYS_PER_YEAR)
    return price


# ---------------------------
# Creation
# ---------------------------

def validate_new_booking(
    prop,
    guest,
    start: datetime,
    end: datetime,
    guest_count: int,
    now: datetime,
) -> None:
    """Checks that do not need the other bookings of the property."""
    if guest_count is None or guest_count < 1:
        raise ValidationError("Guest count must be at least 1")

    if not prop.is_available:
        raise ValidationError("Property is not available")

    if is_host_of(guest, prop):
        raise ValidationError("You cannot book your own property")

    if start >= end:
        raise ValidationError("End date must be after start date")

    if start < now:
        raise ValidationError("Start date cannot be in the past")

    reason = window_violation(prop, start, end)
    if reason:
        raise ValidationError(reason)


# ---------------------------
# Status transitions
# ---------------------------

def ensure_guest_can_cancel(
    booking,
    user,
    now: datetime,
    cutoff_hours: int = 24,
) -> None:
    if not is_owner_of(user, booking):
        raise AuthorizationError("Not authorized to cancel this booking")

    if booking.status not in ACTIVE_BOOKING_STATUSES:
        raise ValidationError(f"Cannot cancel a booking with status: {booking.status}")

    if booking.start_date - now < timedelta(hours=cutoff_hours):
        raise ValidationError(
            f"Cancellations must be made at least {cutoff_hours} hours "
            "before the booking start date"
        )


def validate_host_target(target: Optional[str]) -> str:
    if target not in HOST_TARGET_STATUSES:
        raise ValidationError("Invalid status")
    return target


def ensure_host_can_set_status(booking, prop, user, target: str) -> None:
    validate_host_target(target)

    if not (is_admin(user) or is_host_of(user, prop)):
        raise AuthorizationError("Not authorized to update this booking")

    if booking.status in TERMINAL_BOOKING_STATUSES:
        raise ValidationError(f"Cannot change a booking with status: {booking.status}")

    if target not in HOST_TRANSITIONS.get(booking.status, set()):
        raise ValidationError(f"Cannot change booking from {booking.status} to {target}")


# ---------------------------
# Reviews
# ---------------------------

def validate_rating(rating) -> int:
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise ValidationError("Rating must be a whole number between 1 and 5")
    if rating < 1 or rating > 5:
        raise ValidationError("Rating must be between 1 and 5")
    return rating


def ensure_review_allowed(booking, user, property_id: int) -> None:
    if not is_owner_of(user, booking):
        raise AuthorizationError("Not authorized to review this booking")

    if booking.property_id != property_id:
        raise ValidationError("Booking and property do not match")

    if booking.status != BookingStatus.COMPLETED.value:
        raise ValidationError("Can only review completed bookings")
