# rentals/core/enums.py
from enum import Enum


class ListingType(str, Enum):
    RENT = "RENT"
    SALE = "SALE"


class RentalPeriod(str, Enum):
    DAY = "DAY"
    MONTH = "MONTH"
    YEAR = "YEAR"


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class PaymentStatus(str, Enum):
    UNPAID = "unpaid"
    PAID = "paid"


# Bookings in these states hold their dates
ACTIVE_BOOKING_STATUSES = (BookingStatus.PENDING.value, BookingStatus.CONFIRMED.value)

TERMINAL_BOOKING_STATUSES = (BookingStatus.CANCELLED.value, BookingStatus.COMPLETED.value)

ALL_BOOKING_STATUSES = tuple(s.value for s in BookingStatus)
