from enum import Enum

class BookingStatus(str, Enum):
    SCHEDULED = "scheduled"
    PENDING_STYLIST_CONFIRMATION = "pendingStylistConfirmation"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "inProgress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "noShow"

# Statuses that keep a stylist's time occupied
ACTIVE_BOOKING_STATUSES = [
    BookingStatus.SCHEDULED,
    BookingStatus.CONFIRMED,
    BookingStatus.IN_PROGRESS,
    BookingStatus.PENDING_STYLIST_CONFIRMATION,
]

# Bookings in these states can no longer be paid
CLOSED_BOOKING_STATUSES = [
    BookingStatus.CANCELLED,
    BookingStatus.NO_SHOW,
]

class BookingPaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"

