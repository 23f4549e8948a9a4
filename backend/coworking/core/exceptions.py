"""
Domain errors raised by the reservation core.

Validation kinds carry the request field they belong to so the API can
answer with a `{field: [message]}` map. `ReservationBusy` is kept apart
from validation so clients know a retry may succeed.
"""

from typing import Optional


class BookingError(Exception):
    status_code = 500
    code = "booking_error"
    message = "Booking failed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.message
        super().__init__(self.message)

    @property
    def headers(self) -> Optional[dict]:
        return None

    def to_dict(self) -> dict:
        return {"message": self.message, "code": self.code}


class ReservationValidationError(BookingError):
    status_code = 422
    code = "invalid"
    field = "reservation"

    def __init__(self, message: Optional[str] = None, field: Optional[str] = None):
        super().__init__(message)
        self.field = field or self.field

    def to_dict(self) -> dict:
        body = super().to_dict()
        body["errors"] = {self.field: [self.message]}
        return body


class InvalidReference(ReservationValidationError):
    code = "invalid_reference"
    field = "office_id"
    message = "Invalid office_id"


class SelfReservation(ReservationValidationError):
    code = "self_reservation"
    field = "office_id"
    message = "You cannot make a reservation on your own office"


class OfficeUnavailable(ReservationValidationError):
    code = "office_unavailable"
    field = "office_id"
    message = "You cannot make a reservation on a hidden office"


class InvalidStartDate(ReservationValidationError):
    code = "invalid_start_date"
    field = "start_date"
    message = "The start date must be a date after today"


class InvalidEndDate(ReservationValidationError):
    code = "invalid_end_date"
    field = "end_date"
    message = "The end date must be a date after the start date"


class BookingConflict(ReservationValidationError):
    code = "booking_conflict"
    field = "office_id"
    message = "You cannot make a reservation during this time"


class CannotCancel(ReservationValidationError):
    code = "cannot_cancel"
    field = "reservation"
    message = "You cannot cancel this reservation"


class InvalidFilter(ReservationValidationError):
    code = "invalid_filter"


class ReservationBusy(BookingError):
    status_code = 503
    code = "busy"
    message = "Office is busy, please retry"
    retry_after = 1

    @property
    def headers(self) -> Optional[dict]:
        return {"Retry-After": str(self.retry_after)}


class PersistenceFailure(BookingError):
    status_code = 500
    code = "persistence_failure"
    message = "Could not save the reservation"
