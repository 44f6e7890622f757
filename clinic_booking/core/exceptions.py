"""
Error taxonomy of the booking core.

Every error is an ``HTTPException`` carrying a stable ``code`` so the
exception handler in ``main`` can render a structured body and callers can
tell a slot conflict apart from a validation failure.
"""
from fastapi import HTTPException, status


class BookingError(HTTPException):
    code = "booking_error"
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Request could not be processed"

    def __init__(self, detail: str = None):
        super().__init__(
            status_code=self.status_code,
            detail=detail or self.default_detail,
        )


class MissingParameter(BookingError):
    code = "missing_parameter"
    default_detail = "A required parameter is missing"


class InvalidInput(BookingError):
    code = "invalid_input"
    default_detail = "Invalid input"


class InvalidDateFormat(InvalidInput):
    code = "invalid_date_format"
    default_detail = "Invalid date format"


class PastDateRejected(BookingError):
    code = "past_date_rejected"
    default_detail = "Cannot create appointment in the past"


class DoctorNotFound(BookingError):
    code = "doctor_not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Doctor not found"


class SlotConflict(BookingError):
    code = "slot_conflict"
    status_code = status.HTTP_409_CONFLICT
    default_detail = "The doctor already has an appointment at this time, please choose another slot"


class Forbidden(BookingError):
    code = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Not enough permissions"


class NotFound(BookingError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Resource not found"


class DownstreamFailure(BookingError):
    code = "downstream_failure"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "The service is temporarily unavailable, please try again later"
