"""
Domain errors raised by the appointment service.

Each error carries a stable ``kind`` that API consumers can switch on and a
human-readable ``message``. The HTTP layer maps the kind to a status code.
"""
from fastapi import status


class AppointmentError(Exception):
    kind = "AppointmentError"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Appointment request failed"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.kind, "message": self.message}


class Unauthenticated(AppointmentError):
    kind = "Unauthenticated"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authorized."


class InvalidDate(AppointmentError):
    kind = "InvalidDate"
    default_message = "Date is required."


class InvalidFirstName(AppointmentError):
    kind = "InvalidFirstName"
    default_message = "First name is required."


class InvalidLastName(AppointmentError):
    kind = "InvalidLastName"
    default_message = "Last name is required."


class NotFound(AppointmentError):
    kind = "NotFound"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Appointment not found"


class NotAuthorized(AppointmentError):
    kind = "NotAuthorized"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "You cannot modify or remove this appointment"


class ConflictAllDay(AppointmentError):
    """An all-day appointment was requested on a date that is already in use."""
    kind = "ConflictAllDay"
    status_code = status.HTTP_409_CONFLICT
    default_message = "There is already another appointment on this date"


class ConflictRegular(AppointmentError):
    """A regular appointment was requested on a date blocked by an all-day one."""
    kind = "ConflictRegular"
    status_code = status.HTTP_409_CONFLICT
    default_message = "There is already an all-day appointment on this date"


class StorageError(AppointmentError):
    kind = "StorageError"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Database error"

    def __init__(self, cause: Exception = None):
        self.cause = cause
        message = f"Database error: {cause}" if cause is not None else None
        super().__init__(message)
