from datetime import date as date_type
from typing import Dict, Optional

from ..core.exceptions import InvalidDate, InvalidFirstName, InvalidLastName
from ..schemas.appointment import AppointmentPayload

DATE_REQUIRED = "Date is required."
DATE_FORMAT = "Date must be in YYYY-MM-DD format."
DATE_IN_PAST = "Date cannot be in the past."
FIRST_NAME_REQUIRED = "First name is required."
LAST_NAME_REQUIRED = "Last name is required."


def _date_error(value: str, today: date_type) -> Optional[str]:
    if not value.strip():
        return DATE_REQUIRED
    try:
        parsed = date_type.fromisoformat(value)
    except ValueError:
        return DATE_FORMAT
    # ISO strings compare chronologically, but only in their canonical form
    if parsed.isoformat() != value:
        return DATE_FORMAT
    if value < today.isoformat():
        return DATE_IN_PAST
    return None


def validate_appointment_data(payload: AppointmentPayload, today: date_type) -> None:
    """Raise the first failing field check, in date, first name, last name order."""
    message = _date_error(payload.date, today)
    if message:
        raise InvalidDate(message)

    if not payload.first_name.strip():
        raise InvalidFirstName(FIRST_NAME_REQUIRED)

    if not payload.last_name.strip():
        raise InvalidLastName(LAST_NAME_REQUIRED)


def collect_field_errors(payload: AppointmentPayload, today: date_type) -> Dict[str, str]:
    """Evaluate every field independently, keyed by wire field name."""
    errors = {}

    message = _date_error(payload.date, today)
    if message:
        errors["date"] = message
    if not payload.first_name.strip():
        errors["firstName"] = FIRST_NAME_REQUIRED
    if not payload.last_name.strip():
        errors["lastName"] = LAST_NAME_REQUIRED

    return errors
