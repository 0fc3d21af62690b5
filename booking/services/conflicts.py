"""All-day exclusivity rules for a single owner's calendar date."""
from typing import Optional

from ..core.exceptions import ConflictAllDay, ConflictRegular
from ..repositories.appointment_repository import AppointmentRepository
from ..schemas.appointment import AppointmentPayload


def check_for_conflicts(
    store: AppointmentRepository,
    payload: AppointmentPayload,
    user_id: int,
    exclude_id: Optional[int] = None,
) -> None:
    """Reject ``payload`` if committing it would break all-day exclusivity.

    An all-day candidate is blocked by any other appointment on the date,
    all-day or not. A regular candidate is blocked only by an all-day one;
    regular appointments never conflict with each other.
    """
    appointments_on_date = store.find_many(
        owner_id=user_id,
        date=payload.date,
        exclude_id=exclude_id,
    )

    has_all_day = any(appointment.all_day for appointment in appointments_on_date)
    has_any = len(appointments_on_date) > 0

    if payload.all_day and has_any:
        raise ConflictAllDay()
    if not payload.all_day and has_all_day:
        raise ConflictRegular()
