from ..core.exceptions import NotAuthorized, NotFound
from ..models.appointment import Appointment
from ..repositories.appointment_repository import AppointmentRepository


def get_authorized_appointment(
    store: AppointmentRepository,
    appointment_id: int,
    user_id: int,
) -> Appointment:
    """Load an appointment and make sure ``user_id`` owns it."""
    appointment = store.find_one(appointment_id)

    if appointment is None:
        raise NotFound()

    if appointment.owner_id != user_id:
        raise NotAuthorized()

    return appointment
