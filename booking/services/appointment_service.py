from datetime import date, datetime
from typing import Callable, Dict, List, Optional
import logging

from sqlalchemy.orm import Session

from ..core.exceptions import AppointmentError, NotFound, Unauthenticated
from ..models.appointment import Appointment
from ..repositories.appointment_repository import AppointmentRepository
from ..schemas.appointment import AppointmentPayload
from .authorization import get_authorized_appointment
from .conflicts import check_for_conflicts
from .validation import collect_field_errors, validate_appointment_data

logger = logging.getLogger(__name__)


def utc_today() -> date:
    """Server clock, as a calendar date in UTC."""
    return datetime.utcnow().date()


class AppointmentService:
    """Create, update, remove and list one user's appointments.

    Every mutation is a single validate-then-write sequence: validation,
    then ownership (update/remove), then the all-day conflict check, then the
    storage write. Any failure leaves stored state untouched.
    """

    def __init__(
        self,
        db: Session,
        today: Callable[[], date] = utc_today,
        store: Optional[AppointmentRepository] = None,
    ):
        self.db = db
        self.today = today
        self.store = store or AppointmentRepository(db)

    def create(self, payload: AppointmentPayload, acting_user_id: Optional[int]) -> int:
        """Insert a new appointment owned by the caller and return its id."""
        self._require_user(acting_user_id, "create")
        self._validate(payload, acting_user_id)

        with self.store.owner_lock(acting_user_id):
            self._check_conflicts(payload, acting_user_id)
            appointment_id = self.store.insert(
                owner_id=acting_user_id,
                **self._fields(payload),
            )

        logger.info(f"User {acting_user_id} created appointment {appointment_id} on {payload.date}")
        return appointment_id

    def update(
        self,
        appointment_id: int,
        payload: AppointmentPayload,
        acting_user_id: Optional[int],
    ) -> Dict[str, int]:
        """Replace the fields of an owned appointment; the owner never changes."""
        self._require_user(acting_user_id, "update")
        self._validate(payload, acting_user_id)
        self._authorize(appointment_id, acting_user_id)

        with self.store.owner_lock(acting_user_id):
            self._check_conflicts(payload, acting_user_id, exclude_id=appointment_id)
            affected = self.store.update(appointment_id, self._fields(payload))
            if affected == 0:
                # Deleted after the ownership check
                raise NotFound()

        logger.info(f"User {acting_user_id} updated appointment {appointment_id}")
        return {"success": affected > 0, "affected": affected}

    def remove(self, appointment_id: int, acting_user_id: Optional[int]) -> Dict[str, int]:
        self._require_user(acting_user_id, "remove")
        self._authorize(appointment_id, acting_user_id)

        affected = self.store.remove(appointment_id)
        if affected == 0:
            raise NotFound()

        logger.info(f"User {acting_user_id} removed appointment {appointment_id}")
        return {"success": affected > 0, "affected": affected}

    def get(self, appointment_id: int, acting_user_id: Optional[int]) -> Appointment:
        self._require_user(acting_user_id, "read")
        return self._authorize(appointment_id, acting_user_id)

    def list(self, acting_user_id: Optional[int], search: Optional[str] = None) -> List[Appointment]:
        """Caller's appointments by ascending date, optionally matching a name prefix."""
        self._require_user(acting_user_id, "list")
        search = search.strip() if search else None
        return self.store.find_many(owner_id=acting_user_id, search=search or None)

    def field_errors(self, payload: AppointmentPayload) -> Dict[str, str]:
        return collect_field_errors(payload, self.today())

    def _require_user(self, acting_user_id: Optional[int], action: str):
        if acting_user_id is None:
            logger.warning(f"Rejected unauthenticated {action} request")
            raise Unauthenticated()

    def _validate(self, payload: AppointmentPayload, acting_user_id: int):
        try:
            validate_appointment_data(payload, self.today())
        except AppointmentError as e:
            logger.info(f"User {acting_user_id} sent invalid appointment: {e.kind}")
            raise

    def _authorize(self, appointment_id: int, acting_user_id: int) -> Appointment:
        try:
            return get_authorized_appointment(self.store, appointment_id, acting_user_id)
        except AppointmentError as e:
            logger.warning(f"User {acting_user_id} denied access to appointment {appointment_id}: {e.kind}")
            raise

    def _check_conflicts(self, payload: AppointmentPayload, acting_user_id: int, exclude_id: Optional[int] = None):
        try:
            check_for_conflicts(self.store, payload, acting_user_id, exclude_id)
        except AppointmentError as e:
            logger.info(f"User {acting_user_id} hit {e.kind} on {payload.date}")
            raise

    @staticmethod
    def _fields(payload: AppointmentPayload) -> dict:
        return {
            "date": payload.date,
            "first_name": payload.first_name.strip(),
            "last_name": payload.last_name.strip(),
            "all_day": payload.all_day,
        }
