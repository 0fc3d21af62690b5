from contextlib import contextmanager
from typing import Iterator, List, Optional
import logging

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import ConflictAllDay, StorageError
from ..models.appointment import Appointment
from ..models.user import User

logger = logging.getLogger(__name__)

MUTABLE_FIELDS = ("date", "first_name", "last_name", "all_day")
ALL_DAY_INDEX = "uq_appointments_owner_date_all_day"


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class AppointmentRepository:
    """SQLAlchemy-backed appointment store.

    Every database failure is re-raised as ``StorageError`` after rolling the
    session back, so callers never observe a half-applied mutation.
    """

    def __init__(self, db: Session):
        self.db = db

    def find_many(
        self,
        owner_id: int,
        date: Optional[str] = None,
        exclude_id: Optional[int] = None,
        search: Optional[str] = None,
    ) -> List[Appointment]:
        """Owner's appointments ordered by date, optionally narrowed."""
        query = self.db.query(Appointment).filter(Appointment.owner_id == owner_id)

        if date is not None:
            query = query.filter(Appointment.date == date)
        if exclude_id is not None:
            query = query.filter(Appointment.id != exclude_id)
        if search:
            pattern = f"{_escape_like(search)}%"
            query = query.filter(or_(
                Appointment.first_name.ilike(pattern, escape="\\"),
                Appointment.last_name.ilike(pattern, escape="\\"),
            ))

        try:
            return query.order_by(Appointment.date.asc(), Appointment.id.asc()).all()
        except SQLAlchemyError as e:
            self._fail(e)

    def find_one(self, appointment_id: int) -> Optional[Appointment]:
        try:
            return self.db.query(Appointment).filter(
                Appointment.id == appointment_id
            ).first()
        except SQLAlchemyError as e:
            self._fail(e)

    def insert(self, owner_id: int, date: str, first_name: str, last_name: str, all_day: bool) -> int:
        appointment = Appointment(
            owner_id=owner_id,
            date=date,
            first_name=first_name,
            last_name=last_name,
            all_day=all_day,
        )
        try:
            self.db.add(appointment)
            self.db.commit()
        except IntegrityError as e:
            self._conflict_or_fail(e)
        except SQLAlchemyError as e:
            self._fail(e)

        self.db.refresh(appointment)
        return appointment.id

    def update(self, appointment_id: int, fields: dict) -> int:
        """Replace the mutable fields; returns the number of rows touched."""
        values = {key: fields[key] for key in MUTABLE_FIELDS if key in fields}
        try:
            affected = self.db.query(Appointment).filter(
                Appointment.id == appointment_id
            ).update(values, synchronize_session="fetch")
            self.db.commit()
        except IntegrityError as e:
            self._conflict_or_fail(e)
        except SQLAlchemyError as e:
            self._fail(e)
        return affected

    def remove(self, appointment_id: int) -> int:
        try:
            affected = self.db.query(Appointment).filter(
                Appointment.id == appointment_id
            ).delete(synchronize_session="fetch")
            self.db.commit()
        except SQLAlchemyError as e:
            self._fail(e)
        return affected

    def count(self) -> int:
        try:
            return self.db.query(Appointment).count()
        except SQLAlchemyError as e:
            self._fail(e)

    @contextmanager
    def owner_lock(self, owner_id: int) -> Iterator[None]:
        """Serialize check-then-write sequences for one owner.

        Locks the owner's user row until the enclosed mutation commits or
        rolls back. Backends without ``FOR UPDATE`` (SQLite) ignore the hint.
        """
        try:
            self.db.query(User.id).filter(User.id == owner_id).with_for_update().first()
        except SQLAlchemyError as e:
            self._fail(e)

        try:
            yield
        except Exception:
            self.db.rollback()
            raise

    def _conflict_or_fail(self, error: IntegrityError):
        self.db.rollback()
        message = str(error.orig)
        if ALL_DAY_INDEX in message or "appointments.owner_id, appointments.date" in message:
            logger.warning("All-day uniqueness index rejected a concurrent write")
            raise ConflictAllDay() from error
        raise StorageError(error.orig) from error

    def _fail(self, error: SQLAlchemyError):
        self.db.rollback()
        logger.error(f"Appointment storage failure: {str(error)}")
        # Clients get the driver message only; SQL and parameters stay in the log
        raise StorageError(getattr(error, "orig", None) or error) from error
