import pytest

from booking.core.database import engine
from booking.core.exceptions import (
    ConflictAllDay, ConflictRegular, InvalidDate, NotAuthorized, NotFound,
    StorageError, Unauthenticated
)
from booking.models.appointment import Appointment
from booking.repositories.appointment_repository import AppointmentRepository
from booking.schemas.appointment import AppointmentPayload
from booking.services import appointment_service
from booking.services.authorization import get_authorized_appointment
from booking.services.conflicts import check_for_conflicts

DATE = "2024-10-10"


def payload(**overrides):
    data = {"date": DATE, "firstName": "John", "lastName": "Doe", "allDay": False}
    data.update(overrides)
    return AppointmentPayload(**data)


@pytest.fixture
def alice(make_user):
    return make_user("alice")


@pytest.fixture
def bob(make_user):
    return make_user("bob")


class TestCreate:

    def test_logged_in_user_can_create(self, service, db, alice):
        appointment_id = service.create(payload(), alice.id)

        stored = db.query(Appointment).filter(Appointment.id == appointment_id).first()
        assert stored.owner_id == alice.id
        assert stored.first_name == "John"
        assert stored.last_name == "Doe"
        assert stored.date == DATE
        assert stored.all_day is False

    def test_names_are_stored_trimmed(self, service, db, alice):
        appointment_id = service.create(payload(firstName="  John ", lastName=" Doe"), alice.id)

        stored = db.query(Appointment).filter(Appointment.id == appointment_id).first()
        assert stored.first_name == "John"
        assert stored.last_name == "Doe"

    def test_unauthenticated_create_is_rejected(self, service, db):
        with pytest.raises(Unauthenticated):
            service.create(payload(), None)
        assert db.query(Appointment).count() == 0

    def test_past_date_is_rejected(self, service, db, alice):
        with pytest.raises(InvalidDate, match="Date cannot be in the past."):
            service.create(payload(date="2023-01-01"), alice.id)
        assert db.query(Appointment).count() == 0

    def test_all_day_blocks_regular(self, service, alice):
        service.create(payload(allDay=True), alice.id)

        with pytest.raises(ConflictRegular, match="There is already an all-day appointment on this date"):
            service.create(payload(), alice.id)

    def test_all_day_blocks_all_day(self, service, alice):
        service.create(payload(allDay=True), alice.id)

        with pytest.raises(ConflictAllDay, match="There is already another appointment on this date"):
            service.create(payload(allDay=True), alice.id)

    def test_regular_blocks_all_day(self, service, alice):
        service.create(payload(), alice.id)

        with pytest.raises(ConflictAllDay, match="There is already another appointment on this date"):
            service.create(payload(allDay=True), alice.id)

    def test_regular_appointments_share_a_date(self, service, alice):
        first = service.create(payload(), alice.id)
        second = service.create(payload(firstName="Jane"), alice.id)
        assert first != second

    def test_all_day_does_not_block_other_users_or_dates(self, service, alice, bob):
        service.create(payload(allDay=True), alice.id)

        service.create(payload(allDay=True), bob.id)
        service.create(payload(date="2024-10-11"), alice.id)


class TestUpdate:

    def test_owner_can_update(self, service, db, alice):
        appointment_id = service.create(payload(), alice.id)

        result = service.update(appointment_id, payload(firstName="Jane", allDay=True), alice.id)

        assert result == {"success": True, "affected": 1}
        db.expire_all()
        stored = db.query(Appointment).filter(Appointment.id == appointment_id).first()
        assert stored.first_name == "Jane"
        assert stored.all_day is True
        assert stored.owner_id == alice.id

    def test_update_ignores_the_appointment_itself(self, service, alice):
        appointment_id = service.create(payload(allDay=True), alice.id)

        service.update(appointment_id, payload(lastName="Smith", allDay=True), alice.id)

    def test_update_into_all_day_conflict(self, service, alice):
        service.create(payload(allDay=True), alice.id)
        other_id = service.create(payload(date="2024-10-11"), alice.id)

        with pytest.raises(ConflictRegular):
            service.update(other_id, payload(), alice.id)

    def test_other_user_cannot_update(self, service, db, alice, bob):
        appointment_id = service.create(payload(), alice.id)

        with pytest.raises(NotAuthorized, match="You cannot modify or remove this appointment"):
            service.update(appointment_id, payload(firstName="Jane"), bob.id)

        db.expire_all()
        stored = db.query(Appointment).filter(Appointment.id == appointment_id).first()
        assert stored.first_name == "John"

    def test_unauthenticated_update_is_rejected(self, service, alice):
        appointment_id = service.create(payload(), alice.id)

        with pytest.raises(Unauthenticated):
            service.update(appointment_id, payload(firstName="Jane"), None)

    def test_update_missing_appointment(self, service, alice):
        with pytest.raises(NotFound):
            service.update(999, payload(), alice.id)

    def test_validation_runs_before_ownership(self, service, alice, bob):
        appointment_id = service.create(payload(), alice.id)

        with pytest.raises(InvalidDate):
            service.update(appointment_id, payload(date=""), bob.id)


class TestRemove:

    def test_remove_twice(self, service, alice):
        appointment_id = service.create(payload(), alice.id)

        assert service.remove(appointment_id, alice.id) == {"success": True, "affected": 1}
        with pytest.raises(NotFound):
            service.remove(appointment_id, alice.id)

    def test_other_user_cannot_remove(self, service, db, alice, bob):
        appointment_id = service.create(payload(), alice.id)

        with pytest.raises(NotAuthorized):
            service.remove(appointment_id, bob.id)
        assert db.query(Appointment).count() == 1

    def test_unauthenticated_remove_is_rejected(self, service, db, alice):
        appointment_id = service.create(payload(), alice.id)

        with pytest.raises(Unauthenticated):
            service.remove(appointment_id, None)
        assert db.query(Appointment).count() == 1


class TestList:

    def test_lists_only_own_appointments_by_date(self, service, alice, bob):
        later = service.create(payload(date="2024-10-12"), alice.id)
        earlier = service.create(payload(date="2024-10-10"), alice.id)
        service.create(payload(date="2024-10-11"), bob.id)

        appointments = service.list(alice.id)

        assert [a.id for a in appointments] == [earlier, later]
        assert all(a.owner_id == alice.id for a in appointments)

    def test_user_without_appointments(self, service, alice, bob):
        service.create(payload(), alice.id)
        assert service.list(bob.id) == []

    def test_search_matches_first_or_last_name_prefix(self, service, alice):
        service.create(payload(firstName="John", lastName="Doe"), alice.id)
        service.create(payload(firstName="Jane", lastName="Smith"), alice.id)
        service.create(payload(firstName="David", lastName="Jackson"), alice.id)

        assert {a.first_name for a in service.list(alice.id, search="j")} == {"John", "Jane", "David"}
        assert {a.first_name for a in service.list(alice.id, search="SMI")} == {"Jane"}
        assert service.list(alice.id, search="oe") == []

    def test_search_treats_wildcards_literally(self, service, alice):
        service.create(payload(firstName="John"), alice.id)
        assert service.list(alice.id, search="%") == []
        assert service.list(alice.id, search="_ohn") == []

    def test_unauthenticated_list_is_rejected(self, service):
        with pytest.raises(Unauthenticated):
            service.list(None)


class TestCollaborators:

    def test_authorized_appointment_is_returned(self, service, db, alice):
        appointment_id = service.create(payload(), alice.id)

        appointment = get_authorized_appointment(AppointmentRepository(db), appointment_id, alice.id)
        assert appointment.id == appointment_id

    def test_conflict_check_excludes_given_id(self, service, db, alice):
        appointment_id = service.create(payload(allDay=True), alice.id)
        store = AppointmentRepository(db)

        check_for_conflicts(store, payload(), alice.id, exclude_id=appointment_id)
        with pytest.raises(ConflictRegular):
            check_for_conflicts(store, payload(), alice.id)

    def test_all_day_index_backstops_the_conflict_check(self, db, alice):
        store = AppointmentRepository(db)
        store.insert(owner_id=alice.id, date=DATE, first_name="A", last_name="B", all_day=True)

        with pytest.raises(ConflictAllDay):
            store.insert(owner_id=alice.id, date=DATE, first_name="C", last_name="D", all_day=True)
        assert db.query(Appointment).count() == 1

    def test_storage_failure_is_wrapped(self, service, db, alice):
        Appointment.__table__.drop(bind=db.connection())

        with pytest.raises(StorageError, match="Database error"):
            service.list(alice.id)

    def test_storage_failure_keeps_sql_out_of_the_message(self, service, db, alice):
        Appointment.__table__.drop(bind=db.connection())

        with pytest.raises(StorageError) as excinfo:
            service.list(alice.id)
        assert "no such table" in excinfo.value.message
        assert "[SQL:" not in excinfo.value.message

    def test_tests_run_on_an_in_memory_database(self):
        assert engine.url.database in (None, "", ":memory:")


class TestConcurrentRemoval:

    @pytest.fixture
    def removed_after_authorization(self, monkeypatch, db):
        """Delete the appointment right after its ownership check passes."""
        def authorize_then_delete(store, appointment_id, user_id):
            appointment = get_authorized_appointment(store, appointment_id, user_id)
            db.query(Appointment).filter(Appointment.id == appointment_id).delete()
            db.commit()
            return appointment

        monkeypatch.setattr(appointment_service, "get_authorized_appointment", authorize_then_delete)

    def test_update_of_vanished_appointment(self, service, alice, removed_after_authorization):
        appointment_id = service.create(payload(), alice.id)

        with pytest.raises(NotFound):
            service.update(appointment_id, payload(firstName="Jane"), alice.id)

    def test_remove_of_vanished_appointment(self, service, alice, removed_after_authorization):
        appointment_id = service.create(payload(), alice.id)

        with pytest.raises(NotFound):
            service.remove(appointment_id, alice.id)
