from datetime import datetime

import pytest
from conftest import new_booking_data

from storefront.domain.consultations import service as service_module
from storefront.domain.consultations.repository import ConsultationRepository
from storefront.domain.consultations.schemas import ConsultationUpdate
from storefront.domain.consultations.service import ConsultationService
from storefront.exceptions import NotFoundError, ValidationError

NOW = datetime(2026, 10, 19, 14, 5, 33, 250000)


@pytest.fixture()
def service(db):
    return ConsultationService(db)


def _create(service, payment_id="pay_test001", **overrides):
    return service.create(new_booking_data(payment_id, **overrides), now=NOW)


class TestCreate:
    def test_auto_schedules_without_date(self, service):
        booking = _create(service)

        assert booking.status == "scheduled"
        assert booking.scheduled_time == "10:00 AM"
        assert booking.scheduled_date == datetime(2026, 10, 21, 10, 0, 0, 0)

    def test_explicit_date_keeps_pending_status(self, service):
        booking = _create(service, scheduledDate="2026-11-03T15:00:00", scheduledTime="3:00 PM")

        assert booking.status == "pending"
        assert booking.scheduled_date == datetime(2026, 11, 3, 15, 0)
        assert booking.scheduled_time == "3:00 PM"

    def test_aware_date_is_stored_as_local_time(self, service):
        booking = _create(service, scheduledDate="2026-11-03T09:30:00Z")
        assert booking.scheduled_date == datetime(2026, 11, 3, 15, 0)

    def test_assigns_server_identity_and_timestamps(self, service):
        booking = _create(service, id="ffffffffffffffffffffffff")

        assert booking.id != "ffffffffffffffffffffffff"
        assert len(booking.id) == 24
        assert booking.created_at is not None
        assert booking.updated_at is not None

    def test_payment_fields(self, service):
        booking = _create(service, paymentStatus="completed")

        assert booking.amount == 29900
        assert booking.payment_status == "completed"
        assert booking.razorpay_order_id == "order_test001"
        assert booking.razorpay_payment_id == "pay_test001"

    def test_payment_status_defaults_to_pending(self, service):
        assert _create(service).payment_status == "pending"

    def test_stored_row_defaults_to_pending(self, db):
        booking = ConsultationRepository.create(
            db,
            id="60c72b2f9b1e8a3f4c8b4567",
            name="Asha",
            age=29,
            gender="female",
            consultation_type="skin",
            razorpay_order_id="order_test001",
            razorpay_payment_id="pay_test001",
            amount=29900,
        )
        assert booking.payment_status == "pending"

    def test_email_is_normalized(self, service):
        booking = _create(service, email="  Asha@Example.COM ")
        assert booking.email == "asha@example.com"

    def test_skin_type_dropped_for_hair(self, service):
        booking = _create(service, consultationType="hair", skinType="oily")
        assert booking.skin_type is None

    def test_missing_fields_are_named(self, service):
        data = new_booking_data()
        del data["name"]
        del data["gender"]

        with pytest.raises(ValidationError) as exc_info:
            service.create(data, now=NOW)

        assert set(exc_info.value.fields) == {"name", "gender"}
        assert exc_info.value.status_code == 400

    def test_age_out_of_range(self, service):
        with pytest.raises(ValidationError) as exc_info:
            _create(service, age=0)
        assert exc_info.value.fields == ["age"]

        with pytest.raises(ValidationError):
            _create(service, age=121)

    def test_blank_name_rejected(self, service):
        with pytest.raises(ValidationError) as exc_info:
            _create(service, name="   ")
        assert exc_info.value.fields == ["name"]

    def test_unknown_consultation_type_rejected(self, service):
        with pytest.raises(ValidationError) as exc_info:
            _create(service, consultationType="nails")
        assert exc_info.value.fields == ["consultationType"]

    def test_missing_payment_id_rejected(self, service):
        with pytest.raises(ValidationError) as exc_info:
            _create(service, razorpayPaymentId="")
        assert exc_info.value.fields == ["razorpayPaymentId"]


class TestLookups:
    def test_get_by_id(self, service):
        booking = _create(service)
        assert service.get_by_id(booking.id).id == booking.id

    def test_get_by_id_missing(self, service):
        with pytest.raises(NotFoundError):
            service.get_by_id("000000000000000000000000")

    def test_get_by_payment_id(self, service):
        booking = _create(service, payment_id="pay_lookup")
        assert service.get_by_payment_id("pay_lookup").id == booking.id
        assert service.get_by_payment_id("pay_other") is None

    def test_get_by_reference(self, service):
        booking = _create(service)
        assert service.get_by_reference(booking.reference_number).id == booking.id

    def test_get_by_reference_is_exact(self, service):
        booking = _create(service)
        with pytest.raises(NotFoundError):
            service.get_by_reference(booking.reference_number.lower())
        with pytest.raises(NotFoundError):
            service.get_by_reference("cons-" + booking.reference_number[5:])

    @pytest.mark.parametrize("reference", ["", "CONS-", "CONS-1234", "CONS-ZZZZZZZZ", "ORD-60C72B2F", "CONS-60C72B2F0"])
    def test_malformed_reference(self, service, reference):
        _create(service)
        with pytest.raises(NotFoundError):
            service.get_by_reference(reference)

    def test_unknown_reference(self, service):
        _create(service)
        with pytest.raises(NotFoundError):
            service.get_by_reference("CONS-00000000")

    def test_ambiguous_reference(self, service, monkeypatch):
        ids = iter(["6a1b2c3d0000000000000001", "6a1b2c3d0000000000000002"])
        monkeypatch.setattr(service_module, "generate_booking_id", lambda: next(ids))
        _create(service, payment_id="pay_a")
        _create(service, payment_id="pay_b")

        with pytest.raises(NotFoundError) as exc_info:
            service.get_by_reference("CONS-6A1B2C3D")
        assert "ambiguous" in exc_info.value.message


class TestListBookings:
    def _seed(self, service, db):
        specs = [
            ("pay_1", "skin", "scheduled", datetime(2026, 10, 1)),
            ("pay_2", "hair", "scheduled", datetime(2026, 10, 2)),
            ("pay_3", "skin", "completed", datetime(2026, 10, 3)),
            ("pay_4", "hair", "pending", datetime(2026, 10, 4)),
            ("pay_5", "skin", "scheduled", datetime(2026, 10, 5)),
        ]
        bookings = {}
        for payment_id, consultation_type, status, created_at in specs:
            booking = _create(service, payment_id=payment_id, consultationType=consultation_type)
            ConsultationRepository.update(db, booking, status=status, created_at=created_at)
            bookings[payment_id] = booking
        return bookings

    def test_newest_first(self, service, db):
        self._seed(service, db)
        items, total = service.list_bookings()

        assert total == 5
        assert [b.razorpay_payment_id for b in items] == ["pay_5", "pay_4", "pay_3", "pay_2", "pay_1"]

    def test_status_filter(self, service, db):
        self._seed(service, db)
        items, total = service.list_bookings(status="scheduled")

        assert total == 3
        assert all(b.status == "scheduled" for b in items)

    def test_combined_filters(self, service, db):
        self._seed(service, db)
        items, total = service.list_bookings(status="scheduled", consultation_type="skin")

        assert total == 2
        assert [b.razorpay_payment_id for b in items] == ["pay_5", "pay_1"]

    def test_pagination(self, service, db):
        self._seed(service, db)

        page_1, total = service.list_bookings(page=1, page_size=2)
        page_3, _ = service.list_bookings(page=3, page_size=2)
        page_4, _ = service.list_bookings(page=4, page_size=2)

        assert total == 5
        assert [b.razorpay_payment_id for b in page_1] == ["pay_5", "pay_4"]
        assert [b.razorpay_payment_id for b in page_3] == ["pay_1"]
        assert page_4 == []


class TestUpdate:
    def test_status_only(self, service, db):
        booking = _create(service)
        ConsultationRepository.update(db, booking, updated_at=datetime(2020, 1, 1))
        before = {
            "scheduled_date": booking.scheduled_date,
            "scheduled_time": booking.scheduled_time,
            "amount": booking.amount,
            "razorpay_payment_id": booking.razorpay_payment_id,
            "expert_notes": booking.expert_notes,
        }

        updated = service.update(booking.id, ConsultationUpdate(status="completed"))

        assert updated.status == "completed"
        assert updated.updated_at > datetime(2020, 1, 1)
        for key, value in before.items():
            assert getattr(updated, key) == value

    def test_notes_and_expert(self, service):
        booking = _create(service)
        updated = service.update(
            booking.id, ConsultationUpdate(expertNotes="Use a gentle cleanser", assignedExpert="Dr. Rao")
        )

        assert updated.expert_notes == "Use a gentle cleanser"
        assert updated.assigned_expert == "Dr. Rao"
        assert updated.status == "scheduled"

    def test_reschedule(self, service):
        booking = _create(service)
        updated = service.update(
            booking.id, ConsultationUpdate(scheduledDate="2026-10-25T11:30:00", scheduledTime="11:30 AM")
        )

        assert updated.scheduled_date == datetime(2026, 10, 25, 11, 30)
        assert updated.scheduled_time == "11:30 AM"

    def test_empty_patch_changes_nothing(self, service, db):
        booking = _create(service)
        ConsultationRepository.update(db, booking, updated_at=datetime(2020, 1, 1))

        updated = service.update(booking.id, ConsultationUpdate())

        assert updated.updated_at == datetime(2020, 1, 1)

    def test_missing_booking(self, service):
        with pytest.raises(NotFoundError):
            service.update("000000000000000000000000", ConsultationUpdate(status="completed"))


class TestCalendarWriteBack:
    def test_records_only_calendar_fields(self, service, db):
        booking = _create(service)
        service.update(booking.id, ConsultationUpdate(status="completed"))

        assert service.record_calendar_event(booking.id, "evt_1", "https://calendar.google.com/e/1") is True

        db.expire_all()
        stored = service.get_by_id(booking.id)
        assert stored.google_calendar_event_id == "evt_1"
        assert stored.google_calendar_link == "https://calendar.google.com/e/1"
        assert stored.status == "completed"

    def test_unknown_booking(self, service):
        assert service.record_calendar_event("000000000000000000000000", "evt_1", None) is False


class TestStats:
    def test_counts(self, service, db):
        first = _create(service, payment_id="pay_1")
        _create(service, payment_id="pay_2", consultationType="hair")
        third = _create(service, payment_id="pay_3")
        service.update(first.id, ConsultationUpdate(status="completed"))
        service.update(third.id, ConsultationUpdate(status="cancelled"))

        assert service.stats() == {
            "total": 3,
            "byStatus": {"pending": 0, "scheduled": 1, "completed": 1},
            "byType": {"skin": 2, "hair": 1},
        }

    def test_empty(self, service):
        assert service.stats() == {
            "total": 0,
            "byStatus": {"pending": 0, "scheduled": 0, "completed": 0},
            "byType": {"skin": 0, "hair": 0},
        }
