"""Test booking registration."""
import pytest
from drs_care.booking import BookingRegistrar
from drs_care.models import BookingRequest
from drs_care.notifications import NotificationDispatcher


@pytest.fixture
def registrar(store, transport):
    dispatcher = NotificationDispatcher(transport, "clinic@drscare.test", "123 Main Street")
    return BookingRegistrar(store, dispatcher)


@pytest.fixture
def request_data():
    return BookingRequest(
        treatment="Cleaning",
        date="Dec 17, 2022",
        slot="10am",
        patientEmail="a@x.com",
        patientName="Alice",
    )


def test_new_booking_stored_and_notified(registrar, store, transport, request_data):
    outcome = registrar.register(request_data)

    assert outcome.success is True
    assert outcome.result.inserted_id is not None
    assert len(store.find_bookings(patient_email="a@x.com")) == 1
    assert [m.to for m in transport.sent] == ["a@x.com"]


def test_identical_booking_not_stored_twice(registrar, store, transport, request_data):
    first = registrar.register(request_data)
    second = registrar.register(request_data)

    assert second.success is False
    assert second.existing["_id"] == first.result.inserted_id
    assert len(store.find_bookings(patient_email="a@x.com")) == 1
    assert len(transport.sent) == 1


def test_same_patient_other_date_allowed(registrar, store, request_data):
    registrar.register(request_data)

    outcome = registrar.register(request_data.model_copy(update={"date": "Dec 18, 2022"}))

    assert outcome.success is True


def test_notification_is_scheduled_not_run(registrar, transport, request_data):
    """The scheduler receives the dispatch call and the full booking payload."""
    scheduled = []

    registrar.register(request_data, schedule=lambda func, *args: scheduled.append((func, args)))

    assert transport.sent == []
    func, (booking,) = scheduled[0]
    assert booking["patientEmail"] == "a@x.com"
    assert booking["slot"] == "10am"
    assert "_id" in booking


def test_duplicate_response_shape(registrar, request_data):
    registrar.register(request_data)

    response = registrar.register(request_data).to_response()

    body = response.model_dump(by_alias=True, exclude_none=True)
    assert body["success"] is False
    assert body["booking"]["treatment"] == "Cleaning"
    assert "result" not in body
