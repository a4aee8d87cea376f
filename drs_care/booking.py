"""Booking creation with duplicate check and confirmation email.

The duplicate check and the insert are two separate store calls, so two
identical requests arriving together can both be stored. Accepted.
"""
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from drs_care.models import BookingRequest, BookingResponse, InsertResult
from drs_care.notifications import NotificationDispatcher
from drs_care.logging_config import get_logger
from drs_care.store import RecordStore

logger = get_logger(__name__)

# Runs the notification off the response path (e.g. BackgroundTasks.add_task)
Scheduler = Callable[..., None]


def run_inline(func: Callable, *args: Any) -> None:
    func(*args)


@dataclass
class BookingOutcome:
    success: bool
    result: Optional[InsertResult] = None
    existing: Optional[Dict[str, Any]] = None

    def to_response(self) -> BookingResponse:
        return BookingResponse(success=self.success, result=self.result, booking=self.existing)


class BookingRegistrar:
    """Stores new bookings unless the same patient already booked that treatment on that date."""

    def __init__(self, store: RecordStore, dispatcher: NotificationDispatcher):
        self.store = store
        self.dispatcher = dispatcher

    def register(self, request: BookingRequest, schedule: Scheduler = run_inline) -> BookingOutcome:
        """
        Create a booking.

        Args:
            request: Candidate booking
            schedule: Called as schedule(dispatch, booking) after the insert

        Returns:
            BookingOutcome; success=False carries the existing booking
        """
        existing = self.store.find_booking(request.treatment, request.date, request.patient_email)
        if existing is not None:
            logger.info("booking_duplicate", patient_email=request.patient_email,
                        treatment=request.treatment, date=request.date)
            return BookingOutcome(success=False, existing=existing)

        result = self.store.insert_booking(request)
        logger.info("booking_stored", booking_id=result.inserted_id, treatment=request.treatment,
                    date=request.date, slot=request.slot)

        booking = request.model_dump(by_alias=True)
        booking["_id"] = result.inserted_id
        schedule(self.dispatcher.dispatch, booking)

        return BookingOutcome(success=True, result=result)
