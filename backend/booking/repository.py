import logging
from collections.abc import Callable
from datetime import datetime, timezone
from threading import Lock
from typing import Protocol

from backend.booking.errors import MissingRequiredFields, SlotTaken
from backend.booking.slots import is_slot_taken, next_appointment_id
from backend.database import StorageUnavailable
from backend.models.appointment import Appointment, CreateAppointmentRequest


logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ('appointment_date', 'appointment_time', 'patient_name')


class AppointmentStorage(Protocol):
    def load_all(self) -> list[Appointment]: ...

    def save_all(self, appointments: list[Appointment]) -> bool: ...


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_created_at(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


class AppointmentRepository:
    """Owns the appointment collection and serializes every booking.

    Load, conflict check, append and save run under one lock, so two
    requests for the same slot can never both succeed.
    """

    def __init__(self, storage: AppointmentStorage, clock: Callable[[], datetime] = utc_now) -> None:
        self.storage = storage
        self._clock = clock
        self._lock = Lock()

    def list_all(self) -> list[Appointment]:
        with self._lock:
            return self.storage.load_all()

    def book(
        self,
        request: CreateAppointmentRequest,
        on_booked: Callable[[Appointment], None] | None = None,
    ) -> Appointment:
        for field_name in REQUIRED_FIELDS:
            value = getattr(request, field_name)
            if not value:
                raise MissingRequiredFields()

        with self._lock:
            try:
                appointments = self.storage.load_all()
            except StorageUnavailable:
                appointments = []

            if is_slot_taken(appointments, request.appointment_date, request.appointment_time):
                logger.info(
                    'Rejected booking for taken slot %s at %s',
                    request.appointment_date,
                    request.appointment_time,
                )
                raise SlotTaken()

            now = self._clock()
            appointment = Appointment(
                id=next_appointment_id(appointments, int(now.timestamp() * 1000)),
                appointment_date=request.appointment_date,
                appointment_time=request.appointment_time,
                patient_name=request.patient_name,
                patient_email=request.patient_email,
                patient_phone=request.patient_phone,
                patient_adhaar=request.patient_adhaar,
                concern=request.concern,
                created_at=format_created_at(now),
            )

            if not self.storage.save_all([*appointments, appointment]):
                logger.warning('Appointment %s is held in memory only', appointment.id)

        logger.info(
            'New appointment booked: %s at %s for %s',
            appointment.appointment_date,
            appointment.appointment_time,
            appointment.patient_name,
        )

        if on_booked is not None:
            try:
                on_booked(appointment)
            except Exception:
                logger.exception('Could not schedule notifications for appointment %s', appointment.id)

        return appointment
