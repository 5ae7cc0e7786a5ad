import threading
import time
from datetime import datetime, timedelta, timezone

import pytest

from backend.booking.errors import MissingRequiredFields, SlotTaken
from backend.booking.repository import AppointmentRepository, format_created_at
from backend.database import InMemoryStorage, JsonFileStorage, StorageMode, StorageUnavailable
from backend.models.appointment import Appointment, CreateAppointmentRequest


class FixedClock:
    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now


class SlowStorage(InMemoryStorage):
    """Widens the gap between reading and writing the snapshot."""

    def load_all(self) -> list[Appointment]:
        snapshot = super().load_all()
        time.sleep(0.01)
        return snapshot


class UnreadableStorage(InMemoryStorage):
    def load_all(self) -> list[Appointment]:
        raise StorageUnavailable('corrupt snapshot')


def booking(appointment_date: str = '2024-06-01', appointment_time: str = '10:00', patient_name: str = 'Asha', **extra):
    return CreateAppointmentRequest(
        appointment_date=appointment_date,
        appointment_time=appointment_time,
        patientName=patient_name,
        **extra,
    )


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2024, 6, 1, 4, 30, tzinfo=timezone.utc))


@pytest.fixture
def repository(clock: FixedClock) -> AppointmentRepository:
    return AppointmentRepository(InMemoryStorage(), clock=clock)


def test_book_creates_appointment_with_id_and_created_at(repository: AppointmentRepository) -> None:
    appointment = repository.book(booking(patientEmail='asha@example.com', concern='Anxiety'))

    assert appointment.id == '1717216200000'
    assert appointment.created_at == '2024-06-01T04:30:00.000Z'
    assert appointment.patient_name == 'Asha'
    assert appointment.patient_email == 'asha@example.com'
    assert appointment.concern == 'Anxiety'
    assert appointment.patient_phone is None


def test_book_then_list_returns_bookings_in_order(repository: AppointmentRepository, clock: FixedClock) -> None:
    booked = []
    for hour in range(9, 13):
        booked.append(repository.book(booking(appointment_time=f'{hour}:00', patient_name=f'Patient {hour}')))
        clock.now += timedelta(minutes=1)

    assert repository.list_all() == booked
    assert repository.list_all() == repository.list_all()


def test_book_rejects_taken_slot(repository: AppointmentRepository) -> None:
    repository.book(booking(patient_name='Asha'))

    with pytest.raises(SlotTaken) as exception_info:
        repository.book(booking(patient_name='Ravi'))

    assert exception_info.value.message == 'This time slot is already booked.'
    appointments = repository.list_all()
    assert [appointment.patient_name for appointment in appointments] == ['Asha']


@pytest.mark.parametrize(
    'request_fields',
    [
        {'appointment_date': None},
        {'appointment_time': ''},
        {'patient_name': ''},
        {'patient_name': None},
    ],
)
def test_book_rejects_missing_required_fields(repository: AppointmentRepository, request_fields: dict) -> None:
    repository.book(booking(appointment_time='09:00'))
    before = repository.list_all()

    with pytest.raises(MissingRequiredFields) as exception_info:
        repository.book(booking(**request_fields))

    assert exception_info.value.message == 'Missing required fields'
    assert repository.list_all() == before


def test_book_accepts_whitespace_only_name_as_sent(repository: AppointmentRepository) -> None:
    appointment = repository.book(booking(patient_name='   '))

    assert appointment.patient_name == '   '
    assert repository.list_all() == [appointment]


def test_book_generates_unique_ids_within_same_millisecond(repository: AppointmentRepository) -> None:
    first = repository.book(booking(appointment_time='09:00'))
    second = repository.book(booking(appointment_time='09:30'))
    third = repository.book(booking(appointment_time='10:00'))

    assert int(first.id) < int(second.id) < int(third.id)


def test_book_treats_unreadable_snapshot_as_empty(clock: FixedClock) -> None:
    repository = AppointmentRepository(UnreadableStorage(), clock=clock)

    appointment = repository.book(booking())

    assert appointment.patient_name == 'Asha'


def test_list_all_propagates_unreadable_snapshot(clock: FixedClock) -> None:
    repository = AppointmentRepository(UnreadableStorage(), clock=clock)

    with pytest.raises(StorageUnavailable):
        repository.list_all()


def test_book_succeeds_when_durable_write_fails(tmp_path, monkeypatch: pytest.MonkeyPatch, clock: FixedClock) -> None:
    storage = JsonFileStorage(tmp_path / 'appointments.json')
    storage.initialize()
    repository = AppointmentRepository(storage, clock=clock)

    def fail_replace(*_args, **_kwargs):
        raise OSError('disk full')

    monkeypatch.setattr('backend.database.os.replace', fail_replace)

    appointment = repository.book(booking())

    assert storage.mode is StorageMode.DEGRADED
    assert repository.list_all() == [appointment]
    with pytest.raises(SlotTaken):
        repository.book(booking(patient_name='Ravi'))


def test_book_round_trips_through_durable_snapshot(tmp_path, clock: FixedClock) -> None:
    path = tmp_path / 'appointments.json'
    storage = JsonFileStorage(path)
    storage.initialize()

    appointment = AppointmentRepository(storage, clock=clock).book(
        booking(patientPhone='+91 90000 00000', patientAdhaar='1234 5678 9012')
    )

    restarted = AppointmentRepository(JsonFileStorage(path), clock=clock)
    assert restarted.list_all() == [appointment]
    assert restarted.list_all()[0].to_document() == appointment.to_document()

    later = restarted.book(booking(appointment_time='11:00'))
    assert int(later.id) > int(appointment.id)


def test_on_booked_receives_created_appointment(repository: AppointmentRepository) -> None:
    received = []

    appointment = repository.book(booking(), on_booked=received.append)

    assert received == [appointment]


def test_on_booked_not_called_for_rejected_booking(repository: AppointmentRepository) -> None:
    received = []
    repository.book(booking())

    with pytest.raises(SlotTaken):
        repository.book(booking(patient_name='Ravi'), on_booked=received.append)

    assert received == []


def test_on_booked_failure_does_not_undo_booking(repository: AppointmentRepository) -> None:
    def explode(_appointment: Appointment) -> None:
        raise RuntimeError('queue is closed')

    appointment = repository.book(booking(), on_booked=explode)

    assert repository.list_all() == [appointment]


def test_concurrent_bookings_for_same_slot_only_one_succeeds(clock: FixedClock) -> None:
    repository = AppointmentRepository(SlowStorage(), clock=clock)
    barrier = threading.Barrier(8)
    outcomes: list[str] = []
    outcomes_lock = threading.Lock()

    def attempt(index: int) -> None:
        barrier.wait()
        try:
            repository.book(booking(patient_name=f'Patient {index}'))
            outcome = 'booked'
        except SlotTaken:
            outcome = 'taken'
        with outcomes_lock:
            outcomes.append(outcome)

    threads = [threading.Thread(target=attempt, args=(index,)) for index in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sorted(outcomes) == ['booked'] + ['taken'] * 7
    assert len(repository.list_all()) == 1


def test_format_created_at_uses_utc_milliseconds() -> None:
    moment = datetime(2024, 6, 1, 10, 0, 0, 123456, tzinfo=timezone(timedelta(hours=5, minutes=30)))

    assert format_created_at(moment) == '2024-06-01T04:30:00.123Z'
