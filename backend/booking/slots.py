from collections.abc import Iterable

from backend.models.appointment import Appointment


def is_slot_taken(appointments: Iterable[Appointment], appointment_date: str, appointment_time: str) -> bool:
    # Literal comparison: "2024-01-01" and "2024-1-1" are different slots.
    return any(
        appointment.appointment_date == appointment_date
        and appointment.appointment_time == appointment_time
        for appointment in appointments
    )


def next_appointment_id(appointments: Iterable[Appointment], now_ms: int) -> str:
    """Return a millisecond timestamp id greater than every numeric id in use."""
    candidate = now_ms

    for appointment in appointments:
        if appointment.id.isdigit() and int(appointment.id) >= candidate:
            candidate = int(appointment.id) + 1

    return str(candidate)
