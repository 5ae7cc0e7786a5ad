"""Appointment model definitions."""

from pydantic import BaseModel, Field


class Appointment(BaseModel):
    """Represents a booked appointment slot."""

    id: str
    appointment_date: str
    appointment_time: str
    patient_name: str = Field(alias='patientName')
    patient_email: str | None = Field(default=None, alias='patientEmail')
    patient_phone: str | None = Field(default=None, alias='patientPhone')
    patient_adhaar: str | None = Field(default=None, alias='patientAdhaar')
    concern: str | None = None
    created_at: str = Field(alias='createdAt')

    class Config:
        populate_by_name = True
        frozen = True

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True)


class CreateAppointmentRequest(BaseModel):
    """Booking payload as sent by the booking page.

    Every field is optional here; required fields are checked by the
    repository so a missing one yields the API's own error body.
    """

    appointment_date: str | None = None
    appointment_time: str | None = None
    patient_name: str | None = Field(default=None, alias='patientName')
    patient_email: str | None = Field(default=None, alias='patientEmail')
    patient_phone: str | None = Field(default=None, alias='patientPhone')
    patient_adhaar: str | None = Field(default=None, alias='patientAdhaar')
    concern: str | None = None

    class Config:
        populate_by_name = True
