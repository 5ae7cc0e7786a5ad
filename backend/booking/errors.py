class BookingError(Exception):
    """A booking request rejected before anything was stored."""

    message = 'Failed to save appointment'

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)
        self.message = message or self.message


class MissingRequiredFields(BookingError):
    message = 'Missing required fields'


class SlotTaken(BookingError):
    message = 'This time slot is already booked.'
