class BookingError(Exception):
    """Base for expected, caller-facing failures.

    ``code`` is stable and machine readable; the message is safe to show to a
    member and never contains internal identifiers.
    """

    code = "booking_error"
    default_message = "The request could not be completed."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFoundError(BookingError):
    code = "not_found"
    default_message = "Not found."


class ForbiddenError(BookingError):
    code = "forbidden"
    default_message = "You do not have access to this organisation."


class BookingsClosedError(BookingError):
    code = "bookings_closed"
    default_message = "Bookings are currently paused for this event."


class EventPastError(BookingError):
    code = "event_past"
    default_message = "This pickup date has passed."


class InvalidSlotError(BookingError):
    code = "invalid_slot"
    default_message = "That pickup time is not one of this event's time slots."


class DuplicatePhoneError(BookingError):
    code = "duplicate_phone"
    default_message = "You already have a booking for this pickup date using that phone number."


class CapacityExceededError(BookingError):
    code = "capacity_exceeded"
    default_message = "That time slot is full for your group size. Please choose another time."


class InvalidEventConfigError(BookingError):
    code = "invalid_event_config"
    default_message = "The event settings are not valid."


class SlugTakenError(BookingError):
    code = "slug_taken"
    default_message = "That URL is already taken. Please choose another."


class InvalidOrganisationError(BookingError):
    code = "invalid_organisation"
    default_message = "Provide a name and a URL made of letters, numbers and dashes."
