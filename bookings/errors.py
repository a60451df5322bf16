class BookingError(Exception):
    """Base error for the booking core. Routes turn it into a JSON error."""

    status_code = 400
    message = "Booking error"

    def __init__(self, message=None):
        if message:
            self.message = message
        super().__init__(self.message)


class CapacityExceeded(BookingError):
    status_code = 409
    message = "Capacity exceeded"


class AlreadyBooked(BookingError):
    status_code = 409
    message = "Already booked"


class DateNotFound(BookingError):
    status_code = 404
    message = "Experience date not found"


class DateInPast(BookingError):
    status_code = 400
    message = "Cannot book past or started dates"


class BookingNotFound(BookingError):
    status_code = 404
    message = "Booking not found"


class ProfileNotFound(BookingError):
    status_code = 404
    message = "Profile not found"


class ExperienceNotFound(BookingError):
    status_code = 404
    message = "Experience not found"


class TransportFailure(BookingError):
    status_code = 502
    message = "Mail transport failure"
