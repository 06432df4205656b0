"""Domain errors raised by the appointment store and workflows."""


class AppointmentError(Exception):
    """Base class for failures surfaced verbatim to the client."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(AppointmentError):
    status_code = 404

    def __init__(self, message: str = 'Appointment not found'):
        super().__init__(message)


class AlreadyBooked(AppointmentError):
    status_code = 409

    def __init__(self, message: str = 'Appointment is already booked'):
        super().__init__(message)


class TooLate(AppointmentError):
    status_code = 400

    def __init__(self, message: str = 'Appointments must be booked at least 24 hours in advance'):
        super().__init__(message)


class PermissionDenied(AppointmentError):
    status_code = 403

    def __init__(self, message: str = 'Only admins can manage appointment slots.'):
        super().__init__(message)


class AuthFailure(AppointmentError):
    """Identity failure carrying a provider-style code and a localized message."""

    def __init__(self, code: str, message: str, status_code: int = 401):
        super().__init__(message)
        self.code = code
        self.status_code = status_code
