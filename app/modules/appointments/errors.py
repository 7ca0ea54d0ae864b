# app/modules/appointments/errors.py
# Service-level errors; routers map them to HTTP status codes.


class BookingValidationError(Exception):
    """
    Request is well-formed but not bookable (missing beneficiary data,
    slot not offered, confirmation missing, ...). Nothing was written.
    """


class AuthorizationError(Exception):
    """
    Actor is not allowed to perform this operation on this appointment
    """


class AppointmentNotFound(Exception):
    """
    No appointment found
    """


class InvalidTransition(Exception):
    """
    Appointment status does not allow the requested transition
    """


class SlotConflictError(Exception):
    """
    A unique constraint rejected the write: the slot (or the doctor/patient
    pair) already has a scheduled appointment.
    """


class StorageError(Exception):
    """
    Any other persistence failure. The attempt is abandoned, not retried.
    """
