"""Booking domain errors.

Every error carries a machine-readable ``reason`` (sent to the client as-is),
a short ``title`` and a human-readable ``message`` for the booking UI, the
HTTP status it maps to, and optional structured ``detail``.
"""

from typing import Any, Optional


class BookingError(Exception):
    reason = "internal_error"
    title = "Something Went Wrong"
    status_code = 500
    detail_key = "detail"

    def __init__(self, message: str, detail: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail


class VerificationFailed(BookingError):
    reason = "verification_failed"
    title = "Verification Failed"
    status_code = 400


class ProviderNotFound(BookingError):
    reason = "provider_not_found"
    title = "Doctor Not Found"
    status_code = 403


class LocationNotFound(BookingError):
    reason = "location_not_found"
    title = "Location Not Found"
    status_code = 404


class SlotNotFound(BookingError):
    reason = "slot_not_found"
    title = "Time Slot Not Found"
    status_code = 404


class DuplicateBooking(BookingError):
    reason = "duplicate_appointment"
    title = "Appointment Already Exists"
    status_code = 409
    detail_key = "existingAppointment"


class SlotFull(BookingError):
    reason = "slot_full"
    title = "All Slots Are Booked"
    status_code = 409
    detail_key = "slotInfo"


class BookingConflict(BookingError):
    """Serial allocation kept losing races; safe for the client to retry."""

    reason = "booking_conflict"
    title = "Please Try Again"
    status_code = 503


class ConsultationNotFound(BookingError):
    reason = "consultation_not_found"
    title = "Appointment Not Found"
    status_code = 404


class PatientNotFound(BookingError):
    reason = "patient_not_found"
    title = "Patient Not Found"
    status_code = 404


class NoUpdatableFields(BookingError):
    reason = "no_fields"
    title = "Nothing To Update"
    status_code = 400
