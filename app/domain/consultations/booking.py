"""
Booking transaction coordinator.

Drives one public booking request through human verification, tenant
resolution, slot lookup, duplicate detection and serial allocation, then
commits. Business-rule conflicts come back as a ``BookingRejection`` instead
of being raised, so the router only has to turn the outcome into a response.
"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from fastapi import BackgroundTasks
from sqlalchemy.orm import Session

from ...config import BOOKING_MAX_ALLOCATION_ATTEMPTS
from ...email_service import send_appointment_confirmation
from ...models import BOOKED
from ...turnstile import verify_turnstile
from ..locations.service import SlotConfig, SlotLookup
from ..tenancy.resolver import TenantResolver, TenantStore
from .allocator import SerialAllocator
from .exceptions import BookingError, DuplicateBooking, VerificationFailed
from .repository import ConsultationRepository
from .schemas import (
    BookingConfirmation,
    BookingRequest,
    LocationInfo,
    ProviderInfo,
    RequesterInfo,
    SlotInfo,
)

logger = logging.getLogger(__name__)

Verifier = Callable[[Optional[str], Optional[str]], Awaitable[bool]]
Notifier = Callable[[BookingConfirmation, str], Awaitable[Any]]


@dataclass
class BookingRejection:
    reason: str
    title: str
    message: str
    status_code: int
    detail_key: str = "detail"
    detail: Optional[dict] = None

    @classmethod
    def from_error(cls, error: BookingError) -> "BookingRejection":
        return cls(
            reason=error.reason,
            title=error.title,
            message=error.message,
            status_code=error.status_code,
            detail_key=error.detail_key,
            detail=error.detail,
        )

    @classmethod
    def internal_error(cls) -> "BookingRejection":
        return cls(
            reason="internal_error",
            title="Something Went Wrong",
            message="We could not book your appointment. Please try again later.",
            status_code=500,
        )

    def to_payload(self) -> dict:
        payload = {
            "success": False,
            "reason": self.reason,
            "title": self.title,
            "message": self.message,
        }
        if self.detail:
            payload[self.detail_key] = self.detail
        return payload


@dataclass
class BookingOutcome:
    confirmation: Optional[BookingConfirmation] = None
    rejection: Optional[BookingRejection] = None

    @property
    def ok(self) -> bool:
        return self.confirmation is not None


class BookingCoordinator:
    def __init__(
        self,
        db: Session,
        verifier: Optional[Verifier] = None,
        notifier: Optional[Notifier] = None,
        max_attempts: Optional[int] = None,
    ):
        self.db = db
        self.verifier = verifier or verify_turnstile
        self.notifier = notifier or send_appointment_confirmation
        self.repo = ConsultationRepository()
        self.allocator = SerialAllocator(
            max_attempts=max_attempts or BOOKING_MAX_ALLOCATION_ATTEMPTS, repo=self.repo
        )

    async def book(
        self,
        request: BookingRequest,
        provider_id: str,
        client_ip: Optional[str] = None,
        background_tasks: Optional[BackgroundTasks] = None,
    ) -> BookingOutcome:
        """Book a consultation; never leaves a partial booking behind"""
        try:
            confirmation = await self._book(request, provider_id, client_ip)
        except BookingError as e:
            self.db.rollback()
            logger.info(f"🚫 Booking rejected for provider {provider_id}: {e.reason}")
            return BookingOutcome(rejection=BookingRejection.from_error(e))
        except Exception:
            self.db.rollback()
            logger.exception(f"❌ Booking failed for provider {provider_id}")
            return BookingOutcome(rejection=BookingRejection.internal_error())

        logger.info(
            f"✅ Booked consultation {confirmation.consultationId} for provider {provider_id} "
            f"- serial {confirmation.serialNo} on {confirmation.date} ({confirmation.slotTimeWindow})"
        )

        if request.email:
            if background_tasks is not None:
                background_tasks.add_task(self._notify, confirmation, request.email)
            else:
                await self._notify(confirmation, request.email)

        return BookingOutcome(confirmation=confirmation)

    async def _book(
        self, request: BookingRequest, provider_id: str, client_ip: Optional[str]
    ) -> BookingConfirmation:
        if not await self.verifier(request.verificationToken, client_ip):
            raise VerificationFailed(
                "We could not verify that you are human. Please complete the check and try again."
            )

        tenant = TenantResolver(self.db).resolve(provider_id)
        consultation_date = request.date.date()
        slot_lookup = SlotLookup(self.db)

        def prepare_attempt() -> SlotConfig:
            slot = slot_lookup.lookup(tenant, request.consultLocationId, request.timeSlotId)
            self._reject_duplicate(tenant, request, slot)
            return slot

        consultation, slot = self.allocator.allocate(
            self.db,
            tenant,
            consultation_date,
            prepare_attempt,
            {
                "name": request.name,
                "age": request.age,
                "sex": request.sex,
                "phone": request.phone,
                "email": request.email,
                "address": request.address,
                # Stored naive, as the wall-clock time the requester picked
                "scheduled_at": request.date.replace(tzinfo=None),
                "appointment_status": BOOKED,
            },
        )

        confirmation = BookingConfirmation(
            consultationId=consultation.id,
            status=consultation.appointment_status,
            serialNo=consultation.serial_no,
            date=consultation_date.isoformat(),
            slotTimeWindow=slot.time_window,
            requester=RequesterInfo(
                name=request.name,
                age=request.age,
                sex=request.sex,
                phone=request.phone,
                email=request.email,
                address=request.address,
            ),
            provider=ProviderInfo(name=tenant.doctor_name, providerId=tenant.provider_id),
            location=LocationInfo(id=slot.location_id, name=slot.location_name),
            slot=SlotInfo(
                id=slot.slot_id,
                startTime=slot.start_time,
                endTime=slot.end_time,
                capacity=slot.capacity,
            ),
        )

        self.db.commit()
        return confirmation

    def _reject_duplicate(self, tenant: TenantStore, request: BookingRequest, slot: SlotConfig):
        consultation_date = request.date.date()
        existing = self.repo.find_conflict(
            self.db, tenant, request.phone, consultation_date, slot.location_id, slot.slot_id
        )
        if existing:
            raise DuplicateBooking(
                f"You already have an appointment booked for this slot on "
                f"{consultation_date.isoformat()} with Dr. {tenant.doctor_name}.",
                detail={
                    "serialNo": existing.serial_no,
                    "date": existing.consultation_date.isoformat(),
                    "location": slot.location_name,
                    "slotTime": slot.time_window,
                },
            )

    async def _notify(self, confirmation: BookingConfirmation, to_email: str):
        try:
            await self.notifier(confirmation, to_email)
        except Exception as e:
            logger.error(
                f"❌ Confirmation email for consultation {confirmation.consultationId} failed: {str(e)}"
            )
