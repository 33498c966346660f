"""
Serial number allocation with a hard capacity ceiling.

Serials for one (doctor, date, location, slot) group are 1..k with k never
above the slot capacity. The next serial is derived from rows already in the
table and the insert is guarded by the ``uq_consultation_slot_serial`` unique
constraint: when two requests derive the same serial, the slower insert fails,
its transaction is rolled back and the serial is derived again. No lock is
held between requests, and a failed attempt leaves nothing behind, so serials
are only ever consumed by committed bookings.
"""

import datetime as dt
import logging
from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...models import Consultation
from ..locations.service import SlotConfig
from ..tenancy.resolver import TenantStore
from .exceptions import BookingConflict, SlotFull
from .repository import ConsultationRepository

logger = logging.getLogger(__name__)

SERIAL_CONSTRAINT = "uq_consultation_slot_serial"


def is_serial_collision(exc: IntegrityError) -> bool:
    """True when the integrity error comes from the slot serial unique constraint"""
    message = str(exc.orig)
    # Postgres and MySQL name the constraint, SQLite lists its columns
    return SERIAL_CONSTRAINT in message or "consultations.serial_no" in message


class SerialAllocator:
    def __init__(self, max_attempts: int = 3, repo: Optional[ConsultationRepository] = None):
        self.max_attempts = max(1, max_attempts)
        self.repo = repo or ConsultationRepository()

    def next_serial(
        self, db: Session, tenant: TenantStore, consultation_date: dt.date, slot: SlotConfig
    ) -> int:
        """Next free serial for the group, or SlotFull once capacity is used up"""
        serial = (
            self.repo.max_serial(db, tenant, consultation_date, slot.location_id, slot.slot_id) + 1
        )

        # capacity <= 0 means the slot is closed
        if serial > slot.capacity:
            raise SlotFull(
                f"Sorry, all {max(slot.capacity, 0)} appointments for "
                f"{consultation_date.isoformat()} ({slot.time_window}) are already booked.",
                detail={
                    "date": consultation_date.isoformat(),
                    "startTime": slot.start_time,
                    "endTime": slot.end_time,
                    "capacity": slot.capacity,
                    "location": slot.location_name,
                },
            )
        return serial

    def allocate(
        self,
        db: Session,
        tenant: TenantStore,
        consultation_date: dt.date,
        prepare_attempt: Callable[[], SlotConfig],
        fields: dict,
    ) -> tuple[Consultation, SlotConfig]:
        """
        Insert a booking under the next serial number.

        ``prepare_attempt`` runs at the start of every attempt and returns the
        slot configuration read fresh from the database (the duplicate check
        runs there too), so a retry sees both capacity edits and the bookings
        committed by the request that won. The row is flushed but not
        committed; the caller owns the commit.
        """
        for attempt in range(1, self.max_attempts + 1):
            slot = prepare_attempt()
            serial = self.next_serial(db, tenant, consultation_date, slot)
            try:
                consultation = self.repo.add_consultation(
                    db,
                    tenant,
                    serial_no=serial,
                    consultation_date=consultation_date,
                    location_id=slot.location_id,
                    time_slot_id=slot.slot_id,
                    **fields,
                )
                return consultation, slot
            except IntegrityError as e:
                db.rollback()
                if not is_serial_collision(e):
                    raise
                logger.warning(
                    f"🔁 Serial {serial} taken for doctor {tenant.provider_id} "
                    f"{consultation_date} slot {slot.slot_id} (attempt {attempt}/{self.max_attempts})"
                )

        logger.error(
            f"❌ Serial allocation gave up after {self.max_attempts} attempts "
            f"for doctor {tenant.provider_id} on {consultation_date}"
        )
        raise BookingConflict(
            "This time slot is very busy right now. Please try booking again in a moment."
        )
