"""Location service - schedule management and the slot configuration lookup used by booking"""

import logging
from dataclasses import dataclass

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import ConsultationLocation
from ..consultations.exceptions import LocationNotFound, SlotNotFound
from ..tenancy.resolver import TenantStore
from .repository import LocationRepository
from .schemas import (
    ActiveDayResponse,
    LocationCreate,
    LocationResponse,
    TimeSlotResponse,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SlotConfig:
    location_id: int
    location_name: str
    slot_id: int
    capacity: int
    start_time: str
    end_time: str

    @property
    def time_window(self) -> str:
        return f"{self.start_time} - {self.end_time}"


class SlotLookup:
    """Resolves a (location, slot) pair to its capacity and time bounds.

    Always reads from the database: a doctor may change capacity between two
    bookings and the next allocation has to see the new value.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = LocationRepository()

    def lookup(self, tenant: TenantStore, location_id: int, slot_id: int) -> SlotConfig:
        location = self.repo.get_location(self.db, location_id, tenant.doctor_id)
        if not location or not location.is_published:
            raise LocationNotFound("This consultation location does not exist.")

        slot = self.repo.get_slot(self.db, slot_id, location.id)
        # Slots removed from a schedule that already has bookings are kept inactive
        if not slot or not slot.slot_active:
            raise SlotNotFound("This time slot does not exist for the selected location.")

        return SlotConfig(
            location_id=location.id,
            location_name=location.location_name,
            slot_id=slot.id,
            capacity=slot.capacity,
            start_time=slot.start_time,
            end_time=slot.end_time,
        )


def serialize_location(location: ConsultationLocation, active_only: bool = False) -> LocationResponse:
    days = []
    for day in location.active_days:
        if active_only and not day.is_active:
            continue
        slots = [
            TimeSlotResponse(
                id=slot.id,
                slotActive=slot.slot_active,
                startTime=slot.start_time,
                endTime=slot.end_time,
                slotDuration=slot.slot_duration,
                capacity=slot.capacity,
            )
            for slot in day.time_slots
            if slot.slot_active or not active_only
        ]
        # Public listings only show days somebody can actually book
        if active_only and not slots:
            continue
        days.append(ActiveDayResponse(id=day.id, day=day.day, isActive=day.is_active, timeSlots=slots))

    return LocationResponse(
        id=location.id,
        locationName=location.location_name,
        address=location.address,
        locationType=location.location_type,
        roomNumber=location.room_number,
        consultationFee=location.consultation_fee,
        isPublished=location.is_published,
        activeDays=days,
    )


class LocationService:
    """Service layer for a doctor's consultation locations"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = LocationRepository()

    def get_locations(self, tenant: TenantStore) -> list[LocationResponse]:
        return [serialize_location(loc) for loc in self.repo.get_locations(self.db, tenant.doctor_id)]

    def get_public_locations(self, tenant: TenantStore) -> list[LocationResponse]:
        """Published locations with their bookable days and slots"""
        locations = self.repo.get_locations(self.db, tenant.doctor_id, published_only=True)
        return [serialize_location(loc, active_only=True) for loc in locations]

    def get_location(self, location_id: int, tenant: TenantStore) -> ConsultationLocation:
        location = self.repo.get_location(self.db, location_id, tenant.doctor_id)
        if not location:
            raise HTTPException(status_code=404, detail="Consultation location not found")
        return location

    def create_location(self, data: LocationCreate, tenant: TenantStore) -> LocationResponse:
        logger.info(f"📥 Creating consultation location for doctor_id: {tenant.doctor_id}")
        location = self.repo.create_location(
            self.db,
            tenant.doctor_id,
            self.repo.build_days(data.activeDays),
            **self._location_fields(data),
        )
        return serialize_location(location)

    def update_location(self, location_id: int, data: LocationCreate, tenant: TenantStore) -> LocationResponse:
        location = self.get_location(location_id, tenant)
        try:
            days = self.repo.merge_days(self.db, location, data.activeDays)
            location = self.repo.update_location(
                self.db, location, days, **self._location_fields(data)
            )
        except Exception:
            self.db.rollback()
            raise
        logger.info(f"✅ Location {location_id} updated for doctor_id: {tenant.doctor_id}")
        return serialize_location(location)

    def set_published(self, location_id: int, is_published: bool, tenant: TenantStore) -> LocationResponse:
        location = self.get_location(location_id, tenant)
        location = self.repo.set_published(self.db, location, is_published)
        logger.info(
            f"{'📢 Published' if is_published else '🔒 Unpublished'} location {location_id}"
        )
        return serialize_location(location)

    def delete_location(self, location_id: int, tenant: TenantStore) -> dict:
        location = self.get_location(location_id, tenant)

        # Bookings are history and are never deleted, so their location has to stay
        if self.repo.location_has_bookings(self.db, location.id):
            raise HTTPException(
                status_code=409,
                detail="This location has appointments. Unpublish it instead of deleting it.",
            )

        self.repo.delete_location(self.db, location)
        return {"message": "Consultation location deleted"}

    @staticmethod
    def _location_fields(data: LocationCreate) -> dict:
        return {
            "location_name": data.locationName,
            "address": data.address,
            "location_type": data.locationType,
            "room_number": data.roomNumber,
            "consultation_fee": data.consultationFee,
        }
