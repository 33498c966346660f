"""Location repository - Database operations for consultation locations and slots"""

from typing import Optional

from sqlalchemy.orm import Session, selectinload

from ...models import ActiveDay, Consultation, ConsultationLocation, TimeSlot


class LocationRepository:
    """Repository for location database operations"""

    @staticmethod
    def get_locations(db: Session, doctor_id: int, published_only: bool = False) -> list[ConsultationLocation]:
        """Get all locations for a doctor with their days and slots"""
        query = (
            db.query(ConsultationLocation)
            .options(
                selectinload(ConsultationLocation.active_days).selectinload(ActiveDay.time_slots)
            )
            .filter(ConsultationLocation.doctor_id == doctor_id)
        )

        if published_only:
            query = query.filter(ConsultationLocation.is_published.is_(True))

        return query.order_by(ConsultationLocation.id).all()

    @staticmethod
    def get_location(db: Session, location_id: int, doctor_id: int) -> Optional[ConsultationLocation]:
        """Get a location owned by the doctor, re-reading columns from the database"""
        return (
            db.query(ConsultationLocation)
            .populate_existing()
            .filter(
                ConsultationLocation.id == location_id,
                ConsultationLocation.doctor_id == doctor_id,
            )
            .first()
        )

    @staticmethod
    def get_slot(db: Session, slot_id: int, location_id: int) -> Optional[TimeSlot]:
        """Get a time slot that hangs under the given location"""
        return (
            db.query(TimeSlot)
            .populate_existing()
            .join(ActiveDay, TimeSlot.active_day_id == ActiveDay.id)
            .filter(TimeSlot.id == slot_id, ActiveDay.location_id == location_id)
            .first()
        )

    @staticmethod
    def slot_has_bookings(db: Session, slot_id: int) -> bool:
        return (
            db.query(Consultation.id).filter(Consultation.time_slot_id == slot_id).first()
            is not None
        )

    @staticmethod
    def location_has_bookings(db: Session, location_id: int) -> bool:
        return (
            db.query(Consultation.id).filter(Consultation.location_id == location_id).first()
            is not None
        )

    @staticmethod
    def build_days(active_days) -> list[ActiveDay]:
        """Build new ActiveDay/TimeSlot rows from validated schema objects"""
        days = []
        for day_in in active_days:
            day = ActiveDay(day=day_in.day, is_active=day_in.isActive)
            day.time_slots = [
                TimeSlot(
                    slot_active=slot_in.slotActive,
                    start_time=slot_in.startTime,
                    end_time=slot_in.endTime,
                    slot_duration=slot_in.slotDuration,
                    capacity=slot_in.capacity,
                )
                for slot_in in day_in.timeSlots
            ]
            days.append(day)
        return days

    @classmethod
    def merge_days(cls, db: Session, location: ConsultationLocation, active_days) -> list[ActiveDay]:
        """
        Apply a submitted schedule to an existing location.

        Days and slots that carry an id are edited in place, so bookings keep
        pointing at the same slot. Slots left out of the submission are deleted
        when nothing was ever booked against them, otherwise they are kept but
        switched off.
        """
        existing_days = {day.id: day for day in location.active_days}
        merged = []

        for day_in in active_days:
            day = existing_days.pop(day_in.id, None) if day_in.id else None
            if day is None:
                day = ActiveDay()
            day.day = day_in.day
            day.is_active = day_in.isActive

            existing_slots = {slot.id: slot for slot in day.time_slots}
            slots = []
            for slot_in in day_in.timeSlots:
                slot = existing_slots.pop(slot_in.id, None) if slot_in.id else None
                if slot is None:
                    slot = TimeSlot()
                slot.slot_active = slot_in.slotActive
                slot.start_time = slot_in.startTime
                slot.end_time = slot_in.endTime
                slot.slot_duration = slot_in.slotDuration
                slot.capacity = slot_in.capacity
                slots.append(slot)

            day.time_slots = slots + cls._retire_slots(db, existing_slots.values())
            merged.append(day)

        for day in existing_days.values():
            retained = cls._retire_slots(db, day.time_slots)
            if retained:
                day.is_active = False
                day.time_slots = retained
                merged.append(day)

        return merged

    @classmethod
    def _retire_slots(cls, db: Session, slots) -> list[TimeSlot]:
        retained = []
        for slot in slots:
            if cls.slot_has_bookings(db, slot.id):
                slot.slot_active = False
                retained.append(slot)
        return retained

    @staticmethod
    def create_location(db: Session, doctor_id: int, active_days: list[ActiveDay], **location_data) -> ConsultationLocation:
        """Create a location together with its days and slots in one commit"""
        location = ConsultationLocation(doctor_id=doctor_id, **location_data)
        location.active_days = active_days
        db.add(location)
        db.commit()
        db.refresh(location)
        return location

    @staticmethod
    def update_location(
        db: Session, location: ConsultationLocation, active_days: list[ActiveDay], **updates
    ) -> ConsultationLocation:
        """Overwrite location fields and its schedule in one commit"""
        for key, value in updates.items():
            setattr(location, key, value)
        # delete-orphan cascade removes days and slots no longer attached
        location.active_days = active_days
        db.commit()
        db.refresh(location)
        return location

    @staticmethod
    def set_published(db: Session, location: ConsultationLocation, is_published: bool) -> ConsultationLocation:
        location.is_published = is_published
        db.commit()
        db.refresh(location)
        return location

    @staticmethod
    def delete_location(db: Session, location: ConsultationLocation) -> None:
        """Delete a location; days and slots go with it"""
        db.delete(location)
        db.commit()
