"""Consultation repository - Database operations for bookings"""

import datetime as dt
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import CANCELLED, COMPLETED, Consultation
from ..tenancy.resolver import TenantStore


class ConsultationRepository:
    """Repository for consultation database operations.

    Every method takes the resolved ``TenantStore``; rows of other doctors are
    never visible through it.
    """

    @staticmethod
    def find_conflict(
        db: Session,
        tenant: TenantStore,
        phone: str,
        consultation_date: dt.date,
        location_id: int,
        slot_id: int,
    ) -> Optional[Consultation]:
        """Active booking by the same phone for the same date, location and slot.

        Best-effort only: requesters are not authenticated and the phone is
        not part of any unique constraint, so two concurrent requests with the
        same phone can both pass this check and both be booked.
        """
        return (
            tenant.consultations(db)
            .filter(
                Consultation.phone == phone,
                Consultation.consultation_date == consultation_date,
                Consultation.location_id == location_id,
                Consultation.time_slot_id == slot_id,
                Consultation.appointment_status != CANCELLED,
            )
            .order_by(Consultation.serial_no)
            .first()
        )

    @staticmethod
    def max_serial(
        db: Session,
        tenant: TenantStore,
        consultation_date: dt.date,
        location_id: int,
        slot_id: int,
    ) -> int:
        """Highest serial handed out for the slot on that date, cancelled bookings included"""
        value = (
            db.query(func.coalesce(func.max(Consultation.serial_no), 0))
            .filter(
                Consultation.doctor_id == tenant.doctor_id,
                Consultation.consultation_date == consultation_date,
                Consultation.location_id == location_id,
                Consultation.time_slot_id == slot_id,
            )
            .scalar()
        )
        return int(value or 0)

    @staticmethod
    def add_consultation(db: Session, tenant: TenantStore, **fields) -> Consultation:
        """Stage a new booking and flush it so constraint violations surface now"""
        consultation = Consultation(doctor_id=tenant.doctor_id, **fields)
        db.add(consultation)
        db.flush()
        return consultation

    @staticmethod
    def list_consultations(
        db: Session,
        tenant: TenantStore,
        consultation_date: Optional[dt.date] = None,
        location_id: Optional[int] = None,
        slot_id: Optional[int] = None,
        status: Optional[str] = None,
    ) -> list[Consultation]:
        """The doctor's bookings, grouped by day, location and slot in serial order"""
        query = tenant.consultations(db)
        if consultation_date is not None:
            query = query.filter(Consultation.consultation_date == consultation_date)
        if location_id is not None:
            query = query.filter(Consultation.location_id == location_id)
        if slot_id is not None:
            query = query.filter(Consultation.time_slot_id == slot_id)
        if status:
            query = query.filter(Consultation.appointment_status == status)
        return query.order_by(
            Consultation.consultation_date,
            Consultation.location_id,
            Consultation.time_slot_id,
            Consultation.serial_no,
        ).all()

    @staticmethod
    def get_consultation(db: Session, tenant: TenantStore, consultation_id: int) -> Optional[Consultation]:
        return tenant.get_consultation(db, consultation_id)

    @staticmethod
    def update_consultation(db: Session, consultation: Consultation, updates: dict) -> Consultation:
        """Apply a field mask; nulls in the mask are written as nulls"""
        for column, value in updates.items():
            setattr(consultation, column, value)

        db.commit()
        db.refresh(consultation)
        return consultation

    @staticmethod
    def get_completed_for_patient(
        db: Session, tenant: TenantStore, patient_id: int, exclude_id: Optional[int] = None
    ) -> list[Consultation]:
        """Finished consultations of one patient, newest first"""
        query = tenant.consultations(db).filter(
            Consultation.patient_id == patient_id,
            Consultation.appointment_status == COMPLETED,
        )
        if exclude_id is not None:
            query = query.filter(Consultation.id != exclude_id)
        return query.order_by(Consultation.consultation_date.desc(), Consultation.id.desc()).all()
