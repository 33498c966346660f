"""Tenant resolution - maps a provider id to the records it owns.

Consultations and patients of every doctor live in shared tables keyed by
``doctor_id``. A ``TenantStore`` is the only way the rest of the code reaches
those tables, so every query it hands out is already filtered on the tenant.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Query, Session

from ...models import Consultation, Doctor, Patient
from ..consultations.exceptions import ProviderNotFound

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TenantStore:
    doctor_id: int
    provider_id: str
    doctor_name: str
    doctor_email: Optional[str] = None

    def consultations(self, db: Session) -> Query:
        return db.query(Consultation).filter(Consultation.doctor_id == self.doctor_id)

    def patients(self, db: Session) -> Query:
        return db.query(Patient).filter(Patient.doctor_id == self.doctor_id)

    def get_consultation(self, db: Session, consultation_id: int) -> Optional[Consultation]:
        return self.consultations(db).filter(Consultation.id == consultation_id).first()

    def get_patient(self, db: Session, patient_id: int) -> Optional[Patient]:
        return self.patients(db).filter(Patient.id == patient_id).first()


class TenantResolver:
    def __init__(self, db: Session):
        self.db = db

    def resolve(self, provider_id: Optional[str]) -> TenantStore:
        """Resolve a registration number to its tenant store or raise ProviderNotFound"""
        normalized = (provider_id or "").strip().upper()
        doctor = None
        if normalized:
            doctor = (
                self.db.query(Doctor).filter(Doctor.registration_no == normalized).first()
            )

        if not doctor:
            logger.warning(f"⚠️ Unknown provider id: {provider_id!r}")
            raise ProviderNotFound("We could not find this doctor. Please check the booking link.")

        return self.for_doctor(doctor)

    @staticmethod
    def for_doctor(doctor: Doctor) -> TenantStore:
        return TenantStore(
            doctor_id=doctor.id,
            provider_id=doctor.registration_no,
            doctor_name=doctor.name,
            doctor_email=doctor.email,
        )
