"""Patient repository - Database operations for a doctor's patients"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Patient
from ..tenancy.resolver import TenantStore


class PatientRepository:
    @staticmethod
    def get_patient(db: Session, tenant: TenantStore, patient_id: int) -> Optional[Patient]:
        return tenant.get_patient(db, patient_id)

    @staticmethod
    def create_patient(db: Session, tenant: TenantStore, **fields) -> Patient:
        patient = Patient(doctor_id=tenant.doctor_id, **fields)
        db.add(patient)
        db.commit()
        db.refresh(patient)
        return patient

    @staticmethod
    def update_patient(db: Session, patient: Patient, **fields) -> Patient:
        for key, value in fields.items():
            setattr(patient, key, value)
        db.commit()
        db.refresh(patient)
        return patient
