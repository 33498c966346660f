"""Consultation service - record updates, cancellation and detail views"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy.orm import Session

from ...models import CANCELLED, Consultation
from ..tenancy.resolver import TenantStore
from .exceptions import ConsultationNotFound, NoUpdatableFields, PatientNotFound
from .repository import ConsultationRepository

logger = logging.getLogger(__name__)

# Wire name -> column. Anything not listed here is ignored by updates.
UPDATABLE_FIELDS = {
    "name": "name",
    "age": "age",
    "sex": "sex",
    "phone": "phone",
    "email": "email",
    "address": "address",
    "patientId": "patient_id",
    "patientCondition": "patient_condition",
    "appointmentStatus": "appointment_status",
    "audioURL": "audio_url",
    "medicalTests": "medical_tests",
    "medicalReports": "medical_reports",
    "medicalFiles": "medical_files",
    "reportComments": "report_comments",
    "patientAdvice": "patient_advice",
    "medicine": "medicine",
    "disease": "disease",
    "recoveryStatus": "recovery_status",
    "followUp": "follow_up",
    "prescription": "prescription",
    "medical_report": "medical_report",
    "symptoms": "symptoms",
    "consultationFee": "consultation_fee",
    "paymentStatus": "payment_status",
    "consultType": "consult_type",
    # Day the visit actually took place; the booking's serial group never moves
    "date": "visit_date",
}


@dataclass
class UpdateResult:
    consultation_id: int
    updated_fields: list[str] = field(default_factory=list)
    patient_sync: Optional[str] = None
    status: str = "updated"

    def to_dict(self) -> dict:
        result = {
            "status": self.status,
            "consultationId": self.consultation_id,
            "updatedFields": self.updated_fields,
        }
        if self.patient_sync:
            result["patientSync"] = self.patient_sync
        return result


def serialize_consultation(c: Consultation) -> dict:
    return {
        "id": c.id,
        "serialNo": c.serial_no,
        "name": c.name,
        "age": c.age,
        "sex": c.sex,
        "phone": c.phone,
        "email": c.email,
        "address": c.address,
        "date": c.consultation_date.isoformat() if c.consultation_date else None,
        "scheduledAt": c.scheduled_at.isoformat() if c.scheduled_at else None,
        "consultLocationId": c.location_id,
        "locationName": c.location.location_name if c.location else None,
        "timeSlotId": c.time_slot_id,
        "slotTimeWindow": (
            f"{c.time_slot.start_time} - {c.time_slot.end_time}" if c.time_slot else None
        ),
        "patientId": c.patient_id,
        "appointmentStatus": c.appointment_status,
        "consultType": c.consult_type,
        "patientCondition": c.patient_condition,
        "consultationFee": c.consultation_fee,
        "paymentStatus": c.payment_status,
        "audioURL": c.audio_url,
        "medicalTests": c.medical_tests,
        "medicalReports": c.medical_reports,
        "medicalFiles": c.medical_files,
        "reportComments": c.report_comments,
        "patientAdvice": c.patient_advice,
        "medicine": c.medicine,
        "disease": c.disease,
        "recoveryStatus": c.recovery_status,
        "followUp": c.follow_up.isoformat() if c.follow_up else None,
        "prescription": c.prescription,
        "medical_report": c.medical_report,
        "symptoms": c.symptoms,
        "visitDate": c.visit_date.isoformat() if c.visit_date else None,
    }


class ConsultationService:
    """Service layer for existing consultation records"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ConsultationRepository()

    def get_consultation(self, tenant: TenantStore, consultation_id: int) -> Consultation:
        consultation = self.repo.get_consultation(self.db, tenant, consultation_id)
        if not consultation:
            raise ConsultationNotFound("Consultation not found")
        return consultation

    def get_consultation_detail(self, tenant: TenantStore, consultation_id: int) -> dict:
        return serialize_consultation(self.get_consultation(tenant, consultation_id))

    def list_consultations(
        self,
        tenant: TenantStore,
        consultation_date=None,
        location_id=None,
        slot_id=None,
        status=None,
    ) -> list[dict]:
        rows = self.repo.list_consultations(
            self.db, tenant, consultation_date, location_id, slot_id, status
        )
        return [serialize_consultation(c) for c in rows]

    def update(self, tenant: TenantStore, consultation_id: int, fieldset: dict) -> UpdateResult:
        """
        Apply a sparse update.

        ``fieldset`` maps wire names to values and holds only the fields the
        caller sent. When it carries both ``patientId`` and ``date`` the linked
        patient's most recent appointment date is refreshed after the main
        commit; a failure there is reported in ``patient_sync`` and does not
        undo the consultation update.
        """
        updates = {
            UPDATABLE_FIELDS[key]: value for key, value in fieldset.items() if key in UPDATABLE_FIELDS
        }
        if not updates:
            raise NoUpdatableFields("No valid fields provided for update")

        consultation = self.get_consultation(tenant, consultation_id)

        patient_id = updates.get("patient_id")
        if patient_id is not None and not tenant.get_patient(self.db, patient_id):
            raise PatientNotFound("Patient not found")

        try:
            self.repo.update_consultation(self.db, consultation, updates)
        except Exception:
            self.db.rollback()
            logger.exception(f"❌ Failed to update consultation {consultation_id}")
            raise

        logger.info(
            f"✅ Consultation {consultation_id} updated for doctor {tenant.provider_id}: "
            f"{', '.join(sorted(updates))}"
        )
        result = UpdateResult(
            consultation_id=consultation_id,
            updated_fields=sorted(k for k in fieldset if k in UPDATABLE_FIELDS),
        )

        if patient_id is not None and updates.get("visit_date"):
            result.patient_sync = self._sync_patient(
                tenant, patient_id, updates["visit_date"], updates.get("disease")
            )
        return result

    def cancel(self, tenant: TenantStore, consultation_id: int) -> UpdateResult:
        """Cancel a booking; its serial number stays taken"""
        return self.update(tenant, consultation_id, {"appointmentStatus": CANCELLED})

    def _sync_patient(self, tenant: TenantStore, patient_id: int, visit_date, disease) -> str:
        try:
            patient = tenant.get_patient(self.db, patient_id)
            if not patient:
                return "skipped"
            patient.recent_appointment_date = visit_date
            if disease:
                patient.disease = disease
            self.db.commit()
            return "updated"
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Failed to sync patient {patient_id} after consultation update: {str(e)}")
            return "failed"
