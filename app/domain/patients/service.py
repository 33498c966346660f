"""Patient service - patient records and their link to consultations"""

import datetime as dt
import logging

from sqlalchemy.orm import Session

from ...models import Patient
from ..consultations.exceptions import ConsultationNotFound, PatientNotFound
from ..consultations.repository import ConsultationRepository
from ..consultations.service import ConsultationService, serialize_consultation
from ..tenancy.resolver import TenantStore
from .repository import PatientRepository
from .schemas import PatientLinkRequest, PatientResponse

logger = logging.getLogger(__name__)

# Fields refreshed on an existing patient when a new consultation is linked
VISIT_FIELDS = {
    "height": "height",
    "weight": "weight",
    "bloodGroup": "blood_group",
    "disease": "disease",
}


def serialize_patient(p: Patient) -> PatientResponse:
    return PatientResponse(
        id=p.id,
        name=p.name,
        imageUrl=p.image_url,
        age=p.age,
        sex=p.sex,
        address=p.address,
        phone=p.phone,
        email=p.email,
        height=p.height,
        weight=p.weight,
        bloodGroup=p.blood_group,
        dob=p.dob,
        consultLocation=p.consult_location,
        treatmentStatus=p.treatment_status,
        disease=p.disease,
        registrationDate=p.registration_date,
        recentAppointmentDate=p.recent_appointment_date,
        lastConsultationId=p.last_consultation_id,
    )


class PatientService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = PatientRepository()
        self.consultations = ConsultationService(db)

    def get_patient(self, tenant: TenantStore, patient_id: int) -> Patient:
        patient = self.repo.get_patient(self.db, tenant, patient_id)
        if not patient:
            raise PatientNotFound("Patient not found")
        return patient

    def create_and_link(self, tenant: TenantStore, consultation_id: int, data: PatientLinkRequest) -> dict:
        """Create or refresh a patient record and attach it to a consultation"""
        consultation = self.consultations.get_consultation(tenant, consultation_id)
        today = dt.date.today()

        if data.patientId is not None:
            patient = self.get_patient(tenant, data.patientId)
            fields = {
                column: getattr(data, key)
                for key, column in VISIT_FIELDS.items()
                if getattr(data, key) is not None
            }
            patient = self.repo.update_patient(
                self.db,
                patient,
                last_consultation_id=consultation.id,
                recent_appointment_date=today,
                **fields,
            )
            logger.info(f"🔗 Existing patient {patient.id} linked to consultation {consultation_id}")
        else:
            patient = self.repo.create_patient(
                self.db,
                tenant,
                last_consultation_id=consultation.id,
                name=data.name.strip(),
                image_url=data.imageUrl,
                age=data.age,
                sex=data.sex,
                address=data.address,
                phone=data.phone,
                email=data.email,
                height=data.height,
                weight=data.weight,
                blood_group=data.bloodGroup,
                dob=data.dob,
                consult_location=data.consultLocation,
                treatment_status=data.treatmentStatus,
                disease=data.disease,
                registration_date=today,
                recent_appointment_date=today,
            )
            logger.info(f"🆕 Patient {patient.id} created for consultation {consultation_id}")

        fieldset = {"patientId": patient.id}
        if data.consultType is not None:
            fieldset["consultType"] = data.consultType
        update = self.consultations.update(tenant, consultation_id, fieldset)

        return {
            "message": "Patient linked to consultation",
            "patientId": patient.id,
            "consultType": data.consultType,
            "update": update.to_dict(),
        }

    def list_patient_consultations(self, tenant: TenantStore, patient_id: int) -> list[dict]:
        """Completed consultations of a patient, newest first"""
        patient = self.get_patient(tenant, patient_id)
        rows = ConsultationRepository.get_completed_for_patient(self.db, tenant, patient.id)
        return [serialize_consultation(c) for c in rows]

    def update_recent_appointment(self, tenant: TenantStore, patient_id: int, date: dt.date) -> PatientResponse:
        patient = self.get_patient(tenant, patient_id)
        patient = self.repo.update_patient(self.db, patient, recent_appointment_date=date)
        return serialize_patient(patient)
