"""Patient router - FastAPI endpoints for a doctor's patients"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ...auth import get_current_tenant
from ...database import get_db
from ..consultations.exceptions import BookingError
from ..tenancy.resolver import TenantStore
from .schemas import PatientResponse, RecentAppointmentUpdate
from .service import PatientService, serialize_patient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/patients", tags=["Patients"])


def get_patient_service(db: Session = Depends(get_db)) -> PatientService:
    """Dependency injection for PatientService"""
    return PatientService(db)


@router.get("/{patient_id}", response_model=PatientResponse)
async def get_patient(
    patient_id: int,
    tenant: TenantStore = Depends(get_current_tenant),
    service: PatientService = Depends(get_patient_service),
):
    try:
        return serialize_patient(service.get_patient(tenant, patient_id))
    except BookingError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from e


@router.get("/{patient_id}/consultations")
async def get_patient_consultations(
    patient_id: int,
    tenant: TenantStore = Depends(get_current_tenant),
    service: PatientService = Depends(get_patient_service),
):
    """Completed consultations of a patient, newest first"""
    try:
        return service.list_patient_consultations(tenant, patient_id)
    except BookingError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from e


@router.put("/{patient_id}/recent-appointment", response_model=PatientResponse)
async def update_recent_appointment(
    patient_id: int,
    data: RecentAppointmentUpdate,
    tenant: TenantStore = Depends(get_current_tenant),
    service: PatientService = Depends(get_patient_service),
):
    try:
        return service.update_recent_appointment(tenant, patient_id, data.date)
    except BookingError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from e
