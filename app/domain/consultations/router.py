"""Consultation router - public booking and the doctor's record endpoints"""

import datetime as dt
import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ...auth import get_current_tenant
from ...database import get_db
from ...rate_limiter import get_client_ip, rate_limit_booking_per_ip
from ..patients.schemas import PatientLinkRequest
from ..patients.service import PatientService
from ..tenancy.resolver import TenantStore
from .booking import BookingCoordinator
from .exceptions import BookingError, NoUpdatableFields
from .schemas import BookingRequest, ConsultationUpdate
from .service import ConsultationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/consultations", tags=["Consultations"])


def get_booking_coordinator(db: Session = Depends(get_db)) -> BookingCoordinator:
    """Dependency injection for BookingCoordinator"""
    return BookingCoordinator(db)


def get_consultation_service(db: Session = Depends(get_db)) -> ConsultationService:
    """Dependency injection for ConsultationService"""
    return ConsultationService(db)


def get_patient_service(db: Session = Depends(get_db)) -> PatientService:
    return PatientService(db)


# ============================================================================
# PUBLIC BOOKING
# ============================================================================


@router.post("/public/{provider_id}/book", status_code=201)
async def book_consultation(
    provider_id: str,
    data: BookingRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    coordinator: BookingCoordinator = Depends(get_booking_coordinator),
    _: None = Depends(rate_limit_booking_per_ip),
):
    """Book a consultation slot from a doctor's public booking page (no auth)"""
    outcome = await coordinator.book(
        data,
        provider_id,
        client_ip=get_client_ip(request),
        background_tasks=background_tasks,
    )

    if not outcome.ok:
        rejection = outcome.rejection
        return JSONResponse(status_code=rejection.status_code, content=rejection.to_payload())

    return {
        "success": True,
        "message": "Consultation is booked successfully",
        "appointment": outcome.confirmation.model_dump(),
    }


# ============================================================================
# DOCTOR RECORD OPERATIONS
# ============================================================================


@router.get("")
async def list_consultations(
    date: Optional[dt.date] = Query(None, description="Calendar date of the booking"),
    location_id: Optional[int] = Query(None, alias="locationId"),
    slot_id: Optional[int] = Query(None, alias="timeSlotId"),
    status: Optional[str] = Query(None, description="Filter by appointment status"),
    tenant: TenantStore = Depends(get_current_tenant),
    service: ConsultationService = Depends(get_consultation_service),
):
    """The doctor's own bookings in serial order"""
    return service.list_consultations(tenant, date, location_id, slot_id, status)


@router.get("/{consultation_id}")
async def get_consultation(
    consultation_id: int,
    tenant: TenantStore = Depends(get_current_tenant),
    service: ConsultationService = Depends(get_consultation_service),
):
    try:
        return service.get_consultation_detail(tenant, consultation_id)
    except BookingError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from e


@router.patch("/{consultation_id}")
async def update_consultation(
    consultation_id: int,
    data: ConsultationUpdate,
    tenant: TenantStore = Depends(get_current_tenant),
    service: ConsultationService = Depends(get_consultation_service),
):
    """Update only the fields present in the request body"""
    try:
        result = service.update(tenant, consultation_id, data.model_dump(exclude_unset=True))
    except NoUpdatableFields as e:
        return JSONResponse(status_code=400, content={"status": "no_fields", "message": e.message})
    except BookingError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from e
    return result.to_dict()


@router.post("/{consultation_id}/cancel")
async def cancel_consultation(
    consultation_id: int,
    tenant: TenantStore = Depends(get_current_tenant),
    service: ConsultationService = Depends(get_consultation_service),
):
    """Cancel a booking; the serial number is not handed out again"""
    try:
        return service.cancel(tenant, consultation_id).to_dict()
    except BookingError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from e


@router.post("/{consultation_id}/patient")
async def link_patient(
    consultation_id: int,
    data: PatientLinkRequest,
    tenant: TenantStore = Depends(get_current_tenant),
    service: PatientService = Depends(get_patient_service),
):
    """Create or refresh the patient record for a consultation and link them"""
    try:
        return service.create_and_link(tenant, consultation_id, data)
    except BookingError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from e
