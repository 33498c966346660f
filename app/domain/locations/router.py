"""Location router - FastAPI endpoints for consultation locations"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ...auth import get_current_tenant
from ...database import get_db
from ..consultations.exceptions import ProviderNotFound
from ..tenancy.resolver import TenantResolver, TenantStore
from .schemas import LocationCreate, LocationResponse, PublishRequest
from .service import LocationService, serialize_location

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/locations", tags=["Locations"])


def get_location_service(db: Session = Depends(get_db)) -> LocationService:
    """Dependency injection for LocationService"""
    return LocationService(db)


@router.get("/public/{provider_id}", response_model=list[LocationResponse])
async def get_public_locations(
    provider_id: str,
    db: Session = Depends(get_db),
    service: LocationService = Depends(get_location_service),
):
    """Published locations and bookable slots for a doctor's booking page"""
    try:
        tenant = TenantResolver(db).resolve(provider_id)
    except ProviderNotFound as e:
        raise HTTPException(status_code=404, detail=e.message) from e
    return service.get_public_locations(tenant)


@router.get("", response_model=list[LocationResponse])
async def get_locations(
    tenant: TenantStore = Depends(get_current_tenant),
    service: LocationService = Depends(get_location_service),
):
    """Get all consultation locations of the current doctor"""
    return service.get_locations(tenant)


@router.post("", response_model=LocationResponse, status_code=201)
async def create_location(
    data: LocationCreate,
    tenant: TenantStore = Depends(get_current_tenant),
    service: LocationService = Depends(get_location_service),
):
    """Create a location with its weekly days and time slots"""
    return service.create_location(data, tenant)


@router.put("/{location_id}", response_model=LocationResponse)
async def update_location(
    location_id: int,
    data: LocationCreate,
    tenant: TenantStore = Depends(get_current_tenant),
    service: LocationService = Depends(get_location_service),
):
    """Edit a location and its schedule (slot capacity changes apply to the next booking)"""
    return service.update_location(location_id, data, tenant)


@router.patch("/{location_id}/publish", response_model=LocationResponse)
async def publish_location(
    location_id: int,
    data: PublishRequest,
    tenant: TenantStore = Depends(get_current_tenant),
    service: LocationService = Depends(get_location_service),
):
    """Publish or unpublish a location"""
    return service.set_published(location_id, data.isPublished, tenant)


@router.get("/{location_id}", response_model=LocationResponse)
async def get_location(
    location_id: int,
    tenant: TenantStore = Depends(get_current_tenant),
    service: LocationService = Depends(get_location_service),
):
    return serialize_location(service.get_location(location_id, tenant))


@router.delete("/{location_id}")
async def delete_location(
    location_id: int,
    tenant: TenantStore = Depends(get_current_tenant),
    service: LocationService = Depends(get_location_service),
):
    """Delete a location that has never been booked"""
    return service.delete_location(location_id, tenant)
