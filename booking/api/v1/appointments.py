from fastapi import APIRouter, Depends, Query, status
from typing import List, Optional

from ...api.deps import get_appointment_service, get_current_user_id_optional
from ...services.appointment_service import AppointmentService
from ...schemas.appointment import (
    AppointmentPayload, AppointmentResponse, AppointmentCreated,
    MutationResult, ValidationReport
)

router = APIRouter(prefix="/appointments", tags=["Appointments"])

@router.get("", response_model=List[AppointmentResponse])
async def list_appointments(
    search: Optional[str] = Query(None, description="Case-insensitive first or last name prefix"),
    user_id: Optional[int] = Depends(get_current_user_id_optional),
    service: AppointmentService = Depends(get_appointment_service)
):
    """List the caller's appointments, earliest date first."""
    return service.list(user_id, search=search)

@router.post("", response_model=AppointmentCreated, status_code=status.HTTP_201_CREATED)
async def create_appointment(
    payload: AppointmentPayload,
    user_id: Optional[int] = Depends(get_current_user_id_optional),
    service: AppointmentService = Depends(get_appointment_service)
):
    """Book a new appointment for the caller."""
    return {"id": service.create(payload, user_id)}

@router.post("/validate", response_model=ValidationReport)
async def validate_appointment(
    payload: AppointmentPayload,
    service: AppointmentService = Depends(get_appointment_service)
):
    """Report every invalid field at once, without saving anything."""
    errors = service.field_errors(payload)
    return {"valid": not errors, "errors": errors}

@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(
    appointment_id: int,
    user_id: Optional[int] = Depends(get_current_user_id_optional),
    service: AppointmentService = Depends(get_appointment_service)
):
    return service.get(appointment_id, user_id)

@router.put("/{appointment_id}", response_model=MutationResult)
async def update_appointment(
    appointment_id: int,
    payload: AppointmentPayload,
    user_id: Optional[int] = Depends(get_current_user_id_optional),
    service: AppointmentService = Depends(get_appointment_service)
):
    """Replace an owned appointment's date, names and all-day flag."""
    return service.update(appointment_id, payload, user_id)

@router.delete("/{appointment_id}", response_model=MutationResult)
async def remove_appointment(
    appointment_id: int,
    user_id: Optional[int] = Depends(get_current_user_id_optional),
    service: AppointmentService = Depends(get_appointment_service)
):
    return service.remove(appointment_id, user_id)
