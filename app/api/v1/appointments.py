"""
Appointment API endpoints
"""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.schemas.appointment import (
    AppointmentCreate,
    AppointmentStatusUpdate,
    AppointmentCancelRequest,
    AppointmentReschedule,
    ValidationCodeRequest,
    PaymentStatusUpdate,
    AppointmentResponse,
    AppointmentListResponse,
    ValidationResult,
    ValidationStatusResponse,
)
from app.schemas.provider import WhatsAppLinkResponse
from app.services.booking_service import BookingService
from app.dependencies import get_current_user, get_current_client, get_current_provider
from app.models.user import User
from app.core.exceptions import AgendoException

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/appointments", tags=["Appointments"])


@router.post("", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
async def create_appointment(
    data: AppointmentCreate,
    current_user: User = Depends(get_current_client),
    db: AsyncSession = Depends(get_db),
):
    """
    Book a provider service

    - The slot must be free and inside the provider working hours
    - Response includes the validation code to hand to the provider
    """
    try:
        service = BookingService(db)
        appointment = await service.create_appointment(current_user, data)
        return service.serialize(appointment, current_user)

    except AgendoException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("", response_model=AppointmentListResponse)
async def list_appointments(
    status: Optional[str] = Query(None, pattern=r"^(pending|confirmed|executing|completed|canceled|no_show)$"),
    date: Optional[str] = Query(None, pattern=r"^\d{4}-\d{2}-\d{2}$"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Appointments visible to the user (own for clients and providers, all for staff)"""
    service = BookingService(db)
    appointments = await service.list_appointments(current_user, status, date)

    return AppointmentListResponse(
        appointments=[service.serialize(a, current_user) for a in appointments],
        total=len(appointments),
    )


@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(
    appointment_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        service = BookingService(db)
        appointment = await service.get_for_user(current_user, appointment_id)
        return service.serialize(appointment, current_user)

    except AgendoException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.put("/{appointment_id}/status", response_model=AppointmentResponse)
async def update_appointment_status(
    appointment_id: int,
    data: AppointmentStatusUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Change the appointment status (provider or admin)

    pending -> confirmed | canceled
    confirmed -> executing | canceled | no_show
    executing -> completed | canceled
    """
    try:
        service = BookingService(db)
        appointment = await service.update_status(current_user, appointment_id, data.status, data.notes)
        return service.serialize(appointment, current_user)

    except AgendoException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/{appointment_id}/cancel", response_model=AppointmentResponse)
async def cancel_appointment(
    appointment_id: int,
    data: Optional[AppointmentCancelRequest] = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        service = BookingService(db)
        appointment = await service.cancel_appointment(current_user, appointment_id, data.reason if data else None)
        return service.serialize(appointment, current_user)

    except AgendoException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.put("/{appointment_id}/reschedule", response_model=AppointmentResponse)
async def reschedule_appointment(
    appointment_id: int,
    data: AppointmentReschedule,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        service = BookingService(db)
        appointment = await service.reschedule_appointment(current_user, appointment_id, data)
        return service.serialize(appointment, current_user)

    except AgendoException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/{appointment_id}/validation-status", response_model=ValidationStatusResponse)
async def get_validation_status(
    appointment_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Attempts left before the completion code locks"""
    try:
        return await BookingService(db).get_validation_status(current_user, appointment_id)

    except AgendoException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/{appointment_id}/validate", response_model=ValidationResult)
async def validate_appointment(
    appointment_id: int,
    data: ValidationCodeRequest,
    current_user: User = Depends(get_current_provider),
    db: AsyncSession = Depends(get_db),
):
    """
    Complete an appointment with the client's validation code

    - 3 wrong attempts lock the validation and notify the client
    """
    try:
        return await BookingService(db).validate_code(current_user, appointment_id, data.validation_code)

    except AgendoException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.put("/{appointment_id}/payment", response_model=AppointmentResponse)
async def update_payment_status(
    appointment_id: int,
    data: PaymentStatusUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        service = BookingService(db)
        appointment = await service.update_payment(current_user, appointment_id, data.payment_status, data.payment_id)
        return service.serialize(appointment, current_user)

    except AgendoException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/{appointment_id}/whatsapp", response_model=WhatsAppLinkResponse)
async def get_appointment_whatsapp(
    appointment_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """wa.me link to the other party of the appointment"""
    try:
        return await BookingService(db).get_whatsapp_link(current_user, appointment_id)

    except AgendoException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
