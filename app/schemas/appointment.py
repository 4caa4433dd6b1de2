"""
Pydantic schemas for appointment endpoints
"""
from typing import Optional, List
from pydantic import BaseModel, Field, model_validator

from app.schemas.provider import TIME_REGEX, DATE_REGEX
from app.utils.time_slots import parse_date


class AppointmentCreate(BaseModel):
    """Request schema for booking a provider service"""
    provider_id: int
    provider_service_id: int
    date: str = Field(..., pattern=DATE_REGEX)
    start_time: str = Field(..., pattern=TIME_REGEX)
    notes: Optional[str] = Field(None, max_length=1000)
    payment_method: str = Field("local", pattern=r"^(local|credit_card|pix)$")

    @model_validator(mode="after")
    def check_date(self):
        parse_date(self.date)
        return self


class AppointmentStatusUpdate(BaseModel):
    status: str = Field(..., pattern=r"^(pending|confirmed|executing|completed|canceled|no_show)$")
    notes: Optional[str] = Field(None, max_length=1000)


class AppointmentCancelRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class AppointmentReschedule(BaseModel):
    date: str = Field(..., pattern=DATE_REGEX)
    start_time: str = Field(..., pattern=TIME_REGEX)

    @model_validator(mode="after")
    def check_date(self):
        parse_date(self.date)
        return self


class ValidationCodeRequest(BaseModel):
    """Code is checked by the service so malformed codes get a clear 422"""
    validation_code: str = Field(..., max_length=20)


class PaymentStatusUpdate(BaseModel):
    payment_status: str = Field(..., pattern=r"^(pending|paid|failed|refunded)$")
    payment_id: Optional[str] = Field(None, max_length=64)


class AppointmentResponse(BaseModel):
    id: int
    client_id: int
    provider_id: int
    provider_service_id: int
    date: str
    start_time: str
    end_time: str
    status: str
    notes: Optional[str] = None
    payment_method: Optional[str] = None
    payment_status: Optional[str] = None
    payment_id: Optional[str] = None
    service_price: int
    service_fee: int
    total_price: int
    service_name: Optional[str] = None
    provider_name: Optional[str] = None
    client_name: Optional[str] = None
    client_phone: Optional[str] = None
    validation_attempts: int
    validation_code: Optional[str] = None
    created_at: Optional[str] = None
    completed_at: Optional[str] = None
    canceled_at: Optional[str] = None


class AppointmentListResponse(BaseModel):
    appointments: List[AppointmentResponse]
    total: int


class ValidationResult(BaseModel):
    message: str
    validated: bool
    attempts_remaining: int
    appointment: Optional[AppointmentResponse] = None


class ValidationStatusResponse(BaseModel):
    appointment_id: int
    status: str
    has_validation_code: bool
    attempts: int
    max_attempts: int
    remaining_attempts: int
    is_blocked: bool
    can_confirm: bool
