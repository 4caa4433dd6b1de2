"""
Pydantic schemas for provider profiles, offered services and schedules
"""
from typing import Optional, List
from pydantic import BaseModel, Field, field_validator, model_validator

from app.utils.time_slots import time_to_minutes, parse_date
from app.utils.validators import validate_phone_number

TIME_REGEX = r"^([01]\d|2[0-3]):[0-5]\d$"
DATE_REGEX = r"^\d{4}-\d{2}-\d{2}$"


def _check_range(start_time: str, end_time: str):
    if time_to_minutes(start_time) >= time_to_minutes(end_time):
        raise ValueError("start_time must be before end_time")


def _check_date(value: Optional[str]) -> Optional[str]:
    if value is not None:
        parse_date(value)
    return value


# Profile

class ProviderProfileUpdate(BaseModel):
    business_name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    whatsapp: Optional[str] = None
    address: Optional[str] = Field(None, max_length=500)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=50)
    cover_image: Optional[str] = Field(None, max_length=500)
    is_online: Optional[bool] = None

    @field_validator("whatsapp")
    @classmethod
    def validate_whatsapp(cls, v):
        if v:
            is_valid, clean_phone, error = validate_phone_number(v)
            if not is_valid:
                raise ValueError(error)
            return clean_phone
        return v


class ProviderProfileResponse(BaseModel):
    id: int
    provider_id: int
    business_name: Optional[str] = None
    description: Optional[str] = None
    whatsapp: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    cover_image: Optional[str] = None
    is_online: bool
    rating: float
    rating_count: int


# Offered services

class ProviderServiceCreate(BaseModel):
    template_id: int
    price: int = Field(..., ge=0)  # cents
    execution_time: Optional[int] = Field(None, ge=5, le=1440)
    break_time: int = Field(0, ge=0, le=240)


class ProviderServiceUpdate(BaseModel):
    price: Optional[int] = Field(None, ge=0)
    execution_time: Optional[int] = Field(None, ge=5, le=1440)
    break_time: Optional[int] = Field(None, ge=0, le=240)
    is_active: Optional[bool] = None


class ProviderServiceResponse(BaseModel):
    id: int
    provider_id: int
    template_id: int
    execution_time: int
    price: int
    break_time: int
    is_active: bool
    name: Optional[str] = None
    category_id: Optional[int] = None


# Public listing

class ProviderListItem(BaseModel):
    id: int
    name: Optional[str] = None
    business_name: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    rating: float
    rating_count: int
    is_online: bool
    profile_image: Optional[str] = None


class ProviderListResponse(BaseModel):
    providers: List[ProviderListItem]
    total: int
    page: int
    limit: int
    total_pages: int


class ProviderDetailResponse(BaseModel):
    id: int
    name: Optional[str] = None
    email: str
    phone: Optional[str] = None
    profile_image: Optional[str] = None
    is_verified: bool
    profile: Optional[ProviderProfileResponse] = None
    services: List[ProviderServiceResponse]


class WhatsAppLinkResponse(BaseModel):
    url: str
    phone: str
    message: str


# Working hours

class AvailabilityItem(BaseModel):
    """One working window of a weekday"""
    day_of_week: int = Field(..., ge=0, le=6)  # 0 = Sunday
    start_time: str = Field(..., pattern=TIME_REGEX)
    end_time: str = Field(..., pattern=TIME_REGEX)
    is_available: bool = True
    interval_minutes: int = Field(30, ge=5, le=240)

    @model_validator(mode="after")
    def check_range(self):
        _check_range(self.start_time, self.end_time)
        return self


class WeeklyAvailabilityUpdate(BaseModel):
    """Full weekly schedule; replaces every weekly window of the provider"""
    days: List[AvailabilityItem]

    @field_validator("days")
    @classmethod
    def one_window_per_day(cls, v):
        seen = set()
        for item in v:
            if item.day_of_week in seen:
                raise ValueError(f"Day {item.day_of_week} appears more than once")
            seen.add(item.day_of_week)
        return v


class DateAvailabilityCreate(BaseModel):
    """Working hours for a single date, overriding the weekly schedule"""
    date: str = Field(..., pattern=DATE_REGEX)
    start_time: str = Field("00:00", pattern=TIME_REGEX)
    end_time: str = Field("23:59", pattern=TIME_REGEX)
    is_available: bool = True
    interval_minutes: int = Field(30, ge=5, le=240)

    @model_validator(mode="after")
    def check_range(self):
        _check_range(self.start_time, self.end_time)
        _check_date(self.date)
        return self


class AvailabilityResponse(BaseModel):
    id: int
    provider_id: int
    day_of_week: int
    start_time: str
    end_time: str
    is_available: bool
    date: Optional[str] = None
    interval_minutes: int


# Breaks and blocks

class ProviderBreakCreate(BaseModel):
    name: str = Field("Intervalo", min_length=1, max_length=100)
    day_of_week: Optional[int] = Field(None, ge=0, le=6)
    start_time: str = Field(..., pattern=TIME_REGEX)
    end_time: str = Field(..., pattern=TIME_REGEX)
    is_recurring: bool = True
    date: Optional[str] = Field(None, pattern=DATE_REGEX)

    @model_validator(mode="after")
    def check_scope(self):
        _check_range(self.start_time, self.end_time)
        _check_date(self.date)
        if self.is_recurring and self.day_of_week is None:
            raise ValueError("day_of_week is required for recurring breaks")
        if not self.is_recurring and not self.date:
            raise ValueError("date is required for one-off breaks")
        return self


class ProviderBreakResponse(BaseModel):
    id: int
    provider_id: int
    name: str
    day_of_week: int
    start_time: str
    end_time: str
    is_recurring: bool
    date: Optional[str] = None


class BlockedSlotCreate(BaseModel):
    date: Optional[str] = Field(None, pattern=DATE_REGEX)  # None blocks every day
    start_time: str = Field(..., pattern=TIME_REGEX)
    end_time: str = Field(..., pattern=TIME_REGEX)
    reason: Optional[str] = Field(None, max_length=255)

    @model_validator(mode="after")
    def check_range(self):
        _check_range(self.start_time, self.end_time)
        _check_date(self.date)
        return self


class BlockedSlotResponse(BaseModel):
    id: int
    provider_id: int
    date: Optional[str] = None
    start_time: str
    end_time: str
    reason: Optional[str] = None
