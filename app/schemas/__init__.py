"""
Pydantic schemas for API validation and serialization
"""
from app.schemas.auth import (
    RegisterRequest,
    LoginRequest,
    RefreshTokenRequest,
    ChangePasswordRequest,
    TokenResponse,
    UserResponse,
    LoginResponse,
    RegisterResponse,
    MessageResponse,
)

from app.schemas.provider import (
    ProviderProfileUpdate,
    ProviderServiceCreate,
    ProviderServiceUpdate,
    AvailabilityItem,
    WeeklyAvailabilityUpdate,
    DateAvailabilityCreate,
    ProviderBreakCreate,
    BlockedSlotCreate,
)

from app.schemas.appointment import (
    AppointmentCreate,
    AppointmentStatusUpdate,
    AppointmentReschedule,
    ValidationCodeRequest,
    PaymentStatusUpdate,
    AppointmentResponse,
)

from app.schemas.finance import (
    WithdrawalRequest,
    WithdrawalStatusUpdate,
    WithdrawalResponse,
    BalanceResponse,
)

__all__ = [
    # Auth
    "RegisterRequest",
    "LoginRequest",
    "RefreshTokenRequest",
    "ChangePasswordRequest",
    "TokenResponse",
    "UserResponse",
    "LoginResponse",
    "RegisterResponse",
    "MessageResponse",
    # Provider
    "ProviderProfileUpdate",
    "ProviderServiceCreate",
    "ProviderServiceUpdate",
    "AvailabilityItem",
    "WeeklyAvailabilityUpdate",
    "DateAvailabilityCreate",
    "ProviderBreakCreate",
    "BlockedSlotCreate",
    # Appointment
    "AppointmentCreate",
    "AppointmentStatusUpdate",
    "AppointmentReschedule",
    "ValidationCodeRequest",
    "PaymentStatusUpdate",
    "AppointmentResponse",
    # Finance
    "WithdrawalRequest",
    "WithdrawalStatusUpdate",
    "WithdrawalResponse",
    "BalanceResponse",
]
