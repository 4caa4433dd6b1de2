"""
Pydantic schemas for authentication endpoints
"""
from typing import Optional
from pydantic import BaseModel, EmailStr, Field, field_validator

from app.utils.validators import validate_phone_number, validate_cpf, validate_cnpj


class RegisterRequest(BaseModel):
    """Request schema for client or provider registration"""
    name: str = Field(..., min_length=2, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=8)
    phone: Optional[str] = None
    role: str = Field("client", pattern=r"^(client|provider)$")

    cpf: Optional[str] = None  # CPF or CNPJ
    address: Optional[str] = Field(None, max_length=500)

    # Provider only
    business_name: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=50)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        if v:
            is_valid, clean_phone, error = validate_phone_number(v)
            if not is_valid:
                raise ValueError(error)
            return clean_phone
        return v

    @field_validator("cpf")
    @classmethod
    def validate_document(cls, v):
        if v and not (validate_cpf(v) or validate_cnpj(v)):
            raise ValueError("Invalid CPF/CNPJ")
        return v


class LoginRequest(BaseModel):
    """Request schema for user login"""
    email: EmailStr
    password: str = Field(..., min_length=1)


class RefreshTokenRequest(BaseModel):
    """Request schema for refreshing access token"""
    refresh_token: str = Field(..., min_length=10)


class ChangePasswordRequest(BaseModel):
    """Request schema for changing password"""
    old_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8)


# Response Schemas

class TokenResponse(BaseModel):
    """Response schema for authentication tokens"""
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds


class UserResponse(BaseModel):
    """Response schema for user data"""
    id: int
    email: str
    name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    cpf: Optional[str] = None
    profile_image: Optional[str] = None
    role: str
    is_active: bool
    is_verified: bool
    created_at: Optional[str] = None
    last_login: Optional[str] = None


class LoginResponse(BaseModel):
    """Response schema for successful login"""
    message: str
    user: UserResponse
    tokens: TokenResponse


class RegisterResponse(BaseModel):
    """Response schema for successful registration"""
    message: str
    user: UserResponse
    tokens: TokenResponse


class MessageResponse(BaseModel):
    """Generic message response"""
    message: str
    status: str = "success"
