"""
Pydantic schemas for reviews
"""
from typing import Optional, List
from pydantic import BaseModel, Field


class ReviewCreate(BaseModel):
    appointment_id: int
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=2000)
    is_public: bool = True


class ReviewUpdate(BaseModel):
    rating: Optional[int] = Field(None, ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=2000)
    is_public: Optional[bool] = None


class ReviewResponseCreate(BaseModel):
    response: str = Field(..., min_length=1, max_length=2000)


class ReviewStatusUpdate(BaseModel):
    status: str = Field(..., pattern=r"^(published|hidden|reported)$")


class ReviewOut(BaseModel):
    id: int
    client_id: int
    provider_id: int
    appointment_id: int
    rating: int
    comment: Optional[str] = None
    is_public: bool
    provider_response: Optional[str] = None
    status: str
    published_at: Optional[str] = None
    updated_at: Optional[str] = None


class ReviewListResponse(BaseModel):
    reviews: List[ReviewOut]
    total: int
    average_rating: float
