"""
Pydantic schemas for the service catalog
"""
from typing import Optional, List
from pydantic import BaseModel, Field


class NicheCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)
    description: Optional[str] = None
    icon: Optional[str] = Field(None, max_length=100)


class NicheUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    description: Optional[str] = None
    icon: Optional[str] = Field(None, max_length=100)


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)
    niche_id: int
    parent_id: Optional[int] = None
    description: Optional[str] = None
    icon: Optional[str] = Field(None, max_length=100)
    color: Optional[str] = Field(None, pattern=r"^#[0-9a-fA-F]{6}$")


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    parent_id: Optional[int] = None
    description: Optional[str] = None
    icon: Optional[str] = Field(None, max_length=100)
    color: Optional[str] = Field(None, pattern=r"^#[0-9a-fA-F]{6}$")


class ServiceTemplateCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)
    category_id: int
    description: Optional[str] = None
    icon: Optional[str] = Field(None, max_length=100)
    duration: int = Field(60, ge=5, le=1440)  # minutes


class ServiceTemplateUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    category_id: Optional[int] = None
    description: Optional[str] = None
    icon: Optional[str] = Field(None, max_length=100)
    duration: Optional[int] = Field(None, ge=5, le=1440)
    is_active: Optional[bool] = None


class CategoryResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    icon: Optional[str] = None
    color: Optional[str] = None
    niche_id: int
    parent_id: Optional[int] = None


class NicheResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    icon: Optional[str] = None
    categories: List[CategoryResponse] = []


class ServiceTemplateResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    category_id: int
    niche_id: Optional[int] = None
    icon: Optional[str] = None
    duration: int
    is_active: bool
