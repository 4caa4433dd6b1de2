"""
Public provider API endpoints
"""
import math
from typing import Optional, List
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.schemas.provider import (
    ProviderListResponse,
    ProviderListItem,
    ProviderDetailResponse,
    ProviderServiceResponse,
    WhatsAppLinkResponse,
)
from app.schemas.review import ReviewListResponse, ReviewOut
from app.services.provider_service import ProviderService
from app.services.review_service import ReviewService
from app.core.exceptions import AgendoException

router = APIRouter(prefix="/providers", tags=["Providers"])


@router.get("", response_model=ProviderListResponse)
async def search_providers(
    category_id: Optional[int] = Query(None, description="Filter by category"),
    template_id: Optional[int] = Query(None, description="Filter by service template"),
    city: Optional[str] = Query(None, description="Filter by city"),
    search: Optional[str] = Query(None, description="Search by name or business name"),
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
    db: AsyncSession = Depends(get_db),
):
    """
    Search and list providers

    - Public endpoint (no authentication required)
    - Only active, verified providers with a matching active service
    - Best rated first
    """
    providers, total = await ProviderService(db).search_providers(category_id, template_id, city, search, page, limit)

    return ProviderListResponse(
        providers=[ProviderListItem(**p) for p in providers],
        total=total,
        page=page,
        limit=limit,
        total_pages=math.ceil(total / limit) if total > 0 else 0,
    )


@router.get("/{provider_id}", response_model=ProviderDetailResponse)
async def get_provider(provider_id: int, db: AsyncSession = Depends(get_db)):
    """Provider profile with active services"""
    try:
        return await ProviderService(db).get_provider_details(provider_id)

    except AgendoException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/{provider_id}/services", response_model=List[ProviderServiceResponse])
async def get_provider_services(provider_id: int, db: AsyncSession = Depends(get_db)):
    try:
        service = ProviderService(db)
        await service.get_provider_user(provider_id)
        return await service.list_services(provider_id)

    except AgendoException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/{provider_id}/whatsapp", response_model=WhatsAppLinkResponse)
async def get_provider_whatsapp(
    provider_id: int,
    template_id: Optional[int] = Query(None, description="Service the client is interested in"),
    db: AsyncSession = Depends(get_db),
):
    """wa.me link with a prefilled first-contact message"""
    try:
        return await ProviderService(db).get_whatsapp_contact(provider_id, template_id)

    except AgendoException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/{provider_id}/reviews", response_model=ReviewListResponse)
async def get_provider_reviews(
    provider_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """Published public reviews of a provider"""
    try:
        await ProviderService(db).get_provider_user(provider_id)
        reviews, total, average = await ReviewService(db).list_provider_reviews(provider_id, page, limit)

        return ReviewListResponse(
            reviews=[ReviewOut(**r.to_dict()) for r in reviews],
            total=total,
            average_rating=average,
        )

    except AgendoException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
