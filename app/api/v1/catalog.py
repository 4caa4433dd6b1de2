"""
Service catalog API endpoints
"""
from typing import Optional, List
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.schemas.catalog import (
    NicheCreate,
    NicheUpdate,
    NicheResponse,
    CategoryCreate,
    CategoryUpdate,
    CategoryResponse,
    ServiceTemplateCreate,
    ServiceTemplateUpdate,
    ServiceTemplateResponse,
)
from app.services.catalog_service import CatalogService
from app.dependencies import get_current_admin
from app.models.user import User
from app.core.exceptions import AgendoException

router = APIRouter(tags=["Catalog"])


# Niches

@router.get("/niches", response_model=List[NicheResponse])
async def list_niches(db: AsyncSession = Depends(get_db)):
    """List niches with their categories (public)"""
    return await CatalogService(db).list_niches()


@router.post("/niches", response_model=NicheResponse, status_code=status.HTTP_201_CREATED)
async def create_niche(
    data: NicheCreate,
    current_user: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    niche = await CatalogService(db).create_niche(data)
    return NicheResponse(**niche.to_dict())


@router.put("/niches/{niche_id}", response_model=NicheResponse)
async def update_niche(
    niche_id: int,
    data: NicheUpdate,
    current_user: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    try:
        niche = await CatalogService(db).update_niche(niche_id, data)
        return NicheResponse(**niche.to_dict())

    except AgendoException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


# Categories

@router.get("/categories", response_model=List[CategoryResponse])
async def list_categories(
    niche_id: Optional[int] = Query(None, description="Filter by niche"),
    db: AsyncSession = Depends(get_db),
):
    categories = await CatalogService(db).list_categories(niche_id)
    return [CategoryResponse(**c.to_dict()) for c in categories]


@router.post("/categories", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    data: CategoryCreate,
    current_user: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Create a category

    - The niche must exist
    - A parent category must belong to the same niche
    """
    try:
        category = await CatalogService(db).create_category(data)
        return CategoryResponse(**category.to_dict())

    except AgendoException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.put("/categories/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: int,
    data: CategoryUpdate,
    current_user: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    try:
        category = await CatalogService(db).update_category(category_id, data)
        return CategoryResponse(**category.to_dict())

    except AgendoException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


# Service templates

@router.get("/service-templates", response_model=List[ServiceTemplateResponse])
async def list_service_templates(
    category_id: Optional[int] = Query(None),
    niche_id: Optional[int] = Query(None),
    include_inactive: bool = Query(False),
    db: AsyncSession = Depends(get_db),
):
    """List service templates, active only unless asked otherwise"""
    templates = await CatalogService(db).list_templates(category_id, niche_id, include_inactive)
    return [ServiceTemplateResponse(**t.to_dict()) for t in templates]


@router.get("/service-templates/{template_id}", response_model=ServiceTemplateResponse)
async def get_service_template(template_id: int, db: AsyncSession = Depends(get_db)):
    try:
        template = await CatalogService(db).get_template(template_id)
        return ServiceTemplateResponse(**template.to_dict())

    except AgendoException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/service-templates", response_model=ServiceTemplateResponse, status_code=status.HTTP_201_CREATED)
async def create_service_template(
    data: ServiceTemplateCreate,
    current_user: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    try:
        template = await CatalogService(db).create_template(data)
        return ServiceTemplateResponse(**template.to_dict())

    except AgendoException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.put("/service-templates/{template_id}", response_model=ServiceTemplateResponse)
async def update_service_template(
    template_id: int,
    data: ServiceTemplateUpdate,
    current_user: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    try:
        template = await CatalogService(db).update_template(template_id, data)
        return ServiceTemplateResponse(**template.to_dict())

    except AgendoException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/service-templates/{template_id}", response_model=ServiceTemplateResponse)
async def delete_service_template(
    template_id: int,
    current_user: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    """Deactivate a template; providers offering it stop being bookable for it"""
    try:
        template = await CatalogService(db).deactivate_template(template_id)
        return ServiceTemplateResponse(**template.to_dict())

    except AgendoException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
