"""
Review API endpoints
"""
from typing import List
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.schemas.review import ReviewCreate, ReviewUpdate, ReviewResponseCreate, ReviewStatusUpdate, ReviewOut
from app.services.review_service import ReviewService
from app.dependencies import get_current_user, get_current_client, get_current_provider, get_current_admin
from app.models.user import User
from app.core.exceptions import AgendoException

router = APIRouter(prefix="/reviews", tags=["Reviews"])


@router.post("", response_model=ReviewOut, status_code=status.HTTP_201_CREATED)
async def create_review(
    data: ReviewCreate,
    current_user: User = Depends(get_current_client),
    db: AsyncSession = Depends(get_db),
):
    """
    Review a completed appointment

    - Only the client of the appointment
    - One review per appointment
    """
    try:
        review = await ReviewService(db).create_review(current_user, data)
        return ReviewOut(**review.to_dict())

    except AgendoException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/me", response_model=List[ReviewOut])
async def get_my_reviews(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Reviews written (clients) or received (providers)"""
    reviews = await ReviewService(db).list_my_reviews(current_user)
    return [ReviewOut(**r.to_dict()) for r in reviews]


@router.put("/{review_id}", response_model=ReviewOut)
async def update_review(
    review_id: int,
    data: ReviewUpdate,
    current_user: User = Depends(get_current_client),
    db: AsyncSession = Depends(get_db),
):
    try:
        review = await ReviewService(db).update_review(current_user, review_id, data)
        return ReviewOut(**review.to_dict())

    except AgendoException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/{review_id}/response", response_model=ReviewOut)
async def respond_to_review(
    review_id: int,
    data: ReviewResponseCreate,
    current_user: User = Depends(get_current_provider),
    db: AsyncSession = Depends(get_db),
):
    try:
        review = await ReviewService(db).respond(current_user, review_id, data.response)
        return ReviewOut(**review.to_dict())

    except AgendoException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.put("/{review_id}/status", response_model=ReviewOut)
async def moderate_review(
    review_id: int,
    data: ReviewStatusUpdate,
    current_user: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    """Publish, hide or flag a review; the provider rating follows"""
    try:
        review = await ReviewService(db).set_status(review_id, data.status)
        return ReviewOut(**review.to_dict())

    except AgendoException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
