"""
API Router - combines all API endpoints
"""
from fastapi import APIRouter

from app.api.v1 import (
    auth,
    admin,
    catalog,
    providers,
    provider,
    time_slots,
    appointments,
    reviews,
    notifications,
    support,
)

# Create API v1 router
api_v1_router = APIRouter(prefix="/v1")

# Include all endpoint routers
api_v1_router.include_router(auth.router)
api_v1_router.include_router(admin.router)
api_v1_router.include_router(catalog.router)
api_v1_router.include_router(providers.router)
api_v1_router.include_router(provider.router)
api_v1_router.include_router(time_slots.router)
api_v1_router.include_router(appointments.router)
api_v1_router.include_router(reviews.router)
api_v1_router.include_router(notifications.router)
api_v1_router.include_router(support.router)

# Main API router
api_router = APIRouter(prefix="/api")
api_router.include_router(api_v1_router)
