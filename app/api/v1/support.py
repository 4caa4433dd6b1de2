"""
Support ticket API endpoints
"""
import math
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.schemas.support import (
    TicketCreate,
    TicketUpdate,
    TicketReply,
    TicketOut,
    TicketDetail,
    TicketListResponse,
    SupportMessageOut,
    SupportStatsResponse,
    TICKET_STATUS_PATTERN,
    TICKET_PRIORITY_PATTERN,
)
from app.services.support_service import SupportService
from app.dependencies import get_current_user, get_current_staff
from app.models.user import User
from app.core.exceptions import AgendoException

router = APIRouter(prefix="/support", tags=["Support"])


@router.post("/tickets", response_model=TicketDetail, status_code=status.HTTP_201_CREATED)
async def create_ticket(
    data: TicketCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Open a support ticket

    - Any signed-in user
    - Optionally linked to one of the user's appointments
    - Admins are notified
    """
    try:
        return await SupportService(db).create_ticket(current_user, data)

    except AgendoException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/tickets", response_model=TicketListResponse)
async def list_tickets(
    status: Optional[str] = Query(None, pattern=TICKET_STATUS_PATTERN),
    priority: Optional[str] = Query(None, pattern=TICKET_PRIORITY_PATTERN),
    category: Optional[str] = None,
    search: Optional[str] = None,
    user_id: Optional[int] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Own tickets, or every ticket for support staff"""
    tickets, total = await SupportService(db).list_tickets(
        current_user,
        status=status,
        priority=priority,
        category=category,
        search=search,
        user_id=user_id,
        page=page,
        limit=limit,
    )
    return TicketListResponse(
        tickets=[TicketOut(**t.to_dict()) for t in tickets],
        total=total,
        page=page,
        limit=limit,
        total_pages=math.ceil(total / limit) if total > 0 else 0,
    )


@router.get("/stats", response_model=SupportStatsResponse)
async def get_support_stats(
    current_user: User = Depends(get_current_staff),
    db: AsyncSession = Depends(get_db),
):
    return await SupportService(db).get_stats()


@router.get("/tickets/{ticket_id}", response_model=TicketDetail)
async def get_ticket(
    ticket_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await SupportService(db).get_ticket_detail(current_user, ticket_id)

    except AgendoException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/tickets/{ticket_id}/messages", response_model=SupportMessageOut, status_code=status.HTTP_201_CREATED)
async def reply_to_ticket(
    ticket_id: int,
    data: TicketReply,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Post a message on a ticket

    - Internal notes are for support staff only
    - Closed tickets accept no more messages
    """
    try:
        message = await SupportService(db).reply(current_user, ticket_id, data)
        return SupportMessageOut(**message.to_dict())

    except AgendoException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.put("/tickets/{ticket_id}", response_model=TicketOut)
async def update_ticket(
    ticket_id: int,
    data: TicketUpdate,
    current_user: User = Depends(get_current_staff),
    db: AsyncSession = Depends(get_db),
):
    """Change status, priority, category or assignee (support staff)"""
    try:
        ticket = await SupportService(db).update_ticket(current_user, ticket_id, data)
        return TicketOut(**ticket.to_dict())

    except AgendoException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
