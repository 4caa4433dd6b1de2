"""
Pydantic schemas for support tickets
"""
from typing import Optional, List, Dict
from pydantic import BaseModel, Field

TICKET_STATUS_PATTERN = r"^(pending|in_progress|resolved|closed)$"
TICKET_PRIORITY_PATTERN = r"^(low|normal|high|urgent)$"
TICKET_CATEGORY_PATTERN = r"^(general|technical|billing|appointment)$"


class TicketCreate(BaseModel):
    subject: str = Field(..., min_length=3, max_length=200)
    message: str = Field(..., min_length=3, max_length=5000)
    category: str = Field("general", pattern=TICKET_CATEGORY_PATTERN)
    priority: str = Field("normal", pattern=TICKET_PRIORITY_PATTERN)
    appointment_id: Optional[int] = None


class TicketUpdate(BaseModel):
    """Staff-only changes; omitted fields stay as they are"""
    status: Optional[str] = Field(None, pattern=TICKET_STATUS_PATTERN)
    priority: Optional[str] = Field(None, pattern=TICKET_PRIORITY_PATTERN)
    category: Optional[str] = Field(None, pattern=TICKET_CATEGORY_PATTERN)
    assigned_to: Optional[int] = None


class TicketReply(BaseModel):
    message: str = Field(..., min_length=1, max_length=5000)
    is_internal: bool = False
    attachment_url: Optional[str] = Field(None, max_length=500)


class SupportMessageOut(BaseModel):
    id: int
    ticket_id: int
    author_id: Optional[int] = None
    from_staff: bool
    message: str
    attachment_url: Optional[str] = None
    is_internal: bool
    created_at: Optional[str] = None


class TicketOut(BaseModel):
    id: int
    user_id: int
    assigned_to: Optional[int] = None
    appointment_id: Optional[int] = None
    subject: str
    category: str
    priority: str
    status: str
    read_by_user: bool
    read_by_staff: bool
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    resolved_at: Optional[str] = None
    last_response_at: Optional[str] = None


class TicketDetail(TicketOut):
    messages: List[SupportMessageOut] = []


class TicketListResponse(BaseModel):
    tickets: List[TicketOut]
    total: int
    page: int
    limit: int
    total_pages: int


class SupportStatsResponse(BaseModel):
    by_status: Dict[str, int]
    by_priority: Dict[str, int]
    by_category: Dict[str, int]
    average_resolution_hours: Optional[float] = None
