"""
Support ticket models
"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, Enum as SQLEnum
import enum

from app.database import Base


class TicketStatus(str, enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


class TicketPriority(str, enum.Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class SupportTicket(Base):
    """A conversation between a user and the support staff"""
    __tablename__ = "support_tickets"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    assigned_to = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    appointment_id = Column(Integer, ForeignKey("appointments.id"), nullable=True)
    subject = Column(String(200), nullable=False)
    category = Column(String(50), default="general", nullable=False)  # general, technical, billing, appointment
    priority = Column(SQLEnum(TicketPriority), default=TicketPriority.NORMAL, nullable=False)
    status = Column(SQLEnum(TicketStatus), default=TicketStatus.PENDING, nullable=False, index=True)

    read_by_user = Column(Boolean, default=True, nullable=False)
    read_by_staff = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    resolved_at = Column(DateTime, nullable=True)
    last_response_at = Column(DateTime, nullable=True)

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "assigned_to": self.assigned_to,
            "appointment_id": self.appointment_id,
            "subject": self.subject,
            "category": self.category,
            "priority": self.priority.value,
            "status": self.status.value,
            "read_by_user": self.read_by_user,
            "read_by_staff": self.read_by_staff,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "resolved_at": self.resolved_at.isoformat() if self.resolved_at else None,
            "last_response_at": self.last_response_at.isoformat() if self.last_response_at else None,
        }


class SupportMessage(Base):
    """One message in a ticket; internal notes are visible to staff only"""
    __tablename__ = "support_messages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    ticket_id = Column(Integer, ForeignKey("support_tickets.id", ondelete="CASCADE"), nullable=False, index=True)
    author_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    from_staff = Column(Boolean, default=False, nullable=False)
    message = Column(Text, nullable=False)
    attachment_url = Column(String(500), nullable=True)
    is_internal = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "ticket_id": self.ticket_id,
            "author_id": self.author_id,
            "from_staff": self.from_staff,
            "message": self.message,
            "attachment_url": self.attachment_url,
            "is_internal": self.is_internal,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
