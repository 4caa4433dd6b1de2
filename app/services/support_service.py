"""
Support ticket service: user tickets, staff replies and triage
"""
import logging
from datetime import datetime
from typing import Optional, List, Dict, Any, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from app.models.user import User
from app.models.appointment import Appointment
from app.models.support import SupportTicket, SupportMessage, TicketStatus, TicketPriority
from app.schemas.support import TicketCreate, TicketUpdate, TicketReply
from app.core.exceptions import NotFoundError, AuthorizationError, BusinessRuleError, ValidationError
from app.services.notification_service import NotificationService
from app.utils.validators import sanitize_input

logger = logging.getLogger(__name__)

RESOLVED_MESSAGE = "Este ticket foi marcado como resolvido. Por favor, confirme se sua questão foi solucionada."
TAKEN_MESSAGE = "Um atendente está analisando seu ticket."


class SupportService:
    """Service for support ticket operations"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.notifications = NotificationService(db)

    async def get_ticket(self, ticket_id: int) -> SupportTicket:
        ticket = await self.db.get(SupportTicket, ticket_id)
        if not ticket:
            raise NotFoundError("Support ticket not found")
        return ticket

    async def _get_visible(self, user: User, ticket_id: int) -> SupportTicket:
        ticket = await self.get_ticket(ticket_id)
        if not (user.is_staff or ticket.user_id == user.id):
            raise AuthorizationError("This ticket belongs to another user")
        return ticket

    def _add_message(
        self,
        ticket: SupportTicket,
        author: Optional[User],
        message: str,
        is_internal: bool = False,
        attachment_url: Optional[str] = None,
    ) -> SupportMessage:
        entry = SupportMessage(
            ticket_id=ticket.id,
            author_id=author.id if author else None,
            from_staff=bool(author is None or author.is_staff),
            message=sanitize_input(message),
            attachment_url=attachment_url,
            is_internal=is_internal,
        )
        self.db.add(entry)
        return entry

    async def create_ticket(self, user: User, data: TicketCreate) -> Dict[str, Any]:
        """
        Open a ticket with its first message

        Raises:
            NotFoundError: If the linked appointment does not exist
            AuthorizationError: If the user is not part of the linked appointment
        """
        if data.appointment_id is not None:
            appointment = await self.db.get(Appointment, data.appointment_id)
            if not appointment:
                raise NotFoundError("Appointment not found")
            if not (user.is_staff or user.id in (appointment.client_id, appointment.provider_id)):
                raise AuthorizationError("You are not part of this appointment")

        ticket = SupportTicket(
            user_id=user.id,
            appointment_id=data.appointment_id,
            subject=sanitize_input(data.subject),
            category=data.category,
            priority=TicketPriority(data.priority),
            status=TicketStatus.PENDING,
            read_by_user=True,
            read_by_staff=False,
        )
        self.db.add(ticket)
        await self.db.flush()

        self._add_message(ticket, user, data.message)
        await self.notifications.notify_admins(
            "Novo ticket de suporte",
            f"#{ticket.id}: {ticket.subject}",
            type="system",
            link_to=f"/admin/support/{ticket.id}",
        )

        await self.db.commit()
        await self.db.refresh(ticket)

        logger.info(f"🎫 [SUPPORT] Ticket {ticket.id} opened by user {user.id} ({ticket.category}, {ticket.priority.value})")
        return await self.get_ticket_detail(user, ticket.id, mark_read=False)

    async def list_tickets(
        self,
        user: User,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        category: Optional[str] = None,
        search: Optional[str] = None,
        user_id: Optional[int] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[SupportTicket], int]:
        """Staff see every ticket; everyone else only their own"""
        query = select(SupportTicket)

        if not user.is_staff:
            query = query.where(SupportTicket.user_id == user.id)
        elif user_id is not None:
            query = query.where(SupportTicket.user_id == user_id)

        if status:
            query = query.where(SupportTicket.status == TicketStatus(status))
        if priority:
            query = query.where(SupportTicket.priority == TicketPriority(priority))
        if category:
            query = query.where(SupportTicket.category == category)
        if search:
            query = query.where(SupportTicket.subject.ilike(f"%{search}%"))

        total = (await self.db.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0

        query = query.order_by(SupportTicket.updated_at.desc(), SupportTicket.id.desc())
        result = await self.db.execute(query.offset((page - 1) * limit).limit(limit))
        return list(result.scalars().all()), total

    async def get_ticket_detail(self, user: User, ticket_id: int, mark_read: bool = True) -> Dict[str, Any]:
        """Ticket with its messages; internal notes are left out for non-staff"""
        ticket = await self._get_visible(user, ticket_id)

        if mark_read:
            if user.is_staff and not ticket.read_by_staff:
                ticket.read_by_staff = True
                await self.db.commit()
                await self.db.refresh(ticket)
            elif ticket.user_id == user.id and not ticket.read_by_user:
                ticket.read_by_user = True
                await self.db.commit()
                await self.db.refresh(ticket)

        query = select(SupportMessage).where(SupportMessage.ticket_id == ticket.id)
        if not user.is_staff:
            query = query.where(SupportMessage.is_internal == False)
        result = await self.db.execute(query.order_by(SupportMessage.created_at, SupportMessage.id))

        return {**ticket.to_dict(), "messages": [m.to_dict() for m in result.scalars().all()]}

    async def reply(self, user: User, ticket_id: int, data: TicketReply) -> SupportMessage:
        """
        Add a message to a ticket

        A staff reply takes a pending ticket into progress and assigns it
        when nobody holds it yet. A user reply reopens a resolved ticket.

        Raises:
            AuthorizationError: If a non-staff user posts an internal note
            BusinessRuleError: If the ticket is closed
        """
        ticket = await self._get_visible(user, ticket_id)

        if data.is_internal and not user.is_staff:
            raise AuthorizationError("Only support staff can add internal notes")
        if ticket.status == TicketStatus.CLOSED:
            raise BusinessRuleError("Ticket is closed")

        message = self._add_message(ticket, user, data.message, data.is_internal, data.attachment_url)

        if user.is_staff and not data.is_internal:
            if ticket.status == TicketStatus.PENDING:
                ticket.status = TicketStatus.IN_PROGRESS
            if ticket.assigned_to is None:
                ticket.assigned_to = user.id
            ticket.last_response_at = datetime.utcnow()
            ticket.read_by_user = False
            await self.notifications.notify(
                ticket.user_id,
                "Resposta do suporte",
                f"Seu ticket #{ticket.id} recebeu uma nova resposta.",
                type="info",
                link_to=f"/support/{ticket.id}",
            )
        elif not user.is_staff:
            if ticket.status == TicketStatus.RESOLVED:
                ticket.status = TicketStatus.IN_PROGRESS
                ticket.resolved_at = None
            ticket.read_by_staff = False

        await self.db.commit()
        await self.db.refresh(message)

        logger.info(f"🎫 [SUPPORT] Message added to ticket {ticket.id} by user {user.id}{' (internal)' if data.is_internal else ''}")
        return message

    async def update_ticket(self, staff: User, ticket_id: int, data: TicketUpdate) -> SupportTicket:
        """
        Triage a ticket: status, priority, category and assignee

        Raises:
            ValidationError: If the assignee is not active support staff
            BusinessRuleError: If a closed ticket would be reopened
        """
        ticket = await self.get_ticket(ticket_id)
        updates = data.model_dump(exclude_unset=True)
        old_status = ticket.status

        if "assigned_to" in updates and updates["assigned_to"] is not None:
            assignee = await self.db.get(User, updates["assigned_to"])
            if not assignee or not assignee.is_active or not assignee.is_staff:
                raise ValidationError("Tickets can only be assigned to support staff")
            ticket.assigned_to = assignee.id
        elif "assigned_to" in updates:
            ticket.assigned_to = None

        if updates.get("priority"):
            ticket.priority = TicketPriority(updates["priority"])
        if updates.get("category"):
            ticket.category = updates["category"]

        new_status = TicketStatus(updates["status"]) if updates.get("status") else old_status
        if old_status == TicketStatus.CLOSED and new_status != TicketStatus.CLOSED:
            raise BusinessRuleError("Closed tickets cannot be reopened")
        ticket.status = new_status

        if new_status == TicketStatus.RESOLVED and old_status != TicketStatus.RESOLVED:
            ticket.resolved_at = datetime.utcnow()
            self._add_message(ticket, None, RESOLVED_MESSAGE)
            await self.notifications.notify(
                ticket.user_id,
                "Ticket resolvido",
                f"Seu ticket #{ticket.id} foi marcado como resolvido.",
                type="info",
                link_to=f"/support/{ticket.id}",
            )
        elif new_status == TicketStatus.IN_PROGRESS and old_status == TicketStatus.PENDING and ticket.assigned_to:
            self._add_message(ticket, None, TAKEN_MESSAGE)

        if new_status in (TicketStatus.PENDING, TicketStatus.IN_PROGRESS):
            ticket.resolved_at = None
        if new_status != old_status:
            ticket.read_by_user = False

        await self.db.commit()
        await self.db.refresh(ticket)

        logger.info(f"🎫 [SUPPORT] Ticket {ticket.id} updated by {staff.id}: {old_status.value} -> {new_status.value}")
        return ticket

    async def get_stats(self) -> Dict[str, Any]:
        """Ticket counts by status, priority and category, plus mean resolution time"""

        async def counts(column) -> Dict[str, int]:
            result = await self.db.execute(select(column, func.count(SupportTicket.id)).group_by(column))
            return {getattr(key, "value", key): count for key, count in result.all()}

        resolved = await self.db.execute(
            select(SupportTicket.created_at, SupportTicket.resolved_at).where(SupportTicket.resolved_at.isnot(None))
        )
        durations = [(done - opened).total_seconds() / 3600 for opened, done in resolved.all()]

        return {
            "by_status": await counts(SupportTicket.status),
            "by_priority": await counts(SupportTicket.priority),
            "by_category": await counts(SupportTicket.category),
            "average_resolution_hours": round(sum(durations) / len(durations), 2) if durations else None,
        }
