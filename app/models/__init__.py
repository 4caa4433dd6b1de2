"""
Database models
"""
from app.models.user import User, UserRole
from app.models.catalog import Niche, Category, ServiceTemplate
from app.models.provider import ProviderProfile, ProviderService, Availability, ProviderBreak, BlockedTimeSlot
from app.models.appointment import Appointment, AppointmentStatus, PaymentMethod, PaymentStatus
from app.models.review import Review, ReviewStatus
from app.models.notification import Notification
from app.models.support import SupportTicket, SupportMessage, TicketStatus, TicketPriority
from app.models.finance import (
    ProviderBalance,
    ProviderTransaction,
    PaymentWithdrawal,
    TransactionType,
    TransactionStatus,
    WithdrawalStatus,
    PixKeyType,
)

__all__ = [
    "User",
    "UserRole",
    "Niche",
    "Category",
    "ServiceTemplate",
    "ProviderProfile",
    "ProviderService",
    "Availability",
    "ProviderBreak",
    "BlockedTimeSlot",
    "Appointment",
    "AppointmentStatus",
    "PaymentMethod",
    "PaymentStatus",
    "Review",
    "ReviewStatus",
    "Notification",
    "SupportTicket",
    "SupportMessage",
    "TicketStatus",
    "TicketPriority",
    "ProviderBalance",
    "ProviderTransaction",
    "PaymentWithdrawal",
    "TransactionType",
    "TransactionStatus",
    "WithdrawalStatus",
    "PixKeyType",
]
