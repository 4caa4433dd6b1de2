"""
Booking service for appointments between clients and providers
"""
import logging
from datetime import datetime
from typing import Optional, List, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.models.user import User, UserRole
from app.models.provider import ProviderProfile, ProviderService
from app.models.catalog import ServiceTemplate
from app.models.appointment import Appointment, AppointmentStatus, PaymentMethod, PaymentStatus
from app.schemas.appointment import AppointmentCreate, AppointmentReschedule
from app.core.exceptions import (
    NotFoundError,
    AuthorizationError,
    BusinessRuleError,
    ConflictError,
    ValidationError,
)
from app.services.availability_cache import AvailabilityCache, availability_cache
from app.services.balance_service import BalanceService
from app.services.notification_service import NotificationService
from app.services.time_slot_service import TimeSlotService, local_now
from app.utils.time_slots import minutes_to_time, parse_date, time_to_minutes
from app.utils.validation_codes import (
    generate_validation_code,
    hash_validation_code,
    is_valid_code_format,
    verify_validation_code,
)
from app.utils.whatsapp import format_phone_for_whatsapp, generate_whatsapp_link, generate_appointment_message
from app.config import settings

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    AppointmentStatus.PENDING: {AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELED},
    AppointmentStatus.CONFIRMED: {AppointmentStatus.EXECUTING, AppointmentStatus.CANCELED, AppointmentStatus.NO_SHOW},
    AppointmentStatus.EXECUTING: {AppointmentStatus.COMPLETED, AppointmentStatus.CANCELED},
    AppointmentStatus.COMPLETED: set(),
    AppointmentStatus.CANCELED: set(),
    AppointmentStatus.NO_SHOW: set(),
}

# Admins may close an appointment the provider forgot to start
ADMIN_EXTRA_TRANSITIONS = {
    AppointmentStatus.CONFIRMED: {AppointmentStatus.COMPLETED},
}

CANCELABLE_STATUSES = (AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED)

STATUS_MESSAGES = {
    AppointmentStatus.CONFIRMED: ("Agendamento confirmado", "Seu agendamento de {service} em {date} às {time} foi confirmado."),
    AppointmentStatus.EXECUTING: ("Atendimento iniciado", "O atendimento de {service} começou."),
    AppointmentStatus.COMPLETED: ("Atendimento concluído", "O atendimento de {service} foi concluído. Que tal avaliar o prestador?"),
    AppointmentStatus.CANCELED: ("Agendamento cancelado", "Seu agendamento de {service} em {date} às {time} foi cancelado."),
    AppointmentStatus.NO_SHOW: ("Ausência registrada", "O prestador registrou ausência no agendamento de {service} em {date}."),
}


class BookingService:
    """Service for appointment operations"""

    def __init__(self, db: AsyncSession, cache: Optional[AvailabilityCache] = None):
        self.db = db
        self.cache = cache or availability_cache
        self.slots = TimeSlotService(db, self.cache)
        self.balances = BalanceService(db)
        self.notifications = NotificationService(db)

    @staticmethod
    def serialize(appointment: Appointment, viewer: User) -> Dict[str, Any]:
        """Appointment as seen by a user; providers never get the plain code"""
        show_code = viewer.id == appointment.client_id or viewer.role == UserRole.ADMIN
        return appointment.to_dict(include_code=show_code)

    async def get_appointment(self, appointment_id: int) -> Appointment:
        appointment = await self.db.get(Appointment, appointment_id)
        if not appointment:
            raise NotFoundError("Appointment not found")
        return appointment

    async def get_for_user(self, user: User, appointment_id: int) -> Appointment:
        """
        Get an appointment the user is a party of

        Raises:
            NotFoundError: If the appointment does not exist
            AuthorizationError: If the user is neither party nor staff
        """
        appointment = await self.get_appointment(appointment_id)
        if not (user.is_staff or user.id in (appointment.client_id, appointment.provider_id)):
            raise AuthorizationError("You do not have access to this appointment")
        return appointment

    async def list_appointments(
        self,
        user: User,
        status: Optional[str] = None,
        date: Optional[str] = None,
    ) -> List[Appointment]:
        query = select(Appointment)

        if user.role == UserRole.CLIENT:
            query = query.where(Appointment.client_id == user.id)
        elif user.role == UserRole.PROVIDER:
            query = query.where(Appointment.provider_id == user.id)

        if status:
            query = query.where(Appointment.status == AppointmentStatus(status))
        if date:
            query = query.where(Appointment.date == date)

        result = await self.db.execute(query.order_by(Appointment.date.desc(), Appointment.start_time.desc()))
        return list(result.scalars().all())

    def _ensure_not_past(self, date: str):
        if parse_date(date) < local_now().date():
            raise BusinessRuleError("Cannot book a date in the past")

    async def create_appointment(self, client: User, data: AppointmentCreate) -> Appointment:
        """
        Book a provider service

        Raises:
            NotFoundError: If provider or service is unknown or inactive
            BusinessRuleError: If the date is in the past
            ConflictError: If the slot is not available
        """
        logger.info(f"📆 [BOOKING] Client {client.id} books provider {data.provider_id} on {data.date} at {data.start_time}")

        provider = await self.db.get(User, data.provider_id)
        if not provider or provider.role != UserRole.PROVIDER or not provider.is_active:
            raise NotFoundError("Provider not found")

        service = await self.db.get(ProviderService, data.provider_service_id)
        if not service or service.provider_id != provider.id or not service.is_active:
            raise NotFoundError("Provider service not found")

        self._ensure_not_past(data.date)

        if not await self.slots.check_slot(provider.id, data.date, data.start_time, service.execution_time):
            logger.warning(f"⚠️ [BOOKING] Slot {data.date} {data.start_time} unavailable for provider {provider.id}")
            raise ConflictError("Time slot not available")

        template = await self.db.get(ServiceTemplate, service.template_id)
        profile = (await self.db.execute(
            select(ProviderProfile).where(ProviderProfile.provider_id == provider.id)
        )).scalar_one_or_none()

        code = generate_validation_code()
        end_time = minutes_to_time(time_to_minutes(data.start_time) + service.execution_time)

        appointment = Appointment(
            client_id=client.id,
            provider_id=provider.id,
            provider_service_id=service.id,
            date=data.date,
            start_time=data.start_time,
            end_time=end_time,
            break_time=service.break_time or 0,
            status=AppointmentStatus.PENDING,
            notes=data.notes,
            payment_method=PaymentMethod(data.payment_method),
            payment_status=PaymentStatus.PENDING,
            service_price=service.price,
            service_fee=settings.SERVICE_FEE_CENTS,
            total_price=service.price + settings.SERVICE_FEE_CENTS,
            service_name=template.name if template else None,
            provider_name=(profile.business_name if profile and profile.business_name else provider.name),
            client_name=client.name,
            client_phone=client.phone,
            validation_code=code,
            validation_code_hash=hash_validation_code(code),
            validation_attempts=0,
        )
        self.db.add(appointment)
        await self.db.flush()

        await self.notifications.notify(
            provider.id,
            "Novo agendamento",
            f"{client.name or client.email} agendou {appointment.service_name or 'um serviço'} "
            f"em {appointment.date} às {appointment.start_time}.",
            type="appointment",
            link_to=f"/provider/appointments/{appointment.id}",
            appointment_id=appointment.id,
        )
        await self.db.commit()
        await self.db.refresh(appointment)

        await self.cache.invalidate(provider.id, data.date)
        logger.info(f"✅ [BOOKING] Appointment {appointment.id} created ({appointment.start_time}-{appointment.end_time})")
        return appointment

    async def _notify_status(self, appointment: Appointment, user_id: int):
        title, template = STATUS_MESSAGES[appointment.status]
        await self.notifications.notify(
            user_id,
            title,
            template.format(service=appointment.service_name or "serviço", date=appointment.date, time=appointment.start_time),
            type="appointment",
            link_to=f"/appointments/{appointment.id}",
            appointment_id=appointment.id,
        )

    async def _complete(self, appointment: Appointment):
        appointment.status = AppointmentStatus.COMPLETED
        appointment.completed_at = datetime.utcnow()
        await self.db.flush()
        await self.balances.sync_provider_balance(appointment.provider_id)

    async def update_status(self, user: User, appointment_id: int, status: str, notes: Optional[str] = None) -> Appointment:
        """
        Move an appointment through its lifecycle

        Raises:
            AuthorizationError: If the user is not the provider or an admin
            BusinessRuleError: If the transition is not allowed
        """
        appointment = await self.get_appointment(appointment_id)
        is_admin = user.role == UserRole.ADMIN

        if not is_admin and appointment.provider_id != user.id:
            raise AuthorizationError("Only the provider of this appointment can change its status")

        new_status = AppointmentStatus(status)
        allowed = set(ALLOWED_TRANSITIONS[appointment.status])
        if is_admin:
            allowed |= ADMIN_EXTRA_TRANSITIONS.get(appointment.status, set())

        if new_status not in allowed:
            raise BusinessRuleError(
                f"Invalid status transition from {appointment.status.value} to {new_status.value}"
            )

        logger.info(f"🔄 [BOOKING] Appointment {appointment.id}: {appointment.status.value} -> {new_status.value}")

        if notes:
            appointment.notes = notes

        if new_status == AppointmentStatus.COMPLETED:
            await self._complete(appointment)
        else:
            appointment.status = new_status
            if new_status == AppointmentStatus.CANCELED:
                appointment.canceled_at = datetime.utcnow()

        await self._notify_status(appointment, appointment.client_id)
        await self.db.commit()
        await self.db.refresh(appointment)

        if new_status == AppointmentStatus.CANCELED:
            await self.cache.invalidate(appointment.provider_id, appointment.date)
        return appointment

    async def cancel_appointment(self, user: User, appointment_id: int, reason: Optional[str] = None) -> Appointment:
        appointment = await self.get_appointment(appointment_id)
        is_admin = user.role == UserRole.ADMIN

        if not is_admin and user.id not in (appointment.client_id, appointment.provider_id):
            raise AuthorizationError("You cannot cancel this appointment")

        if appointment.status not in CANCELABLE_STATUSES:
            raise BusinessRuleError(f"Appointments that are {appointment.status.value} cannot be canceled")

        appointment.status = AppointmentStatus.CANCELED
        appointment.canceled_at = datetime.utcnow()
        if reason:
            appointment.notes = f"{appointment.notes}\n{reason}" if appointment.notes else reason

        if user.id == appointment.client_id:
            recipients = [appointment.provider_id]
        elif user.id == appointment.provider_id:
            recipients = [appointment.client_id]
        else:
            recipients = [appointment.client_id, appointment.provider_id]

        for recipient in recipients:
            await self._notify_status(appointment, recipient)

        await self.db.commit()
        await self.db.refresh(appointment)

        await self.cache.invalidate(appointment.provider_id, appointment.date)
        logger.info(f"🚫 [BOOKING] Appointment {appointment.id} canceled by user {user.id}")
        return appointment

    async def reschedule_appointment(self, user: User, appointment_id: int, data: AppointmentReschedule) -> Appointment:
        """
        Move an open appointment to another date or time

        The appointment returns to pending so the provider confirms again.
        """
        appointment = await self.get_appointment(appointment_id)

        if user.role != UserRole.ADMIN and appointment.client_id != user.id:
            raise AuthorizationError("Only the client of this appointment can reschedule it")

        if appointment.status not in CANCELABLE_STATUSES:
            raise BusinessRuleError(f"Appointments that are {appointment.status.value} cannot be rescheduled")

        self._ensure_not_past(data.date)

        duration = time_to_minutes(appointment.end_time) - time_to_minutes(appointment.start_time)
        available = await self.slots.check_slot(
            appointment.provider_id,
            data.date,
            data.start_time,
            duration,
            exclude_appointment_id=appointment.id,
        )
        if not available:
            raise ConflictError("Time slot not available")

        old_date = appointment.date
        appointment.date = data.date
        appointment.start_time = data.start_time
        appointment.end_time = minutes_to_time(time_to_minutes(data.start_time) + duration)
        appointment.status = AppointmentStatus.PENDING

        await self.notifications.notify(
            appointment.provider_id,
            "Agendamento remarcado",
            f"O agendamento #{appointment.id} foi remarcado para {appointment.date} às {appointment.start_time}.",
            type="appointment",
            link_to=f"/provider/appointments/{appointment.id}",
            appointment_id=appointment.id,
        )
        await self.db.commit()
        await self.db.refresh(appointment)

        await self.cache.invalidate(appointment.provider_id, old_date)
        await self.cache.invalidate(appointment.provider_id, appointment.date)
        logger.info(f"📆 [BOOKING] Appointment {appointment.id} moved from {old_date} to {appointment.date} {appointment.start_time}")
        return appointment

    async def validate_code(self, provider: User, appointment_id: int, code: str) -> Dict[str, Any]:
        """
        Complete an appointment with the code the client received

        Raises:
            AuthorizationError: If the provider does not own the appointment
            ValidationError: If the code is not 6 digits
            BusinessRuleError: If the code is wrong, the appointment is closed or validation is locked
        """
        appointment = await self.get_appointment(appointment_id)
        max_attempts = settings.VALIDATION_MAX_ATTEMPTS

        if appointment.provider_id != provider.id:
            raise AuthorizationError("Only the provider of this appointment can validate it")

        code = (code or "").strip()
        if not is_valid_code_format(code):
            raise ValidationError("Validation code must have 6 digits")

        if appointment.status in (AppointmentStatus.COMPLETED, AppointmentStatus.CANCELED):
            raise BusinessRuleError(f"Appointment is already {appointment.status.value}")

        if appointment.validation_attempts >= max_attempts:
            raise BusinessRuleError("Validation locked after too many wrong attempts. Contact support")

        if not verify_validation_code(code, appointment.validation_code_hash):
            appointment.validation_attempts += 1
            remaining = max(0, max_attempts - appointment.validation_attempts)
            logger.warning(f"⚠️ [VALIDATION] Wrong code for appointment {appointment.id} ({remaining} attempts left)")

            if remaining == 0:
                await self.notifications.notify(
                    appointment.client_id,
                    "Validação bloqueada",
                    f"O código do agendamento #{appointment.id} foi digitado incorretamente {max_attempts} vezes. "
                    "Entre em contato com o suporte.",
                    type="alert",
                    appointment_id=appointment.id,
                )
            await self.db.commit()

            if remaining:
                raise BusinessRuleError(f"Invalid validation code. {remaining} attempts remaining")
            raise BusinessRuleError("Invalid validation code. Validation is now locked, contact support")

        await self._complete(appointment)
        await self._notify_status(appointment, appointment.client_id)
        await self.db.commit()
        await self.db.refresh(appointment)

        logger.info(f"✅ [VALIDATION] Appointment {appointment.id} validated and completed")
        return {
            "message": "Appointment validated and completed",
            "validated": True,
            "attempts_remaining": max(0, max_attempts - appointment.validation_attempts),
            "appointment": self.serialize(appointment, provider),
        }

    async def get_validation_status(self, user: User, appointment_id: int) -> Dict[str, Any]:
        """
        Attempts used and left for the completion code

        Raises:
            AuthorizationError: If the user is neither the appointment provider nor staff
        """
        appointment = await self.get_appointment(appointment_id)
        if not (user.is_staff or appointment.provider_id == user.id):
            raise AuthorizationError("Only the provider of this appointment can see its validation status")

        max_attempts = settings.VALIDATION_MAX_ATTEMPTS
        attempts = appointment.validation_attempts or 0
        is_blocked = attempts >= max_attempts
        is_open = appointment.status not in (AppointmentStatus.COMPLETED, AppointmentStatus.CANCELED)

        return {
            "appointment_id": appointment.id,
            "status": appointment.status.value,
            "has_validation_code": bool(appointment.validation_code_hash),
            "attempts": attempts,
            "max_attempts": max_attempts,
            "remaining_attempts": max(0, max_attempts - attempts),
            "is_blocked": is_blocked,
            "can_confirm": is_open and not is_blocked,
        }

    async def update_payment(self, user: User, appointment_id: int, payment_status: str, payment_id: Optional[str] = None) -> Appointment:
        appointment = await self.get_appointment(appointment_id)

        if user.role != UserRole.ADMIN and appointment.provider_id != user.id:
            raise AuthorizationError("Only the provider of this appointment can update its payment")

        appointment.payment_status = PaymentStatus(payment_status)
        if payment_id is not None:
            appointment.payment_id = payment_id

        await self.db.commit()
        await self.db.refresh(appointment)
        logger.info(f"💳 [BOOKING] Appointment {appointment.id} payment is {appointment.payment_status.value}")
        return appointment

    async def get_whatsapp_link(self, user: User, appointment_id: int) -> Dict[str, str]:
        """Click-to-chat link to the other party of the appointment"""
        appointment = await self.get_for_user(user, appointment_id)

        if user.id == appointment.provider_id:
            client = await self.db.get(User, appointment.client_id)
            raw_phone = appointment.client_phone or (client.phone if client else None)
            counterpart = appointment.client_name or (client.name if client else "")
        else:
            provider = await self.db.get(User, appointment.provider_id)
            profile = (await self.db.execute(
                select(ProviderProfile).where(ProviderProfile.provider_id == appointment.provider_id)
            )).scalar_one_or_none()
            raw_phone = (profile.whatsapp if profile else None) or (provider.phone if provider else None)
            counterpart = appointment.provider_name or (provider.name if provider else "")

        phone = format_phone_for_whatsapp(raw_phone or "", settings.WHATSAPP_COUNTRY_CODE)
        if not phone:
            raise NotFoundError("No WhatsApp number available for this contact")

        message = generate_appointment_message(
            counterpart or "",
            appointment.service_name or "serviço",
            appointment.date,
            appointment.start_time,
        )
        return {"url": generate_whatsapp_link(phone, message), "phone": phone, "message": message}
