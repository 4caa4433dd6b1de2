"""
Provider service for marketplace listing, profiles and offered services
"""
import logging
from typing import Optional, List, Dict, Any, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_

from app.models.user import User, UserRole
from app.models.provider import ProviderProfile, ProviderService as ProviderServiceModel
from app.models.catalog import ServiceTemplate
from app.schemas.provider import ProviderProfileUpdate, ProviderServiceCreate, ProviderServiceUpdate
from app.core.exceptions import NotFoundError, AuthorizationError, DuplicateError
from app.services.availability_cache import AvailabilityCache, availability_cache
from app.utils.whatsapp import format_phone_for_whatsapp, generate_whatsapp_link, generate_default_message
from app.config import settings

logger = logging.getLogger(__name__)


class ProviderService:
    """Service for provider operations"""

    def __init__(self, db: AsyncSession, cache: Optional[AvailabilityCache] = None):
        self.db = db
        self.cache = cache or availability_cache

    async def get_provider_user(self, provider_id: int, active_only: bool = True) -> User:
        """
        Get a provider account

        Raises:
            NotFoundError: If the user does not exist or is not a provider
        """
        user = await self.db.get(User, provider_id)
        if not user or user.role != UserRole.PROVIDER or (active_only and not user.is_active):
            raise NotFoundError("Provider not found")
        return user

    async def get_profile(self, provider_id: int) -> ProviderProfile:
        result = await self.db.execute(
            select(ProviderProfile).where(ProviderProfile.provider_id == provider_id)
        )
        profile = result.scalar_one_or_none()

        if not profile:
            # Accounts promoted to provider after registration have no profile yet
            profile = ProviderProfile(provider_id=provider_id)
            self.db.add(profile)
            await self.db.flush()

        return profile

    async def update_profile(self, provider_id: int, data: ProviderProfileUpdate) -> ProviderProfile:
        profile = await self.get_profile(provider_id)

        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(profile, field, value)

        await self.db.commit()
        await self.db.refresh(profile)
        logger.info(f"🏪 [PROVIDER] Profile updated for provider {provider_id}")
        return profile

    async def search_providers(
        self,
        category_id: Optional[int] = None,
        template_id: Optional[int] = None,
        city: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[Dict[str, Any]], int]:
        """
        Active, verified providers offering at least one matching active service

        Returns:
            Tuple of (provider list items, total count), best rated first
        """
        offering = (
            select(ProviderServiceModel.provider_id)
            .join(ServiceTemplate, ServiceTemplate.id == ProviderServiceModel.template_id)
            .where(ProviderServiceModel.is_active == True, ServiceTemplate.is_active == True)
        )
        if category_id is not None:
            offering = offering.where(ServiceTemplate.category_id == category_id)
        if template_id is not None:
            offering = offering.where(ServiceTemplate.id == template_id)

        query = (
            select(User, ProviderProfile)
            .join(ProviderProfile, ProviderProfile.provider_id == User.id)
            .where(
                User.role == UserRole.PROVIDER,
                User.is_active == True,
                User.is_verified == True,
                User.id.in_(offering),
            )
        )

        if city:
            query = query.where(ProviderProfile.city.ilike(f"%{city}%"))
        if search:
            pattern = f"%{search}%"
            query = query.where(or_(User.name.ilike(pattern), ProviderProfile.business_name.ilike(pattern)))

        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.db.execute(count_query)).scalar() or 0

        query = query.order_by(ProviderProfile.rating.desc(), User.id).offset((page - 1) * limit).limit(limit)
        rows = (await self.db.execute(query)).all()

        items = [
            {
                "id": user.id,
                "name": user.name,
                "business_name": profile.business_name,
                "city": profile.city,
                "state": profile.state,
                "rating": round(profile.rating or 0.0, 2),
                "rating_count": profile.rating_count,
                "is_online": profile.is_online,
                "profile_image": user.profile_image,
            }
            for user, profile in rows
        ]
        return items, total

    async def list_services(self, provider_id: int, active_only: bool = True) -> List[Dict[str, Any]]:
        """Offered services joined with their template name"""
        query = (
            select(ProviderServiceModel, ServiceTemplate)
            .join(ServiceTemplate, ServiceTemplate.id == ProviderServiceModel.template_id)
            .where(ProviderServiceModel.provider_id == provider_id)
        )
        if active_only:
            query = query.where(ProviderServiceModel.is_active == True, ServiceTemplate.is_active == True)

        rows = (await self.db.execute(query.order_by(ServiceTemplate.name))).all()
        return [
            {**service.to_dict(), "name": template.name, "category_id": template.category_id}
            for service, template in rows
        ]

    async def get_provider_details(self, provider_id: int) -> Dict[str, Any]:
        user = await self.get_provider_user(provider_id)
        profile = await self.get_profile(provider_id)
        services = await self.list_services(provider_id)

        return {
            "id": user.id,
            "name": user.name,
            "email": user.email,
            "phone": user.phone,
            "profile_image": user.profile_image,
            "is_verified": user.is_verified,
            "profile": profile.to_dict(),
            "services": services,
        }

    async def get_service(self, service_id: int) -> ProviderServiceModel:
        service = await self.db.get(ProviderServiceModel, service_id)
        if not service:
            raise NotFoundError("Provider service not found")
        return service

    async def _get_owned_service(self, provider_id: int, service_id: int) -> ProviderServiceModel:
        service = await self.get_service(service_id)
        if service.provider_id != provider_id:
            raise AuthorizationError("This service belongs to another provider")
        return service

    async def _service_dict(self, service: ProviderServiceModel) -> Dict[str, Any]:
        template = await self.db.get(ServiceTemplate, service.template_id)
        return {
            **service.to_dict(),
            "name": template.name if template else None,
            "category_id": template.category_id if template else None,
        }

    async def create_service(self, provider_id: int, data: ProviderServiceCreate) -> Dict[str, Any]:
        """
        Offer a catalog template

        Raises:
            NotFoundError: If the template does not exist or is inactive
            DuplicateError: If the provider already offers the template
        """
        template = await self.db.get(ServiceTemplate, data.template_id)
        if not template or not template.is_active:
            raise NotFoundError("Service template not found")

        result = await self.db.execute(
            select(ProviderServiceModel).where(
                ProviderServiceModel.provider_id == provider_id,
                ProviderServiceModel.template_id == data.template_id,
                ProviderServiceModel.is_active == True,
            )
        )
        if result.scalar_one_or_none():
            raise DuplicateError("Service already offered by this provider")

        service = ProviderServiceModel(
            provider_id=provider_id,
            template_id=template.id,
            execution_time=data.execution_time or template.duration,
            price=data.price,
            break_time=data.break_time,
            is_active=True,
        )
        self.db.add(service)
        await self.db.commit()
        await self.db.refresh(service)

        await self.cache.invalidate(provider_id)
        logger.info(f"🛠️ [PROVIDER] Provider {provider_id} now offers '{template.name}' ({service.execution_time} min)")
        return await self._service_dict(service)

    async def update_service(self, provider_id: int, service_id: int, data: ProviderServiceUpdate) -> Dict[str, Any]:
        service = await self._get_owned_service(provider_id, service_id)
        updates = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}

        if updates.get("is_active") and not service.is_active:
            result = await self.db.execute(
                select(ProviderServiceModel).where(
                    ProviderServiceModel.provider_id == provider_id,
                    ProviderServiceModel.template_id == service.template_id,
                    ProviderServiceModel.is_active == True,
                    ProviderServiceModel.id != service.id,
                )
            )
            if result.scalar_one_or_none():
                raise DuplicateError("Service already offered by this provider")

        for field, value in updates.items():
            setattr(service, field, value)
        await self.db.commit()
        await self.db.refresh(service)

        await self.cache.invalidate(provider_id)
        return await self._service_dict(service)

    async def deactivate_service(self, provider_id: int, service_id: int) -> Dict[str, Any]:
        service = await self._get_owned_service(provider_id, service_id)
        service.is_active = False
        await self.db.commit()
        await self.db.refresh(service)

        await self.cache.invalidate(provider_id)
        logger.info(f"🛠️ [PROVIDER] Service {service_id} deactivated by provider {provider_id}")
        return await self._service_dict(service)

    async def get_whatsapp_contact(self, provider_id: int, template_id: Optional[int] = None) -> Dict[str, str]:
        """
        Click-to-chat link for a provider

        Raises:
            NotFoundError: If the provider has no phone on file
        """
        user = await self.get_provider_user(provider_id)
        profile = await self.get_profile(provider_id)

        raw_phone = profile.whatsapp or user.phone
        phone = format_phone_for_whatsapp(raw_phone or "", settings.WHATSAPP_COUNTRY_CODE)
        if not phone:
            raise NotFoundError("Provider has no WhatsApp number")

        service_name = "seus serviços"
        if template_id is not None:
            template = await self.db.get(ServiceTemplate, template_id)
            if not template:
                raise NotFoundError("Service template not found")
            service_name = template.name

        message = generate_default_message(profile.business_name or user.name or "", service_name)
        return {"url": generate_whatsapp_link(phone, message), "phone": phone, "message": message}
