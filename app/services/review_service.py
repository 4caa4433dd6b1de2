"""
Review service for client ratings of providers
"""
import logging
from typing import List, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from app.models.user import User, UserRole
from app.models.appointment import Appointment, AppointmentStatus
from app.models.provider import ProviderProfile
from app.models.review import Review, ReviewStatus
from app.schemas.review import ReviewCreate, ReviewUpdate
from app.core.exceptions import NotFoundError, AuthorizationError, BusinessRuleError, DuplicateError
from app.services.notification_service import NotificationService
from app.utils.validators import sanitize_input

logger = logging.getLogger(__name__)


class ReviewService:
    """Service for review operations"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.notifications = NotificationService(db)

    async def get_review(self, review_id: int) -> Review:
        review = await self.db.get(Review, review_id)
        if not review:
            raise NotFoundError("Review not found")
        return review

    async def recompute_provider_rating(self, provider_id: int):
        """Provider rating is the mean of published reviews"""
        result = await self.db.execute(
            select(func.avg(Review.rating), func.count(Review.id)).where(
                Review.provider_id == provider_id,
                Review.status == ReviewStatus.PUBLISHED,
            )
        )
        average, count = result.one()

        profile = (await self.db.execute(
            select(ProviderProfile).where(ProviderProfile.provider_id == provider_id)
        )).scalar_one_or_none()
        if not profile:
            profile = ProviderProfile(provider_id=provider_id)
            self.db.add(profile)

        profile.rating = round(float(average), 2) if average is not None else 0.0
        profile.rating_count = count or 0
        await self.db.flush()

        logger.info(f"⭐ [REVIEW] Provider {provider_id} rating is {profile.rating} ({profile.rating_count} reviews)")

    async def create_review(self, client: User, data: ReviewCreate) -> Review:
        """
        Review a completed appointment

        Raises:
            NotFoundError: If the appointment does not exist
            AuthorizationError: If the client did not book the appointment
            BusinessRuleError: If the appointment is not completed
            DuplicateError: If the appointment already has a review
        """
        appointment = await self.db.get(Appointment, data.appointment_id)
        if not appointment:
            raise NotFoundError("Appointment not found")

        if appointment.client_id != client.id:
            raise AuthorizationError("Only the client of this appointment can review it")

        if appointment.status != AppointmentStatus.COMPLETED:
            raise BusinessRuleError("Only completed appointments can be reviewed")

        result = await self.db.execute(select(Review).where(Review.appointment_id == appointment.id))
        if result.scalar_one_or_none():
            raise DuplicateError("This appointment was already reviewed")

        review = Review(
            client_id=client.id,
            provider_id=appointment.provider_id,
            appointment_id=appointment.id,
            rating=data.rating,
            comment=sanitize_input(data.comment) if data.comment else None,
            is_public=data.is_public,
            status=ReviewStatus.PUBLISHED,
        )
        self.db.add(review)
        await self.db.flush()

        await self.recompute_provider_rating(appointment.provider_id)
        await self.notifications.notify(
            appointment.provider_id,
            "Nova avaliação",
            f"Você recebeu uma avaliação de {data.rating} estrela(s) por {appointment.service_name or 'um serviço'}.",
            type="info",
            link_to="/provider/reviews",
            appointment_id=appointment.id,
        )
        await self.db.commit()
        await self.db.refresh(review)

        logger.info(f"⭐ [REVIEW] Review {review.id} created for appointment {appointment.id}")
        return review

    async def update_review(self, client: User, review_id: int, data: ReviewUpdate) -> Review:
        review = await self.get_review(review_id)
        if review.client_id != client.id:
            raise AuthorizationError("Only the author can edit this review")

        updates = data.model_dump(exclude_unset=True)
        if updates.get("rating") is not None:
            review.rating = updates["rating"]
        if "comment" in updates:
            review.comment = sanitize_input(updates["comment"]) if updates["comment"] else None
        if updates.get("is_public") is not None:
            review.is_public = updates["is_public"]

        await self.db.flush()
        await self.recompute_provider_rating(review.provider_id)
        await self.db.commit()
        await self.db.refresh(review)
        return review

    async def respond(self, provider: User, review_id: int, response: str) -> Review:
        review = await self.get_review(review_id)
        if review.provider_id != provider.id:
            raise AuthorizationError("Only the reviewed provider can respond")

        review.provider_response = sanitize_input(response)
        await self.notifications.notify(
            review.client_id,
            "Resposta à sua avaliação",
            "O prestador respondeu à sua avaliação.",
            type="info",
            appointment_id=review.appointment_id,
        )
        await self.db.commit()
        await self.db.refresh(review)
        return review

    async def set_status(self, review_id: int, status: str) -> Review:
        review = await self.get_review(review_id)
        review.status = ReviewStatus(status)

        await self.db.flush()
        await self.recompute_provider_rating(review.provider_id)
        await self.db.commit()
        await self.db.refresh(review)

        logger.info(f"🛡️ [REVIEW] Review {review.id} moderated to {review.status.value}")
        return review

    async def list_provider_reviews(self, provider_id: int, page: int = 1, limit: int = 20) -> Tuple[List[Review], int, float]:
        """
        Public reviews of a provider

        Returns:
            Tuple of (reviews on the page, total, average rating)
        """
        query = select(Review).where(
            Review.provider_id == provider_id,
            Review.status == ReviewStatus.PUBLISHED,
            Review.is_public == True,
        )
        total = (await self.db.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0

        result = await self.db.execute(
            query.order_by(Review.published_at.desc(), Review.id.desc()).offset((page - 1) * limit).limit(limit)
        )

        profile = (await self.db.execute(
            select(ProviderProfile).where(ProviderProfile.provider_id == provider_id)
        )).scalar_one_or_none()

        return list(result.scalars().all()), total, (profile.rating if profile else 0.0)

    async def list_my_reviews(self, user: User) -> List[Review]:
        """Reviews written by a client or received by a provider"""
        if user.role == UserRole.PROVIDER:
            query = select(Review).where(Review.provider_id == user.id)
        else:
            query = select(Review).where(Review.client_id == user.id)

        result = await self.db.execute(query.order_by(Review.published_at.desc(), Review.id.desc()))
        return list(result.scalars().all())
