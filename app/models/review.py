"""
Review model for client ratings of providers
"""
from datetime import datetime
from sqlalchemy import Column, Integer, Text, Boolean, DateTime, ForeignKey, Enum as SQLEnum
import enum

from app.database import Base


class ReviewStatus(str, enum.Enum):
    """Moderation status of a review"""
    PUBLISHED = "published"
    HIDDEN = "hidden"
    REPORTED = "reported"


class Review(Base):
    """Rating (1-5) a client leaves for a completed appointment"""
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, autoincrement=True)
    client_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    provider_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    appointment_id = Column(Integer, ForeignKey("appointments.id"), unique=True, nullable=False)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)
    is_public = Column(Boolean, default=True, nullable=False)
    provider_response = Column(Text, nullable=True)
    status = Column(SQLEnum(ReviewStatus), default=ReviewStatus.PUBLISHED, nullable=False)
    published_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "client_id": self.client_id,
            "provider_id": self.provider_id,
            "appointment_id": self.appointment_id,
            "rating": self.rating,
            "comment": self.comment,
            "is_public": self.is_public,
            "provider_response": self.provider_response,
            "status": self.status.value,
            "published_at": self.published_at.isoformat() if self.published_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
