"""
Provider models: public profile, offered services and working schedule
"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, Float, Boolean, DateTime, ForeignKey, JSON

from app.database import Base


class ProviderProfile(Base):
    """Business profile shown to clients in the marketplace"""
    __tablename__ = "provider_profiles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    provider_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)

    business_name = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    whatsapp = Column(String(30), nullable=True)
    address = Column(String(500), nullable=True)
    city = Column(String(100), nullable=True, index=True)
    state = Column(String(50), nullable=True)
    cover_image = Column(String(500), nullable=True)
    is_online = Column(Boolean, default=False, nullable=False)

    # Ratings, recomputed from published reviews
    rating = Column(Float, default=0.0, nullable=False)
    rating_count = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<ProviderProfile {self.provider_id} - {self.business_name}>"

    def to_dict(self):
        return {
            "id": self.id,
            "provider_id": self.provider_id,
            "business_name": self.business_name,
            "description": self.description,
            "whatsapp": self.whatsapp,
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "cover_image": self.cover_image,
            "is_online": self.is_online,
            "rating": round(self.rating or 0.0, 2),
            "rating_count": self.rating_count,
        }


class ProviderService(Base):
    """A service template offered by a provider with custom time and price"""
    __tablename__ = "provider_services"

    id = Column(Integer, primary_key=True, autoincrement=True)
    provider_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    template_id = Column(Integer, ForeignKey("service_templates.id"), nullable=False, index=True)
    execution_time = Column(Integer, nullable=False)  # minutes
    price = Column(Integer, nullable=False)  # cents
    break_time = Column(Integer, default=0, nullable=False)  # rest after the service, minutes
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<ProviderService provider={self.provider_id} template={self.template_id}>"

    def to_dict(self):
        return {
            "id": self.id,
            "provider_id": self.provider_id,
            "template_id": self.template_id,
            "execution_time": self.execution_time,
            "price": self.price,
            "break_time": self.break_time,
            "is_active": self.is_active,
        }


class Availability(Base):
    """
    Working window of a provider

    Weekly rows have no date; a row with a date overrides the weekly rows
    of that weekday for that single day.
    """
    __tablename__ = "availability"

    id = Column(Integer, primary_key=True, autoincrement=True)
    provider_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    day_of_week = Column(Integer, nullable=False)  # 0 = Sunday, 6 = Saturday
    start_time = Column(String(5), nullable=False)  # HH:MM
    end_time = Column(String(5), nullable=False)  # HH:MM
    is_available = Column(Boolean, default=True, nullable=False)
    date = Column(String(10), nullable=True)  # YYYY-MM-DD
    interval_minutes = Column(Integer, default=30, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "provider_id": self.provider_id,
            "day_of_week": self.day_of_week,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "is_available": self.is_available,
            "date": self.date,
            "interval_minutes": self.interval_minutes,
        }


class ProviderBreak(Base):
    """Named pause inside working hours (lunch, coffee, ...)"""
    __tablename__ = "provider_breaks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    provider_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    day_of_week = Column(Integer, nullable=False)
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    is_recurring = Column(Boolean, default=True, nullable=False)
    date = Column(String(10), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "provider_id": self.provider_id,
            "name": self.name,
            "day_of_week": self.day_of_week,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "is_recurring": self.is_recurring,
            "date": self.date,
        }


class BlockedTimeSlot(Base):
    """Time range a provider closed for booking; no date means every day"""
    __tablename__ = "blocked_time_slots"

    id = Column(Integer, primary_key=True, autoincrement=True)
    provider_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    date = Column(String(10), nullable=True)
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    reason = Column(String(255), nullable=True)
    extra = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "provider_id": self.provider_id,
            "date": self.date,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "reason": self.reason,
        }
