"""
Pydantic schemas for time slot availability
"""
from typing import List
from pydantic import BaseModel


class TimeSlot(BaseModel):
    start_time: str
    end_time: str
    is_available: bool = True


class AvailableSlotsResponse(BaseModel):
    date: str
    provider_id: int
    duration: int
    slots: List[TimeSlot]


class SlotCheckResponse(BaseModel):
    provider_id: int
    date: str
    start_time: str
    end_time: str
    duration: int
    available: bool
