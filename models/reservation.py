"""
Reservation request models
"""
from datetime import date, time
from typing import Literal, Optional

from pydantic import BaseModel, Field

ReservationStatus = Literal["pending", "confirmed", "cancelled", "completed"]


class CreateReservationRequest(BaseModel):
    restaurant_id: int
    customer_name: str = Field(min_length=1)
    customer_email: Optional[str] = None
    customer_phone: str = Field(min_length=1)
    party_size: int
    reservation_date: date
    reservation_time: time
    special_requests: Optional[str] = None
    table_preference: Optional[str] = None


class UpdateReservationRequest(BaseModel):
    status: ReservationStatus
