"""
Restaurant request models
"""
from typing import Literal, Optional

from pydantic import BaseModel, Field


class UpdateRestaurantRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    address: Optional[str] = None
    phone: Optional[str] = None
    currency: Optional[str] = None
    currency_position: Optional[Literal["before", "after"]] = None
    tax_rate: Optional[float] = Field(default=None, ge=0, le=100)
