"""
Upgrade request models
"""
from typing import Literal, Optional

from pydantic import BaseModel, Field


class CreateUpgradeRequest(BaseModel):
    requested_plan: str = Field(min_length=1)
    message: Optional[str] = None


class UpdateUpgradeRequest(BaseModel):
    status: Literal["approved", "rejected", "completed"]
    admin_notes: Optional[str] = None
