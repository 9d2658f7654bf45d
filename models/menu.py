"""
Menu request models
"""
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


def _clean_tags(values: Optional[List[str]]) -> Optional[List[str]]:
    """Trim and de-duplicate tag lists; an empty list is stored as None."""
    if values is None:
        return None
    cleaned = []
    for value in values:
        value = value.strip()
        if value and value not in cleaned:
            cleaned.append(value)
    return cleaned or None


class CreateCategoryRequest(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    is_active: bool = True


class UpdateCategoryRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    is_active: Optional[bool] = None
    display_order: Optional[int] = Field(default=None, ge=0)


class CreateMenuItemRequest(BaseModel):
    name: str = Field(min_length=1)
    price: float = Field(gt=0)
    category_id: Optional[int] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    allergens: Optional[List[str]] = None
    dietary_info: Optional[List[str]] = None
    ingredients: Optional[List[str]] = None
    preparation_time: Optional[int] = Field(default=None, ge=0)
    is_available: bool = True
    is_featured: bool = False

    @field_validator("allergens", "dietary_info", "ingredients")
    @classmethod
    def clean_tags(cls, values):
        return _clean_tags(values)


class UpdateMenuItemRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    price: Optional[float] = Field(default=None, gt=0)
    category_id: Optional[int] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    allergens: Optional[List[str]] = None
    dietary_info: Optional[List[str]] = None
    ingredients: Optional[List[str]] = None
    preparation_time: Optional[int] = Field(default=None, ge=0)
    is_available: Optional[bool] = None
    is_featured: Optional[bool] = None
    display_order: Optional[int] = Field(default=None, ge=0)

    @field_validator("allergens", "dietary_info", "ingredients")
    @classmethod
    def clean_tags(cls, values):
        return _clean_tags(values)
