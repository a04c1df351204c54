from pydantic import Field, model_validator
from typing import List, Optional
from datetime import datetime

from .base import AllowListModel, CamelModel


class MenuCategoryCreate(CamelModel):
    restaurant_id: int = Field(..., ge=1)
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=300)
    display_order: int = Field(0, ge=0)
    is_active: bool = True


class MenuCategoryResponse(CamelModel):
    id: int
    restaurant_id: int
    name: str
    description: Optional[str] = None
    display_order: int
    is_active: bool
    created_at: datetime


class MenuItemCreate(CamelModel):
    restaurant_id: int = Field(..., ge=1)
    category_id: int = Field(..., ge=1)
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    price: float = Field(..., ge=0)
    discount_price: Optional[float] = Field(None, ge=0)
    image: Optional[str] = None
    is_veg: bool = True
    is_available: bool = True

    @model_validator(mode="after")
    def check_discount(self):
        if self.discount_price is not None and self.discount_price > self.price:
            raise ValueError("Discount price cannot exceed the price")
        return self


class MenuItemResponse(CamelModel):
    id: int
    restaurant_id: int
    category_id: int
    name: str
    description: Optional[str] = None
    price: float
    discount_price: Optional[float] = None
    image: Optional[str] = None
    is_veg: bool
    is_available: bool


class MenuSectionCreate(CamelModel):
    """A menu section: one category and the ordered items listed under it"""
    category: int = Field(..., ge=1)
    items: List[int] = Field(..., description="Menu item ids, in display order")


class MenuSectionBulkCreate(CamelModel):
    menus: List[MenuSectionCreate] = Field(..., min_length=1)


class MenuSectionUpdate(AllowListModel):
    category: Optional[int] = Field(None, ge=1)
    items: Optional[List[int]] = None

    @model_validator(mode="after")
    def check_not_empty(self):
        if self.category is None and self.items is None:
            raise ValueError("Provide either category or items to update")
        return self


class MenuSectionResponse(CamelModel):
    id: int
    category: int
    items: List[int]

    @model_validator(mode="before")
    @classmethod
    def map_columns(cls, data):
        """Map the ORM column names onto the section's wire names"""
        if isinstance(data, dict):
            return data
        return {"id": data.id, "category": data.category_id, "items": list(data.item_ids or [])}


class MenuSectionDetail(CamelModel):
    """A menu section with its category and items resolved"""
    id: int
    category: Optional[MenuCategoryResponse] = None
    items: List[MenuItemResponse] = []
