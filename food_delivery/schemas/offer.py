from pydantic import Field, field_validator, model_validator
from typing import Optional
from datetime import datetime

from .base import AllowListModel, CamelModel
from ..enums import DiscountType, OfferAction
from ..utils.time import to_naive_utc


class OfferCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    code: Optional[str] = Field(None, max_length=20)
    discount_type: DiscountType
    discount_value: float = Field(..., gt=0)
    min_order_amount: float = Field(0, ge=0)
    valid_till: datetime

    @field_validator("code")
    @classmethod
    def normalize_code(cls, value):
        return value.strip().upper() if value else value

    @field_validator("valid_till")
    @classmethod
    def to_utc(cls, value):
        return to_naive_utc(value)

    @model_validator(mode="after")
    def check_percentage(self):
        if self.discount_type == DiscountType.PERCENTAGE and self.discount_value > 100:
            raise ValueError("Percentage discount cannot exceed 100")
        return self


class OfferUpdate(AllowListModel):
    """Schema for updating an offer. The code is fixed once the offer exists."""
    title: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    code: Optional[str] = None
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[float] = Field(None, gt=0)
    min_order_amount: Optional[float] = Field(None, ge=0)
    valid_till: Optional[datetime] = None

    @field_validator("code")
    @classmethod
    def reject_code(cls, value):
        if value is not None:
            raise ValueError("Offer code cannot be modified")
        return value

    @field_validator("valid_till")
    @classmethod
    def to_utc(cls, value):
        return to_naive_utc(value)


class OfferToggle(CamelModel):
    action: OfferAction


class OfferResponse(CamelModel):
    id: int
    restaurant_id: int
    title: str
    description: Optional[str] = None
    code: Optional[str] = None
    discount_type: DiscountType
    discount_value: float
    min_order_amount: Optional[float] = None
    valid_till: datetime
