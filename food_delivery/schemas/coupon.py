from pydantic import Field, field_validator, model_validator
from typing import List, Optional, Union
from datetime import datetime

from .base import AllowListModel, CamelModel
from ..enums import DiscountType
from ..utils.time import to_naive_utc, utcnow


class CouponBase(CamelModel):
    """Base schema for coupons"""
    code: str = Field(..., min_length=6, max_length=20)
    discount_type: DiscountType = Field(..., description="Either 'percentage' or 'fixed'")
    discount_value: float = Field(..., gt=0, description="Percentage or fixed amount")
    min_order_value: float = Field(0, ge=0, description="Minimum order value required")
    valid_from: Optional[datetime] = None
    valid_until: datetime
    max_uses: Optional[int] = Field(None, ge=1, description="Maximum number of redemptions, null for unlimited")
    applicable_restaurants: List[int] = Field(default_factory=list, description="Empty means every restaurant")
    is_active: bool = True

    @field_validator("code", mode="before")
    @classmethod
    def normalize_code(cls, value):
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @field_validator("valid_from", "valid_until")
    @classmethod
    def to_utc(cls, value):
        return to_naive_utc(value)


class CouponCreate(CouponBase):
    """Schema for creating coupons"""

    @model_validator(mode="after")
    def check_rules(self):
        if self.valid_from is None:
            self.valid_from = utcnow()
        if self.valid_from >= self.valid_until:
            raise ValueError("Valid from date must be before valid until date")
        if self.discount_type == DiscountType.PERCENTAGE and not 1 <= self.discount_value <= 100:
            raise ValueError("Percentage discount must be between 1 and 100")
        self.applicable_restaurants = list(dict.fromkeys(self.applicable_restaurants))
        return self


class CouponUpdate(AllowListModel):
    """Schema for updating coupons. Only these fields may change after creation."""
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[float] = Field(None, gt=0)
    valid_until: Optional[datetime] = None
    max_uses: Optional[int] = Field(None, ge=1)
    min_order_value: Optional[float] = Field(None, ge=0)
    applicable_restaurants: Optional[List[int]] = None
    is_active: Optional[bool] = None

    @field_validator("valid_until")
    @classmethod
    def to_utc(cls, value):
        return to_naive_utc(value)


class CouponResponse(CamelModel):
    """Schema for coupon responses"""
    id: int
    code: str
    discount_type: DiscountType
    discount_value: float
    min_order_value: float
    valid_from: datetime
    valid_until: datetime
    max_uses: Optional[int] = None
    used_by: List[int] = []
    applicable_restaurants: List[int] = []
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None


class ApplyCouponRequest(CamelModel):
    code: str
    user_id: int
    restaurant_id: int
    order_value: float = Field(..., ge=0)


class CouponApplication(CamelModel):
    valid: bool
    discount: float
    final_amount: float
    coupon: str


class CouponValidation(CamelModel):
    valid: bool
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None


class RedeemCouponRequest(CamelModel):
    code: str
    user_id: int


class CouponRedemptionResponse(CamelModel):
    coupon: str
    user_id: int
    redeemed_at: datetime


class CouponStatus(CamelModel):
    is_active: bool


class RemainingUses(CamelModel):
    remaining: Union[int, str]
