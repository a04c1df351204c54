from pydantic import Field, field_validator, model_validator
from typing import List, Optional

from .base import AllowListModel, CamelModel
from ..utils.validators import is_valid_time


TIME_FORMAT_MESSAGE = "Time format should be HH:MM in 24-hour format"


class EstimatedDeliveryTime(CamelModel):
    """Delivery estimate in minutes"""
    min: int = Field(30, ge=0)
    max: int = Field(45, ge=0)

    @model_validator(mode="after")
    def check_range(self):
        if self.min > self.max:
            raise ValueError("Minimum delivery time cannot exceed the maximum")
        return self


class DeliveryDetails(CamelModel):
    is_delivery_available: bool = True
    is_self_delivery: bool = False
    delivery_fee: float = Field(0, ge=0)
    min_order_amount: float = Field(0, ge=0)
    free_delivery_threshold: Optional[float] = Field(None, ge=0)
    delivery_radius: Optional[float] = Field(None, gt=0, description="Kilometres")
    estimated_delivery_time: EstimatedDeliveryTime = Field(default_factory=EstimatedDeliveryTime)


class DeliveryDetailsUpdate(AllowListModel):
    """Partial update of the delivery options, unknown keys are rejected"""
    is_delivery_available: Optional[bool] = None
    is_self_delivery: Optional[bool] = None
    delivery_fee: Optional[float] = Field(None, ge=0)
    min_order_amount: Optional[float] = Field(None, ge=0)
    free_delivery_threshold: Optional[float] = Field(None, ge=0)
    delivery_radius: Optional[float] = Field(None, gt=0)
    estimated_delivery_time: Optional[EstimatedDeliveryTime] = None


def _check_slot_time(value):
    if value is not None and not is_valid_time(value):
        raise ValueError(TIME_FORMAT_MESSAGE)
    return value


class DeliverySlotCreate(CamelModel):
    start_time: str
    end_time: str
    max_orders: int = Field(0, ge=0)

    @field_validator("start_time", "end_time")
    @classmethod
    def check_time(cls, value):
        return _check_slot_time(value)

    @model_validator(mode="after")
    def check_order(self):
        if self.start_time >= self.end_time:
            raise ValueError("Slot start time must be before its end time")
        return self


class DeliverySlotUpdate(AllowListModel):
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    max_orders: Optional[int] = Field(None, ge=0)

    @field_validator("start_time", "end_time")
    @classmethod
    def check_time(cls, value):
        return _check_slot_time(value)


class DeliverySlotResponse(CamelModel):
    id: int
    start_time: str
    end_time: str
    max_orders: int


class DeliveryOptionsResponse(DeliveryDetails):
    delivery_slots: List[DeliverySlotResponse] = []
