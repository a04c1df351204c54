"""
Coupon eligibility rules.

Everything here is a pure function of a coupon record and the order context,
so the same rules back the apply preview, the validate lookup and the
remaining-uses query without touching the database.
"""
from datetime import datetime
from typing import Any, Dict, Union

from ..enums import DiscountType
from ..exceptions import (
    CouponAlreadyUsedByUserException,
    CouponExpiredOrNotYetValidException,
    CouponNotApplicableToRestaurantException,
    OrderValueBelowMinimumException,
)


UNLIMITED = "unlimited"


def is_within_window(coupon, now: datetime) -> bool:
    return coupon.valid_from <= now <= coupon.valid_until


def calculate_discount(discount_type: str, discount_value: float, order_value: float) -> float:
    if discount_type == DiscountType.PERCENTAGE:
        return order_value * discount_value / 100
    return discount_value


def evaluate_coupon(coupon, user_id: int, restaurant_id: int, order_value: float, now: datetime) -> Dict[str, Any]:
    """
    Run the eligibility checks against an already looked-up active coupon.

    Checks run in a fixed order and the first failure is raised:
    validity window, restaurant restriction, prior use by this user and
    finally the minimum order value.

    Returns:
        dict: valid flag, discount, final amount and the coupon code
    """
    if not is_within_window(coupon, now):
        raise CouponExpiredOrNotYetValidException("Coupon not valid at this time")

    restaurants = coupon.applicable_restaurants
    if restaurants and restaurant_id not in restaurants:
        raise CouponNotApplicableToRestaurantException("Coupon not valid for this restaurant")

    if user_id in coupon.used_by:
        raise CouponAlreadyUsedByUserException("Coupon already used by this user")

    if order_value < coupon.min_order_value:
        raise OrderValueBelowMinimumException(coupon.min_order_value)

    discount = calculate_discount(coupon.discount_type, coupon.discount_value, order_value)
    return {
        "valid": True,
        "discount": discount,
        "final_amount": order_value - discount,
        "coupon": coupon.code,
    }


def validation_status(coupon, now: datetime) -> Dict[str, Any]:
    if coupon is None:
        return {"valid": False}
    return {
        "valid": bool(coupon.is_active) and is_within_window(coupon, now),
        "valid_from": coupon.valid_from,
        "valid_until": coupon.valid_until,
    }


def remaining_uses(coupon) -> Union[int, str]:
    # not clamped: over-redemption shows up as a negative number
    if coupon.max_uses is None:
        return UNLIMITED
    return coupon.max_uses - len(coupon.used_by)
