from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest

from food_delivery.exceptions import (
    CouponAlreadyUsedByUserException,
    CouponExpiredOrNotYetValidException,
    CouponNotApplicableToRestaurantException,
    OrderValueBelowMinimumException,
)
from food_delivery.services.coupon_evaluator import (
    UNLIMITED,
    calculate_discount,
    evaluate_coupon,
    remaining_uses,
    validation_status,
)


NOW = datetime(2024, 6, 10, 12, 0)


def make_coupon(**overrides):
    values = {
        "code": "SAVE20",
        "discount_type": "percentage",
        "discount_value": 20,
        "min_order_value": 100,
        "valid_from": NOW - timedelta(days=1),
        "valid_until": NOW + timedelta(days=1),
        "max_uses": None,
        "is_active": True,
        "used_by": [],
        "applicable_restaurants": [],
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def test_percentage_coupon_discount():
    result = evaluate_coupon(make_coupon(), user_id=1, restaurant_id=5, order_value=200, now=NOW)

    assert result == {"valid": True, "discount": 40, "final_amount": 160, "coupon": "SAVE20"}


def test_fixed_coupon_discount():
    coupon = make_coupon(discount_type="fixed", discount_value=50, min_order_value=0)

    result = evaluate_coupon(coupon, user_id=1, restaurant_id=5, order_value=120, now=NOW)

    assert result["discount"] == 50
    assert result["final_amount"] == 70


def test_order_below_minimum_names_the_minimum():
    with pytest.raises(OrderValueBelowMinimumException) as exc_info:
        evaluate_coupon(make_coupon(), user_id=1, restaurant_id=5, order_value=50, now=NOW)

    assert exc_info.value.detail == "Minimum order value of 100 required"


def test_coupon_outside_window_is_rejected():
    expired = make_coupon(valid_until=NOW - timedelta(minutes=1))
    upcoming = make_coupon(valid_from=NOW + timedelta(minutes=1))

    for coupon in (expired, upcoming):
        with pytest.raises(CouponExpiredOrNotYetValidException):
            evaluate_coupon(coupon, user_id=1, restaurant_id=5, order_value=500, now=NOW)


def test_window_bounds_are_inclusive():
    coupon = make_coupon(valid_from=NOW, valid_until=NOW)

    assert evaluate_coupon(coupon, user_id=1, restaurant_id=5, order_value=500, now=NOW)["valid"]


def test_restricted_coupon_requires_listed_restaurant():
    coupon = make_coupon(applicable_restaurants=[7, 8])

    with pytest.raises(CouponNotApplicableToRestaurantException):
        evaluate_coupon(coupon, user_id=1, restaurant_id=5, order_value=500, now=NOW)
    with pytest.raises(CouponNotApplicableToRestaurantException):
        evaluate_coupon(coupon, user_id=1, restaurant_id=None, order_value=500, now=NOW)

    assert evaluate_coupon(coupon, user_id=1, restaurant_id=8, order_value=500, now=NOW)["valid"]


def test_user_who_used_coupon_is_rejected():
    coupon = make_coupon(used_by=[1, 2])

    with pytest.raises(CouponAlreadyUsedByUserException):
        evaluate_coupon(coupon, user_id=2, restaurant_id=5, order_value=500, now=NOW)


def test_checks_run_in_order():
    # expired, restricted, used and below minimum at once: the window wins
    coupon = make_coupon(
        valid_until=NOW - timedelta(days=1),
        applicable_restaurants=[9],
        used_by=[1],
    )

    with pytest.raises(CouponExpiredOrNotYetValidException):
        evaluate_coupon(coupon, user_id=1, restaurant_id=5, order_value=10, now=NOW)


def test_calculate_discount_accepts_enum_and_plain_values():
    assert calculate_discount("percentage", 10, 250) == 25
    assert calculate_discount("fixed", 10, 250) == 10


def test_validation_status():
    assert validation_status(None, NOW) == {"valid": False}

    status = validation_status(make_coupon(), NOW)
    assert status["valid"] is True
    assert status["valid_until"] == NOW + timedelta(days=1)

    assert validation_status(make_coupon(is_active=False), NOW)["valid"] is False
    assert validation_status(make_coupon(valid_until=NOW - timedelta(seconds=1)), NOW)["valid"] is False


def test_remaining_uses():
    assert remaining_uses(make_coupon()) == UNLIMITED
    assert remaining_uses(make_coupon(max_uses=5, used_by=[1, 2])) == 3
    # over-redeemed coupons report a negative count
    assert remaining_uses(make_coupon(max_uses=1, used_by=[1, 2])) == -1
