import pytest

from food_delivery.utils.validators import EMAIL_PATTERN, is_valid_time


@pytest.mark.parametrize("value", ["09:00", "23:59", "00:00"])
def test_time_values_are_accepted(value):
    assert is_valid_time(value)


@pytest.mark.parametrize("value", ["09:00\n", "9:00", "24:00", "09:60", None])
def test_time_values_must_match_exactly(value):
    assert not is_valid_time(value)


def test_email_must_match_exactly():
    assert EMAIL_PATTERN.fullmatch("owner@spiceroute.in")
    assert not EMAIL_PATTERN.fullmatch("owner@spiceroute.in\n")
