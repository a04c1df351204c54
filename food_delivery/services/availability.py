"""
Open/closed computation for restaurants.

A restaurant should be open when today is not a holiday, today's opening
hours entry exists and is not marked closed, and the current HH:MM lies
within [open, close]. Times are compared as zero padded strings, so a window
that crosses midnight (open > close) never matches.
"""
from datetime import date, datetime, time
from typing import Any, Dict, Iterable, List, Optional
from zoneinfo import ZoneInfo

from ..core.config import Config
from ..utils.validators import WEEKDAYS


def restaurant_now(timezone_name: str = None) -> datetime:
    """Wall-clock time in the restaurants' timezone, without tzinfo."""
    zone = ZoneInfo(timezone_name or Config.RESTAURANT_TIMEZONE)
    return datetime.now(zone).replace(tzinfo=None)


def _as_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str):
        return date.fromisoformat(value[:10])
    return value


def find_today_hours(opening_hours: Iterable[Dict[str, Any]], day: str) -> Optional[Dict[str, Any]]:
    for hours in opening_hours or []:
        if hours.get("day") == day:
            return hours
    return None


def compute_status(opening_hours: List[Dict[str, Any]], holidays: Iterable, now: datetime) -> Dict[str, Any]:
    current_day = WEEKDAYS[now.weekday()]
    current_time = now.strftime("%H:%M")
    holiday_dates = [_as_date(holiday) for holiday in holidays or []]

    is_holiday = any(holiday == now.date() for holiday in holiday_dates)
    today_hours = find_today_hours(opening_hours, current_day)

    should_be_open = False
    if today_hours and not today_hours.get("is_closed", False) and not is_holiday:
        should_be_open = today_hours["open"] <= current_time <= today_hours["close"]

    upcoming = [holiday for holiday in holiday_dates if datetime.combine(holiday, time.min) > now]

    return {
        "should_be_open": should_be_open,
        "is_holiday": is_holiday,
        "today_hours": today_hours,
        "next_holiday": min(upcoming) if upcoming else None,
        "current_day": current_day,
        "current_time": current_time,
    }


def is_open(opening_hours: List[Dict[str, Any]], holidays: Iterable, is_open_now: bool, now: datetime) -> Dict[str, Any]:
    status = compute_status(opening_hours, holidays, now)
    should_be_open = status["should_be_open"]
    return {
        "is_open": should_be_open and bool(is_open_now),
        "manual_override": bool(is_open_now) != should_be_open,
        "current_time": status["current_time"],
        "today_hours": status["today_hours"],
        "is_holiday": status["is_holiday"],
    }
