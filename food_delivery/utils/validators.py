import re

from ..enums import WeekDay


WEEKDAYS = [day.value for day in WeekDay]  # indexed by datetime.weekday()

# zero padded so that string order matches clock order within a day
TIME_PATTERN = re.compile(r"^([01][0-9]|2[0-3]):[0-5][0-9]$")
PHONE_PATTERN = re.compile(r"^\d{10}$")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
IDENTIFIER_PATTERN = re.compile(r"^[1-9][0-9]{0,17}$")


def is_valid_time(value) -> bool:
    return isinstance(value, str) and bool(TIME_PATTERN.fullmatch(value))


def is_valid_day(value) -> bool:
    return value in WEEKDAYS


def parse_identifier(value):
    """Return the integer id for an identifier-shaped string, else None."""
    if value is None:
        return None
    text = str(value).strip()
    if not IDENTIFIER_PATTERN.fullmatch(text):
        return None
    return int(text)


def slugify(text: str) -> str:
    slug = re.sub(r"\s+", "-", text.strip().lower())
    return re.sub(r"[^\w-]+", "", slug, flags=re.ASCII)
