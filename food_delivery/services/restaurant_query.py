"""
Translate restaurant listing query parameters into SQLAlchemy clauses.

Caller supplied names never reach the query directly: sort keys and
projected fields are looked up in the whitelists below, and filter values are
either whitelisted (food and cuisine types), identifier-shaped, or bound as
parameters.
"""
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Tuple

from sqlalchemy import String, cast, func, or_

from ..enums import CuisineType, FoodType
from ..exceptions import BadRequestException
from ..models import MenuSection, Restaurant, RestaurantManager
from ..utils.validators import EMAIL_PATTERN, PHONE_PATTERN, parse_identifier


DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100

FOOD_TYPES = [food_type.value for food_type in FoodType]
CUISINE_TYPES = [cuisine.value for cuisine in CuisineType]

SORTABLE_FIELDS = {
    "name": Restaurant.name,
    "createdAt": Restaurant.created_at,
    "rating.overall": Restaurant.rating_overall,
    "priceRange": Restaurant.price_range,
}

SELECTABLE_FIELDS = (
    "name",
    "description",
    "location",
    "contact",
    "cuisineType",
    "foodType",
    "isPureVeg",
    "rating",
    "ownerId",
    "managerIds",
    "menu",
)


@dataclass
class RestaurantQuery:
    filters: List[Any] = field(default_factory=list)
    sort: List[Any] = field(default_factory=list)
    fields: Optional[List[str]] = None  # None means every field
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def _to_int(value, default: int) -> int:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return default


def parse_pagination(page=None, limit=None) -> Tuple[int, int]:
    """Clamp page to >= 1 and limit to 1..100, falling back to 1 and 10."""
    page_number = max(1, _to_int(page, DEFAULT_PAGE))
    limit_number = min(max(1, _to_int(limit, DEFAULT_LIMIT)), MAX_LIMIT)
    return page_number, limit_number


def split_list(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [part.strip() for part in str(value).split(",") if part.strip()]


def like_pattern(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def json_array_contains(column, value: str):
    # only called with whitelisted values, which contain no wildcard characters
    return cast(column, String).like(f'%"{value}"%')


def _require_identifier(value: str, message: str) -> int:
    identifier = parse_identifier(value)
    if identifier is None:
        raise BadRequestException(message)
    return identifier


def _whitelisted_values(value: str, allowed: List[str], message: str) -> List[str]:
    values = split_list(value)
    invalid = [item for item in values if item not in allowed]
    if invalid:
        raise BadRequestException(f"{message}: {', '.join(invalid)}")
    return values


def parse_bool(value: str, name: str) -> bool:
    if value not in ("true", "false"):
        raise BadRequestException(f"{name} must be 'true' or 'false'")
    return value == "true"


def text_search(term: str):
    pattern = like_pattern(term)
    return or_(
        Restaurant.name.ilike(pattern, escape="\\"),
        Restaurant.description.ilike(pattern, escape="\\"),
        Restaurant.city.ilike(pattern, escape="\\"),
        Restaurant.address.ilike(pattern, escape="\\"),
        cast(Restaurant.cuisine_type, String).ilike(pattern, escape="\\"),
        cast(Restaurant.tags, String).ilike(pattern, escape="\\"),
    )


def build_sort(sort: Optional[str]) -> List[Any]:
    chosen = {}
    for pair in split_list(sort):
        key, _, direction = pair.partition(":")
        key, direction = key.strip(), direction.strip()
        if key in SORTABLE_FIELDS and direction in ("asc", "desc"):
            chosen[key] = direction

    if not chosen:
        return [Restaurant.created_at.desc(), Restaurant.id.desc()]

    return [
        SORTABLE_FIELDS[key].desc() if direction == "desc" else SORTABLE_FIELDS[key].asc()
        for key, direction in chosen.items()
    ]


def build_fields(fields: Optional[str]) -> Optional[List[str]]:
    selected = [name for name in split_list(fields) if name in SELECTABLE_FIELDS]
    return list(dict.fromkeys(selected)) or None


def build_filter(params: Mapping[str, Any]) -> RestaurantQuery:
    """
    Build the filter, sort, projection and pagination for a restaurant listing.

    Args:
        params: raw query string values keyed by parameter name

    Returns:
        RestaurantQuery: clauses ready to hand to select(Restaurant)

    Raises:
        BadRequestException: on an unknown food/cuisine type, a malformed
            manager/owner/menu id or a non-boolean isPureVeg
    """
    page, limit = parse_pagination(params.get("page"), params.get("limit"))
    filters = [Restaurant.is_active == True]

    search = params.get("search")
    if search:
        identifier = parse_identifier(search)
        if identifier is not None:
            filters.append(or_(
                Restaurant.id == identifier,
                Restaurant.owner_id == identifier,
                Restaurant.manager_links.any(RestaurantManager.user_id == identifier),
            ))
        else:
            filters.append(text_search(search.strip()))

    food_type = params.get("foodType")
    if food_type:
        types = _whitelisted_values(food_type, FOOD_TYPES, "Invalid food type specified")
        filters.append(or_(*[json_array_contains(Restaurant.food_type, item) for item in types]))

    manager = params.get("manager")
    if manager:
        manager_id = _require_identifier(manager, "Invalid manager ID format")
        filters.append(Restaurant.manager_links.any(RestaurantManager.user_id == manager_id))

    owner = params.get("owner")
    if owner:
        filters.append(Restaurant.owner_id == _require_identifier(owner, "Invalid owner ID format"))

    menu = params.get("menu")
    if menu:
        category_id = _require_identifier(menu, "Invalid menu category ID format")
        filters.append(Restaurant.menu.any(MenuSection.category_id == category_id))

    name = params.get("name")
    if name:
        filters.append(Restaurant.name.ilike(like_pattern(name.strip()), escape="\\"))

    contact = params.get("contact")
    if contact:
        contact_value = str(contact).strip()
        if PHONE_PATTERN.fullmatch(contact_value):
            filters.append(Restaurant.contact_phone == contact_value)
        elif EMAIL_PATTERN.fullmatch(contact_value):
            filters.append(func.lower(Restaurant.contact_email) == contact_value.lower())

    cuisine_type = params.get("cuisineType")
    if cuisine_type:
        cuisines = _whitelisted_values(cuisine_type, CUISINE_TYPES, "Invalid cuisine type specified")
        filters.append(or_(*[json_array_contains(Restaurant.cuisine_type, item) for item in cuisines]))

    city = params.get("city")
    if city:
        filters.append(Restaurant.city.ilike(like_pattern(city.strip()), escape="\\"))

    is_pure_veg = params.get("isPureVeg")
    if is_pure_veg is not None:
        filters.append(Restaurant.is_pure_veg == parse_bool(is_pure_veg, "isPureVeg"))

    return RestaurantQuery(
        filters=filters,
        sort=build_sort(params.get("sort")),
        fields=build_fields(params.get("fields")),
        page=page,
        limit=limit,
    )


def build_discovery_filters(cuisine=None, min_rating=None, price_range=None, is_pure_veg=None) -> List[Any]:
    """Filters for the lightweight /filter endpoint."""
    filters = []
    if cuisine:
        cuisines = _whitelisted_values(cuisine, CUISINE_TYPES, "Invalid cuisine type specified")
        filters.append(or_(*[json_array_contains(Restaurant.cuisine_type, item) for item in cuisines]))
    if min_rating:
        try:
            filters.append(Restaurant.rating_overall >= float(min_rating))
        except ValueError:
            raise BadRequestException("minRating must be a number")
    if price_range:
        try:
            filters.append(Restaurant.price_range <= float(price_range))
        except ValueError:
            raise BadRequestException("priceRange must be a number")
    if is_pure_veg:
        filters.append(Restaurant.is_pure_veg == parse_bool(is_pure_veg, "isPureVeg"))
    return filters
