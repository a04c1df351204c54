from pydantic import Field, StrictBool, field_validator, model_validator
from typing import Any, Dict, List, Optional
from datetime import date, datetime

from .base import AllowListModel, CamelModel
from .delivery import DeliveryDetails, EstimatedDeliveryTime
from .menu import MenuSectionResponse
from ..enums import CuisineType, FoodType
from ..utils.validators import EMAIL_PATTERN, is_valid_day, is_valid_time


SLUG_PATTERN = r"^[a-z0-9-]+$"
PHONE_REGEX = r"^\d{10}$"
PIN_CODE_REGEX = r"^[0-9]{6}$"


class OpeningHoursEntry(CamelModel):
    """Opening hours for a single weekday, times are 24-hour HH:MM"""
    day: str
    open: str
    close: str
    is_closed: bool = False

    @field_validator("day")
    @classmethod
    def check_day(cls, value):
        if not is_valid_day(value):
            raise ValueError(f"Invalid day {value}")
        return value

    @field_validator("open", "close")
    @classmethod
    def check_time(cls, value):
        if not is_valid_time(value):
            raise ValueError("Time format should be HH:MM in 24-hour format")
        return value


def check_unique_days(entries: List[OpeningHoursEntry]) -> List[OpeningHoursEntry]:
    days = [entry.day for entry in entries]
    if len(days) != len(set(days)):
        raise ValueError("Each day may only appear once in opening hours")
    return entries


def parse_holiday(value) -> date:
    """Accept a date, a datetime or an ISO string, keeping only the calendar date"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.strip()).date()
        except ValueError:
            pass
    raise ValueError(f"Invalid date: {value}")


class OpeningHoursUpdate(CamelModel):
    opening_hours: List[OpeningHoursEntry] = Field(..., max_length=7)

    @field_validator("opening_hours")
    @classmethod
    def unique_days(cls, value):
        return check_unique_days(value)


class HolidaysUpdate(CamelModel):
    holidays: List[date]

    @field_validator("holidays", mode="before")
    @classmethod
    def parse_dates(cls, value):
        if not isinstance(value, list):
            raise ValueError("Holidays must be an array of dates")
        return sorted({parse_holiday(item) for item in value})


class Location(CamelModel):
    address: Optional[str] = None
    landmark: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pin_code: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    zone_id: Optional[int] = None


class LocationCreate(Location):
    address: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    pin_code: Optional[str] = Field(None, pattern=PIN_CODE_REGEX)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    zone_id: Optional[int] = Field(None, ge=1)

    @model_validator(mode="after")
    def check_coordinates(self):
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("Latitude and longitude must be provided together")
        return self


class LocationUpdate(AllowListModel):
    address: Optional[str] = Field(None, min_length=1)
    landmark: Optional[str] = None
    city: Optional[str] = Field(None, min_length=1)
    state: Optional[str] = None
    pin_code: Optional[str] = Field(None, pattern=PIN_CODE_REGEX)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    zone_id: Optional[int] = Field(None, ge=1)


def _check_email(value):
    if value is not None and not EMAIL_PATTERN.fullmatch(value):
        raise ValueError("Invalid email address")
    return value.lower() if value else value


class Contact(CamelModel):
    phone: Optional[str] = None
    alternate_phone: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None


class ContactCreate(Contact):
    phone: str = Field(..., pattern=PHONE_REGEX)
    alternate_phone: Optional[str] = Field(None, pattern=PHONE_REGEX)

    @field_validator("email")
    @classmethod
    def check_email(cls, value):
        return _check_email(value)


class ContactUpdate(AllowListModel):
    phone: Optional[str] = Field(None, pattern=PHONE_REGEX)
    alternate_phone: Optional[str] = Field(None, pattern=PHONE_REGEX)
    email: Optional[str] = None
    website: Optional[str] = None

    @field_validator("email")
    @classmethod
    def check_email(cls, value):
        return _check_email(value)


class ServiceType(CamelModel):
    restaurant: bool = True
    dine_in: bool = False
    cloud_kitchen: bool = False


class ServiceTypeUpdate(AllowListModel):
    restaurant: Optional[bool] = None
    dine_in: Optional[bool] = None
    cloud_kitchen: Optional[bool] = None


class Rating(CamelModel):
    overall: float = 0
    food_quality: float = 0
    delivery_experience: float = 0
    packaging: float = 0


class RestaurantCreate(CamelModel):
    """Schema for creating restaurants. Media is uploaded afterwards."""
    name: str = Field(..., min_length=3, max_length=50)
    slug: Optional[str] = Field(None, min_length=3, max_length=50, pattern=SLUG_PATTERN)
    description: Optional[str] = Field(None, max_length=500)
    short_description: Optional[str] = Field(None, max_length=150)
    restaurant_chain: Optional[str] = Field(None, max_length=100)
    franchise_id: Optional[str] = Field(None, max_length=100)
    cuisine_type: List[CuisineType] = Field(..., min_length=1)
    food_type: List[FoodType] = Field(..., min_length=1)
    tags: List[str] = []
    popular_dishes: List[str] = []
    location: LocationCreate
    contact: ContactCreate
    type: ServiceType = Field(default_factory=ServiceType)
    opening_hours: List[OpeningHoursEntry] = Field(default_factory=list, max_length=7)
    holidays: List[date] = []
    preparation_time: Optional[int] = Field(None, ge=0, description="Minutes")
    delivery_details: DeliveryDetails = Field(default_factory=DeliveryDetails)
    price_range: Optional[int] = Field(None, ge=1, le=5)
    is_pure_veg: bool = False
    owner_id: int = Field(..., ge=1)
    manager_ids: List[int] = []
    fssai_license_number: Optional[str] = None
    gst_number: Optional[str] = None
    is_open_now: bool = False
    is_active: bool = True
    is_featured: bool = False
    is_busy: bool = False
    is_accepting_orders: bool = True

    @field_validator("opening_hours")
    @classmethod
    def unique_days(cls, value):
        return check_unique_days(value)

    @field_validator("holidays", mode="before")
    @classmethod
    def parse_dates(cls, value):
        if value is None:
            return []
        return sorted({parse_holiday(item) for item in value})

    @field_validator("cuisine_type", "food_type", "tags", "popular_dishes", "manager_ids")
    @classmethod
    def dedupe(cls, value):
        return list(dict.fromkeys(value))


class RestaurantUpdate(AllowListModel):
    """
    Fields a restaurant profile update may touch. Ownership, managers, status
    flags, hours, media, ratings and counters have their own endpoints.
    """
    name: Optional[str] = Field(None, min_length=3, max_length=50)
    slug: Optional[str] = Field(None, min_length=3, max_length=50, pattern=SLUG_PATTERN)
    description: Optional[str] = Field(None, max_length=500)
    short_description: Optional[str] = Field(None, max_length=150)
    restaurant_chain: Optional[str] = Field(None, max_length=100)
    franchise_id: Optional[str] = Field(None, max_length=100)
    cuisine_type: Optional[List[CuisineType]] = Field(None, min_length=1)
    food_type: Optional[List[FoodType]] = Field(None, min_length=1)
    tags: Optional[List[str]] = None
    popular_dishes: Optional[List[str]] = None
    location: Optional[LocationUpdate] = None
    contact: Optional[ContactUpdate] = None
    type: Optional[ServiceTypeUpdate] = None
    preparation_time: Optional[int] = Field(None, ge=0)
    price_range: Optional[int] = Field(None, ge=1, le=5)
    is_pure_veg: Optional[bool] = None
    is_featured: Optional[bool] = None
    fssai_license_number: Optional[str] = None
    gst_number: Optional[str] = None


class RestaurantStatusUpdate(AllowListModel):
    is_open_now: Optional[bool] = None
    is_active: Optional[bool] = None
    is_busy: Optional[bool] = None
    is_accepting_orders: Optional[bool] = None

    @model_validator(mode="after")
    def check_not_empty(self):
        if not self.model_fields_set:
            raise ValueError("Provide at least one status flag to update")
        return self


class RestaurantImageResponse(CamelModel):
    id: int
    url: str
    caption: Optional[str] = None
    is_featured: bool = False
    public_id: Optional[str] = None


class RestaurantResponse(CamelModel):
    """Schema for restaurant responses"""
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    short_description: Optional[str] = None
    restaurant_chain: Optional[str] = None
    franchise_id: Optional[str] = None
    cuisine_type: List[str] = []
    food_type: List[str] = []
    tags: List[str] = []
    popular_dishes: List[str] = []
    location: Location
    contact: Contact
    type: ServiceType
    opening_hours: List[OpeningHoursEntry] = []
    holidays: List[date] = []
    preparation_time: Optional[int] = None
    delivery_details: DeliveryDetails
    price_range: Optional[int] = None
    is_pure_veg: bool = False
    rating: Rating
    review_count: int = 0
    logo: Optional[str] = None
    cover_image: Optional[str] = None
    images: List[RestaurantImageResponse] = []
    menu: List[MenuSectionResponse] = []
    owner_id: int
    manager_ids: List[int] = []
    fssai_license_number: Optional[str] = None
    gst_number: Optional[str] = None
    is_open_now: bool
    is_active: bool
    is_featured: bool
    is_busy: bool
    is_accepting_orders: bool
    is_verified: bool
    view_count: int = 0
    order_count: int = 0
    last_order_time: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    @model_validator(mode="before")
    @classmethod
    def map_flat_to_nested(cls, data):
        """Map flat database columns to the nested schema structure"""
        if isinstance(data, dict):
            return data

        return {
            "id": data.id,
            "name": data.name,
            "slug": data.slug,
            "description": data.description,
            "short_description": data.short_description,
            "restaurant_chain": data.restaurant_chain,
            "franchise_id": data.franchise_id,
            "cuisine_type": data.cuisine_type or [],
            "food_type": data.food_type or [],
            "tags": data.tags or [],
            "popular_dishes": data.popular_dishes or [],
            "location": {
                "address": data.address,
                "landmark": data.landmark,
                "city": data.city,
                "state": data.state,
                "pin_code": data.pin_code,
                "latitude": data.latitude,
                "longitude": data.longitude,
                "zone_id": data.zone_id,
            },
            "contact": {
                "phone": data.contact_phone,
                "alternate_phone": data.alternate_phone,
                "email": data.contact_email,
                "website": data.website,
            },
            "type": {
                "restaurant": data.is_restaurant,
                "dine_in": data.is_dine_in,
                "cloud_kitchen": data.is_cloud_kitchen,
            },
            "opening_hours": data.opening_hours or [],
            "holidays": data.holidays or [],
            "preparation_time": data.preparation_time,
            "delivery_details": data.delivery_details or {},
            "price_range": data.price_range,
            "is_pure_veg": data.is_pure_veg,
            "rating": {
                "overall": data.rating_overall,
                "food_quality": data.rating_food_quality,
                "delivery_experience": data.rating_delivery_experience,
                "packaging": data.rating_packaging,
            },
            "review_count": data.review_count,
            "logo": data.logo,
            "cover_image": data.cover_image,
            "images": list(data.images),
            "menu": list(data.menu),
            "owner_id": data.owner_id,
            "manager_ids": data.manager_ids,
            "fssai_license_number": data.fssai_license_number,
            "gst_number": data.gst_number,
            "is_open_now": data.is_open_now,
            "is_active": data.is_active,
            "is_featured": data.is_featured,
            "is_busy": data.is_busy,
            "is_accepting_orders": data.is_accepting_orders,
            "is_verified": data.is_verified,
            "view_count": data.view_count,
            "order_count": data.order_count,
            "last_order_time": data.last_order_time,
            "created_at": data.created_at,
            "updated_at": data.updated_at,
        }


def project_restaurant(restaurant, fields: Optional[List[str]] = None) -> Dict[str, Any]:
    """Serialize a restaurant, keeping only the selected top-level fields plus its id"""
    data = RestaurantResponse.model_validate(restaurant).model_dump(by_alias=True, mode="json")
    if not fields:
        return data
    return {key: value for key, value in data.items() if key == "id" or key in fields}


class Pagination(CamelModel):
    total: int
    page: int
    limit: int
    pages: int


class RestaurantPage(CamelModel):
    restaurants: List[Dict[str, Any]]
    pagination: Pagination


class RestaurantCollection(CamelModel):
    count: int
    restaurants: List[Dict[str, Any]]


class RestaurantSummary(CamelModel):
    """Compact listing used by search and filter"""
    id: int
    name: str
    slug: str
    cuisine_type: List[str] = []
    price_range: Optional[int] = None
    rating: float = 0
    delivery_details: DeliveryDetails
    is_pure_veg: bool = False

    @model_validator(mode="before")
    @classmethod
    def map_columns(cls, data):
        if isinstance(data, dict):
            return data
        return {
            "id": data.id,
            "name": data.name,
            "slug": data.slug,
            "cuisine_type": data.cuisine_type or [],
            "price_range": data.price_range,
            "rating": data.rating_overall,
            "delivery_details": data.delivery_details or {},
            "is_pure_veg": data.is_pure_veg,
        }


class TrendingRestaurant(CamelModel):
    id: int
    name: str
    slug: str
    cuisine_type: List[str] = []
    rating: float = 0
    order_count: int = 0
    image: Optional[str] = None
    popularity_score: float = 0


class BulkDeleteRequest(CamelModel):
    ids: List[int] = Field(..., min_length=1)

    @field_validator("ids")
    @classmethod
    def check_ids(cls, value):
        invalid = [str(item) for item in value if item < 1]
        if invalid:
            raise ValueError(f"Invalid restaurant IDs: {', '.join(invalid)}")
        return list(dict.fromkeys(value))


class BulkDeleteResult(CamelModel):
    deleted_count: int


class RestaurantStatus(CamelModel):
    is_open_now: bool
    is_active: bool
    is_busy: bool
    is_accepting_orders: bool
    should_be_open: bool
    is_holiday: bool
    today_hours: Optional[OpeningHoursEntry] = None
    next_holiday: Optional[date] = None


class RestaurantOpenStatus(CamelModel):
    is_open: bool
    manual_override: bool
    current_time: str
    today_hours: Optional[OpeningHoursEntry] = None
    is_holiday: bool


class OrderStats(CamelModel):
    total_orders: int
    last_order: Optional[datetime] = None
    avg_preparation_time: Optional[int] = None


class Popularity(CamelModel):
    views: int
    average_rating: float


class DeliveryMetrics(CamelModel):
    delivery_available: bool
    avg_delivery_time: Optional[float] = None


class RestaurantAnalytics(CamelModel):
    order_stats: OrderStats
    popularity: Popularity
    delivery_metrics: DeliveryMetrics


class RatingsAnalytics(CamelModel):
    overall: float
    food_quality: float
    delivery_experience: float
    packaging: float
    total_reviews: int
    average_rating: float


class TimingsAnalytics(CamelModel):
    opening_hours: List[OpeningHoursEntry] = []
    average_preparation: Optional[int] = None
    delivery_time_range: EstimatedDeliveryTime
    operational_days: int


class VerifyRequest(CamelModel):
    verified: StrictBool


class VerificationStatus(CamelModel):
    is_verified: bool


class OwnerUpdate(CamelModel):
    new_owner_id: int = Field(..., ge=1)


class OwnerResponse(CamelModel):
    owner_id: int


class ManagerAdd(CamelModel):
    manager_id: int = Field(..., ge=1)


class ManagerList(CamelModel):
    manager_ids: List[int]


class EnumValues(CamelModel):
    count: int
    values: List[str]


class LogoResponse(CamelModel):
    logo: str


class CoverImageResponse(CamelModel):
    cover_image: str


class ImageDeleteResult(CamelModel):
    deleted_id: int
    remaining_images: int
