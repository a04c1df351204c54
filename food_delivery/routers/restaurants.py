import math

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from ..core.dependencies import get_db, get_storage
from ..core.responses import ApiResponse
from ..schemas.restaurant import (
    BulkDeleteRequest,
    BulkDeleteResult,
    EnumValues,
    HolidaysUpdate,
    ManagerAdd,
    ManagerList,
    OpeningHoursEntry,
    OpeningHoursUpdate,
    OwnerResponse,
    OwnerUpdate,
    RatingsAnalytics,
    RestaurantAnalytics,
    RestaurantCollection,
    RestaurantCreate,
    RestaurantOpenStatus,
    RestaurantPage,
    RestaurantResponse,
    RestaurantStatus,
    RestaurantStatusUpdate,
    RestaurantSummary,
    RestaurantUpdate,
    TimingsAnalytics,
    TrendingRestaurant,
    VerificationStatus,
    VerifyRequest,
    project_restaurant,
)
from ..services.restaurant_query import build_filter, parse_pagination
from ..services.restaurant_service import restaurant_service
from ..services.storage_service import MediaStorage


router = APIRouter(prefix="/restaurants", tags=["Restaurants"])


def restaurant_page(restaurants, total: int, page: int, limit: int, fields=None) -> dict:
    return {
        "restaurants": [project_restaurant(restaurant, fields) for restaurant in restaurants],
        "pagination": {
            "total": total,
            "page": page,
            "limit": limit,
            "pages": math.ceil(total / limit) if total else 0,
        },
    }


def collection(items) -> dict:
    return {"count": len(items), "restaurants": items}


@router.post("/", response_model=ApiResponse[RestaurantResponse], status_code=status.HTTP_201_CREATED)
async def create_restaurant(restaurant_data: RestaurantCreate, db: AsyncSession = Depends(get_db)):
    """
    **Create Restaurant**

    Creates a restaurant. Logo, cover and gallery images are uploaded
    afterwards through the media endpoints.

    **Request Body:**

    - **name**, **cuisineType**, **foodType**, **location**, **contact**, **ownerId**: required
    - **slug**: optional, derived from the name when absent and made unique
    - **openingHours**: up to one entry per weekday, times as HH:MM
    """
    restaurant = await restaurant_service.create_restaurant(restaurant_data, db)
    return {"message": "Restaurant created successfully.", "data": restaurant}


@router.get("/", response_model=ApiResponse[RestaurantPage])
async def get_restaurants(request: Request, db: AsyncSession = Depends(get_db)):
    """
    **List Restaurants**

    Active restaurants, filtered, sorted, projected and paginated.

    **Query Parameters:**

    - **search**: a restaurant, owner or manager id, or free text over name,
      description, city, address, cuisine and tags
    - **foodType**, **cuisineType**: comma separated values
    - **manager**, **owner**, **menu**: ids
    - **name**, **city**: case-insensitive partial match
    - **contact**: 10 digit phone number or email address
    - **isPureVeg**: `true` or `false`
    - **sort**: `field:asc|desc` pairs over name, createdAt, rating.overall, priceRange
    - **fields**: comma separated top-level fields to return
    - **page** (default 1), **limit** (default 10, max 100)
    """
    query = build_filter(request.query_params)
    restaurants, total = await restaurant_service.list_restaurants(query, db)
    return {
        "message": "Restaurants fetched successfully",
        "data": restaurant_page(restaurants, total, query.page, query.limit, query.fields),
    }


@router.delete("/", response_model=ApiResponse[BulkDeleteResult])
async def delete_restaurants(
    payload: BulkDeleteRequest,
    db: AsyncSession = Depends(get_db),
    storage: MediaStorage = Depends(get_storage),
):
    """
    **Delete Many Restaurants**

    Deletes every listed restaurant that exists, together with its media.
    """
    deleted = await restaurant_service.delete_restaurants(payload.ids, storage, db)
    return {"message": f"{deleted} restaurants deleted successfully", "data": {"deleted_count": deleted}}


# Location

@router.get("/nearby", response_model=ApiResponse[RestaurantCollection])
async def get_nearby_restaurants(
    longitude: float = Query(..., ge=-180, le=180),
    latitude: float = Query(..., ge=-90, le=90),
    distance: int = Query(500, gt=0, description="Search radius in metres"),
    db: AsyncSession = Depends(get_db),
):
    """
    **Nearby Restaurants**

    Active restaurants within `distance` metres of the point, nearest first.
    Each result carries its `distance` in metres.
    """
    nearby = await restaurant_service.get_nearby_restaurants(longitude, latitude, distance, db)
    items = [
        {**project_restaurant(restaurant), "distance": round(metres, 1)}
        for restaurant, metres in nearby
    ]
    return {"message": "Nearby restaurants fetched successfully", "data": collection(items)}


@router.get("/city/{city}", response_model=ApiResponse[RestaurantPage])
async def get_city_restaurants(
    city: str,
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    page_number, limit_number = parse_pagination(page, limit)
    restaurants, total = await restaurant_service.get_city_restaurants(city, page_number, limit_number, db)
    return {
        "message": "City restaurants fetched successfully",
        "data": restaurant_page(restaurants, total, page_number, limit_number),
    }


@router.get("/zone/{zone_id}", response_model=ApiResponse[RestaurantPage])
async def get_zone_restaurants(
    zone_id: int,
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    page_number, limit_number = parse_pagination(page, limit)
    restaurants, total = await restaurant_service.get_zone_restaurants(zone_id, page_number, limit_number, db)
    return {
        "message": "Restaurants in the specified zone fetched successfully.",
        "data": restaurant_page(restaurants, total, page_number, limit_number),
    }


# Search & discovery

@router.get("/search", response_model=ApiResponse[RestaurantCollection])
async def search_restaurants(query: Optional[str] = Query(None), db: AsyncSession = Depends(get_db)):
    """
    **Search Restaurants**

    Free text search over active restaurants, best rated first, at most 20 results.
    """
    restaurants = await restaurant_service.search_restaurants(query, db)
    items = [RestaurantSummary.model_validate(r).model_dump(by_alias=True, mode="json") for r in restaurants]
    return {"message": "Your search has been completed successfully", "data": collection(items)}


@router.get("/filter", response_model=ApiResponse[RestaurantCollection])
async def filter_restaurants(
    cuisine: Optional[str] = Query(None, description="Comma separated cuisines"),
    min_rating: Optional[str] = Query(None, alias="minRating"),
    price_range: Optional[str] = Query(None, alias="priceRange"),
    is_pure_veg: Optional[str] = Query(None, alias="isPureVeg"),
    db: AsyncSession = Depends(get_db),
):
    """
    **Filter Restaurants**

    Active restaurants matching any listed cuisine, rated at least `minRating`
    and priced at most `priceRange`, at most 50 results.
    """
    restaurants = await restaurant_service.filter_restaurants(cuisine, min_rating, price_range, is_pure_veg, db)
    items = [RestaurantSummary.model_validate(r).model_dump(by_alias=True, mode="json") for r in restaurants]
    return {"message": "Your filter has been completed successfully", "data": collection(items)}


@router.get("/trending", response_model=ApiResponse[RestaurantCollection])
async def get_trending_restaurants(db: AsyncSession = Depends(get_db)):
    """
    **Trending Restaurants**

    Top 10 by `0.5 * orderCount + 0.3 * viewCount + 200 * averageRating`.
    """
    trending = await restaurant_service.get_trending_restaurants(db)
    items = [TrendingRestaurant.model_validate(t).model_dump(by_alias=True, mode="json") for t in trending]
    return {"message": "Trending restaurants fetched successfully", "data": collection(items)}


@router.get("/enums/cuisines", response_model=ApiResponse[EnumValues])
async def get_restaurant_cuisines(db: AsyncSession = Depends(get_db)):
    """Cuisines in use across restaurants, most common first."""
    cuisines = await restaurant_service.get_cuisines(db)
    return {"message": "Restaurant cuisines fetched successfully.", "data": {"count": len(cuisines), "values": cuisines}}


@router.get("/enums/food-types", response_model=ApiResponse[EnumValues])
async def get_restaurant_food_types(db: AsyncSession = Depends(get_db)):
    """Food types in use across restaurants, most common first."""
    food_types = await restaurant_service.get_food_types(db)
    return {"message": "Restaurant food types fetched successfully.", "data": {"count": len(food_types), "values": food_types}}


# Single restaurant

@router.get("/{id_or_slug}", response_model=ApiResponse[RestaurantResponse])
async def get_restaurant(id_or_slug: str, db: AsyncSession = Depends(get_db)):
    """
    **Get Restaurant**

    Looks the restaurant up by id or slug and counts the view.
    """
    restaurant = await restaurant_service.get_restaurant(id_or_slug, db)
    return {"message": "Restaurant fetched successfully", "data": restaurant}


@router.patch("/{restaurant_id}", response_model=ApiResponse[RestaurantResponse])
async def update_restaurant(
    restaurant_id: int, restaurant_data: RestaurantUpdate, db: AsyncSession = Depends(get_db)
):
    """
    **Update Restaurant**

    Updates profile fields. Ownership, managers, status flags, hours and media
    have dedicated endpoints and are rejected here. Renaming regenerates the
    slug unless one is given.
    """
    restaurant = await restaurant_service.update_restaurant(restaurant_id, restaurant_data, db)
    return {"message": "Restaurant updated successfully.", "data": restaurant}


@router.delete("/{restaurant_id}", response_model=ApiResponse[None])
async def delete_restaurant(
    restaurant_id: int,
    db: AsyncSession = Depends(get_db),
    storage: MediaStorage = Depends(get_storage),
):
    await restaurant_service.delete_restaurant(restaurant_id, storage, db)
    return {"message": "Restaurant deleted successfully"}


# Status & availability

@router.get("/{restaurant_id}/status", response_model=ApiResponse[RestaurantStatus])
async def get_restaurant_status(restaurant_id: int, db: AsyncSession = Depends(get_db)):
    """
    **Restaurant Status**

    The staff controlled flags together with whether the restaurant should be
    open right now according to its hours and holidays.
    """
    restaurant_status = await restaurant_service.get_status(restaurant_id, db)
    return {"message": "Restaurant status retrieved successfully", "data": restaurant_status}


@router.patch("/{restaurant_id}/status", response_model=ApiResponse[RestaurantStatus])
async def update_restaurant_status(
    restaurant_id: int, status_data: RestaurantStatusUpdate, db: AsyncSession = Depends(get_db)
):
    """
    **Update Restaurant Status**

    Only isOpenNow, isActive, isBusy and isAcceptingOrders may be set.
    """
    restaurant_status = await restaurant_service.update_status(restaurant_id, status_data, db)
    return {"message": "Restaurant status updated successfully", "data": restaurant_status}


@router.get("/{restaurant_id}/open", response_model=ApiResponse[RestaurantOpenStatus])
async def is_restaurant_open(restaurant_id: int, db: AsyncSession = Depends(get_db)):
    """
    **Is Restaurant Open**

    Open only when the schedule says so and staff marked it open.
    `manualOverride` is true when the staff flag disagrees with the schedule.
    """
    open_status = await restaurant_service.is_restaurant_open(restaurant_id, db)
    return {"message": "Restaurant open status fetched successfully", "data": open_status}


@router.patch("/{restaurant_id}/opening-hours", response_model=ApiResponse[List[OpeningHoursEntry]])
async def update_opening_hours(
    restaurant_id: int, hours: OpeningHoursUpdate, db: AsyncSession = Depends(get_db)
):
    """
    **Update Opening Hours**

    Replaces the weekly schedule. Every entry needs a weekday name and HH:MM
    times; one bad entry rejects the whole batch.
    """
    opening_hours = await restaurant_service.update_opening_hours(restaurant_id, hours.opening_hours, db)
    return {"message": "Opening hours updated successfully", "data": opening_hours}


@router.patch("/{restaurant_id}/holidays", response_model=ApiResponse[List[str]])
async def update_holidays(
    restaurant_id: int, payload: HolidaysUpdate, db: AsyncSession = Depends(get_db)
):
    """
    **Update Holidays**

    Replaces the holiday list. Responds with the stored ISO dates.
    """
    holidays = await restaurant_service.update_holidays(restaurant_id, payload.holidays, db)
    return {"message": "Holidays updated successfully", "data": holidays}


# Analytics

@router.get("/{restaurant_id}/analytics", response_model=ApiResponse[RestaurantAnalytics])
async def get_restaurant_analytics(restaurant_id: int, db: AsyncSession = Depends(get_db)):
    analytics = await restaurant_service.get_analytics(restaurant_id, db)
    return {"message": "Restaurant analytics fetched successfully", "data": analytics}


@router.get("/{restaurant_id}/ratings", response_model=ApiResponse[RatingsAnalytics])
async def get_restaurant_ratings(restaurant_id: int, db: AsyncSession = Depends(get_db)):
    ratings = await restaurant_service.get_ratings(restaurant_id, db)
    return {"message": "Restaurant rating analysis", "data": ratings}


@router.get("/{restaurant_id}/timings", response_model=ApiResponse[TimingsAnalytics])
async def get_restaurant_timings(restaurant_id: int, db: AsyncSession = Depends(get_db)):
    timings = await restaurant_service.get_timings(restaurant_id, db)
    return {"message": "Restaurant timing analysis", "data": timings}


# Administration

@router.patch("/{restaurant_id}/verify", response_model=ApiResponse[VerificationStatus])
async def verify_restaurant(restaurant_id: int, payload: VerifyRequest, db: AsyncSession = Depends(get_db)):
    is_verified = await restaurant_service.verify_restaurant(restaurant_id, payload.verified, db)
    state = "verified" if is_verified else "unverified"
    return {"message": f"Restaurant {state} successfully", "data": {"is_verified": is_verified}}


@router.patch("/{restaurant_id}/owner", response_model=ApiResponse[OwnerResponse])
async def update_restaurant_owner(restaurant_id: int, payload: OwnerUpdate, db: AsyncSession = Depends(get_db)):
    owner_id = await restaurant_service.update_owner(restaurant_id, payload.new_owner_id, db)
    return {"message": "Restaurant owner updated successfully", "data": {"owner_id": owner_id}}


@router.post("/{restaurant_id}/managers", response_model=ApiResponse[ManagerList], status_code=status.HTTP_201_CREATED)
async def add_restaurant_manager(restaurant_id: int, payload: ManagerAdd, db: AsyncSession = Depends(get_db)):
    """
    **Add Manager**

    Adding a manager that is already assigned leaves the list unchanged.
    """
    manager_ids = await restaurant_service.add_manager(restaurant_id, payload.manager_id, db)
    return {"message": "Manager added successfully", "data": {"manager_ids": manager_ids}}


@router.delete("/{restaurant_id}/managers/{manager_id}", response_model=ApiResponse[ManagerList])
async def remove_restaurant_manager(restaurant_id: int, manager_id: int, db: AsyncSession = Depends(get_db)):
    manager_ids = await restaurant_service.remove_manager(restaurant_id, manager_id, db)
    return {"message": "Manager removed successfully", "data": {"manager_ids": manager_ids}}
