import logging
import math
from collections import Counter
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import BadRequestException, ConflictException, NotFoundException, UserNotFoundException
from ..models import Restaurant, RestaurantManager, User
from ..schemas.restaurant import (
    OpeningHoursEntry,
    RestaurantCreate,
    RestaurantStatusUpdate,
    RestaurantUpdate,
)
from ..utils.validators import parse_identifier, slugify
from .availability import compute_status, is_open, restaurant_now
from .restaurant_query import RestaurantQuery, build_discovery_filters, like_pattern, text_search
from .storage_service import MediaStorage


logger = logging.getLogger(__name__)

EARTH_RADIUS_METRES = 6_371_000
METRES_PER_DEGREE = 111_320
SEARCH_LIMIT = 20
FILTER_LIMIT = 50
TRENDING_LIMIT = 10

LOCATION_COLUMNS = {
    "address": "address",
    "landmark": "landmark",
    "city": "city",
    "state": "state",
    "pin_code": "pin_code",
    "latitude": "latitude",
    "longitude": "longitude",
    "zone_id": "zone_id",
}
CONTACT_COLUMNS = {
    "phone": "contact_phone",
    "alternate_phone": "alternate_phone",
    "email": "contact_email",
    "website": "website",
}
SERVICE_TYPE_COLUMNS = {
    "restaurant": "is_restaurant",
    "dine_in": "is_dine_in",
    "cloud_kitchen": "is_cloud_kitchen",
}


def _flatten(values: Dict[str, Any], columns: Dict[str, str]) -> Dict[str, Any]:
    return {columns[key]: value for key, value in values.items() if key in columns}


def _enum_values(values) -> List[str]:
    return [getattr(value, "value", value) for value in values]


def haversine_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in metres"""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_METRES * math.asin(math.sqrt(a))


def media_public_ids(restaurant: Restaurant) -> List[str]:
    public_ids = [restaurant.logo_public_id, restaurant.cover_image_public_id]
    public_ids.extend(image.public_id for image in restaurant.images)
    return list(dict.fromkeys(public_id for public_id in public_ids if public_id))


async def remove_media(storage: MediaStorage, public_ids: List[str]) -> None:
    """Best-effort removal of stored assets, failures are only logged"""
    for public_id in public_ids:
        if not await storage.delete(public_id):
            logger.warning("Media asset %s was not removed", public_id)


class RestaurantService:

    async def get_restaurant_by_id(self, restaurant_id: int, db: AsyncSession) -> Restaurant:
        restaurant = await db.get(Restaurant, restaurant_id)
        if not restaurant:
            raise NotFoundException("Restaurant not found")
        return restaurant

    async def ensure_user_exists(self, user_id: int, db: AsyncSession) -> None:
        if not await db.get(User, user_id):
            raise UserNotFoundException(f"User with ID {user_id} not found")

    async def generate_unique_slug(self, text: str, restaurant_id: Optional[int], db: AsyncSession) -> str:
        """
        Generate a unique slug from a restaurant name or requested slug
        """
        base_slug = slugify(text)
        if not base_slug:
            raise BadRequestException("Restaurant name must contain letters or digits")

        slug = base_slug
        counter = 1

        while True:
            query = select(Restaurant.id).where(Restaurant.slug == slug)

            # If updating existing restaurant, exclude it from the check
            if restaurant_id is not None:
                query = query.where(Restaurant.id != restaurant_id)

            result = await db.execute(query)
            if not result.first():
                break

            counter += 1
            slug = f"{base_slug}-{counter}"

        return slug

    async def _commit_with_slug(self, slug: str, db: AsyncSession) -> None:
        try:
            await db.commit()
        except IntegrityError:
            # another request stored the same slug after it was generated
            await db.rollback()
            raise ConflictException(f"Restaurant slug {slug} already exists")

    async def create_restaurant(self, restaurant_data: RestaurantCreate, db: AsyncSession) -> Restaurant:
        await self.ensure_user_exists(restaurant_data.owner_id, db)
        for manager_id in restaurant_data.manager_ids:
            await self.ensure_user_exists(manager_id, db)

        slug = await self.generate_unique_slug(restaurant_data.slug or restaurant_data.name, None, db)

        data = restaurant_data.model_dump(
            exclude={"slug", "location", "contact", "type", "opening_hours", "holidays", "manager_ids"}
        )
        data["cuisine_type"] = _enum_values(restaurant_data.cuisine_type)
        data["food_type"] = _enum_values(restaurant_data.food_type)
        data["delivery_details"] = restaurant_data.delivery_details.model_dump()
        data.update(_flatten(restaurant_data.location.model_dump(), LOCATION_COLUMNS))
        data.update(_flatten(restaurant_data.contact.model_dump(), CONTACT_COLUMNS))
        data.update(_flatten(restaurant_data.type.model_dump(), SERVICE_TYPE_COLUMNS))

        restaurant = Restaurant(
            slug=slug,
            opening_hours=[entry.model_dump() for entry in restaurant_data.opening_hours],
            holidays=[holiday.isoformat() for holiday in restaurant_data.holidays],
            **data,
        )
        restaurant.manager_links = [
            RestaurantManager(user_id=manager_id) for manager_id in restaurant_data.manager_ids
        ]

        db.add(restaurant)
        await self._commit_with_slug(slug, db)
        await db.refresh(restaurant)

        logger.info("Created restaurant %s (id=%s)", restaurant.slug, restaurant.id)
        return restaurant

    async def list_restaurants(self, query: RestaurantQuery, db: AsyncSession) -> Tuple[List[Restaurant], int]:
        total = await db.scalar(select(func.count(Restaurant.id)).where(*query.filters))
        result = await db.execute(
            select(Restaurant)
            .where(*query.filters)
            .order_by(*query.sort)
            .offset(query.offset)
            .limit(query.limit)
        )
        return result.scalars().all(), total or 0

    async def get_restaurant(self, id_or_slug: str, db: AsyncSession) -> Restaurant:
        """
        Fetch a restaurant by numeric id or by slug and count the view
        """
        restaurant = None
        restaurant_id = parse_identifier(id_or_slug)
        if restaurant_id is not None:
            restaurant = await db.get(Restaurant, restaurant_id)
        if restaurant is None:
            result = await db.execute(select(Restaurant).where(Restaurant.slug == id_or_slug.strip().lower()))
            restaurant = result.scalars().first()
        if restaurant is None:
            raise NotFoundException("Restaurant not found")

        await db.execute(
            update(Restaurant)
            .where(Restaurant.id == restaurant.id)
            .values(view_count=Restaurant.view_count + 1)
        )
        await db.commit()
        await db.refresh(restaurant)
        return restaurant

    async def update_restaurant(self, restaurant_id: int, restaurant_data: RestaurantUpdate, db: AsyncSession) -> Restaurant:
        restaurant = await self.get_restaurant_by_id(restaurant_id, db)
        update_data = restaurant_data.model_dump(exclude_unset=True)

        if update_data.get("slug"):
            update_data["slug"] = await self.generate_unique_slug(update_data["slug"], restaurant.id, db)
        elif update_data.get("name"):
            update_data["slug"] = await self.generate_unique_slug(update_data["name"], restaurant.id, db)

        for key in ("cuisine_type", "food_type"):
            if update_data.get(key) is not None:
                update_data[key] = list(dict.fromkeys(_enum_values(update_data[key])))

        columns = {}
        for key, mapping in (("location", LOCATION_COLUMNS), ("contact", CONTACT_COLUMNS), ("type", SERVICE_TYPE_COLUMNS)):
            nested = update_data.pop(key, None)
            if nested:
                columns.update(_flatten(nested, mapping))
        columns.update(update_data)

        table_columns = Restaurant.__table__.c
        for field, value in columns.items():
            if value is None and not table_columns[field].nullable:
                continue
            setattr(restaurant, field, value)

        if (restaurant.latitude is None) != (restaurant.longitude is None):
            raise BadRequestException("Latitude and longitude must be provided together")

        await self._commit_with_slug(restaurant.slug, db)
        await db.refresh(restaurant)
        return restaurant

    async def delete_restaurant(self, restaurant_id: int, storage: MediaStorage, db: AsyncSession) -> bool:
        restaurant = await self.get_restaurant_by_id(restaurant_id, db)
        public_ids = media_public_ids(restaurant)

        await db.delete(restaurant)
        await db.commit()
        logger.info("Deleted restaurant %s", restaurant_id)

        await remove_media(storage, public_ids)
        return True

    async def delete_restaurants(self, restaurant_ids: List[int], storage: MediaStorage, db: AsyncSession) -> int:
        result = await db.execute(select(Restaurant).where(Restaurant.id.in_(restaurant_ids)))
        restaurants = result.scalars().all()
        if not restaurants:
            raise NotFoundException("No restaurants found for the given IDs")

        public_ids = []
        for restaurant in restaurants:
            public_ids.extend(media_public_ids(restaurant))
            await db.delete(restaurant)
        await db.commit()
        logger.info("Deleted %s restaurants", len(restaurants))

        await remove_media(storage, public_ids)
        return len(restaurants)

    # Location

    async def get_nearby_restaurants(
        self, longitude: float, latitude: float, distance: int, db: AsyncSession
    ) -> List[Tuple[Restaurant, float]]:
        """
        Active restaurants within `distance` metres, nearest first.

        A bounding box narrows the candidates in SQL, the exact great-circle
        distance is then checked per row.
        """
        lat_delta = distance / METRES_PER_DEGREE
        cos_lat = math.cos(math.radians(latitude))
        lng_delta = 180.0 if cos_lat < 1e-6 else min(180.0, distance / (METRES_PER_DEGREE * cos_lat))

        result = await db.execute(
            select(Restaurant).where(
                Restaurant.is_active == True,
                Restaurant.latitude.is_not(None),
                Restaurant.longitude.is_not(None),
                Restaurant.latitude.between(latitude - lat_delta, latitude + lat_delta),
                Restaurant.longitude.between(longitude - lng_delta, longitude + lng_delta),
            )
        )

        nearby = []
        for restaurant in result.scalars().all():
            metres = haversine_distance(latitude, longitude, restaurant.latitude, restaurant.longitude)
            if metres <= distance:
                nearby.append((restaurant, metres))
        nearby.sort(key=lambda pair: pair[1])
        return nearby

    async def _paginate(self, condition, page: int, limit: int, db: AsyncSession) -> Tuple[List[Restaurant], int]:
        total = await db.scalar(select(func.count(Restaurant.id)).where(condition))
        result = await db.execute(
            select(Restaurant)
            .where(condition)
            .order_by(Restaurant.created_at.desc(), Restaurant.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return result.scalars().all(), total or 0

    async def get_city_restaurants(self, city: str, page: int, limit: int, db: AsyncSession):
        if not city.strip():
            raise BadRequestException("City name is required")
        return await self._paginate(Restaurant.city.ilike(like_pattern(city.strip()), escape="\\"), page, limit, db)

    async def get_zone_restaurants(self, zone_id: int, page: int, limit: int, db: AsyncSession):
        return await self._paginate(Restaurant.zone_id == zone_id, page, limit, db)

    # Status & availability

    async def get_status(self, restaurant_id: int, db: AsyncSession) -> Dict[str, Any]:
        restaurant = await self.get_restaurant_by_id(restaurant_id, db)
        status = compute_status(restaurant.opening_hours, restaurant.holidays, restaurant_now())
        return {
            "is_open_now": restaurant.is_open_now,
            "is_active": restaurant.is_active,
            "is_busy": restaurant.is_busy,
            "is_accepting_orders": restaurant.is_accepting_orders,
            "should_be_open": status["should_be_open"],
            "is_holiday": status["is_holiday"],
            "today_hours": status["today_hours"],
            "next_holiday": status["next_holiday"],
        }

    async def update_status(self, restaurant_id: int, status_data: RestaurantStatusUpdate, db: AsyncSession) -> Dict[str, Any]:
        restaurant = await self.get_restaurant_by_id(restaurant_id, db)
        for field, value in status_data.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(restaurant, field, value)
        await db.commit()
        return await self.get_status(restaurant_id, db)

    async def is_restaurant_open(self, restaurant_id: int, db: AsyncSession) -> Dict[str, Any]:
        restaurant = await self.get_restaurant_by_id(restaurant_id, db)
        return is_open(restaurant.opening_hours, restaurant.holidays, restaurant.is_open_now, restaurant_now())

    async def update_opening_hours(
        self, restaurant_id: int, opening_hours: List[OpeningHoursEntry], db: AsyncSession
    ) -> List[Dict[str, Any]]:
        restaurant = await self.get_restaurant_by_id(restaurant_id, db)
        restaurant.opening_hours = [entry.model_dump() for entry in opening_hours]
        await db.commit()
        return restaurant.opening_hours

    async def update_holidays(self, restaurant_id: int, holidays, db: AsyncSession) -> List[str]:
        restaurant = await self.get_restaurant_by_id(restaurant_id, db)
        restaurant.holidays = [holiday.isoformat() for holiday in holidays]
        await db.commit()
        return restaurant.holidays

    # Analytics

    async def get_analytics(self, restaurant_id: int, db: AsyncSession) -> Dict[str, Any]:
        restaurant = await self.get_restaurant_by_id(restaurant_id, db)
        delivery = restaurant.delivery_details or {}
        estimate = delivery.get("estimated_delivery_time") or {}
        bounds = [value for value in (estimate.get("min"), estimate.get("max")) if value is not None]

        return {
            "order_stats": {
                "total_orders": restaurant.order_count,
                "last_order": restaurant.last_order_time,
                "avg_preparation_time": restaurant.preparation_time,
            },
            "popularity": {
                "views": restaurant.view_count,
                "average_rating": restaurant.average_rating,
            },
            "delivery_metrics": {
                "delivery_available": bool(delivery.get("is_delivery_available", False)),
                "avg_delivery_time": sum(bounds) / len(bounds) if bounds else None,
            },
        }

    async def get_ratings(self, restaurant_id: int, db: AsyncSession) -> Dict[str, Any]:
        restaurant = await self.get_restaurant_by_id(restaurant_id, db)
        return {
            "overall": restaurant.rating_overall,
            "food_quality": restaurant.rating_food_quality,
            "delivery_experience": restaurant.rating_delivery_experience,
            "packaging": restaurant.rating_packaging,
            "total_reviews": restaurant.review_count,
            "average_rating": restaurant.average_rating,
        }

    async def get_timings(self, restaurant_id: int, db: AsyncSession) -> Dict[str, Any]:
        restaurant = await self.get_restaurant_by_id(restaurant_id, db)
        opening_hours = restaurant.opening_hours or []
        delivery = restaurant.delivery_details or {}
        return {
            "opening_hours": opening_hours,
            "average_preparation": restaurant.preparation_time,
            "delivery_time_range": delivery.get("estimated_delivery_time") or {},
            "operational_days": len([hours for hours in opening_hours if not hours.get("is_closed")]),
        }

    # Search & discovery

    async def search_restaurants(self, query: str, db: AsyncSession) -> List[Restaurant]:
        if not query or not query.strip():
            raise BadRequestException("Search query required")
        result = await db.execute(
            select(Restaurant)
            .where(Restaurant.is_active == True, text_search(query.strip()))
            .order_by(Restaurant.rating_overall.desc(), Restaurant.id.desc())
            .limit(SEARCH_LIMIT)
        )
        return result.scalars().all()

    async def filter_restaurants(
        self,
        cuisine: Optional[str],
        min_rating: Optional[str],
        price_range: Optional[str],
        is_pure_veg: Optional[str],
        db: AsyncSession,
    ) -> List[Restaurant]:
        filters = build_discovery_filters(cuisine, min_rating, price_range, is_pure_veg)
        result = await db.execute(
            select(Restaurant)
            .where(Restaurant.is_active == True, *filters)
            .order_by(Restaurant.rating_overall.desc(), Restaurant.id.desc())
            .limit(FILTER_LIMIT)
        )
        return result.scalars().all()

    async def get_trending_restaurants(self, db: AsyncSession) -> List[Dict[str, Any]]:
        """
        Top restaurants by 0.5 * orders + 0.3 * views + 200 * average rating
        """
        average_rating = (
            Restaurant.rating_overall + Restaurant.rating_food_quality + Restaurant.rating_delivery_experience
        ) / 3
        score = Restaurant.order_count * 0.5 + Restaurant.view_count * 0.3 + average_rating * 200

        result = await db.execute(
            select(Restaurant, score.label("popularity_score"))
            .where(Restaurant.is_active == True)
            .order_by(score.desc(), Restaurant.id.desc())
            .limit(TRENDING_LIMIT)
        )
        return [
            {
                "id": restaurant.id,
                "name": restaurant.name,
                "slug": restaurant.slug,
                "cuisine_type": restaurant.cuisine_type or [],
                "rating": restaurant.rating_overall,
                "order_count": restaurant.order_count,
                "image": restaurant.images[0].url if restaurant.images else None,
                "popularity_score": round(popularity_score or 0, 2),
            }
            for restaurant, popularity_score in result.all()
        ]

    # Administration

    async def verify_restaurant(self, restaurant_id: int, verified: bool, db: AsyncSession) -> bool:
        restaurant = await self.get_restaurant_by_id(restaurant_id, db)
        restaurant.is_verified = verified
        await db.commit()
        logger.info("Restaurant %s verification set to %s", restaurant_id, verified)
        return restaurant.is_verified

    async def update_owner(self, restaurant_id: int, new_owner_id: int, db: AsyncSession) -> int:
        restaurant = await self.get_restaurant_by_id(restaurant_id, db)
        await self.ensure_user_exists(new_owner_id, db)
        restaurant.owner_id = new_owner_id
        await db.commit()
        logger.info("Restaurant %s owner changed to %s", restaurant_id, new_owner_id)
        return restaurant.owner_id

    async def add_manager(self, restaurant_id: int, manager_id: int, db: AsyncSession) -> List[int]:
        restaurant = await self.get_restaurant_by_id(restaurant_id, db)
        await self.ensure_user_exists(manager_id, db)
        if manager_id not in restaurant.manager_ids:
            restaurant.manager_links.append(RestaurantManager(user_id=manager_id))
            await db.commit()
            await db.refresh(restaurant)
        return restaurant.manager_ids

    async def remove_manager(self, restaurant_id: int, manager_id: int, db: AsyncSession) -> List[int]:
        restaurant = await self.get_restaurant_by_id(restaurant_id, db)
        restaurant.manager_links = [link for link in restaurant.manager_links if link.user_id != manager_id]
        await db.commit()
        await db.refresh(restaurant)
        return restaurant.manager_ids

    # Enums in use

    async def _values_in_use(self, column, db: AsyncSession) -> List[str]:
        result = await db.execute(select(column))
        counts = Counter(value for values in result.scalars().all() for value in (values or []))
        return [value for value, _ in counts.most_common()]

    async def get_cuisines(self, db: AsyncSession) -> List[str]:
        return await self._values_in_use(Restaurant.cuisine_type, db)

    async def get_food_types(self, db: AsyncSession) -> List[str]:
        return await self._values_in_use(Restaurant.food_type, db)


restaurant_service = RestaurantService()
