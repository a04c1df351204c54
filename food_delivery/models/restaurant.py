from datetime import date

from sqlalchemy import JSON, Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from .base import Base, TimeStampMixin


def default_delivery_details():
    return {
        "is_delivery_available": True,
        "is_self_delivery": False,
        "delivery_fee": 0,
        "min_order_amount": 0,
        "free_delivery_threshold": None,
        "delivery_radius": None,
        "estimated_delivery_time": {"min": 30, "max": 45},
    }


class Restaurant(Base, TimeStampMixin):
    __tablename__ = "restaurants"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    slug = Column(String, nullable=False, unique=True, index=True)
    description = Column(Text, nullable=True)
    short_description = Column(String, nullable=True)
    restaurant_chain = Column(String, nullable=True)
    franchise_id = Column(String, nullable=True)

    cuisine_type = Column(JSON, nullable=False, default=list)  # array of CuisineType values
    food_type = Column(JSON, nullable=False, default=list)  # array of FoodType values
    tags = Column(JSON, nullable=False, default=list)
    popular_dishes = Column(JSON, nullable=False, default=list)

    # location
    address = Column(String, nullable=True)
    landmark = Column(String, nullable=True)
    city = Column(String, nullable=True, index=True)
    state = Column(String, nullable=True)
    pin_code = Column(String, nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    zone_id = Column(Integer, nullable=True, index=True)

    # contact
    contact_phone = Column(String, nullable=True, index=True)
    alternate_phone = Column(String, nullable=True)
    contact_email = Column(String, nullable=True, index=True)
    website = Column(String, nullable=True)

    # service type
    is_restaurant = Column(Boolean, nullable=False, default=True)
    is_dine_in = Column(Boolean, nullable=False, default=False)
    is_cloud_kitchen = Column(Boolean, nullable=False, default=False)

    opening_hours = Column(JSON, nullable=False, default=list)  # [{day, open, close, is_closed}]
    holidays = Column(JSON, nullable=False, default=list)  # ISO dates
    preparation_time = Column(Integer, nullable=True)  # minutes
    delivery_details = Column(JSON, nullable=False, default=default_delivery_details)
    price_range = Column(Integer, nullable=True)
    is_pure_veg = Column(Boolean, nullable=False, default=False)

    rating_overall = Column(Float, nullable=False, default=0)
    rating_food_quality = Column(Float, nullable=False, default=0)
    rating_delivery_experience = Column(Float, nullable=False, default=0)
    rating_packaging = Column(Float, nullable=False, default=0)
    review_count = Column(Integer, nullable=False, default=0)

    logo = Column(String, nullable=True)
    logo_public_id = Column(String, nullable=True)
    cover_image = Column(String, nullable=True)
    cover_image_public_id = Column(String, nullable=True)

    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    fssai_license_number = Column(String, nullable=True)
    gst_number = Column(String, nullable=True)

    is_open_now = Column(Boolean, nullable=False, default=False)  # manual override set by staff
    is_active = Column(Boolean, nullable=False, default=True)
    is_featured = Column(Boolean, nullable=False, default=False)
    is_busy = Column(Boolean, nullable=False, default=False)
    is_accepting_orders = Column(Boolean, nullable=False, default=True)
    is_verified = Column(Boolean, nullable=False, default=False)

    view_count = Column(Integer, nullable=False, default=0)
    order_count = Column(Integer, nullable=False, default=0)
    last_order_time = Column(DateTime, nullable=True)

    # Relationships
    images = relationship(
        "RestaurantImage", back_populates="restaurant", cascade="all, delete-orphan",
        lazy="selectin", order_by="RestaurantImage.id",
    )
    manager_links = relationship(
        "RestaurantManager", back_populates="restaurant", cascade="all, delete-orphan",
        lazy="selectin", order_by="RestaurantManager.user_id",
    )
    menu = relationship(
        "MenuSection", back_populates="restaurant", cascade="all, delete-orphan",
        lazy="selectin", order_by="MenuSection.id",
    )
    offers = relationship(
        "RestaurantOffer", back_populates="restaurant", cascade="all, delete-orphan",
        passive_deletes=True, order_by="RestaurantOffer.id",
    )
    delivery_slots = relationship(
        "DeliverySlot", back_populates="restaurant", cascade="all, delete-orphan",
        passive_deletes=True, order_by="DeliverySlot.id",
    )

    @property
    def manager_ids(self):
        return [link.user_id for link in self.manager_links]

    @property
    def holiday_dates(self):
        return [date.fromisoformat(value) for value in (self.holidays or [])]

    @property
    def average_rating(self) -> float:
        return round(
            (self.rating_overall + self.rating_food_quality + self.rating_delivery_experience) / 3, 1
        )

    def __repr__(self):
        return f"<Restaurant(id={self.id}, slug={self.slug}, owner_id={self.owner_id})>"


class RestaurantManager(Base):
    __tablename__ = "restaurant_managers"

    restaurant_id = Column(Integer, ForeignKey("restaurants.id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True, index=True)

    restaurant = relationship("Restaurant", back_populates="manager_links")


class RestaurantImage(Base, TimeStampMixin):
    __tablename__ = "restaurant_images"

    id = Column(Integer, primary_key=True, index=True)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id", ondelete="CASCADE"), nullable=False, index=True)
    url = Column(String, nullable=False)
    caption = Column(String, nullable=True)
    is_featured = Column(Boolean, nullable=False, default=False)
    public_id = Column(String, nullable=True)

    restaurant = relationship("Restaurant", back_populates="images")
