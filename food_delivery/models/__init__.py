from .coupon import Coupon, CouponRedemption, CouponRestaurant
from .delivery import DeliverySlot
from .menu import MenuCategory, MenuItem, MenuSection
from .offer import RestaurantOffer
from .restaurant import Restaurant, RestaurantImage, RestaurantManager
from .user import User


__all__ = [
    "Coupon",
    "CouponRedemption",
    "CouponRestaurant",
    "DeliverySlot",
    "MenuCategory",
    "MenuItem",
    "MenuSection",
    "Restaurant",
    "RestaurantImage",
    "RestaurantManager",
    "RestaurantOffer",
    "User",
]
