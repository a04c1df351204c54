from .coupon_service import CouponService, coupon_service
from .delivery_service import DeliveryService, delivery_service
from .media_service import MediaService, media_service
from .menu_service import MenuService, menu_service
from .offer_service import OfferService, offer_service
from .restaurant_service import RestaurantService, restaurant_service
from .storage_service import MediaStorage


__all__ = [
    "CouponService",
    "DeliveryService",
    "MediaService",
    "MediaStorage",
    "MenuService",
    "OfferService",
    "RestaurantService",
    "coupon_service",
    "delivery_service",
    "media_service",
    "menu_service",
    "offer_service",
    "restaurant_service",
]
