from .coupon import (
    ApplyCouponRequest,
    CouponApplication,
    CouponCreate,
    CouponResponse,
    CouponUpdate,
    CouponValidation,
    RedeemCouponRequest,
)
from .delivery import DeliveryDetails, DeliverySlotCreate, DeliverySlotResponse
from .menu import MenuCategoryCreate, MenuItemCreate, MenuSectionCreate, MenuSectionResponse
from .offer import OfferCreate, OfferResponse, OfferUpdate
from .restaurant import (
    OpeningHoursEntry,
    RestaurantCreate,
    RestaurantResponse,
    RestaurantUpdate,
)


__all__ = [
    # coupon schemas
    "ApplyCouponRequest",
    "CouponApplication",
    "CouponCreate",
    "CouponResponse",
    "CouponUpdate",
    "CouponValidation",
    "RedeemCouponRequest",

    # delivery schemas
    "DeliveryDetails",
    "DeliverySlotCreate",
    "DeliverySlotResponse",

    # menu schemas
    "MenuCategoryCreate",
    "MenuItemCreate",
    "MenuSectionCreate",
    "MenuSectionResponse",

    # offer schemas
    "OfferCreate",
    "OfferResponse",
    "OfferUpdate",

    # restaurant schemas
    "OpeningHoursEntry",
    "RestaurantCreate",
    "RestaurantResponse",
    "RestaurantUpdate",
]
