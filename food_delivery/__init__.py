from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

load_dotenv()

from .core.config import Config
from .core.logging import setup_logging
from .db.database import close_db, init_db
from .exceptions import (
    create_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    CouponAlreadyRedeemedException,
    CouponAlreadyUsedByUserException,
    CouponCodeExistsException,
    CouponExpiredOrNotYetValidException,
    CouponNotApplicableToRestaurantException,
    CouponNotFoundException,
    CouponUsageLimitReachedException,
    MediaUploadFailedException,
    OrderValueBelowMinimumException,
    UserNotFoundException,
)
from .routers.coupons import router as coupons_router
from .routers.menu_catalog import router as menu_catalog_router
from .routers.restaurant_delivery import router as restaurant_delivery_router
from .routers.restaurant_media import router as restaurant_media_router
from .routers.restaurant_menu import router as restaurant_menu_router
from .routers.restaurant_offers import router as restaurant_offers_router
from .routers.restaurants import router as restaurants_router

logger = setup_logging()

api_version = "v1"
api_prefix = f"/api/{api_version}"
swagger_docs_url = f"{api_prefix}/docs"
redoc_docs_url = f"{api_prefix}/redoc"
openapi_url = f"{api_prefix}/openapi.json"


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    logger.info("Food Delivery API started")
    yield
    await close_db()


app = FastAPI(
    docs_url=swagger_docs_url,
    redoc_url=redoc_docs_url,
    openapi_url=openapi_url,
    title="Food Delivery API",
    description="Restaurant catalogue, menus, offers, delivery options and coupons for a food delivery platform.",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=Config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=['GET', 'POST', 'PUT', 'PATCH', 'DELETE'],
    allow_headers=["*"],
)

# Register endpoints
app.include_router(restaurants_router, prefix=api_prefix)
app.include_router(restaurant_menu_router, prefix=api_prefix)
app.include_router(restaurant_media_router, prefix=api_prefix)
app.include_router(restaurant_offers_router, prefix=api_prefix)
app.include_router(restaurant_delivery_router, prefix=api_prefix)
app.include_router(menu_catalog_router, prefix=api_prefix)
app.include_router(coupons_router, prefix=api_prefix)

# Uploaded restaurant media
Path(Config.MEDIA_ROOT).mkdir(parents=True, exist_ok=True)
app.mount(Config.MEDIA_BASE_URL, StaticFiles(directory=Config.MEDIA_ROOT), name="media")


@app.get("/")
async def root():
    return {
        "message": "Food Delivery API",
        "version": "1.0.0",
        "docs": swagger_docs_url,
        "status": "running"
    }


@app.get("/health")
async def health_check():
    return {"status": "healthy"}

# Register custom exceptions
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)

# User-related exception handlers
app.add_exception_handler(UserNotFoundException, create_exception_handler(404, "User not found."))

# Coupon-related exception handlers
app.add_exception_handler(CouponNotFoundException, create_exception_handler(404, "Invalid coupon code"))
app.add_exception_handler(CouponExpiredOrNotYetValidException, create_exception_handler(400, "Coupon not valid at this time"))
app.add_exception_handler(CouponNotApplicableToRestaurantException, create_exception_handler(400, "Coupon not valid for this restaurant"))
app.add_exception_handler(CouponAlreadyUsedByUserException, create_exception_handler(400, "Coupon already used by this user"))
app.add_exception_handler(OrderValueBelowMinimumException, create_exception_handler(400, "Order value below the coupon minimum"))
app.add_exception_handler(CouponAlreadyRedeemedException, create_exception_handler(409, "Coupon already redeemed by this user"))
app.add_exception_handler(CouponUsageLimitReachedException, create_exception_handler(400, "This coupon has reached its usage limit"))
app.add_exception_handler(CouponCodeExistsException, create_exception_handler(409, "Coupon code already exists"))

# Media-related exception handlers
app.add_exception_handler(MediaUploadFailedException, create_exception_handler(400, "Media upload failed"))
