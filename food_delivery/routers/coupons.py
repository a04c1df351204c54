from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from ..core.dependencies import get_db
from ..core.responses import ApiResponse
from ..schemas.coupon import (
    ApplyCouponRequest,
    CouponApplication,
    CouponCreate,
    CouponRedemptionResponse,
    CouponResponse,
    CouponUpdate,
    CouponValidation,
    RedeemCouponRequest,
    RemainingUses,
)
from ..services.coupon_service import coupon_service


router = APIRouter(prefix="/coupons", tags=["Coupons"])


@router.post("/", response_model=ApiResponse[CouponResponse], status_code=status.HTTP_201_CREATED)
async def create_coupon(coupon_data: CouponCreate, db: AsyncSession = Depends(get_db)):
    """
    **Create Coupon**

    Creates a discount coupon. The code is stored upper-cased and must be unique.

    **Request Body:**

    - **code**: 6 to 20 characters
    - **discountType**: `percentage` or `fixed`
    - **discountValue**: amount or percentage (1-100 for percentage)
    - **validFrom** / **validUntil**: validity window, validFrom defaults to now
    - **maxUses**: total redemptions allowed, omit for unlimited
    - **minOrderValue**: minimum order value (default 0)
    - **applicableRestaurants**: restaurant ids, empty means every restaurant
    """
    coupon = await coupon_service.create_coupon(coupon_data, db)
    return {"message": "Coupon created successfully", "data": coupon}


@router.get("/", response_model=ApiResponse[List[CouponResponse]])
async def get_coupons(
    is_active: Optional[bool] = Query(None, alias="isActive", description="Filter by active status"),
    db: AsyncSession = Depends(get_db),
):
    """
    **Get All Coupons**

    Newest first, optionally filtered by active status.
    """
    coupons = await coupon_service.get_coupons(is_active, db)
    return {"message": "Coupons fetched successfully", "data": coupons}


@router.post("/apply", response_model=ApiResponse[CouponApplication])
async def apply_coupon(request: ApplyCouponRequest, db: AsyncSession = Depends(get_db)):
    """
    **Apply Coupon**

    Previews a coupon against an order and returns the discount and final amount.
    Nothing is recorded; use `/redeem` once the order is placed.

    **Errors:**

    - 404 when no active coupon has this code
    - 400 when the coupon is outside its validity window, restricted to other
      restaurants, already used by the user, or the order is below the minimum
    """
    application = await coupon_service.apply_coupon(request, db)
    return {"message": "Coupon applied successfully", "data": application}


@router.get("/validate", response_model=ApiResponse[CouponValidation])
async def validate_coupon(code: Optional[str] = Query(None), db: AsyncSession = Depends(get_db)):
    """
    **Validate Coupon**

    Checks only that the coupon is active and inside its validity window.
    Unknown codes report `valid: false`.
    """
    validation = await coupon_service.validate_coupon(code, db)
    return {"message": "Coupon validation complete", "data": validation}


@router.post("/redeem", response_model=ApiResponse[CouponRedemptionResponse], status_code=status.HTTP_201_CREATED)
async def redeem_coupon(request: RedeemCouponRequest, db: AsyncSession = Depends(get_db)):
    """
    **Redeem Coupon**

    Records that the user used the coupon.

    **Errors:**

    - 409 when the user already redeemed this coupon
    - 400 when the coupon has reached its usage limit
    """
    redemption = await coupon_service.redeem_coupon(request.code, request.user_id, db)
    return {"message": "Coupon redeemed successfully", "data": redemption}


@router.get("/restaurant/{restaurant_id}", response_model=ApiResponse[List[CouponResponse]])
async def get_coupons_by_restaurant(restaurant_id: int, db: AsyncSession = Depends(get_db)):
    """
    **Get Restaurant Coupons**

    Active coupons that explicitly name the restaurant.
    """
    coupons = await coupon_service.get_coupons_by_restaurant(restaurant_id, db)
    return {"message": "Restaurant coupons fetched successfully", "data": coupons}


@router.get("/user/{user_id}", response_model=ApiResponse[List[CouponResponse]])
async def get_coupons_by_user(user_id: int, db: AsyncSession = Depends(get_db)):
    """
    **Get User Coupons**

    Coupons the user has redeemed, most recent first.
    """
    coupons = await coupon_service.get_coupons_by_user(user_id, db)
    return {"message": "User coupons fetched successfully", "data": coupons}


@router.get("/{coupon_id}", response_model=ApiResponse[CouponResponse])
async def get_coupon(coupon_id: int, db: AsyncSession = Depends(get_db)):
    coupon = await coupon_service.get_coupon(coupon_id, db)
    return {"message": "Coupon fetched successfully", "data": coupon}


@router.patch("/{coupon_id}", response_model=ApiResponse[CouponResponse])
async def update_coupon(coupon_id: int, coupon_data: CouponUpdate, db: AsyncSession = Depends(get_db)):
    """
    **Update Coupon**

    Only discountType, discountValue, validUntil, maxUses, minOrderValue,
    applicableRestaurants and isActive may change. Any other field is rejected.
    """
    coupon = await coupon_service.update_coupon(coupon_id, coupon_data, db)
    return {"message": "Coupon updated successfully", "data": coupon}


@router.delete("/{coupon_id}", response_model=ApiResponse[None])
async def delete_coupon(coupon_id: int, db: AsyncSession = Depends(get_db)):
    await coupon_service.delete_coupon(coupon_id, db)
    return {"message": "Coupon deleted successfully"}


@router.patch("/{coupon_id}/toggle-status", response_model=ApiResponse[CouponResponse])
async def toggle_coupon_status(coupon_id: int, db: AsyncSession = Depends(get_db)):
    coupon = await coupon_service.toggle_coupon_status(coupon_id, db)
    state = "activated" if coupon.is_active else "deactivated"
    return {"message": f"Coupon {state} successfully", "data": coupon}


@router.get("/{coupon_id}/remaining-uses", response_model=ApiResponse[RemainingUses])
async def get_remaining_uses(coupon_id: int, db: AsyncSession = Depends(get_db)):
    """
    **Remaining Uses**

    `"unlimited"` when the coupon has no cap, otherwise maxUses minus the
    redemptions so far.
    """
    remaining = await coupon_service.get_remaining_uses(coupon_id, db)
    return {"message": "Remaining uses fetched successfully", "data": remaining}
