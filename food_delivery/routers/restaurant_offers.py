from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from ..core.dependencies import get_db
from ..core.responses import ApiResponse
from ..schemas.offer import OfferCreate, OfferResponse, OfferToggle, OfferUpdate
from ..services.offer_service import offer_service


router = APIRouter(prefix="/restaurants", tags=["Restaurant Offers"])


@router.post("/{restaurant_id}/offers", response_model=ApiResponse[OfferResponse], status_code=status.HTTP_201_CREATED)
async def create_offer(restaurant_id: int, offer_data: OfferCreate, db: AsyncSession = Depends(get_db)):
    """
    **Create Offer**

    **Request Body:**

    - **title**, **discountType**, **discountValue**, **validTill**: required
    - **description**, **code**, **minOrderAmount**: optional
    """
    offer = await offer_service.create_offer(restaurant_id, offer_data, db)
    return {"message": "Offer created successfully", "data": offer}


@router.get("/{restaurant_id}/offers", response_model=ApiResponse[List[OfferResponse]])
async def get_active_offers(restaurant_id: int, db: AsyncSession = Depends(get_db)):
    """
    **Active Offers**

    Offers whose validTill lies in the future, soonest to expire first.
    """
    offers = await offer_service.get_active_offers(restaurant_id, db)
    return {"message": "Active offers fetched successfully", "data": offers}


@router.patch("/{restaurant_id}/offers/{offer_id}", response_model=ApiResponse[OfferResponse])
async def update_offer(
    restaurant_id: int, offer_id: int, offer_data: OfferUpdate, db: AsyncSession = Depends(get_db)
):
    """
    **Update Offer**

    The offer code cannot be changed.
    """
    offer = await offer_service.update_offer(restaurant_id, offer_id, offer_data, db)
    return {"message": "Offer updated successfully", "data": offer}


@router.patch("/{restaurant_id}/offers/{offer_id}/toggle", response_model=ApiResponse[OfferResponse])
async def toggle_offer(
    restaurant_id: int, offer_id: int, payload: OfferToggle, db: AsyncSession = Depends(get_db)
):
    """
    **Activate or Deactivate Offer**

    `activate` keeps the offer valid for seven more days from now,
    `deactivate` ends it immediately.
    """
    offer = await offer_service.toggle_offer(restaurant_id, offer_id, payload.action, db)
    return {"message": f"Offer {payload.action.value}d successfully", "data": offer}
