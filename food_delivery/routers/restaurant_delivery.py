from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from ..core.dependencies import get_db
from ..core.responses import ApiResponse
from ..schemas.delivery import (
    DeliveryDetailsUpdate,
    DeliveryOptionsResponse,
    DeliverySlotCreate,
    DeliverySlotResponse,
    DeliverySlotUpdate,
)
from ..services.delivery_service import delivery_service


router = APIRouter(prefix="/restaurants", tags=["Restaurant Delivery"])


@router.get("/{restaurant_id}/delivery", response_model=ApiResponse[DeliveryOptionsResponse])
async def get_delivery_options(restaurant_id: int, db: AsyncSession = Depends(get_db)):
    options = await delivery_service.get_delivery_options(restaurant_id, db)
    return {"message": "Delivery options fetched successfully", "data": options}


@router.patch("/{restaurant_id}/delivery", response_model=ApiResponse[DeliveryOptionsResponse])
async def update_delivery_options(
    restaurant_id: int, options: DeliveryDetailsUpdate, db: AsyncSession = Depends(get_db)
):
    """
    **Update Delivery Options**

    Only the given options change; unknown keys are rejected.
    """
    updated = await delivery_service.update_delivery_options(restaurant_id, options, db)
    return {"message": "Delivery options updated successfully", "data": updated}


@router.post(
    "/{restaurant_id}/slots",
    response_model=ApiResponse[List[DeliverySlotResponse]],
    status_code=status.HTTP_201_CREATED,
)
async def create_delivery_slot(
    restaurant_id: int, slot_data: DeliverySlotCreate, db: AsyncSession = Depends(get_db)
):
    """
    **Create Delivery Slot**

    **Request Body:**

    - **startTime** / **endTime**: HH:MM, start before end
    - **maxOrders**: orders accepted in the slot (default 0)

    **Returns:** every slot of the restaurant ordered by start time
    """
    slots = await delivery_service.create_slot(restaurant_id, slot_data, db)
    return {"message": "Delivery time slot created successfully", "data": slots}


@router.get("/{restaurant_id}/slots", response_model=ApiResponse[List[DeliverySlotResponse]])
async def get_delivery_slots(restaurant_id: int, db: AsyncSession = Depends(get_db)):
    slots = await delivery_service.get_slots(restaurant_id, db)
    return {"message": "Delivery time slots fetched successfully", "data": slots}


@router.patch("/{restaurant_id}/slots/{slot_id}", response_model=ApiResponse[DeliverySlotResponse])
async def update_delivery_slot(
    restaurant_id: int, slot_id: int, slot_data: DeliverySlotUpdate, db: AsyncSession = Depends(get_db)
):
    slot = await delivery_service.update_slot(restaurant_id, slot_id, slot_data, db)
    return {"message": "Delivery time slot updated successfully", "data": slot}


@router.delete("/{restaurant_id}/slots/{slot_id}", response_model=ApiResponse[None])
async def delete_delivery_slot(restaurant_id: int, slot_id: int, db: AsyncSession = Depends(get_db)):
    await delivery_service.delete_slot(restaurant_id, slot_id, db)
    return {"message": "Delivery time slot deleted successfully"}
