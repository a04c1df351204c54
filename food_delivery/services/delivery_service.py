from typing import Any, Dict, List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import BadRequestException, NotFoundException
from ..models import DeliverySlot
from ..models.restaurant import default_delivery_details
from ..schemas.delivery import DeliveryDetailsUpdate, DeliverySlotCreate, DeliverySlotUpdate
from .restaurant_service import restaurant_service


NULLABLE_OPTIONS = {"free_delivery_threshold", "delivery_radius"}

class DeliveryService:

    async def _get_slots(self, restaurant_id: int, db: AsyncSession) -> List[DeliverySlot]:
        result = await db.execute(
            select(DeliverySlot)
            .where(DeliverySlot.restaurant_id == restaurant_id)
            .order_by(DeliverySlot.start_time, DeliverySlot.id)
        )
        return result.scalars().all()

    async def _get_slot(self, restaurant_id: int, slot_id: int, db: AsyncSession) -> DeliverySlot:
        result = await db.execute(
            select(DeliverySlot).where(DeliverySlot.id == slot_id, DeliverySlot.restaurant_id == restaurant_id)
        )
        slot = result.scalars().first()
        if not slot:
            raise NotFoundException("Delivery slot not found")
        return slot

    async def get_delivery_options(self, restaurant_id: int, db: AsyncSession) -> Dict[str, Any]:
        restaurant = await restaurant_service.get_restaurant_by_id(restaurant_id, db)
        options = dict(restaurant.delivery_details or default_delivery_details())
        options["delivery_slots"] = await self._get_slots(restaurant_id, db)
        return options

    async def update_delivery_options(
        self, restaurant_id: int, options: DeliveryDetailsUpdate, db: AsyncSession
    ) -> Dict[str, Any]:
        """Merge the given options into the stored delivery details"""
        restaurant = await restaurant_service.get_restaurant_by_id(restaurant_id, db)
        details = {**default_delivery_details(), **(restaurant.delivery_details or {})}
        for key, value in options.model_dump(exclude_unset=True).items():
            if value is None and key not in NULLABLE_OPTIONS:
                continue
            details[key] = value

        estimate = details.get("estimated_delivery_time") or {}
        if estimate.get("min", 0) > estimate.get("max", 0):
            raise BadRequestException("Minimum delivery time cannot exceed the maximum")

        restaurant.delivery_details = details
        await db.commit()
        return await self.get_delivery_options(restaurant_id, db)

    async def create_slot(self, restaurant_id: int, slot_data: DeliverySlotCreate, db: AsyncSession) -> List[DeliverySlot]:
        await restaurant_service.get_restaurant_by_id(restaurant_id, db)
        db.add(DeliverySlot(restaurant_id=restaurant_id, **slot_data.model_dump()))
        await db.commit()
        return await self._get_slots(restaurant_id, db)

    async def get_slots(self, restaurant_id: int, db: AsyncSession) -> List[DeliverySlot]:
        await restaurant_service.get_restaurant_by_id(restaurant_id, db)
        return await self._get_slots(restaurant_id, db)

    async def update_slot(
        self, restaurant_id: int, slot_id: int, slot_data: DeliverySlotUpdate, db: AsyncSession
    ) -> DeliverySlot:
        slot = await self._get_slot(restaurant_id, slot_id, db)
        for field, value in slot_data.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(slot, field, value)

        if slot.start_time >= slot.end_time:
            await db.rollback()
            raise BadRequestException("Slot start time must be before its end time")

        await db.commit()
        await db.refresh(slot)
        return slot

    async def delete_slot(self, restaurant_id: int, slot_id: int, db: AsyncSession) -> bool:
        slot = await self._get_slot(restaurant_id, slot_id, db)
        await db.delete(slot)
        await db.commit()
        return True


delivery_service = DeliveryService()
