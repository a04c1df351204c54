import logging
from datetime import timedelta
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..enums import DiscountType, OfferAction
from ..exceptions import BadRequestException, NotFoundException
from ..models import RestaurantOffer
from ..schemas.offer import OfferCreate, OfferUpdate
from ..utils.time import utcnow
from .restaurant_service import restaurant_service


logger = logging.getLogger(__name__)

ACTIVATION_PERIOD = timedelta(days=7)


class OfferService:

    async def _get_offer(self, restaurant_id: int, offer_id: int, db: AsyncSession) -> RestaurantOffer:
        result = await db.execute(
            select(RestaurantOffer).where(
                RestaurantOffer.id == offer_id,
                RestaurantOffer.restaurant_id == restaurant_id,
            )
        )
        offer = result.scalars().first()
        if not offer:
            raise NotFoundException("Restaurant or offer not found")
        return offer

    async def create_offer(self, restaurant_id: int, offer_data: OfferCreate, db: AsyncSession) -> RestaurantOffer:
        await restaurant_service.get_restaurant_by_id(restaurant_id, db)

        data = offer_data.model_dump()
        data["discount_type"] = offer_data.discount_type.value
        offer = RestaurantOffer(restaurant_id=restaurant_id, **data)
        db.add(offer)
        await db.commit()
        await db.refresh(offer)

        logger.info("Created offer %s for restaurant %s", offer.id, restaurant_id)
        return offer

    async def get_active_offers(self, restaurant_id: int, db: AsyncSession) -> List[RestaurantOffer]:
        """Offers whose validity runs past the current time"""
        await restaurant_service.get_restaurant_by_id(restaurant_id, db)
        result = await db.execute(
            select(RestaurantOffer)
            .where(RestaurantOffer.restaurant_id == restaurant_id, RestaurantOffer.valid_till > utcnow())
            .order_by(RestaurantOffer.valid_till, RestaurantOffer.id)
        )
        return result.scalars().all()

    async def update_offer(
        self, restaurant_id: int, offer_id: int, offer_data: OfferUpdate, db: AsyncSession
    ) -> RestaurantOffer:
        offer = await self._get_offer(restaurant_id, offer_id, db)
        update_data = offer_data.model_dump(exclude_unset=True, exclude={"code"})

        discount_type = update_data.get("discount_type") or offer.discount_type
        discount_value = update_data.get("discount_value") or offer.discount_value
        if discount_type == DiscountType.PERCENTAGE and discount_value > 100:
            raise BadRequestException("Percentage discount cannot exceed 100")

        for field, value in update_data.items():
            if value is None and field != "description":
                continue
            setattr(offer, field, value.value if isinstance(value, DiscountType) else value)

        await db.commit()
        await db.refresh(offer)
        return offer

    async def toggle_offer(self, restaurant_id: int, offer_id: int, action: OfferAction, db: AsyncSession) -> RestaurantOffer:
        """
        Activation extends validity a week from now, deactivation ends it now.
        """
        offer = await self._get_offer(restaurant_id, offer_id, db)
        now = utcnow()
        offer.valid_till = now + ACTIVATION_PERIOD if action == OfferAction.ACTIVATE else now
        await db.commit()
        await db.refresh(offer)
        return offer


offer_service = OfferService()
