import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, func, insert, literal, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..enums import DiscountType
from ..exceptions import (
    BadRequestException,
    CouponAlreadyRedeemedException,
    CouponCodeExistsException,
    CouponNotFoundException,
    CouponUsageLimitReachedException,
    NotFoundException,
    UserNotFoundException,
)
from ..models import Coupon, CouponRedemption, CouponRestaurant, Restaurant, User
from ..schemas.coupon import ApplyCouponRequest, CouponCreate, CouponUpdate
from ..utils.time import utcnow
from .coupon_evaluator import evaluate_coupon, remaining_uses, validation_status


logger = logging.getLogger(__name__)


class CouponService:
    async def _get_coupon(self, coupon_id: int, db: AsyncSession) -> Coupon:
        coupon = await db.get(Coupon, coupon_id)
        if not coupon:
            raise NotFoundException("Coupon not found")
        return coupon

    async def _get_active_coupon_by_code(self, code: str, db: AsyncSession) -> Coupon:
        result = await db.execute(
            select(Coupon).where(and_(Coupon.code == code.strip().upper(), Coupon.is_active == True))
        )
        coupon = result.scalars().first()
        if not coupon:
            raise CouponNotFoundException("Invalid coupon code")
        return coupon

    async def _ensure_restaurants_exist(self, restaurant_ids: List[int], db: AsyncSession) -> None:
        if not restaurant_ids:
            return
        result = await db.execute(
            select(func.count(Restaurant.id)).where(Restaurant.id.in_(restaurant_ids))
        )
        if result.scalar_one() != len(set(restaurant_ids)):
            raise BadRequestException("Some applicable restaurants do not exist")

    def _sync_restaurant_links(self, coupon: Coupon, restaurant_ids: List[int]) -> None:
        wanted = list(dict.fromkeys(restaurant_ids))
        coupon.restaurant_links = [
            link for link in coupon.restaurant_links if link.restaurant_id in wanted
        ]
        existing = {link.restaurant_id for link in coupon.restaurant_links}
        for restaurant_id in wanted:
            if restaurant_id not in existing:
                coupon.restaurant_links.append(CouponRestaurant(restaurant_id=restaurant_id))

    async def create_coupon(self, coupon_data: CouponCreate, db: AsyncSession) -> Coupon:
        """Create a coupon, rejecting duplicate codes"""
        existing = await db.execute(select(Coupon.id).where(Coupon.code == coupon_data.code))
        if existing.first():
            raise CouponCodeExistsException("Coupon code already exists")

        await self._ensure_restaurants_exist(coupon_data.applicable_restaurants, db)

        data = coupon_data.model_dump(exclude={"applicable_restaurants"})
        data["discount_type"] = coupon_data.discount_type.value
        coupon = Coupon(**data)
        coupon.restaurant_links = [
            CouponRestaurant(restaurant_id=restaurant_id)
            for restaurant_id in coupon_data.applicable_restaurants
        ]
        db.add(coupon)
        try:
            await db.commit()
        except IntegrityError:
            # lost a race against another create with the same code
            await db.rollback()
            raise CouponCodeExistsException("Coupon code already exists")
        await db.refresh(coupon)

        logger.info("Created coupon %s (id=%s)", coupon.code, coupon.id)
        return coupon

    async def get_coupons(self, is_active: Optional[bool], db: AsyncSession) -> List[Coupon]:
        query = select(Coupon)
        if is_active is not None:
            query = query.where(Coupon.is_active == is_active)
        query = query.order_by(Coupon.created_at.desc(), Coupon.id.desc())
        result = await db.execute(query)
        return result.scalars().all()

    async def get_coupon(self, coupon_id: int, db: AsyncSession) -> Coupon:
        return await self._get_coupon(coupon_id, db)

    async def update_coupon(self, coupon_id: int, coupon_data: CouponUpdate, db: AsyncSession) -> Coupon:
        """Apply an allow-listed update, keeping the coupon's invariants"""
        coupon = await self._get_coupon(coupon_id, db)
        update_data = coupon_data.model_dump(exclude_unset=True)

        discount_type = update_data.get("discount_type", coupon.discount_type)
        discount_value = update_data.get("discount_value", coupon.discount_value)
        if discount_type == DiscountType.PERCENTAGE and not 1 <= discount_value <= 100:
            raise BadRequestException("Percentage discount must be between 1 and 100")

        valid_until = update_data.get("valid_until", coupon.valid_until)
        if valid_until is None or coupon.valid_from >= valid_until:
            raise BadRequestException("Valid until date must be after valid from date")

        restaurant_ids = update_data.pop("applicable_restaurants", None)
        if restaurant_ids is not None:
            await self._ensure_restaurants_exist(restaurant_ids, db)
            self._sync_restaurant_links(coupon, restaurant_ids)

        if "discount_type" in update_data and update_data["discount_type"] is not None:
            update_data["discount_type"] = DiscountType(update_data["discount_type"]).value

        for field, value in update_data.items():
            if value is None and field != "max_uses":
                continue
            setattr(coupon, field, value)

        await db.commit()
        await db.refresh(coupon)
        return coupon

    async def delete_coupon(self, coupon_id: int, db: AsyncSession) -> bool:
        coupon = await self._get_coupon(coupon_id, db)
        await db.delete(coupon)
        await db.commit()
        logger.info("Deleted coupon %s (id=%s)", coupon.code, coupon_id)
        return True

    async def apply_coupon(self, request: ApplyCouponRequest, db: AsyncSession) -> Dict[str, Any]:
        """
        Preview a coupon against an order. Nothing is written: the user is
        only recorded against the coupon by redeem_coupon once the order is
        placed.
        """
        coupon = await self._get_active_coupon_by_code(request.code, db)
        return evaluate_coupon(
            coupon,
            user_id=request.user_id,
            restaurant_id=request.restaurant_id,
            order_value=request.order_value,
            now=utcnow(),
        )

    async def validate_coupon(self, code: Optional[str], db: AsyncSession) -> Dict[str, Any]:
        if not code:
            return validation_status(None, utcnow())
        result = await db.execute(select(Coupon).where(Coupon.code == code.strip().upper()))
        return validation_status(result.scalars().first(), utcnow())

    async def redeem_coupon(self, code: str, user_id: int, db: AsyncSession) -> Dict[str, Any]:
        """
        Record a redemption with a single conditional insert.

        The (coupon, user) primary key turns a repeated redemption into an
        integrity error, and for capped coupons the insert only happens while
        the redemption count is still below max_uses.
        """
        coupon = await self._get_active_coupon_by_code(code, db)
        if not await db.get(User, user_id):
            raise UserNotFoundException(f"User with ID {user_id} not found")

        coupon_code = coupon.code
        now = utcnow()
        if coupon.max_uses is None:
            stmt = insert(CouponRedemption).values(coupon_id=coupon.id, user_id=user_id, redeemed_at=now)
        else:
            used = (
                select(func.count())
                .select_from(CouponRedemption)
                .where(CouponRedemption.coupon_id == coupon.id)
                .scalar_subquery()
            )
            stmt = insert(CouponRedemption).from_select(
                ["coupon_id", "user_id", "redeemed_at"],
                select(literal(coupon.id), literal(user_id), literal(now)).where(used < coupon.max_uses),
            )

        try:
            result = await db.execute(stmt)
            await db.commit()
        except IntegrityError:
            await db.rollback()
            logger.info("Coupon %s already redeemed by user %s", coupon_code, user_id)
            raise CouponAlreadyRedeemedException("Coupon already redeemed by this user")

        if result.rowcount == 0:
            logger.info("Coupon %s reached its usage limit", coupon_code)
            raise CouponUsageLimitReachedException("This coupon has reached its usage limit")

        logger.info("Coupon %s redeemed by user %s", coupon_code, user_id)
        return {"coupon": coupon_code, "user_id": user_id, "redeemed_at": now}

    async def get_coupons_by_restaurant(self, restaurant_id: int, db: AsyncSession) -> List[Coupon]:
        result = await db.execute(
            select(Coupon)
            .join(CouponRestaurant, CouponRestaurant.coupon_id == Coupon.id)
            .where(and_(CouponRestaurant.restaurant_id == restaurant_id, Coupon.is_active == True))
            .order_by(Coupon.created_at.desc(), Coupon.id.desc())
        )
        return result.scalars().all()

    async def get_coupons_by_user(self, user_id: int, db: AsyncSession) -> List[Coupon]:
        result = await db.execute(
            select(Coupon)
            .join(CouponRedemption, CouponRedemption.coupon_id == Coupon.id)
            .where(CouponRedemption.user_id == user_id)
            .order_by(CouponRedemption.redeemed_at.desc())
        )
        return result.scalars().all()

    async def toggle_coupon_status(self, coupon_id: int, db: AsyncSession) -> Coupon:
        coupon = await self._get_coupon(coupon_id, db)
        coupon.is_active = not coupon.is_active
        await db.commit()
        await db.refresh(coupon)
        return coupon

    async def get_remaining_uses(self, coupon_id: int, db: AsyncSession) -> Dict[str, Any]:
        coupon = await self._get_coupon(coupon_id, db)
        return {"remaining": remaining_uses(coupon)}


coupon_service = CouponService()
