from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from .base import Base, TimeStampMixin
from ..utils.time import utcnow


class Coupon(Base, TimeStampMixin):
    __tablename__ = "coupons"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(20), nullable=False, unique=True, index=True)
    discount_type = Column(String, nullable=False)  # percentage or fixed
    discount_value = Column(Float, nullable=False)  # Either percentage or fixed amount
    min_order_value = Column(Float, nullable=False, default=0)
    valid_from = Column(DateTime, nullable=False, default=utcnow)
    valid_until = Column(DateTime, nullable=False)
    max_uses = Column(Integer, nullable=True)  # None means unlimited
    is_active = Column(Boolean, nullable=False, default=True)

    redemptions = relationship(
        "CouponRedemption",
        back_populates="coupon",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    restaurant_links = relationship(
        "CouponRestaurant",
        back_populates="coupon",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def used_by(self):
        return [redemption.user_id for redemption in self.redemptions]

    @property
    def applicable_restaurants(self):
        return [link.restaurant_id for link in self.restaurant_links]

    def __repr__(self):
        return f"<Coupon(id={self.id}, code={self.code}, active={self.is_active})>"


class CouponRedemption(Base):
    """
    One row per (coupon, user). The composite primary key is what makes a
    redemption a set insert: a second insert for the same pair fails.
    """

    __tablename__ = "coupon_redemptions"

    coupon_id = Column(Integer, ForeignKey("coupons.id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True, index=True)
    redeemed_at = Column(DateTime, nullable=False, default=utcnow)

    coupon = relationship("Coupon", back_populates="redemptions")


class CouponRestaurant(Base):
    __tablename__ = "coupon_restaurants"

    coupon_id = Column(Integer, ForeignKey("coupons.id", ondelete="CASCADE"), primary_key=True)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id", ondelete="CASCADE"), primary_key=True, index=True)

    coupon = relationship("Coupon", back_populates="restaurant_links")
