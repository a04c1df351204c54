from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from .base import Base, TimeStampMixin


class RestaurantOffer(Base, TimeStampMixin):
    """
    Promotional offer shown on a restaurant page. An offer is active while
    valid_till lies in the future; toggling moves valid_till instead of
    deleting the row.
    """

    __tablename__ = "restaurant_offers"

    id = Column(Integer, primary_key=True, index=True)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    code = Column(String, nullable=True)
    discount_type = Column(String, nullable=False)
    discount_value = Column(Float, nullable=False)
    min_order_amount = Column(Float, nullable=True)
    valid_till = Column(DateTime, nullable=False, index=True)

    restaurant = relationship("Restaurant", back_populates="offers")
