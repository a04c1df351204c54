from sqlalchemy import Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from .base import Base, TimeStampMixin


class DeliverySlot(Base, TimeStampMixin):
    __tablename__ = "delivery_slots"

    id = Column(Integer, primary_key=True, index=True)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id", ondelete="CASCADE"), nullable=False, index=True)
    start_time = Column(String(5), nullable=False)  # HH:MM
    end_time = Column(String(5), nullable=False)  # HH:MM
    max_orders = Column(Integer, nullable=False, default=0)

    restaurant = relationship("Restaurant", back_populates="delivery_slots")
