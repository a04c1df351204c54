from sqlalchemy import Column, Integer, String

from .base import Base, TimeStampMixin


class User(Base, TimeStampMixin):
    """
    Customers, restaurant owners and managers. Authentication lives outside
    this service, only the identity fields referenced by restaurants and
    coupon redemptions are kept here.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    phone_number = Column(String, nullable=True)

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email})>"
