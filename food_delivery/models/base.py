from sqlalchemy import Column, DateTime

from ..db.base import Base
from ..utils.time import utcnow


class TimeStampMixin:
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=True, default=utcnow, onupdate=utcnow)


__all__ = ["Base", "TimeStampMixin"]
