"""
Declarative building blocks shared by the client and fact tables
"""
from typing import Any, Dict

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import declared_attr

from app.core.database import Base


class TimestampMixin:
    """created_at / updated_at; bulk upserts set updated_at themselves"""

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class BaseModel(Base, TimestampMixin):
    """Abstract base: every table is timestamped"""

    __abstract__ = True

    def to_dict(self) -> Dict[str, Any]:
        """Column name -> value for this row"""
        return {column.name: getattr(self, column.name) for column in self.__table__.columns}


class DailyFactMixin:
    """
    Columns every daily fact table carries: one row per client, date and
    source-specific entity, with the two measures both sources report.
    """

    id = Column(Integer, primary_key=True, autoincrement=True)

    @declared_attr
    def client_id(cls):
        return Column(String(36), ForeignKey("clients.id"), nullable=False, index=True)

    date = Column(Date, nullable=False, index=True)

    impressions = Column(Integer, default=0, nullable=False)
    clicks = Column(Integer, default=0, nullable=False)
