"""
Database models for Polarad Analytics
"""
from app.models.base import Base, BaseModel, DailyFactMixin, TimestampMixin
from app.models.enums import AdSource, MetaView, NaverView

# Client models
from app.models.client import Client

# Fact models
from app.models.fact import MetaAdDaily, NaverKeywordDaily


__all__ = [
    # Base
    "Base", "BaseModel", "DailyFactMixin", "TimestampMixin",

    # Enums
    "AdSource", "MetaView", "NaverView",

    # Client
    "Client",

    # Facts
    "MetaAdDaily", "NaverKeywordDaily",
]
