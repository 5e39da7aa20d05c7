"""
Daily ad fact tables (one row per day x entity x breakdown).

Rationale:
- Rows are written by ingestion (upsert on the natural key) and only read afterwards.
- Every report is recomputed from these rows; no aggregate is persisted.
"""

from sqlalchemy import Column, Integer, String, Numeric, UniqueConstraint

from app.models.base import BaseModel, DailyFactMixin


class MetaAdDaily(BaseModel, DailyFactMixin):
    """Paid-social daily insight for one ad on one platform/device (spend in USD)."""

    __tablename__ = "meta_ad_daily"

    # Dimensions
    ad_id = Column(String(100), nullable=False, index=True)
    ad_name = Column(String(500), nullable=True)
    campaign_id = Column(String(100), nullable=True, index=True)
    campaign_name = Column(String(500), nullable=True)
    platform = Column(String(50), nullable=False, default="unknown")  # publisher_platform
    device = Column(String(50), nullable=False, default="unknown")    # device_platform

    # Measures
    spend = Column(Numeric(15, 2), default=0, nullable=False)
    leads = Column(Integer, default=0, nullable=False)
    video_views = Column(Integer, default=0, nullable=False)
    avg_watch_time = Column(Numeric(10, 2), default=0, nullable=False)  # seconds
    currency = Column(String(10), default="USD")

    __table_args__ = (
        UniqueConstraint(
            "client_id",
            "date",
            "ad_id",
            "platform",
            "device",
            name="uq_meta_ad_daily_client_date_ad_platform_device",
        ),
        {"extend_existing": True},
    )


class NaverKeywordDaily(BaseModel, DailyFactMixin):
    """Local-search (Naver Place) daily stats for one keyword (cost in KRW)."""

    __tablename__ = "naver_keyword_daily"

    keyword = Column(String(255), nullable=False, index=True)

    total_cost = Column(Numeric(15, 2), default=0, nullable=False)
    avg_rank = Column(Numeric(6, 2), default=0, nullable=False)  # 1.0 = top position

    __table_args__ = (
        UniqueConstraint(
            "client_id",
            "date",
            "keyword",
            name="uq_naver_keyword_daily_client_date_keyword",
        ),
        {"extend_existing": True},
    )
