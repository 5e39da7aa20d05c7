"""
Enums shared by models, services and API
"""
import enum


class AdSource(str, enum.Enum):
    """Ad data sources feeding the fact store"""
    PAID_SOCIAL = "paid_social"    # Meta (Facebook/Instagram) ads, spend in USD
    LOCAL_SEARCH = "local_search"  # Naver Place keyword ads, cost in KRW


class MetaView(str, enum.Enum):
    """Selectable arrays of the paid-social report"""
    ALL = "all"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    CAMPAIGNS = "campaigns"
    ADS = "ads"


class NaverView(str, enum.Enum):
    """Selectable arrays of the local-search report"""
    ALL = "all"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    KEYWORDS = "keywords"
