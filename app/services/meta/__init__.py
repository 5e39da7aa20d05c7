# Meta (Facebook/Instagram) Ads Module
from app.services.meta.meta_api import MetaAPI, MetaAPIError, transform_insight
from app.services.meta.meta_sync import MetaSyncService

__all__ = [
    "MetaAPI",
    "MetaAPIError",
    "MetaSyncService",
    "transform_insight",
]
