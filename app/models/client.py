"""
Client (tenant) model
"""
import uuid

from sqlalchemy import Column, String, Boolean

from app.models.base import BaseModel


class Client(BaseModel):
    """Advertiser account whose ad data is collected and reported"""

    __tablename__ = "clients"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    slug = Column(String(100), unique=True, nullable=False, index=True)
    client_name = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    # Meta ad account (act_xxx); clients without one are skipped by collection
    meta_ad_account_id = Column(String(100), nullable=True)
