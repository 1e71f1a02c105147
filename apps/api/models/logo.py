"""Site logo singleton."""

from datetime import datetime, timezone
import uuid

from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String
from sqlalchemy.sql import func

from database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Logo(Base):
    __tablename__ = "logos"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    logo_url = Column(String, nullable=False)
    media_asset_id = Column(String, nullable=True)
    alt_text = Column(JSON, nullable=False, default=dict)
    width = Column(Integer, nullable=False, default=120)
    height = Column(Integer, nullable=False, default=40)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
