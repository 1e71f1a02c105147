"""Site footer singleton."""

from datetime import datetime, timezone
import uuid

from sqlalchemy import JSON, Boolean, Column, DateTime, String
from sqlalchemy.sql import func

from database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Footer(Base):
    """One editor-managed footer per site; columns hold localized bundles."""

    __tablename__ = "footers"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    left_column = Column(JSON, nullable=False, default=dict)
    center_column = Column(JSON, nullable=False, default=dict)
    right_column = Column(JSON, nullable=False, default=dict)
    social_icons = Column(JSON, nullable=False, default=list)
    copyright_text = Column(JSON, nullable=False, default=dict)
    is_active = Column(Boolean, nullable=False, default=True)
    last_updated = Column(DateTime(timezone=True), default=_utcnow)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
