"""Localized page section model."""

from datetime import datetime, timezone
import uuid

from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String, UniqueConstraint
from sqlalchemy.sql import func

from database import Base


CONTENT_TYPES = [
    "hero",
    "about",
    "highlights",
    "ana-bio",
    "features",
    "team",
    "footer",
    "navbar",
    "general",
]

CONTENT_TYPE_LABELS = {
    "hero": "Hero Section",
    "about": "About Section",
    "highlights": "Game Highlights",
    "ana-bio": "Who is Ana",
    "features": "Features",
    "team": "Artist Team",
    "footer": "Footer",
    "navbar": "Navigation Bar",
    "general": "General Content",
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ContentItem(Base):
    """Editor-managed section of the marketing site, stored in all languages."""

    __tablename__ = "content_items"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    key = Column(String(50), nullable=False, index=True)
    content_type = Column(String, nullable=False, index=True)

    title = Column(JSON, nullable=False, default=dict)
    description = Column(JSON, nullable=False, default=dict)
    subtitle = Column(JSON, nullable=False, default=dict)

    image_url = Column(String, nullable=True)
    video_url = Column(String, nullable=True)
    linkedin_url = Column(String, nullable=True)
    media = Column(JSON, nullable=False, default=dict)  # {images: [], videos: [], thumbnail: {}}

    order = Column(Integer, nullable=False, default=0, index=True)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    is_featured = Column(Boolean, nullable=False, default=False)
    tags = Column(JSON, nullable=False, default=list)
    category = Column(String, nullable=True)

    seo = Column(JSON, nullable=False, default=dict)

    published_at = Column(DateTime(timezone=True), default=_utcnow, index=True)
    created_by = Column(String, nullable=False)
    last_modified_by = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (UniqueConstraint("key", name="uq_content_items_key"),)
