"""Media asset ledger model."""

from datetime import datetime, timezone
import uuid

from sqlalchemy import JSON, Boolean, Column, DateTime, Float, Integer, String
from sqlalchemy.sql import func

from database import Base


MEDIA_CATEGORIES = [
    "hero_background",
    "hero_video",
    "about_image",
    "game_screenshot",
    "character_image",
    "feature_icon",
    "team_photo",
    "logo",
    "thumbnail",
    "song_audio",
    "song_cover",
    "general",
]

RESOURCE_KINDS = ["image", "video", "audio", "raw"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MediaAsset(Base):
    """Binary asset held by the storage collaborator, recorded after a successful push."""

    __tablename__ = "media_assets"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    storage_id = Column(String, nullable=False, unique=True, index=True)
    filename = Column(String, nullable=False, unique=True)
    original_name = Column(String, nullable=False)
    url = Column(String, nullable=False)
    secure_url = Column(String, nullable=False)
    mime_type = Column(String, nullable=False)
    size_bytes = Column(Integer, nullable=False)
    format = Column(String, nullable=True)
    resource_kind = Column(String, nullable=False, index=True)
    width = Column(Integer, nullable=True)
    height = Column(Integer, nullable=True)
    duration_seconds = Column(Float, nullable=True)
    category = Column(String, nullable=False, default="general", index=True)

    usage_count = Column(Integer, nullable=False, default=0)
    last_used_at = Column(DateTime(timezone=True), nullable=True)

    is_optimized = Column(Boolean, nullable=False, default=False)
    optimized_variants = Column(JSON, nullable=False, default=list)  # [{size, url, width, height}]

    is_active = Column(Boolean, nullable=False, default=True, index=True)
    uploaded_by = Column(String, nullable=False, index=True)
    alt_text = Column(JSON, nullable=False, default=dict)
    tags = Column(JSON, nullable=False, default=list)
    description = Column(String(500), nullable=True)

    created_at = Column(DateTime(timezone=True), default=_utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
