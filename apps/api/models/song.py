"""Song model sharing the localized text pattern of content items."""

from datetime import datetime, timezone
import uuid

from sqlalchemy import JSON, Boolean, Column, DateTime, Float, Integer, String, UniqueConstraint
from sqlalchemy.sql import func

from database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Song(Base):
    """Song with localized title/artist/lyrics and an audio reference."""

    __tablename__ = "songs"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    key = Column(String(50), nullable=False, index=True)

    title = Column(JSON, nullable=False, default=dict)
    description = Column(JSON, nullable=False, default=dict)
    artist = Column(JSON, nullable=False, default=dict)
    lyrics = Column(JSON, nullable=False, default=dict)

    audio_url = Column(String, nullable=False)
    audio_asset_id = Column(String, nullable=True, index=True)
    duration_seconds = Column(Float, nullable=False)
    cover_image = Column(JSON, nullable=False, default=dict)  # {asset_id, url, storage_id}
    genre = Column(String, nullable=True, default="Pop", index=True)
    release_year = Column(Integer, nullable=True)

    order = Column(Integer, nullable=False, default=0, index=True)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    is_featured = Column(Boolean, nullable=False, default=False, index=True)
    tags = Column(JSON, nullable=False, default=list)
    play_count = Column(Integer, nullable=False, default=0)

    created_by = Column(String, nullable=False)
    last_modified_by = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (UniqueConstraint("key", name="uq_songs_key"),)
