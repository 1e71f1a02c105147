"""Song entity store."""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import String, cast, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from models.media_asset import MediaAsset
from models.song import Song
from services.errors import ConflictError, NotFoundError, ValidationError
from services.localization import (
    check_max_length,
    normalize_localized,
    require_english,
    resolve,
    resolve_language,
)
from services.query_engine import (
    bulk_reorder,
    paginate,
    sort_clause,
    substring_filter,
    validate_limit,
    validate_pagination,
)
from services.records import (
    available_derived_key,
    commit_or_conflict,
    derive_key,
    iso,
    key_taken,
    normalize_bool,
    normalize_order,
    normalize_tags,
    normalize_url,
)

logger = logging.getLogger(__name__)

SONG_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_ -]{3,50}$")
MAX_VISITOR_SONGS = 50
MIN_RELEASE_YEAR = 1900
DEFAULT_GENRE = "Pop"

EDITOR_SORT_FIELDS = {
    "createdAt": Song.created_at,
    "updatedAt": Song.updated_at,
    "title.en": Song.title["en"].as_string(),
    "metadata.order": Song.order,
    "metadata.playCount": Song.play_count,
}


def validate_song_key(key: Any) -> str:
    text = str(key or "").strip()
    if not SONG_KEY_PATTERN.match(text):
        raise ValidationError(
            "Key must be 3-50 characters of letters, numbers, spaces, underscores, or hyphens",
            field="key",
        )
    return text


def format_duration(seconds: Optional[float]) -> str:
    """Render a duration as ``m:ss``."""
    total = int(seconds or 0)
    return f"{total // 60}:{total % 60:02d}"


def _cover_ref(value: Any) -> Dict[str, Any]:
    if not value:
        return {}
    if not isinstance(value, dict):
        raise ValidationError("cover_image must be an object", field="cover_image")
    ref = {name: value.get(name) for name in ("asset_id", "url", "storage_id") if value.get(name)}
    if "url" in ref:
        ref["url"] = normalize_url(ref["url"], "cover_image.url")
    return ref


def _release_year(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    latest = datetime.now(timezone.utc).year + 1
    try:
        year = int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError("Release year must be an integer", field="release_year") from exc
    if year < MIN_RELEASE_YEAR or year > latest:
        raise ValidationError(
            f"Release year must be between {MIN_RELEASE_YEAR} and {latest}", field="release_year"
        )
    return year


def _duration(value: Any) -> float:
    try:
        duration = float(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError("Duration is required", field="duration_seconds") from exc
    if duration <= 0:
        raise ValidationError("Duration must be a positive number", field="duration_seconds")
    return duration


async def _resolve_audio_asset(db: AsyncSession, asset_id: str) -> MediaAsset:
    result = await db.execute(select(MediaAsset).where(MediaAsset.id == asset_id))
    asset = result.scalar_one_or_none()
    if not asset:
        raise ValidationError("Audio asset not found", field="audio_asset_id")
    if asset.resource_kind != "audio":
        raise ValidationError("Asset is not an audio file", field="audio_asset_id")
    return asset


async def _validate_fields(
    db: AsyncSession,
    payload: Dict[str, Any],
    current: Optional[Song] = None,
) -> Dict[str, Any]:
    values: Dict[str, Any] = {}

    if "title" in payload or current is None:
        title = normalize_localized(payload.get("title"), "title")
        require_english(title, "title")
        check_max_length(title, "title", 200)
        values["title"] = title
    for name in ("description", "artist", "lyrics"):
        if name in payload:
            values[name] = normalize_localized(payload[name], name)

    if payload.get("audio_asset_id"):
        asset = await _resolve_audio_asset(db, str(payload["audio_asset_id"]))
        values["audio_asset_id"] = asset.id
        values["audio_url"] = asset.secure_url or asset.url
        if "duration_seconds" not in payload and asset.duration_seconds and current is None:
            values["duration_seconds"] = float(asset.duration_seconds)
    if payload.get("audio_url"):
        values["audio_url"] = normalize_url(payload["audio_url"], "audio_url")
    if current is None and not values.get("audio_url"):
        raise ValidationError("Audio URL or audio asset is required", field="audio_url")

    if "duration_seconds" in payload or (current is None and "duration_seconds" not in values):
        values["duration_seconds"] = _duration(payload.get("duration_seconds"))

    if "cover_image" in payload:
        values["cover_image"] = _cover_ref(payload["cover_image"])
    if "genre" in payload:
        values["genre"] = str(payload["genre"] or "").strip() or DEFAULT_GENRE
    if "release_year" in payload:
        values["release_year"] = _release_year(payload["release_year"])

    metadata = payload.get("metadata") or {}
    if not isinstance(metadata, dict):
        raise ValidationError("metadata must be an object", field="metadata")
    if metadata.get("order") is not None:
        values["order"] = normalize_order(metadata["order"])
    if metadata.get("is_active") is not None:
        values["is_active"] = normalize_bool(metadata["is_active"], "metadata.is_active")
    if metadata.get("is_featured") is not None:
        values["is_featured"] = normalize_bool(metadata["is_featured"], "metadata.is_featured")
    if "tags" in metadata:
        values["tags"] = normalize_tags(metadata["tags"])
    return values


def serialize_song(song: Song) -> Dict[str, Any]:
    return {
        "id": song.id,
        "key": song.key,
        "title": song.title or {},
        "description": song.description or {},
        "artist": song.artist or {},
        "lyrics": song.lyrics or {},
        "audio_url": song.audio_url,
        "audio_asset_id": song.audio_asset_id,
        "duration_seconds": song.duration_seconds,
        "formatted_duration": format_duration(song.duration_seconds),
        "cover_image": song.cover_image or {},
        "genre": song.genre,
        "release_year": song.release_year,
        "metadata": {
            "order": song.order,
            "is_active": song.is_active,
            "is_featured": song.is_featured,
            "tags": song.tags or [],
            "play_count": song.play_count,
        },
        "created_by": song.created_by,
        "last_modified_by": song.last_modified_by,
        "created_at": iso(song.created_at),
        "updated_at": iso(song.updated_at),
    }


def localize_song(song: Song, language: str) -> Dict[str, Any]:
    return {
        "id": song.id,
        "key": song.key,
        "title": resolve(song.title, language),
        "description": resolve(song.description, language),
        "artist": resolve(song.artist, language),
        "lyrics": resolve(song.lyrics, language),
        "audio_url": song.audio_url,
        "duration_seconds": song.duration_seconds,
        "formatted_duration": format_duration(song.duration_seconds),
        "cover_image": song.cover_image or {},
        "genre": song.genre,
        "release_year": song.release_year,
        "metadata": {
            "order": song.order,
            "is_featured": song.is_featured,
            "tags": song.tags or [],
            "play_count": song.play_count,
        },
        "created_at": iso(song.created_at),
    }


async def _get_or_404(db: AsyncSession, song_id: str) -> Song:
    result = await db.execute(select(Song).where(Song.id == song_id))
    song = result.scalar_one_or_none()
    if not song:
        raise NotFoundError("Song not found")
    return song


async def create_song(payload: Dict[str, Any], actor_id: str, db: AsyncSession) -> Dict[str, Any]:
    values = await _validate_fields(db, payload)

    if payload.get("key"):
        key = validate_song_key(payload["key"])
        if await key_taken(db, Song, key):
            raise ConflictError("Song with this key already exists", field="key")
    else:
        key = await available_derived_key(db, Song, derive_key(values["title"]["en"]))

    song = Song(key=key, created_by=actor_id, **values)
    db.add(song)
    await commit_or_conflict(db, "Song", key)
    await db.refresh(song)
    logger.info("Song %s created by %s (key=%s)", song.id, actor_id, key)
    return serialize_song(song)


async def update_song(song_id: str, payload: Dict[str, Any], actor_id: str, db: AsyncSession) -> Dict[str, Any]:
    song = await _get_or_404(db, song_id)
    values = await _validate_fields(db, payload, current=song)

    if payload.get("key"):
        key = validate_song_key(payload["key"])
        if key != song.key:
            if await key_taken(db, Song, key, exclude_id=song.id):
                raise ConflictError("Song with this key already exists", field="key")
            values["key"] = key

    for name, value in values.items():
        setattr(song, name, value)
    song.last_modified_by = actor_id
    await commit_or_conflict(db, "Song", values.get("key", song.key))
    await db.refresh(song)
    return serialize_song(song)


async def delete_song(song_id: str, db: AsyncSession) -> None:
    song = await _get_or_404(db, song_id)
    await db.delete(song)
    await db.commit()
    logger.info("Song %s deleted", song_id)


async def get_song(song_id: str, db: AsyncSession) -> Dict[str, Any]:
    return serialize_song(await _get_or_404(db, song_id))


async def list_songs_for_editor(
    db: AsyncSession,
    *,
    is_active: Optional[bool] = None,
    genre: Optional[str] = None,
    search: Optional[str] = None,
    sort: Optional[str] = None,
    order: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
) -> Dict[str, Any]:
    page, limit = validate_pagination(page, limit)
    stmt = select(Song)
    if is_active is not None:
        stmt = stmt.where(Song.is_active.is_(is_active))
    if genre:
        stmt = stmt.where(Song.genre == genre)
    condition = substring_filter(
        search,
        [
            Song.title["en"].as_string(),
            Song.artist["en"].as_string(),
            Song.key,
            cast(Song.tags, String),
        ],
    )
    if condition is not None:
        stmt = stmt.where(condition)
    stmt = stmt.order_by(sort_clause(sort, order, EDITOR_SORT_FIELDS, "metadata.order"), Song.id)

    songs, pagination = await paginate(db, stmt, page=page, limit=limit)
    return {"songs": [serialize_song(song) for song in songs], "pagination": pagination}


async def list_songs_for_visitor(
    db: AsyncSession,
    language: str,
    *,
    featured: Optional[bool] = None,
    genre: Optional[str] = None,
    limit: int = 20,
) -> Dict[str, Any]:
    limit = validate_limit(limit, MAX_VISITOR_SONGS)
    language = resolve_language(language)
    stmt = select(Song).where(Song.is_active.is_(True))
    if featured is not None:
        stmt = stmt.where(Song.is_featured.is_(featured))
    if genre:
        stmt = stmt.where(Song.genre == genre)
    stmt = stmt.order_by(Song.order.asc(), Song.created_at.desc()).limit(limit)

    songs = (await db.execute(stmt)).scalars().all()
    return {
        "language": language,
        "songs": [localize_song(song, language) for song in songs],
        "total": len(songs),
    }


async def increment_play_count(song_id: str, db: AsyncSession) -> int:
    """Add exactly one play in a single UPDATE and return the new count."""
    result = await db.execute(
        update(Song)
        .where(Song.id == song_id)
        .values(play_count=Song.play_count + 1)
        .returning(Song.play_count)
        .execution_options(synchronize_session=False)
    )
    play_count = result.scalar_one_or_none()
    if play_count is None:
        await db.rollback()
        raise NotFoundError("Song not found")
    await db.commit()
    return int(play_count)


async def bulk_reorder_songs(updates: List[Dict[str, Any]], actor_id: str, db: AsyncSession) -> Dict[str, int]:
    return await bulk_reorder(db, Song, updates, actor_id)
