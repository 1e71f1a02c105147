"""Media asset ledger: validated two-phase uploads, browsing and usage accounting."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import String, cast, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from database import async_session_maker
from models.media_asset import MEDIA_CATEGORIES, RESOURCE_KINDS, MediaAsset
from services.errors import ConflictError, NotFoundError, UpstreamStorageError, ValidationError
from services.localization import normalize_localized
from services.query_engine import paginate, sort_clause, substring_filter, validate_limit, validate_pagination
from services.records import iso, normalize_bool, normalize_tags
from services.storage import (
    AUDIO_PROFILE,
    IMAGE_PROFILE,
    LOGO_PROFILE,
    VIDEO_PROFILE,
    PushOptions,
    StorageClient,
    StorageError,
    StoragePushResult,
    UploadProfile,
)

logger = logging.getLogger(__name__)

IMAGE_MIME_TYPES = frozenset({"image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp"})
SVG_MIME_TYPES = frozenset({"image/svg+xml"})
VIDEO_MIME_TYPES = frozenset(
    {
        "video/mp4",
        "video/mov",
        "video/quicktime",
        "video/avi",
        "video/x-msvideo",
        "video/mkv",
        "video/x-matroska",
        "video/webm",
    }
)
AUDIO_MIME_TYPES = frozenset(
    {
        "audio/mpeg",
        "audio/mp3",
        "audio/wav",
        "audio/x-wav",
        "audio/wave",
        "audio/ogg",
        "audio/aac",
        "audio/mp4",
        "audio/m4a",
        "audio/x-m4a",
        "audio/flac",
        "audio/x-flac",
    }
)

MAX_PUBLIC_MEDIA = 50
DESCRIPTION_MAX_LENGTH = 500

EDITOR_SORT_FIELDS = {
    "createdAt": MediaAsset.created_at,
    "originalName": MediaAsset.original_name,
    "sizeBytes": MediaAsset.size_bytes,
    "usageCount": MediaAsset.usage_count,
}

# Ordered rules, first match wins: (category, field names, filename keywords).
CATEGORY_RULES: Tuple[Tuple[str, FrozenSet[str], Tuple[str, ...]], ...] = (
    ("hero_video", frozenset({"hero_video"}), ("hero", "intro")),
    ("hero_background", frozenset({"hero_background"}), ("hero_bg",)),
    ("about_image", frozenset({"about_image"}), ("about",)),
    ("game_screenshot", frozenset({"game_screenshot"}), ("game", "screenshot")),
    ("character_image", frozenset({"character_image"}), ("character", "ana")),
    ("feature_icon", frozenset({"feature_icon"}), ("feature", "icon")),
    ("team_photo", frozenset({"team_photo"}), ("team", "artist")),
    ("logo", frozenset({"logo"}), ("logo",)),
    ("thumbnail", frozenset({"thumbnail"}), ("thumb",)),
)
DEFAULT_CATEGORY = "general"


def infer_media_category(field_name: Optional[str], filename: Optional[str]) -> str:
    """Pick a browsing category from the upload field name and original filename.

    Rules are checked in order and the first match wins, so ``team_hero.png``
    lands in ``hero_video`` even though it also mentions ``team``.
    """
    name = (field_name or "").strip().lower()
    lowered = (filename or "").lower()
    for category, field_names, keywords in CATEGORY_RULES:
        if name in field_names or any(keyword in lowered for keyword in keywords):
            return category
    return DEFAULT_CATEGORY


@dataclass(frozen=True)
class UploadTarget:
    name: str
    mime_types: FrozenSet[str]
    max_bytes: int
    category: Optional[str] = None

    def profile_for(self, mime_type: str) -> UploadProfile:
        if self.name == "logo":
            return LOGO_PROFILE
        if mime_type in AUDIO_MIME_TYPES:
            return AUDIO_PROFILE
        if mime_type in VIDEO_MIME_TYPES:
            return VIDEO_PROFILE
        return IMAGE_PROFILE


UPLOAD_TARGETS = {
    "general": UploadTarget("general", IMAGE_MIME_TYPES | VIDEO_MIME_TYPES, settings.MAX_UPLOAD_BYTES),
    "logo": UploadTarget("logo", IMAGE_MIME_TYPES | SVG_MIME_TYPES, settings.MAX_LOGO_UPLOAD_BYTES, "logo"),
    "song_audio": UploadTarget("song_audio", AUDIO_MIME_TYPES, settings.MAX_UPLOAD_BYTES, "song_audio"),
    "song_cover": UploadTarget("song_cover", IMAGE_MIME_TYPES, settings.MAX_UPLOAD_BYTES, "song_cover"),
}


class UploadState(str, enum.Enum):
    PENDING = "pending"
    PUSHED = "pushed"
    RECORDED = "recorded"
    REJECTED = "rejected"
    FAILED = "failed"


@dataclass
class IncomingFile:
    filename: str
    mime_type: str
    data: bytes
    field_name: Optional[str] = None


@dataclass
class UploadAttempt:
    """One file moving through ``PENDING -> PUSHED -> RECORDED``.

    A ledger row is only written from ``PUSHED``, so a stored object can
    outlive a missing row but a row never points at a missing object.
    """

    file: IncomingFile
    target: UploadTarget
    actor_id: str
    category: Optional[str] = None
    state: UploadState = UploadState.PENDING
    push_result: Optional[StoragePushResult] = None
    asset: Optional[MediaAsset] = None
    error: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def _reject(self, message: str, field_name: str = "file") -> None:
        self.state = UploadState.REJECTED
        self.error = message
        raise ValidationError(message, field=field_name)

    def validate(self) -> None:
        if self.state is not UploadState.PENDING:
            raise RuntimeError(f"Cannot validate upload in state {self.state.value}")
        mime_type = (self.file.mime_type or "").lower()
        if mime_type not in self.target.mime_types:
            self._reject(f"Unsupported file type: {self.file.mime_type or 'unknown'}")
        if not self.file.data:
            self._reject("File is empty")
        if len(self.file.data) > self.target.max_bytes:
            limit_mb = self.target.max_bytes // (1024 * 1024)
            self._reject(f"File too large. Maximum size is {limit_mb}MB")
        if self.category and self.category not in MEDIA_CATEGORIES:
            self._reject(f"Category must be one of: {', '.join(MEDIA_CATEGORIES)}", "category")

    async def push(self, storage: StorageClient) -> StoragePushResult:
        if self.state is not UploadState.PENDING:
            raise RuntimeError(f"Cannot push upload in state {self.state.value}")
        options = PushOptions(
            profile=self.target.profile_for(self.file.mime_type.lower()),
            filename=self.file.filename,
            mime_type=self.file.mime_type,
        )
        try:
            self.push_result = await storage.push(self.file.data, options)
        except StorageError as exc:
            self.state = UploadState.FAILED
            self.error = str(exc)
            logger.warning("Storage push failed for %s: %s", self.file.filename, exc)
            raise UpstreamStorageError(f"Upload failed: {exc}", field="file") from exc
        self.state = UploadState.PUSHED
        return self.push_result

    async def record(self, db: AsyncSession) -> MediaAsset:
        if self.state is not UploadState.PUSHED or self.push_result is None:
            raise RuntimeError(f"Cannot record upload in state {self.state.value}")
        result = self.push_result
        category = (
            self.category
            or self.target.category
            or infer_media_category(self.file.field_name, self.file.filename)
        )
        asset = MediaAsset(
            storage_id=result.storage_id,
            filename=result.storage_id,
            original_name=self.file.filename,
            url=result.url,
            secure_url=result.secure_url,
            mime_type=self.file.mime_type,
            size_bytes=int(result.size_bytes or len(self.file.data)),
            format=result.format,
            resource_kind=result.resource_kind,
            width=result.width,
            height=result.height,
            duration_seconds=result.duration_seconds,
            category=category,
            is_optimized=bool(result.derived_renditions),
            optimized_variants=list(result.derived_renditions),
            uploaded_by=self.actor_id,
            **self.extra,
        )
        db.add(asset)
        try:
            await db.commit()
        except IntegrityError as exc:
            await db.rollback()
            self.state = UploadState.FAILED
            self.error = "Storage object already recorded"
            raise ConflictError("Media asset already recorded", field="storage_id") from exc
        await db.refresh(asset)
        self.asset = asset
        self.state = UploadState.RECORDED
        return asset


def serialize_asset(asset: MediaAsset) -> Dict[str, Any]:
    return {
        "id": asset.id,
        "storage_id": asset.storage_id,
        "filename": asset.filename,
        "original_name": asset.original_name,
        "url": asset.url,
        "secure_url": asset.secure_url,
        "mime_type": asset.mime_type,
        "size_bytes": asset.size_bytes,
        "format": asset.format,
        "resource_kind": asset.resource_kind,
        "dimensions": {"width": asset.width, "height": asset.height},
        "duration_seconds": asset.duration_seconds,
        "category": asset.category,
        "usage_count": asset.usage_count,
        "last_used_at": iso(asset.last_used_at),
        "is_optimized": asset.is_optimized,
        "optimized_variants": asset.optimized_variants or [],
        "is_active": asset.is_active,
        "uploaded_by": asset.uploaded_by,
        "alt_text": asset.alt_text or {},
        "tags": asset.tags or [],
        "description": asset.description,
        "created_at": iso(asset.created_at),
        "updated_at": iso(asset.updated_at),
    }


def _target(name: str) -> UploadTarget:
    target = UPLOAD_TARGETS.get(name)
    if target is None:
        raise ValidationError(f"Unknown upload target: {name}", field="target")
    return target


async def upload_single(
    db: AsyncSession,
    storage: StorageClient,
    file: IncomingFile,
    actor_id: str,
    *,
    target: str = "general",
    category: Optional[str] = None,
    alt_text: Optional[Dict[str, str]] = None,
    description: Optional[str] = None,
    tags: Optional[Sequence[str]] = None,
) -> MediaAsset:
    """Validate, push, then record one file. Returns the ledger row."""
    attempt = UploadAttempt(file=file, target=_target(target), actor_id=actor_id, category=category or None)
    attempt.validate()
    if alt_text is not None:
        attempt.extra["alt_text"] = normalize_localized(alt_text, "alt_text")
    if tags is not None:
        attempt.extra["tags"] = normalize_tags(list(tags), "tags")
    if description:
        if len(description) > DESCRIPTION_MAX_LENGTH:
            raise ValidationError("Description must not exceed 500 characters", field="description")
        attempt.extra["description"] = description.strip()
    await attempt.push(storage)
    asset = await attempt.record(db)
    logger.info("Recorded media asset %s (%s) for %s", asset.id, asset.category, actor_id)
    return asset


async def upload_many(
    db: AsyncSession,
    storage: StorageClient,
    files: List[IncomingFile],
    actor_id: str,
    *,
    category: Optional[str] = None,
) -> Dict[str, Any]:
    """Upload files one after another, collecting a result per file."""
    if not files:
        raise ValidationError("No files uploaded", field="files")
    if len(files) > settings.MAX_FILES_PER_UPLOAD:
        raise ValidationError(
            f"Too many files. Maximum is {settings.MAX_FILES_PER_UPLOAD} files per upload", field="files"
        )

    results: List[Dict[str, Any]] = []
    for file in files:
        try:
            asset = await upload_single(db, storage, file, actor_id, category=category)
        except (ValidationError, UpstreamStorageError, ConflictError) as exc:
            results.append({"original_name": file.filename, "success": False, "error": exc.to_dict()})
            continue
        results.append({"original_name": file.filename, "success": True, "file": serialize_asset(asset)})

    uploaded = sum(1 for entry in results if entry["success"])
    return {
        "results": results,
        "total_count": len(results),
        "uploaded_count": uploaded,
        "failed_count": len(results) - uploaded,
    }


async def _get_or_404(db: AsyncSession, asset_id: str) -> MediaAsset:
    result = await db.execute(select(MediaAsset).where(MediaAsset.id == asset_id))
    asset = result.scalar_one_or_none()
    if not asset:
        raise NotFoundError("File not found")
    return asset


async def get_asset(db: AsyncSession, asset_id: str) -> Dict[str, Any]:
    return serialize_asset(await _get_or_404(db, asset_id))


def _check_category(category: Optional[str], field_name: str = "category") -> None:
    if category and category not in MEDIA_CATEGORIES:
        raise ValidationError(f"Category must be one of: {', '.join(MEDIA_CATEGORIES)}", field=field_name)


def _check_kind(resource_kind: Optional[str]) -> None:
    if resource_kind and resource_kind not in RESOURCE_KINDS:
        raise ValidationError(f"Type must be one of: {', '.join(RESOURCE_KINDS)}", field="type")


async def list_assets(
    db: AsyncSession,
    *,
    category: Optional[str] = None,
    resource_kind: Optional[str] = None,
    search: Optional[str] = None,
    sort: Optional[str] = None,
    order: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
) -> Dict[str, Any]:
    page, limit = validate_pagination(page, limit)
    _check_category(category)
    _check_kind(resource_kind)
    stmt = select(MediaAsset).where(MediaAsset.is_active.is_(True))
    if category:
        stmt = stmt.where(MediaAsset.category == category)
    if resource_kind:
        stmt = stmt.where(MediaAsset.resource_kind == resource_kind)
    condition = substring_filter(
        search,
        [MediaAsset.original_name, MediaAsset.description, cast(MediaAsset.tags, String)],
    )
    if condition is not None:
        stmt = stmt.where(condition)
    stmt = stmt.order_by(sort_clause(sort, order or "desc", EDITOR_SORT_FIELDS, "createdAt"), MediaAsset.id)

    assets, pagination = await paginate(db, stmt, page=page, limit=limit)
    return {"files": [serialize_asset(asset) for asset in assets], "pagination": pagination}


async def update_asset_metadata(db: AsyncSession, asset_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    asset = await _get_or_404(db, asset_id)
    if "description" in payload:
        description = str(payload["description"] or "").strip()
        if len(description) > DESCRIPTION_MAX_LENGTH:
            raise ValidationError("Description must not exceed 500 characters", field="description")
        asset.description = description or None
    if "tags" in payload:
        asset.tags = normalize_tags(payload["tags"], "tags")
    if payload.get("category"):
        _check_category(payload["category"])
        asset.category = payload["category"]
    if "alt_text" in payload:
        asset.alt_text = normalize_localized(payload["alt_text"], "alt_text")
    if payload.get("is_active") is not None:
        asset.is_active = normalize_bool(payload["is_active"], "is_active")
    await db.commit()
    await db.refresh(asset)
    return serialize_asset(asset)


async def delete_asset(db: AsyncSession, storage: StorageClient, asset_id: str) -> Dict[str, Any]:
    """Ask storage to drop the object, then always remove the ledger row."""
    asset = await _get_or_404(db, asset_id)
    asset.is_active = False
    storage_removed = True
    try:
        await storage.remove(asset.storage_id, asset.resource_kind)
    except Exception as exc:
        storage_removed = False
        logger.warning("Storage delete failed for %s, removing ledger row anyway: %s", asset.storage_id, exc)

    await db.delete(asset)
    await db.commit()
    logger.info("Media asset %s deleted (storage_removed=%s)", asset_id, storage_removed)
    return {"id": asset_id, "storage_removed": storage_removed}


async def list_public_media(
    db: AsyncSession,
    *,
    category: Optional[str] = None,
    resource_kind: Optional[str] = None,
    limit: int = 20,
) -> List[Dict[str, Any]]:
    limit = validate_limit(limit, MAX_PUBLIC_MEDIA)
    _check_category(category)
    _check_kind(resource_kind)
    stmt = select(MediaAsset).where(MediaAsset.is_active.is_(True))
    if category:
        stmt = stmt.where(MediaAsset.category == category)
    if resource_kind:
        stmt = stmt.where(MediaAsset.resource_kind == resource_kind)
    stmt = stmt.order_by(MediaAsset.created_at.desc()).limit(limit)
    assets = (await db.execute(stmt)).scalars().all()
    return [
        {
            "id": asset.id,
            "url": asset.secure_url,
            "original_name": asset.original_name,
            "resource_kind": asset.resource_kind,
            "format": asset.format,
            "category": asset.category,
            "dimensions": {"width": asset.width, "height": asset.height},
            "duration_seconds": asset.duration_seconds,
            "alt_text": asset.alt_text or {},
            "optimized_variants": asset.optimized_variants or [],
        }
        for asset in assets
    ]


async def record_media_usage(asset_ids: Iterable[str]) -> None:
    """Bump usage counters for served assets in one UPDATE.

    Runs after the response is sent; failures are logged and never raised.
    """
    ids = [asset_id for asset_id in dict.fromkeys(asset_ids) if asset_id]
    if not ids:
        return
    try:
        async with async_session_maker() as db:
            await db.execute(
                update(MediaAsset)
                .where(MediaAsset.id.in_(ids))
                .values(
                    usage_count=MediaAsset.usage_count + 1,
                    last_used_at=datetime.now(timezone.utc),
                )
                .execution_options(synchronize_session=False)
            )
            await db.commit()
    except Exception:
        logger.exception("Failed to record media usage for %d assets", len(ids))


async def merge_derived_renditions(
    db: AsyncSession,
    storage_id: str,
    renditions: List[Dict[str, Any]],
) -> Dict[str, Any]:
    """Attach renditions generated after the initial upload to the existing row."""
    result = await db.execute(select(MediaAsset).where(MediaAsset.storage_id == storage_id))
    asset = result.scalar_one_or_none()
    if not asset:
        raise NotFoundError("File not found")

    variants = list(asset.optimized_variants or [])
    known = {variant.get("url") for variant in variants}
    added = 0
    for rendition in renditions:
        url = rendition.get("url")
        if not url or url in known:
            continue
        variants.append(rendition)
        known.add(url)
        added += 1
    asset.optimized_variants = variants
    asset.is_optimized = bool(variants)
    await db.commit()
    await db.refresh(asset)
    logger.info("Merged %d renditions into media asset %s", added, asset.id)
    return serialize_asset(asset)
