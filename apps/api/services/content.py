"""Content entity store: localized page sections for editors and visitors."""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional

from sqlalchemy import String, cast, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from models.content_item import CONTENT_TYPES, ContentItem
from models.media_asset import MediaAsset
from services.errors import ConflictError, NotFoundError, ValidationError
from services.localization import (
    SUPPORTED_LANGUAGES,
    check_max_length,
    normalize_localized,
    require_english,
    resolve,
    resolve_language,
)
from services.query_engine import (
    bulk_reorder,
    group_by,
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
    normalize_strings,
    normalize_tags,
    normalize_url,
)

logger = logging.getLogger(__name__)

CONTENT_KEY_PATTERN = re.compile(r"^[a-z0-9_]{3,50}$")
TITLE_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 2000
MAX_SEARCH_RESULTS = 50

EDITOR_SORT_FIELDS = {
    "createdAt": ContentItem.created_at,
    "updatedAt": ContentItem.updated_at,
    "title.en": ContentItem.title["en"].as_string(),
    "metadata.order": ContentItem.order,
    "contentType": ContentItem.content_type,
}

MEDIA_REF_FIELDS = (
    "asset_id",
    "url",
    "storage_id",
    "original_name",
    "format",
    "size_bytes",
    "width",
    "height",
    "duration_seconds",
    "resource_kind",
)


def validate_content_key(key: Any, field: str = "key") -> str:
    text = str(key or "").strip().lower()
    if not CONTENT_KEY_PATTERN.match(text):
        raise ValidationError(
            "Key must be 3-50 characters of lowercase letters, numbers, and underscores",
            field=field,
        )
    return text


def _media_ref(value: Any, field: str, resource_kind: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise ValidationError(f"{field} must be an object", field=field)
    ref = {name: value[name] for name in MEDIA_REF_FIELDS if value.get(name) is not None}
    if not str(ref.get("url") or "").strip():
        raise ValidationError(f"{field}.url is required", field=f"{field}.url")
    ref.setdefault("resource_kind", resource_kind)
    return ref


def _normalize_media(value: Any) -> Dict[str, Any]:
    if value is None:
        return {"images": [], "videos": [], "thumbnail": None}
    if not isinstance(value, dict):
        raise ValidationError("media must be an object", field="media")
    images = value.get("images") or []
    videos = value.get("videos") or []
    if not isinstance(images, list) or not isinstance(videos, list):
        raise ValidationError("media.images and media.videos must be arrays", field="media")
    thumbnail = value.get("thumbnail")
    return {
        "images": [_media_ref(ref, f"media.images[{i}]", "image") for i, ref in enumerate(images)],
        "videos": [_media_ref(ref, f"media.videos[{i}]", "video") for i, ref in enumerate(videos)],
        "thumbnail": _media_ref(thumbnail, "media.thumbnail", "image") if thumbnail else None,
    }


def _normalize_seo(value: Any, current: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    if value is None:
        return dict(current or {})
    if not isinstance(value, dict):
        raise ValidationError("seo must be an object", field="seo")
    seo = dict(current or {"meta_title": {}, "meta_description": {}, "keywords": []})
    if "meta_title" in value:
        seo["meta_title"] = normalize_localized(value["meta_title"], "seo.meta_title")
    if "meta_description" in value:
        seo["meta_description"] = normalize_localized(value["meta_description"], "seo.meta_description")
    if "keywords" in value:
        seo["keywords"] = normalize_strings(value["keywords"], "seo.keywords")
    return seo


def _normalize_metadata(value: Any) -> Dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValidationError("metadata must be an object", field="metadata")
    fields: Dict[str, Any] = {}
    if value.get("order") is not None:
        fields["order"] = normalize_order(value["order"])
    if value.get("is_active") is not None:
        fields["is_active"] = normalize_bool(value["is_active"], "metadata.is_active")
    if value.get("is_featured") is not None:
        fields["is_featured"] = normalize_bool(value["is_featured"], "metadata.is_featured")
    if "tags" in value:
        fields["tags"] = normalize_tags(value["tags"])
    if "category" in value:
        fields["category"] = str(value["category"] or "").strip() or None
    return fields


def _validate_fields(payload: Dict[str, Any], current: Optional[ContentItem] = None) -> Dict[str, Any]:
    """Validate the fields present in ``payload`` and return column values."""
    values: Dict[str, Any] = {}

    if "content_type" in payload:
        content_type = str(payload["content_type"] or "").strip()
        if content_type not in CONTENT_TYPES:
            raise ValidationError(
                f"Type must be one of: {', '.join(CONTENT_TYPES)}", field="content_type"
            )
        values["content_type"] = content_type
    elif current is None:
        raise ValidationError("Content type is required", field="content_type")

    if "title" in payload or current is None:
        title = normalize_localized(payload.get("title"), "title")
        require_english(title, "title")
        check_max_length(title, "title", TITLE_MAX_LENGTH)
        values["title"] = title

    for name in ("description", "subtitle"):
        if name in payload:
            bundle = normalize_localized(payload[name], name)
            check_max_length(bundle, name, DESCRIPTION_MAX_LENGTH)
            values[name] = bundle

    for name in ("image_url", "video_url", "linkedin_url"):
        if name in payload:
            values[name] = normalize_url(payload[name], name)

    if "media" in payload:
        values["media"] = _normalize_media(payload["media"])
    if "seo" in payload:
        values["seo"] = _normalize_seo(payload["seo"], current.seo if current is not None else None)

    values.update(_normalize_metadata(payload.get("metadata")))
    return values


def serialize_content_item(item: ContentItem) -> Dict[str, Any]:
    """Full multilingual record for editors."""
    return {
        "id": item.id,
        "key": item.key,
        "content_type": item.content_type,
        "title": item.title or {},
        "description": item.description or {},
        "subtitle": item.subtitle or {},
        "image_url": item.image_url,
        "video_url": item.video_url,
        "linkedin_url": item.linkedin_url,
        "media": item.media or {"images": [], "videos": [], "thumbnail": None},
        "media_count": _media_count(item.media),
        "metadata": {
            "order": item.order,
            "is_active": item.is_active,
            "is_featured": item.is_featured,
            "tags": item.tags or [],
            "category": item.category,
        },
        "seo": item.seo or {},
        "published_at": iso(item.published_at),
        "created_by": item.created_by,
        "last_modified_by": item.last_modified_by,
        "created_at": iso(item.created_at),
        "updated_at": iso(item.updated_at),
    }


def localize_content_item(item: ContentItem, language: str) -> Dict[str, Any]:
    """Single-language view for visitors."""
    seo = item.seo or {}
    return {
        "id": item.id,
        "key": item.key,
        "content_type": item.content_type,
        "title": resolve(item.title, language),
        "description": resolve(item.description, language),
        "subtitle": resolve(item.subtitle, language),
        "image_url": item.image_url or "",
        "video_url": item.video_url or "",
        "linkedin_url": item.linkedin_url or "",
        "media": item.media or {"images": [], "videos": [], "thumbnail": None},
        "metadata": {
            "order": item.order,
            "is_featured": item.is_featured,
            "tags": item.tags or [],
            "category": item.category,
        },
        "seo": {
            "meta_title": resolve(seo.get("meta_title"), language),
            "meta_description": resolve(seo.get("meta_description"), language),
            "keywords": seo.get("keywords") or [],
        },
        "published_at": iso(item.published_at),
        "created_at": iso(item.created_at),
        "updated_at": iso(item.updated_at),
    }


def _media_count(media: Optional[Dict[str, Any]]) -> int:
    media = media or {}
    return len(media.get("images") or []) + len(media.get("videos") or [])


async def _get_or_404(db: AsyncSession, item_id: str) -> ContentItem:
    result = await db.execute(select(ContentItem).where(ContentItem.id == item_id))
    item = result.scalar_one_or_none()
    if not item:
        raise NotFoundError("Content not found")
    return item


async def create_content_item(payload: Dict[str, Any], actor_id: str, db: AsyncSession) -> Dict[str, Any]:
    values = _validate_fields(payload)

    supplied_key = payload.get("key")
    if supplied_key:
        key = validate_content_key(supplied_key)
        if await key_taken(db, ContentItem, key):
            raise ConflictError("Content with this key already exists", field="key")
    else:
        key = await available_derived_key(db, ContentItem, derive_key(values["title"]["en"]))

    values.setdefault("media", {"images": [], "videos": [], "thumbnail": None})
    item = ContentItem(key=key, created_by=actor_id, **values)
    db.add(item)
    await commit_or_conflict(db, "Content", key)
    await db.refresh(item)
    logger.info("Content %s created by %s (key=%s)", item.id, actor_id, key)
    return serialize_content_item(item)


async def update_content_item(
    item_id: str,
    payload: Dict[str, Any],
    actor_id: str,
    db: AsyncSession,
) -> Dict[str, Any]:
    item = await _get_or_404(db, item_id)
    values = _validate_fields(payload, current=item)

    if payload.get("key"):
        key = validate_content_key(payload["key"])
        if key != item.key:
            if await key_taken(db, ContentItem, key, exclude_id=item.id):
                raise ConflictError("Content with this key already exists", field="key")
            values["key"] = key

    for name, value in values.items():
        setattr(item, name, value)
    item.last_modified_by = actor_id
    await commit_or_conflict(db, "Content", values.get("key", item.key))
    await db.refresh(item)
    return serialize_content_item(item)


async def delete_content_item(item_id: str, db: AsyncSession) -> None:
    """Remove the record; referenced media assets are left untouched."""
    item = await _get_or_404(db, item_id)
    await db.delete(item)
    await db.commit()
    logger.info("Content %s deleted", item_id)


async def get_content_item(item_id: str, db: AsyncSession) -> Dict[str, Any]:
    return serialize_content_item(await _get_or_404(db, item_id))


async def list_content_for_editor(
    db: AsyncSession,
    *,
    content_type: Optional[str] = None,
    is_active: Optional[bool] = None,
    search: Optional[str] = None,
    sort: Optional[str] = None,
    order: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
) -> Dict[str, Any]:
    page, limit = validate_pagination(page, limit)
    stmt = select(ContentItem)
    if content_type:
        if content_type not in CONTENT_TYPES:
            raise ValidationError(f"Type must be one of: {', '.join(CONTENT_TYPES)}", field="type")
        stmt = stmt.where(ContentItem.content_type == content_type)
    if is_active is not None:
        stmt = stmt.where(ContentItem.is_active.is_(is_active))
    condition = substring_filter(
        search,
        [
            ContentItem.title["en"].as_string(),
            ContentItem.description["en"].as_string(),
            ContentItem.key,
            cast(ContentItem.tags, String),
        ],
    )
    if condition is not None:
        stmt = stmt.where(condition)
    stmt = stmt.order_by(sort_clause(sort, order, EDITOR_SORT_FIELDS, "metadata.order"), ContentItem.id)

    items, pagination = await paginate(db, stmt, page=page, limit=limit)
    return {
        "contents": [serialize_content_item(item) for item in items],
        "pagination": pagination,
    }


def _visitor_query(content_type: Optional[str] = None, featured_only: bool = False):
    stmt = select(ContentItem).where(ContentItem.is_active.is_(True))
    if content_type:
        if content_type not in CONTENT_TYPES:
            raise ValidationError(f"Type must be one of: {', '.join(CONTENT_TYPES)}", field="type")
        stmt = stmt.where(ContentItem.content_type == content_type)
    if featured_only:
        stmt = stmt.where(ContentItem.is_featured.is_(True))
    return stmt.order_by(ContentItem.order.asc(), ContentItem.published_at.desc())


async def list_content_for_visitor(
    db: AsyncSession,
    language: str,
    content_type: Optional[str] = None,
    featured_only: bool = False,
) -> Dict[str, Any]:
    language = resolve_language(language)
    result = await db.execute(_visitor_query(content_type, featured_only))
    contents = [localize_content_item(item, language) for item in result.scalars().all()]
    return {
        "language": language,
        "content": group_by(contents, lambda entry: entry["content_type"]),
        "total": len(contents),
    }


async def list_content_by_type_for_visitor(db: AsyncSession, language: str, content_type: str) -> Dict[str, Any]:
    language = resolve_language(language)
    result = await db.execute(_visitor_query(content_type))
    contents = [localize_content_item(item, language) for item in result.scalars().all()]
    return {"language": language, "type": content_type, "contents": contents, "total": len(contents)}


async def get_content_by_key_for_visitor(db: AsyncSession, key: str, language: str) -> Dict[str, Any]:
    key = validate_content_key(key)
    result = await db.execute(
        select(ContentItem).where(ContentItem.key == key, ContentItem.is_active.is_(True))
    )
    item = result.scalar_one_or_none()
    if not item:
        raise NotFoundError("Content not found")
    return localize_content_item(item, resolve_language(language))


async def search_content_for_visitor(
    db: AsyncSession,
    query: str,
    language: str,
    content_type: Optional[str] = None,
    limit: int = 10,
) -> Dict[str, Any]:
    """Substring search across every translation of title and description."""
    term = (query or "").strip()
    if len(term) < 2 or len(term) > 100:
        raise ValidationError("Search query must be between 2-100 characters", field="q")
    limit = validate_limit(limit, MAX_SEARCH_RESULTS)
    language = resolve_language(language)

    columns = [ContentItem.key, cast(ContentItem.tags, String)]
    for code in SUPPORTED_LANGUAGES:
        columns.append(ContentItem.title[code].as_string())
        columns.append(ContentItem.description[code].as_string())

    stmt = select(ContentItem).where(ContentItem.is_active.is_(True), substring_filter(term, columns))
    if content_type:
        if content_type not in CONTENT_TYPES:
            raise ValidationError(f"Type must be one of: {', '.join(CONTENT_TYPES)}", field="type")
        stmt = stmt.where(ContentItem.content_type == content_type)
    stmt = stmt.order_by(ContentItem.is_featured.desc(), ContentItem.order.asc()).limit(limit)

    rows = (await db.execute(stmt)).scalars().all()
    return {
        "query": term,
        "language": language,
        "results": [localize_content_item(item, language) for item in rows],
        "total": len(rows),
        "has_more": len(rows) == limit,
    }


async def bulk_reorder_content(updates: List[Dict[str, Any]], actor_id: str, db: AsyncSession) -> Dict[str, int]:
    result = await bulk_reorder(db, ContentItem, updates, actor_id)
    logger.info(
        "Content reorder by %s: matched=%s modified=%s",
        actor_id,
        result["matched_count"],
        result["modified_count"],
    )
    return result


async def content_stats(db: AsyncSession, include_recent: bool = False) -> Dict[str, Any]:
    async def _count(*conditions) -> int:
        stmt = select(func.count()).select_from(ContentItem)
        if conditions:
            stmt = stmt.where(*conditions)
        return int((await db.execute(stmt)).scalar() or 0)

    total = await _count()
    active = await _count(ContentItem.is_active.is_(True))
    featured = await _count(ContentItem.is_featured.is_(True))
    media_total = int(
        (await db.execute(select(func.count()).select_from(MediaAsset).where(MediaAsset.is_active.is_(True)))).scalar()
        or 0
    )
    by_type_rows = await db.execute(
        select(ContentItem.content_type, func.count())
        .where(ContentItem.is_active.is_(True))
        .group_by(ContentItem.content_type)
        .order_by(func.count().desc())
    )
    stats: Dict[str, Any] = {
        "content": {"total": total, "active": active, "featured": featured},
        "media": {"total": media_total},
        "content_by_type": {content_type: count for content_type, count in by_type_rows.all()},
    }
    if include_recent:
        recent = await db.execute(
            select(ContentItem)
            .where(ContentItem.is_active.is_(True))
            .order_by(ContentItem.created_at.desc())
            .limit(5)
        )
        stats["recent_content"] = [
            {
                "key": item.key,
                "title": (item.title or {}).get("en", ""),
                "content_type": item.content_type,
                "created_at": iso(item.created_at),
            }
            for item in recent.scalars().all()
        ]
    return stats
