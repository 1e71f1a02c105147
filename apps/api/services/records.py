"""Helpers shared by the content, song and configuration stores."""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any, List, Optional
from urllib.parse import urlparse

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from services.errors import ConflictError, ValidationError


KEY_MIN_LENGTH = 3
KEY_MAX_LENGTH = 50
DERIVED_KEY_FALLBACK = "item"


def iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def derive_key(title: str) -> str:
    """Slug an English title: lowercase, non-alphanumeric runs to ``_``, 50 chars max."""
    slug = re.sub(r"[^a-z0-9]+", "_", (title or "").lower()).strip("_")
    slug = slug[:KEY_MAX_LENGTH].rstrip("_")
    if len(slug) < KEY_MIN_LENGTH:
        slug = f"{slug}_{DERIVED_KEY_FALLBACK}" if slug else DERIVED_KEY_FALLBACK
    return slug


async def key_taken(db: AsyncSession, model: Any, key: str, exclude_id: Optional[str] = None) -> bool:
    stmt = select(model.id).where(model.key == key)
    if exclude_id:
        stmt = stmt.where(model.id != exclude_id)
    result = await db.execute(stmt.limit(1))
    return result.scalar_one_or_none() is not None


async def available_derived_key(db: AsyncSession, model: Any, base: str) -> str:
    """Return ``base`` or the first free ``base_N`` variant, truncating ``base`` to fit."""
    if not await key_taken(db, model, base):
        return base
    suffix = 2
    while True:
        tail = f"_{suffix}"
        candidate = f"{base[: KEY_MAX_LENGTH - len(tail)]}{tail}"
        if not await key_taken(db, model, candidate):
            return candidate
        suffix += 1


async def commit_or_conflict(db: AsyncSession, label: str, key: str) -> None:
    """Commit, translating the store's unique-key violation into a conflict."""
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise ConflictError(f"{label} with key '{key}' already exists", field="key") from exc


def normalize_tags(value: Any, field: str = "metadata.tags") -> List[str]:
    if value is None:
        return []
    if not isinstance(value, (list, tuple, set)):
        raise ValidationError("Tags must be an array", field=field)
    tags: List[str] = []
    for raw in value:
        tag = str(raw or "").strip().lower()
        if not tag:
            continue
        if len(tag) < 2 or len(tag) > 30:
            raise ValidationError("Each tag must be between 2-30 characters", field=field)
        if tag not in tags:
            tags.append(tag)
    return tags


def normalize_url(value: Any, field: str) -> Optional[str]:
    text = str(value or "").strip()
    if not text:
        return None
    parsed = urlparse(text)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValidationError(f"{field} must be a valid URL", field=field)
    return text


def normalize_order(value: Any, field: str = "metadata.order") -> int:
    try:
        order = int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError("Order must be a positive integer", field=field) from exc
    if order < 0:
        raise ValidationError("Order must be a positive integer", field=field)
    return order


def normalize_bool(value: Any, field: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise ValidationError(f"{field} must be a boolean", field=field)


def normalize_strings(value: Any, field: str) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        raise ValidationError(f"{field} must be an array", field=field)
    return [str(item).strip() for item in value if str(item or "").strip()]
