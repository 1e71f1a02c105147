"""Singleton site configuration: footer and logo."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models.footer import Footer
from models.logo import Logo
from services.errors import NotFoundError, ValidationError
from services.localization import normalize_localized, resolve, resolve_language
from services.media_ledger import IncomingFile, upload_single
from services.records import iso, normalize_bool, normalize_order, normalize_url
from services.storage import StorageClient

logger = logging.getLogger(__name__)

FOOTER_COLUMNS = ("left_column", "center_column", "right_column")
COLUMN_FIELDS = ("title", "subtitle", "description")
LOGO_DEFAULT_WIDTH = 120
LOGO_DEFAULT_HEIGHT = 40


# Footer


def _normalize_column(value: Any, name: str, current: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise ValidationError(f"{name} must be an object", field=name)
    column = dict(current or {})
    for field_name in COLUMN_FIELDS:
        if field_name in value:
            column[field_name] = normalize_localized(value[field_name], f"{name}.{field_name}")
    return column


def _normalize_icon(value: Any, field: str, default_order: int) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise ValidationError("Social icon must be an object", field=field)
    platform = str(value.get("platform") or "").strip()
    url = normalize_url(value.get("url"), f"{field}.url")
    icon_url = normalize_url(value.get("icon_url"), f"{field}.icon_url")
    if not platform or not url or not icon_url:
        raise ValidationError("Platform, URL, and icon URL are required", field=field)
    order = value.get("order")
    return {
        "platform": platform,
        "url": url,
        "icon_url": icon_url,
        "order": normalize_order(order, f"{field}.order") if order is not None else default_order,
        "is_active": normalize_bool(value["is_active"], f"{field}.is_active") if value.get("is_active") is not None else True,
    }


def _normalize_icons(value: Any) -> List[Dict[str, Any]]:
    if not isinstance(value, list):
        raise ValidationError("social_icons must be an array", field="social_icons")
    return [_normalize_icon(icon, f"social_icons[{index}]", index) for index, icon in enumerate(value)]


def serialize_footer(footer: Footer) -> Dict[str, Any]:
    return {
        "id": footer.id,
        "left_column": footer.left_column or {},
        "center_column": footer.center_column or {},
        "right_column": footer.right_column or {},
        "social_icons": footer.social_icons or [],
        "copyright_text": footer.copyright_text or {},
        "metadata": {
            "is_active": footer.is_active,
            "last_updated": iso(footer.last_updated),
        },
        "created_at": iso(footer.created_at),
        "updated_at": iso(footer.updated_at),
    }


def localize_footer(footer: Footer, language: str) -> Dict[str, Any]:
    def _column(column: Optional[Dict[str, Any]]) -> Dict[str, str]:
        column = column or {}
        return {name: resolve(column.get(name), language) for name in COLUMN_FIELDS}

    icons = [icon for icon in footer.social_icons or [] if icon.get("is_active", True)]
    icons.sort(key=lambda icon: icon.get("order", 0))
    return {
        "left_column": _column(footer.left_column),
        "center_column": _column(footer.center_column),
        "right_column": _column(footer.right_column),
        "social_icons": [
            {"platform": icon["platform"], "url": icon["url"], "icon_url": icon["icon_url"], "order": icon.get("order", 0)}
            for icon in icons
        ],
        "copyright_text": resolve(footer.copyright_text, language),
    }


async def _first_footer(db: AsyncSession) -> Optional[Footer]:
    result = await db.execute(select(Footer).order_by(Footer.created_at.asc()).limit(1))
    return result.scalar_one_or_none()


async def _footer_or_404(db: AsyncSession) -> Footer:
    footer = await _first_footer(db)
    if not footer:
        raise NotFoundError("Footer not found")
    return footer


async def get_active_footer(db: AsyncSession, language: str) -> Dict[str, Any]:
    language = resolve_language(language)
    result = await db.execute(
        select(Footer).where(Footer.is_active.is_(True)).order_by(Footer.created_at.asc()).limit(1)
    )
    footer = result.scalar_one_or_none()
    if not footer:
        raise NotFoundError("Footer not found")
    return {"language": language, "footer": localize_footer(footer, language)}


async def get_footer_for_editor(db: AsyncSession) -> Dict[str, Any]:
    return serialize_footer(await _footer_or_404(db))


async def save_footer(db: AsyncSession, payload: Dict[str, Any]) -> Dict[str, Any]:
    """Create the footer if none exists, otherwise merge the given fields into it."""
    footer = await _first_footer(db)
    created = footer is None
    if created:
        footer = Footer(left_column={}, center_column={}, right_column={}, social_icons=[], copyright_text={})
        db.add(footer)

    for name in FOOTER_COLUMNS:
        if name in payload and payload[name] is not None:
            setattr(footer, name, _normalize_column(payload[name], name, getattr(footer, name)))
    if "social_icons" in payload and payload["social_icons"] is not None:
        footer.social_icons = _normalize_icons(payload["social_icons"])
    if "copyright_text" in payload and payload["copyright_text"] is not None:
        footer.copyright_text = normalize_localized(payload["copyright_text"], "copyright_text")
    if payload.get("is_active") is not None:
        footer.is_active = normalize_bool(payload["is_active"], "is_active")
    footer.last_updated = datetime.now(timezone.utc)

    await db.commit()
    await db.refresh(footer)
    logger.info("Footer %s %s", footer.id, "created" if created else "updated")
    return serialize_footer(footer)


def _check_index(footer: Footer, index: int) -> None:
    if index < 0 or index >= len(footer.social_icons or []):
        raise ValidationError("Invalid social icon index", field="index")


async def add_social_icon(db: AsyncSession, payload: Dict[str, Any]) -> Dict[str, Any]:
    footer = await _footer_or_404(db)
    icons = list(footer.social_icons or [])
    icons.append(_normalize_icon(payload, "social_icon", len(icons)))
    footer.social_icons = icons
    footer.last_updated = datetime.now(timezone.utc)
    await db.commit()
    await db.refresh(footer)
    return serialize_footer(footer)


async def update_social_icon(db: AsyncSession, index: int, payload: Dict[str, Any]) -> Dict[str, Any]:
    footer = await _footer_or_404(db)
    _check_index(footer, index)
    icons = [dict(icon) for icon in footer.social_icons]
    merged = {**icons[index], **{name: value for name, value in payload.items() if value is not None}}
    icons[index] = _normalize_icon(merged, f"social_icons[{index}]", icons[index].get("order", index))
    footer.social_icons = icons
    footer.last_updated = datetime.now(timezone.utc)
    await db.commit()
    await db.refresh(footer)
    return serialize_footer(footer)


async def delete_social_icon(db: AsyncSession, index: int) -> Dict[str, Any]:
    footer = await _footer_or_404(db)
    _check_index(footer, index)
    icons = list(footer.social_icons)
    icons.pop(index)
    footer.social_icons = icons
    footer.last_updated = datetime.now(timezone.utc)
    await db.commit()
    await db.refresh(footer)
    return serialize_footer(footer)


# Logo


def serialize_logo(logo: Logo) -> Dict[str, Any]:
    return {
        "id": logo.id,
        "logo_url": logo.logo_url,
        "media_asset_id": logo.media_asset_id,
        "alt_text": logo.alt_text or {},
        "width": logo.width,
        "height": logo.height,
        "is_active": logo.is_active,
        "created_at": iso(logo.created_at),
        "updated_at": iso(logo.updated_at),
    }


def _dimension(value: Any, field: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{field} must be an integer", field=field) from exc
    if number < 1 or number > 2000:
        raise ValidationError(f"{field} must be between 1-2000", field=field)
    return number


async def _first_logo(db: AsyncSession) -> Optional[Logo]:
    result = await db.execute(select(Logo).order_by(Logo.created_at.asc()).limit(1))
    return result.scalar_one_or_none()


async def get_active_logo(db: AsyncSession, language: str) -> Dict[str, Any]:
    language = resolve_language(language)
    result = await db.execute(select(Logo).where(Logo.is_active.is_(True)).order_by(Logo.created_at.asc()).limit(1))
    logo = result.scalar_one_or_none()
    if not logo:
        raise NotFoundError("Logo not found")
    return {
        "logo_url": logo.logo_url,
        "alt_text": resolve(logo.alt_text, language),
        "width": logo.width,
        "height": logo.height,
    }


async def get_logo_for_editor(db: AsyncSession) -> Dict[str, Any]:
    logo = await _first_logo(db)
    if not logo:
        raise NotFoundError("Logo not found")
    return serialize_logo(logo)


async def save_logo(
    db: AsyncSession,
    storage: StorageClient,
    payload: Dict[str, Any],
    actor_id: str,
    file: Optional[IncomingFile] = None,
) -> Dict[str, Any]:
    """Upsert the logo. A new file goes through the ledger before the logo row changes."""
    logo = await _first_logo(db)
    if logo is None and file is None:
        raise ValidationError("Please upload a logo image", field="logo")

    alt_text = normalize_localized(payload["alt_text"], "alt_text") if payload.get("alt_text") is not None else None
    width = _dimension(payload["width"], "width") if payload.get("width") is not None else None
    height = _dimension(payload["height"], "height") if payload.get("height") is not None else None
    is_active = normalize_bool(payload["is_active"], "is_active") if payload.get("is_active") is not None else None

    asset = None
    if file is not None:
        asset = await upload_single(db, storage, file, actor_id, target="logo", alt_text=alt_text)

    if logo is None:
        logo = Logo(
            logo_url=asset.secure_url,
            media_asset_id=asset.id,
            alt_text=alt_text or {"en": "Logo"},
            width=width or LOGO_DEFAULT_WIDTH,
            height=height or LOGO_DEFAULT_HEIGHT,
            is_active=True if is_active is None else is_active,
        )
        db.add(logo)
    else:
        if asset is not None:
            logo.logo_url = asset.secure_url
            logo.media_asset_id = asset.id
        if alt_text:
            logo.alt_text = alt_text
        if width is not None:
            logo.width = width
        if height is not None:
            logo.height = height
        if is_active is not None:
            logo.is_active = is_active

    await db.commit()
    await db.refresh(logo)
    logger.info("Logo %s saved (asset=%s)", logo.id, logo.media_asset_id)
    return serialize_logo(logo)
