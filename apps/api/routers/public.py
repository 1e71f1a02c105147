"""Visitor-facing read endpoints."""

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from models.content_item import CONTENT_TYPE_LABELS, CONTENT_TYPES
from routers.auth_scope import AuthContext, get_optional_auth_context
from services.content import (
    content_stats,
    get_content_by_key_for_visitor,
    list_content_by_type_for_visitor,
    list_content_for_visitor,
    search_content_for_visitor,
)
from services.localization import DEFAULT_LANGUAGE, LANGUAGE_LABELS, SUPPORTED_LANGUAGES
from services.media_ledger import list_public_media, record_media_usage

router = APIRouter()


@router.get("/content")
async def public_content(
    lang: str = DEFAULT_LANGUAGE,
    content_type: Optional[str] = Query(None, alias="type"),
    featured: bool = False,
    db: AsyncSession = Depends(get_db),
):
    return await list_content_for_visitor(db, lang, content_type=content_type, featured_only=featured)


@router.get("/content/type/{content_type}")
async def public_content_by_type(
    content_type: str,
    lang: str = DEFAULT_LANGUAGE,
    db: AsyncSession = Depends(get_db),
):
    return await list_content_by_type_for_visitor(db, lang, content_type)


@router.get("/content/{key}")
async def public_content_by_key(
    key: str,
    lang: str = DEFAULT_LANGUAGE,
    db: AsyncSession = Depends(get_db),
):
    return await get_content_by_key_for_visitor(db, key, lang)


@router.get("/media")
async def public_media(
    background_tasks: BackgroundTasks,
    category: Optional[str] = None,
    resource_kind: Optional[str] = Query(None, alias="type"),
    limit: int = 20,
    db: AsyncSession = Depends(get_db),
):
    media = await list_public_media(db, category=category, resource_kind=resource_kind, limit=limit)
    if media:
        # Counter update runs after the response is sent.
        background_tasks.add_task(record_media_usage, [entry["id"] for entry in media])
    return {"media": media, "total": len(media)}


@router.get("/meta")
async def public_meta():
    return {
        "languages": [{"code": code, "label": LANGUAGE_LABELS[code]} for code in SUPPORTED_LANGUAGES],
        "content_types": [{"value": value, "label": CONTENT_TYPE_LABELS[value]} for value in CONTENT_TYPES],
        "default_language": DEFAULT_LANGUAGE,
    }


@router.get("/search")
async def public_search(
    q: str = "",
    lang: str = DEFAULT_LANGUAGE,
    content_type: Optional[str] = Query(None, alias="type"),
    limit: int = 10,
    db: AsyncSession = Depends(get_db),
):
    return await search_content_for_visitor(db, q, lang, content_type=content_type, limit=limit)


@router.get("/stats")
async def public_stats(
    auth: Optional[AuthContext] = Depends(get_optional_auth_context),
    db: AsyncSession = Depends(get_db),
):
    return await content_stats(db, include_recent=auth is not None)
