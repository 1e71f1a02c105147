"""Editor endpoints for content items."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from models.content_item import CONTENT_TYPE_LABELS, CONTENT_TYPES
from routers.auth_scope import AuthContext, require_permission
from services.content import (
    bulk_reorder_content,
    create_content_item,
    delete_content_item,
    get_content_item,
    list_content_for_editor,
    update_content_item,
)
from services.localization import LANGUAGE_LABELS, SUPPORTED_LANGUAGES

router = APIRouter()

LocalizedPayload = Dict[str, Optional[str]]


class MetadataPayload(BaseModel):
    order: Optional[int] = None
    is_active: Optional[bool] = None
    is_featured: Optional[bool] = None
    tags: Optional[List[str]] = None
    category: Optional[str] = None


class SeoPayload(BaseModel):
    meta_title: Optional[LocalizedPayload] = None
    meta_description: Optional[LocalizedPayload] = None
    keywords: Optional[List[str]] = None


class ContentPayload(BaseModel):
    key: Optional[str] = None
    content_type: Optional[str] = None
    title: Optional[LocalizedPayload] = None
    description: Optional[LocalizedPayload] = None
    subtitle: Optional[LocalizedPayload] = None
    image_url: Optional[str] = None
    video_url: Optional[str] = None
    linkedin_url: Optional[str] = None
    media: Optional[Dict[str, Any]] = None
    metadata: Optional[MetadataPayload] = None
    seo: Optional[SeoPayload] = None


class ReorderEntry(BaseModel):
    id: str
    order: int = Field(ge=0)


class BulkReorderRequest(BaseModel):
    updates: List[ReorderEntry] = Field(min_length=1)


def _payload(request: ContentPayload) -> Dict[str, Any]:
    return request.model_dump(exclude_unset=True)


@router.get("")
async def list_content(
    content_type: Optional[str] = Query(None, alias="type"),
    is_active: Optional[bool] = None,
    search: Optional[str] = Query(None, max_length=100),
    sort: Optional[str] = None,
    order: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
    auth: AuthContext = Depends(require_permission("content_manage")),
    db: AsyncSession = Depends(get_db),
):
    return await list_content_for_editor(
        db,
        content_type=content_type,
        is_active=is_active,
        search=search,
        sort=sort,
        order=order,
        page=page,
        limit=limit,
    )


@router.get("/meta/info")
async def content_meta_info(auth: AuthContext = Depends(require_permission("content_manage"))):
    return {
        "content_types": [{"value": value, "label": CONTENT_TYPE_LABELS[value]} for value in CONTENT_TYPES],
        "languages": [{"code": code, "label": LANGUAGE_LABELS[code]} for code in SUPPORTED_LANGUAGES],
    }


@router.put("/bulk/reorder")
async def reorder_content(
    request: BulkReorderRequest,
    auth: AuthContext = Depends(require_permission("content_manage")),
    db: AsyncSession = Depends(get_db),
):
    updates = [entry.model_dump() for entry in request.updates]
    return await bulk_reorder_content(updates, auth.actor_id, db)


@router.get("/{item_id}")
async def get_content(
    item_id: str,
    auth: AuthContext = Depends(require_permission("content_manage")),
    db: AsyncSession = Depends(get_db),
):
    return await get_content_item(item_id, db)


@router.post("", status_code=201)
async def create_content(
    request: ContentPayload,
    auth: AuthContext = Depends(require_permission("content_manage")),
    db: AsyncSession = Depends(get_db),
):
    return await create_content_item(_payload(request), auth.actor_id, db)


@router.put("/{item_id}")
async def update_content(
    item_id: str,
    request: ContentPayload,
    auth: AuthContext = Depends(require_permission("content_manage")),
    db: AsyncSession = Depends(get_db),
):
    return await update_content_item(item_id, _payload(request), auth.actor_id, db)


@router.delete("/{item_id}")
async def delete_content(
    item_id: str,
    auth: AuthContext = Depends(require_permission("content_manage")),
    db: AsyncSession = Depends(get_db),
):
    await delete_content_item(item_id, db)
    return {"deleted": True, "id": item_id}
