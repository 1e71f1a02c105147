"""Footer endpoints."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from routers.auth_scope import AuthContext, require_permission
from routers.content import LocalizedPayload
from services.localization import DEFAULT_LANGUAGE
from services.site_config import (
    add_social_icon,
    delete_social_icon,
    get_active_footer,
    get_footer_for_editor,
    save_footer,
    update_social_icon,
)

router = APIRouter()


class FooterColumnPayload(BaseModel):
    title: Optional[LocalizedPayload] = None
    subtitle: Optional[LocalizedPayload] = None
    description: Optional[LocalizedPayload] = None


class SocialIconPayload(BaseModel):
    platform: Optional[str] = Field(default=None, max_length=50)
    url: Optional[str] = None
    icon_url: Optional[str] = None
    order: Optional[int] = None
    is_active: Optional[bool] = None


class FooterPayload(BaseModel):
    left_column: Optional[FooterColumnPayload] = None
    center_column: Optional[FooterColumnPayload] = None
    right_column: Optional[FooterColumnPayload] = None
    social_icons: Optional[List[SocialIconPayload]] = None
    copyright_text: Optional[LocalizedPayload] = None
    is_active: Optional[bool] = None


@router.get("")
async def read_footer(lang: str = DEFAULT_LANGUAGE, db: AsyncSession = Depends(get_db)):
    return await get_active_footer(db, lang)


@router.get("/admin")
async def read_footer_for_editor(
    auth: AuthContext = Depends(require_permission("system_config")),
    db: AsyncSession = Depends(get_db),
):
    return await get_footer_for_editor(db)


@router.post("")
async def save_footer_config(
    request: FooterPayload,
    auth: AuthContext = Depends(require_permission("system_config")),
    db: AsyncSession = Depends(get_db),
):
    return await save_footer(db, request.model_dump(exclude_unset=True))


@router.post("/social-icon", status_code=201)
async def create_social_icon(
    request: SocialIconPayload,
    auth: AuthContext = Depends(require_permission("system_config")),
    db: AsyncSession = Depends(get_db),
):
    return await add_social_icon(db, request.model_dump(exclude_none=True))


@router.put("/social-icon/{index}")
async def edit_social_icon(
    index: int,
    request: SocialIconPayload,
    auth: AuthContext = Depends(require_permission("system_config")),
    db: AsyncSession = Depends(get_db),
):
    return await update_social_icon(db, index, request.model_dump(exclude_none=True))


@router.delete("/social-icon/{index}")
async def remove_social_icon(
    index: int,
    auth: AuthContext = Depends(require_permission("system_config")),
    db: AsyncSession = Depends(get_db),
):
    return await delete_social_icon(db, index)
