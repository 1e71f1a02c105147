"""Song endpoints: editor management plus the public list and play counter."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from routers.auth_scope import AuthContext, require_permission
from routers.content import BulkReorderRequest, LocalizedPayload
from routers.rate_limit import rate_limit
from services.songs import (
    bulk_reorder_songs,
    create_song,
    delete_song,
    get_song,
    increment_play_count,
    list_songs_for_editor,
    list_songs_for_visitor,
    update_song,
)

router = APIRouter()


class SongMetadataPayload(BaseModel):
    order: Optional[int] = None
    is_active: Optional[bool] = None
    is_featured: Optional[bool] = None
    tags: Optional[List[str]] = None


class SongPayload(BaseModel):
    key: Optional[str] = None
    title: Optional[LocalizedPayload] = None
    description: Optional[LocalizedPayload] = None
    artist: Optional[LocalizedPayload] = None
    lyrics: Optional[LocalizedPayload] = None
    audio_url: Optional[str] = None
    audio_asset_id: Optional[str] = None
    duration_seconds: Optional[float] = None
    cover_image: Optional[Dict[str, Any]] = None
    genre: Optional[str] = Field(default=None, max_length=50)
    release_year: Optional[int] = None
    metadata: Optional[SongMetadataPayload] = None


@router.get("/public/all")
async def list_public_songs(
    lang: str = "en",
    featured: Optional[bool] = None,
    genre: Optional[str] = None,
    limit: int = 20,
    db: AsyncSession = Depends(get_db),
):
    return await list_songs_for_visitor(db, lang, featured=featured, genre=genre, limit=limit)


@router.post("/public/{song_id}/play")
async def play_song(
    song_id: str,
    _rate_limit: None = Depends(rate_limit("song_play", limit=120, window_seconds=60)),
    db: AsyncSession = Depends(get_db),
):
    play_count = await increment_play_count(song_id, db)
    return {"id": song_id, "play_count": play_count}


@router.get("")
async def list_songs(
    is_active: Optional[bool] = None,
    genre: Optional[str] = None,
    search: Optional[str] = Query(None, max_length=100),
    sort: Optional[str] = None,
    order: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
    auth: AuthContext = Depends(require_permission("content_manage")),
    db: AsyncSession = Depends(get_db),
):
    return await list_songs_for_editor(
        db,
        is_active=is_active,
        genre=genre,
        search=search,
        sort=sort,
        order=order,
        page=page,
        limit=limit,
    )


@router.put("/bulk/reorder")
async def reorder_songs(
    request: BulkReorderRequest,
    auth: AuthContext = Depends(require_permission("content_manage")),
    db: AsyncSession = Depends(get_db),
):
    return await bulk_reorder_songs([entry.model_dump() for entry in request.updates], auth.actor_id, db)


@router.get("/{song_id}")
async def get_song_detail(
    song_id: str,
    auth: AuthContext = Depends(require_permission("content_manage")),
    db: AsyncSession = Depends(get_db),
):
    return await get_song(song_id, db)


@router.post("", status_code=201)
async def create_song_entry(
    request: SongPayload,
    auth: AuthContext = Depends(require_permission("content_manage")),
    db: AsyncSession = Depends(get_db),
):
    return await create_song(request.model_dump(exclude_unset=True), auth.actor_id, db)


@router.put("/{song_id}")
async def update_song_entry(
    song_id: str,
    request: SongPayload,
    auth: AuthContext = Depends(require_permission("content_manage")),
    db: AsyncSession = Depends(get_db),
):
    return await update_song(song_id, request.model_dump(exclude_unset=True), auth.actor_id, db)


@router.delete("/{song_id}")
async def delete_song_entry(
    song_id: str,
    auth: AuthContext = Depends(require_permission("content_manage")),
    db: AsyncSession = Depends(get_db),
):
    await delete_song(song_id, db)
    return {"deleted": True, "id": song_id}
