"""Media upload and file management endpoints."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from database import get_db
from routers.auth_scope import AuthContext, require_permission
from routers.content import LocalizedPayload
from routers.rate_limit import rate_limit
from services.errors import AuthenticationError, ValidationError
from services.media_ledger import (
    IncomingFile,
    delete_asset,
    get_asset,
    list_assets,
    merge_derived_renditions,
    serialize_asset,
    update_asset_metadata,
    upload_many,
    upload_single,
)
from services.storage import StorageClient, get_storage_client, rendition_from_eager, verify_notification_signature

logger = logging.getLogger(__name__)

router = APIRouter()

READ_CHUNK_BYTES = 1024 * 1024


class AssetMetadataPayload(BaseModel):
    description: Optional[str] = Field(default=None, max_length=500)
    tags: Optional[List[str]] = None
    category: Optional[str] = None
    alt_text: Optional[LocalizedPayload] = None
    is_active: Optional[bool] = None


async def read_upload(file: UploadFile, field_name: str, max_bytes: int) -> IncomingFile:
    """Read an upload into memory, stopping one chunk past ``max_bytes``.

    The ledger still sees an oversized payload and rejects it before any
    storage call.
    """
    chunks: List[bytes] = []
    total = 0
    while True:
        chunk = await file.read(READ_CHUNK_BYTES)
        if not chunk:
            break
        chunks.append(chunk)
        total += len(chunk)
        if total > max_bytes:
            break
    await file.close()
    return IncomingFile(
        filename=file.filename or "upload",
        mime_type=(file.content_type or "").lower(),
        data=b"".join(chunks),
        field_name=field_name,
    )


@router.post("/single", status_code=201)
async def upload_single_file(
    file: UploadFile = File(...),
    category: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    field_name: Optional[str] = Form(None),
    _rate_limit: None = Depends(rate_limit("media_upload", limit=60, window_seconds=3600)),
    auth: AuthContext = Depends(require_permission("media_upload")),
    storage: StorageClient = Depends(get_storage_client),
    db: AsyncSession = Depends(get_db),
):
    incoming = await read_upload(file, field_name or "file", settings.MAX_UPLOAD_BYTES)
    asset = await upload_single(
        db, storage, incoming, auth.actor_id, category=category, description=description
    )
    return {"file": serialize_asset(asset)}


@router.post("/multiple")
async def upload_multiple_files(
    files: List[UploadFile] = File(...),
    category: Optional[str] = Form(None),
    _rate_limit: None = Depends(rate_limit("media_upload", limit=60, window_seconds=3600)),
    auth: AuthContext = Depends(require_permission("media_upload")),
    storage: StorageClient = Depends(get_storage_client),
    db: AsyncSession = Depends(get_db),
):
    if len(files) > settings.MAX_FILES_PER_UPLOAD:
        raise ValidationError(
            f"Too many files. Maximum is {settings.MAX_FILES_PER_UPLOAD} files per upload", field="files"
        )
    incoming = [await read_upload(file, "files", settings.MAX_UPLOAD_BYTES) for file in files]
    return await upload_many(db, storage, incoming, auth.actor_id, category=category)


@router.post("/song-audio", status_code=201)
async def upload_song_audio(
    file: UploadFile = File(...),
    _rate_limit: None = Depends(rate_limit("media_upload", limit=60, window_seconds=3600)),
    auth: AuthContext = Depends(require_permission("media_upload")),
    storage: StorageClient = Depends(get_storage_client),
    db: AsyncSession = Depends(get_db),
):
    incoming = await read_upload(file, "song_audio", settings.MAX_UPLOAD_BYTES)
    asset = await upload_single(db, storage, incoming, auth.actor_id, target="song_audio")
    return {"file": serialize_asset(asset)}


@router.post("/song-cover", status_code=201)
async def upload_song_cover(
    file: UploadFile = File(...),
    _rate_limit: None = Depends(rate_limit("media_upload", limit=60, window_seconds=3600)),
    auth: AuthContext = Depends(require_permission("media_upload")),
    storage: StorageClient = Depends(get_storage_client),
    db: AsyncSession = Depends(get_db),
):
    incoming = await read_upload(file, "song_cover", settings.MAX_UPLOAD_BYTES)
    asset = await upload_single(db, storage, incoming, auth.actor_id, target="song_cover")
    return {"file": serialize_asset(asset)}


@router.get("/files")
async def list_files(
    category: Optional[str] = None,
    resource_kind: Optional[str] = Query(None, alias="type"),
    search: Optional[str] = Query(None, max_length=100),
    sort: Optional[str] = None,
    order: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
    auth: AuthContext = Depends(require_permission("media_upload")),
    db: AsyncSession = Depends(get_db),
):
    return await list_assets(
        db,
        category=category,
        resource_kind=resource_kind,
        search=search,
        sort=sort,
        order=order,
        page=page,
        limit=limit,
    )


@router.get("/files/{asset_id}")
async def get_file(
    asset_id: str,
    auth: AuthContext = Depends(require_permission("media_upload")),
    db: AsyncSession = Depends(get_db),
):
    return await get_asset(db, asset_id)


@router.put("/files/{asset_id}")
async def update_file(
    asset_id: str,
    request: AssetMetadataPayload,
    auth: AuthContext = Depends(require_permission("media_upload")),
    db: AsyncSession = Depends(get_db),
):
    return await update_asset_metadata(db, asset_id, request.model_dump(exclude_unset=True))


@router.delete("/files/{asset_id}")
async def delete_file(
    asset_id: str,
    auth: AuthContext = Depends(require_permission("media_upload")),
    storage: StorageClient = Depends(get_storage_client),
    db: AsyncSession = Depends(get_db),
):
    return await delete_asset(db, storage, asset_id)


@router.post("/renditions/notify")
async def rendition_notification(request: Request, db: AsyncSession = Depends(get_db)):
    """Webhook for renditions the storage service finished after the upload returned."""
    body = await request.body()
    timestamp = request.headers.get("x-cld-timestamp", "")
    signature = request.headers.get("x-cld-signature", "")
    secret = settings.CLOUDINARY_API_SECRET
    if not secret or not verify_notification_signature(body, timestamp, signature, secret):
        raise AuthenticationError("Invalid notification signature.")

    try:
        payload: Dict[str, Any] = await request.json()
    except ValueError as exc:
        raise ValidationError("Notification body must be JSON") from exc
    storage_id = str(payload.get("public_id") or "").strip()
    if not storage_id:
        raise ValidationError("Notification missing public_id", field="public_id")

    renditions = [rendition_from_eager(entry) for entry in payload.get("eager") or []]
    logger.info("Rendition notification for %s with %d renditions", storage_id, len(renditions))
    return await merge_derived_renditions(db, storage_id, renditions)
