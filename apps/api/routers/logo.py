"""Site logo endpoints."""

import json
from typing import Dict, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from database import get_db
from routers.auth_scope import AuthContext, require_permission
from routers.upload import read_upload
from services.errors import ValidationError
from services.localization import DEFAULT_LANGUAGE
from services.site_config import get_active_logo, get_logo_for_editor, save_logo
from services.storage import StorageClient, get_storage_client

router = APIRouter()


def _parse_alt_text(value: Optional[str]) -> Optional[Dict[str, str]]:
    """Form field holding either a JSON object of translations or plain English text."""
    if value is None or not value.strip():
        return None
    text = value.strip()
    if not text.startswith("{"):
        return {"en": text}
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValidationError("alt_text must be valid JSON", field="alt_text") from exc
    if not isinstance(parsed, dict):
        raise ValidationError("alt_text must be an object", field="alt_text")
    return parsed


@router.get("")
async def read_logo(lang: str = DEFAULT_LANGUAGE, db: AsyncSession = Depends(get_db)):
    return await get_active_logo(db, lang)


@router.get("/admin")
async def read_logo_for_editor(
    auth: AuthContext = Depends(require_permission("system_config")),
    db: AsyncSession = Depends(get_db),
):
    return await get_logo_for_editor(db)


@router.post("")
async def save_logo_config(
    logo: Optional[UploadFile] = File(None),
    alt_text: Optional[str] = Form(None),
    width: Optional[int] = Form(None),
    height: Optional[int] = Form(None),
    is_active: Optional[bool] = Form(None),
    auth: AuthContext = Depends(require_permission("system_config")),
    storage: StorageClient = Depends(get_storage_client),
    db: AsyncSession = Depends(get_db),
):
    incoming = await read_upload(logo, "logo", settings.MAX_LOGO_UPLOAD_BYTES) if logo is not None else None
    payload = {
        "alt_text": _parse_alt_text(alt_text),
        "width": width,
        "height": height,
        "is_active": is_active,
    }
    return await save_logo(db, storage, payload, auth.actor_id, file=incoming)
