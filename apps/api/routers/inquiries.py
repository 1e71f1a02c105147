"""Contact-form inquiries: public submission and editor management."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from routers.auth_scope import AuthContext, require_permission
from routers.rate_limit import rate_limit
from services.inquiries import (
    delete_inquiry,
    get_inquiry,
    list_inquiries,
    submit_inquiry,
    update_inquiry_status,
)
from services.notifications import deliver_inquiry_notification

router = APIRouter()


class InquiryRequest(BaseModel):
    name: str = Field(default="", max_length=200)
    age: Optional[int] = None
    email: str = Field(default="", max_length=320)
    phone: Optional[str] = None
    message: str = Field(default="", max_length=4000)


class InquiryStatusRequest(BaseModel):
    status: str


@router.post("", status_code=201)
async def create_inquiry(
    request: InquiryRequest,
    background_tasks: BackgroundTasks,
    _rate_limit: None = Depends(rate_limit("inquiry_submit", limit=5, window_seconds=900)),
    db: AsyncSession = Depends(get_db),
):
    inquiry = await submit_inquiry(db, request.model_dump())
    background_tasks.add_task(deliver_inquiry_notification, inquiry)
    return {"inquiry": {"id": inquiry["id"], "created_at": inquiry["created_at"]}}


@router.get("")
async def read_inquiries(
    status: Optional[str] = None,
    auth: AuthContext = Depends(require_permission("content_manage")),
    db: AsyncSession = Depends(get_db),
):
    return await list_inquiries(db, status)


@router.get("/{inquiry_id}")
async def read_inquiry(
    inquiry_id: str,
    auth: AuthContext = Depends(require_permission("content_manage")),
    db: AsyncSession = Depends(get_db),
):
    return await get_inquiry(db, inquiry_id)


@router.patch("/{inquiry_id}/status")
async def change_inquiry_status(
    inquiry_id: str,
    request: InquiryStatusRequest,
    auth: AuthContext = Depends(require_permission("content_manage")),
    db: AsyncSession = Depends(get_db),
):
    return await update_inquiry_status(db, inquiry_id, request.status)


@router.delete("/{inquiry_id}")
async def remove_inquiry(
    inquiry_id: str,
    auth: AuthContext = Depends(require_permission("content_manage")),
    db: AsyncSession = Depends(get_db),
):
    await delete_inquiry(db, inquiry_id)
    return {"deleted": True, "id": inquiry_id}
