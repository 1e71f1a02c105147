"""Contact-form inquiries submitted by visitors."""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models.inquiry import INQUIRY_STATUSES, Inquiry
from services.errors import NotFoundError, ValidationError
from services.records import iso

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def serialize_inquiry(inquiry: Inquiry) -> Dict[str, Any]:
    return {
        "id": inquiry.id,
        "name": inquiry.name,
        "age": inquiry.age,
        "email": inquiry.email,
        "phone": inquiry.phone,
        "message": inquiry.message,
        "status": inquiry.status,
        "created_at": iso(inquiry.created_at),
        "updated_at": iso(inquiry.updated_at),
    }


def _validate(payload: Dict[str, Any]) -> Dict[str, Any]:
    name = str(payload.get("name") or "").strip()
    if not name:
        raise ValidationError("Name is required", field="name")
    if len(name) > 100:
        raise ValidationError("Name must not exceed 100 characters", field="name")

    try:
        age = int(payload.get("age"))
    except (TypeError, ValueError) as exc:
        raise ValidationError("Age is required", field="age") from exc
    if age < 1 or age > 120:
        raise ValidationError("Age must be between 1 and 120", field="age")

    email = str(payload.get("email") or "").strip().lower()
    if not EMAIL_PATTERN.match(email):
        raise ValidationError("Please provide a valid email", field="email")

    phone = str(payload.get("phone") or "").strip()
    if len(phone) > 20:
        raise ValidationError("Phone number must not exceed 20 characters", field="phone")

    message = str(payload.get("message") or "").strip()
    if len(message) < 10:
        raise ValidationError("Message must be at least 10 characters", field="message")
    if len(message) > 2000:
        raise ValidationError("Message must not exceed 2000 characters", field="message")

    return {"name": name, "age": age, "email": email, "phone": phone, "message": message}


async def submit_inquiry(db: AsyncSession, payload: Dict[str, Any]) -> Dict[str, Any]:
    inquiry = Inquiry(status="new", **_validate(payload))
    db.add(inquiry)
    await db.commit()
    await db.refresh(inquiry)
    logger.info("Inquiry %s received", inquiry.id)
    return serialize_inquiry(inquiry)


def _check_status(status: Optional[str]) -> None:
    if status and status not in INQUIRY_STATUSES:
        raise ValidationError(f"Status must be one of: {', '.join(INQUIRY_STATUSES)}", field="status")


async def list_inquiries(db: AsyncSession, status: Optional[str] = None) -> Dict[str, Any]:
    _check_status(status)
    stmt = select(Inquiry)
    if status:
        stmt = stmt.where(Inquiry.status == status)
    rows = (await db.execute(stmt.order_by(Inquiry.created_at.desc()))).scalars().all()
    return {"inquiries": [serialize_inquiry(row) for row in rows], "count": len(rows)}


async def _get_or_404(db: AsyncSession, inquiry_id: str) -> Inquiry:
    result = await db.execute(select(Inquiry).where(Inquiry.id == inquiry_id))
    inquiry = result.scalar_one_or_none()
    if not inquiry:
        raise NotFoundError("Inquiry not found")
    return inquiry


async def get_inquiry(db: AsyncSession, inquiry_id: str) -> Dict[str, Any]:
    return serialize_inquiry(await _get_or_404(db, inquiry_id))


async def update_inquiry_status(db: AsyncSession, inquiry_id: str, status: str) -> Dict[str, Any]:
    if not status:
        raise ValidationError("Status is required", field="status")
    _check_status(status)
    inquiry = await _get_or_404(db, inquiry_id)
    inquiry.status = status
    await db.commit()
    await db.refresh(inquiry)
    return serialize_inquiry(inquiry)


async def delete_inquiry(db: AsyncSession, inquiry_id: str) -> None:
    inquiry = await _get_or_404(db, inquiry_id)
    await db.delete(inquiry)
    await db.commit()
