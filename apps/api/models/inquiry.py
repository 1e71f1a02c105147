"""Visitor contact-form inquiry model."""

from datetime import datetime, timezone
import uuid

from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from database import Base


INQUIRY_STATUSES = ["new", "read", "responded"]


class Inquiry(Base):
    __tablename__ = "inquiries"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(100), nullable=False)
    age = Column(Integer, nullable=False)
    email = Column(String, nullable=False, index=True)
    phone = Column(String(20), nullable=False, default="")
    message = Column(Text, nullable=False)
    status = Column(String, nullable=False, default="new", index=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), index=True)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
