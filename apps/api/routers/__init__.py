"""Routers package."""

from . import (
    health,
    content,
    songs,
    public,
    footer,
    logo,
    upload,
    inquiries,
)
