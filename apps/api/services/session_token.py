"""Editor session tokens carrying the actor id, role and permission set."""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional

from jose import JWTError, jwt

from config import settings


SESSION_TOKEN_TYPE = "site_editor_session"

PERMISSIONS = ("content_manage", "media_upload", "system_config")
SUPER_ADMIN_ROLE = "super_admin"


def effective_permissions(role: str, permissions: Iterable[str]) -> List[str]:
    """The super admin role holds every permission regardless of its claim list."""
    if role == SUPER_ADMIN_ROLE:
        return list(PERMISSIONS)
    return [permission for permission in permissions if permission in PERMISSIONS]


def create_session_token(
    actor_id: str,
    role: str = "admin",
    permissions: Optional[Iterable[str]] = None,
    expires_hours: Optional[int] = None,
) -> Dict[str, Any]:
    """Create a signed session token for an editor."""
    now = datetime.now(timezone.utc)
    ttl_hours = int(expires_hours or settings.JWT_EXPIRATION_HOURS or 24)
    expires_at = now + timedelta(hours=max(ttl_hours, 1))
    claims: Dict[str, Any] = {
        "sub": actor_id,
        "type": SESSION_TOKEN_TYPE,
        "role": role,
        "permissions": effective_permissions(role, permissions or ()),
        "iat": int(now.timestamp()),
        "exp": int(expires_at.timestamp()),
    }

    token = jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
    return {
        "token": token,
        "expires_at": int(expires_at.timestamp()),
    }


def decode_session_token(token: str) -> Dict[str, Any]:
    """Decode and validate a signed session token."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as exc:
        raise ValueError("Invalid or expired session token.") from exc

    token_type = str(payload.get("type", "")).strip()
    if token_type != SESSION_TOKEN_TYPE:
        raise ValueError("Invalid session token type.")

    subject = str(payload.get("sub", "")).strip()
    if not subject:
        raise ValueError("Session token missing subject.")

    return payload
