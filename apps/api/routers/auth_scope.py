"""Authentication dependencies resolving the editor behind a request."""

from dataclasses import dataclass, field
from typing import Callable, List, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from services.errors import AuthenticationError, AuthorizationError
from services.session_token import decode_session_token, effective_permissions


auth_scheme = HTTPBearer(auto_error=False)


@dataclass
class AuthContext:
    actor_id: str
    role: str = "admin"
    permissions: List[str] = field(default_factory=list)

    def has_permission(self, permission: str) -> bool:
        return permission in self.permissions


async def get_auth_context(
    credentials: HTTPAuthorizationCredentials = Depends(auth_scheme),
) -> AuthContext:
    """Resolve the authenticated editor from a Bearer session token."""
    if not credentials or credentials.scheme.lower() != "bearer":
        raise AuthenticationError("Missing Bearer session token.")

    try:
        payload = decode_session_token(credentials.credentials)
    except ValueError as exc:
        raise AuthenticationError(str(exc)) from exc

    role = str(payload.get("role", "admin"))
    return AuthContext(
        actor_id=str(payload.get("sub", "")),
        role=role,
        permissions=effective_permissions(role, payload.get("permissions") or []),
    )


def require_permission(permission: str) -> Callable[..., AuthContext]:
    """Return a dependency that admits only editors holding ``permission``."""

    async def _dependency(auth: AuthContext = Depends(get_auth_context)) -> AuthContext:
        if not auth.has_permission(permission):
            raise AuthorizationError(f"Permission '{permission}' required.")
        return auth

    return _dependency


async def get_optional_auth_context(
    credentials: HTTPAuthorizationCredentials = Depends(auth_scheme),
) -> Optional[AuthContext]:
    """Like ``get_auth_context`` but anonymous callers and bad tokens yield ``None``."""
    if not credentials:
        return None
    try:
        return await get_auth_context(credentials)
    except AuthenticationError:
        return None
