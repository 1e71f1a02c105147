"""Error taxonomy shared by the content repository services."""

from __future__ import annotations

from typing import Any, Dict, Optional


class ContentRepositoryError(Exception):
    """Base error carrying a machine-readable kind and an HTTP status."""

    kind = "server_error"
    status_code = 500

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.field = field
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"kind": self.kind, "message": self.message}
        if self.field:
            payload["field"] = self.field
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(ContentRepositoryError):
    """Malformed or missing required input."""

    kind = "validation_error"
    status_code = 422


class NotFoundError(ContentRepositoryError):
    kind = "not_found"
    status_code = 404


class ConflictError(ContentRepositoryError):
    """Unique key collision, detected before the write or by the store itself."""

    kind = "conflict"
    status_code = 409


class UpstreamStorageError(ContentRepositoryError):
    """The object-storage collaborator failed a push."""

    kind = "upstream_storage_error"
    status_code = 502


class AuthorizationError(ContentRepositoryError):
    kind = "authorization_error"
    status_code = 403


class AuthenticationError(AuthorizationError):
    kind = "authentication_error"
    status_code = 401


class RateLimitError(ContentRepositoryError):
    kind = "rate_limited"
    status_code = 429
