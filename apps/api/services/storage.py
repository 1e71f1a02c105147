"""Object storage collaborator backed by the Cloudinary REST API."""

from __future__ import annotations

import hashlib
import hmac
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

import httpx

from config import settings, storage_configured

logger = logging.getLogger(__name__)

CLOUDINARY_API_BASE = "https://api.cloudinary.com/v1_1"


class StorageError(Exception):
    """Raised for any failed call to the storage service."""


@dataclass(frozen=True)
class UploadProfile:
    name: str
    resource_type: str
    resource_kind: str
    folder: str
    transformation: Optional[str] = None
    eager: Optional[str] = None
    eager_async: bool = False
    chunked: bool = False


IMAGE_PROFILE = UploadProfile(
    name="image",
    resource_type="image",
    resource_kind="image",
    folder="images",
    transformation="q_auto,f_auto/c_limit,h_1080,w_1920",
    eager="c_thumb,g_face,h_400,w_400|c_fill,h_600,w_800",
)
VIDEO_PROFILE = UploadProfile(
    name="video",
    resource_type="video",
    resource_kind="video",
    folder="videos",
    eager="q_auto,c_limit,h_1080,w_1920/mp4",
    eager_async=True,
    chunked=True,
)
LOGO_PROFILE = UploadProfile(
    name="logo",
    resource_type="image",
    resource_kind="image",
    folder="logos",
    transformation="q_auto,f_auto",
)
# Cloudinary files audio under the "video" resource type.
AUDIO_PROFILE = UploadProfile(
    name="audio",
    resource_type="video",
    resource_kind="audio",
    folder="audio",
    chunked=True,
)


@dataclass
class PushOptions:
    profile: UploadProfile
    filename: str
    mime_type: str
    tags: List[str] = field(default_factory=list)


@dataclass
class StoragePushResult:
    storage_id: str
    url: str
    secure_url: str
    resource_kind: str
    format: Optional[str] = None
    size_bytes: Optional[int] = None
    width: Optional[int] = None
    height: Optional[int] = None
    duration_seconds: Optional[float] = None
    derived_renditions: List[Dict[str, Any]] = field(default_factory=list)


class StorageClient(Protocol):
    async def push(self, data: bytes, options: PushOptions) -> StoragePushResult:
        ...

    async def remove(self, storage_id: str, resource_kind: str) -> None:
        ...


def rendition_from_eager(entry: Dict[str, Any]) -> Dict[str, Any]:
    transformation = str(entry.get("transformation") or "")
    return {
        "size": "thumbnail" if "thumb" in transformation else "medium",
        "url": entry.get("secure_url") or entry.get("url"),
        "width": entry.get("width"),
        "height": entry.get("height"),
    }


def sign_params(params: Dict[str, Any], api_secret: str) -> str:
    """Cloudinary request signature: SHA-1 of sorted ``k=v`` pairs plus the secret."""
    to_sign = "&".join(
        f"{key}={params[key]}" for key in sorted(params) if params[key] not in (None, "")
    )
    return hashlib.sha1(f"{to_sign}{api_secret}".encode("utf-8")).hexdigest()


def verify_notification_signature(body: bytes, timestamp: str, signature: str, api_secret: str) -> bool:
    expected = hashlib.sha1(body + str(timestamp).encode("utf-8") + api_secret.encode("utf-8")).hexdigest()
    return hmac.compare_digest(expected, str(signature or ""))


def _destroy_kind(resource_kind: str) -> str:
    return "video" if resource_kind in ("video", "audio") else ("raw" if resource_kind == "raw" else "image")


class CloudinaryStorage:
    def __init__(
        self,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        *,
        folder: str = "site",
        notification_url: str = "",
        timeout_seconds: float = 120.0,
        chunk_size: int = 6_000_000,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.cloud_name = cloud_name
        self.api_key = api_key
        self.api_secret = api_secret
        self.folder = folder.strip("/")
        self.notification_url = notification_url
        self.timeout_seconds = timeout_seconds
        self.chunk_size = max(int(chunk_size), 5_000_000)
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport)

    def _endpoint(self, resource_type: str, action: str) -> str:
        return f"{CLOUDINARY_API_BASE}/{self.cloud_name}/{resource_type}/{action}"

    def _signed(self, params: Dict[str, Any]) -> Dict[str, Any]:
        params = {key: value for key, value in params.items() if value not in (None, "")}
        params["timestamp"] = int(time.time())
        params["signature"] = sign_params(params, self.api_secret)
        params["api_key"] = self.api_key
        return params

    def _upload_params(self, options: PushOptions) -> Dict[str, Any]:
        profile = options.profile
        params: Dict[str, Any] = {
            "folder": f"{self.folder}/{profile.folder}" if self.folder else profile.folder,
            "use_filename": "true",
            "unique_filename": "true",
            "transformation": profile.transformation,
            "eager": profile.eager,
            "tags": ",".join(options.tags) if options.tags else None,
        }
        if profile.eager and profile.eager_async:
            params["eager_async"] = "true"
            params["notification_url"] = self.notification_url or None
        return self._signed(params)

    @staticmethod
    def _parse_upload(payload: Dict[str, Any], profile: UploadProfile) -> StoragePushResult:
        storage_id = payload.get("public_id")
        secure_url = payload.get("secure_url")
        if not storage_id or not secure_url:
            raise StorageError("Storage response missing public_id or secure_url")
        return StoragePushResult(
            storage_id=str(storage_id),
            url=str(payload.get("url") or secure_url),
            secure_url=str(secure_url),
            resource_kind=profile.resource_kind,
            format=payload.get("format"),
            size_bytes=payload.get("bytes"),
            width=payload.get("width"),
            height=payload.get("height"),
            duration_seconds=payload.get("duration"),
            derived_renditions=[rendition_from_eager(entry) for entry in payload.get("eager") or []],
        )

    async def push(self, data: bytes, options: PushOptions) -> StoragePushResult:
        if not storage_configured_for(self):
            raise StorageError("Object storage is not configured")
        profile = options.profile
        url = self._endpoint(profile.resource_type, "upload")
        params = self._upload_params(options)
        try:
            async with self._client() as client:
                if profile.chunked and len(data) > self.chunk_size:
                    response = await self._push_chunked(client, url, params, data, options)
                else:
                    response = await client.post(
                        url,
                        data=params,
                        files={"file": (options.filename, data, options.mime_type)},
                    )
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPStatusError as exc:
            raise StorageError(f"Upload rejected ({exc.response.status_code}): {_error_message(exc.response)}") from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise StorageError(f"Upload failed: {exc}") from exc

        result = self._parse_upload(payload, profile)
        logger.info("Pushed %s to storage as %s (%s bytes)", options.filename, result.storage_id, len(data))
        return result

    async def _push_chunked(
        self,
        client: httpx.AsyncClient,
        url: str,
        params: Dict[str, Any],
        data: bytes,
        options: PushOptions,
    ) -> httpx.Response:
        """Send ``data`` in Content-Range chunks; the last response carries the asset."""
        if not data:
            raise StorageError(f"Cannot upload empty file {options.filename}")
        upload_id = uuid.uuid4().hex
        total = len(data)
        start = 0
        while True:
            end = min(start + self.chunk_size, total) - 1
            response = await client.post(
                url,
                data=params,
                files={"file": (options.filename, data[start : end + 1], options.mime_type)},
                headers={
                    "X-Unique-Upload-Id": upload_id,
                    "Content-Range": f"bytes {start}-{end}/{total}",
                },
            )
            response.raise_for_status()
            start = end + 1
            if start >= total:
                return response

    async def remove(self, storage_id: str, resource_kind: str) -> None:
        if not storage_configured_for(self):
            raise StorageError("Object storage is not configured")
        url = self._endpoint(_destroy_kind(resource_kind), "destroy")
        try:
            async with self._client() as client:
                response = await client.post(url, data=self._signed({"public_id": storage_id, "invalidate": "true"}))
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPError as exc:
            raise StorageError(f"Delete failed for {storage_id}: {exc}") from exc
        result = payload.get("result")
        if result != "ok":
            raise StorageError(f"Delete failed for {storage_id}: {result}")


def storage_configured_for(storage: CloudinaryStorage) -> bool:
    return bool(storage.cloud_name and storage.api_key and storage.api_secret)


def _error_message(response: httpx.Response) -> str:
    try:
        return str(response.json().get("error", {}).get("message") or response.text)
    except ValueError:
        return response.text


def get_storage_client() -> StorageClient:
    """FastAPI dependency returning the configured storage collaborator."""
    if not storage_configured():
        logger.warning("Cloudinary credentials are missing; storage calls will fail")
    return CloudinaryStorage(
        settings.CLOUDINARY_CLOUD_NAME,
        settings.CLOUDINARY_API_KEY,
        settings.CLOUDINARY_API_SECRET,
        folder=settings.CLOUDINARY_FOLDER,
        notification_url=settings.CLOUDINARY_NOTIFICATION_URL,
        timeout_seconds=settings.STORAGE_TIMEOUT_SECONDS,
        chunk_size=settings.STORAGE_CHUNK_SIZE_BYTES,
    )
