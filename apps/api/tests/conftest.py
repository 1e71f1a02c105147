from pathlib import PurePosixPath
from typing import List, Optional, Tuple

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from unittest.mock import patch

from database import Base, get_db
from main import app
from routers import rate_limit
from services.session_token import create_session_token
from services.storage import PushOptions, StorageError, StoragePushResult, get_storage_client


EDITOR_ID = "editor-1"
EDITOR_AUTH_HEADER = {
    "Authorization": f"Bearer {create_session_token(EDITOR_ID, role='super_admin')['token']}"
}
VIEWER_AUTH_HEADER = {
    "Authorization": f"Bearer {create_session_token('viewer-1', role='admin', permissions=[])['token']}"
}


@pytest.fixture(autouse=True)
def reset_local_rate_limit_counters():
    """Keep in-memory rate-limit state isolated between tests."""
    previous = getattr(app.state, "disable_rate_limits", False)
    app.state.disable_rate_limits = True
    rate_limit._local_counters.clear()
    yield
    rate_limit._local_counters.clear()
    app.state.disable_rate_limits = previous


class FakeStorage:
    """In-memory storage collaborator that records every call."""

    def __init__(
        self,
        fail_push: bool = False,
        fail_remove: bool = False,
        duration_seconds: Optional[float] = None,
        renditions: Optional[List[dict]] = None,
    ):
        self.fail_push = fail_push
        self.fail_remove = fail_remove
        self.duration_seconds = duration_seconds
        self.renditions = renditions or []
        self.pushed: List[Tuple[str, str, int]] = []
        self.removed: List[Tuple[str, str]] = []

    @property
    def calls(self) -> int:
        return len(self.pushed) + len(self.removed)

    async def push(self, data: bytes, options: PushOptions) -> StoragePushResult:
        if self.fail_push:
            raise StorageError("storage unavailable")
        self.pushed.append((options.filename, options.profile.name, len(data)))
        path = PurePosixPath(options.filename)
        storage_id = f"site/{options.profile.folder}/{path.stem}_{len(self.pushed)}"
        return StoragePushResult(
            storage_id=storage_id,
            url=f"http://cdn.test/{storage_id}{path.suffix}",
            secure_url=f"https://cdn.test/{storage_id}{path.suffix}",
            resource_kind=options.profile.resource_kind,
            format=path.suffix.lstrip(".") or None,
            size_bytes=len(data),
            width=800 if options.profile.resource_kind == "image" else None,
            height=600 if options.profile.resource_kind == "image" else None,
            duration_seconds=self.duration_seconds,
            derived_renditions=list(self.renditions),
        )

    async def remove(self, storage_id: str, resource_kind: str) -> None:
        self.removed.append((storage_id, resource_kind))
        if self.fail_remove:
            raise StorageError(f"could not delete {storage_id}")


@pytest.fixture
def fake_storage():
    return FakeStorage()


@pytest_asyncio.fixture
async def repo_client(tmp_path, fake_storage):
    """Client over a throwaway sqlite database with the fake storage collaborator."""
    db_path = tmp_path / "content_repository.db"
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}")
    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async def override_get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage_client] = lambda: fake_storage
    with patch("services.media_ledger.async_session_maker", session_maker):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            yield client, session_maker

    app.dependency_overrides.pop(get_db, None)
    app.dependency_overrides.pop(get_storage_client, None)
    await engine.dispose()


@pytest.fixture
def editor_headers():
    return dict(EDITOR_AUTH_HEADER)


@pytest.fixture
def viewer_headers():
    return dict(VIEWER_AUTH_HEADER)
