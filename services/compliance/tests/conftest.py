"""
Shared fixtures for the compliance service tests.

The service layer is exercised against an in-memory session double that
replays queued query results in order, so no database is needed.  Router
tests build the real FastAPI app (without running its lifespan) and sign
real JWTs with the shared auth settings.
"""
from __future__ import annotations

import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from app.config import Settings
from app.database import get_db
from app.dependencies import get_settings
from app.documents.constants import DocumentStatus, DocumentType, category_for
from app.documents.models import DriverDocument
from app.main import create_app
from app.verification.models import DriverProfile
from shared.auth.config import AuthSettings

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


# ── Session doubles ───────────────────────────────────────────────────────────

class FakeScalars:
    def __init__(self, items: list[Any]) -> None:
        self._items = items

    def all(self) -> list[Any]:
        return list(self._items)


class FakeResult:
    """Stands in for a SQLAlchemy Result; build one per expected execute()."""

    def __init__(
        self,
        scalar: Any = None,
        scalars: list[Any] | None = None,
        rows: list[Any] | None = None,
        rowcount: int = 0,
    ) -> None:
        self._scalar = scalar
        self._scalars = scalars or []
        self._rows = rows or []
        self.rowcount = rowcount

    def scalar_one_or_none(self) -> Any:
        return self._scalar

    def scalar_one(self) -> Any:
        return self._scalar

    def scalars(self) -> FakeScalars:
        return FakeScalars(self._scalars)

    def all(self) -> list[Any]:
        return list(self._rows)


class FakeSession:
    """Replays ``results`` for successive execute() calls.

    A queued Exception instance is raised instead of returned.
    """

    def __init__(self, results: list[Any] | None = None) -> None:
        self.results = results if results is not None else []
        self.executed: list[Any] = []
        self.added: list[Any] = []
        self.flushes = 0
        self.commits = 0
        self.rollbacks = 0
        self.savepoint_rollbacks = 0

    async def __aenter__(self) -> "FakeSession":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        return None

    async def execute(self, statement: Any) -> FakeResult:
        self.executed.append(statement)
        if not self.results:
            return FakeResult()
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    def add(self, obj: Any) -> None:
        self.added.append(obj)

    async def flush(self) -> None:
        self.flushes += 1

    async def commit(self) -> None:
        self.commits += 1

    async def rollback(self) -> None:
        self.rollbacks += 1

    @asynccontextmanager
    async def begin_nested(self):
        try:
            yield self
        except Exception:
            self.savepoint_rollbacks += 1
            raise


class FakeSessionFactory:
    """session_factory() double; every session shares one result queue."""

    def __init__(self, results: list[Any] | None = None) -> None:
        self.results = results if results is not None else []
        self.sessions: list[FakeSession] = []

    def __call__(self) -> FakeSession:
        session = FakeSession(self.results)
        self.sessions.append(session)
        return session

    @property
    def executed(self) -> list[Any]:
        return [stmt for s in self.sessions for stmt in s.executed]

    @property
    def commits(self) -> int:
        return sum(s.commits for s in self.sessions)

    @property
    def rollbacks(self) -> int:
        return sum(s.rollbacks for s in self.sessions)


# ── Domain builders ───────────────────────────────────────────────────────────

def make_document(
    driver_id: uuid.UUID | None = None,
    document_type: DocumentType = DocumentType.LICENSE,
    status: DocumentStatus = DocumentStatus.PENDING,
    **overrides: Any,
) -> DriverDocument:
    values: dict[str, Any] = {
        "id": uuid.uuid4(),
        "driver_id": driver_id or uuid.uuid4(),
        "tenant_id": None,
        "document_type": document_type,
        "document_category": category_for(document_type),
        "s3_key": f"drivers/{document_type.value}/file.jpg",
        "s3_bucket": "test-bucket",
        "file_name": "file.jpg",
        "file_size_bytes": 1024,
        "mime_type": "image/jpeg",
        "status": status,
        "created_at": NOW,
        "updated_at": NOW,
    }
    values.update(overrides)
    return DriverDocument(**values)


def make_profile(
    driver_id: uuid.UUID,
    status: str = "pending_documents",
    documents_complete: bool = False,
    **overrides: Any,
) -> DriverProfile:
    return DriverProfile(
        user_id=driver_id,
        status=status,
        documents_complete=documents_complete,
        **overrides,
    )


# ── Settings / auth ───────────────────────────────────────────────────────────

@pytest.fixture
def settings() -> Settings:
    return Settings(
        documents_bucket="test-bucket",
        required_document_types="license,insurance,registration,profile_photo",
        expiry_lookahead_days=30,
        expiry_notification_topic_arn="",
        log_level="INFO",
    )


def make_token(
    user_id: uuid.UUID,
    roles: list[str] | None = None,
    tenant_id: str | None = None,
) -> str:
    auth = AuthSettings()
    claims: dict[str, Any] = {
        "sub": str(user_id),
        "roles": roles if roles is not None else ["driver"],
        "iss": auth.issuer,
        "aud": auth.audience,
        "exp": datetime.now(timezone.utc) + timedelta(minutes=15),
    }
    if tenant_id:
        claims["custom:tenant_id"] = tenant_id
    return jwt.encode(claims, auth.secret, algorithm=auth.algorithm)


def auth_header(user_id: uuid.UUID, roles: list[str] | None = None, **kw: Any) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(user_id, roles, **kw)}"}


# ── HTTP ──────────────────────────────────────────────────────────────────────

@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def client(session: FakeSession, settings: Settings) -> Generator[TestClient, None, None]:
    app = create_app()

    async def _get_db():
        yield session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_settings] = lambda: settings
    # Not entered as a context manager: the lifespan would open a real pool.
    yield TestClient(app)
    app.dependency_overrides.clear()
