import uuid
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
from botocore.exceptions import ClientError

from app import s3
from app.exceptions import InvalidDocumentType, PayloadTooLarge, StorageUnavailable

DRIVER_ID = uuid.UUID("11111111-1111-1111-1111-111111111111")


class _FakeClient:
    def __init__(self, presign: AsyncMock) -> None:
        self.generate_presigned_url = presign

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return None


class _FakeSession:
    def __init__(self, presign: AsyncMock) -> None:
        self._presign = presign
        self.services: list[str] = []

    def client(self, service_name, config=None):
        self.services.append(service_name)
        return _FakeClient(self._presign)


@pytest.fixture
def presign(monkeypatch) -> AsyncMock:
    mock = AsyncMock(return_value="https://s3.example/presigned")
    monkeypatch.setattr(s3, "_s3_session", lambda settings: _FakeSession(mock))
    return mock


def test_sanitize_file_name():
    assert s3.sanitize_file_name("my licence (front).jpg") == "my_licence__front_.jpg"
    assert s3.sanitize_file_name("../../etc/passwd") == ".._.._etc_passwd"


def test_storage_key_layout():
    now = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)
    key = s3.build_storage_key(DRIVER_ID, "license", "front side.jpg", now=now)
    epoch_ms = int(now.timestamp() * 1000)
    assert key == f"{DRIVER_ID}/license/2026-03-10_{epoch_ms}_front_side.jpg"


def test_storage_key_tenant_prefix():
    key = s3.build_storage_key(DRIVER_ID, "insurance", "a.pdf", tenant_id="acme")
    assert key.startswith(f"acme/{DRIVER_ID}/insurance/")


def test_check_upload_request_rejects_unknown_type(settings):
    with pytest.raises(InvalidDocumentType):
        s3.check_upload_request("passport", 100, settings)


def test_check_upload_request_rejects_oversized(settings):
    with pytest.raises(PayloadTooLarge) as exc_info:
        s3.check_upload_request("license", settings.max_document_size_bytes + 1, settings)
    assert exc_info.value.status_code == 413
    assert "10MB" in exc_info.value.detail


@pytest.mark.asyncio
async def test_upload_grant_is_put_with_metadata(presign, settings):
    grant = await s3.issue_upload_grant(
        DRIVER_ID, "license", "front.jpg", "image/jpeg", "acme", settings, file_size=2048
    )

    assert grant.grant_url == "https://s3.example/presigned"
    assert grant.bucket == "test-bucket"
    assert grant.expires_in_seconds == 900
    assert grant.storage_key.startswith(f"acme/{DRIVER_ID}/license/")

    args, kwargs = presign.call_args
    assert args == ("put_object",)
    params = kwargs["Params"]
    assert params["Key"] == grant.storage_key
    assert params["ContentType"] == "image/jpeg"
    assert params["Metadata"]["driver-id"] == str(DRIVER_ID)
    assert params["Metadata"]["document-type"] == "license"
    assert params["Metadata"]["tenant-id"] == "acme"
    assert kwargs["ExpiresIn"] == 900


@pytest.mark.asyncio
async def test_upload_grant_omits_missing_tenant(presign, settings):
    await s3.issue_upload_grant(DRIVER_ID, "license", "front.jpg", "image/jpeg", None, settings)
    metadata = presign.call_args.kwargs["Params"]["Metadata"]
    assert "tenant-id" not in metadata


@pytest.mark.asyncio
async def test_read_grant_is_get(presign, settings):
    grant = await s3.issue_read_grant("test-bucket", "some/key.jpg", settings)

    assert grant.expires_in_seconds == 3600
    args, kwargs = presign.call_args
    assert args == ("get_object",)
    assert kwargs["Params"] == {"Bucket": "test-bucket", "Key": "some/key.jpg"}


@pytest.mark.asyncio
async def test_storage_error_maps_to_upstream_unavailable(presign, settings):
    presign.side_effect = ClientError(
        {"Error": {"Code": "AccessDenied", "Message": "denied"}}, "GeneratePresignedUrl"
    )
    with pytest.raises(StorageUnavailable) as exc_info:
        await s3.issue_read_grant("test-bucket", "some/key.jpg", settings)
    assert exc_info.value.status_code == 502
    assert exc_info.value.kind == "upstream_unavailable"
