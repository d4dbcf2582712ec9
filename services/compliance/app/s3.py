"""
AWS S3 utilities — the document store gateway.

PUT grant:  driver uploads directly to S3 (15-min expiry, bypasses backend).
GET grant:  driver or admin views the document (60-min expiry).

The gateway never reads or writes file bytes and never touches the registry;
it only builds storage keys and time-boxed presigned URLs.
"""
from __future__ import annotations

import logging
import re
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

import aioboto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from app.config import Settings
from app.documents.constants import DocumentType
from app.exceptions import InvalidDocumentType, PayloadTooLarge, StorageUnavailable

logger = logging.getLogger(__name__)

_UNSAFE_FILE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


@dataclass(frozen=True)
class UploadGrant:
    grant_url: str
    storage_key: str
    bucket: str
    expires_in_seconds: int


@dataclass(frozen=True)
class ReadGrant:
    grant_url: str
    expires_in_seconds: int


def sanitize_file_name(file_name: str) -> str:
    return _UNSAFE_FILE_CHARS.sub("_", file_name)


def build_storage_key(
    driver_id: uuid.UUID,
    document_type: str,
    file_name: str,
    tenant_id: str | None = None,
    now: datetime | None = None,
) -> str:
    """Key format: ``[tenant_id/]driver_id/document_type/<date>_<epoch-ms>_<file>``.

    One prefix per driver keeps authorization-by-prefix possible; the
    millisecond stamp keeps concurrent uploads of the same type apart.
    """
    now = now or datetime.now(timezone.utc)
    stamp = f"{now.strftime('%Y-%m-%d')}_{int(now.timestamp() * 1000)}"
    key = f"{driver_id}/{document_type}/{stamp}_{sanitize_file_name(file_name)}"
    return f"{tenant_id}/{key}" if tenant_id else key


def _s3_session(settings: Settings) -> aioboto3.Session:
    return aioboto3.Session(
        aws_access_key_id=settings.aws_access_key_id or None,
        aws_secret_access_key=settings.aws_secret_access_key or None,
        region_name=settings.aws_region,
    )


def _client_config(settings: Settings) -> Config:
    return Config(
        connect_timeout=settings.aws_connect_timeout_seconds,
        read_timeout=settings.aws_read_timeout_seconds,
        retries={"max_attempts": 2},
        signature_version="s3v4",
    )


def check_upload_request(
    document_type: str,
    file_size: int | None,
    settings: Settings,
) -> DocumentType:
    if document_type not in DocumentType.values():
        raise InvalidDocumentType(DocumentType.values())
    if file_size and file_size > settings.max_document_size_bytes:
        raise PayloadTooLarge(settings.max_document_size_bytes)
    return DocumentType(document_type)


async def issue_upload_grant(
    driver_id: uuid.UUID,
    document_type: str,
    file_name: str,
    content_type: str,
    tenant_id: str | None,
    settings: Settings,
    file_size: int | None = None,
) -> UploadGrant:
    """Return a write-once PUT grant for a new document object."""
    doc_type = check_upload_request(document_type, file_size, settings)
    key = build_storage_key(driver_id, doc_type.value, file_name, tenant_id)

    metadata = {
        "driver-id": str(driver_id),
        "document-type": doc_type.value,
        "uploaded-at": datetime.now(timezone.utc).isoformat(),
    }
    # S3 metadata values must be strings, so tenant-id is omitted rather than null.
    if tenant_id:
        metadata["tenant-id"] = tenant_id

    try:
        async with _s3_session(settings).client("s3", config=_client_config(settings)) as s3:
            url: str = await s3.generate_presigned_url(
                "put_object",
                Params={
                    "Bucket": settings.documents_bucket,
                    "Key": key,
                    "ContentType": content_type,
                    "Metadata": metadata,
                },
                ExpiresIn=settings.upload_url_expiry_seconds,
            )
    except (BotoCoreError, ClientError) as exc:
        logger.error("S3 upload grant failed for key %s: %s", key, exc)
        raise StorageUnavailable()
    return UploadGrant(
        grant_url=url,
        storage_key=key,
        bucket=settings.documents_bucket,
        expires_in_seconds=settings.upload_url_expiry_seconds,
    )


async def issue_read_grant(bucket: str, s3_key: str, settings: Settings) -> ReadGrant:
    """Return a presigned GET URL for one stored document."""
    try:
        async with _s3_session(settings).client("s3", config=_client_config(settings)) as s3:
            url: str = await s3.generate_presigned_url(
                "get_object",
                Params={"Bucket": bucket, "Key": s3_key},
                ExpiresIn=settings.view_url_expiry_seconds,
            )
    except (BotoCoreError, ClientError) as exc:
        logger.error("S3 read grant failed for key %s: %s", s3_key, exc)
        raise StorageUnavailable()
    return ReadGrant(grant_url=url, expires_in_seconds=settings.view_url_expiry_seconds)
