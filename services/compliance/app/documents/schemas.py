"""
Document registry — Pydantic V2 request/response schemas.

Responses serialise camelCase; requests accept camelCase or snake_case
(mobile clients send snake_case, the admin console camelCase).
"""
from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from app.documents.constants import DocumentCategory, DocumentStatus, DocumentType
from app.documents.models import DriverDocument


class _Request(BaseModel):
    model_config = ConfigDict(
        extra="forbid",
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class _Response(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ── Driver-facing ─────────────────────────────────────────────────────────────

class UploadRequest(_Request):
    """Request a presigned PUT grant and register a pending document.

    Fields are optional here so the registry can answer with its own
    validation message instead of a schema error.
    """

    document_type: str | None = None
    file_name: str | None = Field(None, max_length=255)
    content_type: str | None = Field(None, max_length=100)
    file_size: int | None = Field(None, ge=0)


class UploadResponse(_Response):
    grant_url: str            # Presigned S3 PUT URL
    document_id: uuid.UUID
    storage_key: str
    expires_in_seconds: int
    instructions: str = "Use PUT method to upload file to grantUrl"


class DocumentResponse(_Response):
    id: uuid.UUID
    driver_id: uuid.UUID
    tenant_id: str | None = None
    document_type: DocumentType
    document_category: DocumentCategory
    s3_key: str
    s3_bucket: str
    file_name: str
    file_size_bytes: int = 0
    mime_type: str
    document_number: str | None = None
    issuing_authority: str | None = None
    issue_date: date | None = None
    expiry_date: date | None = None
    vehicle_make: str | None = None
    vehicle_model: str | None = None
    vehicle_year: int | None = None
    vehicle_plate: str | None = None
    status: DocumentStatus
    reviewed_by: uuid.UUID | None = None
    reviewed_at: datetime | None = None
    rejection_reason: str | None = None
    notes: str | None = None
    expiration_notified_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_document(cls, doc: DriverDocument) -> "DocumentResponse":
        return cls.model_validate(doc)


class DocumentDetailResponse(DocumentResponse):
    view_url: str             # Presigned S3 GET URL
    view_url_expires_in: int


class DocumentListResponse(_Response):
    documents: list[DocumentResponse]
    total: int


# ── Admin-facing ──────────────────────────────────────────────────────────────

class ReviewRequest(_Request):
    status: str | None = None
    rejection_reason: str | None = Field(None, max_length=2000)
    notes: str | None = Field(None, max_length=2000)
    document_number: str | None = Field(None, max_length=100)
    issuing_authority: str | None = Field(None, max_length=255)
    issue_date: date | None = None
    expiry_date: date | None = None
    vehicle_make: str | None = Field(None, max_length=50)
    vehicle_model: str | None = Field(None, max_length=50)
    vehicle_year: int | None = Field(None, ge=1900, le=2100)
    vehicle_plate: str | None = Field(None, max_length=20)

    @model_validator(mode="after")
    def issue_before_expiry(self) -> "ReviewRequest":
        if self.issue_date and self.expiry_date and self.issue_date > self.expiry_date:
            raise ValueError("issueDate must not be after expiryDate")
        return self


class VerificationOutcome(_Response):
    verification_complete: bool
    profile_updated: bool
    profile_status: str | None = None
    missing_documents: list[DocumentType] = []


class ReviewResponse(_Response):
    message: str = "Document reviewed successfully"
    document: DocumentResponse
    verification_status: VerificationOutcome | None = None


class ReviewQueueItem(_Response):
    id: uuid.UUID
    driver_id: uuid.UUID
    document_type: DocumentType
    document_category: DocumentCategory
    file_name: str
    status: DocumentStatus
    created_at: datetime | None = None
