"""
Verification domain — Pydantic V2 response schemas.
"""
from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from app.documents.constants import DocumentStatus, DocumentType


class _Response(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class DocumentStatusItem(_Response):
    id: uuid.UUID
    document_type: DocumentType
    status: DocumentStatus
    expiry_date: date | None = None
    reviewed_at: datetime | None = None


class VerificationStatusResponse(_Response):
    driver_id: uuid.UUID
    verification_complete: bool        # derived live from the documents
    documents_complete: bool           # cached aggregate on the driver profile
    documents_verified_at: datetime | None = None
    profile_status: str | None = None
    required_documents: dict[str, str]  # type → status, or "missing"
    missing_documents: list[DocumentType]
    total_documents: int
    all_documents: list[DocumentStatusItem]
