"""
Document registry — request orchestration.

Glues together: S3 grants (gateway), the registry service, the aggregator.
"""
from __future__ import annotations

import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings
from app.documents import service as svc
from app.documents.schemas import (
    DocumentDetailResponse,
    DocumentListResponse,
    DocumentResponse,
    ReviewQueueItem,
    ReviewRequest,
    ReviewResponse,
    UploadRequest,
    UploadResponse,
    VerificationOutcome,
)
from app.s3 import issue_read_grant, issue_upload_grant
from shared.models.pagination import PaginatedResponse
from shared.models.user import CurrentUser


async def request_upload(
    session: AsyncSession,
    user: CurrentUser,
    body: UploadRequest,
    settings: Settings,
) -> UploadResponse:
    pending = svc.build_pending_document(
        user.id,
        user.tenant_id,
        body.document_type,
        body.file_name,
        body.content_type,
        body.file_size,
    )
    grant = await issue_upload_grant(
        pending.driver_id,
        pending.document_type.value,
        pending.file_name,
        pending.content_type,
        pending.tenant_id,
        settings,
        file_size=body.file_size,
    )
    doc = await svc.create_document(session, pending, grant.storage_key, grant.bucket)
    return UploadResponse(
        grant_url=grant.grant_url,
        document_id=doc.id,
        storage_key=grant.storage_key,
        expires_in_seconds=grant.expires_in_seconds,
    )


async def list_documents(session: AsyncSession, user: CurrentUser) -> DocumentListResponse:
    docs = await svc.list_documents(session, user.id)
    return DocumentListResponse(
        documents=[DocumentResponse.from_document(d) for d in docs],
        total=len(docs),
    )


async def get_document(
    session: AsyncSession,
    doc_id: uuid.UUID,
    settings: Settings,
    driver_id: uuid.UUID | None = None,
) -> DocumentDetailResponse:
    doc = await svc.get_document(session, doc_id, driver_id=driver_id)
    grant = await issue_read_grant(doc.s3_bucket, doc.s3_key, settings)
    return DocumentDetailResponse(
        **DocumentResponse.from_document(doc).model_dump(),
        view_url=grant.grant_url,
        view_url_expires_in=grant.expires_in_seconds,
    )


async def get_queue(
    session: AsyncSession,
    page: int,
    size: int,
) -> PaginatedResponse[ReviewQueueItem]:
    docs, total = await svc.get_review_queue(session, page, size)
    return PaginatedResponse[ReviewQueueItem](
        items=[ReviewQueueItem.model_validate(d) for d in docs],
        total=total,
        page=page,
        page_size=size,
    )


async def review_doc(
    session: AsyncSession,
    doc_id: uuid.UUID,
    reviewer_id: uuid.UUID,
    body: ReviewRequest,
    settings: Settings,
) -> ReviewResponse:
    command = svc.ReviewCommand(**body.model_dump())
    outcome = await svc.review_document(
        session, doc_id, reviewer_id, command, settings.required_types
    )
    verification = None
    if outcome.verification is not None:
        verification = VerificationOutcome(
            verification_complete=outcome.verification.complete,
            profile_updated=outcome.verification.changed,
            profile_status=outcome.verification.profile_status,
            missing_documents=outcome.verification.missing,
        )
    return ReviewResponse(
        document=DocumentResponse.from_document(outcome.document),
        verification_status=verification,
    )
