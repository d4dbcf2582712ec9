"""
Document registry — admin-facing routes.

Routes:
  GET  /api/v1/admin/documents/queue                   FIFO list of not-yet-finalized docs
  GET  /api/v1/admin/documents/{document_id}           Any document + presigned GET grant
  PUT  /api/v1/admin/documents/{document_id}/review    Approve, reject or re-queue

Requires: ADMIN or SUPER_ADMIN role (checked before any database access).
"""
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings
from app.database import get_db
from app.dependencies import get_settings, require_admin
from app.documents import controller as ctrl
from app.documents.schemas import (
    DocumentDetailResponse,
    ReviewQueueItem,
    ReviewRequest,
    ReviewResponse,
)
from shared.models.pagination import PaginatedResponse
from shared.models.user import CurrentUser

router = APIRouter(prefix="/admin/documents", tags=["admin-documents"])


@router.get(
    "/queue",
    response_model=PaginatedResponse[ReviewQueueItem],
    summary="[Admin] List documents awaiting a decision (oldest first)",
)
async def get_queue(
    page: int = Query(1, ge=1, description="Page number"),
    size: int = Query(20, ge=1, le=100, description="Items per page"),
    admin: CurrentUser = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
) -> PaginatedResponse[ReviewQueueItem]:
    return await ctrl.get_queue(session, page, size)


@router.get(
    "/{document_id}",
    response_model=DocumentDetailResponse,
    summary="[Admin] Get any document with a 60-min view URL",
)
async def view_document(
    document_id: uuid.UUID,
    admin: CurrentUser = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> DocumentDetailResponse:
    return await ctrl.get_document(session, document_id, settings)


@router.put(
    "/{document_id}/review",
    response_model=ReviewResponse,
    summary="[Admin] Review a driver document",
    description=(
        "status=approved: stamps the reviewer and recomputes the driver's "
        "verification aggregate in the same transaction. "
        "status=rejected: rejectionReason is required. "
        "status=pending|under_review|processing: re-queues without a decision."
    ),
)
async def review(
    document_id: uuid.UUID,
    body: ReviewRequest,
    admin: CurrentUser = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> ReviewResponse:
    return await ctrl.review_doc(session, document_id, admin.id, body, settings)
