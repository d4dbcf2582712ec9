"""
Document registry — driver-facing routes.

Routes:
  POST /api/v1/drivers/documents/upload          Presigned PUT grant + pending record
  GET  /api/v1/drivers/documents                 List the caller's documents
  GET  /api/v1/drivers/documents/{document_id}   One document + presigned GET grant

Requires: valid Bearer token; documents are always scoped to the caller.
"""
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings
from app.database import get_db
from app.dependencies import get_current_user, get_settings
from app.documents import controller as ctrl
from app.documents.schemas import (
    DocumentDetailResponse,
    DocumentListResponse,
    UploadRequest,
    UploadResponse,
)
from app.rate_limit import limiter
from shared.models.user import CurrentUser

router = APIRouter(prefix="/drivers/documents", tags=["documents"])


def _upload_limit() -> str:
    return get_settings().upload_rate_limit


@router.post(
    "/upload",
    response_model=UploadResponse,
    summary="Get a presigned S3 URL to upload a compliance document",
    description=(
        "Returns a presigned PUT URL (15-min expiry) and registers the document "
        "in pending status. Upload the file with PUT to grantUrl."
    ),
)
@limiter.limit(_upload_limit)
async def upload(
    request: Request,
    body: UploadRequest,
    current_user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> UploadResponse:
    return await ctrl.request_upload(session, current_user, body, settings)


@router.get(
    "",
    response_model=DocumentListResponse,
    summary="List the caller's documents, newest first",
)
async def list_documents(
    current_user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> DocumentListResponse:
    return await ctrl.list_documents(session, current_user)


@router.get(
    "/{document_id}",
    response_model=DocumentDetailResponse,
    summary="Get one of the caller's documents with a 60-min view URL",
)
async def get_document(
    document_id: uuid.UUID,
    current_user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> DocumentDetailResponse:
    return await ctrl.get_document(session, document_id, settings, driver_id=current_user.id)
