"""
Document registry — pure business logic (zero FastAPI imports).

Mutators and the lifecycle rule each one consults:
  create_document()   → new row in PENDING
  review_document()   → lifecycle.validate_review_request + ensure_transition
  mark_expired()      → lifecycle.ensure_transition(…, EXPIRED)   (expiry sweep)

review_document() runs as an explicit sequence of idempotent steps inside the
caller's transaction:
  1. validate the request (nothing read or written yet)
  2. lock the row (SELECT … FOR UPDATE) — concurrent reviews of one document
     serialise here; the last to commit wins
  3. apply status + review fields
  4. if the document entered approved: attach it to the driver profile
  5. if it entered or left approved: recompute the verification aggregate

Transaction contract: these functions only flush() — they do NOT commit().
"""
from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, datetime, timezone

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession

from app.documents import lifecycle
from app.documents.constants import DocumentStatus, DocumentType, category_for
from app.documents.models import DriverDocument
from app.exceptions import DocumentNotFound, InvalidDocumentType, MissingUploadFields
from app.verification import service as verification
from app.verification.service import VerificationResult

logger = logging.getLogger(__name__)

# Optional review fields merged with keep-existing-if-not-supplied semantics.
MERGEABLE_FIELDS: tuple[str, ...] = (
    "notes",
    "document_number",
    "issuing_authority",
    "issue_date",
    "expiry_date",
    "vehicle_make",
    "vehicle_model",
    "vehicle_year",
    "vehicle_plate",
)


@dataclass(frozen=True)
class PendingDocument:
    driver_id: uuid.UUID
    tenant_id: str | None
    document_type: DocumentType
    file_name: str
    content_type: str
    file_size: int = 0


@dataclass(frozen=True)
class ReviewCommand:
    status: str | None
    rejection_reason: str | None = None
    notes: str | None = None
    document_number: str | None = None
    issuing_authority: str | None = None
    issue_date: date | None = None
    expiry_date: date | None = None
    vehicle_make: str | None = None
    vehicle_model: str | None = None
    vehicle_year: int | None = None
    vehicle_plate: str | None = None


@dataclass
class ReviewOutcome:
    document: DriverDocument
    previous_status: DocumentStatus
    verification: VerificationResult | None = None


def build_pending_document(
    driver_id: uuid.UUID,
    tenant_id: str | None,
    document_type: str | None,
    file_name: str | None,
    content_type: str | None,
    file_size: int | None = None,
) -> PendingDocument:
    """Validate upload metadata; raises before any grant or row is created."""
    if not document_type or not file_name or not content_type:
        raise MissingUploadFields()
    if document_type not in DocumentType.values():
        raise InvalidDocumentType(DocumentType.values())
    return PendingDocument(
        driver_id=driver_id,
        tenant_id=tenant_id,
        document_type=DocumentType(document_type),
        file_name=file_name,
        content_type=content_type,
        file_size=file_size or 0,
    )


async def create_document(
    session: AsyncSession,
    pending: PendingDocument,
    storage_key: str,
    bucket: str,
) -> DriverDocument:
    now = datetime.now(timezone.utc)
    doc = DriverDocument(
        id=uuid.uuid4(),
        driver_id=pending.driver_id,
        tenant_id=pending.tenant_id,
        document_type=pending.document_type,
        document_category=category_for(pending.document_type),
        s3_key=storage_key,
        s3_bucket=bucket,
        file_name=pending.file_name,
        file_size_bytes=pending.file_size,
        mime_type=pending.content_type,
        status=DocumentStatus.PENDING,
        created_at=now,
        updated_at=now,
    )
    session.add(doc)
    # flush: INSERT runs inside the request transaction; get_db commits.
    await session.flush()
    logger.info("Document record created: %s for driver %s", doc.id, pending.driver_id)
    return doc


async def list_documents(session: AsyncSession, driver_id: uuid.UUID) -> list[DriverDocument]:
    result = await session.execute(
        sa.select(DriverDocument)
        .where(DriverDocument.driver_id == driver_id)
        .order_by(DriverDocument.created_at.desc())
    )
    return list(result.scalars().all())


async def get_document(
    session: AsyncSession,
    document_id: uuid.UUID,
    driver_id: uuid.UUID | None = None,
) -> DriverDocument:
    """Load one document; scoped to ``driver_id`` when given (404, never 403,
    so other drivers' document ids are not disclosed)."""
    stmt = sa.select(DriverDocument).where(DriverDocument.id == document_id)
    if driver_id is not None:
        stmt = stmt.where(DriverDocument.driver_id == driver_id)
    doc = (await session.execute(stmt)).scalar_one_or_none()
    if doc is None:
        raise DocumentNotFound()
    return doc


async def get_review_queue(
    session: AsyncSession,
    page: int,
    size: int,
) -> tuple[list[DriverDocument], int]:
    """Return (docs, total) for not-yet-finalized documents, oldest first."""
    pending = DriverDocument.status.in_(list(lifecycle.NOT_FINALIZED))
    total = (
        await session.execute(
            sa.select(sa.func.count()).select_from(DriverDocument).where(pending)
        )
    ).scalar_one()
    docs = await session.execute(
        sa.select(DriverDocument)
        .where(pending)
        .order_by(DriverDocument.created_at.asc())
        .offset((page - 1) * size)
        .limit(size)
    )
    return list(docs.scalars().all()), total


async def _get_document_for_update(
    session: AsyncSession, document_id: uuid.UUID
) -> DriverDocument:
    result = await session.execute(
        sa.select(DriverDocument).where(DriverDocument.id == document_id).with_for_update()
    )
    doc = result.scalar_one_or_none()
    if doc is None:
        raise DocumentNotFound()
    return doc


def apply_review(
    doc: DriverDocument,
    target: DocumentStatus,
    reviewer_id: uuid.UUID,
    command: ReviewCommand,
    now: datetime,
) -> None:
    """Write the review onto an already-locked, transition-checked row."""
    doc.status = target
    if target in lifecycle.DECISIONS:
        doc.reviewed_by = reviewer_id
        doc.reviewed_at = now
    # rejection_reason is present iff the document is rejected.
    doc.rejection_reason = command.rejection_reason if target == DocumentStatus.REJECTED else None
    for name in MERGEABLE_FIELDS:
        value = getattr(command, name)
        if value is not None:
            setattr(doc, name, value)
    doc.updated_at = now


async def review_document(
    session: AsyncSession,
    document_id: uuid.UUID,
    reviewer_id: uuid.UUID,
    command: ReviewCommand,
    required: Sequence[DocumentType],
    now: datetime | None = None,
) -> ReviewOutcome:
    target = lifecycle.validate_review_request(command.status, command.rejection_reason)
    now = now or datetime.now(timezone.utc)

    doc = await _get_document_for_update(session, document_id)
    previous = DocumentStatus(doc.status)
    lifecycle.ensure_transition(previous, target)

    apply_review(doc, target, reviewer_id, command, now)
    await session.flush()
    logger.info(
        "Document %s reviewed by %s: %s -> %s",
        doc.id, reviewer_id, previous.value, target.value,
    )

    outcome = ReviewOutcome(document=doc, previous_status=previous)
    if target == DocumentStatus.APPROVED:
        await verification.attach_document(session, doc, now=now)
    if lifecycle.touches_completeness(previous, target):
        outcome.verification = await verification.recompute(
            session, doc.driver_id, required, now=now
        )
    return outcome


def mark_expired(doc: DriverDocument, now: datetime) -> None:
    lifecycle.ensure_transition(DocumentStatus(doc.status), DocumentStatus.EXPIRED)
    doc.status = DocumentStatus.EXPIRED
    doc.updated_at = now
