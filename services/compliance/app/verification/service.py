"""
Verification domain — the aggregate writer (zero FastAPI imports).

A driver is "documents complete" iff every required document type has at
least one ``approved`` document.  recompute() is the only code path that
writes documents_complete / documents_verified_at or flips the profile
between pending_documents and active.

recompute() is idempotent: it only writes when the stored flag disagrees with
the derived one, so a second call with unchanged documents flushes nothing.

Transaction contract: these functions only flush() — they do NOT commit().
The caller's session scope commits the document change and the aggregate
change together.
"""
from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession

from app.documents.constants import DocumentStatus, DocumentType
from app.documents.models import DriverDocument
from app.verification.constants import MISSING, PROFILE_REFERENCE_COLUMNS, ProfileStatus
from app.verification.models import DriverProfile

logger = logging.getLogger(__name__)


@dataclass
class VerificationResult:
    driver_id: uuid.UUID
    complete: bool
    missing: list[DocumentType] = field(default_factory=list)
    changed: bool = False
    profile_status: str | None = None
    documents_verified_at: datetime | None = None


@dataclass
class VerificationSummary:
    driver_id: uuid.UUID
    verification_complete: bool
    documents_complete: bool
    documents_verified_at: datetime | None
    profile_status: str | None
    required_documents: dict[DocumentType, str]
    missing_documents: list[DocumentType]
    documents: list[DriverDocument]


# ── Pure derivations ──────────────────────────────────────────────────────────

def evaluate_completeness(
    required: Sequence[DocumentType],
    approved_types: Iterable[DocumentType | str],
) -> tuple[bool, list[DocumentType]]:
    approved = {DocumentType(t) for t in approved_types}
    missing = [t for t in required if t not in approved]
    return not missing, missing


def plan_profile_update(
    profile: DriverProfile,
    complete: bool,
    now: datetime,
) -> dict[str, Any]:
    """Column changes that bring the stored aggregate in line with ``complete``.

    Empty when the stored aggregate already agrees.
    """
    stored = bool(profile.documents_complete)
    if complete and not stored:
        changes: dict[str, Any] = {"documents_complete": True, "documents_verified_at": now}
        if profile.status == ProfileStatus.PENDING_DOCUMENTS.value:
            changes["status"] = ProfileStatus.ACTIVE.value
        return changes
    if not complete and stored:
        changes = {"documents_complete": False}
        if profile.status == ProfileStatus.ACTIVE.value:
            changes["status"] = ProfileStatus.PENDING_DOCUMENTS.value
        return changes
    return {}


def summarize_documents(
    required: Sequence[DocumentType],
    documents: Sequence[DriverDocument],
) -> tuple[dict[DocumentType, str], list[DocumentType]]:
    """Per required type: ``approved`` if any copy is approved, else the newest
    copy's status, else ``missing``.  ``documents`` must be newest first."""
    statuses: dict[DocumentType, str] = {}
    for doc_type in required:
        of_type = [d for d in documents if d.document_type == doc_type]
        if any(d.status == DocumentStatus.APPROVED for d in of_type):
            statuses[doc_type] = DocumentStatus.APPROVED.value
        elif of_type:
            statuses[doc_type] = DocumentStatus(of_type[0].status).value
        else:
            statuses[doc_type] = MISSING
    missing = [t for t in required if statuses[t] != DocumentStatus.APPROVED.value]
    return statuses, missing


# ── Queries ───────────────────────────────────────────────────────────────────

async def _get_profile_for_update(
    session: AsyncSession, driver_id: uuid.UUID
) -> DriverProfile | None:
    # Row lock serialises concurrent recomputes for the same driver.
    result = await session.execute(
        sa.select(DriverProfile).where(DriverProfile.user_id == driver_id).with_for_update()
    )
    return result.scalar_one_or_none()


async def _approved_types(
    session: AsyncSession,
    driver_id: uuid.UUID,
    required: Sequence[DocumentType],
) -> list[DocumentType]:
    result = await session.execute(
        sa.select(DriverDocument.document_type)
        .where(
            DriverDocument.driver_id == driver_id,
            DriverDocument.document_type.in_(list(required)),
            DriverDocument.status == DocumentStatus.APPROVED,
        )
        .distinct()
    )
    return list(result.scalars().all())


# ── Aggregate writes ──────────────────────────────────────────────────────────

async def recompute(
    session: AsyncSession,
    driver_id: uuid.UUID,
    required: Sequence[DocumentType],
    now: datetime | None = None,
) -> VerificationResult:
    """Re-derive the driver's completeness and write the aggregate if it changed."""
    profile = await _get_profile_for_update(session, driver_id)
    approved = await _approved_types(session, driver_id, required)
    complete, missing = evaluate_completeness(required, approved)

    if profile is None:
        logger.warning("No driver profile for %s; aggregate not written", driver_id)
        return VerificationResult(driver_id=driver_id, complete=complete, missing=missing)

    changes = plan_profile_update(profile, complete, now or datetime.now(timezone.utc))
    if changes:
        for column, value in changes.items():
            setattr(profile, column, value)
        profile.updated_at = now or datetime.now(timezone.utc)
        await session.flush()
        logger.info(
            "Driver %s documents_complete=%s status=%s",
            driver_id, profile.documents_complete, profile.status,
        )

    return VerificationResult(
        driver_id=driver_id,
        complete=complete,
        missing=missing,
        changed=bool(changes),
        profile_status=profile.status,
        documents_verified_at=profile.documents_verified_at,
    )


async def attach_document(
    session: AsyncSession,
    document: DriverDocument,
    now: datetime | None = None,
) -> bool:
    """Point the profile's per-type reference column at a newly approved document.

    Returns False for types without a reference column.
    """
    column = PROFILE_REFERENCE_COLUMNS.get(DocumentType(document.document_type))
    if column is None:
        logger.debug("No profile column for document type %s", document.document_type)
        return False
    await session.execute(
        sa.update(DriverProfile)
        .where(DriverProfile.user_id == document.driver_id)
        .values({column: document.id, "updated_at": now or datetime.now(timezone.utc)})
    )
    return True


# ── Status query ──────────────────────────────────────────────────────────────

async def get_verification_summary(
    session: AsyncSession,
    driver_id: uuid.UUID,
    required: Sequence[DocumentType],
) -> VerificationSummary:
    docs_r = await session.execute(
        sa.select(DriverDocument)
        .where(DriverDocument.driver_id == driver_id)
        .order_by(DriverDocument.created_at.desc())
    )
    documents = list(docs_r.scalars().all())

    profile_r = await session.execute(
        sa.select(DriverProfile).where(DriverProfile.user_id == driver_id)
    )
    profile = profile_r.scalar_one_or_none()

    statuses, missing = summarize_documents(required, documents)
    return VerificationSummary(
        driver_id=driver_id,
        verification_complete=not missing,
        documents_complete=bool(profile and profile.documents_complete),
        documents_verified_at=profile.documents_verified_at if profile else None,
        profile_status=profile.status if profile else None,
        required_documents=statuses,
        missing_documents=missing,
        documents=documents,
    )
