"""
Expiry sweep — demotion and near-expiry notification passes.

Two independent passes, each run once per scheduled invocation:

  run_demotion_pass()      approved documents whose expiry_date is before today
                           → expired, then one aggregate recompute per driver
  run_notification_pass()  approved documents expiring within the lookahead
                           window and not yet notified → notify, then stamp

Units of work:
  demotion      one transaction per driver; each document inside its own
                savepoint, the recompute after the last document.  A driver
                whose recompute fails is rolled back as a whole and picked up
                again on the next run.
  notification  one transaction per document, opened only after notify()
                succeeded.  A failed notify leaves the document unstamped.

Per-item failures are logged and recorded in the result; a failure to read
the candidate set aborts the pass.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings
from app.database import SessionFactory, session_scope
from app.documents import service as documents
from app.documents.constants import DocumentStatus, DocumentType
from app.documents.models import DriverDocument
from app.notifications.notifier import ExpiryNotifier
from app.verification import service as verification

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExpiryCandidate:
    id: uuid.UUID
    driver_id: uuid.UUID
    document_type: DocumentType
    expiry_date: date


@dataclass
class DemotionResult:
    expired_count: int = 0
    profiles_updated: int = 0
    errors: list[str] = field(default_factory=list)


@dataclass
class NotificationResult:
    expiring_count: int = 0
    notifications_sent: int = 0
    errors: list[str] = field(default_factory=list)


@dataclass
class SweepResult:
    expired_count: int = 0
    expiring_count: int = 0
    notifications_sent: int = 0
    profiles_updated: int = 0
    errors: list[str] = field(default_factory=list)
    aborted: bool = False


def _utc_today() -> date:
    return datetime.now(timezone.utc).date()


def _describe(exc: Exception, settings: Settings) -> str:
    """Short error text for a result entry; the traceback goes to the log."""
    if settings.debug_errors:
        return f"{type(exc).__name__}: {exc}"
    return type(exc).__name__


def _to_candidate(row) -> ExpiryCandidate:
    return ExpiryCandidate(
        id=row.id,
        driver_id=row.driver_id,
        document_type=DocumentType(row.document_type),
        expiry_date=row.expiry_date,
    )


# ── Candidate queries ─────────────────────────────────────────────────────────

_CANDIDATE_COLUMNS = (
    DriverDocument.id,
    DriverDocument.driver_id,
    DriverDocument.document_type,
    DriverDocument.expiry_date,
)


async def find_demotion_candidates(
    session: AsyncSession, today: date
) -> list[ExpiryCandidate]:
    result = await session.execute(
        sa.select(*_CANDIDATE_COLUMNS)
        .where(
            DriverDocument.status == DocumentStatus.APPROVED,
            DriverDocument.expiry_date.is_not(None),
            DriverDocument.expiry_date < today,
        )
        .order_by(DriverDocument.driver_id, DriverDocument.expiry_date)
    )
    return [_to_candidate(row) for row in result.all()]


async def find_notification_candidates(
    session: AsyncSession, today: date, lookahead_days: int
) -> list[ExpiryCandidate]:
    result = await session.execute(
        sa.select(*_CANDIDATE_COLUMNS)
        .where(
            DriverDocument.status == DocumentStatus.APPROVED,
            DriverDocument.expiry_date.is_not(None),
            DriverDocument.expiry_date >= today,
            DriverDocument.expiry_date <= today + timedelta(days=lookahead_days),
            DriverDocument.expiration_notified_at.is_(None),
        )
        .order_by(DriverDocument.expiry_date)
    )
    return [_to_candidate(row) for row in result.all()]


# ── Per-item steps ────────────────────────────────────────────────────────────

async def demote_document(
    session: AsyncSession,
    document_id: uuid.UUID,
    today: date,
    now: datetime,
) -> bool:
    """Expire one document under a row lock.

    Returns False when the row no longer qualifies (re-reviewed, re-dated or
    already expired since the candidate read).
    """
    result = await session.execute(
        sa.select(DriverDocument).where(DriverDocument.id == document_id).with_for_update()
    )
    doc = result.scalar_one_or_none()
    if doc is None or doc.status != DocumentStatus.APPROVED:
        return False
    if doc.expiry_date is None or doc.expiry_date >= today:
        return False
    documents.mark_expired(doc, now)
    await session.flush()
    logger.info("Document %s expired (expiry_date %s)", doc.id, doc.expiry_date)
    return True


async def stamp_notified(session: AsyncSession, document_id: uuid.UUID, now: datetime) -> bool:
    # Conditional on the stamp still being empty so a concurrent run cannot re-stamp.
    result = await session.execute(
        sa.update(DriverDocument)
        .where(
            DriverDocument.id == document_id,
            DriverDocument.expiration_notified_at.is_(None),
        )
        .values(expiration_notified_at=now, updated_at=now)
    )
    return result.rowcount == 1


# ── Passes ────────────────────────────────────────────────────────────────────

async def _demote_driver(
    session_factory: SessionFactory,
    driver_id: uuid.UUID,
    candidates: list[ExpiryCandidate],
    settings: Settings,
    today: date,
    result: DemotionResult,
) -> None:
    now = datetime.now(timezone.utc)
    demoted = 0
    profile_changed = False
    async with session_scope(session_factory) as session:
        for candidate in candidates:
            try:
                async with session.begin_nested():
                    if await demote_document(session, candidate.id, today, now):
                        demoted += 1
            except Exception as exc:
                logger.exception("Failed to expire document %s", candidate.id)
                result.errors.append(f"document {candidate.id}: {_describe(exc, settings)}")
        if demoted:
            outcome = await verification.recompute(
                session, driver_id, settings.required_types, now=now
            )
            profile_changed = outcome.changed
    # Counted only once the driver's transaction has committed.
    result.expired_count += demoted
    if profile_changed:
        result.profiles_updated += 1


async def run_demotion_pass(
    session_factory: SessionFactory,
    settings: Settings,
    today: date | None = None,
) -> DemotionResult:
    today = today or _utc_today()
    async with session_scope(session_factory) as session:
        candidates = await find_demotion_candidates(session, today)
    logger.info("Found %d expired documents", len(candidates))

    by_driver: dict[uuid.UUID, list[ExpiryCandidate]] = {}
    for candidate in candidates:
        by_driver.setdefault(candidate.driver_id, []).append(candidate)

    result = DemotionResult()
    for driver_id, driver_candidates in by_driver.items():
        try:
            await _demote_driver(
                session_factory, driver_id, driver_candidates, settings, today, result
            )
        except Exception as exc:
            logger.exception("Expiry demotion rolled back for driver %s", driver_id)
            result.errors.append(f"driver {driver_id}: {_describe(exc, settings)}")
    return result


async def run_notification_pass(
    session_factory: SessionFactory,
    notifier: ExpiryNotifier,
    settings: Settings,
    today: date | None = None,
) -> NotificationResult:
    today = today or _utc_today()
    async with session_scope(session_factory) as session:
        candidates = await find_notification_candidates(
            session, today, settings.expiry_lookahead_days
        )
    logger.info("Found %d documents expiring within %d days",
                len(candidates), settings.expiry_lookahead_days)

    result = NotificationResult(expiring_count=len(candidates))
    for candidate in candidates:
        try:
            await notifier.notify(
                candidate.driver_id,
                candidate.document_type.value,
                candidate.expiry_date,
                document_id=candidate.id,
            )
        except Exception as exc:
            logger.exception("Failed to notify driver for document %s", candidate.id)
            result.errors.append(f"document {candidate.id}: {_describe(exc, settings)}")
            continue
        result.notifications_sent += 1

        try:
            async with session_scope(session_factory) as session:
                await stamp_notified(session, candidate.id, datetime.now(timezone.utc))
        except Exception as exc:
            # Delivered but unstamped: the next run notifies again.
            logger.exception("Failed to stamp notification for document %s", candidate.id)
            result.errors.append(
                f"document {candidate.id}: notified but not stamped: {_describe(exc, settings)}"
            )
    return result


async def run_expiry_sweep(
    session_factory: SessionFactory,
    notifier: ExpiryNotifier,
    settings: Settings,
    today: date | None = None,
) -> SweepResult:
    """Run both passes; one aborted pass does not prevent the other."""
    today = today or _utc_today()
    sweep = SweepResult()

    try:
        demotion = await run_demotion_pass(session_factory, settings, today)
    except Exception as exc:
        logger.exception("Expiry demotion pass aborted")
        sweep.errors.append(f"demotion pass aborted: {_describe(exc, settings)}")
        sweep.aborted = True
    else:
        sweep.expired_count = demotion.expired_count
        sweep.profiles_updated = demotion.profiles_updated
        sweep.errors.extend(demotion.errors)

    try:
        notification = await run_notification_pass(session_factory, notifier, settings, today)
    except Exception as exc:
        logger.exception("Expiry notification pass aborted")
        sweep.errors.append(f"notification pass aborted: {_describe(exc, settings)}")
        sweep.aborted = True
    else:
        sweep.expiring_count = notification.expiring_count
        sweep.notifications_sent = notification.notifications_sent
        sweep.errors.extend(notification.errors)

    logger.info(
        "Expiry sweep complete: expired=%d expiring=%d notified=%d profiles_updated=%d errors=%d",
        sweep.expired_count, sweep.expiring_count, sweep.notifications_sent,
        sweep.profiles_updated, len(sweep.errors),
    )
    return sweep
