"""
Document status lifecycle — the only place transition legality is decided.

Every mutator (admin review, expiry sweep) calls ensure_transition() before
touching ``status``.

  pending | under_review | processing   ← interchangeable "not yet finalized"
          ↓
  approved ⇄ rejected                    ← admin decisions; last commit wins
          ↓
  expired                                ← expiry sweep only; no way out

Moving back from a finalized state to a not-yet-finalized one is not allowed.
"""
from __future__ import annotations

from app.documents.constants import DocumentStatus
from app.exceptions import InvalidReviewStatus, InvalidStatusTransition, RejectionReasonRequired

NOT_FINALIZED: frozenset[DocumentStatus] = frozenset(
    {DocumentStatus.PENDING, DocumentStatus.UNDER_REVIEW, DocumentStatus.PROCESSING}
)

# Statuses an admin may request through the review endpoint.
REVIEWABLE: frozenset[DocumentStatus] = NOT_FINALIZED | {
    DocumentStatus.APPROVED,
    DocumentStatus.REJECTED,
}

# A review into one of these stamps reviewed_by / reviewed_at.
DECISIONS: frozenset[DocumentStatus] = frozenset(
    {DocumentStatus.APPROVED, DocumentStatus.REJECTED}
)

ALLOWED_TRANSITIONS: dict[DocumentStatus, frozenset[DocumentStatus]] = {
    **{s: NOT_FINALIZED | DECISIONS for s in NOT_FINALIZED},
    DocumentStatus.APPROVED: frozenset(
        {DocumentStatus.APPROVED, DocumentStatus.REJECTED, DocumentStatus.EXPIRED}
    ),
    DocumentStatus.REJECTED: frozenset({DocumentStatus.REJECTED, DocumentStatus.APPROVED}),
    DocumentStatus.EXPIRED: frozenset(),
}


def can_transition(current: DocumentStatus, target: DocumentStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def ensure_transition(current: DocumentStatus, target: DocumentStatus) -> None:
    if not can_transition(current, target):
        raise InvalidStatusTransition(current.value, target.value)


def validate_review_request(
    status: str | DocumentStatus | None,
    rejection_reason: str | None,
) -> DocumentStatus:
    """Check a review's target status and reason before anything is read or written."""
    allowed = sorted(s.value for s in REVIEWABLE)
    try:
        target = DocumentStatus(status) if status is not None else None
    except ValueError:
        target = None
    if target is None or target not in REVIEWABLE:
        raise InvalidReviewStatus(allowed)
    if target == DocumentStatus.REJECTED and not (rejection_reason or "").strip():
        raise RejectionReasonRequired()
    return target


def counts_toward_completeness(status: DocumentStatus) -> bool:
    return status == DocumentStatus.APPROVED


def touches_completeness(previous: DocumentStatus, target: DocumentStatus) -> bool:
    """True when a move enters or leaves ``approved`` (or re-approves)."""
    return counts_toward_completeness(previous) or counts_toward_completeness(target)
