"""
Compliance service — SQLAlchemy ORM models for the document registry.

Tables owned by this module:
  - driver_documents   One row per uploaded compliance document + its review state
"""
from __future__ import annotations

import uuid
from datetime import date, datetime

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from shared.database.postgres import Base

from app.documents.constants import DocumentCategory, DocumentStatus, DocumentType


def _enum_values(enum_cls: type) -> list[str]:
    return [member.value for member in enum_cls]


class DriverDocument(Base):
    """
    A single compliance document uploaded by a driver.

    State machine (see app.documents.lifecycle):
      pending | under_review | processing  →  approved | rejected   (admin review)
      approved  →  rejected                                        (admin revokes)
      rejected  →  approved                                        (admin reconsiders)
      approved  →  expired                                         (expiry sweep)

    Rows are never deleted here; retention is handled by S3 lifecycle rules and
    the users FK cascade owned by the platform schema.
    """

    __tablename__ = "driver_documents"
    __table_args__ = (
        sa.CheckConstraint(
            "(status = 'rejected') = (rejection_reason IS NOT NULL)",
            name="ck_driver_documents_rejection_reason",
        ),
        sa.Index("idx_driver_documents_driver", "driver_id"),
        sa.Index("idx_driver_documents_status", "status"),
        sa.Index("idx_driver_documents_type", "document_type"),
        sa.Index(
            "idx_driver_documents_expiry",
            "expiry_date",
            postgresql_where=sa.text("status = 'approved'"),
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    driver_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    tenant_id: Mapped[str | None] = mapped_column(sa.String(100), nullable=True)

    document_type: Mapped[DocumentType] = mapped_column(
        sa.Enum(DocumentType, name="document_type", values_callable=_enum_values),
        nullable=False,
    )
    document_category: Mapped[DocumentCategory] = mapped_column(
        sa.Enum(DocumentCategory, name="document_category", values_callable=_enum_values),
        nullable=False,
    )

    # ── Storage reference (opaque; only used to build grants) ─────────────────
    s3_key: Mapped[str] = mapped_column(sa.String(500), nullable=False)
    s3_bucket: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    file_name: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    file_size_bytes: Mapped[int] = mapped_column(sa.Integer(), nullable=False, default=0)
    mime_type: Mapped[str] = mapped_column(sa.String(100), nullable=False)

    # ── Verification metadata (settable only through review) ─────────────────
    document_number: Mapped[str | None] = mapped_column(sa.String(100), nullable=True)
    issuing_authority: Mapped[str | None] = mapped_column(sa.String(255), nullable=True)
    issue_date: Mapped[date | None] = mapped_column(sa.Date(), nullable=True)
    expiry_date: Mapped[date | None] = mapped_column(sa.Date(), nullable=True)

    # Vehicle documents only (registration, insurance, photo)
    vehicle_make: Mapped[str | None] = mapped_column(sa.String(50), nullable=True)
    vehicle_model: Mapped[str | None] = mapped_column(sa.String(50), nullable=True)
    vehicle_year: Mapped[int | None] = mapped_column(sa.Integer(), nullable=True)
    vehicle_plate: Mapped[str | None] = mapped_column(sa.String(20), nullable=True)

    # ── Review state ──────────────────────────────────────────────────────────
    status: Mapped[DocumentStatus] = mapped_column(
        sa.Enum(DocumentStatus, name="document_status", values_callable=_enum_values),
        nullable=False,
        default=DocumentStatus.PENDING,
        server_default=sa.text("'pending'"),
    )
    reviewed_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(
        sa.DateTime(timezone=True), nullable=True
    )
    rejection_reason: Mapped[str | None] = mapped_column(sa.Text(), nullable=True)
    notes: Mapped[str | None] = mapped_column(sa.Text(), nullable=True)
    # Set at most once; gates duplicate near-expiry notifications.
    expiration_notified_at: Mapped[datetime | None] = mapped_column(
        sa.DateTime(timezone=True), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, server_default=func.now()
    )
