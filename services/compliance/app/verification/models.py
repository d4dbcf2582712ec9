"""
Compliance service — ORM mapping of the externally owned driver profile.

The ``driver_profiles`` table is created and migrated by the platform schema;
this service maps only the columns it reads or writes. The verification
aggregate (documents_complete, documents_verified_at, the pending_documents ⇄
active flip) is written exclusively by app.verification.service.
"""
from __future__ import annotations

import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from shared.database.postgres import Base


class DriverProfile(Base):
    __tablename__ = "driver_profiles"
    __table_args__ = {"info": {"external": True}}

    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True)
    status: Mapped[str] = mapped_column(sa.String(30), nullable=False)

    documents_complete: Mapped[bool] = mapped_column(
        sa.Boolean(), nullable=False, default=False, server_default=sa.false()
    )
    documents_verified_at: Mapped[datetime | None] = mapped_column(
        sa.DateTime(timezone=True), nullable=True
    )

    license_document_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True))
    insurance_document_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True))
    registration_document_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True))
    inspection_document_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True))
    profile_photo_document_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True))

    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, server_default=func.now()
    )
