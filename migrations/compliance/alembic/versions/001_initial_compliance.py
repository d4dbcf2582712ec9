"""Initial driver_documents table

Revision ID: 001_initial_compliance
Revises:
Create Date: 2026-10-17

driver_profiles is owned by the platform schema and only gains the
verification aggregate and per-type reference columns here.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import ENUM, UUID

# revision identifiers, used by Alembic.
revision: str = "001_initial_compliance"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_REFERENCE_COLUMNS = (
    "license_document_id",
    "insurance_document_id",
    "registration_document_id",
    "inspection_document_id",
    "profile_photo_document_id",
)


def upgrade() -> None:
    # Create enum types explicitly; create_table must not emit CREATE TYPE again
    document_type = ENUM(
        "license", "license_back", "insurance", "registration", "inspection",
        "profile_photo", "vehicle_registration", "vehicle_insurance",
        "background_check", "vehicle_photo", "proof_of_address",
        name="document_type",
        create_type=False,
    )
    document_category = ENUM(
        "identity", "vehicle", "compliance",
        name="document_category",
        create_type=False,
    )
    document_status = ENUM(
        "pending", "under_review", "processing", "approved", "rejected", "expired",
        name="document_status",
        create_type=False,
    )

    document_type.create(op.get_bind(), checkfirst=True)
    document_category.create(op.get_bind(), checkfirst=True)
    document_status.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "driver_documents",
        sa.Column(
            "id",
            UUID(as_uuid=True),
            primary_key=True,
            server_default=sa.text("gen_random_uuid()"),
        ),
        sa.Column("driver_id", UUID(as_uuid=True), nullable=False),
        sa.Column("tenant_id", sa.String(100), nullable=True),
        sa.Column("document_type", document_type, nullable=False),
        sa.Column("document_category", document_category, nullable=False),
        sa.Column("s3_key", sa.String(500), nullable=False),
        sa.Column("s3_bucket", sa.String(255), nullable=False),
        sa.Column("file_name", sa.String(255), nullable=False),
        sa.Column("file_size_bytes", sa.Integer, nullable=False, server_default="0"),
        sa.Column("mime_type", sa.String(100), nullable=False),
        sa.Column("document_number", sa.String(100), nullable=True),
        sa.Column("issuing_authority", sa.String(255), nullable=True),
        sa.Column("issue_date", sa.Date, nullable=True),
        sa.Column("expiry_date", sa.Date, nullable=True),
        sa.Column("vehicle_make", sa.String(50), nullable=True),
        sa.Column("vehicle_model", sa.String(50), nullable=True),
        sa.Column("vehicle_year", sa.Integer, nullable=True),
        sa.Column("vehicle_plate", sa.String(20), nullable=True),
        sa.Column(
            "status",
            document_status,
            nullable=False,
            server_default="pending",
        ),
        sa.Column("reviewed_by", UUID(as_uuid=True), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejection_reason", sa.Text, nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("expiration_notified_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.CheckConstraint(
            "(status = 'rejected') = (rejection_reason IS NOT NULL)",
            name="ck_driver_documents_rejection_reason",
        ),
    )

    # Indexes
    op.create_index("idx_driver_documents_driver", "driver_documents", ["driver_id"])
    op.create_index("idx_driver_documents_status", "driver_documents", ["status"])
    op.create_index("idx_driver_documents_type", "driver_documents", ["document_type"])
    op.create_index(
        "idx_driver_documents_expiry",
        "driver_documents",
        ["expiry_date"],
        postgresql_where=sa.text("status = 'approved'"),
    )

    # Verification aggregate on the platform-owned profile table
    op.add_column(
        "driver_profiles",
        sa.Column("documents_complete", sa.Boolean, nullable=False, server_default=sa.false()),
    )
    op.add_column(
        "driver_profiles",
        sa.Column("documents_verified_at", sa.DateTime(timezone=True), nullable=True),
    )
    for column in _REFERENCE_COLUMNS:
        op.add_column(
            "driver_profiles",
            sa.Column(column, UUID(as_uuid=True), nullable=True),
        )


def downgrade() -> None:
    for column in reversed(_REFERENCE_COLUMNS):
        op.drop_column("driver_profiles", column)
    op.drop_column("driver_profiles", "documents_verified_at")
    op.drop_column("driver_profiles", "documents_complete")

    op.drop_index("idx_driver_documents_expiry", table_name="driver_documents")
    op.drop_index("idx_driver_documents_type", table_name="driver_documents")
    op.drop_index("idx_driver_documents_status", table_name="driver_documents")
    op.drop_index("idx_driver_documents_driver", table_name="driver_documents")
    op.drop_table("driver_documents")

    sa.Enum(name="document_status").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="document_category").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="document_type").drop(op.get_bind(), checkfirst=True)
