import enum

from app.documents.constants import DocumentType


# ── Driver profile status (column owned by the platform schema) ──────────────
# Only these two values are ever written from here; any other status
# (suspended, deactivated, ...) is left untouched by the aggregate.
class ProfileStatus(str, enum.Enum):
    PENDING_DOCUMENTS = "pending_documents"
    ACTIVE = "active"


# driver_profiles column holding the approved document of each type.
PROFILE_REFERENCE_COLUMNS: dict[DocumentType, str] = {
    DocumentType.LICENSE: "license_document_id",
    DocumentType.INSURANCE: "insurance_document_id",
    DocumentType.REGISTRATION: "registration_document_id",
    DocumentType.INSPECTION: "inspection_document_id",
    DocumentType.PROFILE_PHOTO: "profile_photo_document_id",
}

MISSING = "missing"
