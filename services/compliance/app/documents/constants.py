import enum


class DocumentType(str, enum.Enum):
    LICENSE = "license"
    LICENSE_BACK = "license_back"
    INSURANCE = "insurance"
    REGISTRATION = "registration"
    INSPECTION = "inspection"
    PROFILE_PHOTO = "profile_photo"
    VEHICLE_REGISTRATION = "vehicle_registration"
    VEHICLE_INSURANCE = "vehicle_insurance"
    BACKGROUND_CHECK = "background_check"
    VEHICLE_PHOTO = "vehicle_photo"
    PROOF_OF_ADDRESS = "proof_of_address"

    @classmethod
    def values(cls) -> list[str]:
        return [member.value for member in cls]


class DocumentCategory(str, enum.Enum):
    IDENTITY = "identity"
    VEHICLE = "vehicle"
    COMPLIANCE = "compliance"


# ── Document review lifecycle ────────────────────────────────────────────────
# Transition rules live in app.documents.lifecycle; this is only the vocabulary.
class DocumentStatus(str, enum.Enum):
    PENDING = "pending"            # Upload grant issued, awaiting review
    UNDER_REVIEW = "under_review"  # Picked up by an admin
    PROCESSING = "processing"      # Admin-set holding state (e.g. third-party check)
    APPROVED = "approved"          # Counts toward verification completeness
    REJECTED = "rejected"          # Carries a rejection_reason
    EXPIRED = "expired"            # Demoted by the expiry sweep; terminal


CATEGORY_BY_TYPE: dict[DocumentType, DocumentCategory] = {
    DocumentType.LICENSE: DocumentCategory.IDENTITY,
    DocumentType.LICENSE_BACK: DocumentCategory.IDENTITY,
    DocumentType.PROFILE_PHOTO: DocumentCategory.IDENTITY,
    DocumentType.BACKGROUND_CHECK: DocumentCategory.IDENTITY,
    DocumentType.PROOF_OF_ADDRESS: DocumentCategory.IDENTITY,
    DocumentType.INSURANCE: DocumentCategory.VEHICLE,
    DocumentType.REGISTRATION: DocumentCategory.VEHICLE,
    DocumentType.VEHICLE_REGISTRATION: DocumentCategory.VEHICLE,
    DocumentType.VEHICLE_INSURANCE: DocumentCategory.VEHICLE,
    DocumentType.VEHICLE_PHOTO: DocumentCategory.VEHICLE,
    DocumentType.INSPECTION: DocumentCategory.COMPLIANCE,
}


def category_for(document_type: DocumentType) -> DocumentCategory:
    return CATEGORY_BY_TYPE[document_type]
