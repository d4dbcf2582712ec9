"""
Compliance service — domain-specific HTTP exceptions.

All exceptions use preset status codes and detail messages so that callers
never need to specify these at the call site.  Each carries a stable ``kind``
which the shared error envelope returns next to the message.

Kinds: validation_error, payload_too_large, forbidden, not_found, conflict,
upstream_unavailable.  Anything else surfaces as ``internal``.
"""
from fastapi import HTTPException, status


class ComplianceError(HTTPException):
    kind: str = "internal"


class ValidationFailed(ComplianceError):
    """Bad or missing input; user-correctable."""

    kind = "validation_error"

    def __init__(self, detail: str) -> None:
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class ForbiddenError(ComplianceError):
    kind = "forbidden"

    def __init__(self, detail: str) -> None:
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class NotFoundError(ComplianceError):
    kind = "not_found"

    def __init__(self, detail: str) -> None:
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class ConflictError(ComplianceError):
    kind = "conflict"

    def __init__(self, detail: str) -> None:
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class UpstreamUnavailable(ComplianceError):
    """Dependent store or object storage failed; retryable by the caller."""

    kind = "upstream_unavailable"

    def __init__(self, detail: str, status_code: int = status.HTTP_502_BAD_GATEWAY) -> None:
        super().__init__(status_code=status_code, detail=detail)


# ── Upload ────────────────────────────────────────────────────────────────────

class MissingUploadFields(ValidationFailed):
    def __init__(self) -> None:
        super().__init__("Missing required fields: document_type, file_name, content_type")


class InvalidDocumentType(ValidationFailed):
    def __init__(self, allowed: list[str]) -> None:
        super().__init__(f"Invalid documentType. Must be one of: {', '.join(allowed)}")


class PayloadTooLarge(ComplianceError):
    kind = "payload_too_large"

    def __init__(self, limit_bytes: int) -> None:
        super().__init__(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File size exceeds {limit_bytes // (1024 * 1024)}MB limit",
        )


# ── Review ────────────────────────────────────────────────────────────────────

class InvalidReviewStatus(ValidationFailed):
    def __init__(self, allowed: list[str]) -> None:
        super().__init__(f"Invalid status. Must be one of: {', '.join(allowed)}")


class RejectionReasonRequired(ValidationFailed):
    def __init__(self) -> None:
        super().__init__("rejectionReason is required when status is rejected")


class InvalidStatusTransition(ConflictError):
    """The document's current status does not allow the requested move
    (e.g. anything out of ``expired``)."""

    def __init__(self, current: str, target: str) -> None:
        super().__init__(f"Document cannot move from '{current}' to '{target}'.")


class DocumentNotFound(NotFoundError):
    def __init__(self) -> None:
        super().__init__("Document not found")


# ── Authorization ─────────────────────────────────────────────────────────────

class AdminAccessRequired(ForbiddenError):
    def __init__(self) -> None:
        super().__init__("Forbidden: Admin access required")


class VerificationAccessDenied(ForbiddenError):
    """Drivers may only read their own verification status."""

    def __init__(self) -> None:
        super().__init__("Forbidden")


# ── Upstream ──────────────────────────────────────────────────────────────────

class StorageUnavailable(UpstreamUnavailable):
    def __init__(self) -> None:
        super().__init__("Could not generate document access URL. Please try again.")


class DatabaseUnavailable(UpstreamUnavailable):
    def __init__(self) -> None:
        super().__init__(
            "The document store is temporarily unavailable. Please try again.",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        )
