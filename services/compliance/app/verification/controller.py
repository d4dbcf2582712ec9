"""
Verification domain — request orchestration.
"""
from __future__ import annotations

import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings
from app.exceptions import VerificationAccessDenied
from app.verification import service as svc
from app.verification.schemas import DocumentStatusItem, VerificationStatusResponse
from shared.models.user import CurrentUser


async def get_status(
    session: AsyncSession,
    driver_id: uuid.UUID,
    caller: CurrentUser,
    settings: Settings,
) -> VerificationStatusResponse:
    # Drivers may only read their own status; admins may read anyone's.
    if driver_id != caller.id and not caller.is_admin:
        raise VerificationAccessDenied()

    summary = await svc.get_verification_summary(session, driver_id, settings.required_types)
    return VerificationStatusResponse(
        driver_id=summary.driver_id,
        verification_complete=summary.verification_complete,
        documents_complete=summary.documents_complete,
        documents_verified_at=summary.documents_verified_at,
        profile_status=summary.profile_status,
        required_documents={t.value: s for t, s in summary.required_documents.items()},
        missing_documents=summary.missing_documents,
        total_documents=len(summary.documents),
        all_documents=[DocumentStatusItem.model_validate(d) for d in summary.documents],
    )
