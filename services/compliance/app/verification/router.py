"""
Verification domain — routes.

Routes:
  GET /api/v1/drivers/{driver_id}/verification   Completeness of the driver's documents

Requires: valid Bearer token; the driver themself or an admin.
"""
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings
from app.database import get_db
from app.dependencies import get_current_user, get_settings
from app.verification import controller as ctrl
from app.verification.schemas import VerificationStatusResponse
from shared.models.user import CurrentUser

router = APIRouter(prefix="/drivers", tags=["verification"])


@router.get(
    "/{driver_id}/verification",
    response_model=VerificationStatusResponse,
    summary="Get a driver's document verification status",
)
async def get_verification_status(
    driver_id: uuid.UUID,
    current_user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> VerificationStatusResponse:
    return await ctrl.get_status(session, driver_id, current_user, settings)
