"""
Expiry sweep — admin trigger.

Routes:
  POST /api/v1/admin/sweeps/expiry   Run the demotion and notification passes now

The scheduled run goes through lambdas/document_expiry/handler.py; this route
runs the same sweep on demand and, like it, answers 500 when a pass aborted.
Requires: ADMIN or SUPER_ADMIN role.
"""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Response, status

from app.config import Settings
from app.database import get_session_factory
from app.dependencies import get_settings, require_admin
from app.expiry.schemas import SweepRunResponse
from app.expiry.service import run_expiry_sweep
from app.notifications.notifier import build_notifier
from shared.models.user import CurrentUser

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/sweeps", tags=["admin-expiry"])


@router.post(
    "/expiry",
    response_model=SweepRunResponse,
    summary="[Admin] Run the document expiry sweep",
)
async def run_sweep(
    response: Response,
    admin: CurrentUser = Depends(require_admin),
    settings: Settings = Depends(get_settings),
) -> SweepRunResponse:
    logger.info("Expiry sweep triggered by admin %s", admin.id)
    result = await run_expiry_sweep(get_session_factory(), build_notifier(settings), settings)
    if result.aborted:
        response.status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return SweepRunResponse.from_result(result)
