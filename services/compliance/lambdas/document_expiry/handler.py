"""
AWS Lambda handler — Document Expiry Sweep

Triggered daily by an EventBridge schedule (cron(0 6 * * ? *)).

Flow:
  1. Demotion: approved documents whose expiry_date is before today become
     expired; each affected driver's verification aggregate is recomputed.
  2. Notification: approved documents expiring within EXPIRY_LOOKAHEAD_DAYS
     that were not notified yet trigger a notification, then get stamped.

Environment variables:
  COMPLIANCE_DATABASE_URL          — asyncpg DSN (RDS proxy)
  EXPIRY_LOOKAHEAD_DAYS            — notification window (default: 30)
  EXPIRY_NOTIFICATION_TOPIC_ARN    — SNS topic; empty → notifications are logged
  REQUIRED_DOCUMENT_TYPES          — comma-separated required types
  LOG_LEVEL                        — DEBUG exposes error messages in the response

Deployment note:
  The Lambda package must include the ``app`` and ``shared`` packages; the
  pool is created and disposed within each invocation.
"""
from __future__ import annotations

import asyncio
import json
import logging

from app.config import Settings
from app.database import close_db, init_db
from app.expiry.schemas import SweepRunResponse
from app.expiry.service import SweepResult, run_expiry_sweep
from app.notifications.notifier import build_notifier

logger = logging.getLogger()
logger.setLevel(logging.INFO)


async def _run(settings: Settings) -> SweepResult:
    session_factory = init_db(settings)
    try:
        return await run_expiry_sweep(session_factory, build_notifier(settings), settings)
    finally:
        await close_db()


def handler(event: dict, context: object) -> dict:
    """Lambda entry point — runs one expiry sweep."""
    settings = Settings()
    logger.setLevel(settings.log_level.upper())
    logger.info("Starting document expiry check")

    try:
        result = asyncio.run(_run(settings))
    except Exception as exc:
        logger.exception("Document expiry check failed")
        body = {"error": "Internal server error"}
        if settings.debug_errors:
            body["message"] = str(exc)
        return {"statusCode": 500, "body": json.dumps(body)}

    response = SweepRunResponse.from_result(result)
    return {
        "statusCode": 500 if result.aborted else 200,
        "body": response.model_dump_json(by_alias=True),
    }
