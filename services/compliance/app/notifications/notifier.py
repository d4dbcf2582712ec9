"""
Near-expiry notification delivery.

Contract used by the expiry sweep:

    await notifier.notify(driver_id, document_type, expiry_date, document_id=…) -> ack

The ack is an opaque delivery id.  A notifier MUST raise
NotificationDeliveryError when delivery did not happen, because the sweep
only stamps expiration_notified_at after a successful notify().

Delivery order:
  1. SNS topic (EXPIRY_NOTIFICATION_TOPIC_ARN) — push/email fan-out lives downstream
  2. Log only — when no topic is configured (local dev)
"""
from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timezone
from typing import Protocol

import aioboto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from app.config import Settings
from shared.events.schemas import DocumentExpiring

logger = logging.getLogger(__name__)


class NotificationDeliveryError(Exception):
    """The notification was not delivered; the document must not be stamped."""


class ExpiryNotifier(Protocol):
    async def notify(
        self,
        driver_id: uuid.UUID,
        document_type: str,
        expiry_date: date,
        document_id: uuid.UUID | None = None,
    ) -> str: ...


def _build_event(
    driver_id: uuid.UUID,
    document_type: str,
    expiry_date: date,
    document_id: uuid.UUID | None,
) -> DocumentExpiring:
    today = datetime.now(timezone.utc).date()
    return DocumentExpiring(
        document_id=document_id or uuid.uuid4(),
        driver_id=driver_id,
        document_type=document_type,
        expiry_date=expiry_date,
        days_until_expiry=(expiry_date - today).days,
    )


class LoggingExpiryNotifier:
    async def notify(
        self,
        driver_id: uuid.UUID,
        document_type: str,
        expiry_date: date,
        document_id: uuid.UUID | None = None,
    ) -> str:
        event = _build_event(driver_id, document_type, expiry_date, document_id)
        logger.info(
            "NOTIFICATION: Driver %s - %s expires in %d days (%s)",
            driver_id, document_type, event.days_until_expiry, expiry_date,
        )
        return f"logged:{event.document_id}"


class SnsExpiryNotifier:
    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    def _session(self) -> aioboto3.Session:
        return aioboto3.Session(
            aws_access_key_id=self._settings.aws_access_key_id or None,
            aws_secret_access_key=self._settings.aws_secret_access_key or None,
            region_name=self._settings.aws_region,
        )

    async def notify(
        self,
        driver_id: uuid.UUID,
        document_type: str,
        expiry_date: date,
        document_id: uuid.UUID | None = None,
    ) -> str:
        event = _build_event(driver_id, document_type, expiry_date, document_id)
        config = Config(
            connect_timeout=self._settings.aws_connect_timeout_seconds,
            read_timeout=self._settings.aws_read_timeout_seconds,
        )
        try:
            async with self._session().client("sns", config=config) as sns:
                response = await sns.publish(
                    TopicArn=self._settings.expiry_notification_topic_arn,
                    Message=event.model_dump_json(),
                    MessageAttributes={
                        "event_type": {"DataType": "String", "StringValue": event.event_type},
                    },
                )
        except (BotoCoreError, ClientError) as exc:
            raise NotificationDeliveryError(
                f"SNS publish failed for document {event.document_id}: {exc}"
            ) from exc
        return str(response["MessageId"])


def build_notifier(settings: Settings) -> ExpiryNotifier:
    if settings.expiry_notification_topic_arn:
        return SnsExpiryNotifier(settings)
    logger.warning("No expiry notification topic configured — notifications are logged only")
    return LoggingExpiryNotifier()
