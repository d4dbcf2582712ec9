import uuid
from datetime import date, datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest
from botocore.exceptions import EndpointConnectionError

from app.notifications import notifier as notifications
from app.notifications.notifier import (
    LoggingExpiryNotifier,
    NotificationDeliveryError,
    SnsExpiryNotifier,
    build_notifier,
)


class _FakeSns:
    def __init__(self, publish: AsyncMock) -> None:
        self.publish = publish

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return None


class _FakeSession:
    def __init__(self, publish: AsyncMock) -> None:
        self._publish = publish

    def client(self, service_name, config=None):
        assert service_name == "sns"
        return _FakeSns(self._publish)


def test_build_notifier_logs_without_topic(settings):
    assert isinstance(build_notifier(settings), LoggingExpiryNotifier)


def test_build_notifier_uses_sns_with_topic(settings):
    settings.expiry_notification_topic_arn = "arn:aws:sns:us-east-2:123456789012:doc-expiry"
    assert isinstance(build_notifier(settings), SnsExpiryNotifier)


@pytest.mark.asyncio
async def test_logging_notifier_acks_with_document_id():
    document_id = uuid.uuid4()
    ack = await LoggingExpiryNotifier().notify(
        uuid.uuid4(), "license", date(2030, 1, 1), document_id=document_id
    )
    assert ack == f"logged:{document_id}"


@pytest.mark.asyncio
async def test_sns_notifier_publishes_event(monkeypatch, settings):
    settings.expiry_notification_topic_arn = "arn:aws:sns:us-east-2:123456789012:doc-expiry"
    publish = AsyncMock(return_value={"MessageId": "m-1"})
    sns = SnsExpiryNotifier(settings)
    monkeypatch.setattr(sns, "_session", lambda: _FakeSession(publish))
    driver_id, document_id = uuid.uuid4(), uuid.uuid4()
    expires = datetime.now(timezone.utc).date() + timedelta(days=7)

    ack = await sns.notify(driver_id, "insurance", expires, document_id=document_id)

    assert ack == "m-1"
    kwargs = publish.call_args.kwargs
    assert kwargs["TopicArn"] == settings.expiry_notification_topic_arn
    assert f'"document_id":"{document_id}"' in kwargs["Message"]
    assert '"days_until_expiry":7' in kwargs["Message"]
    assert kwargs["MessageAttributes"]["event_type"]["StringValue"] == "driver_document.expiring"


@pytest.mark.asyncio
async def test_sns_failure_raises_delivery_error(monkeypatch, settings):
    publish = AsyncMock(side_effect=EndpointConnectionError(endpoint_url="https://sns"))
    sns = SnsExpiryNotifier(settings)
    monkeypatch.setattr(sns, "_session", lambda: _FakeSession(publish))

    with pytest.raises(NotificationDeliveryError):
        await sns.notify(uuid.uuid4(), "license", date(2030, 1, 1))


def test_event_counts_days_until_expiry():
    today = datetime.now(timezone.utc).date()
    event = notifications._build_event(uuid.uuid4(), "license", today + timedelta(days=30), None)
    assert event.days_until_expiry == 30
    assert event.event_type == "driver_document.expiring"
