"""Verification aggregate: completeness, status summary and recompute()."""
import uuid
from datetime import timedelta

import pytest

from app.documents.constants import DocumentStatus, DocumentType
from app.verification import service as svc
from conftest import NOW, FakeResult, FakeSession, make_document, make_profile

REQUIRED = (
    DocumentType.LICENSE,
    DocumentType.INSURANCE,
    DocumentType.REGISTRATION,
    DocumentType.PROFILE_PHOTO,
)


def test_complete_when_every_required_type_is_approved():
    complete, missing = svc.evaluate_completeness(REQUIRED, ["license", "insurance",
                                                             "registration", "profile_photo",
                                                             "inspection"])
    assert complete is True
    assert missing == []


def test_missing_types_keep_required_order():
    complete, missing = svc.evaluate_completeness(REQUIRED, [DocumentType.INSURANCE])
    assert complete is False
    assert missing == [DocumentType.LICENSE, DocumentType.REGISTRATION, DocumentType.PROFILE_PHOTO]


def test_plan_is_empty_when_aggregate_agrees():
    driver_id = uuid.uuid4()
    assert svc.plan_profile_update(make_profile(driver_id), False, NOW) == {}
    assert svc.plan_profile_update(
        make_profile(driver_id, status="active", documents_complete=True), True, NOW
    ) == {}


def test_plan_leaves_other_profile_statuses_alone():
    profile = make_profile(uuid.uuid4(), status="suspended")
    changes = svc.plan_profile_update(profile, True, NOW)
    assert changes == {"documents_complete": True, "documents_verified_at": NOW}


def test_summary_reports_pending_photo_as_missing():
    driver_id = uuid.uuid4()
    docs = [
        make_document(driver_id, DocumentType.PROFILE_PHOTO, DocumentStatus.PENDING),
        make_document(driver_id, DocumentType.LICENSE, DocumentStatus.APPROVED),
        make_document(driver_id, DocumentType.INSURANCE, DocumentStatus.APPROVED),
        make_document(driver_id, DocumentType.REGISTRATION, DocumentStatus.APPROVED),
    ]

    statuses, missing = svc.summarize_documents(REQUIRED, docs)

    assert statuses == {
        DocumentType.LICENSE: "approved",
        DocumentType.INSURANCE: "approved",
        DocumentType.REGISTRATION: "approved",
        DocumentType.PROFILE_PHOTO: "pending",
    }
    assert missing == [DocumentType.PROFILE_PHOTO]


def test_summary_prefers_any_approved_copy_over_newer_ones():
    driver_id = uuid.uuid4()
    newer = make_document(driver_id, DocumentType.LICENSE, DocumentStatus.PENDING)
    older = make_document(
        driver_id, DocumentType.LICENSE, DocumentStatus.APPROVED,
        created_at=NOW - timedelta(days=30),
    )

    statuses, _ = svc.summarize_documents(REQUIRED, [newer, older])

    assert statuses[DocumentType.LICENSE] == "approved"
    assert statuses[DocumentType.INSURANCE] == "missing"


@pytest.mark.asyncio
async def test_recompute_marks_complete_once():
    driver_id = uuid.uuid4()
    profile = make_profile(driver_id)
    session = FakeSession([
        FakeResult(scalar=profile),
        FakeResult(scalars=list(REQUIRED)),
        FakeResult(scalar=profile),
        FakeResult(scalars=list(REQUIRED)),
    ])

    first = await svc.recompute(session, driver_id, REQUIRED, now=NOW)
    later = NOW + timedelta(hours=1)
    second = await svc.recompute(session, driver_id, REQUIRED, now=later)

    assert first.changed is True
    assert second.changed is False
    assert session.flushes == 1
    assert profile.documents_complete is True
    assert profile.documents_verified_at == NOW
    assert profile.status == "active"


@pytest.mark.asyncio
async def test_recompute_without_profile_writes_nothing():
    driver_id = uuid.uuid4()
    session = FakeSession([FakeResult(scalar=None), FakeResult(scalars=list(REQUIRED))])

    result = await svc.recompute(session, driver_id, REQUIRED, now=NOW)

    assert result.complete is True
    assert result.changed is False
    assert result.profile_status is None
    assert session.flushes == 0


@pytest.mark.asyncio
async def test_recompute_demotes_active_driver():
    driver_id = uuid.uuid4()
    profile = make_profile(
        driver_id, status="active", documents_complete=True, documents_verified_at=NOW
    )
    session = FakeSession([
        FakeResult(scalar=profile),
        FakeResult(scalars=[DocumentType.LICENSE, DocumentType.INSURANCE]),
    ])

    result = await svc.recompute(session, driver_id, REQUIRED, now=NOW)

    assert result.changed is True
    assert result.missing == [DocumentType.REGISTRATION, DocumentType.PROFILE_PHOTO]
    assert profile.documents_complete is False
    assert profile.status == "pending_documents"
    # The last verification time is history, not current state.
    assert profile.documents_verified_at == NOW


@pytest.mark.asyncio
async def test_attach_document_skips_types_without_column():
    session = FakeSession()
    doc = make_document(document_type=DocumentType.VEHICLE_PHOTO, status=DocumentStatus.APPROVED)

    assert await svc.attach_document(session, doc, now=NOW) is False
    assert session.executed == []


@pytest.mark.asyncio
async def test_attach_document_updates_reference_column():
    session = FakeSession()
    doc = make_document(document_type=DocumentType.LICENSE, status=DocumentStatus.APPROVED)

    assert await svc.attach_document(session, doc, now=NOW) is True
    assert len(session.executed) == 1
    params = session.executed[0].compile().params
    assert params["license_document_id"] == doc.id


@pytest.mark.asyncio
async def test_verification_summary_reads_profile_aggregate():
    driver_id = uuid.uuid4()
    docs = [make_document(driver_id, t, DocumentStatus.APPROVED) for t in REQUIRED]
    profile = make_profile(
        driver_id, status="active", documents_complete=True, documents_verified_at=NOW
    )
    session = FakeSession([FakeResult(scalars=docs), FakeResult(scalar=profile)])

    summary = await svc.get_verification_summary(session, driver_id, REQUIRED)

    assert summary.verification_complete is True
    assert summary.documents_complete is True
    assert summary.documents_verified_at == NOW
    assert summary.profile_status == "active"
    assert summary.missing_documents == []
    assert len(summary.documents) == 4
