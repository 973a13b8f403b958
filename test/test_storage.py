from datetime import date, datetime
from unittest import mock

import pytest

from leavedesk.errors import ConflictError, StorageError
from leavedesk.schemas import InsertLeaveRequest, InsertUser, LeaveRequest
from leavedesk.storage import MemoryStorage, create_storage, normalize_email, stamp_after


def _insert(leave_payload, **overrides):
    return InsertLeaveRequest.model_validate(dict(leave_payload, **overrides))


def _stored(request_id, user_id, submitted_at, **overrides):
    fields = dict(
        id=request_id,
        user_id=user_id,
        employee_id="EMP",
        employee_name="Someone",
        department="Engineering",
        leave_type="annual",
        from_date=date(2024, 12, 1),
        to_date=date(2024, 12, 2),
        reason="trip",
        status="pending",
        submitted_at=submitted_at,
        updated_at=submitted_at,
    )
    fields.update(overrides)
    return LeaveRequest(**fields)


# -----------------------------
# Users
# -----------------------------
def test_create_and_get_user(storage):
    user = storage.create_user(InsertUser(email="a@company.com", name="A", role="employee", department="Ops"))
    assert user.id
    assert user.created_at is not None
    assert storage.get_user(user.id) == user


def test_create_user_with_external_id(storage):
    user = storage.create_user(
        {"email": "hr@company.com", "name": "H", "role": "hr", "department": "Human Resources"},
        user_id="idp-123",
    )
    assert user.id == "idp-123"
    assert storage.get_user("idp-123").role == "hr"


def test_get_missing_user(storage):
    assert storage.get_user("nobody") is None
    assert storage.get_user_by_email("nobody@company.com") is None


def test_get_user_by_email(storage):
    storage.create_user({"email": "a@company.com", "name": "A", "role": "employee", "department": "Ops"})
    b = storage.create_user({"email": "b@company.com", "name": "B", "role": "employee", "department": "Ops"})
    assert storage.get_user_by_email("b@company.com").id == b.id


def test_duplicate_email_not_rejected(storage):
    first = storage.create_user({"email": "dup@company.com", "name": "1", "role": "employee", "department": "Ops"})
    second = storage.create_user({"email": "dup@company.com", "name": "2", "role": "employee", "department": "Ops"})
    assert storage.get_user_by_email("dup@company.com").id in {first.id, second.id}


# -----------------------------
# Leave requests
# -----------------------------
def test_create_leave_request(storage, leave_payload):
    created = storage.create_leave_request(_insert(leave_payload))
    assert created.status == "pending"
    assert created.submitted_at == created.updated_at
    assert created.rejection_reason is None
    assert storage.get_leave_request(created.id) == created


def test_created_ids_are_unique(storage, leave_payload):
    ids = {storage.create_leave_request(_insert(leave_payload)).id for _ in range(20)}
    assert len(ids) == 20


def test_all_requests_newest_first(storage):
    storage.put_leave_request(_stored("old", "u1", datetime(2024, 12, 1)))
    storage.put_leave_request(_stored("new", "u2", datetime(2024, 12, 3)))
    storage.put_leave_request(_stored("mid", "u1", datetime(2024, 12, 2)))
    assert [r.id for r in storage.get_all_leave_requests()] == ["new", "mid", "old"]
    assert [r.id for r in storage.get_user_leave_requests("u1")] == ["mid", "old"]


def test_user_requests_are_the_matching_subset(storage, leave_payload):
    for user_id in ["emp1", "emp2", "emp1", "emp3", "emp1"]:
        storage.create_leave_request(_insert(leave_payload, userId=user_id))
    everything = storage.get_all_leave_requests()
    mine = storage.get_user_leave_requests("emp1")
    assert {r.id for r in mine} == {r.id for r in everything if r.user_id == "emp1"}
    assert len(mine) == 3
    stamps = [r.submitted_at for r in mine]
    assert stamps == sorted(stamps, reverse=True)
    assert storage.get_user_leave_requests("ghost") == []


def test_listing_is_idempotent(storage, leave_payload):
    for _ in range(3):
        storage.create_leave_request(_insert(leave_payload))
    assert storage.get_all_leave_requests() == storage.get_all_leave_requests()


def test_approve_keeps_rejection_reason(storage):
    stamp = datetime(2024, 12, 1)
    storage.put_leave_request(_stored("r1", "u1", stamp, rejection_reason="old note"))
    updated = storage.update_leave_request("r1", {"status": "approved", "approvedBy": "X"})
    assert updated.status == "approved"
    assert updated.approved_by == "X"
    assert updated.rejection_reason == "old note"
    assert updated.updated_at > stamp
    assert updated.submitted_at == stamp
    assert storage.get_leave_request("r1") == updated


def test_update_stamp_strictly_increases(storage, leave_payload):
    created = storage.create_leave_request(_insert(leave_payload))
    first = storage.update_leave_request(created.id, {"status": "approved", "approvedBy": "X"})
    second = storage.update_leave_request(created.id, {"status": "rejected", "rejectionReason": "late"})
    assert created.updated_at < first.updated_at < second.updated_at
    # merge is shallow: approvedBy survives the rejection
    assert second.approved_by == "X"
    assert second.rejection_reason == "late"


def test_update_missing_leaves_storage_alone(storage, leave_payload):
    storage.create_leave_request(_insert(leave_payload))
    before = storage.get_all_leave_requests()
    assert storage.update_leave_request("missing", {"status": "approved"}) is None
    assert storage.get_all_leave_requests() == before


def test_update_expected_status_conflict(storage):
    storage.put_leave_request(_stored("r1", "u1", datetime(2024, 12, 1), status="approved", approved_by="X"))
    with pytest.raises(ConflictError) as exc_info:
        storage.update_leave_request("r1", {"status": "rejected", "rejectionReason": "no"}, expected_status="pending")
    assert exc_info.value.actual == "approved"
    assert storage.get_leave_request("r1").status == "approved"


def test_update_expected_status_from_payload(storage):
    storage.put_leave_request(_stored("r1", "u1", datetime(2024, 12, 1)))
    updated = storage.update_leave_request("r1", {"status": "approved", "expectedStatus": "pending"})
    assert updated.status == "approved"
    with pytest.raises(ConflictError):
        storage.update_leave_request("r1", {"status": "approved", "expectedStatus": "pending"})


def test_delete(storage, leave_payload):
    created = storage.create_leave_request(_insert(leave_payload))
    assert storage.delete_leave_request(created.id) is True
    assert storage.get_leave_request(created.id) is None
    assert storage.delete_leave_request(created.id) is False
    assert storage.delete_leave_request("never-existed") is False


# -----------------------------
# Failure semantics
# -----------------------------
def test_reads_swallow_backend_errors(memory_storage):
    with mock.patch.object(memory_storage, "_list_leave_requests", side_effect=StorageError("down")):
        assert memory_storage.get_all_leave_requests() == []
        assert memory_storage.get_user_leave_requests("emp1") == []
    with mock.patch.object(memory_storage, "_load_user", side_effect=StorageError("down")):
        assert memory_storage.get_user("emp1") is None


def test_strict_reads_raise():
    storage = MemoryStorage(strict_reads=True)
    with mock.patch.object(storage, "_list_leave_requests", side_effect=StorageError("down")):
        with pytest.raises(StorageError):
            storage.get_all_leave_requests()


def test_writes_propagate_backend_errors(memory_storage, leave_payload):
    with mock.patch.object(memory_storage, "_save_leave_request", side_effect=StorageError("down")):
        with pytest.raises(StorageError):
            memory_storage.create_leave_request(_insert(leave_payload))
    assert memory_storage.get_all_leave_requests() == []


def test_stamp_after():
    previous = datetime(2999, 1, 1)
    assert stamp_after(previous) > previous
    assert stamp_after(None).microsecond % 1000 == 0


def test_create_storage_memory():
    config = mock.Mock(STORAGE_BACKEND="memory", STRICT_READS=True)
    storage = create_storage(config)
    assert isinstance(storage, MemoryStorage)
    assert storage.strict_reads is True


def test_create_storage_unknown():
    with pytest.raises(ValueError):
        create_storage(mock.Mock(STORAGE_BACKEND="sqlite"))


def test_get_user_by_email_ignores_domain_case(storage):
    user = storage.create_user({"email": "a@Company.com", "name": "A", "role": "employee", "department": "Ops"})
    assert storage.get_user_by_email("a@Company.com").id == user.id
    assert storage.get_user_by_email("a@COMPANY.COM").id == user.id
    assert storage.get_user_by_email("A@company.com") is None


def test_normalize_email():
    assert normalize_email("Jo@Example.COM") == "Jo@example.com"
    assert normalize_email("no-at-sign") == "no-at-sign"
