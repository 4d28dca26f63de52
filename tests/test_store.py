from __future__ import annotations

import random
from datetime import datetime

from app.schemas.admin_action import AdminAction
from app.schemas.hospital_notification import HospitalNotification
from app.schemas.parent_registration import RegistrationFilter
from app.services.workflow import WorkflowEngine
from tests.conftest import FakeClock, make_registration, notification_fields, registration_fields


def sample_notification(hospital_id="HSP-123456789", **overrides):
    return HospitalNotification(
        **notification_fields(**overrides),
        hospital_id=hospital_id,
        upload_date=datetime(2025, 1, 8, 12, 0),
    )


def test_notification_round_trip(sql_store):
    notification = sample_notification()
    sql_store.put_hospital_notification(notification)
    assert sql_store.get_hospital_notification("HSP-123456789") == notification
    assert sql_store.hospital_id_exists("HSP-123456789")
    assert not sql_store.hospital_id_exists("HSP-987654321")
    assert sql_store.get_hospital_notification("HSP-987654321") is None


def test_notifications_listed_newest_first(sql_store):
    older = sample_notification("HSP-000000001", child_name="Baby Girl Rao")
    newer = sample_notification("HSP-000000002").model_copy(update={"upload_date": datetime(2025, 1, 9)})
    sql_store.put_hospital_notification(older)
    sql_store.put_hospital_notification(newer)

    assert [n.hospital_id for n in sql_store.list_hospital_notifications()] == ["HSP-000000002", "HSP-000000001"]
    assert [n.hospital_id for n in sql_store.list_hospital_notifications(query="RAO")] == ["HSP-000000001"]
    since = sql_store.list_hospital_notifications(uploaded_since=datetime(2025, 1, 8, 18, 0))
    assert [n.hospital_id for n in since] == ["HSP-000000002"]


def test_registration_put_replaces_whole_record(sql_store):
    registration = make_registration()
    sql_store.put_parent_registration(registration)
    assert sql_store.get_parent_registration(registration.registration_number) == registration

    updated = registration.model_copy(update={"status": "rejected", "rejection_reason": "Blurry"})
    sql_store.put_parent_registration(updated)
    stored = sql_store.get_parent_registration(registration.registration_number)
    assert stored.status == "rejected"
    assert stored.rejection_reason == "Blurry"
    assert stored.hospital_data == registration.hospital_data


def test_registration_filters(sql_store):
    sql_store.put_parent_registration(make_registration())
    sql_store.put_parent_registration(make_registration(
        registration_number="REG-20250110-007",
        final_child_name="Diya Rao",
        hospital_id="HSP-222222222",
        status="approved",
        submission_date=datetime(2025, 1, 10, 8, 0),
    ))

    numbers = lambda f: [r.registration_number for r in sql_store.list_parent_registrations(f)]
    assert numbers(None) == ["REG-20250109-042", "REG-20250110-007"]
    assert numbers(RegistrationFilter(statuses=["pending", "under_review"])) == ["REG-20250109-042"]
    assert numbers(RegistrationFilter(query="diya")) == ["REG-20250110-007"]
    assert numbers(RegistrationFilter(submitted_since=datetime(2025, 1, 10))) == ["REG-20250110-007"]
    assert [r.registration_number for r in sql_store.registrations_for_hospital_id("HSP-222222222")] == [
        "REG-20250110-007"
    ]


def test_admin_actions_keep_append_order(sql_store):
    for kind, reason in (("approved", None), ("rejected", "Duplicate")):
        stored = sql_store.append_admin_action(AdminAction(
            registration_number="REG-20250109-042",
            action=kind,
            reason=reason,
            action_date=datetime(2025, 1, 10, 11, 0),
            admin_id="admin-001",
        ))
        assert stored.sequence is not None

    sql_store.append_admin_action(AdminAction(
        registration_number="REG-20250110-007",
        action="approved",
        action_date=datetime(2025, 1, 10, 9, 0),
        admin_id="admin-002",
    ))

    mine = sql_store.list_admin_actions("REG-20250109-042")
    assert [a.action for a in mine] == ["approved", "rejected"]
    assert mine[0].sequence < mine[1].sequence
    assert len(sql_store.list_admin_actions()) == 3


def test_workflow_over_sql_store(sql_store):
    clock = FakeClock(datetime(2025, 1, 9, 10, 30))
    engine = WorkflowEngine(sql_store, clock=clock, rng=random.Random(11))

    notification = engine.register_notification(
        notification_fields(date_of_birth=datetime(2025, 1, 6).date())
    ).unwrap()
    registration = engine.submit(
        notification.hospital_id, registration_fields(child_dob=datetime(2025, 1, 6).date())
    ).unwrap()
    clock.advance(hours=2)
    engine.approve(registration.registration_number, "admin-001").unwrap()

    current = engine.current(registration.registration_number).unwrap()
    assert current.status == "approved"
    assert current.approval_date == datetime(2025, 1, 9, 12, 30)
    assert engine.notification_view(notification).status == "approved"
    assert engine.statistics(datetime(2025, 1, 9).date()).approved_today == 1
