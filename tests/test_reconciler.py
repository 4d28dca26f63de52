from __future__ import annotations

from datetime import datetime

from app.crud.store import InMemoryRecordStore
from app.schemas.admin_action import AdminAction
from app.services.errors import RegistrationNotFound
from app.services.reconciler import StatusReconciler, latest_action, reconcile
from tests.conftest import make_registration

REG = "REG-20250109-042"


def action(kind, when, reason=None, registration_number=REG, admin_id="admin-001"):
    return AdminAction(
        registration_number=registration_number,
        action=kind,
        reason=reason,
        action_date=when,
        admin_id=admin_id,
    )


def test_latest_by_date_wins_regardless_of_order():
    actions = [
        action("approved", datetime(2025, 1, 10, 11, 0)),
        action("rejected", datetime(2025, 1, 10, 10, 45), reason="Blurry"),
    ]
    outcome = reconcile(make_registration(), actions)
    assert outcome.changed
    assert outcome.registration.status == "approved"
    assert outcome.registration.approval_date == datetime(2025, 1, 10, 11, 0)
    assert outcome.registration.last_updated == datetime(2025, 1, 10, 11, 0)
    assert outcome.applied is actions[0]


def test_equal_dates_fall_back_to_append_order():
    when = datetime(2025, 1, 10, 11, 0)
    first = action("approved", when)
    second = action("rejected", when, reason="Duplicate")
    assert latest_action([first, second]) is second

    outcome = reconcile(make_registration(), [first, second])
    assert outcome.registration.status == "rejected"
    assert outcome.registration.rejection_reason == "Duplicate"
    assert outcome.registration.approval_date is None


def test_older_actions_do_not_move_a_registration():
    registration = make_registration(status="approved", last_updated=datetime(2025, 1, 12))
    outcome = reconcile(registration, [action("rejected", datetime(2025, 1, 11), reason="Late")])
    assert not outcome.changed
    assert outcome.registration is registration


def test_equal_to_last_updated_is_not_applied():
    registration = make_registration(last_updated=datetime(2025, 1, 10, 11, 0))
    assert not reconcile(registration, [action("approved", datetime(2025, 1, 10, 11, 0))]).changed


def test_reconcile_is_idempotent():
    actions = [action("approved", datetime(2025, 1, 10, 11, 0))]
    once = reconcile(make_registration(), actions)
    twice = reconcile(once.registration, actions)
    assert not twice.changed
    assert twice.registration == once.registration


def test_other_registrations_are_ignored():
    actions = [action("approved", datetime(2025, 1, 10), registration_number="REG-20250109-043")]
    assert not reconcile(make_registration(), actions).changed


def test_no_actions_means_no_change():
    assert not reconcile(make_registration(), []).changed


def test_refresh_persists_reconciled_state():
    store = InMemoryRecordStore()
    store.put_parent_registration(make_registration())
    store.append_admin_action(action("rejected", datetime(2025, 1, 10, 9, 0), reason="Wrong pincode"))

    refreshed = StatusReconciler(store).refresh(REG).unwrap()
    assert refreshed.changed
    stored = store.get_parent_registration(REG)
    assert stored.status == "rejected"
    assert stored.rejection_date == datetime(2025, 1, 10, 9, 0)

    assert not StatusReconciler(store).refresh(REG).unwrap().changed


def test_refresh_unknown_registration():
    outcome = StatusReconciler(InMemoryRecordStore()).refresh(REG)
    assert isinstance(outcome.error, RegistrationNotFound)
