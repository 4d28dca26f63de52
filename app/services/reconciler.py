# app/services/reconciler.py
"""
Replay of the admin decision log onto a registration.

Admin decisions and the citizen-facing status view are written
independently, so the status page reconciles before it renders. The latest
action by ``action_date`` wins; equal dates fall back to append order, the
last appended winning. That tie-break is arbitrary but stable. An action is
applied only when it is strictly newer than the registration's
``last_updated``, which makes replay idempotent and keeps a late, older
action from dragging a registration backward.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from app.crud.store import RecordStore
from app.schemas.admin_action import AdminAction
from app.schemas.parent_registration import ParentRegistration, RegistrationStatus
from app.services.errors import RegistrationNotFound, Result

logger = logging.getLogger(__name__)


@dataclass
class Reconciliation:
    registration: ParentRegistration
    changed: bool
    applied: Optional[AdminAction] = None


def latest_action(actions: Sequence[AdminAction]) -> Optional[AdminAction]:
    latest = None
    for action in actions:
        # ">=" lets a later entry with an equal date replace the earlier one
        if latest is None or action.action_date >= latest.action_date:
            latest = action
    return latest


def apply_action(registration: ParentRegistration, action: AdminAction) -> ParentRegistration:
    changes = {
        "status": action.action,
        "last_updated": action.action_date,
    }
    if action.action == RegistrationStatus.APPROVED.value:
        changes.update(approval_date=action.action_date, rejection_date=None, rejection_reason=None)
    else:
        changes.update(rejection_date=action.action_date, rejection_reason=action.reason, approval_date=None)
    return ParentRegistration(**{**registration.dict(), **changes})


def reconcile(registration: ParentRegistration, actions: Sequence[AdminAction]) -> Reconciliation:
    """Pure: compute the authoritative state of ``registration`` from its action log."""
    own = [a for a in actions if a.registration_number == registration.registration_number]
    latest = latest_action(own)
    if latest is None or latest.action_date <= registration.last_updated:
        return Reconciliation(registration=registration, changed=False)
    return Reconciliation(registration=apply_action(registration, latest), changed=True, applied=latest)


class StatusReconciler:
    def __init__(self, store: RecordStore):
        self.store = store

    def refresh(self, registration_number: str) -> Result[Reconciliation]:
        """Load, reconcile and persist one registration if its log moved it."""
        registration = self.store.get_parent_registration(registration_number)
        if registration is None:
            return Result.failure(RegistrationNotFound(registration_number))

        outcome = reconcile(registration, self.store.list_admin_actions(registration_number))
        if outcome.changed:
            self.store.put_parent_registration(outcome.registration)
            logger.info(
                f"Reconciled {registration_number}: {registration.status} -> "
                f"{outcome.registration.status} from action dated {outcome.applied.action_date}"
            )
        return Result.success(outcome)
