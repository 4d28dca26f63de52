# app/services/workflow.py
from __future__ import annotations

import logging
import random
from datetime import date, datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Type, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from app.crud.store import RecordStore
from app.schemas.admin_action import AdminAction, RegistryExport
from app.schemas.hospital_notification import (
    HospitalNotification,
    HospitalNotificationCreate,
    HospitalNotificationView,
    NotificationStatistics,
)
from app.schemas.parent_registration import (
    OPEN_STATUSES,
    TERMINAL_STATUSES,
    ParentRegistration,
    RegistrationCreate,
    RegistrationFilter,
    RegistrationStatistics,
    RegistrationStatus,
    TimelineStep,
)
from app.services import errors
from app.services.errors import BulkItemResult, Result
from app.services.identifiers import (
    DEFAULT_MAX_ATTEMPTS,
    generate_hospital_id,
    generate_registration_number,
    is_valid_hospital_id,
)
from app.services.reconciler import StatusReconciler
from app.utils.timezone import as_naive_utc, utcnow

logger = logging.getLogger(__name__)

Fields = Union[Mapping[str, Any], BaseModel]


# ------------------------------------------------------------
# Pure state machine
# ------------------------------------------------------------
def evolve(registration: ParentRegistration, **changes) -> ParentRegistration:
    """Next-state copy of a registration; the original is left untouched."""
    return ParentRegistration(**{**registration.dict(), **changes})


def transition(
    registration: ParentRegistration,
    target: RegistrationStatus,
    at: datetime,
    reason: Optional[str] = None,
) -> Result[ParentRegistration]:
    """
    Move a registration along ``pending -> under_review -> approved | rejected``.

    Approved and rejected are final. Moving to ``under_review`` twice is a
    no-op. Rejection needs a non-empty reason.
    """
    current = RegistrationStatus(registration.status)
    number = registration.registration_number

    if target == RegistrationStatus.UNDER_REVIEW:
        if current == RegistrationStatus.UNDER_REVIEW:
            return Result.success(registration)
        if current != RegistrationStatus.PENDING:
            return Result.failure(errors.InvalidTransition(number, current.value, target.value))
        return Result.success(evolve(registration, status=target.value, review_date=at, last_updated=at))

    if target == RegistrationStatus.APPROVED:
        if current not in OPEN_STATUSES:
            return Result.failure(errors.InvalidTransition(number, current.value, target.value))
        return Result.success(evolve(
            registration,
            status=target.value,
            approval_date=at,
            last_updated=at,
        ))

    if target == RegistrationStatus.REJECTED:
        if current not in OPEN_STATUSES:
            return Result.failure(errors.InvalidTransition(number, current.value, target.value))
        if not reason or not reason.strip():
            return Result.failure(errors.ValidationError({"reason": "required"}))
        return Result.success(evolve(
            registration,
            status=target.value,
            rejection_date=at,
            rejection_reason=reason.strip(),
            last_updated=at,
        ))

    return Result.failure(errors.InvalidTransition(number, current.value, target.value))


def derived_notification_status(registration: Optional[ParentRegistration]) -> str:
    """Display status of a hospital notification, from the registration that uses it."""
    if registration is None:
        return "uploaded"
    if registration.status == RegistrationStatus.APPROVED:
        return "approved"
    if registration.status == RegistrationStatus.REJECTED:
        return "pending"
    return "registered"


def status_timeline(registration: ParentRegistration) -> List[TimelineStep]:
    """
    Four-step progress tracker: submitted, document verification, admin
    review and certificate generation. Verification ends when review starts
    or, for a direct decision, when the decision is made.
    """
    status = RegistrationStatus(registration.status)
    decided = status in TERMINAL_STATUSES
    decision_date = registration.approval_date or registration.rejection_date

    if status == RegistrationStatus.PENDING:
        verification, review = "current", "pending"
    elif status == RegistrationStatus.UNDER_REVIEW:
        verification, review = "completed", "current"
    else:
        verification, review = "completed", "completed"

    return [
        TimelineStep(
            title="Application Submitted",
            description="Your birth registration application has been submitted",
            state="completed",
            date=registration.submission_date,
        ),
        TimelineStep(
            title="Document Verification",
            description="Documents are being verified by our team",
            state=verification,
            date=(registration.review_date or decision_date) if verification == "completed" else None,
        ),
        TimelineStep(
            title="Admin Review",
            description="Application is under review by the registrar",
            state=review,
            date=decision_date if decided else registration.review_date,
        ),
        TimelineStep(
            title="Certificate Generation",
            description="Birth certificate is being generated",
            state="completed" if status == RegistrationStatus.APPROVED else "pending",
            date=registration.approval_date if status == RegistrationStatus.APPROVED else None,
        ),
    ]


def _as_dict(fields: Fields) -> Dict[str, Any]:
    if isinstance(fields, BaseModel):
        return fields.dict()
    return dict(fields)


def _validate(schema: Type[BaseModel], fields: Dict[str, Any]) -> Result[BaseModel]:
    try:
        return Result.success(schema(**fields))
    except PydanticValidationError as ve:
        return Result.failure(errors.ValidationError(errors.field_errors(ve.errors())))


# ------------------------------------------------------------
# Engine
# ------------------------------------------------------------
class WorkflowEngine:
    """Birth registration workflow over an injected record store."""

    def __init__(
        self,
        store: RecordStore,
        *,
        clock: Callable[[], datetime] = utcnow,
        rng: Optional[random.Random] = None,
        max_id_attempts: int = DEFAULT_MAX_ATTEMPTS,
        allow_hospital_id_reuse: bool = False,
    ):
        self.store = store
        self.clock = clock
        self.rng = rng
        self.max_id_attempts = max_id_attempts
        self.allow_hospital_id_reuse = allow_hospital_id_reuse
        self.reconciler = StatusReconciler(store)

    def now(self) -> datetime:
        return as_naive_utc(self.clock())

    # -------------------- hospital intake --------------------
    def register_notification(self, fields: Fields) -> Result[HospitalNotification]:
        data = _as_dict(fields)
        for key in ("hospital_id", "upload_date", "status"):
            data.pop(key, None)
        checked = _validate(HospitalNotificationCreate, data)
        if not checked.ok:
            return checked

        try:
            hospital_id = generate_hospital_id(
                exists=self.store.hospital_id_exists,
                rng=self.rng,
                max_attempts=self.max_id_attempts,
            )
        except errors.IdentifierExhausted as e:
            logger.error(f"Hospital ID generation failed: {e.detail}")
            return Result.failure(e)

        notification = HospitalNotification(
            **checked.value.dict(),
            hospital_id=hospital_id,
            upload_date=self.now(),
        )
        self.store.put_hospital_notification(notification)
        logger.info(f"Hospital notification {hospital_id} uploaded by {notification.hospital_name}")
        return Result.success(notification)

    def lookup_notification(self, hospital_id: str) -> Result[HospitalNotification]:
        hospital_id = str(hospital_id or "").strip()
        if not hospital_id:
            return Result.failure(errors.ValidationError({"hospital_id": "required"}))
        if not is_valid_hospital_id(hospital_id):
            return Result.failure(errors.ValidationError({"hospital_id": "invalid_format"}))
        notification = self.store.get_hospital_notification(hospital_id)
        if notification is None:
            return Result.failure(errors.HospitalIdNotFound(hospital_id))
        return Result.success(notification)

    def notification_view(self, notification: HospitalNotification) -> HospitalNotificationView:
        registrations = self.store.registrations_for_hospital_id(notification.hospital_id)
        latest = max(registrations, key=lambda r: r.submission_date) if registrations else None
        return HospitalNotificationView(
            **notification.dict(),
            status=derived_notification_status(latest),
            registration_number=latest.registration_number if latest else None,
        )

    def list_notifications(
        self, *, uploaded_since: Optional[datetime] = None, query: Optional[str] = None
    ) -> List[HospitalNotificationView]:
        notifications = self.store.list_hospital_notifications(uploaded_since=uploaded_since, query=query)
        return [self.notification_view(n) for n in notifications]

    def notification_statistics(self, today: Optional[date] = None) -> NotificationStatistics:
        """Hospital dashboard counts."""
        today = today or self.now().date()
        views = self.list_notifications()
        return NotificationStatistics(
            total=len(views),
            uploaded_today=sum(1 for v in views if v.upload_date.date() == today),
            awaiting_registration=sum(1 for v in views if v.status in ("uploaded", "pending")),
        )

    # -------------------- parent intake --------------------
    def submit(self, hospital_id: str, fields: Fields) -> Result[ParentRegistration]:
        return self._create_registration(hospital_id, _as_dict(fields))

    def resubmit(self, previous_registration_number: str, fields: Fields) -> Result[ParentRegistration]:
        """New application for a rejected one; the rejected record stays as it is."""
        previous = self.store.get_parent_registration(previous_registration_number)
        if previous is None:
            return Result.failure(errors.RegistrationNotFound(previous_registration_number))
        if previous.status != RegistrationStatus.REJECTED:
            return Result.failure(errors.InvalidTransition(
                previous_registration_number, previous.status, "resubmitted"
            ))
        return self._create_registration(
            previous.hospital_id,
            _as_dict(fields),
            resubmission_of=previous.registration_number,
        )

    def _create_registration(
        self,
        hospital_id: str,
        fields: Dict[str, Any],
        resubmission_of: Optional[str] = None,
    ) -> Result[ParentRegistration]:
        found = self.lookup_notification(hospital_id)
        if not found.ok:
            logger.warning(f"Registration refused for {hospital_id}: {found.error.detail}")
            return found
        notification = found.value

        fields = {k: v for k, v in fields.items() if k in RegistrationCreate.model_fields}
        checked = _validate(RegistrationCreate, fields)
        if not checked.ok:
            logger.warning(f"Registration for {hospital_id} failed validation: {checked.error.fields}")
            return checked

        if not self.allow_hospital_id_reuse:
            live = [
                r for r in self.store.registrations_for_hospital_id(notification.hospital_id)
                if r.status != RegistrationStatus.REJECTED
            ]
            if live:
                return Result.failure(errors.HospitalIdAlreadyRegistered(
                    notification.hospital_id, live[0].registration_number
                ))

        now = self.now()
        try:
            registration_number = generate_registration_number(
                now,
                exists=self.store.registration_number_exists,
                rng=self.rng,
                max_attempts=self.max_id_attempts,
            )
        except errors.IdentifierExhausted as e:
            logger.error(f"Registration number generation failed for {now.date()}: {e.detail}")
            return Result.failure(e)

        registration = ParentRegistration(
            **checked.value.dict(),
            registration_number=registration_number,
            hospital_id=notification.hospital_id,
            hospital_data=notification.model_dump(mode="json"),
            status=RegistrationStatus.PENDING,
            submission_date=now,
            last_updated=now,
            resubmission_of=resubmission_of,
        )
        self.store.put_parent_registration(registration)
        logger.info(
            f"Registration {registration_number} submitted for hospital ID {notification.hospital_id}"
            + (f" (resubmission of {resubmission_of})" if resubmission_of else "")
        )
        return Result.success(registration)

    # -------------------- status --------------------
    def current(self, registration_number: str) -> Result[ParentRegistration]:
        """Authoritative record after replaying the admin action log."""
        refreshed = self.reconciler.refresh(registration_number)
        if not refreshed.ok:
            return Result.failure(refreshed.error)
        return Result.success(refreshed.value.registration)

    def timeline(self, registration_number: str) -> Result[List[TimelineStep]]:
        found = self.current(registration_number)
        if not found.ok:
            return Result.failure(found.error)
        return Result.success(status_timeline(found.value))

    # -------------------- admin decisions --------------------
    def mark_under_review(self, registration_number: str) -> Result[ParentRegistration]:
        found = self.current(registration_number)
        if not found.ok:
            return found
        registration = found.value

        moved = transition(registration, RegistrationStatus.UNDER_REVIEW, self.now())
        if not moved.ok:
            logger.warning(f"Review refused: {moved.error.detail}")
            return moved
        if moved.value is not registration:
            self.store.put_parent_registration(moved.value)
            logger.info(f"Registration {registration_number} is now under review")
        return moved

    def approve(self, registration_number: str, admin_id: str) -> Result[ParentRegistration]:
        return self._decide(registration_number, RegistrationStatus.APPROVED, admin_id)

    def reject(self, registration_number: str, admin_id: str, reason: Optional[str]) -> Result[ParentRegistration]:
        return self._decide(registration_number, RegistrationStatus.REJECTED, admin_id, reason)

    def _decide(
        self,
        registration_number: str,
        target: RegistrationStatus,
        admin_id: str,
        reason: Optional[str] = None,
    ) -> Result[ParentRegistration]:
        found = self.current(registration_number)
        if not found.ok:
            return found

        now = self.now()
        decided = transition(found.value, target, now, reason)
        if not decided.ok:
            logger.warning(f"Admin {admin_id} {target.value} refused: {decided.error.detail}")
            return decided

        registration = decided.value
        self.store.put_parent_registration(registration)
        self.store.append_admin_action(AdminAction(
            registration_number=registration_number,
            action=target.value,
            reason=registration.rejection_reason if target == RegistrationStatus.REJECTED else None,
            action_date=now,
            admin_id=admin_id,
        ))
        logger.info(f"Registration {registration_number} {target.value} by {admin_id}")
        return decided

    def bulk_approve(self, registration_numbers: Iterable[str], admin_id: str) -> List[BulkItemResult]:
        return self._bulk(registration_numbers, lambda number: self.approve(number, admin_id))

    def bulk_reject(
        self, registration_numbers: Iterable[str], admin_id: str, reason: Optional[str]
    ) -> List[BulkItemResult]:
        return self._bulk(registration_numbers, lambda number: self.reject(number, admin_id, reason))

    def _bulk(
        self,
        registration_numbers: Iterable[str],
        decide: Callable[[str], Result[ParentRegistration]],
    ) -> List[BulkItemResult]:
        # Sequential and best-effort: earlier successes stay applied
        results = []
        for number in registration_numbers:
            outcome = decide(number)
            results.append(BulkItemResult(
                registration_number=number,
                ok=outcome.ok,
                error=None if outcome.ok else outcome.error.to_dict(),
            ))
        succeeded = sum(1 for r in results if r.ok)
        logger.info(f"Bulk decision finished: {succeeded} succeeded, {len(results) - succeeded} failed")
        return results

    # -------------------- admin views --------------------
    def search(self, filter: Optional[RegistrationFilter] = None) -> List[ParentRegistration]:
        return self.store.list_parent_registrations(filter)

    def list_open(self) -> List[ParentRegistration]:
        return self.search(RegistrationFilter(statuses=list(OPEN_STATUSES)))

    def statistics(self, today: Optional[date] = None) -> RegistrationStatistics:
        today = today or self.now().date()
        registrations = self.store.list_parent_registrations()

        def count(status: RegistrationStatus) -> int:
            return sum(1 for r in registrations if r.status == status)

        approved_today = sum(
            1 for r in registrations
            if r.status == RegistrationStatus.APPROVED
            and (r.approval_date or r.submission_date).date() == today
        )
        return RegistrationStatistics(
            pending=count(RegistrationStatus.PENDING),
            under_review=count(RegistrationStatus.UNDER_REVIEW),
            approved_today=approved_today,
            approved=count(RegistrationStatus.APPROVED),
            rejected=count(RegistrationStatus.REJECTED),
            total=len(registrations),
        )

    def export(self) -> RegistryExport:
        registrations = self.store.list_parent_registrations()
        now = self.now()
        return RegistryExport(
            export_date=now,
            registrations=registrations,
            admin_actions=self.store.list_admin_actions(),
            total_applications=len(registrations),
            statistics=self.statistics(now.date()),
        )
