"""
Record store port used by the workflow engine.

The engine only ever sees pydantic records; adapters translate to and from
whatever holds the data. Writes are whole-record replace, and the admin
action log is append-only with insertion order preserved.
"""
from abc import ABC, abstractmethod
from typing import Dict, List, Optional
from datetime import datetime
from sqlalchemy.orm import Session
import logging

from app.crud.admin_action import admin_action as admin_action_crud
from app.crud.hospital_notification import hospital_notification as notification_crud
from app.crud.parent_registration import parent_registration as registration_crud
from app.schemas.admin_action import AdminAction
from app.schemas.hospital_notification import HospitalNotification
from app.schemas.parent_registration import ParentRegistration, RegistrationFilter

logger = logging.getLogger(__name__)


class RecordStore(ABC):
    @abstractmethod
    def put_hospital_notification(self, notification: HospitalNotification) -> None: ...

    @abstractmethod
    def get_hospital_notification(self, hospital_id: str) -> Optional[HospitalNotification]: ...

    @abstractmethod
    def list_hospital_notifications(
        self, *, uploaded_since: Optional[datetime] = None, query: Optional[str] = None
    ) -> List[HospitalNotification]: ...

    @abstractmethod
    def put_parent_registration(self, registration: ParentRegistration) -> None: ...

    @abstractmethod
    def get_parent_registration(self, registration_number: str) -> Optional[ParentRegistration]: ...

    @abstractmethod
    def list_parent_registrations(
        self, filter: Optional[RegistrationFilter] = None
    ) -> List[ParentRegistration]: ...

    @abstractmethod
    def append_admin_action(self, action: AdminAction) -> AdminAction: ...

    @abstractmethod
    def list_admin_actions(self, registration_number: Optional[str] = None) -> List[AdminAction]: ...

    def hospital_id_exists(self, hospital_id: str) -> bool:
        return self.get_hospital_notification(hospital_id) is not None

    def registration_number_exists(self, registration_number: str) -> bool:
        return self.get_parent_registration(registration_number) is not None

    def registrations_for_hospital_id(self, hospital_id: str) -> List[ParentRegistration]:
        return self.list_parent_registrations(RegistrationFilter(hospital_id=hospital_id))


def _matches(registration: ParentRegistration, filter: RegistrationFilter) -> bool:
    if filter.statuses and registration.status not in filter.statuses:
        return False
    if filter.hospital_id and registration.hospital_id != filter.hospital_id:
        return False
    if filter.submitted_since is not None and registration.submission_date < filter.submitted_since:
        return False
    if filter.query:
        needle = filter.query.lower()
        haystack = (
            registration.registration_number,
            registration.final_child_name,
            registration.hospital_id,
            registration.father_name,
            registration.mother_name,
        )
        if not any(needle in (value or "").lower() for value in haystack):
            return False
    return True


class InMemoryRecordStore(RecordStore):
    """Dict-backed store for tests and single-process demos."""

    def __init__(self):
        self.notifications: Dict[str, HospitalNotification] = {}
        self.registrations: Dict[str, ParentRegistration] = {}
        self.actions: List[AdminAction] = []

    def put_hospital_notification(self, notification: HospitalNotification) -> None:
        self.notifications[notification.hospital_id] = notification.model_copy(deep=True)

    def get_hospital_notification(self, hospital_id: str) -> Optional[HospitalNotification]:
        found = self.notifications.get(hospital_id)
        return found.model_copy(deep=True) if found else None

    def list_hospital_notifications(self, *, uploaded_since=None, query=None):
        items = list(self.notifications.values())
        if uploaded_since is not None:
            items = [n for n in items if n.upload_date >= uploaded_since]
        if query:
            needle = query.lower()
            items = [
                n for n in items
                if any(needle in (v or "").lower()
                       for v in (n.hospital_id, n.child_name, n.hospital_name, n.attending_doctor))
            ]
        items.sort(key=lambda n: n.upload_date, reverse=True)
        return [n.model_copy(deep=True) for n in items]

    def put_parent_registration(self, registration: ParentRegistration) -> None:
        self.registrations[registration.registration_number] = registration.model_copy(deep=True)

    def get_parent_registration(self, registration_number: str) -> Optional[ParentRegistration]:
        found = self.registrations.get(registration_number)
        return found.model_copy(deep=True) if found else None

    def list_parent_registrations(self, filter=None):
        filter = filter or RegistrationFilter()
        items = [r for r in self.registrations.values() if _matches(r, filter)]
        items.sort(key=lambda r: r.submission_date)
        return [r.model_copy(deep=True) for r in items]

    def append_admin_action(self, action: AdminAction) -> AdminAction:
        stored = action.model_copy(update={"sequence": len(self.actions) + 1})
        self.actions.append(stored)
        return stored.model_copy()

    def list_admin_actions(self, registration_number=None):
        return [
            a.model_copy() for a in self.actions
            if registration_number is None or a.registration_number == registration_number
        ]


class SqlRecordStore(RecordStore):
    """Store backed by a SQLAlchemy session through the CRUD singletons."""

    def __init__(self, db: Session):
        self.db = db

    def put_hospital_notification(self, notification: HospitalNotification) -> None:
        notification_crud.put(self.db, obj_in=notification)

    def get_hospital_notification(self, hospital_id: str) -> Optional[HospitalNotification]:
        db_obj = notification_crud.get(self.db, hospital_id)
        return HospitalNotification.model_validate(db_obj) if db_obj else None

    def hospital_id_exists(self, hospital_id: str) -> bool:
        return notification_crud.exists(self.db, hospital_id)

    def list_hospital_notifications(self, *, uploaded_since=None, query=None):
        rows = notification_crud.get_multi(self.db, uploaded_since=uploaded_since, query=query)
        return [HospitalNotification.model_validate(row) for row in rows]

    def put_parent_registration(self, registration: ParentRegistration) -> None:
        registration_crud.put(self.db, obj_in=registration)

    def get_parent_registration(self, registration_number: str) -> Optional[ParentRegistration]:
        db_obj = registration_crud.get(self.db, registration_number)
        return ParentRegistration.model_validate(db_obj) if db_obj else None

    def registration_number_exists(self, registration_number: str) -> bool:
        return registration_crud.exists(self.db, registration_number)

    def list_parent_registrations(self, filter=None):
        filter = filter or RegistrationFilter()
        rows = registration_crud.get_multi(
            self.db,
            statuses=filter.statuses,
            hospital_id=filter.hospital_id,
            submitted_since=filter.submitted_since,
            query=filter.query,
        )
        return [ParentRegistration.model_validate(row) for row in rows]

    def registrations_for_hospital_id(self, hospital_id: str) -> List[ParentRegistration]:
        rows = registration_crud.get_by_hospital_id(self.db, hospital_id=hospital_id)
        return [ParentRegistration.model_validate(row) for row in rows]

    def append_admin_action(self, action: AdminAction) -> AdminAction:
        return AdminAction.model_validate(admin_action_crud.append(self.db, obj_in=action))

    def list_admin_actions(self, registration_number=None):
        if registration_number is None:
            rows = admin_action_crud.get_all(self.db)
        else:
            rows = admin_action_crud.get_for_registration(self.db, registration_number=registration_number)
        return [AdminAction.model_validate(row) for row in rows]
