from app.models.admin_action import AdminAction
from app.models.hospital_notification import HospitalNotification
from app.models.parent_registration import ParentRegistration

__all__ = ["AdminAction", "HospitalNotification", "ParentRegistration"]
