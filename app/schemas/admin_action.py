from pydantic import BaseModel
from typing import Any, Dict, List, Literal, Optional
from datetime import datetime

from app.schemas.parent_registration import ParentRegistration, RegistrationStatistics

class AdminAction(BaseModel):
    registration_number: str
    action: Literal["approved", "rejected"]
    reason: Optional[str] = None
    action_date: datetime
    admin_id: str
    # Assigned by the store on append
    sequence: Optional[int] = None

    class Config:
        from_attributes = True

class RejectRequest(BaseModel):
    # Emptiness is checked by the workflow so it can answer with a field error
    reason: str = ""

class BulkApproveRequest(BaseModel):
    registration_numbers: List[str]

class BulkRejectRequest(BulkApproveRequest):
    reason: str = ""

class BulkItem(BaseModel):
    registration_number: str
    ok: bool
    error: Optional[Dict[str, Any]] = None

class BulkResponse(BaseModel):
    results: List[BulkItem]
    success_count: int
    error_count: int

class RegistryExport(BaseModel):
    export_date: datetime
    registrations: List[ParentRegistration]
    admin_actions: List[AdminAction]
    total_applications: int
    statistics: RegistrationStatistics
