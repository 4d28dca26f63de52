from typing import Any, List, Optional
from fastapi import APIRouter, Depends, Query
import logging

from app.api import deps
from app.schemas.admin_action import (
    BulkApproveRequest,
    BulkItem,
    BulkRejectRequest,
    BulkResponse,
    RegistryExport,
    RejectRequest,
)
from app.schemas.parent_registration import (
    OPEN_STATUSES,
    ParentRegistration,
    RegistrationFilter,
    RegistrationStatistics,
    RegistrationStatus,
)
from app.services.errors import BulkItemResult
from app.services.workflow import WorkflowEngine
from app.utils.timezone import period_start

logger = logging.getLogger(__name__)

router = APIRouter()

def _bulk_response(results: List[BulkItemResult]) -> BulkResponse:
    items = [BulkItem(registration_number=r.registration_number, ok=r.ok, error=r.error) for r in results]
    success_count = sum(1 for item in items if item.ok)
    return BulkResponse(results=items, success_count=success_count, error_count=len(items) - success_count)

@router.get("/registrations", response_model=List[ParentRegistration])
def read_registrations(
    engine: WorkflowEngine = Depends(deps.get_engine),
    status: Optional[RegistrationStatus] = None,
    open_only: bool = False,
    period: Optional[str] = Query(None, description="today, week or month"),
    q: Optional[str] = None,
) -> Any:
    """List applications for review"""
    statuses = None
    if status is not None:
        statuses = [status]
    elif open_only:
        statuses = list(OPEN_STATUSES)
    return engine.search(RegistrationFilter(
        statuses=statuses,
        submitted_since=period_start(period),
        query=q,
    ))

@router.post("/registrations/bulk-approve", response_model=BulkResponse)
def bulk_approve_registrations(
    *,
    engine: WorkflowEngine = Depends(deps.get_engine),
    request_in: BulkApproveRequest,
    admin_id: str = Depends(deps.get_admin_id),
) -> Any:
    """Approve several applications; each succeeds or fails on its own"""
    return _bulk_response(engine.bulk_approve(request_in.registration_numbers, admin_id))

@router.post("/registrations/bulk-reject", response_model=BulkResponse)
def bulk_reject_registrations(
    *,
    engine: WorkflowEngine = Depends(deps.get_engine),
    request_in: BulkRejectRequest,
    admin_id: str = Depends(deps.get_admin_id),
) -> Any:
    """Reject several applications with one reason; each succeeds or fails on its own"""
    return _bulk_response(engine.bulk_reject(request_in.registration_numbers, admin_id, request_in.reason))

@router.post("/registrations/{registration_number}/review", response_model=ParentRegistration)
def review_registration(
    *,
    engine: WorkflowEngine = Depends(deps.get_engine),
    registration_number: str,
) -> Any:
    return engine.mark_under_review(registration_number).unwrap()

@router.post("/registrations/{registration_number}/approve", response_model=ParentRegistration)
def approve_registration(
    *,
    engine: WorkflowEngine = Depends(deps.get_engine),
    registration_number: str,
    admin_id: str = Depends(deps.get_admin_id),
) -> Any:
    return engine.approve(registration_number, admin_id).unwrap()

@router.post("/registrations/{registration_number}/reject", response_model=ParentRegistration)
def reject_registration(
    *,
    engine: WorkflowEngine = Depends(deps.get_engine),
    registration_number: str,
    request_in: RejectRequest,
    admin_id: str = Depends(deps.get_admin_id),
) -> Any:
    return engine.reject(registration_number, admin_id, request_in.reason).unwrap()

@router.get("/statistics", response_model=RegistrationStatistics)
def read_statistics(engine: WorkflowEngine = Depends(deps.get_engine)) -> Any:
    """Dashboard counts"""
    return engine.statistics()

@router.get("/export", response_model=RegistryExport)
def export_registry(engine: WorkflowEngine = Depends(deps.get_engine)) -> Any:
    """Every registration and admin action, with summary counts"""
    export = engine.export()
    logger.info(f"Exported {export.total_applications} registrations and {len(export.admin_actions)} admin actions")
    return export
