from typing import Any, Dict, List
from fastapi import APIRouter, Body, Depends
import logging

from app.api import deps
from app.schemas.parent_registration import ParentRegistration, TimelineStep
from app.services.workflow import WorkflowEngine

logger = logging.getLogger(__name__)

router = APIRouter()

# Plain bodies: the workflow looks up the hospital ID before checking form fields

@router.post("/", response_model=ParentRegistration, status_code=201)
def submit_registration(
    *,
    engine: WorkflowEngine = Depends(deps.get_engine),
    record_in: Dict[str, Any] = Body(...),
) -> Any:
    """Submit a parent registration against a hospital ID"""
    return engine.submit(record_in.get("hospital_id"), record_in).unwrap()

@router.post("/{registration_number}/resubmit", response_model=ParentRegistration, status_code=201)
def resubmit_registration(
    *,
    engine: WorkflowEngine = Depends(deps.get_engine),
    registration_number: str,
    record_in: Dict[str, Any] = Body(...),
) -> Any:
    """Submit a new application in place of a rejected one"""
    return engine.resubmit(registration_number, record_in).unwrap()

@router.get("/{registration_number}/status", response_model=ParentRegistration)
def read_registration_status(
    *,
    engine: WorkflowEngine = Depends(deps.get_engine),
    registration_number: str,
) -> Any:
    """Track a registration; pending admin decisions are applied first"""
    return engine.current(registration_number.strip()).unwrap()

@router.get("/{registration_number}/timeline", response_model=List[TimelineStep])
def read_registration_timeline(
    *,
    engine: WorkflowEngine = Depends(deps.get_engine),
    registration_number: str,
) -> Any:
    """Progress tracker for the status page"""
    return engine.timeline(registration_number.strip()).unwrap()
