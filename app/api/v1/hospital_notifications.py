from typing import Any, List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, UploadFile, File
from pydantic import ValidationError
import logging

from app.api import deps
from app.core.config import settings
from app.schemas.hospital_notification import (
    HospitalNotificationCreate,
    HospitalNotificationView,
    NotificationStatistics,
)
from app.services.errors import field_errors
from app.services.workflow import WorkflowEngine
from app.utils.excel_parser import parse_excel_file
from app.utils.timezone import period_start

# Set up logging
logger = logging.getLogger(__name__)

router = APIRouter()

def _too_large() -> str:
    return f"File size too large. Maximum allowed size is {settings.MAX_UPLOAD_BYTES // (1024 * 1024)}MB"

@router.post("/", response_model=HospitalNotificationView, status_code=201)
def create_hospital_notification(
    *,
    engine: WorkflowEngine = Depends(deps.get_engine),
    record_in: HospitalNotificationCreate,
) -> Any:
    """Upload a birth notification and mint its hospital ID"""
    notification = engine.register_notification(record_in).unwrap()
    return engine.notification_view(notification)

@router.get("/", response_model=List[HospitalNotificationView])
def read_hospital_notifications(
    engine: WorkflowEngine = Depends(deps.get_engine),
    period: Optional[str] = Query(None, description="today, week or month"),
    q: Optional[str] = None,
) -> Any:
    """List uploaded notifications, newest first"""
    return engine.list_notifications(uploaded_since=period_start(period), query=q)

@router.get("/statistics", response_model=NotificationStatistics)
def read_notification_statistics(engine: WorkflowEngine = Depends(deps.get_engine)) -> Any:
    """Hospital dashboard counts"""
    return engine.notification_statistics()

@router.get("/{hospital_id}", response_model=HospitalNotificationView)
def read_hospital_notification(
    *,
    engine: WorkflowEngine = Depends(deps.get_engine),
    hospital_id: str,
) -> Any:
    """Fetch hospital data by hospital ID (registration step 1)"""
    notification = engine.lookup_notification(hospital_id).unwrap()
    return engine.notification_view(notification)

@router.post("/upload-excel/")
async def upload_excel_file(
    *,
    engine: WorkflowEngine = Depends(deps.get_engine),
    file: UploadFile = File(...),
    dry_run: bool = Query(False, description="Preview records without saving"),
) -> Any:
    """
    Upload an Excel workbook of birth notifications

    Parameters:
    - file: Excel file (.xlsx or .xls)
    - dry_run: If True, validates rows but mints no hospital IDs
    """
    if not file.filename or not file.filename.endswith(('.xlsx', '.xls')):
        raise HTTPException(
            status_code=400,
            detail="File must be an Excel file (.xlsx or .xls)"
        )

    if file.size and file.size > settings.MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=400, detail=_too_large())

    logger.info(f"Processing notification workbook: {file.filename}")

    content = await file.read(settings.MAX_UPLOAD_BYTES + 1)
    if len(content) > settings.MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=400, detail=_too_large())
    try:
        records_data = parse_excel_file(content)
    except ValueError as ve:
        logger.error(f"Workbook rejected: {str(ve)}")
        raise HTTPException(status_code=400, detail=str(ve))

    created_records = []
    validation_errors = []
    duplicate_errors = []
    other_errors = []

    # Same child, birth moment and hospital twice in one file
    seen = set()

    for record_data in records_data:
        row = f"{record_data.pop('_sheet', '?')}!{record_data.pop('_row', '?')}"
        key = (
            record_data.get('child_name'),
            record_data.get('date_of_birth'),
            record_data.get('time_of_birth'),
            record_data.get('hospital_reg_no'),
        )
        if key in seen:
            duplicate_errors.append(f"Row {row}: Duplicate birth within file")
            continue
        seen.add(key)

        try:
            record_create = HospitalNotificationCreate(**record_data)
        except ValidationError as ve:
            validation_errors.append({"row": row, "fields": field_errors(ve.errors())})
            continue

        if dry_run:
            created_records.append({"row": row, "data": record_create.dict(), "status": "valid"})
            continue

        outcome = engine.register_notification(record_create)
        if not outcome.ok:
            other_errors.append(f"Row {row}: {outcome.error.detail}")
            logger.warning(f"Row {row} not stored: {outcome.error.detail}")
            continue
        notification = outcome.value

        created_records.append({
            "row": row,
            "hospital_id": notification.hospital_id,
            "child_name": notification.child_name,
        })

    success_count = len(created_records)
    error_count = len(validation_errors) + len(duplicate_errors) + len(other_errors)

    if dry_run:
        message = f"Dry run completed. {success_count} notifications would be created, {error_count} errors found"
    else:
        message = f"Successfully created {success_count} notifications, {error_count} errors encountered"

    logger.info(f"Upload summary - Total: {len(records_data)}, Success: {success_count}, Errors: {error_count}")

    return {
        "message": message,
        "dry_run": dry_run,
        "total_records": len(records_data),
        "success_count": success_count,
        "error_count": error_count,
        "created_records": created_records,
        "errors": {
            "validation_errors": validation_errors,
            "duplicate_errors": duplicate_errors,
            "other_errors": other_errors,
        },
    }
