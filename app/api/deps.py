from typing import Optional
from fastapi import Depends, Header
from sqlalchemy.orm import Session
from app.core.config import settings
from app.core.database import get_db
from app.crud.store import RecordStore, SqlRecordStore
from app.services.workflow import WorkflowEngine

def get_store(db: Session = Depends(get_db)) -> RecordStore:
    return SqlRecordStore(db)

def get_engine(store: RecordStore = Depends(get_store)) -> WorkflowEngine:
    return WorkflowEngine(
        store,
        max_id_attempts=settings.ID_MAX_ATTEMPTS,
        allow_hospital_id_reuse=settings.ALLOW_HOSPITAL_ID_REUSE,
    )

def get_admin_id(x_admin_id: Optional[str] = Header(default=None)) -> str:
    # Identity is asserted by the fronting auth layer; fall back to the configured placeholder
    if x_admin_id and x_admin_id.strip():
        return x_admin_id.strip()
    return settings.DEFAULT_ADMIN_ID
