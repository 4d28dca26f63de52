from typing import List
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from app.models.admin_action import AdminAction
from app.schemas.admin_action import AdminAction as AdminActionSchema
import logging

# Set up logging
logger = logging.getLogger(__name__)

class CRUDAdminAction:
    """Append-only access to the admin decision log."""

    def get_for_registration(self, db: Session, *, registration_number: str) -> List[AdminAction]:
        """Actions for one registration in the order they were appended."""
        return db.query(AdminAction).filter(
            AdminAction.registration_number == registration_number
        ).order_by(AdminAction.sequence).all()

    def get_all(self, db: Session) -> List[AdminAction]:
        return db.query(AdminAction).order_by(AdminAction.sequence).all()

    def append(self, db: Session, *, obj_in: AdminActionSchema) -> AdminAction:
        try:
            db_obj = AdminAction(**obj_in.dict(exclude={"sequence"}))
            db.add(db_obj)
            db.commit()
            db.refresh(db_obj)
            logger.info(
                f"Recorded admin action #{db_obj.sequence}: {db_obj.action} "
                f"on {db_obj.registration_number} by {db_obj.admin_id}"
            )
            return db_obj
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Database error recording admin action for {obj_in.registration_number}: {str(e)}")
            raise

admin_action = CRUDAdminAction()
