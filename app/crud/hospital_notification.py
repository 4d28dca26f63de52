from typing import List, Optional
from datetime import datetime
from sqlalchemy.orm import Session
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from app.models.hospital_notification import HospitalNotification
from app.schemas.hospital_notification import HospitalNotification as HospitalNotificationSchema
import logging

# Set up logging
logger = logging.getLogger(__name__)

class CRUDHospitalNotification:
    def get(self, db: Session, hospital_id: str) -> Optional[HospitalNotification]:
        """Retrieve a hospital notification by its hospital ID."""
        return db.query(HospitalNotification).filter(
            HospitalNotification.hospital_id == hospital_id
        ).first()

    def exists(self, db: Session, hospital_id: str) -> bool:
        return db.query(HospitalNotification.hospital_id).filter(
            HospitalNotification.hospital_id == hospital_id
        ).first() is not None

    def get_multi(
        self,
        db: Session,
        *,
        uploaded_since: Optional[datetime] = None,
        query: Optional[str] = None,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> List[HospitalNotification]:
        """Retrieve notifications, newest first, optionally filtered by upload date or text."""
        q = db.query(HospitalNotification)
        if uploaded_since is not None:
            q = q.filter(HospitalNotification.upload_date >= uploaded_since)
        if query:
            q = q.filter(or_(
                HospitalNotification.hospital_id.ilike(f"%{query}%"),
                HospitalNotification.child_name.ilike(f"%{query}%"),
                HospitalNotification.hospital_name.ilike(f"%{query}%"),
                HospitalNotification.attending_doctor.ilike(f"%{query}%"),
            ))
        q = q.order_by(HospitalNotification.upload_date.desc()).offset(skip)
        if limit is not None:
            q = q.limit(limit)
        return q.all()

    def put(self, db: Session, *, obj_in: HospitalNotificationSchema) -> HospitalNotification:
        """Insert or wholly replace a hospital notification."""
        try:
            db_obj = db.merge(HospitalNotification(**obj_in.dict()))
            db.commit()
            logger.info(f"Stored hospital notification {db_obj.hospital_id}")
            return db_obj
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Database error storing hospital notification {obj_in.hospital_id}: {str(e)}")
            raise

hospital_notification = CRUDHospitalNotification()
