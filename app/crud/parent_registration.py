from typing import List, Optional, Sequence
from datetime import datetime
from sqlalchemy.orm import Session
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from app.models.parent_registration import ParentRegistration
from app.schemas.parent_registration import ParentRegistration as ParentRegistrationSchema
import logging

# Set up logging
logger = logging.getLogger(__name__)

class CRUDParentRegistration:
    def get(self, db: Session, registration_number: str) -> Optional[ParentRegistration]:
        """Retrieve a registration by registration number."""
        return db.query(ParentRegistration).filter(
            ParentRegistration.registration_number == registration_number
        ).first()

    def exists(self, db: Session, registration_number: str) -> bool:
        return db.query(ParentRegistration.registration_number).filter(
            ParentRegistration.registration_number == registration_number
        ).first() is not None

    def get_by_hospital_id(self, db: Session, *, hospital_id: str) -> List[ParentRegistration]:
        """All registrations that reference a hospital ID, oldest first."""
        return db.query(ParentRegistration).filter(
            ParentRegistration.hospital_id == hospital_id
        ).order_by(ParentRegistration.submission_date).all()

    def get_multi(
        self,
        db: Session,
        *,
        statuses: Optional[Sequence[str]] = None,
        hospital_id: Optional[str] = None,
        submitted_since: Optional[datetime] = None,
        query: Optional[str] = None,
    ) -> List[ParentRegistration]:
        """Retrieve registrations in submission order, filtered like the admin list."""
        q = db.query(ParentRegistration)
        if statuses:
            q = q.filter(ParentRegistration.status.in_(list(statuses)))
        if hospital_id:
            q = q.filter(ParentRegistration.hospital_id == hospital_id)
        if submitted_since is not None:
            q = q.filter(ParentRegistration.submission_date >= submitted_since)
        if query:
            q = q.filter(or_(
                ParentRegistration.registration_number.ilike(f"%{query}%"),
                ParentRegistration.final_child_name.ilike(f"%{query}%"),
                ParentRegistration.hospital_id.ilike(f"%{query}%"),
                ParentRegistration.father_name.ilike(f"%{query}%"),
                ParentRegistration.mother_name.ilike(f"%{query}%"),
            ))
        return q.order_by(ParentRegistration.submission_date).all()

    def put(self, db: Session, *, obj_in: ParentRegistrationSchema) -> ParentRegistration:
        """Insert or wholly replace a registration."""
        try:
            db_obj = db.merge(ParentRegistration(**obj_in.dict()))
            db.commit()
            logger.info(f"Stored registration {db_obj.registration_number} with status {db_obj.status}")
            return db_obj
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Database error storing registration {obj_in.registration_number}: {str(e)}")
            raise

parent_registration = CRUDParentRegistration()
