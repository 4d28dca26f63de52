from sqlalchemy import JSON, Column, Date, DateTime, String, Text
from app.core.database import Base

class ParentRegistration(Base):
    __tablename__ = "parent_registrations"

    registration_number = Column(String(16), primary_key=True, index=True)
    # Snapshot of the hospital notification, copied by value at submission
    hospital_data = Column(JSON, nullable=False)
    hospital_id = Column(String(13), nullable=False, index=True)

    final_child_name = Column(String(100), nullable=False)
    child_gender = Column(String(10), nullable=False)
    child_dob = Column(Date, nullable=False)
    child_tob = Column(String(5), nullable=False)
    place_of_birth = Column(String(200), nullable=False)

    father_name = Column(String(100), nullable=False)
    father_aadhaar = Column(String(12), nullable=False)
    father_phone = Column(String(10), nullable=False)
    mother_name = Column(String(100), nullable=False)
    mother_aadhaar = Column(String(12), nullable=False)
    mother_phone = Column(String(10), nullable=False)
    email = Column(String(254), nullable=True)

    address = Column(Text, nullable=False)
    city = Column(String(100), nullable=False)
    state = Column(String(100), nullable=False)
    pincode = Column(String(6), nullable=False)

    status = Column(String(20), nullable=False, index=True)
    submission_date = Column(DateTime, nullable=False, index=True)
    last_updated = Column(DateTime, nullable=False)
    review_date = Column(DateTime, nullable=True)
    approval_date = Column(DateTime, nullable=True)
    rejection_date = Column(DateTime, nullable=True)
    rejection_reason = Column(Text, nullable=True)
    resubmission_of = Column(String(16), nullable=True)
