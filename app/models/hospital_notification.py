from sqlalchemy import Column, Date, DateTime, Float, String
from app.core.database import Base

class HospitalNotification(Base):
    __tablename__ = "hospital_notifications"

    hospital_id = Column(String(13), primary_key=True, index=True)
    child_name = Column(String(100), nullable=False)
    gender = Column(String(10), nullable=False)
    date_of_birth = Column(Date, nullable=False, index=True)
    time_of_birth = Column(String(5), nullable=False)
    weight = Column(Float, nullable=False)
    attending_doctor = Column(String(100), nullable=False)
    hospital_name = Column(String(200), nullable=False)
    hospital_reg_no = Column(String(20), nullable=False)

    # Optional intake form fields
    delivery_type = Column(String(50), nullable=True)
    doctor_license = Column(String(50), nullable=True)
    mother_name = Column(String(100), nullable=True)
    father_name = Column(String(100), nullable=True)

    upload_date = Column(DateTime, nullable=False, index=True)
