from pydantic import BaseModel, validator
from typing import Optional
from datetime import date, datetime
import re

from app.utils.timezone import today_utc

HOSPITAL_REG_NO_RE = re.compile(r"[A-Z0-9]{6,20}")
TIME_RE = re.compile(r"([01][0-9]|2[0-3]):[0-5][0-9]")
VALID_GENDERS = ['male', 'female', 'other']

class HospitalNotificationFields(BaseModel):
    child_name: str
    gender: str
    date_of_birth: date
    time_of_birth: str
    weight: float
    attending_doctor: str
    hospital_name: str
    hospital_reg_no: str
    delivery_type: Optional[str] = None
    doctor_license: Optional[str] = None
    mother_name: Optional[str] = None
    father_name: Optional[str] = None

class HospitalNotificationCreate(HospitalNotificationFields):
    """What hospital staff submit; the hospital ID is minted on upload."""

    @validator('child_name', 'attending_doctor', 'hospital_name')
    def validate_required_text(cls, v):
        if not v or not v.strip():
            raise ValueError('required')
        return v.strip()

    @validator('gender')
    def validate_gender(cls, v):
        if v.lower() not in VALID_GENDERS:
            raise ValueError('invalid_gender')
        return v.title()

    @validator('date_of_birth')
    def validate_date_of_birth(cls, v):
        if v > today_utc():
            raise ValueError('date_in_future')
        return v

    @validator('time_of_birth')
    def validate_time_of_birth(cls, v):
        if not TIME_RE.fullmatch(v.strip()):
            raise ValueError('invalid_time')
        return v.strip()

    @validator('weight')
    def validate_weight(cls, v):
        if v < 0.5 or v > 10:
            raise ValueError('weight_out_of_range')
        return v

    @validator('hospital_reg_no')
    def validate_hospital_reg_no(cls, v):
        v = v.strip().upper()
        if not HOSPITAL_REG_NO_RE.fullmatch(v):
            raise ValueError('invalid_hospital_reg_no')
        return v

class HospitalNotification(HospitalNotificationFields):
    hospital_id: str
    upload_date: datetime

    class Config:
        from_attributes = True

class HospitalNotificationView(HospitalNotification):
    # Derived from the linked registration at read time, never stored
    status: str
    registration_number: Optional[str] = None

class NotificationStatistics(BaseModel):
    total: int
    uploaded_today: int
    # Derived status uploaded or pending: no live registration yet
    awaiting_registration: int
