from pydantic import BaseModel, validator
from typing import Any, Dict, List, Literal, Optional
from datetime import date, datetime
from enum import Enum
import re

from app.utils.timezone import today_utc

AADHAAR_RE = re.compile(r"[0-9]{12}")
PHONE_RE = re.compile(r"[0-9]{10}")
PINCODE_RE = re.compile(r"[0-9]{6}")
EMAIL_RE = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
TIME_RE = re.compile(r"([01][0-9]|2[0-3]):[0-5][0-9]")
MAX_AGE_YEARS = 100

class RegistrationStatus(str, Enum):
    PENDING = "pending"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"

OPEN_STATUSES = (RegistrationStatus.PENDING, RegistrationStatus.UNDER_REVIEW)
TERMINAL_STATUSES = (RegistrationStatus.APPROVED, RegistrationStatus.REJECTED)

class RegistrationFields(BaseModel):
    final_child_name: str
    child_gender: str
    child_dob: date
    child_tob: str
    place_of_birth: str
    father_name: str
    father_aadhaar: str
    father_phone: str
    mother_name: str
    mother_aadhaar: str
    mother_phone: str
    email: Optional[str] = None
    address: str
    city: str
    state: str
    pincode: str

class RegistrationCreate(RegistrationFields):
    """Parent-supplied fields, checked before a registration is created."""

    @validator('final_child_name', 'place_of_birth', 'father_name', 'mother_name',
               'address', 'city', 'state')
    def validate_required_text(cls, v):
        if not v or not v.strip():
            raise ValueError('required')
        return v.strip()

    @validator('child_gender')
    def validate_gender(cls, v):
        if v.lower() not in ['male', 'female', 'other']:
            raise ValueError('invalid_gender')
        return v.title()

    @validator('child_dob')
    def validate_child_dob(cls, v):
        today = today_utc()
        if v > today:
            raise ValueError('date_in_future')
        # Feb 29 falls back to Feb 28 in non-leap years
        try:
            oldest = today.replace(year=today.year - MAX_AGE_YEARS)
        except ValueError:
            oldest = today.replace(year=today.year - MAX_AGE_YEARS, day=28)
        if v < oldest:
            raise ValueError('date_too_old')
        return v

    @validator('child_tob')
    def validate_child_tob(cls, v):
        if not TIME_RE.fullmatch(v.strip()):
            raise ValueError('invalid_time')
        return v.strip()

    @validator('father_aadhaar', 'mother_aadhaar')
    def validate_aadhaar(cls, v):
        clean = re.sub(r"\s", "", v)
        if not AADHAAR_RE.fullmatch(clean):
            raise ValueError('aadhaar_not_12_digits')
        return clean

    @validator('father_phone', 'mother_phone')
    def validate_phone(cls, v):
        v = v.strip()
        if not PHONE_RE.fullmatch(v):
            raise ValueError('phone_not_10_digits')
        return v

    @validator('pincode')
    def validate_pincode(cls, v):
        v = v.strip()
        if not PINCODE_RE.fullmatch(v):
            raise ValueError('pincode_not_6_digits')
        return v

    @validator('email')
    def validate_email(cls, v):
        if v is None or not v.strip():
            return None
        if not EMAIL_RE.fullmatch(v.strip()):
            raise ValueError('invalid_email')
        return v.strip()

class ParentRegistration(RegistrationFields):
    registration_number: str
    hospital_id: str
    hospital_data: Dict[str, Any]
    status: RegistrationStatus = RegistrationStatus.PENDING
    submission_date: datetime
    last_updated: datetime
    review_date: Optional[datetime] = None
    approval_date: Optional[datetime] = None
    rejection_date: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    resubmission_of: Optional[str] = None

    class Config:
        from_attributes = True
        use_enum_values = True

class RegistrationFilter(BaseModel):
    statuses: Optional[List[RegistrationStatus]] = None
    hospital_id: Optional[str] = None
    submitted_since: Optional[datetime] = None
    query: Optional[str] = None

    class Config:
        use_enum_values = True

class RegistrationStatistics(BaseModel):
    pending: int
    under_review: int
    approved_today: int
    approved: int
    rejected: int
    total: int

class TimelineStep(BaseModel):
    """One step of the progress tracker shown on the status page."""
    title: str
    description: str
    state: Literal["completed", "current", "pending"]
    date: Optional[datetime] = None
