from pydantic import BaseModel

class CertificateView(BaseModel):
    """Flat, print-ready certificate; every optional field is already defaulted."""
    certificate_number: str
    registration_number: str
    hospital_id: str

    child_name: str
    gender: str
    date_of_birth: str
    place_of_birth: str

    father_name: str
    mother_name: str
    father_aadhaar: str
    mother_aadhaar: str
    address: str
    local_area: str
    state: str

    registration_date: str
    issue_date: str

    verification_token: str
    verification_url: str

class CertificateVerification(BaseModel):
    valid: bool
    registration_number: str
    child_name: str
    date_of_birth: str
    issue_date: str
