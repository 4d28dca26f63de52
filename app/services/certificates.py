# app/services/certificates.py
from __future__ import annotations

import re
from typing import Optional

from jose import JWTError, jwt

from app.core.config import settings
from app.schemas.certificate import CertificateVerification, CertificateView
from app.schemas.parent_registration import ParentRegistration, RegistrationStatus
from app.services import errors
from app.services.errors import Result
from app.services.identifiers import registration_suffix
from app.utils.timezone import format_display_date

NA = "N/A"


def _or_na(value: Optional[str]) -> str:
    if value is None:
        return NA
    value = str(value).strip()
    return value or NA


def format_aadhaar(value: Optional[str]) -> str:
    """``123456789012`` -> ``1234 5678 9012``."""
    if not value:
        return NA
    clean = re.sub(r"\s", "", value)
    return re.sub(r"([0-9]{4})(?=[0-9])", r"\1 ", clean)


def certificate_number(registration: ParentRegistration) -> str:
    submitted = registration.submission_date
    return (
        f"BC/{submitted.year}/{submitted.month:02d}{submitted.day:02d}/"
        f"{registration_suffix(registration.registration_number)}"
    )


def verification_url(registration_number: str, origin: Optional[str] = None) -> str:
    origin = (origin or settings.CERTIFICATE_ORIGIN).rstrip("/")
    return f"{origin}/certificate?regNumber={registration_number}"


def _issue_date(registration: ParentRegistration):
    # Approved records always carry approval_date once reconciled
    return registration.approval_date or registration.last_updated


def verification_token(
    registration: ParentRegistration,
    *,
    secret_key: Optional[str] = None,
    algorithm: Optional[str] = None,
) -> str:
    """Signed, deterministic token for the certificate QR payload."""
    claims = {
        "regNumber": registration.registration_number,
        "childName": registration.final_child_name,
        "dob": registration.child_dob.isoformat(),
        "issueDate": _issue_date(registration).isoformat(),
    }
    return jwt.encode(
        claims,
        secret_key or settings.SECRET_KEY,
        algorithm=algorithm or settings.ALGORITHM,
    )


def _joined_address(registration: ParentRegistration) -> str:
    parts = [p.strip() for p in (registration.address, registration.city, registration.state) if p and p.strip()]
    address = ", ".join(parts)
    if registration.pincode:
        address = f"{address} - {registration.pincode}" if address else registration.pincode
    return address or NA


def render_certificate(
    registration: ParentRegistration,
    *,
    secret_key: Optional[str] = None,
    algorithm: Optional[str] = None,
    origin: Optional[str] = None,
) -> Result[CertificateView]:
    """Certificate view model for an approved registration. No I/O."""
    if registration.status != RegistrationStatus.APPROVED:
        return Result.failure(errors.NotApproved(registration.registration_number, registration.status))

    hospital = registration.hospital_data or {}
    view = CertificateView(
        certificate_number=certificate_number(registration),
        registration_number=registration.registration_number,
        hospital_id=_or_na(hospital.get("hospital_id") or registration.hospital_id),
        child_name=_or_na(registration.final_child_name or hospital.get("child_name")),
        gender=_or_na(registration.child_gender or hospital.get("gender")),
        date_of_birth=format_display_date(registration.child_dob) if registration.child_dob else NA,
        place_of_birth=_or_na(registration.place_of_birth or hospital.get("hospital_name")),
        father_name=_or_na(registration.father_name),
        mother_name=_or_na(registration.mother_name),
        father_aadhaar=format_aadhaar(registration.father_aadhaar),
        mother_aadhaar=format_aadhaar(registration.mother_aadhaar),
        address=_joined_address(registration),
        local_area=(registration.city or "").strip() or "Local Area",
        state=(registration.state or "").strip() or "State",
        registration_date=format_display_date(registration.submission_date),
        issue_date=format_display_date(_issue_date(registration)),
        verification_token=verification_token(registration, secret_key=secret_key, algorithm=algorithm),
        verification_url=verification_url(registration.registration_number, origin),
    )
    return Result.success(view)


def certificate_text(view: CertificateView) -> str:
    """Plain-text certificate, used when a printable download is requested."""
    return f"""BIRTH CERTIFICATE
Government of India
Ministry of Home Affairs

Certificate Number: {view.certificate_number}

This is to certify that the following information has been taken from the original record of birth which is in the register for the local area/local body of {view.local_area}, State of {view.state}.

PERSONAL INFORMATION:
Name: {view.child_name}
Sex: {view.gender}
Date of Birth: {view.date_of_birth}
Place of Birth: {view.place_of_birth}

PARENTS' INFORMATION:
Father's Name: {view.father_name}
Mother's Name: {view.mother_name}
Address: {view.address}

REGISTRATION INFORMATION:
Registration Number: {view.registration_number}
Hospital ID: {view.hospital_id}
Date of Registration: {view.registration_date}
Date of Issue: {view.issue_date}

Registrar of Births and Deaths
Government of India

This is a digitally generated certificate.
Verification URL: {view.verification_url}
"""


def decode_verification_token(
    token: str,
    *,
    secret_key: Optional[str] = None,
    algorithm: Optional[str] = None,
) -> Result[dict]:
    try:
        claims = jwt.decode(
            token,
            secret_key or settings.SECRET_KEY,
            algorithms=[algorithm or settings.ALGORITHM],
        )
    except JWTError:
        return Result.failure(errors.InvalidCertificateToken("Could not validate certificate token"))
    if "regNumber" not in claims:
        return Result.failure(errors.InvalidCertificateToken("Certificate token has no registration number"))
    return Result.success(claims)


def verify_certificate_token(
    token: str,
    registration: Optional[ParentRegistration],
    *,
    secret_key: Optional[str] = None,
    algorithm: Optional[str] = None,
) -> Result[CertificateVerification]:
    """Check a decoded token against the registration it names."""
    decoded = decode_verification_token(token, secret_key=secret_key, algorithm=algorithm)
    if not decoded.ok:
        return Result.failure(decoded.error)
    claims = decoded.value

    if registration is None or registration.registration_number != claims["regNumber"]:
        return Result.failure(errors.RegistrationNotFound(claims["regNumber"]))
    if registration.status != RegistrationStatus.APPROVED:
        return Result.failure(errors.NotApproved(registration.registration_number, registration.status))

    expected = {
        "childName": registration.final_child_name,
        "dob": registration.child_dob.isoformat(),
        "issueDate": _issue_date(registration).isoformat(),
    }
    valid = all(claims.get(key) == value for key, value in expected.items())
    return Result.success(CertificateVerification(
        valid=valid,
        registration_number=registration.registration_number,
        child_name=registration.final_child_name,
        date_of_birth=format_display_date(registration.child_dob),
        issue_date=format_display_date(_issue_date(registration)),
    ))
