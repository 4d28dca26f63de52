from __future__ import annotations

from datetime import datetime

import pytest

from app.services import errors
from app.services.certificates import (
    NA,
    certificate_text,
    format_aadhaar,
    render_certificate,
    verification_token,
    verify_certificate_token,
)
from tests.conftest import make_registration

SECRET = "unit-secret"
ORIGIN = "https://registry.example.gov/"
APPROVED_AT = datetime(2025, 1, 10, 9, 0)


def approved(**overrides):
    return make_registration(status="approved", approval_date=APPROVED_AT, last_updated=APPROVED_AT, **overrides)


def render(registration):
    return render_certificate(registration, secret_key=SECRET, origin=ORIGIN)


def test_certificate_for_approved_registration():
    view = render(approved()).unwrap()
    assert view.certificate_number == "BC/2025/0109/042"
    assert view.registration_number == "REG-20250109-042"
    assert view.hospital_id == "HSP-123456789"
    assert view.child_name == "Aarav Sharma"
    assert view.date_of_birth == "06/01/2025"
    assert view.registration_date == "09/01/2025"
    assert view.issue_date == "10/01/2025"
    assert view.father_aadhaar == "1234 5678 9012"
    assert view.mother_aadhaar == "2345 6789 0123"
    assert view.address == "12 MG Road, Pune, Maharashtra - 411001"
    assert view.local_area == "Pune"
    assert view.state == "Maharashtra"
    assert view.verification_url == "https://registry.example.gov/certificate?regNumber=REG-20250109-042"


@pytest.mark.parametrize("status", ["pending", "under_review", "rejected"])
def test_no_certificate_before_approval(status):
    outcome = render(make_registration(status=status))
    assert isinstance(outcome.error, errors.NotApproved)
    assert outcome.error.detail == f"Certificate not available. Status: {status}"


def test_rendering_is_deterministic():
    registration = approved()
    assert render(registration).unwrap() == render(registration).unwrap()


def test_missing_fields_fall_back():
    registration = approved(father_name=" ", city="", place_of_birth="", hospital_data={})
    view = render(registration).unwrap()
    assert view.father_name == NA
    assert view.local_area == "Local Area"
    assert view.place_of_birth == NA
    assert view.hospital_id == "HSP-123456789"
    assert view.address == "12 MG Road, Maharashtra - 411001"


def test_place_of_birth_falls_back_to_hospital_name():
    view = render(approved(place_of_birth="")).unwrap()
    assert view.place_of_birth == "City General Hospital"


def test_format_aadhaar():
    assert format_aadhaar("123456789012") == "1234 5678 9012"
    assert format_aadhaar("1234 56789012") == "1234 5678 9012"
    assert format_aadhaar(None) == NA


def test_certificate_text():
    text = certificate_text(render(approved()).unwrap())
    assert text.startswith("BIRTH CERTIFICATE")
    assert "Certificate Number: BC/2025/0109/042" in text
    assert "Name: Aarav Sharma" in text
    assert "local body of Pune, State of Maharashtra" in text
    assert "Verification URL: https://registry.example.gov/certificate?regNumber=REG-20250109-042" in text


def test_token_verifies_against_registry():
    registration = approved()
    token = render(registration).unwrap().verification_token
    verified = verify_certificate_token(token, registration, secret_key=SECRET).unwrap()
    assert verified.valid
    assert verified.registration_number == "REG-20250109-042"
    assert verified.issue_date == "10/01/2025"


def test_token_for_changed_record_is_not_valid():
    token = verification_token(approved(), secret_key=SECRET)
    changed = approved(final_child_name="Vivaan Sharma")
    assert not verify_certificate_token(token, changed, secret_key=SECRET).unwrap().valid


def test_token_signed_with_another_key():
    token = verification_token(approved(), secret_key="other-secret")
    outcome = verify_certificate_token(token, approved(), secret_key=SECRET)
    assert isinstance(outcome.error, errors.InvalidCertificateToken)


def test_token_for_unknown_or_revoked_registration():
    token = verification_token(approved(), secret_key=SECRET)
    assert isinstance(verify_certificate_token(token, None, secret_key=SECRET).error, errors.RegistrationNotFound)

    revoked = make_registration(status="rejected")
    assert isinstance(verify_certificate_token(token, revoked, secret_key=SECRET).error, errors.NotApproved)


def test_garbage_token():
    outcome = verify_certificate_token("not-a-token", approved(), secret_key=SECRET)
    assert isinstance(outcome.error, errors.InvalidCertificateToken)
