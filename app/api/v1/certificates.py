from typing import Any
from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from app.api import deps
from app.schemas.certificate import CertificateVerification, CertificateView
from app.services.certificates import (
    certificate_text,
    decode_verification_token,
    render_certificate,
    verify_certificate_token,
)
from app.services.workflow import WorkflowEngine

router = APIRouter()

@router.get("/verify", response_model=CertificateVerification)
def verify_certificate(
    *,
    engine: WorkflowEngine = Depends(deps.get_engine),
    token: str,
) -> Any:
    """Check a certificate's QR token against the registry"""
    claims = decode_verification_token(token).unwrap()
    found = engine.current(claims["regNumber"])
    return verify_certificate_token(token, found.value if found.ok else None).unwrap()

@router.get("/{registration_number}", response_model=CertificateView)
def read_certificate(
    *,
    engine: WorkflowEngine = Depends(deps.get_engine),
    registration_number: str,
) -> Any:
    """Certificate for an approved registration"""
    registration = engine.current(registration_number).unwrap()
    return render_certificate(registration).unwrap()

@router.get("/{registration_number}/text", response_class=PlainTextResponse)
def download_certificate_text(
    *,
    engine: WorkflowEngine = Depends(deps.get_engine),
    registration_number: str,
) -> Any:
    registration = engine.current(registration_number).unwrap()
    view = render_certificate(registration).unwrap()
    return PlainTextResponse(
        certificate_text(view),
        headers={"Content-Disposition": f'attachment; filename="birth-certificate-{registration_number}.txt"'},
    )
