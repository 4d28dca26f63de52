# app/services/errors.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Generic, Iterable, Optional, TypeVar

T = TypeVar("T")


class WorkflowError(Exception):
    """Base for every business outcome the registry reports back to its caller."""

    code = "WorkflowError"
    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail

    def to_dict(self) -> Dict[str, object]:
        return {"code": self.code, "detail": self.detail}


class ValidationError(WorkflowError):
    code = "ValidationError"
    status_code = 422

    def __init__(self, fields: Dict[str, str], detail: Optional[str] = None):
        self.fields = dict(fields)
        super().__init__(detail or "Validation failed for: " + ", ".join(sorted(self.fields)))

    def to_dict(self) -> Dict[str, object]:
        data = super().to_dict()
        data["fields"] = self.fields
        return data


class HospitalIdNotFound(WorkflowError):
    code = "HospitalIdNotFound"
    status_code = 404

    def __init__(self, hospital_id: str):
        super().__init__(f"Hospital ID not found: {hospital_id}")
        self.hospital_id = hospital_id


class HospitalIdAlreadyRegistered(WorkflowError):
    code = "HospitalIdAlreadyRegistered"
    status_code = 409

    def __init__(self, hospital_id: str, registration_number: str):
        super().__init__(
            f"Hospital ID {hospital_id} is already used by registration {registration_number}"
        )
        self.hospital_id = hospital_id
        self.registration_number = registration_number


class RegistrationNotFound(WorkflowError):
    code = "RegistrationNotFound"
    status_code = 404

    def __init__(self, registration_number: str):
        super().__init__(f"Registration not found: {registration_number}")
        self.registration_number = registration_number


class InvalidTransition(WorkflowError):
    code = "InvalidTransition"
    status_code = 409

    def __init__(self, registration_number: str, current: str, target: str):
        super().__init__(
            f"Registration {registration_number} cannot move from {current} to {target}"
        )
        self.registration_number = registration_number
        self.current = current
        self.target = target


class IdentifierExhausted(WorkflowError):
    code = "IdentifierExhausted"
    status_code = 503

    def __init__(self, prefix: str, attempts: int):
        super().__init__(f"Could not mint a unique {prefix} identifier after {attempts} attempts")
        self.prefix = prefix
        self.attempts = attempts


class NotApproved(WorkflowError):
    code = "NotApproved"
    status_code = 409

    def __init__(self, registration_number: str, status: str):
        super().__init__(f"Certificate not available. Status: {status}")
        self.registration_number = registration_number
        self.status = status


class InvalidCertificateToken(WorkflowError):
    code = "InvalidCertificateToken"
    status_code = 422


def field_errors(errors: Iterable[Dict[str, Any]]) -> Dict[str, str]:
    """
    Collapse pydantic error dicts into ``{field: reason_code}``.

    Validators raise ``ValueError(<reason_code>)``; missing fields become
    ``required`` and type failures keep pydantic's own error type.
    """
    fields: Dict[str, str] = {}
    for err in errors:
        loc = [str(part) for part in err.get("loc", ()) if part != "body"]
        name = ".".join(loc) or "__root__"
        kind = err.get("type", "")
        if kind == "missing":
            reason = "required"
        elif kind == "value_error" and "error" in err.get("ctx", {}):
            reason = str(err["ctx"]["error"])
        else:
            reason = kind or "invalid"
        fields.setdefault(name, reason)
    return fields


@dataclass
class Result(Generic[T]):
    """Either a value or the business error that prevented it."""

    value: Optional[T] = None
    error: Optional[WorkflowError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: WorkflowError) -> "Result[T]":
        return cls(error=error)

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value


@dataclass
class BulkItemResult:
    registration_number: str
    ok: bool
    error: Optional[Dict[str, object]] = field(default=None)
