# app/services/identifiers.py
from __future__ import annotations

import random
import re
import time
from datetime import date, datetime
from typing import Callable, Optional, Union

from app.services.errors import IdentifierExhausted

HOSPITAL_ID_RE = re.compile(r"HSP-[0-9]{9}")
REGISTRATION_NUMBER_RE = re.compile(r"REG-[0-9]{8}-[0-9]{3}")

DEFAULT_MAX_ATTEMPTS = 5

_rng = random.SystemRandom()


def _never_taken(_: str) -> bool:
    return False


# ----------------------------
# Format checks
# ----------------------------
def is_valid_hospital_id(value: Optional[str]) -> bool:
    return bool(value) and HOSPITAL_ID_RE.fullmatch(value) is not None


def is_valid_registration_number(value: Optional[str]) -> bool:
    return bool(value) and REGISTRATION_NUMBER_RE.fullmatch(value) is not None


def registration_suffix(registration_number: str) -> str:
    """Last dash-delimited token, e.g. ``"042"`` for ``REG-20250109-042``."""
    return registration_number.split("-")[-1]


# ----------------------------
# ID generators
# ----------------------------
def _hospital_id_candidate(rng: random.Random, clock: Callable[[], float]) -> str:
    millis = str(int(clock() * 1000))[-6:].zfill(6)
    return f"HSP-{millis}{rng.randint(0, 999):03d}"


def generate_hospital_id(
    *,
    exists: Callable[[str], bool] = _never_taken,
    rng: Optional[random.Random] = None,
    clock: Callable[[], float] = time.time,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> str:
    rng = rng or _rng
    for _ in range(max_attempts):
        candidate = _hospital_id_candidate(rng, clock)
        if not exists(candidate):
            return candidate
    raise IdentifierExhausted("HSP", max_attempts)


def generate_registration_number(
    on_date: Union[date, datetime],
    *,
    exists: Callable[[str], bool] = _never_taken,
    rng: Optional[random.Random] = None,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> str:
    rng = rng or _rng
    stamp = on_date.strftime("%Y%m%d")
    for _ in range(max_attempts):
        candidate = f"REG-{stamp}-{rng.randint(0, 999):03d}"
        if not exists(candidate):
            return candidate
    raise IdentifierExhausted("REG", max_attempts)
