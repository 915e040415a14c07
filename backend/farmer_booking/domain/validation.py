from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional

from ..models import Gender, TimeSlot
from .errors import InvalidInputError

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_PHONE_RE = re.compile(r"^\+?[\d\s\-()]+$")
_VOLUME_QUANTUM = Decimal("0.01")


@dataclass(frozen=True)
class BookingCandidate:
    branch_id: int
    date: date
    time_slot: TimeSlot | str
    volume: Decimal | float | int | str
    first_name: str
    last_name: str
    email: str
    contact_number: str
    middle_name: Optional[str] = None
    gender: Gender | str | None = None
    farmer_type_id: Optional[int] = None


@dataclass(frozen=True)
class ValidatedBooking:
    branch_id: int
    date: date
    time_slot: TimeSlot
    volume: Decimal
    first_name: str
    last_name: str
    email: str
    contact_number: str
    middle_name: Optional[str]
    gender: Optional[Gender]
    farmer_type_id: Optional[int]


def is_valid_email(value: str) -> bool:
    return len(value) <= 254 and _EMAIL_RE.match(value) is not None


def is_valid_phone(value: str) -> bool:
    if _PHONE_RE.match(value) is None:
        return False
    digits = sum(ch.isdigit() for ch in value)
    return 7 <= digits <= 15


def parse_time_slot(value: TimeSlot | str) -> TimeSlot:
    try:
        return TimeSlot(str(value).strip().upper())
    except ValueError as exc:
        raise InvalidInputError("Time slot must be AM or PM.", field="timeSlot") from exc


def parse_volume(value: Decimal | float | int | str) -> Decimal:
    try:
        volume = Decimal(str(value)).quantize(_VOLUME_QUANTUM, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError) as exc:
        raise InvalidInputError("Volume must be a number of kilograms.", field="volume") from exc
    if not volume.is_finite() or volume <= 0:
        raise InvalidInputError("Volume must be greater than zero.", field="volume")
    return volume


def _required(value: Optional[str], field: str, label: str) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise InvalidInputError(f"{label} is required.", field=field)
    return cleaned


def validate_candidate(candidate: BookingCandidate) -> ValidatedBooking:
    """Check every applicant field and return a normalized copy.

    Has no side effects, so it can run before any store access.
    """
    if candidate.branch_id <= 0:
        raise InvalidInputError("A branch must be selected.", field="branchId")

    first_name = _required(candidate.first_name, "firstName", "First name")
    last_name = _required(candidate.last_name, "lastName", "Last name")
    middle_name = (candidate.middle_name or "").strip() or None

    email = _required(candidate.email, "email", "Email address")
    if not is_valid_email(email):
        raise InvalidInputError("Email address is not valid.", field="email")

    contact_number = _required(candidate.contact_number, "contact", "Contact number")
    if not is_valid_phone(contact_number):
        raise InvalidInputError("Contact number is not valid.", field="contact")

    gender: Gender | None = None
    if candidate.gender:
        try:
            gender = Gender(str(candidate.gender).strip().lower())
        except ValueError as exc:
            raise InvalidInputError("Gender must be male, female or other.", field="gender") from exc

    return ValidatedBooking(
        branch_id=candidate.branch_id,
        date=candidate.date,
        time_slot=parse_time_slot(candidate.time_slot),
        volume=parse_volume(candidate.volume),
        first_name=first_name,
        middle_name=middle_name,
        last_name=last_name,
        email=email,
        contact_number=contact_number,
        gender=gender,
        farmer_type_id=candidate.farmer_type_id,
    )
