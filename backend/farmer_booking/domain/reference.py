import secrets
import string
from datetime import date

REFERENCE_ALPHABET = string.ascii_uppercase + string.digits
SUFFIX_LENGTH = 6


def generate_reference_number(prefix: str, booking_date: date) -> str:
    """Return ``<PREFIX><YYYYMMDD><6 random chars>``, e.g. ``NFA20251103K7Q2ZD``.

    Uniqueness is enforced by the store; callers retry on collision.
    """
    suffix = "".join(secrets.choice(REFERENCE_ALPHABET) for _ in range(SUFFIX_LENGTH))
    return f"{prefix.upper()}{booking_date:%Y%m%d}{suffix}"


def normalize_reference_number(value: str) -> str:
    return value.strip().upper()
