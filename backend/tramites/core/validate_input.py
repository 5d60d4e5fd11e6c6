"""Input Validation — required-field checks and citizen identity document rules.

Invariants:
    - national_id is exactly 8 ASCII digits [0-9]; other Unicode digits are rejected
    - email and phone are required and non-blank
    - Returns normalized (stripped) values; raises ValidationError on the first failure
    - check_required is shared by every service entry point that takes free text
"""

import re

from tramites.core.errors import ValidationError

NATIONAL_ID_PATTERN = re.compile(r"^[0-9]{8}$")


def check_national_id(national_id: str | None) -> str:
    if national_id is None or not NATIONAL_ID_PATTERN.fullmatch(national_id):
        raise ValidationError(
            "National id must be exactly 8 digits",
            field="national_id",
            code="INVALID_NATIONAL_ID",
        )
    return national_id


def check_required(value: str | None, field: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(f"{field} is required", field=field)
    return value.strip()


def validate_registration(data: dict) -> dict:
    """Validate raw registration data and return the normalized fields."""
    return {
        "national_id": check_national_id(data.get("national_id")),
        "email": check_required(data.get("email"), "email"),
        "phone": check_required(data.get("phone"), "phone"),
        "full_name": (data.get("full_name") or "").strip(),
        "address": (data.get("address") or "").strip(),
    }
