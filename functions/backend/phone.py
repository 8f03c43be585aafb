"""
Phone number validation and the verify-request input boundary.
"""

from __future__ import annotations

import json
import re

from pydantic import ValidationError

from backend.errors import PhoneValidationError
from backend.schemas import VerifyPhoneRequest

# Mainland China mobile numbers: 11 digits, leading 1, carrier digit 3-9.
PHONE_PATTERN = re.compile(r"1[3-9][0-9]{9}")


def is_valid_phone(candidate: object) -> bool:
    return isinstance(candidate, str) and PHONE_PATTERN.fullmatch(candidate) is not None


def validate_phone(candidate: object) -> str:
    """
    Return ``candidate`` unchanged if it is a well-formed phone number.

    No normalization is attempted: surrounding whitespace, separators and
    country codes all cause rejection.
    """
    if not is_valid_phone(candidate):
        raise PhoneValidationError()
    return candidate


def parse_verify_request(raw_body: bytes) -> VerifyPhoneRequest:
    """
    Parse a verify request body.

    The body is either a JSON object or a JSON string that itself encodes the
    object. Anything else is rejected as an invalid phone.
    """
    try:
        payload = json.loads(raw_body or b"null")
        if isinstance(payload, str):
            payload = json.loads(payload)
    except (ValueError, UnicodeDecodeError) as exc:
        raise PhoneValidationError() from exc

    if not isinstance(payload, dict):
        raise PhoneValidationError()
    try:
        request = VerifyPhoneRequest.model_validate(payload)
    except ValidationError as exc:
        raise PhoneValidationError() from exc
    validate_phone(request.phone)
    return request


def mask_phone(phone: str) -> str:
    if len(phone) < 7:
        return "***"
    return f"{phone[:3]}****{phone[-4:]}"
