"""Normalization and masking of verification targets."""

import re

from email_validator import EmailNotValidError, validate_email

from together.models import VerificationChannel
from together.services.errors import ValidationError

PHONE_PATTERN = re.compile(r"^01[0-9]{8,9}$")


def normalize_phone(value: str) -> str:
    """Strip separators from a Korean mobile number and validate it.

    Examples:
        normalize_phone("010-1234-5678") -> "01012345678"
    """
    digits = re.sub(r"[\s\-]", "", value)
    if not PHONE_PATTERN.match(digits):
        raise ValidationError("올바른 휴대폰 번호 형식이 아닙니다.")
    return digits


def normalize_email(value: str) -> str:
    """Validate an email address and return it lower-cased."""
    try:
        result = validate_email(value.strip(), check_deliverability=False)
    except EmailNotValidError as e:
        raise ValidationError("올바른 이메일 형식이 아닙니다.") from e
    return result.normalized.lower()


def normalize_target(value: str) -> tuple[VerificationChannel, str]:
    """Classify a target as email or phone and normalize it.

    Returns:
        (channel, normalized target)

    Raises:
        ValidationError: if the value is neither a valid email nor phone number
    """
    value = (value or "").strip()
    if not value:
        raise ValidationError("인증 대상이 비어 있습니다.")
    if "@" in value:
        return VerificationChannel.EMAIL, normalize_email(value)
    return VerificationChannel.PHONE, normalize_phone(value)


def validate_code_format(code: str, length: int) -> str:
    """Reject anything that is not exactly ``length`` digits."""
    code = (code or "").strip()
    if len(code) != length or not code.isascii() or not code.isdigit():
        raise ValidationError("인증번호 형식이 올바르지 않습니다.")
    return code


def mask_target(target: str) -> str:
    """Mask a target for log output.

    Examples:
        mask_target("01012345678") -> "010****5678"
        mask_target("hong@example.com") -> "ho***@example.com"
    """
    if "@" in target:
        local, _, domain = target.partition("@")
        return f"{local[:2]}***@{domain}"
    if len(target) > 7:
        return f"{target[:3]}****{target[-4:]}"
    return "****"


def mask_login_id(login_id: str) -> str:
    """Partially hide a login id before showing it to an unauthenticated user."""
    if len(login_id) <= 4:
        return login_id[0] + "***"
    return login_id[:2] + "***" + login_id[-2:]
