"""SQLModel database models."""

from together.models.base import TimestampMixin
from together.models.member import Member, MemberStatus, MemberType
from together.models.verification_code import (
    VerificationChannel,
    VerificationCode,
    VerificationPurpose,
)

__all__ = [
    "Member",
    "MemberStatus",
    "MemberType",
    "TimestampMixin",
    "VerificationChannel",
    "VerificationCode",
    "VerificationPurpose",
]
