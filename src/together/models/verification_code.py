"""One-time verification code model."""

from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Index
from sqlmodel import Field, SQLModel

from together.models.base import TimestampMixin, generate_nanoid


class VerificationChannel(str, Enum):
    """How a code reaches its target."""

    PHONE = "PHONE"
    EMAIL = "EMAIL"


class VerificationPurpose(str, Enum):
    """What a verified code authorizes."""

    FIND_ID = "FIND_ID"
    RESET_PASSWORD = "RESET_PASSWORD"
    SIGNUP = "SIGNUP"
    CHANGE_PHONE = "CHANGE_PHONE"


class VerificationCode(TimestampMixin, SQLModel, table=True):
    """A code issued to an email address or phone number.

    Rows are only mutated by validation: ``attempts`` grows on wrong guesses and
    ``is_used`` flips to true once. A row is authoritative only while it is the
    newest unused, unexpired, non-exhausted row for its (target, purpose).
    """

    __tablename__ = "verification_codes"
    __table_args__ = (
        Index("verification_codes_lookup_idx", "target", "purpose", "created_at"),
    )

    id: str = Field(default_factory=generate_nanoid, primary_key=True, max_length=21)
    channel: VerificationChannel
    target: str = Field(index=True, max_length=255, description="Normalized email or phone")
    purpose: VerificationPurpose
    code: str = Field(max_length=10)
    is_used: bool = Field(default=False)
    attempts: int = Field(default=0)
    expires_at: datetime = Field(
        index=True,
        sa_type=DateTime(timezone=True),  # type: ignore[call-overload]
        description="Code expiration time",
    )
