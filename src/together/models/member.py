"""Member account model."""

from enum import Enum

from sqlmodel import Field, SQLModel

from together.models.base import TimestampMixin, generate_nanoid


class MemberType(str, Enum):
    """Kind of member account."""

    GENERAL = "GENERAL"
    CORPORATE = "CORPORATE"
    INSURANCE = "INSURANCE"  # Requires admin approval


class MemberStatus(str, Enum):
    """Lifecycle status of a member account."""

    ACTIVE = "ACTIVE"
    WITHDRAWN = "WITHDRAWN"


class Member(TimestampMixin, SQLModel, table=True):
    """Website member account."""

    __tablename__ = "members"

    id: str = Field(default_factory=generate_nanoid, primary_key=True, max_length=21)
    login_id: str = Field(unique=True, index=True, max_length=20)
    password_hash: str | None = Field(default=None, max_length=255)  # None for SNS accounts
    name: str = Field(max_length=50)
    email: str = Field(unique=True, index=True, max_length=255)
    phone_number: str = Field(unique=True, index=True, max_length=20)
    member_type: MemberType = Field(default=MemberType.GENERAL)
    is_approved: bool = Field(default=True)
    status: MemberStatus = Field(default=MemberStatus.ACTIVE)

