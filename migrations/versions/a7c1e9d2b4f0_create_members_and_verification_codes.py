"""create_members_and_verification_codes

Create the members table and the verification_codes table used by the
find-id and password reset flows.

Revision ID: a7c1e9d2b4f0
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "a7c1e9d2b4f0"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

member_type = sa.Enum("GENERAL", "CORPORATE", "INSURANCE", name="membertype")
member_status = sa.Enum("ACTIVE", "WITHDRAWN", name="memberstatus")
verification_channel = sa.Enum("PHONE", "EMAIL", name="verificationchannel")
verification_purpose = sa.Enum(
    "FIND_ID", "RESET_PASSWORD", "SIGNUP", "CHANGE_PHONE", name="verificationpurpose"
)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            onupdate=sa.func.now(),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "members",
        sa.Column("id", sa.VARCHAR(21), primary_key=True),
        sa.Column("login_id", sa.String(20), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=True),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone_number", sa.String(20), nullable=False),
        sa.Column("member_type", member_type, nullable=False),
        sa.Column("is_approved", sa.Boolean(), nullable=False),
        sa.Column("status", member_status, nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_members_login_id", "members", ["login_id"], unique=True)
    op.create_index("ix_members_email", "members", ["email"], unique=True)
    op.create_index("ix_members_phone_number", "members", ["phone_number"], unique=True)

    op.create_table(
        "verification_codes",
        sa.Column("id", sa.VARCHAR(21), primary_key=True),
        sa.Column("channel", verification_channel, nullable=False),
        sa.Column("target", sa.String(255), nullable=False),
        sa.Column("purpose", verification_purpose, nullable=False),
        sa.Column("code", sa.String(10), nullable=False),
        sa.Column("is_used", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_verification_codes_target", "verification_codes", ["target"])
    op.create_index(
        "verification_codes_lookup_idx",
        "verification_codes",
        ["target", "purpose", "created_at"],
    )
    # Retention purge scans by expiry
    op.create_index("ix_verification_codes_expires_at", "verification_codes", ["expires_at"])


def downgrade() -> None:
    op.drop_index("ix_verification_codes_expires_at", table_name="verification_codes")
    op.drop_index("verification_codes_lookup_idx", table_name="verification_codes")
    op.drop_index("ix_verification_codes_target", table_name="verification_codes")
    op.drop_table("verification_codes")

    op.drop_index("ix_members_phone_number", table_name="members")
    op.drop_index("ix_members_email", table_name="members")
    op.drop_index("ix_members_login_id", table_name="members")
    op.drop_table("members")

    bind = op.get_bind()
    for enum_type in (verification_purpose, verification_channel, member_status, member_type):
        enum_type.drop(bind, checkfirst=True)
