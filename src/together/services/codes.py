"""One-time code and reset token generators."""

import secrets

from together.config import settings


def generate_code(length: int | None = None) -> str:
    """Generate a zero-padded numeric one-time code.

    Drawn uniformly from ``0 .. 10**length - 1`` using the ``secrets`` CSPRNG.
    """
    digits = length or settings.verification_code_length
    return str(secrets.randbelow(10**digits)).zfill(digits)


def generate_reset_token() -> str:
    """Generate an unguessable password reset token (32 random bytes, hex)."""
    return secrets.token_hex(32)
