"""Password hashing and strength rules."""

import re

from argon2 import PasswordHasher

from together.services.errors import ValidationError

PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 16

_password_hasher = PasswordHasher()

_CHARACTER_CLASSES = (
    re.compile(r"[A-Za-z]"),
    re.compile(r"[0-9]"),
    re.compile(r"[^A-Za-z0-9]"),
)


def hash_password(plain_password: str) -> str:
    """Hash ``plain_password`` with argon2id."""
    return _password_hasher.hash(plain_password)


def validate_password_strength(password: str) -> str:
    """Enforce length and character mix for new passwords.

    A password must be 8-16 characters and combine at least two of letters,
    digits and special characters.
    """
    if not PASSWORD_MIN_LENGTH <= len(password) <= PASSWORD_MAX_LENGTH:
        raise ValidationError(
            f"비밀번호는 {PASSWORD_MIN_LENGTH}~{PASSWORD_MAX_LENGTH}자여야 합니다."
        )
    if any(ch.isspace() for ch in password):
        raise ValidationError("비밀번호에 공백을 포함할 수 없습니다.")

    classes = sum(1 for pattern in _CHARACTER_CLASSES if pattern.search(password))
    if classes < 2:
        raise ValidationError("비밀번호는 영문, 숫자, 특수문자 중 2가지 이상을 조합해야 합니다.")
    return password
