"""Password hashing and strength tests."""

import pytest

from together.services.errors import ValidationError
from together.services.passwords import hash_password, validate_password_strength
from tests.conftest import password_matches


def test_hash_and_verify():
    hashed = hash_password("newpass456!")

    assert hashed.startswith("$argon2")
    assert password_matches("newpass456!", hashed)
    assert not password_matches("newpass457!", hashed)


def test_hashes_are_salted():
    assert hash_password("newpass456!") != hash_password("newpass456!")


@pytest.mark.parametrize("password", ["abcd1234", "abcdefg!", "1234567!", "Passw0rd!Passw0r"])
def test_strong_passwords(password):
    assert validate_password_strength(password) == password


@pytest.mark.parametrize(
    "password",
    ["short1!", "abcdefghij", "1234567890", "abc123!@#abc123!@", "abcd 1234"],
)
def test_weak_passwords(password):
    with pytest.raises(ValidationError):
        validate_password_strength(password)
