"""Unit tests for password hashing, verification and the strength policy."""

import pytest

from bookhaven.auth.passwords import hash_password, password_meets_policy, verify_password


class TestHashPassword:
    """Test password hashing."""

    def test_hash_differs_from_plaintext(self):
        hashed = hash_password("Mypassword@1")
        assert isinstance(hashed, str)
        assert hashed != "Mypassword@1"

    def test_same_password_different_salts(self):
        """Hashing the same password twice should produce different hashes (different salts)."""
        assert hash_password("Samepassword@1") != hash_password("Samepassword@1")


class TestVerifyPassword:
    """Test password verification."""

    def test_correct_password_verifies(self):
        hashed = hash_password("Testpass@123")
        assert verify_password("Testpass@123", hashed) is True

    def test_wrong_password_fails(self):
        hashed = hash_password("Testpass@123")
        assert verify_password("Wrongpass@123", hashed) is False

    def test_unicode_password(self):
        hashed = hash_password("pässwördü")
        assert verify_password("pässwördü", hashed) is True
        assert verify_password("password", hashed) is False


class TestPasswordPolicy:
    @pytest.mark.parametrize("password", ["Testpass@123", "Aa1$aaaa", "Z9z%zzzzzz"])
    def test_strong_passwords(self, password):
        assert password_meets_policy(password)

    @pytest.mark.parametrize(
        "password",
        [
            "Short@1",  # too short
            "testpass@123",  # no uppercase
            "TESTPASS@123",  # no lowercase
            "Testpass@abc",  # no digit
            "Testpass1234",  # no symbol
            "Testpass@12 3",  # space not allowed
        ],
    )
    def test_weak_passwords(self, password):
        assert not password_meets_policy(password)
