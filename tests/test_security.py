"""
Tests for security helpers and configuration guards.
"""

import pytest
from pydantic import ValidationError as PydanticValidationError

from checkmate_auth.core.config import Settings
from checkmate_auth.core.security import security, BACKUP_CODE_ALPHABET
from checkmate_auth.utils.validators import (
    clean_ip_address,
    is_valid_email,
    normalize_email,
    parse_user_agent
)


@pytest.mark.unit
@pytest.mark.security
class TestPasswordHashing:
    """Test password hashing functionality."""

    def test_hash_password(self):
        password = "TestPassword123!"
        hashed = security.hash_password(password)

        assert hashed != password
        assert hashed.startswith("$argon2")  # Argon2 hash prefix

    def test_verify_password(self):
        hashed = security.hash_password("TestPassword123!")

        assert security.verify_password("TestPassword123!", hashed) is True
        assert security.verify_password("WrongPassword", hashed) is False

    def test_same_password_different_salt(self):
        assert security.hash_password("TestPassword123!") != security.hash_password("TestPassword123!")

    def test_password_strength(self):
        assert security.validate_password_strength("LongEnough1!")[0] is True

        is_valid, errors = security.validate_password_strength("short")
        assert is_valid is False
        assert any("at least" in e for e in errors)

        is_valid, errors = security.validate_password_strength("password")
        assert is_valid is False
        assert "Password is too common" in errors


@pytest.mark.unit
@pytest.mark.security
class TestCodesAndDigests:
    """Test OTP, backup code, and token digest helpers."""

    def test_numeric_token(self):
        code = security.generate_numeric_token(6)

        assert len(code) == 6
        assert code.isdigit()

    def test_backup_codes_format(self):
        codes = security.generate_backup_codes(count=10)

        assert len(codes) == 10
        assert len(set(codes)) == 10
        for code in codes:
            left, right = code.split("-")
            assert len(left) == len(right) == 4
            assert all(c in BACKUP_CODE_ALPHABET for c in left + right)

    def test_normalize_backup_code(self):
        assert security.normalize_backup_code(" abcd-ef12 ") == "ABCDEF12"
        assert security.normalize_backup_code("ABCD EF12") == "ABCDEF12"

    def test_hash_token_is_stable_sha256(self):
        digest = security.hash_token("some-token")

        assert digest == security.hash_token("some-token")
        assert digest != security.hash_token("some-token2")
        assert len(digest) == 64
        # SHA-256("abc")
        assert security.hash_token("abc") == (
            "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
        )

    def test_constant_time_equals(self):
        assert security.constant_time_equals("abc", "abc") is True
        assert security.constant_time_equals("abc", "abd") is False


@pytest.mark.unit
class TestValidators:
    """Test input normalization helpers."""

    def test_email(self):
        assert normalize_email("  Intern@Example.COM ") == "intern@example.com"
        assert is_valid_email("intern@example.com") is True
        assert is_valid_email("not-an-email") is False
        assert is_valid_email("") is False

    def test_clean_ip_address(self):
        assert clean_ip_address("192.168.1.10") == "192.168.1.10"
        assert clean_ip_address("::1") == "::1"
        assert clean_ip_address("testclient") is None
        assert clean_ip_address(None) is None

    def test_parse_user_agent(self):
        chrome_windows = (
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/120.0 Safari/537.36"
        )
        safari_iphone = (
            "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
            "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
        )

        assert parse_user_agent(chrome_windows) == {"browser": "Chrome", "os": "Windows", "device": "Desktop"}
        assert parse_user_agent(safari_iphone) == {"browser": "Safari", "os": "iOS", "device": "Mobile"}
        assert parse_user_agent(None)["browser"] == "Unknown"


@pytest.mark.unit
@pytest.mark.security
class TestSettings:
    """Test configuration guards."""

    def test_signing_keys_must_differ(self):
        with pytest.raises(PydanticValidationError):
            Settings(JWT_SECRET_KEY="same-key", REFRESH_SECRET_KEY="same-key")

    def test_distinct_signing_keys_accepted(self):
        config = Settings(JWT_SECRET_KEY="access-key", REFRESH_SECRET_KEY="refresh-key", LOG_LEVEL="debug")

        assert config.LOG_LEVEL == "DEBUG"
        assert config.MAX_CONCURRENT_SESSIONS == 3
        assert config.MAX_LOGIN_ATTEMPTS == 5
