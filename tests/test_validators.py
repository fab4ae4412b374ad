"""
Tests for input validation and sanitization.
"""

import uuid

import pytest

from qr_service.core.exceptions import ValidationError
from qr_service.core.validators import (
    is_valid_url,
    sanitize_qr_code_id,
    validate_credentials,
    validate_destination_url,
    validate_qr_code_input,
)


class TestURLValidation:
    """Test URL validation function."""

    def test_valid_urls(self):
        """Test that valid URLs are accepted."""
        valid_urls = [
            "http://example.com",
            "https://example.com/menu",
            "https://www.example.com/path/to/page",
            "http://subdomain.example.com:8080/path?query=value",
            "http://localhost:3000/preview",
            "http://intranet/menu",  # single-label host
            "http://[::1]:8080/menu",
            "http://127.0.0.1:8000/r/abc",
        ]
        for url in valid_urls:
            assert is_valid_url(url), f"Should be valid: {url}"

    def test_invalid_urls(self):
        """Test that invalid URLs are rejected."""
        invalid_urls = [
            "not-a-url",
            "ftp://example.com",  # only web schemes
            "javascript:alert(1)",
            "example.com",  # Missing scheme
            "",
            "http://",  # Missing domain
            "https://exa mple.com",
            "https://example.com:99999/menu",  # port out of range
            "https://example.com:abc/menu",
            "https://example..com/menu",  # empty label
            "http://.com",
            "data:text/html,hi",
        ]
        for url in invalid_urls:
            assert not is_valid_url(url), f"Should be invalid: {url}"


class TestQRCodeInput:
    """Test the name/URL rules applied on create."""

    def test_trims_fields(self):
        name, url = validate_qr_code_input("  Menu  ", "  https://example.com/menu  ")
        assert name == "Menu"
        assert url == "https://example.com/menu"

    def test_reports_every_violation_in_one_message(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_qr_code_input("   ", "not-a-url")

        assert exc_info.value.errors == ["Name is required", "Invalid URL"]
        assert str(exc_info.value) == "Name is required, Invalid URL"

    def test_name_length_limit(self):
        validate_qr_code_input("x" * 100, "https://example.com")
        with pytest.raises(ValidationError, match="at most 100 characters"):
            validate_qr_code_input("x" * 101, "https://example.com")

    def test_url_length_limit(self):
        url = "https://example.com/" + "a" * 2029
        assert len(url) == 2049
        with pytest.raises(ValidationError, match="at most 2048 characters"):
            validate_destination_url(url)

        assert validate_destination_url(url[:-1]) == url[:-1]


class TestQRCodeIdSanitization:

    def test_accepts_uuid(self):
        qr_id = str(uuid.uuid4())
        assert sanitize_qr_code_id(qr_id) == qr_id
        assert sanitize_qr_code_id(f" {qr_id.upper()} ") == qr_id

    @pytest.mark.parametrize("value", ["", None, "nonexistent-id", "1234", "../etc/passwd", "a" * 100])
    def test_rejects_malformed(self, value):
        assert sanitize_qr_code_id(value) is None


def test_credentials_normalize_email():
    assert validate_credentials("  Ana@Example.COM ", "secret123") == "ana@example.com"


def test_credentials_collect_errors():
    with pytest.raises(ValidationError) as exc_info:
        validate_credentials("nobody", "123")
    assert len(exc_info.value.errors) == 2
