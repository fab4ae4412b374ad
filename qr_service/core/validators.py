"""
Input Validators and Sanitizers

This module provides validation and sanitization functions for user inputs.
Validation always runs before any store mutation, so a rejected input never
leaves a partial write behind.

Rules:
- name: required, 1-100 characters after trimming
- destination_url: required, absolute http(s) URL (pydantic HttpUrl), <= 2048 chars
- QR code ids: canonical UUID strings
"""

import uuid
from typing import List, Optional, Tuple

from pydantic import HttpUrl, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from qr_service.core.exceptions import ValidationError

MAX_NAME_LENGTH = 100
MAX_URL_LENGTH = 2048
MIN_PASSWORD_LENGTH = 6

_http_url = TypeAdapter(HttpUrl)


def sanitize_qr_code_id(qr_code_id: str) -> Optional[str]:
    """
    Sanitize and validate a QR code identifier.

    Identifiers are UUIDs. Anything else is rejected before it reaches
    a query, so malformed ids are answered without touching the store.

    Args:
        qr_code_id: The identifier taken from the URL path

    Returns:
        Normalized identifier if valid, None otherwise
    """
    if not qr_code_id or not isinstance(qr_code_id, str):
        return None

    qr_code_id = qr_code_id.strip()

    # 36 = canonical hyphenated form
    if len(qr_code_id) > 36:
        return None

    try:
        return str(uuid.UUID(qr_code_id))
    except ValueError:
        return None


def is_valid_url(url: str) -> bool:
    """
    Validate URL format and security.

    Parsing is delegated to pydantic's ``HttpUrl``, which only admits
    http/https, so javascript:, data:, file: and other schemes fail, as do
    bad ports. Hosts with empty labels (``example..com``, ``.com``) are
    rejected on top of that.

    Args:
        url: The URL string to validate

    Returns:
        True if valid and safe, False otherwise
    """
    if not url or not isinstance(url, str):
        return False

    if any(ch.isspace() for ch in url):
        return False

    try:
        parsed = _http_url.validate_python(url)
    except PydanticValidationError:
        return False

    host = parsed.host or ""
    # a single trailing dot is a fully qualified name
    labels = host[:-1].split(".") if host.endswith(".") else host.split(".")
    return bool(host) and all(labels)


def url_errors(url: Optional[str]) -> Tuple[Optional[str], List[str]]:
    """Trim ``url`` and return it together with every violated URL rule."""
    errors = []
    cleaned = (url or "").strip()
    if not is_valid_url(cleaned):
        errors.append("Invalid URL")
    if len(cleaned) > MAX_URL_LENGTH:
        errors.append(f"URL must be at most {MAX_URL_LENGTH} characters")
    return cleaned, errors


def name_errors(name: Optional[str]) -> Tuple[Optional[str], List[str]]:
    """Trim ``name`` and return it together with every violated name rule."""
    errors = []
    cleaned = (name or "").strip()
    if not cleaned:
        errors.append("Name is required")
    elif len(cleaned) > MAX_NAME_LENGTH:
        errors.append(f"Name must be at most {MAX_NAME_LENGTH} characters")
    return cleaned, errors


def validate_qr_code_input(name: Optional[str], destination_url: Optional[str]) -> Tuple[str, str]:
    """
    Validate the fields of a new QR code.

    Returns:
        Tuple of (trimmed name, trimmed destination URL)

    Raises:
        ValidationError: listing every violated constraint
    """
    cleaned_name, errors = name_errors(name)
    cleaned_url, more_errors = url_errors(destination_url)
    errors.extend(more_errors)
    if errors:
        raise ValidationError(errors)
    return cleaned_name, cleaned_url


def validate_destination_url(destination_url: Optional[str]) -> str:
    """Validate a replacement destination URL, raising ValidationError."""
    cleaned_url, errors = url_errors(destination_url)
    if errors:
        raise ValidationError(errors)
    return cleaned_url


def validate_credentials(email: Optional[str], password: Optional[str]) -> str:
    """Validate sign-up credentials and return the normalized email."""
    errors = []
    cleaned_email = (email or "").strip().lower()
    local, _, domain = cleaned_email.partition("@")
    if not local or "." not in domain:
        errors.append("Invalid email")
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        errors.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if errors:
        raise ValidationError(errors)
    return cleaned_email
