"""
auth/validation.py -- Input shape rules for registration.

These are the semantic checks Pydantic cannot express on its own (e-mail
shape, password strength policy). They live in auth/ rather than api/ so the
auth core enforces them regardless of which transport calls it.

Password policy: at least 6 characters, at least one letter and one digit,
characters limited to ASCII letters, ASCII digits and @$!%*#?&. The 72-byte
ceiling is bcrypt's input limit, measured on the UTF-8 encoding -- bcrypt
rejects longer input outright, so a longer secret would be unhashable rather
than merely truncated.

Layer rule: stdlib only.
"""

from __future__ import annotations

import re

IDENTITY_MAX_LENGTH = 255
PASSWORD_MAX_LENGTH = 72
DISPLAY_NAME_MAX_LENGTH = 100

_IDENTITY_RE = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
_PASSWORD_RE = re.compile(r"(?=.*[A-Za-z])(?=.*[0-9])[A-Za-z0-9@$!%*#?&]{6,}")
_WHITESPACE_RE = re.compile(r"\s+")


def normalize_identity(value: str) -> str:
    """Strip and lower-case an identity. E-mail addresses compare case-insensitively here."""
    return value.strip().lower()


def is_valid_identity(value: str) -> bool:
    return 0 < len(value) <= IDENTITY_MAX_LENGTH and _IDENTITY_RE.fullmatch(value) is not None


def is_valid_password(value: str) -> bool:
    # fullmatch, not match + $: $ also matches before a trailing newline.
    return len(value.encode("utf-8")) <= PASSWORD_MAX_LENGTH and _PASSWORD_RE.fullmatch(value) is not None


def sanitize_display_name(value: str) -> str:
    """Trim and collapse runs of whitespace to a single space."""
    return _WHITESPACE_RE.sub(" ", value.strip())


def is_valid_display_name(value: str) -> bool:
    return 0 < len(value) <= DISPLAY_NAME_MAX_LENGTH
