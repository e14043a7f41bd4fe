"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data containers, near-zero logic). Stores and the
service do the work; these own the domain shape.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class PublicUser:
    """The only user shape allowed to cross the API boundary (no hash)."""

    id: int
    identity: str
    display_name: str


@dataclass
class UserRecord:
    """A registered account as persisted by UserStore.

    identity is the normalized e-mail address: unique across all records and
    immutable after creation. password_hash is an opaque bcrypt string; it is
    excluded from repr so an accidental log line or traceback cannot print it.

    id is None before the record is written to the database.
    """

    identity: str
    display_name: str
    password_hash: str = field(repr=False)
    id: int | None = None
    created_at: str = ""  # ISO 8601, set by store on insert

    def public_view(self) -> PublicUser:
        return PublicUser(id=self.id, identity=self.identity, display_name=self.display_name)


@dataclass(frozen=True)
class Credentials:
    """Request-scoped identity + plaintext secret. Never persisted, never logged."""

    identity: str
    secret: str = field(repr=False)


@dataclass(frozen=True)
class Claims:
    """Verified contents of a bearer token. Timestamps are aware UTC datetimes."""

    subject: int
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class LoginResult:
    """Success payload of AuthService.login(). Failures are raised as AuthError subclasses."""

    token: str = field(repr=False)
    user: PublicUser
    expires_in: int  # seconds


@dataclass(frozen=True)
class RequestContext:
    """Per-request authentication context handed explicitly to route handlers.

    Built by auth.dependencies.require_context() after the bearer token
    verifies; handlers receive it as a parameter instead of reading any
    request-global state.
    """

    subject_id: int
    claims: Claims
