"""
auth/service.py -- Registration, login and token authentication workflows.

AuthService is the only component in auth/ with real control flow. It
orchestrates the three leaf collaborators (UserStore, PasswordHasher,
TokenIssuer) and turns every failure into a typed AuthError.

Per-request flow:
  register: Received -> Validated -> hash -> store.create -> Registered
  login:    Received -> lookup -> verify -> issue -> Authenticated
  any step may instead end in Rejected (an AuthError subclass).

Security:
  [C1] login() collapses "no such identity" and "wrong secret" into the same
       InvalidCredentials error, and runs bcrypt in both branches so timing
       does not separate them either. A malformed identity on login is also
       InvalidCredentials -- InvalidInput there would hint at the registration
       policy, not at existence, but one error kind keeps the contract simple.

  Logging never includes the plaintext, the hash, or the token. Failed logins
  are logged without the submitted identity.

Blocking: register() and login() run bcrypt and block for the work factor.
Call them from a worker thread (FastAPI sync handlers), not the event loop.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging

from auth.errors import InvalidCredentials, InvalidInput, Unauthorized
from auth.models import Claims, Credentials, LoginResult, PublicUser
from auth.passwords import PasswordHasher
from auth.store import UserStore
from auth.tokens import TokenIssuer
from auth.validation import (
    is_valid_display_name,
    is_valid_identity,
    is_valid_password,
    normalize_identity,
    sanitize_display_name,
)

logger = logging.getLogger("policylab.auth")


class AuthService:
    """Authentication core.

    Usage:
        service = AuthService(store, PasswordHasher(rounds=12), TokenIssuer(key, 3600))
        user = service.register("alice@example.com", "Secret123", "Alice")
        result = service.login("alice@example.com", "Secret123")
        subject_id = service.authenticate(result.token)
    """

    def __init__(self, store: UserStore, hasher: PasswordHasher, issuer: TokenIssuer) -> None:
        self.store = store
        self.hasher = hasher
        self.issuer = issuer

    def register(self, identity: str, plaintext: str, display_name: str) -> PublicUser:
        """Create an account and return its public view.

        Raises:
            InvalidInput:      identity is not an e-mail address, the password
                               fails the strength policy, or the display name
                               is empty / too long after sanitizing.
            DuplicateIdentity: the identity is already registered.
            StoreUnavailable:  the credential store failed.
        """
        creds = Credentials(identity=normalize_identity(identity), secret=plaintext)
        name = sanitize_display_name(display_name)

        if not is_valid_identity(creds.identity):
            raise InvalidInput("Identity must be a valid e-mail address.")
        if not is_valid_password(creds.secret):
            raise InvalidInput(
                "Password must be 6-72 characters and contain at least one letter and one digit "
                "(allowed symbols: @$!%*#?&)."
            )
        if not is_valid_display_name(name):
            raise InvalidInput("Display name must be 1-100 characters.")

        password_hash = self.hasher.hash(creds.secret)
        record = self.store.create(creds.identity, password_hash, name)
        logger.info("User registered (id=%d)", record.id)
        return record.public_view()

    def login(self, identity: str, plaintext: str) -> LoginResult:
        """Verify credentials and issue a bearer token.

        Raises:
            InvalidCredentials: unknown identity or wrong secret (indistinguishable).
            StoreUnavailable:   the credential store failed.
        """
        creds = Credentials(identity=normalize_identity(identity), secret=plaintext)

        record = self.store.find_by_identity(creds.identity) if is_valid_identity(creds.identity) else None
        if record is None:
            # Equalize timing -- do NOT return before running bcrypt [C1]
            self.hasher.verify_dummy(creds.secret)
            logger.warning("Login rejected: invalid credentials")
            raise InvalidCredentials()
        if not self.hasher.verify(creds.secret, record.password_hash):
            logger.warning("Login rejected: invalid credentials")
            raise InvalidCredentials()

        token = self.issuer.issue(record.id)
        logger.info("User logged in (id=%d)", record.id)
        return LoginResult(token=token, user=record.public_view(), expires_in=self.issuer.ttl_seconds)

    def authenticate(self, token: str | None) -> int:
        """Resolve a bearer token to its subject id.

        Raises:
            Unauthorized: no token was presented.
            TokenExpired: authentic but past its expiry.
            TokenInvalid: tampered, malformed, or signed with another key.
        """
        return self.verify_session(token).subject

    def verify_session(self, token: str | None) -> Claims:
        """Like authenticate(), but return the full verified Claims."""
        if not token:
            raise Unauthorized()
        return self.issuer.verify(token)

    def profile(self, subject_id: int) -> PublicUser:
        """Return the public view for an authenticated subject.

        A token can outlive its account (there is no revocation), so a subject
        with no record is treated as unauthenticated.
        """
        record = self.store.get_by_id(subject_id)
        if record is None:
            raise Unauthorized()
        return record.public_view()
