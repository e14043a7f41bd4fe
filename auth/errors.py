"""
auth/errors.py -- Typed failure taxonomy for the authentication core.

Every failure the auth core can produce is one of these classes. Callers
branch on the class (or on .code), never on message text. The API layer
maps each class to an HTTP status via .status_code and renders the shared
error envelope; the auth core itself knows nothing about HTTP beyond that
one integer.

Messages are fixed, user-safe strings. No subclass accepts the plaintext
secret, the password hash, or the signing key as an argument, so no error
path can echo them back to a client or into a log line.

Hierarchy:
  AuthError
    InvalidInput          400  malformed identity / weak secret / bad display name
    DuplicateIdentity     409  identity already registered
    InvalidCredentials    401  unknown identity OR wrong secret (deliberately ambiguous)
    Unauthorized          401  no usable bearer token
      TokenExpired        401  signature valid, exp in the past
      TokenInvalid        401  tampered, malformed, or wrong-key token
    StoreUnavailable      503  credential store failure (caller decides retry)

Layer rule: stdlib only.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for all auth core failures."""

    code: str = "auth_error"
    message: str = "Authentication failed."
    status_code: int = 400

    def __init__(self, message: str | None = None) -> None:
        self.message = message or type(self).message
        super().__init__(self.message)


class InvalidInput(AuthError):
    code = "invalid_input"
    message = "Invalid input."
    status_code = 400


class DuplicateIdentity(AuthError):
    code = "duplicate_identity"
    message = "An account with that identity already exists."
    status_code = 409


class InvalidCredentials(AuthError):
    """Raised for both unknown identity and wrong secret -- never distinguish them."""

    code = "invalid_credentials"
    message = "Invalid identity or password."
    status_code = 401


class Unauthorized(AuthError):
    code = "unauthorized"
    message = "Authentication required."
    status_code = 401


class TokenExpired(Unauthorized):
    code = "token_expired"
    message = "Session expired. Please log in again."


class TokenInvalid(Unauthorized):
    code = "token_invalid"
    message = "Invalid token."


class StoreUnavailable(AuthError):
    code = "store_unavailable"
    message = "Credential store is temporarily unavailable."
    status_code = 503
