"""
auth/tokens.py -- Signed, expiring bearer tokens (JWT via python-jose).

Security design decisions:
  JWT: python-jose with HS256. Tokens carry only the subject (user id, as a
       string -- RFC 7519 requires sub to be a StringOrURI), iat and exp.
       Identity, display name and role are looked up server-side when needed,
       never trusted from the token body.

  Verification: jose checks the signature before it looks at any claim, so a
       tampered token always reports TokenInvalid, and only an authentic token
       can report TokenExpired. The two stay distinct so callers can say
       "session expired" instead of "invalid token".

  Signing key: injected by the caller from core.config.Settings.secret_key at
       startup. This module never reads configuration on its own.

  Stateless: there is no revocation list. A token is valid until its exp.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from jose import ExpiredSignatureError, JWTError, jwt

from auth.errors import TokenExpired, TokenInvalid
from auth.models import Claims

_ALGORITHM = "HS256"

_DECODE_OPTIONS = {
    "require_sub": True,
    "require_iat": True,
    "require_exp": True,
}


class TokenIssuer:
    """Issue and verify bearer tokens bound to one signing key.

    Usage:
        issuer = TokenIssuer(secret_key=settings.secret_key, ttl_seconds=3600)
        token = issuer.issue(42)
        claims = issuer.verify(token)   # Claims(subject=42, ...)
    """

    def __init__(self, secret_key: str, ttl_seconds: int = 3600, algorithm: str = _ALGORITHM) -> None:
        if not secret_key:
            raise ValueError("TokenIssuer requires a signing key.")
        if ttl_seconds <= 0:
            raise ValueError("Token TTL must be positive.")
        self._secret_key = secret_key
        self.ttl_seconds = ttl_seconds
        self.algorithm = algorithm

    def __repr__(self) -> str:
        return f"TokenIssuer(algorithm={self.algorithm!r}, ttl_seconds={self.ttl_seconds})"

    def issue(self, subject_id: int, ttl: int | None = None) -> str:
        """Encode a signed token for subject_id.

        Args:
            subject_id: Numeric user ID stored in the DB.
            ttl:        Lifetime in seconds. None uses the configured TTL.
        """
        lifetime = self.ttl_seconds if ttl is None else ttl
        issued_at = datetime.now(timezone.utc)
        payload = {
            "sub": str(subject_id),
            "iat": issued_at,
            "exp": issued_at + timedelta(seconds=lifetime),
        }
        return jwt.encode(payload, self._secret_key, algorithm=self.algorithm)

    def verify(self, token: str) -> Claims:
        """Verify signature and expiry; return the embedded Claims.

        Raises:
            TokenExpired: signature is valid but exp is in the past.
            TokenInvalid: anything else -- bad signature, malformed token,
                          missing claims, non-numeric subject.
        """
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[self.algorithm], options=_DECODE_OPTIONS)
        except ExpiredSignatureError as exc:
            raise TokenExpired() from exc
        except JWTError as exc:
            raise TokenInvalid() from exc

        try:
            subject = int(payload["sub"])
            issued_at = datetime.fromtimestamp(payload["iat"], tz=timezone.utc)
            expires_at = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
        except (KeyError, TypeError, ValueError) as exc:
            raise TokenInvalid() from exc
        return Claims(subject=subject, issued_at=issued_at, expires_at=expires_at)
