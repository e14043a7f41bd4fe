"""
auth/dependencies.py -- FastAPI Depends() helpers for bearer authentication.

Only one auth method exists: Authorization: Bearer <token>. The token is
verified by the AuthService stored on app.state at startup.

require_context() is the request guard. Attach it to a whole route group with
APIRouter(dependencies=[Depends(require_context)]) and/or take it as a handler
parameter to receive the resolved RequestContext explicitly. On failure it
lets the Unauthorized subclass (Unauthorized / TokenExpired / TokenInvalid)
propagate; the app-level AuthError handler renders it as 401 with
WWW-Authenticate: Bearer.

Layer rule: no imports from api/ or core/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

import logging

from fastapi import Request

from auth.errors import Unauthorized
from auth.models import RequestContext
from auth.service import AuthService

logger = logging.getLogger("policylab.auth")


def bearer_token(request: Request) -> str | None:
    """Return the token from an `Authorization: Bearer <token>` header, or None."""
    auth_header = request.headers.get("Authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def require_context(request: Request) -> RequestContext:
    """Require a valid bearer token and return the per-request context.

    Use as a FastAPI dependency:
        @router.get("/protected")
        async def route(ctx: RequestContext = Depends(require_context)): ...

    FastAPI caches dependency results per request, so a router-level guard
    and a handler parameter share one verification.
    """
    auth: AuthService = request.app.state.auth
    try:
        claims = auth.verify_session(bearer_token(request))
    except Unauthorized as exc:
        logger.warning("Rejected request to %s: %s", request.url.path, exc.code)
        raise
    return RequestContext(subject_id=claims.subject, claims=claims)
