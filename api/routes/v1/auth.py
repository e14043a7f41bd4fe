"""
api/routes/v1/auth.py -- Authentication REST endpoints.

Routes:
  POST /api/v1/auth/register   -- create an account (public, rate-limited)
  POST /api/v1/auth/login      -- verify credentials, return bearer token (public, rate-limited)
  GET  /api/v1/auth/profile    -- public view of the current user (bearer)
  GET  /api/v1/auth/session    -- verified claims of the current token (bearer)

Handlers translate HTTP <-> AuthService calls and nothing else. Every
failure is an AuthError subclass raised by the service; the app-level
handler in api/main.py renders it with the right status and error code.

Concurrency:
  register and login are plain `def` handlers on purpose. They run bcrypt,
  which blocks for the whole work factor; FastAPI executes sync handlers on
  its worker threadpool, so a burst of registrations cannot stall the event
  loop or the token-only routes below. Do NOT convert them to `async def`.

Security:
  [H2] register and login are rate-limited per IP (api.limiter).
  [C1] login errors never reveal whether the identity exists.
  [M5] Cache-Control: no-store on login responses.
"""

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from api.limiter import limiter, login_limit, register_limit
from api.models import LoginRequest, LoginResponse, RegisterRequest, SessionResponse, UserResponse
from auth.dependencies import require_context
from auth.models import RequestContext
from auth.service import AuthService

# Auth policy:
# - POST /api/v1/auth/register: public -- account creation (403 when self-registration is off)
# - POST /api/v1/auth/login:    public -- must be reachable without a token
# - GET  /api/v1/auth/profile:  requires bearer token (router-level require_context)
# - GET  /api/v1/auth/session:  requires bearer token (router-level require_context)
router = APIRouter()
session_router = APIRouter(dependencies=[Depends(require_context)])


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.post("/auth/register", response_model=UserResponse, status_code=201)
@limiter.limit(register_limit)  # [H2] must sit BELOW @router so the registered endpoint is the limited one
def register(request: Request, body: RegisterRequest) -> UserResponse:
    """Create an account and return its public view (never the hash)."""
    if not request.app.state.settings.self_registration_enabled:
        raise HTTPException(
            status_code=403,
            detail={"code": "registration_disabled", "message": "Self-registration is disabled."},
        )
    auth: AuthService = request.app.state.auth
    user = auth.register(body.identity, body.password, body.display_name)
    return UserResponse.from_public(user)


@router.post("/auth/login", response_model=LoginResponse)
@limiter.limit(login_limit)  # [H2] brute-force mitigation
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with identity and password; return a bearer token.

    Wrong password and unknown identity produce the same 401
    "invalid_credentials" error [C1].
    """
    auth: AuthService = request.app.state.auth
    result = auth.login(body.identity, body.password)
    resp = JSONResponse(status_code=200, content=LoginResponse.from_result(result).model_dump())
    resp.headers["Cache-Control"] = "no-store"  # [M5]
    return resp


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@session_router.get("/auth/profile", response_model=UserResponse)
def profile(request: Request, ctx: RequestContext = Depends(require_context)) -> UserResponse:
    """Return the public view of the account behind the bearer token."""
    auth: AuthService = request.app.state.auth
    return UserResponse.from_public(auth.profile(ctx.subject_id))


@session_router.get("/auth/session", response_model=SessionResponse)
async def session(ctx: RequestContext = Depends(require_context)) -> SessionResponse:
    """Return the verified claims of the current token (no DB access)."""
    return SessionResponse(
        subject_id=ctx.subject_id,
        issued_at=ctx.claims.issued_at,
        expires_at=ctx.claims.expires_at,
    )
