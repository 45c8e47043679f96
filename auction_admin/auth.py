import logging
from itsdangerous import URLSafeTimedSerializer, SignatureExpired, BadSignature
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.middleware.base import BaseHTTPMiddleware

from auction_admin.config import settings

logger = logging.getLogger(__name__)

_serializer = URLSafeTimedSerializer(settings.AUTH_SECRET_KEY)


def create_token(username: str) -> str:
    return _serializer.dumps(username, salt="auth")


def verify_token(token: str) -> str | None:
    try:
        return _serializer.loads(token, salt="auth", max_age=settings.AUTH_TOKEN_MAX_AGE)
    except (SignatureExpired, BadSignature):
        return None


def _bearer_token(request: Request) -> str | None:
    auth_header = request.headers.get("authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:]
    return None


def current_username(request: Request) -> str:
    """Username stored on the request by the middleware, "system" when auth is off."""
    return getattr(request.state, "username", None) or "system"


# --- Router ---

router = APIRouter(prefix="/api/auth", tags=["auth"])


class LoginRequest(BaseModel):
    username: str
    password: str


@router.post("/login")
async def login(req: LoginRequest):
    if req.username == settings.AUTH_USERNAME and req.password == settings.AUTH_PASSWORD:
        token = create_token(req.username)
        return {"success": True, "token": token, "username": req.username}
    logger.warning(f"Rejected login for {req.username!r}")
    return JSONResponse(status_code=401, content={"success": False, "error": "Invalid username or password"})


@router.post("/check")
async def check_token(request: Request):
    token = _bearer_token(request)
    username = verify_token(token) if token else None
    if username:
        return {"success": True, "valid": True, "username": username}
    return JSONResponse(status_code=401, content={"success": False, "valid": False, "error": "Invalid or expired token"})


# --- Middleware ---

PUBLIC_PATHS = {"/api/health"}
PUBLIC_PREFIXES = ("/api/auth/",)


class AuthMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        path = request.url.path

        if (
            not settings.AUTH_ENABLED
            or not path.startswith("/api/")
            or path in PUBLIC_PATHS
            or any(path.startswith(p) for p in PUBLIC_PREFIXES)
        ):
            return await call_next(request)

        # Header, or query param for file downloads
        token = _bearer_token(request) or request.query_params.get("token")
        username = verify_token(token) if token else None
        if username:
            request.state.username = username
            return await call_next(request)

        return JSONResponse(status_code=401, content={"success": False, "error": "Not authenticated"})
