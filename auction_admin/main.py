import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException

from auction_admin.config import settings
from auction_admin.db.database import async_session, init_db
from auction_admin.auth import AuthMiddleware, router as auth_router
from auction_admin.api.routes_auctions import router as auctions_router
from auction_admin.api.routes_bids import router as bids_router
from auction_admin.api.routes_category import router as category_router
from auction_admin.api.routes_export import router as export_router
from auction_admin.api.routes_profiles import router as profiles_router
from auction_admin.api.routes_winners import router as winners_router
from auction_admin.services.supabase_client import SupabaseError

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.CREATE_TABLES:
        await init_db()
    yield


app = FastAPI(title="Auction Admin", version="0.1.0", lifespan=lifespan)
app.add_middleware(AuthMiddleware)

logger = logging.getLogger(__name__)


def _error(status_code: int, message) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return _error(exc.status_code, exc.detail)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    messages = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        messages.append(f"{field}: {err.get('msg')}" if field else err.get("msg"))
    return _error(400, "; ".join(messages) or "Invalid request")


@app.exception_handler(SupabaseError)
async def supabase_exception_handler(request: Request, exc: SupabaseError):
    logger.error(f"Supabase call failed on {request.method} {request.url.path}: {exc}")
    return _error(502, str(exc))


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    tb = traceback.format_exc()
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}\n{tb}")
    return _error(500, str(exc))


@app.get("/api/health")
async def health_check():
    """Check DB connectivity."""
    try:
        async with async_session() as db:
            await db.execute(text("SELECT 1"))
        return {"success": True, "data": {"status": "ok", "database": "connected"}}
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return _error(503, str(e))


app.include_router(auth_router)
app.include_router(auctions_router)
app.include_router(winners_router)
app.include_router(profiles_router)
app.include_router(bids_router)
app.include_router(category_router)
app.include_router(export_router)
