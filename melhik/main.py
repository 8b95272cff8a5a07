# melhik/main.py
import logging
from datetime import datetime, timezone

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.gzip import GZipMiddleware

# ---- Load env (.env) ----
load_dotenv()

from melhik.errors import MelhikError
from melhik.utils.logging import setup_logging

# ---- Routers ----
from melhik.routers import auth as auth_router
from melhik.routers import sync as sync_router
from melhik.routers.admin import router as admin_router

setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="Melhik CMS")

# =============================================================================
# Middleware
# =============================================================================
# Full snapshots are large JSON documents
app.add_middleware(GZipMiddleware, minimum_size=500)


# =============================================================================
# Errors -> {error, message, timestamp}
# =============================================================================
def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _error_body(error: str, message: str, details=None) -> dict:
    body = {"error": error, "message": message, "timestamp": _now_iso()}
    if details is not None:
        body["details"] = details
    return body


@app.exception_handler(MelhikError)
async def handle_melhik_error(request: Request, exc: MelhikError):
    if exc.status_code >= 500:
        # internals stay in the log
        return JSONResponse(
            _error_body(exc.error, exc.message),
            status_code=exc.status_code,
        )
    return JSONResponse(
        _error_body(exc.error, exc.message, exc.details),
        status_code=exc.status_code,
    )


@app.exception_handler(RequestValidationError)
async def handle_request_validation(request: Request, exc: RequestValidationError):
    details = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]
    return JSONResponse(
        _error_body("Invalid input", "Request validation failed", details),
        status_code=400,
    )


@app.exception_handler(Exception)
async def handle_unexpected(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        _error_body("Internal server error", "An unexpected error occurred"),
        status_code=500,
    )


# =============================================================================
# Routes
# =============================================================================
@app.get("/api/health")
def health():
    return {"ok": True, "time": _now_iso()}


# Routers
app.include_router(sync_router.router)   # public: /api/sync/download, /api/sync/status
app.include_router(auth_router.router)   # /api/auth/login, /api/users/me/permissions
app.include_router(admin_router)         # token-guarded: /api/religions, /api/topics, /api/sync/trigger
