# backend/fame/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api import (
    api_admin,
    api_artists,
    api_broadcasts,
    api_cues,
    api_events,
    api_rehearsals,
    api_show_order,
    api_uploads,
    api_ws,
    auth,
)
from .core.config import settings
from .core.observability import setup_logging
from .crud import crud_user
from .middleware.security_headers import SecurityHeadersMiddleware
from .realtime import bus
from .realtime.hub import ensure_bus_started
from .storage import StorageError, get_store, paths
from .utils.envelope import ok
from .utils.errors import ApiError, error_body
from .utils.ids import now_iso

setup_logging()
logger = logging.getLogger(__name__)

def prepare_storage(store) -> None:
    """Create the empty user documents and the first super admin."""
    crud_user.initialize_data_structure(store)
    if settings.is_production and settings.SECRET_KEY == "fame-dev-secret-change-me":
        logger.warning("SECRET_KEY is the development default; session cookies can be forged")
    if settings.DEFAULT_ADMIN_BOOTSTRAP:
        if settings.is_production and settings.DEFAULT_ADMIN_PASSWORD == "changeme123":
            logger.warning("DEFAULT_ADMIN_PASSWORD is the placeholder; set a real password")
        crud_user.ensure_default_admin(store, settings.DEFAULT_ADMIN_EMAIL, settings.DEFAULT_ADMIN_PASSWORD)


@asynccontextmanager
async def lifespan(app: FastAPI):
    prepare_storage(_store())
    # Redis consumer for cross-worker websocket fan-out
    if bus.bus_enabled():
        await ensure_bus_started()
    try:
        yield
    finally:
        await bus.stop_consumer()


app = FastAPI(
    title="FAME Stage Management API",
    default_response_class=ORJSONResponse,
    lifespan=lifespan,
)

if "*" in settings.CORS_ORIGINS:
    # Credentials cannot be combined with a literal "*"; echo any origin instead
    app.add_middleware(
        CORSMiddleware,
        allow_origin_regex=".*",
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
else:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
logger.info("CORS origins set to: %s", settings.CORS_ORIGINS)
app.add_middleware(SecurityHeadersMiddleware, hsts=settings.is_production)


@app.middleware("http")
async def catch_exceptions(request: Request, call_next):
    """Turn unexpected failures into the standard error envelope."""
    try:
        return await call_next(request)
    except StorageError as exc:
        logger.error("Storage error at %s: %s", request.url.path, exc)
        return ORJSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=error_body("STORAGE_ERROR", "Storage is temporarily unavailable"),
        )
    except Exception as exc:  # pragma: no cover - generic handler
        logger.exception("Unhandled error: %s", exc)
        return ORJSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_body("INTERNAL_ERROR", "Internal server error"),
        )


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    return ORJSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.code, exc.message, exc.details),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(paths.InvalidKeyError)
async def invalid_key_handler(request: Request, exc: paths.InvalidKeyError):
    logger.warning("Rejected storage key at %s: %s", request.url.path, exc)
    return ORJSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body("INVALID_IDENTIFIER", "Identifiers may not contain path separators"),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    codes = {
        status.HTTP_401_UNAUTHORIZED: "UNAUTHORIZED",
        status.HTTP_403_FORBIDDEN: "FORBIDDEN",
        status.HTTP_404_NOT_FOUND: "NOT_FOUND",
        status.HTTP_405_METHOD_NOT_ALLOWED: "METHOD_NOT_ALLOWED",
    }
    code = codes.get(exc.status_code, "HTTP_ERROR")
    return ORJSONResponse(status_code=exc.status_code, content=error_body(code, str(exc.detail)))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Return validation errors as a 400 envelope, keyed by field."""
    errors = exc.errors()
    logger.warning("Validation error at %s: %s", request.url.path, errors)
    field_errors = {}
    for err in errors:
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        field_errors[".".join(loc) or "body"] = err.get("msg", "invalid")
    return ORJSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body("VALIDATION_ERROR", "Invalid request data", field_errors),
    )


api_prefix = settings.API_PREFIX

app.include_router(auth.router, prefix=f"{api_prefix}/auth", tags=["auth"])
app.include_router(api_events.router, prefix=f"{api_prefix}/events", tags=["events"])
app.include_router(api_artists.router, prefix=api_prefix, tags=["artists"])
app.include_router(api_cues.router, prefix=api_prefix, tags=["cues"])
app.include_router(api_broadcasts.router, prefix=api_prefix, tags=["emergency"])
app.include_router(api_show_order.router, prefix=api_prefix, tags=["show-order"])
app.include_router(api_rehearsals.router, prefix=api_prefix, tags=["rehearsals"])
app.include_router(api_uploads.router, prefix=api_prefix, tags=["uploads"])
app.include_router(api_admin.router, prefix=f"{api_prefix}/super-admin", tags=["super-admin"])
app.include_router(api_ws.router, tags=["realtime"])


def _store():
    # Honour test overrides of the storage dependency during startup too
    return app.dependency_overrides.get(get_store, get_store)()


@app.get(f"{api_prefix}/health", tags=["health"])
async def health():
    return ok({"status": "healthy", "storage": _store().backend_name, "timestamp": now_iso()})


@app.get("/healthz", tags=["health"])
async def healthz():
    """Liveness probe; does not touch storage."""
    return {"status": "ok"}


@app.get("/")
async def root():
    return {"message": "Welcome to the FAME Stage Management API"}
