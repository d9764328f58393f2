from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from campusdesk.api.responses import format_validation_errors
from campusdesk.api.routes import activity, announcements, auth, bookings, dashboard, health, issues, rooms, users
from campusdesk.core.config import get_settings
from campusdesk.core.exceptions import AppError, ServerError
from campusdesk.core.logging import configure_logging
from campusdesk.core.middleware import RequestLoggingMiddleware, RequestSizeLimitMiddleware, SecurityHeadersMiddleware
from campusdesk.db.bootstrap import ensure_database_schema
from campusdesk.services.uploads import ensure_upload_dirs

settings = get_settings()
logger = logging.getLogger("campusdesk.errors")


@asynccontextmanager
async def lifespan(_: FastAPI):
    configure_logging(settings)
    ensure_database_schema()
    ensure_upload_dirs()
    yield


def _error_body(message: str, errors: list | None = None, **extra) -> dict:
    body = {"status": "error", "message": message}
    if errors:
        body["errors"] = errors
    body.update(extra)
    return jsonable_encoder(body)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    body = _error_body(exc.message, exc.errors, **exc.extra)
    if isinstance(exc, ServerError) and exc.detail and settings.is_development:
        body["detail"] = exc.detail
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(status_code=exc.status_code, content=body, headers=headers)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content=_error_body("Validation failed", format_validation_errors(exc.errors())))


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return JSONResponse(status_code=exc.status_code, content=_error_body(message), headers=getattr(exc, "headers", None))


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    logger.warning("Integrity error on %s %s: %s", request.method, request.url.path, exc.orig)
    return JSONResponse(status_code=400, content=_error_body("Duplicate or conflicting record"))


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Database error on %s %s", request.method, request.url.path)
    body = _error_body("Database error")
    if settings.is_development:
        body["detail"] = str(exc)
    return JSONResponse(status_code=500, content=body)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    body = _error_body("Internal server error")
    if settings.is_development:
        body["detail"] = str(exc)
    return JSONResponse(status_code=500, content=body)


app = FastAPI(title=settings.project_name, lifespan=lifespan)
app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(RequestValidationError, request_validation_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(IntegrityError, integrity_error_handler)
app.add_exception_handler(SQLAlchemyError, database_error_handler)
app.add_exception_handler(Exception, unhandled_error_handler)

app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(RequestSizeLimitMiddleware, max_bytes=settings.max_request_size_bytes)
app.add_middleware(SecurityHeadersMiddleware, settings=settings)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix=settings.api_prefix, tags=["health"])
app.include_router(auth.router, prefix=f"{settings.api_prefix}/auth", tags=["auth"])
app.include_router(users.router, prefix=f"{settings.api_prefix}/users", tags=["users"])
app.include_router(bookings.router, prefix=f"{settings.api_prefix}/bookings", tags=["bookings"])
app.include_router(issues.router, prefix=f"{settings.api_prefix}/issues", tags=["issues"])
app.include_router(announcements.router, prefix=f"{settings.api_prefix}/announcements", tags=["announcements"])
app.include_router(rooms.router, prefix=f"{settings.api_prefix}/rooms", tags=["rooms"])
app.include_router(dashboard.router, prefix=f"{settings.api_prefix}/dashboard", tags=["dashboard"])
app.include_router(activity.router, prefix=settings.api_prefix, tags=["activity"])
