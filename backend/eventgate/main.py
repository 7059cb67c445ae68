"""FastAPI application entry point.

Run with ``uvicorn --factory eventgate.main:create_app`` or
``python -m eventgate.main``.
"""
import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from eventgate.catalog import load_catalog
from eventgate.config import Settings
from eventgate.database import Base, make_engine, make_session_factory
from eventgate.errors import AuthError, DomainError, ErrorCode, ValidationError
from eventgate.logging_config import setup_logging
from eventgate.routers import auth, rsvp
from eventgate.services.access_gate import AccessGate
from eventgate.services.token_service import TokenIssuer, parse_duration

# Import models so Base.metadata knows about them
from eventgate.models.rsvp import RSVP  # noqa: F401

logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "Content-Security-Policy": (
        "default-src 'self'; "
        "style-src 'self' 'unsafe-inline' https://fonts.googleapis.com; "
        "font-src 'self' https://fonts.gstatic.com; "
        "img-src 'self' data: https:; "
        "script-src 'self'; connect-src 'self'; frame-src 'none'; "
        "object-src 'none'; media-src 'self'; child-src 'none'"
    ),
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains; preload",
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}


def _validation_details(exc: RequestValidationError) -> list[dict[str, str]]:
    details = []
    for error in exc.errors():
        # loc is ("body", "guestName") / ("path", "event_id"); drop the source
        loc = [str(part) for part in error.get("loc", ())[1:]]
        details.append({"field": ".".join(loc) or "body", "message": error.get("msg", "Invalid value")})
    return details


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthError) else None
        return JSONResponse(status_code=exc.status_code, content=exc.to_response(), headers=headers)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        error = ValidationError(_validation_details(exc))
        return JSONResponse(status_code=error.status_code, content=error.to_response())

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        message = "Resource not found" if exc.status_code == 404 else exc.detail
        return JSONResponse(status_code=exc.status_code, content={"error": message}, headers=exc.headers)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(
            "Unhandled error on %s %s from %s",
            request.method,
            request.url.path,
            request.client.host if request.client else "unknown",
        )
        # Served by ServerErrorMiddleware, outside log_and_harden
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal server error"},
            headers=SECURITY_HEADERS,
        )


def create_app(settings: Optional[Settings] = None, configure_logging: bool = True) -> FastAPI:
    """Build the application.

    Fails with ConfigError when the signing secret is missing or the event
    catalog cannot be loaded, so a misconfigured process never starts serving.
    """
    settings = settings or Settings()
    if configure_logging:
        setup_logging(settings.LOG_LEVEL)

    expires_in = parse_duration(settings.JWT_EXPIRES_IN)
    tokens = TokenIssuer(
        settings.JWT_SECRET,
        expires_in=expires_in,
        algorithm=settings.JWT_ALGORITHM,
        issuer=settings.JWT_ISSUER,
        audience=settings.JWT_AUDIENCE,
    )
    catalog = load_catalog(settings)
    engine = make_engine(settings.DATABASE_URL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Create tables on startup for SQLite dev mode; other databases use Alembic.
        if settings.DATABASE_URL.startswith("sqlite"):
            Base.metadata.create_all(bind=engine)
        logger.info("Event gate API starting (%s)", settings.ENVIRONMENT)
        yield
        engine.dispose()
        logger.info("Shutting down")

    app = FastAPI(
        title="Event Gate",
        description="Password-gated event pages with RSVP tallies",
        version=settings.VERSION,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = make_session_factory(engine)
    app.state.catalog = catalog
    app.state.access_gate = AccessGate(
        catalog,
        tokens,
        failed_login_delay=settings.FAILED_LOGIN_DELAY_SECONDS,
        expires_in_label=settings.JWT_EXPIRES_IN,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS.split(","),
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type", "Authorization"],
        max_age=86400,
    )

    @app.middleware("http")
    async def log_and_harden(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        response.headers.update(SECURITY_HEADERS)
        logger.info(
            "%s %s %d %.1fms",
            request.method,
            request.url.path,
            response.status_code,
            (time.perf_counter() - started) * 1000,
        )
        return response

    _register_exception_handlers(app)

    app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])
    app.include_router(rsvp.router, prefix="/api/rsvp", tags=["RSVP"])

    @app.get("/api/health")
    def health_check(request: Request):
        database = "connected"
        try:
            with request.app.state.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError:
            logger.error("Health check could not reach the database")
            database = ErrorCode.STORAGE_UNAVAILABLE.value
        return {
            "status": "healthy" if database == "connected" else "unhealthy",
            "database": database,
            "version": settings.VERSION,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(create_app(), host="0.0.0.0", port=3001)
