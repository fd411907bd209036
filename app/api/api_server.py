"""
FastAPI server for the destination directory.

Wires settings, the database session factory and external collaborators
onto ``app.state`` and renders every response as ``{status, message, data}``.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy.orm import Session, sessionmaker
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.directory import router as directory_router
from app.api.rate_limit import limiter
from app.core.config import Settings, load_settings
from app.core.database import create_engine_from_url, create_session_factory, init_db, seed_categories
from app.core.exceptions import DirectoryException
from app.core.logging_config import setup_logging
from app.core.security import TokenService
from app.core.sentry_integration import capture_exception, init_sentry
from app.core.storage import LocalObjectStorage, ObjectStorage, TempUploadStore
from app.integrations.payment_service import PaymentProcessor, StripePaymentProcessor
from app.integrations.text_generation import OpenAITextGenerator, TextGenerator
from app.worker.job_queue import ArqJobQueue, JobQueue

logger = logging.getLogger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"status": "error", "message": message, "data": None},
    )


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "The given data was invalid."
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
    message = str(first.get("msg", "Invalid value"))
    return f"{location}: {message}" if location else message


def install_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(DirectoryException)
    async def directory_exception_handler(request: Request, exc: DirectoryException):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return _error(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return _error(422, _validation_message(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
        capture_exception(exc, request={"method": request.method, "path": request.url.path})
        return _error(500, "Internal server error")


def create_api_app(
    settings: Settings | None = None,
    session_factory: sessionmaker[Session] | None = None,
    payments: PaymentProcessor | None = None,
    text_generator: TextGenerator | None = None,
    jobs: JobQueue | None = None,
    storage: ObjectStorage | None = None,
    temp_store: TempUploadStore | None = None,
) -> FastAPI:
    """
    Create FastAPI application.

    Collaborators not passed in are built from settings: a SQLAlchemy engine
    for DATABASE_URL, Stripe payments, OpenAI text generation, the arq job
    queue and local object storage.
    """
    settings = settings or load_settings()
    setup_logging(settings.log_level)

    engine = None
    if session_factory is None:
        engine = create_engine_from_url(settings.database_url)
        session_factory = create_session_factory(engine)

    owned_clients: list[Any] = []
    if payments is None:
        payments = StripePaymentProcessor(settings.payment)
        owned_clients.append(payments)
    if jobs is None:
        jobs = ArqJobQueue(settings.redis_url or "redis://localhost:6379/0")
        owned_clients.append(jobs)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Directory API starting...")
        init_sentry(environment=settings.environment)
        if engine is not None and settings.database_url.startswith("sqlite"):
            init_db(engine)
        with session_factory() as session:
            seed_categories(session)
        yield
        logger.info("Directory API shutting down...")
        for client in owned_clients:
            await client.close()
        if engine is not None:
            engine.dispose()

    app = FastAPI(
        title="Destination Directory API",
        description="REST API for destinations, bookings and business subscriptions",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )

    app.state.settings = settings
    app.state.session_factory = session_factory
    app.state.token_service = TokenService(settings.auth)
    app.state.payments = payments
    app.state.text_generator = text_generator or OpenAITextGenerator(settings.openai)
    app.state.jobs = jobs
    app.state.storage = storage or LocalObjectStorage(settings.storage.root, settings.storage.public_url)
    app.state.temp_store = temp_store or TempUploadStore(settings.storage.temp_dir)

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    allowed_origins = list(settings.cors_origins)
    if settings.is_dev:
        allowed_origins.extend(["http://localhost:3000", "http://localhost:5173", "http://127.0.0.1:8080"])

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Requested-With", "Sentry-Trace", "Baggage"],
        expose_headers=["Content-Length", "Content-Type"],
    )

    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response

    install_exception_handlers(app)
    app.include_router(directory_router)

    @app.get("/health")
    async def health():
        return {"status": "success", "message": "ok", "data": {"version": app.version}}

    return app


def run_api_server(host: str = "0.0.0.0", port: int = 8000) -> None:
    app = create_api_app()
    logger.info(f"Starting Directory API on http://{host}:{port}")
    uvicorn.run(app, host=host, port=port, log_level="info", access_log=True)


if __name__ == "__main__":
    run_api_server()
