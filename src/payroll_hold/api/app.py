"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from payroll_hold import __version__
from payroll_hold.api.routes import employees_router, health_router, hold_router, salary_router
from payroll_hold.config import get_settings
from payroll_hold.database import create_schema, dispose_engine, init_engine
from payroll_hold.errors import (
    AlreadyProcessed,
    AuthorizationError,
    ConcurrentModificationError,
    DuplicateAccrual,
    InsufficientHoldBalance,
    InvalidSalaryComputation,
    InvalidTransitionError,
    NotFound,
    PayrollHoldError,
    StaleWithdrawalRequest,
)
from payroll_hold.events import EventEmitter, log_event
from payroll_hold.logging_config import configure_logging
from payroll_hold.services.hold_ledger import Clock, utcnow

logger = logging.getLogger(__name__)

# Most specific first; InvalidWithdrawalAmount resolves via its base class.
ERROR_STATUS: list[tuple[type[PayrollHoldError], int]] = [
    (NotFound, status.HTTP_404_NOT_FOUND),
    (AuthorizationError, status.HTTP_403_FORBIDDEN),
    (InvalidSalaryComputation, status.HTTP_422_UNPROCESSABLE_CONTENT),
    (InsufficientHoldBalance, status.HTTP_422_UNPROCESSABLE_CONTENT),
    (AlreadyProcessed, status.HTTP_409_CONFLICT),
    (StaleWithdrawalRequest, status.HTTP_409_CONFLICT),
    (InvalidTransitionError, status.HTTP_409_CONFLICT),
    (ConcurrentModificationError, status.HTTP_409_CONFLICT),
    (DuplicateAccrual, status.HTTP_500_INTERNAL_SERVER_ERROR),
]


def status_for(exc: PayrollHoldError) -> int:
    """HTTP status code for a domain error."""
    for error_type, status_code in ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    # Startup
    if app.state.session_factory is None:
        engine, factory = init_engine()
        await create_schema(engine)
        app.state.session_factory = factory
        app.state.owns_engine = True
    yield
    # Shutdown
    if app.state.owns_engine:
        await dispose_engine()


def create_app(
    session_factory: async_sessionmaker[AsyncSession] | None = None,
    emitter: EventEmitter | None = None,
    clock: Clock | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Without a session factory the global engine from DATABASE_URL is
    created on startup.
    """
    settings = get_settings()
    configure_logging(settings)

    app = FastAPI(
        title="Payroll Hold API",
        description="Monthly salary processing with a withdrawable salary hold",
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan,
    )

    if emitter is None:
        emitter = EventEmitter()
        emitter.on_all(log_event)
    app.state.session_factory = session_factory
    app.state.owns_engine = False
    app.state.emitter = emitter
    app.state.clock = clock or utcnow

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(PayrollHoldError)
    async def domain_exception_handler(request: Request, exc: PayrollHoldError) -> JSONResponse:
        """Map domain errors to their HTTP status."""
        status_code = status_for(exc)
        if status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=status_code, content=exc.to_dict())

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
        """Handle invalid arguments rejected by the services."""
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": str(exc), "code": "BAD_REQUEST"},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.error(
            "Unhandled error on %s %s",
            request.method,
            request.url.path,
            exc_info=(type(exc), exc, exc.__traceback__),
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "An unexpected error occurred",
                "code": "INTERNAL_ERROR",
            },
        )

    # Include routers
    app.include_router(health_router)
    app.include_router(salary_router, prefix="/api/v1")
    app.include_router(hold_router, prefix="/api/v1")
    app.include_router(employees_router, prefix="/api/v1")

    return app
