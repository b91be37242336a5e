"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from commission_ledger import __version__
from commission_ledger.api.routes import (
    audit_router,
    health_router,
    ledger_router,
    plans_router,
    tiers_router,
)
from commission_ledger.config import get_settings
from commission_ledger.database import create_schema, dispose_db, init_db
from commission_ledger.errors import (
    ConflictError,
    InputValidationError,
    InvariantViolationError,
    NotFoundError,
)
from commission_ledger.ledger import CommissionLedger
from commission_ledger.logging_config import configure_logging
from commission_ledger.providers import (
    InMemoryRepresentativeDirectory,
    InMemoryStatisticsProvider,
    load_reference_data,
)

logger = logging.getLogger(__name__)


def _build_ledger(session_factory: async_sessionmaker[AsyncSession]) -> CommissionLedger:
    """Facade over the configured providers."""
    settings = get_settings()
    if settings.reference_data_path:
        directory, statistics = load_reference_data(settings.reference_data_path)
        logger.info("Loaded reference data from %s", settings.reference_data_path)
    else:
        directory, statistics = InMemoryRepresentativeDirectory(), InMemoryStatisticsProvider()
        logger.warning("REFERENCE_DATA_PATH not set; representative directory is empty")
    return CommissionLedger(session_factory, directory, statistics)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    owns_engine = getattr(app.state, "ledger", None) is None
    if owns_engine:
        engine, session_factory = init_db()
        await create_schema(engine)
        app.state.session_factory = session_factory
        app.state.ledger = _build_ledger(session_factory)
    yield
    if owns_engine:
        await dispose_db()


def create_app(
    ledger: CommissionLedger | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Passing ``ledger`` wires the app to an existing facade and its session
    factory; otherwise both are built from settings at startup.
    """
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Commission Ledger API",
        description="Tiered commission ledger with review workflow and audit trail",
        version=__version__,
        lifespan=lifespan,
    )
    if ledger is not None:
        app.state.ledger = ledger
        app.state.session_factory = ledger.session_factory

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(InputValidationError)
    async def validation_error_handler(
        request: Request, exc: InputValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": str(exc), "code": "VALIDATION_ERROR", "errors": exc.errors},
        )

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"detail": str(exc), "code": "NOT_FOUND"},
        )

    @app.exception_handler(ConflictError)
    async def conflict_handler(request: Request, exc: ConflictError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={"detail": str(exc), "code": "CONFLICT"},
        )

    @app.exception_handler(InvariantViolationError)
    async def invariant_handler(request: Request, exc: InvariantViolationError) -> JSONResponse:
        logger.error("Invariant violation: %s", exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Ledger invariant violated", "code": "INVARIANT_VIOLATION"},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "An unexpected error occurred",
                "code": "INTERNAL_ERROR",
            },
        )

    # Include routers
    app.include_router(health_router)
    app.include_router(tiers_router, prefix="/api/v1")
    app.include_router(plans_router, prefix="/api/v1")
    app.include_router(ledger_router, prefix="/api/v1")
    app.include_router(audit_router, prefix="/api/v1")

    return app
