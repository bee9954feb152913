"""Open Broker Remover - FastAPI Application."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from broker_remover.api.routes import brokers, data, requests
from broker_remover.config import Settings, get_settings
from broker_remover.db.database import create_engine, create_session_factory, init_db
from broker_remover.db.repository import BrokerRepository
from broker_remover.exceptions import NotFoundError, PersistenceError, ValidationError
from broker_remover.logging_config import configure_logging
from broker_remover.services.automation import AutomationEngine
from broker_remover.services.data_transfer import DataTransferService
from broker_remover.services.progress import ProgressTracker
from broker_remover.services.request_manager import RequestManager

logger = logging.getLogger(__name__)

VERSION = "1.0.0"


def build_services(settings: Settings, session_factory, **engine_kwargs) -> dict:
    """Wire repository, automation engine, tracker and manager together."""
    repository = BrokerRepository(
        session_factory,
        strict_transitions=settings.strict_status_transitions,
        match_limit=settings.match_limit,
    )
    engine = AutomationEngine.from_settings(settings, **engine_kwargs)
    tracker = ProgressTracker(repository)
    manager = RequestManager(repository, engine, tracker, concurrency=settings.orchestrator_concurrency)
    return {
        "repository": repository,
        "engine": engine,
        "tracker": tracker,
        "manager": manager,
        "data_transfer": DataTransferService(repository),
    }


def create_app(settings: Settings | None = None, **engine_kwargs) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Initialize database and services on startup."""
        configure_logging(settings.log_level, settings.log_format)
        db_engine = create_engine(settings.database_url, echo=settings.debug)
        session_factory = create_session_factory(db_engine)
        await init_db(db_engine, session_factory, seed=settings.seed_brokers)

        for name, service in build_services(settings, session_factory, **engine_kwargs).items():
            setattr(app.state, name, service)
        logger.info("%s started", settings.app_name)
        yield
        await db_engine.dispose()

    app = FastAPI(
        lifespan=lifespan,
        title=settings.app_name,
        description="Find data brokers holding your data and track opt-out requests",
        version=VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(PersistenceError)
    async def persistence_error_handler(request: Request, exc: PersistenceError):
        logger.error("Persistence failure on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=500, content={"detail": "Database error"})

    # Include routers
    app.include_router(brokers.router, prefix=f"{settings.api_prefix}/brokers", tags=["Data Brokers"])
    app.include_router(requests.router, prefix=f"{settings.api_prefix}/requests", tags=["Removal Requests"])
    app.include_router(data.router, prefix=f"{settings.api_prefix}/data", tags=["Data Management"])

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "name": settings.app_name,
            "version": VERSION,
            "status": "running",
        }

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


app = create_app()
