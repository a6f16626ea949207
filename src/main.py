"""School students/groups/payments FastAPI application."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from src.core.config import Settings, settings as default_settings
from src.core.database import Database
from src.core.exceptions import AppException
from src.core.exceptions.handlers import (
    app_exception_handler,
    http_exception_handler,
    sqlalchemy_db_error_handler,
    validation_exception_handler,
)
from src.modules.dashboard.router import router as dashboard_router
from src.modules.debts.router import router as debts_router
from src.modules.groups.router import router as groups_router
from src.modules.payments.router import router as payments_router
from src.modules.students.router import router as students_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler: owns the database handle."""
    database: Database = app.state.database
    # Startup
    database.open()
    await database.create_all()
    logger.info("Application started")
    yield
    # Shutdown
    await database.close()
    logger.info("Application stopped")


def create_app(settings: Settings | None = None, database: Database | None = None) -> FastAPI:
    """Create and configure FastAPI application."""
    settings = settings or default_settings
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="School Payments",
        description="Students, groups, payments and debt tracking for a small school",
        version="0.1.0",
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.database = database or Database(settings.database_url, echo=settings.debug)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_db_error_handler)

    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    # Routers
    app.include_router(students_router, prefix="/api/v1")
    app.include_router(groups_router, prefix="/api/v1")
    app.include_router(payments_router, prefix="/api/v1")
    app.include_router(debts_router, prefix="/api/v1")
    app.include_router(dashboard_router, prefix="/api/v1")

    return app


app = create_app()
