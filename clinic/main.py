"""
Main FastAPI application entry point.
Configures the application, middleware, and includes routers.
"""
from dotenv import load_dotenv

# Load environment variables from .env file first
load_dotenv()

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional
from fastapi import FastAPI, Request
import logging

from . import __version__
from .auth.router import router as auth_router
from .config import Settings, settings as default_settings
from .core.bootstrap import bootstrap_admin_if_needed
from .core.middleware import setup_middlewares
from .database import check_db, create_db_engine, create_session_factory, init_db
from .exceptions import register_exception_handlers

logger = logging.getLogger(__name__)

APP_NAME = "Dental Clinic Management System"


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI application around explicit settings.

    The engine, session factory and settings live on app.state. Startup
    connects to the store, prepares the schema and seeds the admin account;
    any failure there aborts startup before traffic is served.
    """
    settings = settings or default_settings
    engine = create_db_engine(settings)
    session_factory = create_session_factory(engine)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("🚀 Starting Clinic API...")
        init_db(engine, session_factory)
        with session_factory() as db:
            bootstrap_admin_if_needed(db, settings)
        logger.info(f"🌍 Environment: {settings.environment}")
        yield
        engine.dispose()
        logger.info("Clinic API stopped")

    app = FastAPI(
        title="Clinic API",
        description="Registration, login and account listing for the clinic system",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = session_factory

    register_exception_handlers(app)
    setup_middlewares(app, settings)
    app.include_router(auth_router)

    @app.get("/")
    def root():
        """
        Root endpoint with a map of the available API endpoints.
        """
        return {
            "message": f"Welcome to the {APP_NAME}!",
            "version": __version__,
            "apiEndpoints": {
                "health": "/api/health",
                "test": "/api/test",
                "register": "POST /api/register",
                "login": "POST /api/login",
                "users": "/api/users",
                "me": "/api/me",
                "info": "/api/info",
            },
        }

    @app.get("/api/health")
    def health_check(request: Request):
        """
        Health check endpoint for monitoring.
        """
        database_ok = check_db(request.app.state.session_factory)
        return {
            "status": "OK" if database_ok else "DEGRADED",
            "message": f"{APP_NAME} is running",
            "database": "connected" if database_ok else "unavailable",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.get("/api/test")
    def test_endpoint(request: Request):
        return {
            "message": "Server is running",
            "version": __version__,
            "environment": request.app.state.settings.environment,
        }

    @app.get("/api/info")
    def system_info():
        return {
            "name": APP_NAME,
            "version": __version__,
            "description": "Clinic management backend",
            "features": [
                "Patient management",
                "Appointment scheduling",
                "Treatment tracking",
                "Payment management",
                "Reporting",
            ],
            "status": "active",
            "lastUpdate": datetime.now(timezone.utc).isoformat(),
        }

    return app


configure_logging(default_settings)

# Create FastAPI application
app = create_app()


def run() -> None:
    """Serve the application with uvicorn on the configured host and port."""
    import uvicorn

    logger.info(f"🚀 Server listening on port {default_settings.port}")
    uvicorn.run(app, host=default_settings.host, port=default_settings.port)


if __name__ == "__main__":
    run()
