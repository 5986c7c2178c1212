"""FastAPI application entry point.

This module initialises the FastAPI app, configures logging and
registers API routes.  The `uvicorn` ASGI server can point to
``chatbot_interactions.main:app`` to serve the application.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from .config.app_config import AppConfig, get_app_config
from .controllers.admin_controller import router as admin_router
from .controllers.interaction_controller import router as interaction_router
from .services.session_manager import SessionManager
from .utils.error_handler import InteractionError, interaction_exception_handler
from .utils.logger import setup_logging


def create_app(session_manager: SessionManager | None = None, app_config: AppConfig | None = None) -> FastAPI:
    """Create and configure a FastAPI application.

    A ``session_manager`` can be injected (tests use one backed by an
    in-memory store); otherwise one is built from the environment.
    """
    app_config = app_config or get_app_config()
    setup_logging(app_config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await app.state.session_manager.close()
        logger.info("Session manager closed")

    app = FastAPI(title="Chatbot Interactions", version="0.1.0", lifespan=lifespan)
    app.state.session_manager = session_manager or SessionManager(app_config=app_config)

    # Enable CORS for all origins; adjust in production as needed
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(InteractionError, interaction_exception_handler)

    app.include_router(interaction_router)
    app.include_router(admin_router)

    @app.get("/health", tags=["Health"])
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        logger.debug("Health check invoked")
        return {"status": "ok"}

    return app


# Create an application instance for ASGI servers
app = create_app()
