"""AgentDesk FastAPI application assembly.

Wires auth and resource routers, logging and CORS middleware.
Run: uvicorn agentdesk.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from agentdesk.auth.router import auth_router
from agentdesk.config import get_settings
from agentdesk.customers.router import customers_router, notes_router
from agentdesk.users.router import agents_router, users_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log startup/shutdown. Schema changes are applied with Alembic, not here."""
    settings = get_settings()
    logger.info("AgentDesk starting (database=%s)", settings.database_url)
    yield
    logger.info("AgentDesk stopped")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    logging.basicConfig(level=logging.DEBUG if settings.debug else settings.log_level)

    app = FastAPI(title="AgentDesk", version="0.1.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(agents_router)
    app.include_router(customers_router)
    app.include_router(notes_router)

    @app.get("/api/health")
    def health() -> dict:
        return {"status": "ok"}

    return app


app = create_app()
