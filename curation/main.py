"""FastAPI application: review, agent configuration and queue intake endpoints."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from curation.api.errors import register_error_handlers
from curation.api.v1.endpoints import health
from curation.api.v1.router import api_router
from curation.core.config import settings
from curation.database.base import async_session_maker
from curation.database.client import close_database, init_database
from curation.services import event_handlers  # noqa: F401  (registers subscribers)
from curation.services.agent_configuration_service import AgentConfigurationService
from curation.temporal.client import close_temporal_client
from curation.utils.logging import get_logger

LOGGER = get_logger(__name__, level=settings.log_level)

REQUEST_ID_HEADER = "X-Request-ID"


async def _prepare_database() -> None:
    await init_database(auto_migrate=settings.db_auto_migrate)
    async with async_session_maker() as session:
        seeded = await AgentConfigurationService(session).seed_defaults()
    if seeded:
        LOGGER.info(f"Seeded {len(seeded)} agent configurations")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    LOGGER.info(f"Starting {settings.app_name} {settings.app_version} ({settings.environment})")
    try:
        await _prepare_database()
    except Exception as e:
        # Keep serving so /health reports the outage
        LOGGER.error(f"Database startup failed: {e}", exc_info=True)

    yield

    close_temporal_client()
    await close_database()
    LOGGER.info("Shutdown complete")


async def request_id_middleware(request: Request, call_next):
    request.state.request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid4())
    response = await call_next(request)
    response.headers[REQUEST_ID_HEADER] = request.state.request_id
    return response


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Human review and autonomy policy for agent-curated notes",
        lifespan=lifespan,
    )
    app.middleware("http")(request_id_middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )
    register_error_handlers(app)

    app.include_router(api_router, prefix=settings.api_v1_prefix)
    app.include_router(health.router, prefix="/health", tags=["Health"])

    @app.get("/", tags=["Root"], operation_id="get_service_index")
    async def index() -> Dict[str, str]:
        return {
            "service": settings.app_name,
            "version": settings.app_version,
            "docs": app.docs_url,
            "health": "/health",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "curation.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
