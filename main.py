import inspect
import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from openai import AsyncOpenAI

from routes.auth_route import router as auth_router
from routes.files_route import router as files_router
from routes.profile_route import router as profile_router
from services.openai.content_analyzer import ContentAnalyzer
from services.session_registry import SessionRegistry
from utils.database_init import AsyncDatabaseInitializer
from utils.logging_config import setup_logging
from utils.settings import load_settings

LOGGER = logging.getLogger(__name__)


async def _close_quietly(client) -> None:
    """Close a client exposing aclose/close, sync or async."""
    if client is None:
        return
    aclose = getattr(client, "aclose", None) or getattr(client, "close", None)
    if aclose is None:
        return
    try:
        result = aclose()
        if inspect.isawaitable(result):
            await result
    except Exception as exc:
        LOGGER.warning("Error while closing %s: %s", type(client).__name__, exc)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan manager to initialize:
      - settings and logging
      - the SQLite database (durable, at DATABASE_DIR/app.db)
      - the OpenAI async client and the content analyzer
      - the HTTP client used for the identity provider
      - the session registry
    and attach them to `app.state`.
    """
    settings = load_settings()
    setup_logging(settings.log_level)
    app.state.settings = settings

    db_initializer = AsyncDatabaseInitializer()
    await db_initializer.ensure_database()
    app.state.db_initializer = db_initializer

    if not settings.identity_api_key:
        raise RuntimeError("IDENTITY_API_KEY environment variable is not set")

    try:
        openai_client = AsyncOpenAI()
    except Exception as exc:
        raise RuntimeError("Failed to initialize OpenAI Async client") from exc
    app.state.openai_client = openai_client

    app.state.http_client = httpx.AsyncClient(timeout=30.0)
    app.state.session_registry = SessionRegistry(
        db_initializer,
        ContentAnalyzer(openai_client, model=settings.openai_model),
        key_prefix=settings.storage_key_prefix,
    )

    try:
        yield
    finally:
        app.state.session_registry.close_all()
        await _close_quietly(getattr(app.state, "http_client", None))
        await _close_quietly(getattr(app.state, "openai_client", None))


def create_app(lifespan_handler=lifespan) -> FastAPI:
    """
    Create and configure the FastAPI application instance.
    """
    app = FastAPI(title="Drive", lifespan=lifespan_handler)

    @app.get("/health")
    async def health(request: Request):
        """
        Simple health check that reports which shared clients are present.
        """
        state = request.app.state
        return {
            "ok": True,
            "db_initialized": hasattr(state, "db_initializer"),
            "openai_available": getattr(state, "openai_client", None) is not None,
            "identity_available": getattr(state, "http_client", None) is not None,
            "open_sessions": len(state.session_registry) if hasattr(state, "session_registry") else 0,
        }

    # Register application routers
    app.include_router(auth_router)
    app.include_router(files_router)
    app.include_router(profile_router)

    return app


app = create_app()
