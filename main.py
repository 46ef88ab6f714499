import inspect
import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from openai import AsyncOpenAI

from routes.analyze_route import router as analyze_router
from routes.upload_route import router as upload_router
from utils.config import Settings
from utils.database_init import AsyncDatabaseInitializer
from utils.logging_config import configure_logging

load_dotenv()  # Load environment variables from .env file if present

LOGGER = logging.getLogger(__name__)


async def _close_client(client) -> None:
    """Close a client exposing `aclose` or `close`, sync or async."""
    if client is None:
        return
    aclose = getattr(client, "aclose", None) or getattr(client, "close", None)
    if aclose is None:
        return
    try:
        if inspect.iscoroutinefunction(aclose):
            await aclose()
        else:
            result = aclose()
            if inspect.isawaitable(result):
                await result
    except Exception:  # pylint: disable=broad-exception-caught
        LOGGER.warning("Error while closing %s", type(client).__name__, exc_info=True)


def create_app(
    settings: Optional[Settings] = None,
    *,
    openai_client=None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application instance.

    `settings`, `openai_client` and `http_client` may be supplied to bypass
    environment lookup and network clients (used by the tests). Clients passed
    in are not closed on shutdown; clients created here are.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Initialize the SQLite store, the inference client and the shared HTTP
        client, and attach them to `app.state`.
        """
        resolved = settings or Settings.from_env()
        configure_logging(resolved.log_level)
        app.state.settings = resolved

        db_initializer = AsyncDatabaseInitializer(resolved.database_dir)
        await db_initializer.ensure_database()
        app.state.db_initializer = db_initializer

        owned_openai = None
        if openai_client is not None:
            app.state.openai_client = openai_client
        else:
            if not resolved.openai_api_key:
                raise RuntimeError("OPENAI_API_KEY environment variable is not set")
            try:
                owned_openai = AsyncOpenAI(api_key=resolved.openai_api_key, timeout=resolved.inference_timeout)
            except Exception as exc:
                raise RuntimeError("Failed to initialize OpenAI Async client") from exc
            app.state.openai_client = owned_openai

        owned_http = None
        if http_client is not None:
            app.state.http_client = http_client
        else:
            owned_http = httpx.AsyncClient(timeout=resolved.fetch_timeout, follow_redirects=True)
            app.state.http_client = owned_http

        LOGGER.info(
            "Service ready: scout=%s sniper=%s threshold=%s db=%s",
            resolved.scout_model,
            resolved.sniper_model,
            resolved.confidence_threshold,
            db_initializer.db_path,
        )
        try:
            yield
        finally:
            await _close_client(owned_http)
            await _close_client(owned_openai)

    app = FastAPI(lifespan=lifespan)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(_request: Request, exc: RequestValidationError):
        """Report malformed bodies with the same envelope as other client errors."""
        errors = exc.errors()
        detail = errors[0].get("msg", "Invalid request body") if errors else "Invalid request body"
        return JSONResponse(status_code=400, content={"success": False, "error": detail})

    @app.get("/health")
    async def health(request: Request):
        """
        Simple health check that verifies DB initializer and inference client presence.
        """
        has_db = getattr(request.app.state, "db_initializer", None) is not None
        has_inference = getattr(request.app.state, "openai_client", None) is not None
        return {"ok": True, "db_initialized": has_db, "inference_available": has_inference}

    # Register application routers
    app.include_router(analyze_router)
    app.include_router(upload_router)

    return app


app = create_app()
