"""
FastAPI application entrypoint.

Registers routers, configures CORS, initializes telemetry,
and creates service instances on startup.
"""

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ragchat.core.config import get_settings
from ragchat.core.exceptions import ChatError, UpstreamError
from ragchat.core.telemetry import setup_telemetry
from ragchat.routers import chat, feedback, health
from ragchat.services.auth import ZeroDBAuthService
from ragchat.services.completion import CompletionService
from ragchat.services.feedback import FeedbackService
from ragchat.services.rag import ChatOrchestrator
from ragchat.services.search import ZeroDBSearchService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(application: FastAPI):
    """
    Application lifespan handler.
    Initializes service clients on startup, cleans up on shutdown.
    """
    settings = get_settings()

    # Configure logging
    logging.basicConfig(level=settings.log_level)

    # Initialize telemetry
    setup_telemetry(settings)

    # Initialize service clients
    zerodb_http = httpx.AsyncClient(
        base_url=settings.zerodb_api_url,
        timeout=httpx.Timeout(settings.zerodb_request_timeout),
    )
    auth_service = ZeroDBAuthService(settings, zerodb_http)
    search_service = ZeroDBSearchService(settings, zerodb_http)
    completion_service = CompletionService(settings)

    # Store in app state for dependency injection
    application.state.chat_orchestrator = ChatOrchestrator(
        auth_service, search_service, completion_service
    )
    application.state.feedback_service = FeedbackService(
        settings, auth_service, zerodb_http
    )

    logger.info("ZeroDB RAG Chat API started.")
    yield
    logger.info("ZeroDB RAG Chat API shutting down.")
    await completion_service.close()
    await zerodb_http.aclose()


app = FastAPI(
    title="ZeroDB RAG Chat API",
    description="Retrieval-augmented chat over the ZeroDB knowledge base.",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS
settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ChatError)
async def chat_error_handler(request: Request, exc: ChatError) -> JSONResponse:
    """Translate pipeline errors into status codes without upstream detail."""
    if isinstance(exc, UpstreamError):
        logger.error(
            "%s %s failed: %s (upstream status %s)",
            request.method,
            request.url.path,
            exc.message,
            exc.status_code,
        )
    else:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict())


# Register routers
app.include_router(health.router)
app.include_router(chat.router)
app.include_router(feedback.router)
