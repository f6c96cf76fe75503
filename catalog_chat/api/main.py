"""
FastAPI application - Main entry point
"""

from dotenv import load_dotenv

load_dotenv()

import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

import httpx
from fastapi import Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from catalog_chat.api.image_proxy import PROXY_PATH, router as image_proxy_router
from catalog_chat.assistant import AssistantClient
from catalog_chat.catalog import CatalogStore
from catalog_chat.chatbot.dependencies import api_key_protection, current_user_id
from catalog_chat.chatbot.orchestrator import ChatOrchestrator
from catalog_chat.error_handler import ErrorHandler
from catalog_chat.fallback_handler import FallbackHandler
from catalog_chat.response_processor import ResponseProcessor
from catalog_chat.utils.config_loader import ChatConfig, load_chat_config

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

CLEARED_MESSAGE = "Histórico limpo com sucesso!"
EMPTY_MESSAGE_ERROR = "Mensagem vazia"

# create_app() default: build the assistant client from config/env
_FROM_CONFIG = object()

error_handler = ErrorHandler()


def create_message_store():
    """Real Postgres when env is set, else the in-memory stub."""
    if os.getenv("DATABASE_URL") and os.getenv("USE_POSTGRES_CONVERSATIONS", "").lower() in ("1", "true", "yes"):
        from catalog_chat.database.postgres_real import MessageStore

        return MessageStore(connection_string=os.environ["DATABASE_URL"])

    from catalog_chat.database.postgres import MessageStore

    return MessageStore()


# ============================================================================
# REQUEST/RESPONSE MODELS
# ============================================================================


class ChatRequest(BaseModel):
    message: Optional[str] = ""


class ChatResponse(BaseModel):
    response: str
    image_url: Optional[str] = None
    is_html: bool = True
    timestamp: str


class ClearChatResponse(BaseModel):
    success: bool
    message: str


class HistoryMessage(BaseModel):
    sender: str
    content: str
    image_url: Optional[str] = None
    is_html: bool = False
    timestamp: str


class HistoryResponse(BaseModel):
    messages: List[HistoryMessage]


# ============================================================================
# DEPENDENCY INJECTION
# ============================================================================


def get_orchestrator(request: Request) -> ChatOrchestrator:
    """Dependency for the chat orchestrator"""
    return request.app.state.orchestrator


def _log_database_target() -> None:
    # Sanitized DB target details (no credentials) for connectivity debugging.
    db_url = os.getenv("DATABASE_URL", "")
    if not db_url:
        logger.info("DATABASE_URL not set; using in-memory MessageStore stub")
        return
    try:
        parsed = urlparse(db_url)
        logger.info(
            "DATABASE_URL target: scheme=%s host=%s port=%s db=%s use_postgres=%s",
            parsed.scheme,
            parsed.hostname,
            parsed.port or 5432,
            (parsed.path or "").lstrip("/"),
            os.getenv("USE_POSTGRES_CONVERSATIONS", ""),
        )
    except Exception as e:
        logger.warning("Could not parse DATABASE_URL for startup logging: %s", e)


# ============================================================================
# APPLICATION FACTORY
# ============================================================================


def create_app(
    config: Optional[ChatConfig] = None,
    store: Any = None,
    catalog: Optional[CatalogStore] = None,
    assistant: Any = _FROM_CONFIG,
    http_client: Optional[httpx.AsyncClient] = None,
) -> FastAPI:
    """
    Build the API. Collaborators default to what the config/environment
    describe; tests pass their own.
    """
    config = config or load_chat_config()
    store = store if store is not None else create_message_store()
    catalog = catalog if catalog is not None else CatalogStore.load(config.catalog.resolved_path())
    if assistant is _FROM_CONFIG:
        assistant = AssistantClient.from_config(config.assistant)

    orchestrator = ChatOrchestrator(
        store=store,
        fallback_handler=FallbackHandler(catalog, max_results=config.catalog.max_results),
        response_processor=ResponseProcessor(
            logo_url=config.display.logo_url,
            logo_alt=config.display.logo_alt,
            image_alt=config.display.image_alt,
            proxy_path=PROXY_PATH,
        ),
        assistant=assistant,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Initialize on startup, clean up on shutdown"""
        logger.info("Starting catalog chat API...")
        _log_database_target()

        # Create database tables if they don't exist
        try:
            store.create_tables()
            logger.info("Database tables initialized")
        except Exception as e:
            logger.error("Error initializing database: %s", e)

        logger.info(
            "Catalog: %d products; assistant: %s",
            len(catalog),
            "enabled" if orchestrator.assistant_enabled else "disabled (local search only)",
        )

        owns_client = app.state.http_client is None
        if owns_client:
            app.state.http_client = httpx.AsyncClient(timeout=config.proxy.timeout_seconds)
        try:
            yield
        finally:
            if owns_client:
                await app.state.http_client.aclose()
                app.state.http_client = None
            logger.info("Shutting down catalog chat API...")

    app = FastAPI(
        title="Catalog Chat API",
        description="Product chat backed by an OpenAI assistant with local catalog search fallback",
        version="1.0.0",
        dependencies=[Depends(api_key_protection)],  # protect everything by default
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.config = config
    app.state.catalog = catalog
    app.state.store = store
    app.state.orchestrator = orchestrator
    app.state.http_client = http_client

    app.include_router(image_proxy_router)
    _register_routes(app)
    return app


# ============================================================================
# ENDPOINTS
# ============================================================================


def _register_routes(app: FastAPI) -> None:
    @app.get("/health", tags=["Health"])
    async def health_check(request: Request):
        """Health check (catalog, assistant, message store)."""
        state = request.app.state
        return {
            "status": "healthy",
            "catalog_products": len(state.catalog),
            "assistant_enabled": state.orchestrator.assistant_enabled,
            "database": state.store.ping(),
            "timestamp": datetime.now().isoformat(),
        }

    @app.post("/chat", response_model=ChatResponse, tags=["Chat"])
    async def chat(
        body: ChatRequest,
        user_id: str = Depends(current_user_id),
        orchestrator: ChatOrchestrator = Depends(get_orchestrator),
    ):
        """Answer a chat message with the assistant, or the local catalog search as fallback."""
        message = body.message or ""
        if not message.strip():
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=EMPTY_MESSAGE_ERROR)

        try:
            reply = await orchestrator.handle_message(user_id, message)
        except Exception as e:
            payload = error_handler.handle_exception(e, context={"user_id": user_id})
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=payload["error"])

        return ChatResponse(
            response=reply.response,
            image_url=reply.image_url,
            is_html=reply.is_html,
            timestamp=reply.timestamp.isoformat(),
        )

    @app.post("/clear_chat", response_model=ClearChatResponse, tags=["Chat"])
    async def clear_chat(
        user_id: str = Depends(current_user_id),
        orchestrator: ChatOrchestrator = Depends(get_orchestrator),
    ):
        """Delete every stored message of the current user."""
        try:
            orchestrator.clear_history(user_id)
        except Exception as e:
            return JSONResponse(status_code=500, content=error_handler.handle_clear_exception(e, user_id))
        return ClearChatResponse(success=True, message=CLEARED_MESSAGE)

    @app.get("/chat/history", response_model=HistoryResponse, tags=["Chat"])
    async def chat_history(
        limit: int = Query(default=50, ge=1, le=500),
        user_id: str = Depends(current_user_id),
        orchestrator: ChatOrchestrator = Depends(get_orchestrator),
    ):
        """Get the current user's conversation history, oldest first."""
        try:
            messages = orchestrator.history(user_id, limit=limit)
        except Exception as e:
            payload = error_handler.handle_exception(e, context={"user_id": user_id, "op": "history"})
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=payload["error"])

        items: List[Dict[str, Any]] = [
            {
                "sender": m.sender,
                "content": m.content,
                "image_url": m.image_url,
                "is_html": bool(m.is_html),
                "timestamp": m.timestamp.isoformat(),
            }
            for m in messages
        ]
        return {"messages": items}


app = create_app()
