"""
FastAPI Application Module

HTTP shell around the reply pipeline. Every route is mounted twice, at
``/messages`` and ``/api/messages``.

- GET    lists the conversation from the in-memory history cache
- POST   runs the full reply pipeline and returns the user/bot turn
- PUT    re-validates and merges text/sender into one message
- DELETE removes one message from the store and the cache

Service objects are built by ``create_app`` and reached through
``app.state`` so tests can swap the store, collaborator, randomness and
clock.
"""

import random
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Callable, List, Optional

from fastapi import APIRouter, Depends, FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from prometheus_client import generate_latest
from pydantic import BaseModel
from structlog import get_logger

from ..config import MEMORY_STORE, Settings
from ..domain.errors import OriginRejected
from ..domain.models import HistoryEntry, Turn
from ..metrics import CUSTOM_REGISTRY, REQUESTS
from ..repositories import InMemoryMessageStore, JsonFileMessageStore, MessageStore
from ..services.conversation import ConversationService
from ..services.escalation import EscalationChain, UnansweredQuestionLog
from ..services.history import HistoryCache, role_classifier
from ..services.llm import ReplyCollaborator, build_collaborator
from ..services.pipeline import ReplyPipeline
from ..services.responder import KeywordResponder
from .errors import register_error_handlers

logger = get_logger()


class MessageCreate(BaseModel):
    """Body of a new message. Field types are checked by the sanitizer."""
    text: Any = None
    sender: Any = None


class MessageUpdate(BaseModel):
    """Partial update; omitted fields are left unchanged."""
    text: Any = None
    sender: Any = None


class DeleteResult(BaseModel):
    success: bool = True
    deleted: HistoryEntry


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_pipeline(request: Request) -> ReplyPipeline:
    return request.app.state.pipeline


def get_conversation(request: Request) -> ConversationService:
    return request.app.state.conversation


async def require_allowed_origin(
    request: Request, settings: Settings = Depends(get_settings)
) -> None:
    origin = request.headers.get("origin")
    if not settings.origin_allowed(origin):
        raise OriginRejected(origin)


router = APIRouter(dependencies=[Depends(require_allowed_origin)])


@router.get("", response_model=List[HistoryEntry])
async def list_messages(
    conversation: ConversationService = Depends(get_conversation),
) -> List[HistoryEntry]:
    """Returns the whole conversation in append order"""
    return await conversation.list_history()


@router.post("", response_model=Turn, status_code=201)
async def create_message(
    body: MessageCreate,
    pipeline: ReplyPipeline = Depends(get_pipeline),
) -> Turn:
    """Answers a message and stores both sides of the turn"""
    return await pipeline.handle(body.text, body.sender)


@router.put("/{message_id}", response_model=HistoryEntry)
async def update_message(
    message_id: str,
    body: MessageUpdate,
    pipeline: ReplyPipeline = Depends(get_pipeline),
) -> HistoryEntry:
    """Edits the text and/or sender of a stored message"""
    return await pipeline.update(message_id, body.text, body.sender)


@router.delete("/{message_id}", response_model=DeleteResult)
async def delete_message(
    message_id: str,
    pipeline: ReplyPipeline = Depends(get_pipeline),
) -> DeleteResult:
    """Deletes a stored message"""
    deleted = await pipeline.delete(message_id)
    return DeleteResult(deleted=deleted)


def build_store(settings: Settings) -> MessageStore:
    if settings.data_file == MEMORY_STORE:
        return InMemoryMessageStore()
    return JsonFileMessageStore(settings.data_file)


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[MessageStore] = None,
    collaborator: Optional[ReplyCollaborator] = None,
    rng: Optional[random.Random] = None,
    clock: Callable[[], datetime] = datetime.now,
) -> FastAPI:
    """Wire the services together and build the application.

    ``clock`` is the local clock used for time-of-day greetings.
    """
    settings = settings or Settings.from_env()
    conversation = ConversationService(
        store or build_store(settings),
        HistoryCache(role_classifier(settings.reserved_bot_names)),
    )
    escalation = EscalationChain(
        UnansweredQuestionLog(settings.unanswered_log),
        collaborator or build_collaborator(settings),
    )
    pipeline = ReplyPipeline(
        settings,
        conversation,
        KeywordResponder(rng=rng, clock=clock),
        escalation,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Hydrates the history cache before serving"""
        await conversation.hydrate()
        logger.info("application_startup_complete")
        yield
        logger.info("application_shutdown_complete")

    app = FastAPI(
        title="Hanibot Chat API",
        description="Keyword chatbot with a durable message log",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.conversation = conversation
    app.state.pipeline = pipeline

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.allows_any_origin else settings.allowed_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["*"],
    )
    FastAPIInstrumentor.instrument_app(app)
    register_error_handlers(app)

    @app.middleware("http")
    async def logging_middleware(request: Request, call_next):
        """Counts and logs every request"""
        REQUESTS.inc()
        logger.info("request_started", method=request.method, path=request.url.path)
        try:
            return await call_next(request)
        except Exception as e:
            logger.error("request_failed", path=request.url.path, error=str(e))
            raise

    app.include_router(router, prefix="/messages", tags=["messages"])
    app.include_router(router, prefix="/api/messages", tags=["messages"])

    @app.get("/health")
    async def health() -> dict:
        await conversation.list_history()
        return {"status": "ok", "messages": len(conversation.history)}

    @app.get("/metrics")
    async def metrics():
        """Provides Prometheus metrics for system monitoring"""
        return Response(generate_latest(CUSTOM_REGISTRY), media_type="text/plain")

    return app


app = create_app()
