"""FastAPI application exposing the message board CRUD API."""
from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import load_config
from .cors import OriginPolicy, install_cors
from .errors import MessageBoardError
from .models import CreateMessageRequest, DatabaseStatus, DeleteResult, ErrorEnvelope, HealthResponse
from .store import InMemoryMessageStore, MessageStore, MongoConnection, MongoMessageStore
from .store.base import utc_now

logger = logging.getLogger(__name__)

SERVICE_NAME = "Message Board API"
API_VERSION = "1.0.0"


# -----------------------------
# Utilities
# -----------------------------
def _base_path(cfg: Dict[str, Any]) -> str:
    raw = str(cfg.get("server", {}).get("base_path") or "").strip().strip("/")
    return f"/{raw}" if raw else ""


def _make_store(cfg: Dict[str, Any]) -> MessageStore:
    store_cfg = cfg.get("store", {})
    backend = str(store_cfg.get("backend", "memory")).strip().lower()
    if backend in {"mongo", "mongodb"}:
        db_cfg = cfg.get("database", {})
        connection = MongoConnection(
            db_cfg.get("uri"),
            db_cfg.get("name") or "message_board",
            connect_timeout_ms=int(db_cfg.get("connect_timeout_ms", 10000)),
            socket_timeout_ms=int(db_cfg.get("socket_timeout_ms", 45000)),
        )
        if not connection.configured:
            logger.warning("MongoDB backend selected but no database URI is configured")
        return MongoMessageStore(connection, collection=db_cfg.get("collection") or "messages")
    if backend == "memory":
        return InMemoryMessageStore(seed=store_cfg.get("seed_messages") or [])
    raise RuntimeError(f"Unknown store backend {backend!r}; expected 'memory' or 'mongo'")


def _validation_message(errors: List[Dict[str, Any]]) -> str:
    """Turn FastAPI/pydantic validation errors into one readable sentence."""
    for err in errors:
        etype = err.get("type", "")
        if etype == "json_invalid":
            return "Request body must be valid JSON"
        if etype == "missing":
            return "Message text is required"
        if etype == "string_type":
            return "Message text must be a string"
        if etype in {"model_attributes_type", "dict_type"}:
            return "Request body must be a JSON object"
        msg = str(err.get("msg") or "Invalid request")
        return msg.removeprefix("Value error, ")
    return "Invalid request"


def _json_error(status: int, envelope: ErrorEnvelope) -> JSONResponse:
    return JSONResponse(status_code=status, content=envelope.model_dump(exclude_none=True))


def _install_error_envelope(app: FastAPI) -> None:
    """Turn any uncaught exception into a generic 500 with an opaque reference.

    The traceback is logged under the reference; the client never sees it.
    """

    @app.middleware("http")
    async def unexpected_error(request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            reference = uuid.uuid4().hex[:12]
            logger.error(
                "Unhandled error on %s %s [ref %s]",
                request.method,
                request.url.path,
                reference,
                exc_info=exc,
            )
            return _json_error(
                500,
                ErrorEnvelope(
                    error="Internal server error",
                    message="An unexpected error occurred",
                    reference=reference,
                ),
            )


# -----------------------------
# App factory
# -----------------------------
def create_app(
    config_path: Optional[str] = None,
    store: Optional[MessageStore] = None,
) -> FastAPI:
    cfg = load_config(config_path)
    store = store or _make_store(cfg)
    base = _base_path(cfg)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Message board ready (storage=%s, base_path=%r)", store.backend, base or "/")
        yield
        store.close()

    app = FastAPI(title=SERVICE_NAME, version=API_VERSION, lifespan=lifespan)
    app.state.store = store
    app.state.config = cfg
    # Inside CORS so 500 envelopes still carry the CORS headers
    _install_error_envelope(app)
    install_cors(app, OriginPolicy(cfg.get("server", {}).get("cors_origins")))

    endpoints = [
        f"GET {base}/",
        f"GET {base}/api/health",
        f"GET {base}/api/messages",
        f"POST {base}/api/messages",
        f"DELETE {base}/api/messages/:id",
    ]
    router = APIRouter(prefix=base)

    @router.get("/")
    def root() -> Dict[str, Any]:
        return {
            "service": SERVICE_NAME,
            "status": "running",
            "version": API_VERSION,
            "storage": store.backend,
            "endpoints": endpoints,
            "timestamp": utc_now().isoformat(),
        }

    @router.get("/api/health")
    def health() -> JSONResponse:
        try:
            db = DatabaseStatus(backend=store.backend, **store.health())
        except MessageBoardError as e:
            logger.warning("Health check failed: %s", e.message)
            body = HealthResponse(
                status="unhealthy",
                database=DatabaseStatus(connected=False, backend=store.backend, error=e.message),
                timestamp=utc_now(),
            )
            return JSONResponse(status_code=503, content=body.model_dump(mode="json", exclude_none=True))
        body = HealthResponse(status="healthy", database=db, timestamp=utc_now())
        return JSONResponse(content=body.model_dump(mode="json", exclude_none=True))

    @router.get("/api/messages")
    def list_messages() -> JSONResponse:
        return JSONResponse(content=[m.to_json() for m in store.list()])

    @router.post("/api/messages", status_code=201)
    def create_message(req: CreateMessageRequest) -> JSONResponse:
        msg = store.create(req.text)
        logger.info("Created message %s (%d chars)", msg.id, len(msg.text))
        return JSONResponse(status_code=201, content=msg.to_json())

    @router.delete("/api/messages/{message_id}")
    def delete_message(message_id: str) -> Dict[str, Any]:
        key = store.validate_id(message_id)
        store.delete(key)
        logger.info("Deleted message %s", key)
        return DeleteResult(id=key).model_dump()

    app.include_router(router)

    # -----------------------------
    # Error mapping
    # -----------------------------
    @app.exception_handler(MessageBoardError)
    async def board_error(request: Request, exc: MessageBoardError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.warning("%s %s -> %d: %s", request.method, request.url.path, exc.status_code, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.envelope())

    @app.exception_handler(RequestValidationError)
    async def request_invalid(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _json_error(400, ErrorEnvelope(error="Validation error", message=_validation_message(exc.errors())))

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code in (404, 405):
            return _json_error(
                404,
                ErrorEnvelope(
                    error="Not found",
                    message=f"Route {request.method} {request.url.path} not found",
                    availableEndpoints=endpoints,
                ),
            )
        detail = str(exc.detail)
        return _json_error(exc.status_code, ErrorEnvelope(error=detail, message=detail))

    return app
