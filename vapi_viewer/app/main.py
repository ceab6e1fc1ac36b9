from __future__ import annotations

import json
import logging

from fastapi import APIRouter, FastAPI, HTTPException, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from vapi_viewer.app.observability import MetricsRegistry, configure_logging, observe_request
from vapi_viewer.app.services.classifier import classify
from vapi_viewer.app.services.dispatcher import FunctionCallError, apply_classified
from vapi_viewer.app.services.log_parser import format_log_session
from vapi_viewer.app.services.webhooks import SignatureVerificationError, verify_shared_secret
from vapi_viewer.app.settings import Settings, load_settings
from vapi_viewer.app.store import InMemoryStore, StoreNotFoundError

logger = logging.getLogger("vapi_viewer")


class RequestBodyError(Exception):
    pass


def create_app() -> FastAPI:
    app = FastAPI(title="VAPI Webhook Viewer API", version="0.1.0")
    configure_logging()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    settings = load_settings()
    app.state.store = InMemoryStore(
        max_calls=settings.max_calls,
        max_conversations=settings.max_conversations,
        max_assistants=settings.max_assistants,
        max_log_sessions=settings.max_log_sessions,
    )
    app.state.settings = settings
    app.state.metrics = MetricsRegistry()

    @app.middleware("http")
    async def observability_middleware(request: Request, call_next):
        return await observe_request(request, call_next, metrics=app.state.metrics)

    app.include_router(build_router())
    return app


def get_store(request: Request) -> InMemoryStore:
    return request.app.state.store


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_metrics(request: Request) -> MetricsRegistry:
    return request.app.state.metrics


def _reject_constant(token: str) -> float:
    raise ValueError(f"non-standard JSON constant: {token}")


async def read_json_body(request: Request):
    raw_body = await request.body()
    try:
        return json.loads(raw_body.decode("utf-8"), parse_constant=_reject_constant)
    except (UnicodeDecodeError, json.JSONDecodeError, ValueError) as exc:
        raise RequestBodyError(str(exc)) from exc


def build_router() -> APIRouter:
    router = APIRouter()

    @router.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @router.get("/metrics", response_class=PlainTextResponse)
    def metrics(request: Request) -> Response:
        registry = get_metrics(request)
        return PlainTextResponse(registry.to_prometheus())

    @router.post("/api/vapi-actions")
    async def vapi_actions(request: Request) -> JSONResponse:
        store = get_store(request)
        settings = get_settings(request)
        registry = get_metrics(request)
        try:
            payload = await read_json_body(request)
        except RequestBodyError as exc:
            registry.record_webhook(kind="invalid_body", outcome="rejected")
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content={"error": "Invalid request body", "message": str(exc)},
            )

        classified = classify(payload)
        kind = classified.kind.value
        if classified.requires_secret:
            try:
                verify_shared_secret(
                    request.headers,
                    settings.vapi_secret,
                    header_name=settings.vapi_secret_header,
                )
            except SignatureVerificationError as exc:
                logger.warning("webhook_unauthorized kind=%s reason=%s", kind, exc)
                registry.record_webhook(kind=kind, outcome="unauthorized")
                return JSONResponse(
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    content={"error": "Unauthorized"},
                )

        try:
            body = apply_classified(store=store, classified=classified)
        except FunctionCallError as exc:
            registry.record_webhook(kind=kind, outcome="rejected")
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content={"error": str(exc)},
            )
        registry.record_webhook(kind=kind, outcome="accepted")
        return JSONResponse(content=body)

    @router.get("/api/log-sessions/{session_id}/export", response_class=PlainTextResponse)
    def export_log_session(session_id: str, request: Request) -> Response:
        store = get_store(request)
        try:
            session = store.get_log_session(session_id)
        except StoreNotFoundError as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
        return PlainTextResponse(
            format_log_session(session),
            headers={
                "Content-Disposition": f'attachment; filename="vapi-logs-{session.id}.txt"'
            },
        )

    return router
