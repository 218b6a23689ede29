"""FastAPI wrapper for the form parse/fill pipeline."""

from __future__ import annotations

import importlib.metadata
import json
import logging
import os
import time
import uuid
from collections.abc import AsyncIterator
from contextlib import aclosing
from typing import Any

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from core.answers.generator import GenerationContext
from core.forms.analyzer import parse_form
from core.forms.urls import extract_form_id
from core.orchestrator.fill import FillOrchestrator, build_generation_context
from core.orchestrator.models import FillRequest
from core.settings import Settings, env_flag, load_settings
from core.utils.errors import FetchError, InvalidUrlError
from core.utils.log_events import log_event
from core.utils.sse import format_sse

SERVICE_NAME = "AI Google Form Filler"
REQUEST_ID_HEADER = "X-Formfill-Request-Id"

app = FastAPI(title="formfill-agent API", version="1.0.0")
logger = logging.getLogger("formfill.api")


class ParseFormRequest(BaseModel):
    model_config = ConfigDict(extra="ignore", alias_generator=to_camel, populate_by_name=True)

    form_url: str


class ApiRequestError(Exception):
    def __init__(
        self,
        *,
        status_code: int,
        error_code: str,
        message: str,
        detail: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error_code = error_code
        self.message = message
        self.detail = detail or {}


def _cors_allow_origins() -> list[str]:
    raw = os.getenv("FORMFILL_CORS_ALLOW_ORIGINS", "*")
    origins = [item.strip() for item in raw.split(",") if item.strip()]
    return origins or ["*"]


if env_flag("FORMFILL_ENABLE_CORS"):
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_allow_origins(),
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    """Ensure every response has a request id header."""

    request_id = uuid.uuid4().hex
    request.state.request_id = request_id
    try:
        response = await call_next(request)
    except Exception:  # noqa: BLE001
        _log_event(
            logging.ERROR,
            "error",
            request_id,
            error_code="INTERNAL_ERROR",
            status_code=500,
            failure_stage="middleware",
        )
        response = _error_response(
            status_code=500,
            error_code="INTERNAL_ERROR",
            message="internal server error",
            request_id=request_id,
            detail={"path": request.url.path},
        )
    response.headers.setdefault(REQUEST_ID_HEADER, request_id)
    return response


@app.get("/api/health")
async def health() -> dict[str, str]:
    """Liveness endpoint used by clients for API discovery."""

    return {"status": "ok", "service": SERVICE_NAME, "version": _package_version()}


@app.post("/api/parse-form", response_model=None)
async def parse_form_endpoint(request: Request) -> JSONResponse:
    """Parse a form and return its questions."""

    request_id = _request_id_from_request(request)
    failure_stage = "validate_inputs"
    settings = load_settings()

    try:
        body = await _load_json_body(request)
        parse_request = _validate_model(ParseFormRequest, body)

        failure_stage = "parse_form"
        async with _build_http_client(settings) as client:
            parsed = await parse_form(parse_request.form_url, client=client, settings=settings)
    except ApiRequestError as exc:
        return _api_error(exc, request_id, failure_stage)
    except (InvalidUrlError, FetchError) as exc:
        return _api_error(_form_error(exc), request_id, failure_stage)

    _log_event(
        logging.INFO,
        "parsed",
        request_id,
        form_id=parsed.form_id,
        question_count=len(parsed.questions),
    )
    return JSONResponse(
        status_code=200,
        headers={REQUEST_ID_HEADER: request_id},
        content=parsed.model_dump(mode="json", by_alias=True, exclude_none=True),
    )


@app.post("/api/fill-form", response_model=None)
async def fill_form_endpoint(request: Request) -> StreamingResponse | JSONResponse:
    """Generate and submit responses, streaming progress as server-sent events."""

    request_id = _request_id_from_request(request)
    settings = load_settings()

    try:
        body = await _load_json_body(request)
        fill_request = _validate_model(FillRequest, body)
        if fill_request.num_responses > settings.max_responses:
            raise ApiRequestError(
                status_code=400,
                error_code="INVALID_ARGUMENT",
                message=f"Maximum {settings.max_responses} responses allowed",
                detail={"field": "numResponses", "max": settings.max_responses},
            )
        extract_form_id(fill_request.form_url)
    except ApiRequestError as exc:
        return _api_error(exc, request_id, "validate_inputs")
    except InvalidUrlError as exc:
        return _api_error(_form_error(exc), request_id, "validate_inputs")

    try:
        generation_context = build_generation_context(settings)
    except ValueError as exc:
        config_error = ApiRequestError(
            status_code=400,
            error_code="INVALID_CONFIG",
            message=str(exc),
            detail={"setting": "FORMFILL_ANSWER_POOL"},
        )
        return _api_error(config_error, request_id, "load_config")

    _log_event(
        logging.INFO,
        "start",
        request_id,
        num_responses=fill_request.num_responses,
        use_ai=fill_request.use_external_generation,
        user_data_provided=fill_request.user_data is not None,
    )
    headers = {
        REQUEST_ID_HEADER: request_id,
        "Cache-Control": "no-cache",
        "Connection": "keep-alive",
    }
    return StreamingResponse(
        _stream_fill_events(request, fill_request, settings, generation_context, request_id),
        media_type="text/event-stream",
        headers=headers,
    )


async def _stream_fill_events(
    request: Request,
    fill_request: FillRequest,
    settings: Settings,
    generation_context: GenerationContext,
    request_id: str,
) -> AsyncIterator[str]:
    started = time.perf_counter()
    sent = 0
    async with _build_http_client(settings) as client:
        orchestrator = FillOrchestrator(
            settings=settings,
            http_client=client,
            generation_context=generation_context,
            run_id=request_id,
        )
        async with aclosing(orchestrator.run(fill_request)) as events:
            async for event in events:
                if await _client_disconnected(request):
                    _log_event(
                        logging.WARNING,
                        "cancelled",
                        request_id,
                        events_sent=sent,
                        state=orchestrator.state.value,
                        total_ms=_elapsed_ms(started),
                    )
                    return
                yield format_sse(event.to_wire())
                sent += 1


async def _client_disconnected(request: Request) -> bool:
    return await request.is_disconnected()


def _build_http_client(settings: Settings) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=settings.http_timeout_seconds)


async def _load_json_body(request: Request) -> Any:
    raw = await request.body()
    try:
        return json.loads(raw.decode("utf-8")) if raw else None
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ApiRequestError(
            status_code=400,
            error_code="INVALID_JSON",
            message="request body must be valid JSON",
            detail={"error": str(exc)},
        ) from exc


def _validate_model(model: type[BaseModel], body: Any) -> Any:
    if not isinstance(body, dict):
        raise ApiRequestError(
            status_code=400,
            error_code="INVALID_JSON",
            message="request body must be a JSON object",
        )
    try:
        return model.model_validate(body)
    except ValidationError as exc:
        first = exc.errors()[0] if exc.errors() else {}
        field = ".".join(str(part) for part in first.get("loc", ()))
        raise ApiRequestError(
            status_code=400,
            error_code="INVALID_ARGUMENT",
            message=f"invalid {field}: {first.get('msg', 'validation failed')}",
            detail={"field": field, "error": str(exc)},
        ) from exc


def _form_error(exc: InvalidUrlError | FetchError) -> ApiRequestError:
    if isinstance(exc, InvalidUrlError):
        return ApiRequestError(
            status_code=400,
            error_code="INVALID_URL",
            message=str(exc),
            detail={"field": "formUrl", "value": exc.url},
        )
    detail: dict[str, Any] = {"field": "formUrl"}
    if exc.status_code is not None:
        detail["upstream_status"] = exc.status_code
    return ApiRequestError(
        status_code=400,
        error_code="FETCH_FAILED",
        message=str(exc),
        detail=detail,
    )


def _api_error(exc: ApiRequestError, request_id: str, failure_stage: str) -> JSONResponse:
    _log_event(
        logging.ERROR,
        "error",
        request_id,
        error_code=exc.error_code,
        status_code=exc.status_code,
        failure_stage=failure_stage,
    )
    return _error_response(
        status_code=exc.status_code,
        error_code=exc.error_code,
        message=exc.message,
        request_id=request_id,
        detail=exc.detail,
    )


def _request_id_from_request(request: Request) -> str:
    request_id = getattr(request.state, "request_id", None)
    if isinstance(request_id, str) and request_id:
        return request_id
    generated = uuid.uuid4().hex
    request.state.request_id = generated
    return generated


def _package_version() -> str:
    try:
        return importlib.metadata.version("formfill-agent")
    except importlib.metadata.PackageNotFoundError:
        return app.version


def _error_response(
    *,
    status_code: int,
    error_code: str,
    message: str,
    request_id: str,
    detail: dict[str, Any] | None = None,
) -> JSONResponse:
    payload_detail = dict(detail or {})
    payload_detail["request_id"] = request_id

    return JSONResponse(
        status_code=status_code,
        headers={REQUEST_ID_HEADER: request_id},
        content={
            "error": message,
            "error_code": error_code,
            "detail": payload_detail,
        },
    )


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


def _log_event(level: int, event: str, request_id: str, **fields: Any) -> None:
    log_event(logger, level, event, request_id, **fields)

