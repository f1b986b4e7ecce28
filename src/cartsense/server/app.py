"""ASGI application serving the CartSense remote document store."""
# mypy: ignore-errors

from __future__ import annotations

import logging
from time import perf_counter
from typing import Any
from uuid import uuid4

from fastapi import Body, Depends, FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from cartsense import __version__, metrics
from cartsense.config import Settings, get_settings
from cartsense.logging_utils import configure_logging as configure_app_logging
from cartsense.server import deps

logger = logging.getLogger(__name__)


def _json_safe(value: Any) -> Any:
    """Convert non-serializable values into JSON-safe representations."""

    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if isinstance(value, bytes):
        try:
            return value.decode("utf-8")
        except UnicodeDecodeError:
            return value.hex()
    if isinstance(value, (list, tuple)):
        return [_json_safe(entry) for entry in value]
    if isinstance(value, dict):
        return {key: _json_safe(sub_value) for key, sub_value in value.items()}
    return repr(value)


def _normalize_validation_errors(errors: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [{key: _json_safe(value) for key, value in error.items()} for error in errors]


def _configure_logging(settings: Settings) -> None:
    configure_app_logging(settings.log_level, settings.log_format, [settings.api_token or ""])


def create_app() -> FastAPI:
    """Create and configure a FastAPI application instance."""

    settings = get_settings()
    _configure_logging(settings)

    application = FastAPI(title="CartSense Document Store", version=__version__)
    logger.debug("Application created with log level %s", settings.log_level)

    if settings.log_requests:
        access_logger = logging.getLogger("cartsense.access")

        @application.middleware("http")
        async def log_request_response(request: Request, call_next):
            """Log request/response details without leaking sensitive data."""

            request_id = request.headers.get("X-Request-ID") or uuid4().hex
            request.state.request_id = request_id
            start = perf_counter()
            path = request.url.path
            method = request.method
            try:
                response: Response = await call_next(request)
            except Exception:
                duration_ms = (perf_counter() - start) * 1000
                access_logger.exception(
                    "HTTP %s %s status=500 duration_ms=%.2f",
                    method,
                    path,
                    duration_ms,
                    extra={"request_id": request_id},
                )
                metrics.REQUEST_COUNT.labels(method=method, path=path, status="500").inc()
                metrics.REQUEST_LATENCY.labels(method=method, path=path).observe(
                    duration_ms / 1000.0
                )
                raise

            duration_ms = (perf_counter() - start) * 1000
            response.headers.setdefault("X-Request-ID", request_id)
            access_logger.info(
                "HTTP %s %s status=%s duration_ms=%.2f",
                method,
                path,
                response.status_code,
                duration_ms,
                extra={"request_id": request_id},
            )
            metrics.REQUEST_COUNT.labels(
                method=method,
                path=path,
                status=str(response.status_code),
            ).inc()
            metrics.REQUEST_LATENCY.labels(method=method, path=path).observe(
                duration_ms / 1000.0
            )
            return response

    @application.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        log_kwargs: dict[str, Any] = {}
        request_id = getattr(request.state, "request_id", None)
        if request_id:
            log_kwargs["extra"] = {"request_id": request_id}

        logger.warning(
            "Validation error on %s %s: %s",
            request.method,
            request.url.path,
            exc.errors(),
            **log_kwargs,
        )
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": _normalize_validation_errors(exc.errors())},
        )

    @application.get("/health", summary="Liveness probe")
    def health() -> dict[str, str]:
        return {"status": "ok", "version": __version__}

    @application.get("/metrics", include_in_schema=False)
    def metrics_endpoint() -> Response:
        payload = generate_latest()
        return Response(content=payload, media_type=CONTENT_TYPE_LATEST)

    @application.get(
        "/documents/{collection_path:path}",
        summary="List documents, newest first",
    )
    def documents_list(
        collection_path: str,
        lister: deps.DocumentLister = Depends(deps.get_document_lister),
    ) -> list[dict[str, Any]]:
        try:
            documents = lister(collection_path)
        except ValueError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
        return [document.flatten() for document in documents]

    @application.post(
        "/documents/{collection_path:path}",
        status_code=status.HTTP_201_CREATED,
        summary="Create document",
    )
    def documents_create(
        collection_path: str,
        payload: dict[str, Any] = Body(...),
        auth: None = Depends(deps.require_api_token),
        creator: deps.DocumentCreator = Depends(deps.get_document_creator),
    ) -> dict[str, Any]:
        try:
            document = creator(collection_path, payload)
        except ValueError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
        logger.debug("Created document %s in %s", document.id, document.collection_path)
        return {"id": document.id, "created_at": document.created_at}

    @application.patch(
        "/documents/{collection_path:path}/{document_id}",
        summary="Merge fields into a document",
    )
    def documents_update(
        collection_path: str,
        document_id: str,
        payload: dict[str, Any] = Body(...),
        auth: None = Depends(deps.require_api_token),
        updater: deps.DocumentUpdater = Depends(deps.get_document_updater),
    ) -> dict[str, Any]:
        try:
            document = updater(collection_path, document_id, payload)
        except ValueError as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
        return document.flatten()

    @application.delete(
        "/documents/{collection_path:path}/{document_id}",
        status_code=status.HTTP_204_NO_CONTENT,
        summary="Delete document",
    )
    def documents_delete(
        collection_path: str,
        document_id: str,
        auth: None = Depends(deps.require_api_token),
        deleter: deps.DocumentDeleter = Depends(deps.get_document_deleter),
    ) -> Response:
        try:
            removed = deleter(collection_path, document_id)
        except ValueError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
        if not removed:
            logger.debug("Delete of absent document %s in %s", document_id, collection_path)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return application


app = create_app()

__all__ = ["app", "create_app"]
