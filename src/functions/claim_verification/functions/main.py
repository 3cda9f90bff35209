"""Cloud Function entry point for the claim verification service."""

from __future__ import annotations

import asyncio
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Iterator

import flask
import functions_framework

# Ensure project root is on sys.path before importing project modules
project_root = Path(__file__).parent.parent.parent.parent.parent.absolute()
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from src.shared.utils.env import load_env
from src.shared.utils.logging import setup_logging

from src.functions.claim_verification.core.factory import request_from_payload
from src.functions.claim_verification.core.pipeline import PipelineError
from src.functions.claim_verification.core.service import ClaimVerificationService, SharedState

load_env()
setup_logging(level=os.getenv("LOG_LEVEL", "INFO"))
logger = logging.getLogger(__name__)

# Caches and credential pools live for the lifetime of the process.
SHARED_STATE = SharedState.create()

NDJSON_MIMETYPE = "application/x-ndjson"


def claim_verification_handler(request: flask.Request) -> flask.Response:
    """HTTP handler for ``POST /analyze`` (JSON or NDJSON event stream)."""

    if request.method == "OPTIONS":
        return _cors_response({}, status=204)

    if request.method == "GET" and request.path.rstrip("/").endswith("/health"):
        return health_check_handler(request)

    if request.method != "POST":
        logger.warning("Unsupported HTTP method: %s", request.method)
        return _error_response("Method not allowed. Use POST.", status=405)

    try:
        payload = request.get_json(silent=True)
        if payload is None:
            raise ValueError("Request body must be a JSON object")
        request_model = request_from_payload(payload)
        if "cache" in (payload.get("options") or {}):
            # SHARED_STATE is built once per process; cache bounds cannot change per request.
            raise ValueError("options.cache is not supported over HTTP")
        logger.info(
            "Incoming analysis request (chars=%d, stream=%s, url=%s)",
            len(request_model.text),
            request_model.streaming,
            request_model.url or "-",
        )

        service = ClaimVerificationService(request_model, SHARED_STATE)
        if request_model.streaming:
            return _stream_response(service)

        result = _run_async(service.analyze())
        logger.info(
            "Analysis complete: claims=%d, credibility=%.2f, time=%dms",
            len(result.claims),
            result.credibility_score,
            result.processing_time_ms,
        )
        return _cors_response(result.to_dict())

    except ValueError as exc:
        logger.warning("Invalid request: %s", exc)
        return _error_response(str(exc), status=400)
    except PipelineError as exc:
        logger.error("Analysis failed: %s", exc)
        return _error_response(str(exc), status=500)
    except Exception:  # noqa: BLE001
        logger.error("Unexpected failure", exc_info=True)
        return _error_response("Internal server error", status=500)


def health_check_handler(request: flask.Request) -> flask.Response:
    """Health check endpoint."""
    return _cors_response({"status": "ok", "service": "claim_verification"})


def _stream_response(service: ClaimVerificationService) -> flask.Response:
    response = flask.Response(_stream_events(service), mimetype=NDJSON_MIMETYPE)
    _apply_cors(response.headers)
    return response


def _stream_events(service: ClaimVerificationService) -> Iterator[str]:
    """Drive the async event stream on a private loop, one JSON line per event."""

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    events = service.analyze_events()
    try:
        while True:
            try:
                event = loop.run_until_complete(events.__anext__())
            except StopAsyncIteration:
                break
            yield json.dumps(event.to_dict(), ensure_ascii=False) + "\n"
    finally:
        loop.run_until_complete(events.aclose())
        loop.run_until_complete(loop.shutdown_asyncgens())
        asyncio.set_event_loop(None)
        loop.close()


def _apply_cors(headers: Any) -> None:
    headers["Access-Control-Allow-Origin"] = "*"
    headers["Access-Control-Allow-Methods"] = "GET,POST,OPTIONS"
    headers["Access-Control-Allow-Headers"] = "Content-Type"


def _cors_response(body: dict[str, Any], status: int = 200) -> flask.Response:
    """Create a CORS-enabled JSON response."""
    response = flask.make_response(json.dumps(body, ensure_ascii=False), status)
    response.headers["Content-Type"] = "application/json"
    _apply_cors(response.headers)
    return response


def _error_response(message: str, status: int) -> flask.Response:
    """Create an error response with CORS headers."""
    return _cors_response({"status": "error", "message": message}, status=status)


def _run_async(coro):
    """Run an async coroutine in a new or existing event loop."""
    try:
        return asyncio.run(coro)
    except RuntimeError as exc:
        if "event loop" in str(exc).lower():
            loop = asyncio.new_event_loop()
            try:
                asyncio.set_event_loop(loop)
                return loop.run_until_complete(coro)
            finally:
                loop.close()
        raise


@functions_framework.http
def analyze(request: flask.Request):
    """Entry point for functions-framework."""
    return claim_verification_handler(request)


@functions_framework.http
def health_check(request: flask.Request):
    """Health check entry point."""
    return health_check_handler(request)
