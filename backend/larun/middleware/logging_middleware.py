"""
Pure ASGI middleware that logs each HTTP request with its status and duration.

Request and response bodies are logged at DEBUG level only, with credential
fields masked and long payloads truncated.
"""

import json
import logging
import time
from typing import Optional
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from ..core.logging_config import filter_sensitive_data, truncate_large_data

logger = logging.getLogger(__name__)

MAX_BODY_LOG_LENGTH = 2000


def sanitize_body(raw: bytes) -> str:
    """Decode a body for logging, masking credentials if it is JSON."""
    text = raw.decode("utf-8", errors="ignore")
    try:
        payload = json.loads(text)
    except json.JSONDecodeError:
        return truncate_large_data(text, max_length=MAX_BODY_LOG_LENGTH)
    return truncate_large_data(
        json.dumps(filter_sensitive_data(payload), ensure_ascii=False),
        max_length=MAX_BODY_LOG_LENGTH,
    )


class RequestLoggingMiddleware:
    """Log every HTTP request except the excluded paths."""

    def __init__(self, app: ASGIApp, exclude_paths: Optional[list] = None):
        self.app = app
        self.exclude_paths = set(exclude_paths or ["/health"])

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope.get("path", "") in self.exclude_paths:
            await self.app(scope, receive, send)
            return

        method = scope.get("method", "UNKNOWN")
        path = scope.get("path", "")
        client = scope.get("client")
        start_time = time.time()
        status_code = 0
        request_body = bytearray()
        response_body = bytearray()
        capture_bodies = logger.isEnabledFor(logging.DEBUG)

        async def logging_receive() -> Message:
            message = await receive()
            if capture_bodies and message["type"] == "http.request":
                request_body.extend(message.get("body", b""))
            return message

        async def logging_send(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message.get("status", 0)
            elif capture_bodies and message["type"] == "http.response.body":
                response_body.extend(message.get("body", b""))
            await send(message)

        try:
            await self.app(scope, logging_receive, logging_send)
        except Exception as e:
            logger.error(
                f"Request failed: {method} {path} - {e}",
                exc_info=True,
                extra={"extra_fields": {"method": method, "path": path, "error": str(e)}},
            )
            raise

        duration_ms = (time.time() - start_time) * 1000
        if status_code < 400:
            level = logging.INFO
        elif status_code < 500:
            level = logging.WARNING
        else:
            level = logging.ERROR

        logger.log(
            level,
            f"{method} {path} - {status_code} ({duration_ms:.2f}ms)",
            extra={"extra_fields": {
                "method": method,
                "path": path,
                "status_code": status_code,
                "duration_ms": round(duration_ms, 2),
                "client": client[0] if client else None,
            }},
        )
        if capture_bodies:
            logger.debug(
                f"Request body: {sanitize_body(bytes(request_body)) or '-'} | "
                f"Response body: {sanitize_body(bytes(response_body)) or '-'}"
            )
