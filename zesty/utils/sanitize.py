"""
Input sanitization middleware.

Strips '<' and '>' from every string in JSON request bodies (recursively,
values only) and from query parameter values before any route sees them.

Written as a plain ASGI middleware so it can rewrite the request body;
Starlette's BaseHTTPMiddleware cannot replace what the endpoint reads.
"""

import json
import logging
from typing import Any, List, Tuple
from urllib.parse import parse_qsl, urlencode

from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)

_STRIPPED = str.maketrans("", "", "<>")


def strip_angle_brackets(value: Any) -> Any:
    """Return `value` with '<' and '>' removed from every nested string."""
    if isinstance(value, str):
        return value.translate(_STRIPPED)
    if isinstance(value, dict):
        return {key: strip_angle_brackets(item) for key, item in value.items()}
    if isinstance(value, list):
        return [strip_angle_brackets(item) for item in value]
    return value


def sanitize_query_string(query_string: bytes) -> bytes:
    if not query_string:
        return query_string

    pairs: List[Tuple[str, str]] = parse_qsl(query_string.decode("latin-1"), keep_blank_values=True)
    if not any("<" in v or ">" in v for _, v in pairs):
        return query_string

    return urlencode([(k, strip_angle_brackets(v)) for k, v in pairs]).encode("latin-1")


def _is_json(scope: Scope) -> bool:
    for name, value in scope.get("headers", []):
        if name == b"content-type":
            return b"json" in value.lower()
    return False


class SanitizationMiddleware:
    """ASGI middleware applying strip_angle_brackets to request input."""

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        scope = dict(scope)
        scope["query_string"] = sanitize_query_string(scope.get("query_string", b""))

        if not _is_json(scope):
            await self.app(scope, receive, send)
            return

        chunks = []
        more_body = True
        while more_body:
            message = await receive()
            if message["type"] == "http.disconnect":
                await self.app(scope, receive, send)
                return
            chunks.append(message.get("body", b""))
            more_body = message.get("more_body", False)

        body = b"".join(chunks)
        if body:
            try:
                cleaned = strip_angle_brackets(json.loads(body))
                body = json.dumps(cleaned, ensure_ascii=False).encode("utf-8")
            except (UnicodeDecodeError, json.JSONDecodeError):
                # Leave it alone; request validation will reject it
                logger.debug("Request body is not valid JSON, passing through unchanged")

        scope["headers"] = [
            (name, value) for name, value in scope.get("headers", []) if name != b"content-length"
        ] + [(b"content-length", str(len(body)).encode("latin-1"))]

        body_sent = False

        async def replay_receive() -> Message:
            nonlocal body_sent
            if body_sent:
                return await receive()
            body_sent = True
            return {"type": "http.request", "body": body, "more_body": False}

        await self.app(scope, replay_receive, send)
