"""ASGI middleware: request context and canonical request log lines."""

from __future__ import annotations

import time
import uuid

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from core.logger import bind_contextvars, clear_contextvars, get_logger

logger = get_logger(__name__)

SLOW_REQUEST_THRESHOLD_MS = 1000


class RequestContextMiddleware:
    """Binds a request id into log context and emits one line per request.

    - request_id / http_method / http_path are bound for every log call made
      while handling the request
    - x-request-id and x-request-duration-ms are added to the response
    - "request.completed" is emitted for errors, slow requests, and
      authenticated requests
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        start_time = time.perf_counter()
        method = scope.get("method", "UNKNOWN")
        path = scope.get("path", "")
        request_id = str(uuid.uuid4())

        clear_contextvars()
        bind_contextvars(request_id=request_id, http_method=method, http_path=path)

        response_status: int | None = None

        async def send_wrapper(message: Message) -> None:
            nonlocal response_status

            if message.get("type") == "http.response.start":
                response_status = int(message.get("status", 0))
                duration_ms = (time.perf_counter() - start_time) * 1000
                headers: list[tuple[bytes, bytes]] = list(message.get("headers", []))
                headers.append(
                    (b"x-request-duration-ms", f"{duration_ms:.2f}".encode())
                )
                headers.append((b"x-request-id", request_id.encode()))
                message["headers"] = headers

            elif message.get("type") == "http.response.body" and not message.get(
                "more_body", False
            ):
                duration_ms = (time.perf_counter() - start_time) * 1000
                route = scope.get("route")
                route_path = getattr(route, "path", None) or path
                # request.state is backed by scope["state"]
                state = scope.get("state")
                authenticated = isinstance(state, dict) and bool(state.get("user_id"))

                should_emit = (
                    response_status is None
                    or response_status >= 400
                    or duration_ms > SLOW_REQUEST_THRESHOLD_MS
                    or authenticated
                )
                if should_emit:
                    logger.info(
                        "request.completed",
                        http_route=route_path,
                        http_status_code=response_status,
                        duration_ms=round(duration_ms, 2),
                        outcome=(
                            "success"
                            if response_status and response_status < 400
                            else "error"
                        ),
                    )

            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception as exc:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.info(
                "request.completed",
                http_route=path,
                duration_ms=round(duration_ms, 2),
                outcome="exception",
                exception_type=type(exc).__name__,
            )
            raise
        finally:
            clear_contextvars()
