"""Unit tests for core.middleware module.

Tests RequestContextMiddleware:
- adds x-request-id and x-request-duration-ms response headers
- skips non-HTTP scopes
- emits request.completed for errors and authenticated requests
"""

from unittest.mock import patch

import pytest

from core.middleware import RequestContextMiddleware


async def _noop_receive():
    return {"type": "http.request", "body": b""}


def _app_with_status(status: int, state: dict | None = None):
    async def app(scope, receive, send):
        if state is not None:
            scope["state"] = state
        await send({"type": "http.response.start", "status": status, "headers": []})
        await send({"type": "http.response.body", "body": b"OK"})

    return app


async def _run(middleware, path: str = "/api/streaks") -> list[dict]:
    sent = []

    async def send(message):
        sent.append(message)

    await middleware(
        {"type": "http", "method": "GET", "path": path}, _noop_receive, send
    )
    return sent


@pytest.mark.unit
class TestRequestContextMiddleware:
    async def test_adds_request_headers(self):
        sent = await _run(RequestContextMiddleware(_app_with_status(200)))

        headers = dict(sent[0]["headers"])
        assert headers[b"x-request-id"]
        assert b"x-request-duration-ms" in headers

    async def test_request_ids_are_unique(self):
        middleware = RequestContextMiddleware(_app_with_status(200))

        first = dict((await _run(middleware))[0]["headers"])[b"x-request-id"]
        second = dict((await _run(middleware))[0]["headers"])[b"x-request-id"]

        assert first != second

    async def test_skips_non_http_scopes(self):
        called = []

        async def app(scope, receive, send):
            called.append(scope["type"])

        await RequestContextMiddleware(app)({"type": "lifespan"}, _noop_receive, None)

        assert called == ["lifespan"]

    async def test_logs_errors(self):
        with patch("core.middleware.logger") as mock_logger:
            await _run(RequestContextMiddleware(_app_with_status(503)))

        mock_logger.info.assert_called_once()
        kwargs = mock_logger.info.call_args.kwargs
        assert kwargs["http_status_code"] == 503
        assert kwargs["outcome"] == "error"

    async def test_logs_authenticated_requests(self):
        app = _app_with_status(200, state={"user_id": "user_abc"})

        with patch("core.middleware.logger") as mock_logger:
            await _run(RequestContextMiddleware(app))

        assert mock_logger.info.call_args.kwargs["outcome"] == "success"

    async def test_quiet_for_fast_anonymous_success(self):
        with patch("core.middleware.logger") as mock_logger:
            await _run(RequestContextMiddleware(_app_with_status(200)), "/health")

        mock_logger.info.assert_not_called()

    async def test_logs_and_reraises_exceptions(self):
        async def app(scope, receive, send):
            raise RuntimeError("boom")

        with patch("core.middleware.logger") as mock_logger:
            with pytest.raises(RuntimeError):
                await _run(RequestContextMiddleware(app))

        assert mock_logger.info.call_args.kwargs["outcome"] == "exception"
