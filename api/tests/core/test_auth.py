"""Unit tests for core.auth module.

Tests session-based authentication utilities:
- get_user_id_from_request reads user_id from the signed session
- require_auth raises HTTPException when unauthenticated
"""

from unittest.mock import MagicMock

import pytest
from fastapi import HTTPException, Request

from core.auth import get_user_id_from_request, require_auth


def _make_request(session: dict | None = None, has_session: bool = True) -> Request:
    request = MagicMock(spec=Request)
    request.scope = {"session": session or {}} if has_session else {}
    request.session = session or {}
    request.state = MagicMock()
    return request


@pytest.mark.unit
class TestGetUserIdFromRequest:
    def test_returns_user_id(self):
        request = _make_request(session={"user_id": "user_abc"})
        assert get_user_id_from_request(request) == "user_abc"

    def test_coerces_to_string(self):
        request = _make_request(session={"user_id": 12345})
        assert get_user_id_from_request(request) == "12345"

    def test_returns_none_when_user_id_missing(self):
        assert get_user_id_from_request(_make_request(session={})) is None

    def test_returns_none_without_session_middleware(self):
        assert get_user_id_from_request(_make_request(has_session=False)) is None


@pytest.mark.unit
class TestRequireAuth:
    def test_returns_user_id_and_sets_state(self):
        request = _make_request(session={"user_id": "user_abc"})

        assert require_auth(request) == "user_abc"
        assert request.state.user_id == "user_abc"

    def test_raises_401_when_unauthenticated(self):
        with pytest.raises(HTTPException) as exc_info:
            require_auth(_make_request(session={}))

        assert exc_info.value.status_code == 401
