"""Authentication dependencies for routes.

Login and session issuance live outside this service. Whatever performs
them stores the authenticated user id in the signed session cookie
(Starlette SessionMiddleware); routes here only read it.
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request

from core.logger import bind_contextvars


def get_user_id_from_request(request: Request) -> str | None:
    """Get authenticated user ID from the session, or None."""
    if "session" not in request.scope:
        return None

    user_id = request.session.get("user_id")
    if user_id is None:
        return None
    return str(user_id)


def require_auth(request: Request) -> str:
    """Raises 401 if not authenticated. Sets request.state.user_id."""
    user_id = get_user_id_from_request(request)
    if not user_id:
        raise HTTPException(status_code=401, detail="Unauthorized")

    request.state.user_id = user_id
    bind_contextvars(user_id=user_id)
    return user_id


UserId = Annotated[str, Depends(require_auth)]
