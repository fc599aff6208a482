from fastapi import Header, HTTPException, Request

from hrdesk.db import get_db
from hrdesk.services.preferences import PreferenceStore
from hrdesk.services.query_layer import QueryLayer


def get_current_user_id(x_user_id: str | None = Header(default=None)) -> str:
    """Identify the caller.

    Authentication happens upstream; the gateway forwards the user id in the
    ``X-User-Id`` header.
    """
    user_id = (x_user_id or "").strip()
    if not user_id or len(user_id) > 64:
        raise HTTPException(status_code=401, detail="Missing user identity")
    return user_id


def get_query_layer(request: Request) -> QueryLayer:
    return request.app.state.query_layer


def get_preference_store(request: Request) -> PreferenceStore:
    return request.app.state.preference_store


__all__ = [
    "get_db",
    "get_current_user_id",
    "get_preference_store",
    "get_query_layer",
]
