"""Request identity helpers.

Authentication happens upstream; the auth gateway forwards the resolved user
id in ``X-User-ID``. Anonymous callers are keyed by client address. Header
derived addresses are spoofable, so rate limiting is best-effort only.
"""
from fastapi import HTTPException, Request

from recipes.service.generation import Identity

USER_ID_HEADER = "x-user-id"
UNKNOWN_CLIENT = "unknown"
MAX_USER_ID_LENGTH = 255


def get_user_id(request: Request) -> str | None:
    user_id = (request.headers.get(USER_ID_HEADER) or "").strip()
    if not user_id or len(user_id) > MAX_USER_ID_LENGTH:
        return None
    return user_id


def get_client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    for header in ("x-real-ip", "cf-connecting-ip"):
        value = (request.headers.get(header) or "").strip()
        if value:
            return value
    return UNKNOWN_CLIENT


def resolve_identity(request: Request) -> Identity:
    user_id = get_user_id(request)
    if user_id:
        return Identity(key=f"user:{user_id}", authenticated=True)
    return Identity(key=f"ip:{get_client_ip(request)}", authenticated=False)


def require_user_id(request: Request) -> str:
    user_id = get_user_id(request)
    if user_id is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    return user_id
