from __future__ import annotations
from functools import wraps
from flask import request, g, current_app

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"


def presented_access_token() -> str | None:
    """Access token from the cookie, or from `Authorization: Bearer` for non-browser clients."""
    token = request.cookies.get(ACCESS_COOKIE)
    if token:
        return token
    auth = request.headers.get("Authorization", "")
    if auth.startswith("Bearer "):
        return auth.split(" ", 1)[1].strip()
    return None


def jwt_required():
    """
    Guard a view with AuthService.authenticate. The resolved user is stored on
    g.current_user; failures raise AuthError, which the error handlers turn into a 401.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            auth_service = current_app.extensions["auth_service"]
            g.current_user = auth_service.authenticate(presented_access_token())
            return fn(*args, **kwargs)

        return wrapper

    return decorator
