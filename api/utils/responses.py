"""
Response envelope and session cookies.

Every response body is {"statusCode", "data", "message", "success"} with
success == statusCode < 400.
"""
from flask import current_app, jsonify

from utils.decorators import ACCESS_COOKIE, REFRESH_COOKIE


def api_response(status: int, data=None, message: str = "Success", **extra):
    payload = {
        "statusCode": status,
        "data": data,
        "message": message,
        "success": status < 400,
        **extra,
    }
    return jsonify(payload), status


def _cookie_options() -> dict:
    return {
        "httponly": True,
        "secure": current_app.config.get("COOKIE_SECURE", True),
        "samesite": current_app.config.get("COOKIE_SAMESITE", "Strict"),
    }


def set_session_cookies(response, access_token: str, refresh_token: str):
    options = _cookie_options()
    response.set_cookie(
        ACCESS_COOKIE,
        access_token,
        max_age=int(current_app.config["ACCESS_TOKEN_EXPIRES"].total_seconds()),
        **options,
    )
    response.set_cookie(
        REFRESH_COOKIE,
        refresh_token,
        max_age=int(current_app.config["REFRESH_TOKEN_EXPIRES"].total_seconds()),
        **options,
    )
    return response


def clear_session_cookies(response):
    options = _cookie_options()
    response.delete_cookie(ACCESS_COOKIE, **options)
    response.delete_cookie(REFRESH_COOKIE, **options)
    return response
