"""
Users blueprint (mounted at /api/v1/users):
- POST  /users/register
- POST  /users/login
- POST  /users/logout
- POST  /users/refresh-token
- POST  /users/change-password
- GET   /users/me
- PATCH /users/me
- PATCH /users/me/avatar
- PATCH /users/me/cover
- GET   /users/channel/<username>
- POST  /users/channel/<username>/subscription
- DELETE /users/channel/<username>/subscription

Tokens travel both as http-only cookies and in the JSON body, so browser and
non-browser clients can use the same endpoints.
"""
from __future__ import annotations

from flask import Blueprint, current_app, g, request

from models.schemas.user import (
    AccountUpdateSchema,
    ChangePasswordSchema,
    ChannelProfileSchema,
    LoginSchema,
    RefreshSchema,
    RegisterSchema,
)
from utils.decorators import REFRESH_COOKIE, jwt_required

from .utils.responses import api_response, clear_session_cookies, set_session_cookies

bp = Blueprint("users", __name__)

register_schema = RegisterSchema()
login_schema = LoginSchema()
change_password_schema = ChangePasswordSchema()
account_update_schema = AccountUpdateSchema()
refresh_schema = RefreshSchema()
channel_profile_schema = ChannelProfileSchema()


def _auth():
    return current_app.extensions["auth_service"]


def _accounts():
    return current_app.extensions["account_service"]


@bp.post("/register")
def register():
    """
    Register a new user.
    ---
    tags:
      - Users
    consumes:
      - multipart/form-data
    parameters:
      - { in: formData, name: username, type: string, required: true }
      - { in: formData, name: email, type: string, required: true }
      - { in: formData, name: fullName, type: string, required: true }
      - { in: formData, name: password, type: string, required: true }
      - { in: formData, name: avatar, type: file, required: true }
      - { in: formData, name: coverImage, type: file, required: false }
    responses:
      201:
        description: Created
      400:
        description: Missing fields or avatar
      409:
        description: Username or email already registered
    """
    data = register_schema.load(request.form.to_dict())
    account = _auth().register(
        username=data["username"],
        email=data["email"],
        full_name=data["full_name"],
        password=data["password"],
        avatar=request.files.get("avatar"),
        cover_image=request.files.get("coverImage"),
    )
    return api_response(201, account, "User registered successfully")


@bp.post("/login")
def login():
    """
    Login with username or email; returns and sets the access and refresh tokens.
    ---
    tags:
      - Users
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            username: { type: string }
            email: { type: string }
            password: { type: string }
    responses:
      200:
        description: OK (returns user and tokens)
      401:
        description: Invalid credentials
      404:
        description: User does not exist
    """
    payload = login_schema.load(request.get_json(silent=True) or {})
    result = _auth().login(
        password=payload["password"],
        username=payload["username"],
        email=payload["email"],
    )
    response, status = api_response(
        200,
        {
            "user": result.account,
            "accessToken": result.access_token,
            "refreshToken": result.refresh_token,
        },
        "User logged in successfully",
    )
    return set_session_cookies(response, result.access_token, result.refresh_token), status


@bp.post("/logout")
@jwt_required()
def logout():
    """
    Logout: forget the stored refresh token and clear the cookies.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    responses:
      200:
        description: Logged out
      401:
        description: Unauthorized
    """
    _auth().logout(g.current_user.id)
    response, status = api_response(200, {}, "User logged out")
    return clear_session_cookies(response), status


@bp.post("/refresh-token")
def refresh_token():
    """
    Exchange a refresh token for a new access/refresh pair (rotation).
    The token is taken from the body, falling back to the refreshToken cookie.
    ---
    tags:
      - Users
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            refreshToken: { type: string }
    responses:
      200:
        description: New token pair
      401:
        description: Invalid, expired or already used refresh token
    """
    payload = refresh_schema.load(request.get_json(silent=True) or {})
    presented = payload["refresh_token"] or request.cookies.get(REFRESH_COOKIE)
    pair = _auth().refresh_session(presented)
    response, status = api_response(
        200,
        {"accessToken": pair.access_token, "refreshToken": pair.refresh_token},
        "Access token refreshed",
    )
    return set_session_cookies(response, pair.access_token, pair.refresh_token), status


@bp.post("/change-password")
@jwt_required()
def change_password():
    """
    Change the current user's password.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            oldPassword: { type: string }
            newPassword: { type: string }
    responses:
      200:
        description: Password changed
      400:
        description: Missing password
      401:
        description: Old password is wrong
    """
    payload = change_password_schema.load(request.get_json(silent=True) or {})
    _auth().change_password(g.current_user.id, payload["old_password"], payload["new_password"])
    return api_response(200, {}, "Password changed successfully")


@bp.get("/me")
@jwt_required()
def me():
    """
    Get current user info.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
    """
    return api_response(200, _accounts().get_profile(g.current_user), "Current user fetched successfully")


@bp.patch("/me")
@jwt_required()
def update_me():
    """
    Update fullName and/or email.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            fullName: { type: string }
            email: { type: string }
    responses:
      200:
        description: Updated
      409:
        description: Email already registered
    """
    payload = account_update_schema.load(request.get_json(silent=True) or {})
    account = _accounts().update_details(
        g.current_user,
        full_name=payload.get("full_name"),
        email=payload.get("email"),
    )
    return api_response(200, account, "Account details updated successfully")


@bp.patch("/me/avatar")
@jwt_required()
def update_avatar():
    """
    Replace the avatar image.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - multipart/form-data
    parameters:
      - { in: formData, name: avatar, type: file, required: true }
    responses:
      200:
        description: Updated
      400:
        description: Avatar file is missing
    """
    account = _accounts().update_avatar(g.current_user, request.files.get("avatar"))
    return api_response(200, account, "Avatar updated successfully")


@bp.patch("/me/cover")
@jwt_required()
def update_cover_image():
    """
    Replace the cover image.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - multipart/form-data
    parameters:
      - { in: formData, name: coverImage, type: file, required: true }
    responses:
      200:
        description: Updated
      400:
        description: Cover image file is missing
    """
    account = _accounts().update_cover_image(g.current_user, request.files.get("coverImage"))
    return api_response(200, account, "Cover image updated successfully")


@bp.get("/channel/<username>")
@jwt_required()
def channel_profile(username: str):
    """
    Channel profile with subscriber counts, seen from the current user.
    ---
    tags:
      - Channels
    security:
      - Bearer: []
    parameters:
      - { in: path, name: username, type: string, required: true }
    responses:
      200:
        description: OK
      404:
        description: Channel does not exist
    """
    profile = current_app.extensions["channel_profiles"].get(username, g.current_user.id)
    return api_response(200, channel_profile_schema.dump(profile), "Channel fetched successfully")


@bp.post("/channel/<username>/subscription")
@jwt_required()
def subscribe(username: str):
    """
    Subscribe the current user to a channel (idempotent).
    ---
    tags:
      - Channels
    security:
      - Bearer: []
    parameters:
      - { in: path, name: username, type: string, required: true }
    responses:
      200:
        description: Subscribed
      404:
        description: Channel does not exist
    """
    _accounts().subscribe(g.current_user, username)
    return api_response(200, {"subscribed": True}, "Subscribed")


@bp.delete("/channel/<username>/subscription")
@jwt_required()
def unsubscribe(username: str):
    """
    Remove the current user's subscription to a channel (idempotent).
    ---
    tags:
      - Channels
    security:
      - Bearer: []
    parameters:
      - { in: path, name: username, type: string, required: true }
    responses:
      200:
        description: Unsubscribed
      404:
        description: Channel does not exist
    """
    _accounts().unsubscribe(g.current_user, username)
    return api_response(200, {"subscribed": False}, "Unsubscribed")
