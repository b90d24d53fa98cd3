"""
Authentication and session lifecycle.

A user moves between three states:
- anonymous: no stored refresh token
- authenticated: login or refresh stored a refresh token and handed out a
  fresh access/refresh pair
- revoked: logout cleared the stored refresh token

A refresh token is accepted only while it is both a valid JWT and the exact
value stored on the user. Each refresh replaces it, so a token that was
rotated away stays rejected even before it expires.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from models.repositories import UserRepository, normalize
from models.schemas.user import UserOutSchema
from models.user import User
from services.exceptions import AuthError, ConflictError, NotFoundError, ValidationError
from services.media import LocalMediaStore
from utils.security import CredentialHasher, InvalidTokenError, TokenKind, TokenService

logger = logging.getLogger(__name__)

user_out_schema = UserOutSchema()


def sanitize(user: User) -> dict:
    """Public representation of a user; secrets are never included."""
    return user_out_schema.dump(user)


def _blank(value) -> bool:
    return value is None or not str(value).strip()


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


@dataclass(frozen=True)
class LoginResult:
    account: dict
    access_token: str
    refresh_token: str


class AuthService:
    def __init__(
        self,
        users: UserRepository,
        hasher: CredentialHasher,
        tokens: TokenService,
        media: LocalMediaStore,
    ):
        self.users = users
        self.hasher = hasher
        self.tokens = tokens
        self.media = media

    def register(self, username, email, full_name, password, avatar, cover_image=None) -> dict:
        """
        Create a user. `avatar` and `cover_image` are uploaded files; the avatar
        is mandatory. Uploaded media is not removed if the insert fails.
        """
        if any(_blank(v) for v in (username, email, full_name, password)):
            raise ValidationError("All fields are required")

        username, email = normalize(username), normalize(email)
        if self.users.find_by_username_or_email(username=username, email=email):
            raise ConflictError("User with the same username or email already exists")

        avatar_url = self.media.upload(avatar)
        if not avatar_url:
            raise ValidationError("Avatar is required")
        cover_url = self.media.upload(cover_image) or ""

        user = self.users.create(
            username=username,
            email=email,
            full_name=normalize(full_name),
            password_hash=self.hasher.hash(password),
            avatar=avatar_url,
            cover_image=cover_url,
            watch_history=[],
        )
        logger.info("registered user %s", user.id)
        return sanitize(user)

    def login(self, password, username=None, email=None) -> LoginResult:
        if _blank(username) and _blank(email):
            raise ValidationError("username or email is required")
        if _blank(password):
            raise ValidationError("password is required")

        user = self.users.find_by_username_or_email(username=username, email=email)
        if not user:
            raise NotFoundError("User does not exist")
        if not self.hasher.verify(password, user.password_hash):
            logger.info("login rejected for user %s: bad password", user.id)
            raise AuthError("Invalid user credentials")

        pair = self._issue_pair(user)
        self.users.set_refresh_token(user.id, pair.refresh_token)
        logger.info("user %s logged in", user.id)
        return LoginResult(sanitize(user), pair.access_token, pair.refresh_token)

    def logout(self, user_id: str) -> None:
        self.users.clear_refresh_token(user_id)
        logger.info("user %s logged out", user_id)

    def refresh_session(self, presented: Optional[str]) -> TokenPair:
        if _blank(presented):
            raise AuthError("Unauthorized request")
        try:
            claims = self.tokens.verify(presented, TokenKind.REFRESH)
        except InvalidTokenError as exc:
            logger.info("refresh token rejected: %s", exc.reason.value)
            raise AuthError("Invalid refresh token") from exc

        user = self.users.get(claims["id"])
        if not user:
            raise NotFoundError("User does not exist")
        if user.refresh_token != presented:
            logger.info("stale refresh token presented for user %s", user.id)
            raise AuthError("Refresh token is expired or used")

        pair = self._issue_pair(user)
        if not self.users.swap_refresh_token(user.id, presented, pair.refresh_token):
            logger.info("concurrent refresh lost the race for user %s", user.id)
            raise AuthError("Refresh token is expired or used")
        return pair

    def change_password(self, user_id: str, old_password, new_password) -> None:
        """Replace the password hash. The stored refresh token is left as is."""
        if _blank(old_password) or _blank(new_password):
            raise ValidationError("oldPassword and newPassword are required")

        user = self.users.get(user_id)
        if not user:
            raise NotFoundError("User does not exist")
        if not self.hasher.verify(old_password, user.password_hash):
            raise AuthError("Invalid old password")

        self.users.update_fields(user, password_hash=self.hasher.hash(new_password))
        logger.info("user %s changed password", user.id)

    def authenticate(self, access_token: Optional[str]) -> User:
        """Access guard: resolve a presented access token to its user."""
        if _blank(access_token):
            raise AuthError("Unauthorized request")
        try:
            claims = self.tokens.verify(access_token, TokenKind.ACCESS)
        except InvalidTokenError as exc:
            logger.info("access token rejected: %s", exc.reason.value)
            raise AuthError("Invalid access token") from exc

        user = self.users.get(claims["id"])
        if not user:
            raise AuthError("Invalid access token")
        return user

    def _issue_pair(self, user: User) -> TokenPair:
        return TokenPair(self.tokens.issue_access(user), self.tokens.issue_refresh(user))
