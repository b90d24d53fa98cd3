"""Profile maintenance and subscriptions for an already authenticated user."""
from __future__ import annotations

import logging

from models.repositories import SubscriptionRepository, UserRepository, normalize
from models.user import User
from services.auth_service import sanitize
from services.exceptions import ConflictError, NotFoundError, ValidationError
from services.media import LocalMediaStore

logger = logging.getLogger(__name__)


class AccountService:
    def __init__(self, users: UserRepository, subscriptions: SubscriptionRepository, media: LocalMediaStore):
        self.users = users
        self.subscriptions = subscriptions
        self.media = media

    def get_profile(self, user: User) -> dict:
        return sanitize(user)

    def update_details(self, user: User, full_name=None, email=None) -> dict:
        fields = {}
        if full_name is not None:
            if not full_name.strip():
                raise ValidationError("fullName cannot be blank")
            fields["full_name"] = normalize(full_name)
        if email is not None:
            if not email.strip():
                raise ValidationError("email cannot be blank")
            email = normalize(email)
            other = self.users.find_by_username_or_email(email=email)
            if other and other.id != user.id:
                raise ConflictError("Email already registered")
            fields["email"] = email
        if not fields:
            raise ValidationError("Provide fullName and/or email.")

        self.users.update_fields(user, **fields)
        return sanitize(user)

    def update_avatar(self, user: User, file) -> dict:
        url = self.media.upload(file)
        if not url:
            raise ValidationError("Avatar file is missing")
        self.users.update_fields(user, avatar=url)
        logger.info("user %s updated avatar", user.id)
        return sanitize(user)

    def update_cover_image(self, user: User, file) -> dict:
        url = self.media.upload(file)
        if not url:
            raise ValidationError("Cover image file is missing")
        self.users.update_fields(user, cover_image=url)
        logger.info("user %s updated cover image", user.id)
        return sanitize(user)

    def _channel(self, channel_username: str) -> User:
        if not channel_username or not channel_username.strip():
            raise ValidationError("username is missing")
        channel = self.users.find_by_username(channel_username)
        if not channel:
            raise NotFoundError("Channel does not exist")
        return channel

    def subscribe(self, user: User, channel_username: str) -> None:
        channel = self._channel(channel_username)
        self.subscriptions.subscribe(user.id, channel.id)

    def unsubscribe(self, user: User, channel_username: str) -> bool:
        channel = self._channel(channel_username)
        return self.subscriptions.unsubscribe(user.id, channel.id)
