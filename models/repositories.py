"""
Repositories: the only code that reads or writes User and Subscription rows.

Every mutation is a single-row INSERT/UPDATE/DELETE committed on its own, so
each one is atomic at the row level. Refresh-token rotation goes through
swap_refresh_token(), a conditional UPDATE that acts as compare-and-swap.
"""
from __future__ import annotations

from typing import Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from models.subscription import Subscription
from models.user import User
from services.exceptions import ConflictError


def normalize(value: Optional[str]) -> Optional[str]:
    """Trim and lowercase identifiers (username, email)."""
    return value.strip().lower() if isinstance(value, str) else value


class UserRepository:
    def __init__(self, storage):
        self._storage = storage

    @property
    def _session(self):
        return self._storage.get_session()

    def create(self, **fields) -> User:
        user = User(**fields)
        self._storage.new(user)
        try:
            self._storage.save()
        except IntegrityError as exc:
            raise ConflictError("User with the same username or email already exists") from exc
        return user

    def get(self, user_id: str) -> Optional[User]:
        return self._storage.get(User, user_id)

    def find_by_username(self, username: str) -> Optional[User]:
        return self._session.query(User).filter(User.username == normalize(username)).first()

    def find_by_username_or_email(self, username: str | None = None, email: str | None = None) -> Optional[User]:
        criteria = []
        if username:
            criteria.append(User.username == normalize(username))
        if email:
            criteria.append(User.email == normalize(email))
        if not criteria:
            return None
        return self._session.query(User).filter(or_(*criteria)).first()

    def update_fields(self, user: User, **fields) -> User:
        for key, value in fields.items():
            setattr(user, key, value)
        self._storage.new(user)
        try:
            self._storage.save()
        except IntegrityError as exc:
            raise ConflictError("Another user already uses that value") from exc
        return user

    def set_refresh_token(self, user_id: str, token: Optional[str]) -> None:
        """Overwrite (or clear, with None) the stored refresh token."""
        self._session.query(User).filter(User.id == user_id).update({User.refresh_token: token})
        self._storage.save()

    def clear_refresh_token(self, user_id: str) -> None:
        self.set_refresh_token(user_id, None)

    def swap_refresh_token(self, user_id: str, expected: str, new: str) -> bool:
        """
        Replace the stored refresh token only if it still equals `expected`.
        Returns False when another request rotated it first.
        """
        updated = (
            self._session.query(User)
            .filter(User.id == user_id, User.refresh_token == expected)
            .update({User.refresh_token: new})
        )
        self._storage.save()
        return updated == 1

    def delete(self, user: User) -> None:
        self._storage.delete(user)
        self._storage.save()


class SubscriptionRepository:
    def __init__(self, storage):
        self._storage = storage

    @property
    def _session(self):
        return self._storage.get_session()

    def find(self, subscriber_id: str, channel_id: str) -> Optional[Subscription]:
        return (
            self._session.query(Subscription)
            .filter(Subscription.subscriber_id == subscriber_id, Subscription.channel_id == channel_id)
            .first()
        )

    def subscribe(self, subscriber_id: str, channel_id: str) -> Subscription:
        existing = self.find(subscriber_id, channel_id)
        if existing:
            return existing
        subscription = Subscription(subscriber_id=subscriber_id, channel_id=channel_id)
        self._storage.new(subscription)
        try:
            self._storage.save()
        except IntegrityError:
            # a concurrent request inserted the same pair first
            return self.find(subscriber_id, channel_id)
        return subscription

    def unsubscribe(self, subscriber_id: str, channel_id: str) -> bool:
        deleted = (
            self._session.query(Subscription)
            .filter(Subscription.subscriber_id == subscriber_id, Subscription.channel_id == channel_id)
            .delete()
        )
        self._storage.save()
        return deleted > 0
