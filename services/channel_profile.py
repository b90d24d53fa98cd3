"""
Channel profile aggregation.

The counts and the "is subscribed" flag come from correlated subqueries in the
same SELECT as the channel row, so one statement yields a consistent view even
while subscriptions change concurrently.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from sqlalchemy import exists, func, select

from models.repositories import normalize
from models.subscription import Subscription
from models.user import User
from services.exceptions import NotFoundError, ValidationError


@dataclass(frozen=True)
class ChannelProfile:
    full_name: str
    email: str
    avatar: str
    cover_image: str
    subscriber_count: int
    subscribed_to_count: int
    is_subscribed: bool


class ChannelProfileQuery:
    def __init__(self, storage):
        self._storage = storage

    def get(self, channel_username: str, viewer_id: Optional[str]) -> ChannelProfile:
        username = normalize(channel_username)
        if not username:
            raise ValidationError("username is missing")

        subscriber_count = (
            select(func.count(Subscription.id))
            .where(Subscription.channel_id == User.id)
            .correlate(User)
            .scalar_subquery()
        )
        subscribed_to_count = (
            select(func.count(Subscription.id))
            .where(Subscription.subscriber_id == User.id)
            .correlate(User)
            .scalar_subquery()
        )
        is_subscribed = (
            exists()
            .where(Subscription.channel_id == User.id, Subscription.subscriber_id == viewer_id)
            .correlate(User)
        )

        stmt = select(
            User.full_name,
            User.email,
            User.avatar,
            User.cover_image,
            subscriber_count.label("subscriber_count"),
            subscribed_to_count.label("subscribed_to_count"),
            is_subscribed.label("is_subscribed"),
        ).where(User.username == username)

        row = self._storage.get_session().execute(stmt).first()
        if row is None:
            raise NotFoundError("Channel does not exist")

        return ChannelProfile(
            full_name=row.full_name,
            email=row.email,
            avatar=row.avatar,
            cover_image=row.cover_image,
            subscriber_count=row.subscriber_count,
            subscribed_to_count=row.subscribed_to_count,
            is_subscribed=bool(row.is_subscribed),
        )
