"""
Subscription model: a directed edge subscriber -> channel, both being users.
Fields:
- subscriber_id (String(36)) - FK to users.id
- channel_id (String(36)) - FK to users.id
- created_at, updated_at
A user may subscribe to their own channel; nothing here forbids it.
"""
from sqlalchemy import Column, String, ForeignKey, UniqueConstraint, Index
from models.base_model import BaseModel, Base


class Subscription(BaseModel, Base):
    __tablename__ = "subscriptions"

    subscriber_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    channel_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    __table_args__ = (
        UniqueConstraint("subscriber_id", "channel_id", name="uq_subscriptions_pair"),
        Index("ix_subscriptions_channel", "channel_id"),
        Index("ix_subscriptions_subscriber", "subscriber_id"),
    )
