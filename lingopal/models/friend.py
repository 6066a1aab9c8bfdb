from datetime import datetime
from typing import Optional, Tuple

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from lingopal.models.base import Base


REQUEST_PENDING = "pending"
REQUEST_ACCEPTED = "accepted"


def ordered_pair(a: str, b: str) -> Tuple[str, str]:
    """(low, high) ids of the unordered pair {a, b}"""
    low, high = sorted((a, b))
    return low, high


class FriendRequest(Base):
    __tablename__ = "friend_requests"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)

    sender_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False)
    recipient_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False)
    user_low_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False)
    user_high_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False)

    # status: 'pending' | 'accepted'
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=REQUEST_PENDING)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    responded_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=False), nullable=True)

    __table_args__ = (
        CheckConstraint("sender_id <> recipient_id", name="chk_friend_requests_not_self"),
        CheckConstraint("status IN ('pending', 'accepted')", name="chk_friend_requests_status"),

        # Requests are never deleted and only move pending -> accepted, so one row
        # per unordered pair covers both "one pending" and "none after accepted".
        UniqueConstraint("user_low_id", "user_high_id", name="uq_friend_requests_pair"),

        Index("idx_friend_requests_recipient", "recipient_id", "created_at"),
        Index("idx_friend_requests_sender", "sender_id", "status"),
    )


class Friendship(Base):
    """One direction of a friendship edge; an accepted pair has two rows."""

    __tablename__ = "user_friendships"

    user_id: Mapped[str] = mapped_column(ForeignKey("users.id"), primary_key=True)
    friend_id: Mapped[str] = mapped_column(ForeignKey("users.id"), primary_key=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    __table_args__ = (
        CheckConstraint("user_id <> friend_id", name="chk_user_friendships_not_self"),
        Index("idx_user_friendships_user_created", "user_id", "created_at"),
    )
