"""
Friendship graph

Symmetric adjacency stored as one row per direction in user_friendships.
Edges are only written from the ledger's acceptance path.
"""

from typing import List, Set

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from lingopal.core.logging import get_logger
from lingopal.models.friend import Friendship
from lingopal.models.user import User

logger = get_logger(__name__)


class FriendshipGraph:

    @staticmethod
    async def is_friend(db: AsyncSession, user_id: str, other_id: str) -> bool:
        """Primary key lookup of the (user_id, other_id) edge"""
        edge = await db.get(Friendship, (user_id, other_id))
        return edge is not None

    @staticmethod
    async def add_edge(db: AsyncSession, user_id: str, other_id: str) -> int:
        """
        Insert both directions of the edge if missing.

        Idempotent: returns the number of rows actually added (0 when the
        friendship already exists). Flushes but never commits; the caller
        owns the transaction.
        """
        stmt = select(Friendship.user_id, Friendship.friend_id).where(
            or_(
                and_(Friendship.user_id == user_id, Friendship.friend_id == other_id),
                and_(Friendship.user_id == other_id, Friendship.friend_id == user_id),
            )
        )
        result = await db.execute(stmt)
        existing = {tuple(row) for row in result.all()}

        added = 0
        for a, b in ((user_id, other_id), (other_id, user_id)):
            if (a, b) not in existing:
                db.add(Friendship(user_id=a, friend_id=b))
                added += 1

        if added:
            await db.flush()
            logger.info("friendship.edge_added", user_id=user_id, friend_id=other_id, rows=added)
        return added

    @staticmethod
    async def friend_ids(db: AsyncSession, user_id: str) -> Set[str]:
        result = await db.execute(
            select(Friendship.friend_id).where(Friendship.user_id == user_id)
        )
        return set(result.scalars().all())

    @staticmethod
    async def friends_of(db: AsyncSession, user_id: str) -> List[User]:
        """Full profiles of a user's friends, oldest friendship first"""
        stmt = (
            select(User)
            .join(Friendship, Friendship.friend_id == User.id)
            .where(Friendship.user_id == user_id)
            .order_by(Friendship.created_at, User.id)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())
