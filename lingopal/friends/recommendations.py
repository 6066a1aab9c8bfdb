"""
Partner recommendations

Candidates are onboarded users who are neither the viewer nor already the
viewer's friends. Results are recomputed on every call and streamed in
directory order (created_at, id).
"""

from typing import AbstractSet, AsyncIterator, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lingopal.core.config import settings
from lingopal.core.logging import LatencyLogger, get_logger
from lingopal.friends.graph import FriendshipGraph
from lingopal.friends.ledger import FriendRequestLedger
from lingopal.models.user import User

logger = get_logger(__name__)


def is_candidate(
    user: User,
    viewer_id: str,
    friend_ids: AbstractSet[str],
    excluded_ids: AbstractSet[str] = frozenset(),
) -> bool:
    """Filter predicate deciding whether `user` may be recommended to `viewer_id`"""
    return (
        bool(user.is_onboarded)
        and user.id != viewer_id
        and user.id not in friend_ids
        and user.id not in excluded_ids
    )


class RecommendationEngine:

    @staticmethod
    async def recommend(
        db: AsyncSession,
        user_id: str,
        exclude_pending: Optional[bool] = None,
    ) -> AsyncIterator[User]:
        """
        Lazily yield candidate partners for `user_id`.

        Users sharing a pending request with the viewer are still
        recommended unless `exclude_pending` (default taken from
        RECOMMEND_EXCLUDE_PENDING) is true.
        """
        if exclude_pending is None:
            exclude_pending = settings.recommend_exclude_pending

        friend_ids = await FriendshipGraph.friend_ids(db, user_id)
        excluded_ids: AbstractSet[str] = frozenset()
        if exclude_pending:
            excluded_ids = await FriendRequestLedger.open_request_partner_ids(db, user_id)

        stmt = (
            select(User)
            .where(User.is_onboarded.is_(True), User.id != user_id)
            .order_by(User.created_at, User.id)
        )

        yielded = 0
        with LatencyLogger("recommendations.served", logger, user_id=user_id) as timer:
            result = await db.stream_scalars(stmt)
            try:
                async for user in result:
                    if is_candidate(user, user_id, friend_ids, excluded_ids):
                        yielded += 1
                        yield user
            finally:
                await result.close()
                timer.context["candidates"] = yielded
