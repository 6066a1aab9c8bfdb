"""
Friend request ledger

Owns the request state machine: a request is created pending and may move
once to accepted. Requests are never deleted. Acceptance and the two-sided
friendship edge are written in one transaction.
"""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, List, Optional, Set, Tuple
from uuid import uuid4

from sqlalchemy import or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lingopal.core.errors import (
    AlreadyAcceptedError,
    AlreadyFriendsError,
    AppError,
    DuplicateRequestError,
    InternalError,
    NotFoundError,
    SelfRequestError,
    UnauthorizedError,
)
from lingopal.core.logging import get_logger
from lingopal.friends.directory import UserDirectory
from lingopal.friends.graph import FriendshipGraph
from lingopal.models.friend import (
    REQUEST_ACCEPTED,
    REQUEST_PENDING,
    FriendRequest,
    ordered_pair,
)
from lingopal.models.user import User

logger = get_logger(__name__)

RequestWithUser = Tuple[FriendRequest, User]


@asynccontextmanager
async def storage_errors(db: AsyncSession, operation: str) -> AsyncIterator[None]:
    """Roll back and hide raw storage failures behind InternalError"""
    try:
        yield
    except AppError:
        raise
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("db.error", operation=operation, error=str(exc))
        raise InternalError() from exc


def _conflict_for(existing: FriendRequest) -> AppError:
    """Typed error for a pair that already has a request row"""
    if existing.status == REQUEST_ACCEPTED:
        return AlreadyFriendsError(details={"request_id": existing.id})
    return DuplicateRequestError(details={"request_id": existing.id})


class FriendRequestLedger:

    @staticmethod
    async def get_by_id(db: AsyncSession, request_id: str) -> Optional[FriendRequest]:
        stmt = (
            select(FriendRequest)
            .where(FriendRequest.id == request_id)
            .execution_options(populate_existing=True)
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_pair(db: AsyncSession, user_id: str, other_id: str) -> Optional[FriendRequest]:
        """The request between two users in either direction, if any"""
        low, high = ordered_pair(user_id, other_id)
        stmt = (
            select(FriendRequest)
            .where(
                FriendRequest.user_low_id == low,
                FriendRequest.user_high_id == high,
            )
            .execution_options(populate_existing=True)
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def send_request(db: AsyncSession, sender_id: str, recipient_id: str) -> FriendRequest:
        """
        Create a pending request from sender to recipient.

        Raises SelfRequestError, NotFoundError, AlreadyFriendsError or
        DuplicateRequestError, checked in that order.
        """
        if sender_id == recipient_id:
            raise SelfRequestError(details={"user_id": sender_id})

        async with storage_errors(db, "friend_request.send"):
            await UserDirectory.require(db, sender_id)
            await UserDirectory.require(db, recipient_id)

            if await FriendshipGraph.is_friend(db, sender_id, recipient_id):
                raise AlreadyFriendsError()

            existing = await FriendRequestLedger.get_by_pair(db, sender_id, recipient_id)
            if existing is not None:
                raise _conflict_for(existing)

            low, high = ordered_pair(sender_id, recipient_id)
            friend_request = FriendRequest(
                id=str(uuid4()),
                sender_id=sender_id,
                recipient_id=recipient_id,
                user_low_id=low,
                user_high_id=high,
                status=REQUEST_PENDING,
                created_at=datetime.utcnow(),
            )
            db.add(friend_request)

            try:
                await db.commit()
            except IntegrityError:
                # Another writer inserted the pair between our check and commit
                await db.rollback()
                existing = await FriendRequestLedger.get_by_pair(db, sender_id, recipient_id)
                if existing is None:
                    raise
                logger.info(
                    "friend_request.race_lost",
                    operation="send",
                    sender_id=sender_id,
                    recipient_id=recipient_id,
                )
                raise _conflict_for(existing)

        logger.info(
            "friend_request.sent",
            request_id=friend_request.id,
            sender_id=sender_id,
            recipient_id=recipient_id,
        )
        return friend_request

    @staticmethod
    async def accept_request(db: AsyncSession, request_id: str, acting_user_id: str) -> FriendRequest:
        """
        Accept a pending request as its recipient.

        The status flip is conditional on the row still being pending, so of
        two concurrent accepts exactly one transitions and inserts the edge.
        """
        async with storage_errors(db, "friend_request.accept"):
            friend_request = await FriendRequestLedger.get_by_id(db, request_id)
            if friend_request is None:
                raise NotFoundError("Friend request not found", details={"request_id": request_id})

            if friend_request.recipient_id != acting_user_id:
                raise UnauthorizedError(details={"request_id": request_id})

            if friend_request.status == REQUEST_ACCEPTED:
                raise AlreadyAcceptedError(details={"request_id": request_id})

            sender_id = friend_request.sender_id
            recipient_id = friend_request.recipient_id

            result = await db.execute(
                update(FriendRequest)
                .where(
                    FriendRequest.id == request_id,
                    FriendRequest.status == REQUEST_PENDING,
                )
                .values(status=REQUEST_ACCEPTED, responded_at=datetime.utcnow())
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                await db.rollback()
                logger.info("friend_request.race_lost", operation="accept", request_id=request_id)
                raise AlreadyAcceptedError(details={"request_id": request_id})

            await FriendshipGraph.add_edge(db, sender_id, recipient_id)
            await db.commit()
            await db.refresh(friend_request)

        logger.info(
            "friend_request.accepted",
            request_id=request_id,
            sender_id=sender_id,
            recipient_id=recipient_id,
        )
        return friend_request

    @staticmethod
    async def list_incoming(db: AsyncSession, user_id: str) -> List[RequestWithUser]:
        """Every request addressed to the user, oldest first, with the sender"""
        stmt = (
            select(FriendRequest, User)
            .join(User, FriendRequest.sender_id == User.id)
            .where(FriendRequest.recipient_id == user_id)
            .order_by(FriendRequest.created_at, FriendRequest.id)
        )
        result = await db.execute(stmt)
        return [(row[0], row[1]) for row in result.all()]

    @staticmethod
    async def list_outgoing(db: AsyncSession, user_id: str) -> List[RequestWithUser]:
        """Pending requests sent by the user, oldest first, with the recipient"""
        stmt = (
            select(FriendRequest, User)
            .join(User, FriendRequest.recipient_id == User.id)
            .where(
                FriendRequest.sender_id == user_id,
                FriendRequest.status == REQUEST_PENDING,
            )
            .order_by(FriendRequest.created_at, FriendRequest.id)
        )
        result = await db.execute(stmt)
        return [(row[0], row[1]) for row in result.all()]

    @staticmethod
    async def list_accepted_outgoing(db: AsyncSession, user_id: str) -> List[RequestWithUser]:
        """Requests the user sent that were accepted, most recently accepted first"""
        stmt = (
            select(FriendRequest, User)
            .join(User, FriendRequest.recipient_id == User.id)
            .where(
                FriendRequest.sender_id == user_id,
                FriendRequest.status == REQUEST_ACCEPTED,
            )
            .order_by(FriendRequest.responded_at.desc(), FriendRequest.id)
        )
        result = await db.execute(stmt)
        return [(row[0], row[1]) for row in result.all()]

    @staticmethod
    async def open_request_partner_ids(db: AsyncSession, user_id: str) -> Set[str]:
        """Ids of users sharing a pending request with the user, either direction"""
        stmt = select(FriendRequest.sender_id, FriendRequest.recipient_id).where(
            FriendRequest.status == REQUEST_PENDING,
            or_(FriendRequest.sender_id == user_id, FriendRequest.recipient_id == user_id),
        )
        result = await db.execute(stmt)
        return {
            recipient_id if sender_id == user_id else sender_id
            for sender_id, recipient_id in result.all()
        }
