from typing import Annotated, List

from fastapi import APIRouter, Path, status

from lingopal.core.deps import CurrentUserDep, SessionDep
from lingopal.friends.ledger import FriendRequestLedger
from lingopal.friends.schemas import (
    ErrorResponse,
    FriendRequestResponse,
    IncomingFriendRequest,
    OutgoingFriendRequest,
)

router = APIRouter(prefix="/friend-requests", tags=["friend-requests"])

RecipientId = Annotated[str, Path(description="The ID of the user to befriend", min_length=1, max_length=64)]
RequestId = Annotated[str, Path(description="The ID of the friend request", min_length=1, max_length=64)]


@router.get("/incoming", response_model=List[IncomingFriendRequest])
async def get_incoming_friend_requests(db: SessionDep, user_id: CurrentUserDep):
    """Requests addressed to me, any status, oldest first"""
    rows = await FriendRequestLedger.list_incoming(db, user_id)
    return [IncomingFriendRequest.from_row(request, sender) for request, sender in rows]


@router.get("/outgoing", response_model=List[OutgoingFriendRequest])
async def get_outgoing_friend_requests(db: SessionDep, user_id: CurrentUserDep):
    """My pending requests, oldest first"""
    rows = await FriendRequestLedger.list_outgoing(db, user_id)
    return [OutgoingFriendRequest.from_row(request, recipient) for request, recipient in rows]


@router.get("/accepted", response_model=List[OutgoingFriendRequest])
async def get_accepted_friend_requests(db: SessionDep, user_id: CurrentUserDep):
    """Requests I sent that the recipient accepted, newest first"""
    rows = await FriendRequestLedger.list_accepted_outgoing(db, user_id)
    return [OutgoingFriendRequest.from_row(request, recipient) for request, recipient in rows]


@router.post(
    "/{recipient_id}",
    response_model=FriendRequestResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Request to self"},
        404: {"model": ErrorResponse, "description": "Unknown user"},
        409: {"model": ErrorResponse, "description": "Duplicate request or already friends"},
    },
)
async def send_friend_request(
    recipient_id: RecipientId,
    db: SessionDep,
    user_id: CurrentUserDep,
):
    friend_request = await FriendRequestLedger.send_request(db, user_id, recipient_id)
    return FriendRequestResponse.from_request(friend_request)


@router.put(
    "/{request_id}/accept",
    response_model=FriendRequestResponse,
    responses={
        403: {"model": ErrorResponse, "description": "Caller is not the recipient"},
        404: {"model": ErrorResponse, "description": "Friend request not found"},
        409: {"model": ErrorResponse, "description": "Already accepted"},
    },
)
async def accept_friend_request(
    request_id: RequestId,
    db: SessionDep,
    user_id: CurrentUserDep,
):
    friend_request = await FriendRequestLedger.accept_request(db, request_id, user_id)
    return FriendRequestResponse.from_request(friend_request)
