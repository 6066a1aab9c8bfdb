"""
Pydantic response schemas for the friend API.

Field names are snake_case in Python and camelCase on the wire.
"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from lingopal.models.friend import FriendRequest
from lingopal.models.user import User


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


# ============ User Schemas ============

class UserProfile(CamelModel):
    """Public profile shown in friend lists and recommendations"""
    id: str
    full_name: str
    email: str
    profile_pic: Optional[str] = None
    bio: Optional[str] = None
    native_language: Optional[str] = None
    learning_language: Optional[str] = None
    location: Optional[str] = None
    is_onboarded: bool

    @classmethod
    def from_user(cls, user: User) -> "UserProfile":
        return cls(
            id=user.id,
            full_name=user.full_name,
            email=user.email,
            profile_pic=user.profile_pic,
            bio=user.bio,
            native_language=user.native_language,
            learning_language=user.learning_language,
            location=user.location,
            is_onboarded=user.is_onboarded,
        )


# ============ Friend Request Schemas ============

class FriendRequestBase(CamelModel):
    id: str
    status: Literal["pending", "accepted"]
    created_at: datetime
    responded_at: Optional[datetime] = None


class FriendRequestResponse(FriendRequestBase):
    """Bare request returned by send and accept"""
    sender: str
    recipient: str

    @classmethod
    def from_request(cls, request: FriendRequest) -> "FriendRequestResponse":
        return cls(
            id=request.id,
            sender=request.sender_id,
            recipient=request.recipient_id,
            status=request.status,
            created_at=request.created_at,
            responded_at=request.responded_at,
        )


class IncomingFriendRequest(FriendRequestBase):
    sender: UserProfile
    recipient: str

    @classmethod
    def from_row(cls, request: FriendRequest, sender: User) -> "IncomingFriendRequest":
        return cls(
            id=request.id,
            sender=UserProfile.from_user(sender),
            recipient=request.recipient_id,
            status=request.status,
            created_at=request.created_at,
            responded_at=request.responded_at,
        )


class OutgoingFriendRequest(FriendRequestBase):
    sender: str
    recipient: UserProfile

    @classmethod
    def from_row(cls, request: FriendRequest, recipient: User) -> "OutgoingFriendRequest":
        return cls(
            id=request.id,
            sender=request.sender_id,
            recipient=UserProfile.from_user(recipient),
            status=request.status,
            created_at=request.created_at,
            responded_at=request.responded_at,
        )


# ============ Generic Response Schemas ============

class ErrorBody(BaseModel):
    code: str
    message: str
    details: dict = {}


class ErrorResponse(BaseModel):
    """Shape of every non-2xx response"""
    error: ErrorBody
