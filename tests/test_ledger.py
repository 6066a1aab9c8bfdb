"""
Tests for the friend request ledger state machine
"""

import pytest
from sqlalchemy.exc import OperationalError

from lingopal.core.errors import (
    AlreadyAcceptedError,
    AlreadyFriendsError,
    DuplicateRequestError,
    InternalError,
    NotFoundError,
    SelfRequestError,
    UnauthorizedError,
)
from lingopal.friends.graph import FriendshipGraph
from lingopal.friends.ledger import FriendRequestLedger
from lingopal.models.friend import REQUEST_ACCEPTED, REQUEST_PENDING


class TestSendRequest:

    @pytest.mark.asyncio
    async def test_creates_pending_request(self, db, users):
        request = await FriendRequestLedger.send_request(db, "u1", "u2")

        assert request.sender_id == "u1"
        assert request.recipient_id == "u2"
        assert request.status == REQUEST_PENDING
        assert request.created_at is not None
        assert request.responded_at is None
        assert not await FriendshipGraph.is_friend(db, "u1", "u2")

    @pytest.mark.asyncio
    async def test_self_request_is_rejected(self, db, users):
        with pytest.raises(SelfRequestError):
            await FriendRequestLedger.send_request(db, "u1", "u1")

    @pytest.mark.asyncio
    async def test_self_request_checked_before_directory(self, db):
        # no users seeded: the self check must still win over NotFound
        with pytest.raises(SelfRequestError):
            await FriendRequestLedger.send_request(db, "ghost", "ghost")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("sender_id,recipient_id", [("u1", "nobody"), ("nobody", "u1")])
    async def test_unknown_user(self, db, users, sender_id, recipient_id):
        with pytest.raises(NotFoundError) as exc_info:
            await FriendRequestLedger.send_request(db, sender_id, recipient_id)
        assert exc_info.value.details == {"user_id": "nobody"}

    @pytest.mark.asyncio
    async def test_duplicate_same_direction(self, db, users):
        await FriendRequestLedger.send_request(db, "u1", "u2")

        with pytest.raises(DuplicateRequestError):
            await FriendRequestLedger.send_request(db, "u1", "u2")

    @pytest.mark.asyncio
    async def test_duplicate_reverse_direction(self, db, users):
        """u1 -> u2 is pending, so u2 -> u1 is the same pair"""
        await FriendRequestLedger.send_request(db, "u1", "u2")

        with pytest.raises(DuplicateRequestError):
            await FriendRequestLedger.send_request(db, "u2", "u1")

    @pytest.mark.asyncio
    async def test_no_new_request_once_friends(self, db, users):
        request = await FriendRequestLedger.send_request(db, "u1", "u2")
        await FriendRequestLedger.accept_request(db, request.id, "u2")

        for sender_id, recipient_id in [("u1", "u2"), ("u2", "u1")]:
            with pytest.raises(AlreadyFriendsError):
                await FriendRequestLedger.send_request(db, sender_id, recipient_id)

    @pytest.mark.asyncio
    async def test_other_pairs_unaffected(self, db, users):
        await FriendRequestLedger.send_request(db, "u1", "u2")
        await FriendRequestLedger.send_request(db, "u3", "u2")
        await FriendRequestLedger.send_request(db, "u1", "u3")

        incoming = await FriendRequestLedger.list_incoming(db, "u2")
        assert {request.sender_id for request, _ in incoming} == {"u1", "u3"}

    @pytest.mark.asyncio
    async def test_pairs_with_colon_ids_are_distinct(self, db, add_users):
        """{a:b, c} and {a, b:c} are different pairs even though the ids join the same way"""
        await add_users("a", "b:c", "a:b", "c")

        first = await FriendRequestLedger.send_request(db, "a:b", "c")
        second = await FriendRequestLedger.send_request(db, "a", "b:c")

        assert first.id != second.id
        assert (second.sender_id, second.recipient_id) == ("a", "b:c")
        assert (await FriendRequestLedger.get_by_pair(db, "b:c", "a")).id == second.id
        assert (await FriendRequestLedger.get_by_pair(db, "c", "a:b")).id == first.id

    @pytest.mark.asyncio
    async def test_accepted_colon_pair_does_not_block_other_pair(self, db, add_users):
        await add_users("a", "b:c", "a:b", "c")
        first = await FriendRequestLedger.send_request(db, "a:b", "c")
        await FriendRequestLedger.accept_request(db, first.id, "c")

        second = await FriendRequestLedger.send_request(db, "a", "b:c")

        assert second.status == REQUEST_PENDING

    @pytest.mark.asyncio
    async def test_storage_failure_is_wrapped(self, db, users, monkeypatch):
        async def broken_commit():
            raise OperationalError("INSERT INTO friend_requests", {}, Exception("disk I/O error"))

        monkeypatch.setattr(db, "commit", broken_commit)

        with pytest.raises(InternalError) as exc_info:
            await FriendRequestLedger.send_request(db, "u1", "u2")
        assert "disk" not in exc_info.value.message


class TestAcceptRequest:

    @pytest.mark.asyncio
    async def test_accept_makes_symmetric_friendship(self, db, users):
        request = await FriendRequestLedger.send_request(db, "u1", "u2")

        accepted = await FriendRequestLedger.accept_request(db, request.id, "u2")

        assert accepted.id == request.id
        assert accepted.status == REQUEST_ACCEPTED
        assert accepted.responded_at is not None
        assert await FriendshipGraph.is_friend(db, "u1", "u2")
        assert await FriendshipGraph.is_friend(db, "u2", "u1")

    @pytest.mark.asyncio
    async def test_unknown_request(self, db, users):
        with pytest.raises(NotFoundError):
            await FriendRequestLedger.accept_request(db, "missing-request", "u2")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("actor", ["u1", "u3"])
    async def test_only_recipient_may_accept(self, db, users, actor):
        request = await FriendRequestLedger.send_request(db, "u1", "u2")
        request_id = request.id

        with pytest.raises(UnauthorizedError):
            await FriendRequestLedger.accept_request(db, request_id, actor)

        assert not await FriendshipGraph.is_friend(db, "u1", "u2")
        stored = await FriendRequestLedger.get_by_id(db, request_id)
        assert stored.status == REQUEST_PENDING

    @pytest.mark.asyncio
    async def test_second_accept_fails(self, db, users):
        request = await FriendRequestLedger.send_request(db, "u1", "u2")
        await FriendRequestLedger.accept_request(db, request.id, "u2")

        with pytest.raises(AlreadyAcceptedError):
            await FriendRequestLedger.accept_request(db, request.id, "u2")

        assert await FriendshipGraph.friend_ids(db, "u1") == {"u2"}
        assert await FriendshipGraph.friend_ids(db, "u2") == {"u1"}

    @pytest.mark.asyncio
    async def test_unauthorized_checked_before_already_accepted(self, db, users):
        request = await FriendRequestLedger.send_request(db, "u1", "u2")
        await FriendRequestLedger.accept_request(db, request.id, "u2")

        with pytest.raises(UnauthorizedError):
            await FriendRequestLedger.accept_request(db, request.id, "u3")


class TestListings:

    @pytest.mark.asyncio
    async def test_outgoing_and_incoming_scenario(self, db, users):
        request = await FriendRequestLedger.send_request(db, "u1", "u2")

        outgoing = await FriendRequestLedger.list_outgoing(db, "u1")
        assert [(r.id, r.status) for r, _ in outgoing] == [(request.id, REQUEST_PENDING)]
        assert outgoing[0][1].id == "u2"

        incoming = await FriendRequestLedger.list_incoming(db, "u2")
        assert [r.id for r, _ in incoming] == [request.id]
        assert incoming[0][1].full_name == "Alice Martin"

        await FriendRequestLedger.accept_request(db, request.id, "u2")

        assert await FriendRequestLedger.list_outgoing(db, "u1") == []
        incoming = await FriendRequestLedger.list_incoming(db, "u2")
        assert [r.status for r, _ in incoming] == [REQUEST_ACCEPTED]
        assert [u.id for u in await FriendshipGraph.friends_of(db, "u1")] == ["u2"]
        assert [u.id for u in await FriendshipGraph.friends_of(db, "u2")] == ["u1"]

    @pytest.mark.asyncio
    async def test_incoming_lists_only_addressed_requests(self, db, users):
        await FriendRequestLedger.send_request(db, "u1", "u2")
        await FriendRequestLedger.send_request(db, "u2", "u3")

        incoming = await FriendRequestLedger.list_incoming(db, "u2")
        assert [(r.sender_id, r.recipient_id) for r, _ in incoming] == [("u1", "u2")]
        assert await FriendRequestLedger.list_incoming(db, "u4") == []

    @pytest.mark.asyncio
    async def test_accepted_outgoing(self, db, users):
        first = await FriendRequestLedger.send_request(db, "u1", "u2")
        await FriendRequestLedger.send_request(db, "u1", "u3")
        await FriendRequestLedger.accept_request(db, first.id, "u2")

        accepted = await FriendRequestLedger.list_accepted_outgoing(db, "u1")
        assert [(r.id, u.id) for r, u in accepted] == [(first.id, "u2")]
        assert await FriendRequestLedger.list_accepted_outgoing(db, "u2") == []

    @pytest.mark.asyncio
    async def test_open_request_partner_ids(self, db, users):
        await FriendRequestLedger.send_request(db, "u1", "u2")
        await FriendRequestLedger.send_request(db, "u3", "u1")
        done = await FriendRequestLedger.send_request(db, "u1", "u4")
        await FriendRequestLedger.accept_request(db, done.id, "u4")

        assert await FriendRequestLedger.open_request_partner_ids(db, "u1") == {"u2", "u3"}
        assert await FriendRequestLedger.open_request_partner_ids(db, "u5") == set()
