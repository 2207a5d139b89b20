"""
Unit tests for the presence hub and session outboxes.
"""
import asyncio

import pytest

from app.core.websocket import PresenceHub, SessionOutbox
from app.schemas.events import MatchCreatedEvent, MatchPayload, TypingEvent
from app.utils.datetime_utils import utc_now


def critical(match_id: int = 1) -> MatchCreatedEvent:
    return MatchCreatedEvent(
        payload=MatchPayload(match_id=match_id, user_a_id=1, user_b_id=2, created_at=utc_now())
    )


def typing(user_id: int = 1) -> TypingEvent:
    return TypingEvent(type="typing.start", payload={"match_id": 1, "user_id": user_id})


@pytest.fixture
def hub(mocker):
    hub = PresenceHub(queue_size=2, typing_ttl=0.01)
    mocker.patch.object(hub.sio, "emit", mocker.AsyncMock())
    mocker.patch.object(hub.sio, "disconnect", mocker.AsyncMock())
    mocker.patch.object(hub, "partner_ids", mocker.AsyncMock(return_value=[]))
    yield hub


class TestSessionOutbox:
    """Test cases for the per-session back-pressure policy."""

    def test_drops_oldest_non_critical_when_full(self):
        outbox = SessionOutbox(2)
        outbox.push(typing(1))
        outbox.push(critical())

        assert outbox.push(critical(2)) is True
        assert len(outbox) == 2
        assert all(event.critical for event in outbox._items)

    def test_discards_incoming_non_critical_when_all_critical(self):
        outbox = SessionOutbox(2)
        outbox.push(critical(1))
        outbox.push(critical(2))

        assert outbox.push(typing()) is True
        assert [event.payload.match_id for event in outbox._items] == [1, 2]

    def test_critical_overflow_closes(self):
        outbox = SessionOutbox(2)
        outbox.push(critical(1))
        outbox.push(critical(2))

        assert outbox.push(critical(3)) is False
        assert outbox.closed is True
        assert outbox.push(critical(4)) is False

    @pytest.mark.asyncio
    async def test_get_returns_none_after_close(self):
        outbox = SessionOutbox(2)
        waiter = asyncio.create_task(outbox.get())
        await asyncio.sleep(0)

        outbox.close()

        assert await waiter is None


@pytest.mark.asyncio
class TestPresenceHub:
    """Test cases for session registry, publishing and typing indicators."""

    async def test_publish_delivers_to_every_session(self, hub):
        await hub.register("sid-a", 10)
        await hub.register("sid-b", 10)
        await hub.register("sid-c", 20)

        queued = await hub.publish(critical(), [10, 10, 30])
        await asyncio.sleep(0.01)

        assert queued == 2
        emitted_to = sorted(call.kwargs["to"] for call in hub.sio.emit.await_args_list)
        assert emitted_to == ["sid-a", "sid-b"]
        name, frame = hub.sio.emit.await_args_list[0].args
        assert name == "match.created"
        assert frame["type"] == "match.created"
        assert frame["payload"]["match_id"] == 1

        await hub.shutdown()

    async def test_publish_without_sessions(self, hub):
        assert await hub.publish(critical(), [99]) == 0

    async def test_overflow_disconnects_session(self, hub):
        await hub.register("slow", 10)

        for match_id in range(3):
            await hub.publish(critical(match_id), [10])

        assert "slow" not in hub.sessions
        assert hub.is_online(10) is False
        hub.sio.disconnect.assert_awaited_once_with("slow")

    async def test_presence_announced_to_partners(self, hub, mocker):
        hub.partner_ids.return_value = [20]
        await hub.register("partner", 20)
        publish = mocker.spy(hub, "publish")

        await hub.register("first", 10)
        await hub.register("second", 10)
        await hub.unregister("first")
        assert hub.is_online(10) is True
        await hub.unregister("second")

        kinds = [call.args[0].type for call in publish.call_args_list]
        assert kinds == ["presence.online", "presence.offline"]
        assert await hub.is_user_online(10) is False

        await hub.shutdown()

    async def test_unregister_is_idempotent(self, hub):
        await hub.register("sid", 10)

        await hub.unregister("sid")
        await hub.unregister("sid")

        assert hub.sessions == {}

    async def test_typing_expires(self, hub, mocker):
        publish = mocker.patch.object(hub, "publish", mocker.AsyncMock(return_value=1))

        await hub.start_typing(5, 10, 20)
        await asyncio.sleep(0.05)

        kinds = [call.args[0].type for call in publish.await_args_list]
        assert kinds == ["typing.start", "typing.stop"]
        assert publish.await_args_list[1].args[1] == [20]

    async def test_typing_restart_rearms_timer(self, hub, mocker):
        publish = mocker.patch.object(hub, "publish", mocker.AsyncMock(return_value=1))

        await hub.start_typing(5, 10, 20)
        await hub.start_typing(5, 10, 20)
        await asyncio.sleep(0.05)

        kinds = [call.args[0].type for call in publish.await_args_list]
        assert kinds == ["typing.start", "typing.start", "typing.stop"]

    async def test_explicit_stop(self, hub, mocker):
        publish = mocker.patch.object(hub, "publish", mocker.AsyncMock(return_value=1))

        await hub.stop_typing(5, 10, 20)
        assert publish.await_count == 0

        await hub.start_typing(5, 10, 20)
        await hub.stop_typing(5, 10, 20)
        await asyncio.sleep(0.05)

        kinds = [call.args[0].type for call in publish.await_args_list]
        assert kinds == ["typing.start", "typing.stop"]

    async def test_typing_rejected_for_foreign_chat(self, hub, mocker):
        mocker.patch.object(hub, "typing_partner", mocker.AsyncMock(return_value=None))
        await hub.register("sid", 10)

        await hub._handle_typing("sid", {"match_id": 5}, started=True)
        await hub._handle_typing("sid", {"match_id": "5"}, started=True)

        events = [call.args[0] for call in hub.sio.emit.await_args_list]
        assert events == ["error", "error"]
        assert hub._typing == {}

        await hub.shutdown()


class TestTokenExtraction:
    """Test cases for handshake token lookup."""

    def test_extract_token(self):
        assert PresenceHub._extract_token({}, {"token": "abc"}) == "abc"
        assert PresenceHub._extract_token({"HTTP_AUTHORIZATION": "Bearer xyz"}, None) == "xyz"
        assert PresenceHub._extract_token({"HTTP_AUTHORIZATION": "Basic xyz"}, None) is None
        assert PresenceHub._extract_token(None, None) is None
