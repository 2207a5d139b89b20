"""
Presence and push hub.

Tracks live Socket.IO sessions and fans out domain events to them.
Each session owns a bounded outbox drained by its own delivery task, so a
slow client never blocks publishers. Delivery is best-effort and not
durable: clients that miss events recover state through the REST API.
"""
import asyncio
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, Iterable, List, Optional, Set, Tuple

import socketio
from socketio.exceptions import ConnectionRefusedError as SocketConnectionRefused

from app.config import settings
from app.core.cache import clear_user_presence, get_user_presence, set_user_presence
from app.core.errors import Unauthenticated
from app.core.security import extract_token_from_header, user_id_from_token
from app.schemas.events import PresenceEvent, TypingEvent, PushEvent

logger = logging.getLogger(__name__)


class SessionOutbox:
    """
    Bounded buffer of outbound events for one session.

    When full, the oldest non-critical event (typing, presence) is dropped
    to make room. An incoming non-critical event is discarded if nothing
    can be dropped. If a critical event still does not fit, the outbox
    closes and the session must be disconnected.
    """

    def __init__(self, maxsize: int):
        self.maxsize = maxsize
        self.closed = False
        self._items: Deque[PushEvent] = deque()
        self._ready = asyncio.Event()

    def __len__(self) -> int:
        return len(self._items)

    def push(self, event: PushEvent) -> bool:
        """
        Enqueue an event.

        Returns:
            False when the outbox overflowed and the session must be dropped
        """
        if self.closed:
            return False

        if len(self._items) >= self.maxsize:
            for index, queued in enumerate(self._items):
                if not queued.critical:
                    del self._items[index]
                    break
            else:
                if not event.critical:
                    return True
                self.close()
                return False

        self._items.append(event)
        self._ready.set()
        return True

    async def get(self) -> Optional[PushEvent]:
        """Wait for the next event; None once the outbox is closed."""
        while not self._items:
            if self.closed:
                return None
            self._ready.clear()
            await self._ready.wait()
        if self.closed:
            return None
        return self._items.popleft()

    def close(self) -> None:
        self.closed = True
        self._items.clear()
        self._ready.set()


@dataclass
class Session:
    """A live push channel bound to one user."""

    sid: str
    user_id: int
    outbox: SessionOutbox
    task: Optional[asyncio.Task] = field(default=None, repr=False)


class PresenceHub:
    """
    Registry of live sessions plus the publish API used by services.

    Services call ``publish(event, recipients)``; each recipient's sessions
    get the event in their outbox and a per-session task emits it with the
    event type as the Socket.IO event name.
    """

    def __init__(
        self,
        queue_size: Optional[int] = None,
        typing_ttl: Optional[float] = None
    ):
        """Initialize the hub and its Socket.IO server."""
        self.queue_size = queue_size or settings.ws_queue_size
        self.typing_ttl = typing_ttl if typing_ttl is not None else settings.typing_ttl_seconds

        cors_origins = settings.get_allowed_origins_list() or "*"
        self.sio = socketio.AsyncServer(
            async_mode="asgi",
            cors_allowed_origins=cors_origins,
            # Library logging is too chatty; the hub logs what matters
            logger=False,
            engineio_logger=False,
            ping_timeout=settings.ws_heartbeat_interval,
            ping_interval=max(1, settings.ws_heartbeat_interval // 2),
        )

        # {sid: Session}
        self.sessions: Dict[str, Session] = {}

        # {user_id: set of sids}
        self.user_sessions: Dict[int, Set[str]] = {}

        # {(match_id, user_id): expiry task}
        self._typing: Dict[Tuple[int, int], asyncio.Task] = {}

        self._setup_handlers()

    # ------------------------------------------------------------------
    # Socket.IO handlers
    # ------------------------------------------------------------------

    def _setup_handlers(self):
        """Setup Socket.IO event handlers."""

        @self.sio.event
        async def connect(sid, environ, auth):
            """
            Handle client connection.

            The client presents an access token in the handshake ``auth``
            payload (``{"token": ...}``) or an ``Authorization: Bearer`` header.
            """
            token = self._extract_token(environ, auth)
            try:
                user_id = user_id_from_token(token)
            except Unauthenticated as e:
                logger.warning("Connection rejected for %s: %s", sid, e.message)
                raise SocketConnectionRefused("authentication failed")

            if not await self.user_may_connect(user_id):
                logger.warning("Connection rejected for %s: user %s unknown or inactive", sid, user_id)
                raise SocketConnectionRefused("authentication failed")

            await self.register(sid, user_id)

        @self.sio.event
        async def disconnect(sid, *args):
            """Handle client disconnection."""
            await self.unregister(sid)

        @self.sio.on("typing.start")
        async def typing_start(sid, data):
            """Expected data: {'match_id': int}"""
            await self._handle_typing(sid, data, started=True)

        @self.sio.on("typing.stop")
        async def typing_stop(sid, data):
            """Expected data: {'match_id': int}"""
            await self._handle_typing(sid, data, started=False)

    @staticmethod
    def _extract_token(environ: Optional[dict], auth: Optional[dict]) -> Optional[str]:
        if isinstance(auth, dict) and auth.get("token"):
            return auth["token"]
        header = (environ or {}).get("HTTP_AUTHORIZATION")
        if not header:
            return None
        try:
            return extract_token_from_header(header)
        except Unauthenticated:
            return None

    async def _handle_typing(self, sid: str, data, started: bool) -> None:
        session = self.sessions.get(sid)
        if session is None:
            return

        match_id = data.get("match_id") if isinstance(data, dict) else None
        if not isinstance(match_id, int) or isinstance(match_id, bool):
            await self.sio.emit("error", {"message": "match_id must be an integer"}, to=sid)
            return

        partner_id = await self.typing_partner(session.user_id, match_id)
        if partner_id is None:
            await self.sio.emit("error", {"message": "Cannot type in this chat"}, to=sid)
            return

        if started:
            await self.start_typing(match_id, session.user_id, partner_id)
        else:
            await self.stop_typing(match_id, session.user_id, partner_id)

    # ------------------------------------------------------------------
    # Session registry
    # ------------------------------------------------------------------

    async def register(self, sid: str, user_id: int) -> Session:
        """
        Add a session and start its delivery task.

        The first session of a user announces ``presence.online`` to the
        user's match partners.
        """
        session = Session(sid=sid, user_id=user_id, outbox=SessionOutbox(self.queue_size))
        session.task = asyncio.create_task(self._deliver(session))
        self.sessions[sid] = session

        first_session = user_id not in self.user_sessions
        self.user_sessions.setdefault(user_id, set()).add(sid)
        logger.info("Session connected: %s (user: %s)", sid, user_id)

        if first_session:
            await set_user_presence(user_id, "online")
            await self._announce_presence(user_id, "presence.online")
        return session

    async def unregister(self, sid: str) -> None:
        """Remove a session; idempotent. The last session going away announces offline."""
        session = self.sessions.pop(sid, None)
        if session is None:
            return

        session.outbox.close()
        if session.task is not None and session.task is not asyncio.current_task():
            session.task.cancel()

        sids = self.user_sessions.get(session.user_id)
        if sids is not None:
            sids.discard(sid)
            if not sids:
                del self.user_sessions[session.user_id]

        logger.info("Session disconnected: %s (user: %s)", sid, session.user_id)

        if session.user_id not in self.user_sessions:
            for key in [k for k in self._typing if k[1] == session.user_id]:
                self._typing.pop(key).cancel()
            await clear_user_presence(session.user_id)
            await self._announce_presence(session.user_id, "presence.offline")

    async def drop_session(self, sid: str) -> None:
        """Forcefully disconnect a session whose outbox overflowed."""
        await self.unregister(sid)
        try:
            await self.sio.disconnect(sid)
        except (KeyError, ValueError) as e:
            logger.debug("Session %s already gone: %s", sid, e)

    def is_online(self, user_id: int) -> bool:
        """True when the user has a live session on this worker."""
        return bool(self.user_sessions.get(user_id))

    async def is_user_online(self, user_id: int) -> bool:
        """Local sessions first, then the Redis presence mirror shared by workers."""
        if self.is_online(user_id):
            return True
        return await get_user_presence(user_id) == "online"

    # ------------------------------------------------------------------
    # Publishing
    # ------------------------------------------------------------------

    async def publish(self, event: PushEvent, recipients: Iterable[int]) -> int:
        """
        Queue an event for every live session of the recipients.

        Args:
            event: Event envelope
            recipients: User IDs (duplicates are ignored)

        Returns:
            Number of sessions the event was queued for

        Example:
            ```python
            await presence_hub.publish(MessageCreatedEvent(payload=msg), [alice_id, bob_id])
            ```
        """
        queued = 0
        overflowed: List[str] = []

        for user_id in set(recipients):
            for sid in list(self.user_sessions.get(user_id, ())):
                session = self.sessions.get(sid)
                if session is None:
                    continue
                if session.outbox.push(event):
                    queued += 1
                else:
                    overflowed.append(sid)

        for sid in overflowed:
            logger.warning("Outbox overflow, disconnecting session %s", sid)
            await self.drop_session(sid)

        return queued

    async def _deliver(self, session: Session) -> None:
        """Per-session delivery loop."""
        while True:
            event = await session.outbox.get()
            if event is None:
                return
            try:
                await self.sio.emit(event.type, event.to_frame(), to=session.sid)
            except Exception:
                logger.exception("Failed to emit %s to session %s", event.type, session.sid)

    async def _announce_presence(self, user_id: int, kind: str) -> None:
        partner_ids = await self.partner_ids(user_id)
        if partner_ids:
            await self.publish(
                PresenceEvent(type=kind, payload={"user_id": user_id}),
                partner_ids
            )

    # ------------------------------------------------------------------
    # Typing indicators
    # ------------------------------------------------------------------

    async def start_typing(self, match_id: int, user_id: int, partner_id: int) -> None:
        """
        Publish ``typing.start`` and (re)arm the auto-expiry timer.

        Without a ``typing.stop`` the indicator expires ``typing_ttl``
        seconds after the last start.
        """
        key = (match_id, user_id)
        previous = self._typing.pop(key, None)
        if previous is not None:
            previous.cancel()

        await self.publish(
            TypingEvent(type="typing.start", payload={"match_id": match_id, "user_id": user_id}),
            [partner_id]
        )
        self._typing[key] = asyncio.create_task(self._expire_typing(key, partner_id))

    async def stop_typing(self, match_id: int, user_id: int, partner_id: int) -> None:
        key = (match_id, user_id)
        timer = self._typing.pop(key, None)
        if timer is None:
            return
        timer.cancel()
        await self.publish(
            TypingEvent(type="typing.stop", payload={"match_id": match_id, "user_id": user_id}),
            [partner_id]
        )

    async def _expire_typing(self, key: Tuple[int, int], partner_id: int) -> None:
        await asyncio.sleep(self.typing_ttl)
        if self._typing.get(key) is not asyncio.current_task():
            return
        del self._typing[key]
        match_id, user_id = key
        await self.publish(
            TypingEvent(type="typing.stop", payload={"match_id": match_id, "user_id": user_id}),
            [partner_id]
        )

    # ------------------------------------------------------------------
    # Database lookups
    # ------------------------------------------------------------------

    async def user_may_connect(self, user_id: int) -> bool:
        """Only existing, active users may open a push session."""
        from app.core.database import AsyncSessionLocal
        from app.repositories.user_repo import UserRepository

        async with AsyncSessionLocal() as db:
            user = await UserRepository(db).get(user_id)
            return user is not None and user.is_active

    async def partner_ids(self, user_id: int) -> List[int]:
        """Match partners that should see this user's presence."""
        from app.core.database import AsyncSessionLocal
        from app.services.chat_service import ChatService

        async with AsyncSessionLocal() as db:
            return await ChatService(db).visible_partner_ids(user_id)

    async def typing_partner(self, user_id: int, match_id: int) -> Optional[int]:
        """Counterparty of the match if the user may chat in it, else None."""
        from app.core.database import AsyncSessionLocal
        from app.services.chat_service import ChatService

        async with AsyncSessionLocal() as db:
            return await ChatService(db).chat_partner(user_id, match_id)

    # ------------------------------------------------------------------
    # ASGI
    # ------------------------------------------------------------------

    def get_asgi_app(self, fastapi_app):
        """
        Socket.IO ASGI app wrapping FastAPI.

        Socket.IO serves ``/{ws_path}/`` and hands every other request to
        the FastAPI app.
        """
        return socketio.ASGIApp(
            self.sio,
            fastapi_app,
            socketio_path=settings.ws_path,
        )

    async def shutdown(self) -> None:
        """Cancel delivery and typing tasks on application shutdown."""
        for task in list(self._typing.values()):
            task.cancel()
        self._typing.clear()
        for session in list(self.sessions.values()):
            session.outbox.close()
            if session.task is not None:
                session.task.cancel()
        self.sessions.clear()
        self.user_sessions.clear()


# Global presence hub instance
presence_hub = PresenceHub()
