"""
The matchmaking engine: one explicitly constructed instance per bot.

Every mutation of the session registry, the waiting pool and the cooldown
ledger goes through ChatEngine._apply(), which holds a single asyncio.Lock
for the whole unit and only delivers the queued notifications once the lock
is released. The operations inside the lock never await.
"""

import asyncio
import logging
import os
import time

import schemas
from connection import Outbox
from cooldown import COOLDOWN_WINDOW, CooldownLedger
from errors import MissingIdentity, StaleConnectionSend
from matchmaker import Matchmaker
from pool import WaitingPool
from registry import SessionRegistry
from rooms import RoomCoordinator
from sweeper import PERSISTENT, POLICIES, STRICT, LifecycleSweeper

logger = logging.getLogger(__name__)

INACTIVITY_TIMEOUT = 15 * 60
SWEEP_INTERVAL = 15
COOLDOWN_PURGE_INTERVAL = 5 * 60


class EngineConfig:
    def __init__(self, policy, cooldown_window=COOLDOWN_WINDOW, inactivity_timeout=INACTIVITY_TIMEOUT,
                 sweep_interval=SWEEP_INTERVAL, purge_interval=COOLDOWN_PURGE_INTERVAL):
        if policy not in POLICIES:
            raise ValueError(f"session policy must be one of {', '.join(POLICIES)}, got {policy!r}")
        self.policy = policy
        self.cooldown_window = cooldown_window
        self.inactivity_timeout = inactivity_timeout
        self.sweep_interval = sweep_interval
        self.purge_interval = purge_interval


def config_from_env(env=None):
    env = os.environ if env is None else env
    policy = (env.get("SESSION_POLICY") or "").strip().lower()
    if not policy:
        raise ValueError(f"SESSION_POLICY must be set to '{STRICT}' or '{PERSISTENT}'")
    return EngineConfig(
        policy,
        cooldown_window=float(env.get("COOLDOWN_MINUTES", COOLDOWN_WINDOW / 60)) * 60,
        inactivity_timeout=float(env.get("INACTIVITY_TIMEOUT", INACTIVITY_TIMEOUT)),
        sweep_interval=float(env.get("SWEEP_INTERVAL", SWEEP_INTERVAL)),
        purge_interval=float(env.get("COOLDOWN_PURGE_INTERVAL", COOLDOWN_PURGE_INTERVAL)),
    )


class ChatEngine:
    def __init__(self, config, clock=time.time, on_fault=None):
        self.config = config
        self.clock = clock
        self.on_fault = on_fault
        self.closed = False
        self._lock = asyncio.Lock()

        self.outbox = Outbox()
        self.pool = WaitingPool()
        self.ledger = CooldownLedger()
        self.registry = SessionRegistry()
        self.rooms = RoomCoordinator(self.registry, self.pool, self.outbox)
        self.registry.teardown = self.rooms.leave
        self.matchmaker = Matchmaker(self.registry, self.pool, self.ledger, self.rooms, self.outbox,
                                     cooldown_window=config.cooldown_window)
        self.sweeper = LifecycleSweeper(self, config.policy, config.inactivity_timeout,
                                        config.sweep_interval, config.purge_interval)

    def start(self, job_queue=None):
        if job_queue is None and self.config.policy == STRICT:
            logger.warning("Strict session policy but no job queue; sweeper not scheduled")
            return
        if job_queue is not None:
            self.sweeper.start(job_queue)

    def stop(self):
        self.sweeper.stop()

    async def dispatch(self, event, connection, payload):
        try:
            request = schemas.parse_inbound(event, payload)
        except MissingIdentity as e:
            logger.debug("Dropped inbound event: %s", e)
            return None
        if event == schemas.FIND_PARTNER:
            return await self.find_partner(connection, request)
        if event == schemas.CANCEL_SEARCH:
            return await self.cancel_search(request)
        if event == schemas.LEAVE_CHAT:
            return await self.leave_chat(request)
        return await self.heartbeat(request)

    async def find_partner(self, connection, request):
        return await self._apply(
            lambda now: self.matchmaker.find(request.identity, connection, request.preferences, now))

    async def cancel_search(self, request):
        return await self._apply(lambda now: self.rooms.cancel_search(request.identity))

    async def leave_chat(self, request):
        def leave(now):
            left = self.rooms.leave_room(request.identity, request.room_id)
            self.registry.touch(request.identity, now)
            return left
        return await self._apply(leave)

    async def heartbeat(self, request):
        return await self._apply(lambda now: self.registry.touch(request.identity, now))

    async def connection_closed(self, connection_id):
        return await self._apply(lambda now: self.rooms.close_connection(connection_id))

    async def reap_inactive(self):
        def reap(now):
            stale = self.sweeper.stale_identities(self.registry, now)
            for identity in stale:
                logger.info("Removing inactive session for %s", identity)
                session = self.registry.get(identity)
                self.outbox.emit(session["connection"], schemas.SESSION_EXPIRED,
                                 schemas.dump(schemas.SessionExpired()))
                self.rooms.close_session(identity)
            self.rooms.heal()
            if stale:
                logger.info("Removed %d inactive sessions", len(stale))
            return len(stale)
        return await self._apply(reap)

    async def purge_cooldowns(self):
        return await self._apply(lambda now: self.ledger.purge(now))

    async def shutdown(self):
        """Tell every live session the server is going away."""
        if self.closed:
            return
        self.sweeper.stop()
        async with self._lock:
            self.closed = True
            self.outbox.drain()
            for session in self.registry:
                self.outbox.emit(session["connection"], schemas.SERVER_SHUTDOWN,
                                 schemas.dump(schemas.ServerShutdown()))
            pending = self.outbox.drain()
        logger.info("Shutdown notice sent to %d sessions", len(pending))
        await self._deliver(pending)

    def stats(self):
        return {
            "sessions": len(self.registry),
            "waiting": len(self.pool),
            "rooms": len(self.rooms.rooms),
            "cooldowns": len(self.ledger),
            "policy": self.config.policy,
        }

    def room_info(self, room_id):
        room = self.rooms.rooms.get(room_id)
        if room is None:
            return None
        members = []
        for identity in room["users"]:
            session = self.registry.get(identity)
            members.append({
                "identity": identity,
                "status": session["status"] if session else None,
                "last_active_at": session["last_active_at"] if session else None,
            })
        return {**room, "members": members}

    async def _apply(self, operation):
        if self.closed:
            logger.debug("Engine is shut down; event dropped")
            return None
        async with self._lock:
            if self.closed:
                return None
            try:
                result = operation(self.clock())
            except Exception:
                logger.exception("Engine state fault; shutting down")
                self.outbox.drain()
                faulted = True
            else:
                faulted = False
            pending = self.outbox.drain()
        if faulted:
            await self._fault()
            return None
        await self._deliver(pending)
        return result

    async def _fault(self):
        await self.shutdown()
        if self.on_fault is not None:
            self.on_fault()

    async def _deliver(self, pending):
        if pending:
            await asyncio.gather(*(self._send(c, event, payload) for c, event, payload in pending))

    async def _send(self, connection, event, payload):
        try:
            await connection.send(event, payload)
        except StaleConnectionSend as e:
            logger.debug("Dropped %s for closed connection %s", event, e.connection_id)
        except Exception:
            logger.exception("Failed to deliver %s to %s", event, connection.id)
