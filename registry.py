import logging

from models import IDLE, default_session

logger = logging.getLogger(__name__)


class SessionRegistry:
    """identity -> session record, plus connection id -> identity."""

    def __init__(self, teardown=None):
        self._sessions = {}
        self._by_connection = {}
        # Called with the identity when a re-search replaces a paired session.
        self.teardown = teardown

    def get(self, identity):
        return self._sessions.get(identity)

    def upsert(self, identity, connection, preferences, now):
        existing = self._sessions.get(identity)
        if existing is not None:
            if existing["room_id"] and self.teardown is not None:
                logger.warning("%s already in room %s. Leaving first.", identity, existing["room_id"])
                self.teardown(identity)
            self._unindex(existing)
        session = default_session(identity, connection, preferences, now)
        self._sessions[identity] = session
        self._by_connection[connection.id] = identity
        return session

    def remove(self, identity):
        session = self._sessions.pop(identity, None)
        if session is not None:
            self._unindex(session)
        return session

    def find_by_connection(self, connection_id):
        return self._by_connection.get(connection_id)

    def touch(self, identity, now):
        session = self._sessions.get(identity)
        if session is None:
            return False
        session["last_active_at"] = now
        return True

    def set_idle(self, identity):
        session = self._sessions.get(identity)
        if session is not None:
            session["status"] = IDLE
            session["room_id"] = None
            session["partner_id"] = None

    def _unindex(self, session):
        connection = session["connection"]
        if self._by_connection.get(connection.id) == session["identity"]:
            del self._by_connection[connection.id]

    def __contains__(self, identity):
        return identity in self._sessions

    def __len__(self):
        return len(self._sessions)

    def __iter__(self):
        return iter(list(self._sessions.values()))
