import logging
import uuid

import schemas
from errors import InvariantViolation
from models import IDLE, PAIRED, WAITING, default_room

logger = logging.getLogger(__name__)


class RoomCoordinator:
    """Creates two-party rooms and tears them down symmetrically."""

    def __init__(self, registry, pool, outbox):
        self.registry = registry
        self.pool = pool
        self.outbox = outbox
        self.rooms = {}

    def open(self, session, partner, now):
        room_id = f"room_{uuid.uuid4().hex[:12]}"
        room = default_room(room_id, session["identity"], partner["identity"], now)
        self.rooms[room_id] = room
        for me, other in ((session, partner), (partner, session)):
            me["status"] = PAIRED
            me["room_id"] = room_id
            me["partner_id"] = other["identity"]
            me["last_active_at"] = now
            me["connection"].join_group(room_id)
        return room

    def leave(self, identity):
        session = self.registry.get(identity)
        if session is None or not session["room_id"]:
            return False
        room_id = session["room_id"]
        partner_id = session["partner_id"]
        partner = self.registry.get(partner_id) if partner_id else None
        if partner is not None:
            if partner["partner_id"] == identity and partner["room_id"] == room_id:
                self.outbox.emit(partner["connection"], schemas.PARTNER_DISCONNECTED,
                                 schemas.dump(schemas.PartnerDisconnected()))
                self._release(partner, room_id)
            else:
                self._report(InvariantViolation(
                    f"{identity} -> {partner_id} in {room_id}, but {partner_id} -> "
                    f"{partner['partner_id']} in {partner['room_id']}"))
                if partner["room_id"] == room_id:
                    self._release(partner, room_id)
        self._release(session, room_id)
        self.rooms.pop(room_id, None)
        logger.info("%s left room %s", identity, room_id)
        return True

    def leave_room(self, identity, room_id):
        """Voluntary leave naming a room. Stale room ids are ignored."""
        session = self.registry.get(identity)
        if session is None:
            return False
        if room_id and session["room_id"] != room_id:
            logger.debug("Ignoring leave of %s from stale room %s", identity, room_id)
            return False
        return self.leave(identity)

    def close_connection(self, connection_id):
        identity = self.registry.find_by_connection(connection_id)
        if identity is None:
            return None
        self.close_session(identity)
        return identity

    def close_session(self, identity):
        self.leave(identity)
        session = self.registry.remove(identity)
        self.pool.remove_by_identity(identity)
        if session is not None:
            logger.info("Removed session for %s", identity)
        return session

    def cancel_search(self, identity):
        if self.pool.remove_by_identity(identity) is None:
            return False
        session = self.registry.get(identity)
        if session is not None and session["status"] == WAITING:
            session["status"] = IDLE
        logger.info("%s cancelled search. Pool size: %d", identity, len(self.pool))
        return True

    def heal(self):
        """Clear one-sided partner relations left behind by any fault."""
        healed = 0
        for session in self.registry:
            if session["status"] != PAIRED:
                continue
            partner = self.registry.get(session["partner_id"])
            if (partner is not None and partner["partner_id"] == session["identity"]
                    and partner["room_id"] == session["room_id"]):
                continue
            self._report(InvariantViolation(
                f"{session['identity']} paired with {session['partner_id']}, which does not pair back"))
            self.outbox.emit(session["connection"], schemas.PARTNER_DISCONNECTED,
                             schemas.dump(schemas.PartnerDisconnected()))
            room_id = session["room_id"]
            self._release(session, room_id)
            room = self.rooms.get(room_id)
            if room is not None and not self._members(room):
                del self.rooms[room_id]
            healed += 1
        return healed

    def _members(self, room):
        members = []
        for identity in room["users"]:
            session = self.registry.get(identity)
            if session is not None and session["room_id"] == room["room_id"]:
                members.append(identity)
        return members

    def _release(self, session, room_id):
        if room_id:
            session["connection"].leave_group(room_id)
        self.registry.set_idle(session["identity"])

    def _report(self, violation):
        logger.warning("Healing broken pairing: %s", violation)
