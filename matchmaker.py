import logging

import schemas
from cooldown import COOLDOWN_WINDOW
from models import ANY, WAITING, default_preferences, default_request, partner_profile

logger = logging.getLogger(__name__)

WAITING_MESSAGE = "Searching for partner..."


def wants(preferences, other):
    """True when `preferences` accepts someone with `other` preferences."""
    wanted = preferences.get("partner_gender") or ANY
    return wanted == ANY or wanted == other.get("gender")


class Matchmaker:
    """Pairs a searching identity with the first compatible waiting one.

    find() must run as one uninterrupted unit: nothing in it awaits, so the
    scan and the pairing it leads to cannot interleave with another event.
    """

    def __init__(self, registry, pool, ledger, rooms, outbox, cooldown_window=COOLDOWN_WINDOW):
        self.registry = registry
        self.pool = pool
        self.ledger = ledger
        self.rooms = rooms
        self.outbox = outbox
        self.cooldown_window = cooldown_window

    def find(self, identity, connection, preferences, now):
        if not isinstance(preferences, dict):
            preferences = default_preferences(**preferences.model_dump())
        logger.debug("%s (%s) looking for %s", identity,
                     preferences["gender"] or "anonymous", preferences["partner_gender"])

        session = self.registry.upsert(identity, connection, preferences, now)
        self.pool.remove_by_identity(identity)

        stale = []
        candidate = self.pool.take_first_matching(
            lambda request: self.compatible(identity, preferences, request, now, stale))
        for other_id in stale:
            logger.warning("Dropping stale pool entry for %s", other_id)
            self.pool.remove_by_identity(other_id)

        if candidate is None:
            self.pool.enqueue(default_request(identity, connection, preferences, now))
            session["status"] = WAITING
            self.outbox.emit(connection, schemas.WAITING,
                             schemas.dump(schemas.Waiting(message=WAITING_MESSAGE)))
            return None

        partner = self.registry.get(candidate["identity"])
        room = self.rooms.open(session, partner, now)
        self.ledger.record(identity, partner["identity"], now + self.cooldown_window)
        logger.info("Matched %s (%s) <-> %s (%s) in room %s",
                    identity, preferences["gender"] or "anonymous",
                    partner["identity"], partner["preferences"]["gender"] or "anonymous",
                    room["room_id"])

        for me, other in ((session, partner), (partner, session)):
            found = schemas.PartnerFound(
                room_id=room["room_id"],
                partner_profile=schemas.PartnerProfile(**partner_profile(other["preferences"])),
            )
            self.outbox.emit(me["connection"], schemas.PARTNER_FOUND, schemas.dump(found))
        return room

    def compatible(self, identity, preferences, request, now, stale=None):
        other_id = request["identity"]
        if other_id == identity:
            return False
        if not wants(preferences, request["preferences"]):
            return False
        if not wants(request["preferences"], preferences):
            return False
        if self.ledger.is_blocked(identity, other_id, now):
            logger.debug("Blocked rematch between %s and %s (cooldown active)", identity, other_id)
            return False
        other = self.registry.get(other_id)
        if other is None or other["status"] != WAITING:
            if stale is not None:
                stale.append(other_id)
            return False
        return True
