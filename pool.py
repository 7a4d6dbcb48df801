import logging

logger = logging.getLogger(__name__)


class WaitingPool:
    """Outstanding match requests, at most one per identity.

    Insertion order is the scan order: the first compatible entry wins.
    """

    def __init__(self):
        self._entries = {}

    def enqueue(self, request):
        identity = request["identity"]
        if self._entries.pop(identity, None) is not None:
            logger.debug("Replaced queued request for %s", identity)
        self._entries[identity] = request
        logger.info("Queued %s. Pool size: %d", identity, len(self._entries))

    def remove_by_identity(self, identity):
        return self._entries.pop(identity, None)

    def take_first_matching(self, predicate):
        for identity, request in self._entries.items():
            if predicate(request):
                del self._entries[identity]
                return request
        return None

    def get(self, identity):
        return self._entries.get(identity)

    def __contains__(self, identity):
        return identity in self._entries

    def __len__(self):
        return len(self._entries)

    def __iter__(self):
        return iter(list(self._entries.values()))
