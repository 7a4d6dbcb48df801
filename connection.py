class Connection:
    """A live link to one client, as seen by the engine.

    Implementations deliver named events, and track which room group the
    client is in so the relay layer can reach the other member.
    """

    id = None

    async def send(self, event, payload):
        raise NotImplementedError

    def join_group(self, room_id):
        raise NotImplementedError

    def leave_group(self, room_id):
        raise NotImplementedError


class Outbox:
    """Notifications queued while the engine lock is held."""

    def __init__(self):
        self._pending = []

    def emit(self, connection, event, payload):
        if connection is None:
            return
        self._pending.append((connection, event, payload))

    def drain(self):
        pending, self._pending = self._pending, []
        return pending

    def __len__(self):
        return len(self._pending)
