class EngineError(Exception):
    pass


class MissingIdentity(EngineError):
    """Inbound event without a usable identity (or otherwise malformed)."""

    def __init__(self, event, detail=""):
        self.event = event
        self.detail = detail
        super().__init__(f"{event}: {detail}" if detail else event)


class StaleConnectionSend(EngineError):
    """Delivery attempted to a connection that is already closed."""

    def __init__(self, connection_id):
        self.connection_id = connection_id
        super().__init__(f"connection {connection_id} is closed")


class InvariantViolation(EngineError):
    """Partner relation found one-sided. Healed locally, never propagated."""
