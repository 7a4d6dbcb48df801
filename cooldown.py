import logging

logger = logging.getLogger(__name__)

COOLDOWN_WINDOW = 30 * 60


class CooldownLedger:
    """Who may not be re-paired with whom, and until when.

    Expiry is checked against the caller's clock on every lookup, so stale
    rows are harmless; purge() only reclaims memory.
    """

    def __init__(self):
        self._blocked = {}

    def record(self, a, b, expires_at):
        self._blocked.setdefault(a, {})[b] = expires_at
        self._blocked.setdefault(b, {})[a] = expires_at

    def is_blocked(self, a, b, now):
        return self._blocked.get(a, {}).get(b, 0) > now

    def remaining(self, a, b, now):
        return max(0, self._blocked.get(a, {}).get(b, 0) - now)

    def purge(self, now):
        removed = 0
        for identity in list(self._blocked):
            entries = self._blocked[identity]
            for other in [o for o, expires_at in entries.items() if expires_at <= now]:
                del entries[other]
                removed += 1
            if not entries:
                del self._blocked[identity]
        if removed:
            logger.info("Purged %d expired cooldown entries", removed)
        return removed

    def __len__(self):
        return sum(len(entries) for entries in self._blocked.values())
