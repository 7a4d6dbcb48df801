import logging

logger = logging.getLogger(__name__)

STRICT = "strict"
PERSISTENT = "persistent"
POLICIES = (STRICT, PERSISTENT)


class LifecycleSweeper:
    """Background reaping of idle sessions and expired cooldowns.

    Under the strict policy two repeating jobs are put on the bot's job
    queue; under the persistent policy nothing is scheduled and sessions
    only end on an explicit connection close. The jobs go through the
    engine so they take the same lock as interactive events.
    """

    def __init__(self, engine, policy, inactivity_timeout, sweep_interval, purge_interval):
        if policy not in POLICIES:
            raise ValueError(f"unknown session policy {policy!r}")
        self.engine = engine
        self.policy = policy
        self.inactivity_timeout = inactivity_timeout
        self.sweep_interval = sweep_interval
        self.purge_interval = purge_interval
        self._jobs = []

    @property
    def running(self):
        return bool(self._jobs)

    def start(self, job_queue):
        if self.policy == PERSISTENT:
            logger.info("Session policy is persistent; sweeper disabled")
            return
        if self._jobs:
            return
        self._jobs = [
            job_queue.run_repeating(self._reap_job, interval=self.sweep_interval,
                                    first=self.sweep_interval, name="reap_sessions"),
            job_queue.run_repeating(self._purge_job, interval=self.purge_interval,
                                    first=self.purge_interval, name="purge_cooldowns"),
        ]
        logger.info("Sweeper started: idle timeout %ss, sweep every %ss, purge every %ss",
                    self.inactivity_timeout, self.sweep_interval, self.purge_interval)

    def stop(self):
        for job in self._jobs:
            job.schedule_removal()
        if self._jobs:
            logger.info("Sweeper stopped")
        self._jobs = []

    def stale_identities(self, registry, now):
        return [
            session["identity"] for session in registry
            if now - session["last_active_at"] > self.inactivity_timeout
        ]

    async def _reap_job(self, context):
        await self.engine.reap_inactive()

    async def _purge_job(self, context):
        await self.engine.purge_cooldowns()
